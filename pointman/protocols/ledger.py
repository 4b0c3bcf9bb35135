"""Ledger store protocol."""

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class EntryInfo:
    """One signed point movement."""

    id: int | None
    user_id: str
    points: int
    reason: str  # "purchase_accrual" | "redemption"
    entry_date: date
    description: str = ""
    reference: str = ""
    expires_on: date | None = None
    created_at: datetime | None = None


@runtime_checkable
class LedgerStore(Protocol):
    """
    Protocol for the append-only point ledger.

    Implemented by pointman.stores.DjangoLedgerStore.
    """

    def user_scope(self, user_id: str) -> AbstractContextManager:
        """
        Scope in which reads and writes for ``user_id`` are serialized.

        Writes made inside the scope commit or roll back together.
        """
        ...

    def append_entry(
        self,
        user_id: str,
        points: int,
        entry_date: date,
        reason: str,
        *,
        description: str = "",
        reference: str = "",
        expires_on: date | None = None,
    ) -> EntryInfo:
        """Append a new entry and return it."""
        ...

    def sum_points(self, user_id: str) -> int:
        """Sum of all entries for the user. 0 when there are none."""
        ...

    def entries_expiring_before(self, user_id: str, cutoff: date) -> list[EntryInfo]:
        """Entries whose expires_on is on or before ``cutoff``."""
        ...

    def history(self, user_id: str, limit: int) -> list[EntryInfo]:
        """Most recent entries first."""
        ...
