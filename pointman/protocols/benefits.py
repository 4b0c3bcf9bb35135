"""Benefit catalog and notifier protocols."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class BenefitInfo:
    """Benefit definition."""

    id: int
    description: str
    eligible_stages: frozenset[str]
    valid_from: datetime
    valid_until: datetime
    created_at: datetime | None = None

    def is_active_at(self, when: datetime) -> bool:
        return self.valid_from <= when < self.valid_until


@dataclass(frozen=True)
class ApplicationInfo:
    """Benefit applied for a user."""

    benefit_id: int
    user_id: str
    applied_at: datetime | None
    created: bool  # False when the benefit had already been applied


@runtime_checkable
class BenefitCatalog(Protocol):
    """
    Protocol for benefit definitions and application facts.

    Implemented by pointman.stores.DjangoBenefitCatalog.
    """

    def get(self, benefit_id: int) -> BenefitInfo | None:
        ...

    def list_all(self) -> list[BenefitInfo]:
        """Benefits to show; filtering and ordering are up to the catalog."""
        ...

    def record_application(self, benefit_id: int, user_id: str) -> ApplicationInfo:
        """Record (benefit, user) once. Repeated calls return the first fact."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """
    Outbound notification channel.

    Configuration in settings.py:
        POINTMAN = {
            "NOTIFIER_BACKEND": "pointman.notifiers.LoggingNotifier",
        }
    """

    def send(self, user_id: str, message: str) -> bool:
        """Hand the message over for delivery. Returns the acknowledgement."""
        ...
