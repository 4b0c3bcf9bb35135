"""Stage store protocol."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class StageInfo:
    """Stored stage of a user."""

    user_id: str
    stage: str
    promotion_threshold: int
    applied_at: datetime | None = None
    updated_at: datetime | None = None


@runtime_checkable
class StageStore(Protocol):
    """Protocol for per-user stage records (at most one per user)."""

    def get(self, user_id: str) -> StageInfo | None:
        ...

    def upsert(self, user_id: str, stage: str, promotion_threshold: int) -> StageInfo:
        """Create the record or overwrite label and threshold in place."""
        ...
