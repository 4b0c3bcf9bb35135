"""
Pointman configuration.

Usage in settings.py:
    POINTMAN = {
        "ACCRUAL_RATE": Decimal("0.10"),
        "EXPIRY_NOTICE_DAYS": 30,
        "STAGE_LADDER": [(1000, "Gold"), (500, "Silver"), (0, "Bronze")],
    }
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


def _default_ladder() -> list[tuple[int, str]]:
    return [(1000, "Gold"), (500, "Silver"), (0, "Bronze")]


@dataclass
class PointmanSettings:
    """Pointman configuration settings."""

    # Points earned per currency unit spent (floored)
    ACCRUAL_RATE: Decimal = Decimal("0.10")

    # Accrued points expire this many days after the entry date
    POINTS_VALIDITY_DAYS: int = 365

    # Window for the expiration notice
    EXPIRY_NOTICE_DAYS: int = 30

    # (threshold, label) pairs, lower bound inclusive
    STAGE_LADDER: list = field(default_factory=_default_ladder)

    # Default page size for ledger history
    HISTORY_LIMIT: int = 50

    # Recompute the stage after every accrual/redemption
    AUTO_RECOMPUTE_STAGE: bool = False

    NOTIFIER_BACKEND: str = "pointman.notifiers.LoggingNotifier"
    EXPIRY_NOTICE_MESSAGE: str = "Some of your points expire soon. Check your balance."


def get_pointman_settings() -> PointmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "POINTMAN", {})
    return PointmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_pointman_settings(), name)


pointman_settings = _LazySettings()


@dataclass(frozen=True)
class LoyaltyPolicy:
    """
    Policy constants consumed by the engine.

    ``ladder`` is kept sorted by threshold, highest first.
    """

    accrual_rate: Decimal = Decimal("0.10")
    validity_days: int = 365
    notice_days: int = 30
    ladder: tuple[tuple[int, str], ...] = ((1000, "Gold"), (500, "Silver"), (0, "Bronze"))
    history_limit: int = 50
    auto_recompute_stage: bool = False
    notice_message: str = PointmanSettings.EXPIRY_NOTICE_MESSAGE

    def __post_init__(self):
        object.__setattr__(self, "ladder", normalize_ladder(self.ladder))
        object.__setattr__(self, "accrual_rate", Decimal(str(self.accrual_rate)))

    @property
    def default_stage(self) -> str:
        """Label of the lowest rung."""
        return self.ladder[-1][1]


def normalize_ladder(ladder) -> tuple[tuple[int, str], ...]:
    """
    Validate a stage ladder and sort it highest threshold first.

    Raises:
        ImproperlyConfigured: empty ladder, duplicate thresholds, or no rung at 0
    """
    rungs = [(int(threshold), str(label)) for threshold, label in ladder]
    if not rungs:
        raise ImproperlyConfigured("POINTMAN STAGE_LADDER must not be empty")
    thresholds = [threshold for threshold, _ in rungs]
    if len(set(thresholds)) != len(thresholds):
        raise ImproperlyConfigured("POINTMAN STAGE_LADDER has duplicate thresholds")
    if min(thresholds) != 0:
        raise ImproperlyConfigured("POINTMAN STAGE_LADDER needs a rung at threshold 0")
    return tuple(sorted(rungs, key=lambda rung: rung[0], reverse=True))


def get_policy() -> LoyaltyPolicy:
    """Build the engine policy from Django settings."""
    conf = get_pointman_settings()
    return LoyaltyPolicy(
        accrual_rate=conf.ACCRUAL_RATE,
        validity_days=conf.POINTS_VALIDITY_DAYS,
        notice_days=conf.EXPIRY_NOTICE_DAYS,
        ladder=conf.STAGE_LADDER,
        history_limit=conf.HISTORY_LIMIT,
        auto_recompute_stage=conf.AUTO_RECOMPUTE_STAGE,
        notice_message=conf.EXPIRY_NOTICE_MESSAGE,
    )
