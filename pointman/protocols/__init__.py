"""Pointman protocols."""

from pointman.protocols.ledger import (
    EntryInfo,
    LedgerStore,
)
from pointman.protocols.stages import (
    StageInfo,
    StageStore,
)
from pointman.protocols.benefits import (
    ApplicationInfo,
    BenefitCatalog,
    BenefitInfo,
    Notifier,
)

__all__ = [
    # Ledger
    "EntryInfo",
    "LedgerStore",
    # Stages
    "StageInfo",
    "StageStore",
    # Benefits
    "ApplicationInfo",
    "BenefitCatalog",
    "BenefitInfo",
    "Notifier",
]
