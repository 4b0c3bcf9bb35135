"""Pointman models."""

from pointman.models.ledger import EntryReason, LedgerEntry, PointAccount
from pointman.models.stage import StageRecord
from pointman.models.benefit import Benefit, BenefitApplication

__all__ = [
    # Ledger
    "EntryReason",
    "LedgerEntry",
    "PointAccount",
    # Stages
    "StageRecord",
    # Benefits
    "Benefit",
    "BenefitApplication",
]
