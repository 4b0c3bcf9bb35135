"""
Pointman public API.

CORE:
    LoyaltyService.get_balance(user_id)           - Available points
    LoyaltyService.add_points(user_id, amount)    - Accrue for a purchase
    LoyaltyService.use_points(user_id, points)    - Redeem points
    LoyaltyService.update_stage(user_id)          - Recompute the stage
    LoyaltyService.apply_benefit(user_id, id)     - Apply a benefit
    LoyaltyService.notify_expiration(user_id)     - Expiration notice decision

CONVENIENCE:
    LoyaltyService.get_history(user_id)
    LoyaltyService.get_stage(user_id)
    LoyaltyService.list_benefits()
    LoyaltyService.expiring_points(user_id)
"""

from pointman.conf import get_policy
from pointman.engine import LoyaltyEngine
from pointman.locks import UserLocks
from pointman.notifiers import get_notifier
from pointman.protocols import ApplicationInfo, BenefitInfo, EntryInfo, StageInfo
from pointman.stores import DjangoBenefitCatalog, DjangoLedgerStore, DjangoStageStore

# Shared by every engine built in this process
_user_locks = UserLocks()


class LoyaltyService:
    """
    Loyalty program operations on the Django stores.

    Uses @classmethod for extensibility.
    Each call builds the engine from current settings; override
    build_engine() to swap collaborators.
    """

    @classmethod
    def build_engine(cls) -> LoyaltyEngine:
        return LoyaltyEngine(
            ledger=DjangoLedgerStore(),
            stages=DjangoStageStore(),
            catalog=DjangoBenefitCatalog(),
            notifier=get_notifier(),
            policy=get_policy(),
            locks=_user_locks,
        )

    # ======================================================================
    # Points
    # ======================================================================

    @classmethod
    def get_balance(cls, user_id: str) -> int:
        """Get available points. Returns 0 for unknown users."""
        return cls.build_engine().get_available_points(user_id)

    @classmethod
    def get_history(cls, user_id: str, limit: int | None = None) -> list[EntryInfo]:
        """Get ledger entries, most recent first."""
        return cls.build_engine().get_history(user_id, limit)

    @classmethod
    def add_points(cls, user_id: str, purchase_amount, reference: str = "") -> int:
        """
        Accrue points for a purchase.

        Args:
            user_id: User identifier
            purchase_amount: Purchase amount (Decimal, int or numeric string)
            reference: External reference (order:123)

        Returns:
            Points earned

        Raises:
            PointmanError: INVALID_AMOUNT if the amount is negative
        """
        return cls.build_engine().add_points(user_id, purchase_amount, reference)

    @classmethod
    def use_points(cls, user_id: str, points: int, reference: str = "") -> EntryInfo:
        """
        Redeem points.

        Returns:
            The redemption entry

        Raises:
            PointmanError: INVALID_AMOUNT or INSUFFICIENT_BALANCE
        """
        return cls.build_engine().use_points(user_id, points, reference)

    @classmethod
    def expiring_points(cls, user_id: str) -> list[EntryInfo]:
        return cls.build_engine().expiring_points(user_id)

    @classmethod
    def notify_expiration(cls, user_id: str) -> bool:
        """Send an expiration notice if points expire soon. Returns whether it did."""
        return cls.build_engine().notify_expiration(user_id)

    # ======================================================================
    # Stages
    # ======================================================================

    @classmethod
    def get_stage(cls, user_id: str) -> StageInfo | None:
        return cls.build_engine().get_stage(user_id)

    @classmethod
    def update_stage(cls, user_id: str) -> str:
        """Recompute the stage from the balance. Returns the current label."""
        return cls.build_engine().update_stage(user_id)

    # ======================================================================
    # Benefits
    # ======================================================================

    @classmethod
    def list_benefits(cls) -> list[BenefitInfo]:
        return cls.build_engine().list_benefits()

    @classmethod
    def apply_benefit(cls, user_id: str, benefit_id: int) -> ApplicationInfo:
        """
        Apply a benefit for the user.

        Raises:
            PointmanError: BENEFIT_NOT_FOUND, BENEFIT_EXPIRED or INELIGIBLE_STAGE
        """
        return cls.build_engine().apply_benefit(user_id, benefit_id)
