"""
Loyalty engine — balance, redemption, stage and benefit rules.

The engine holds the decision logic only. Persistence and delivery are
reached through the collaborators in pointman.protocols, so the same
rules run against the Django stores or any other implementation.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Callable

from django.utils import timezone

from pointman.conf import LoyaltyPolicy
from pointman.exceptions import PointmanError
from pointman.locks import UserLocks
from pointman.models.ledger import EntryReason
from pointman.protocols import (
    ApplicationInfo,
    BenefitCatalog,
    BenefitInfo,
    EntryInfo,
    LedgerStore,
    Notifier,
    StageInfo,
    StageStore,
)
from pointman.signals import benefit_applied, points_earned, points_redeemed, stage_changed

logger = logging.getLogger(__name__)


class LoyaltyEngine:
    """
    Loyalty rules bound to a set of collaborators.

    Writes for one user (accrual, redemption, stage recomputation) are
    serialized by a per-user lock plus the ledger store's user scope.
    Operations for different users run in parallel.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        stages: StageStore,
        catalog: BenefitCatalog,
        notifier: Notifier,
        policy: LoyaltyPolicy | None = None,
        clock: Callable[[], datetime] = timezone.now,
        locks: UserLocks | None = None,
    ):
        self.ledger = ledger
        self.stages = stages
        self.catalog = catalog
        self.notifier = notifier
        self.policy = policy if policy is not None else LoyaltyPolicy()
        self.clock = clock
        self.locks = locks if locks is not None else UserLocks()

    # ======================================================================
    # Balance
    # ======================================================================

    def get_available_points(self, user_id: str) -> int:
        """Sum of the user's ledger. 0 for a user with no entries."""
        return self.ledger.sum_points(user_id)

    def get_history(self, user_id: str, limit: int | None = None) -> list[EntryInfo]:
        """Ledger entries, most recent first."""
        return self.ledger.history(user_id, limit or self.policy.history_limit)

    # ======================================================================
    # Accrual & redemption
    # ======================================================================

    def points_for_purchase(self, purchase_amount) -> int:
        """
        Points earned for a purchase: amount x accrual rate, floored.

        Raises:
            PointmanError: INVALID_AMOUNT if the amount is negative or not a number
        """
        amount = _to_decimal(purchase_amount)
        if amount < 0:
            raise PointmanError(
                "INVALID_AMOUNT",
                message="Purchase amount must not be negative",
                amount=str(amount),
            )
        earned = (amount * self.policy.accrual_rate).to_integral_value(rounding=ROUND_FLOOR)
        return int(earned)

    def add_points(self, user_id: str, purchase_amount, reference: str = "") -> int:
        """
        Credit points for a purchase.

        A purchase too small to earn a point writes nothing.

        Returns:
            Points earned
        """
        points = self.points_for_purchase(purchase_amount)
        if points == 0:
            return 0

        today = self._today()
        with self._user_scope(user_id):
            entry = self.ledger.append_entry(
                user_id,
                points,
                today,
                EntryReason.PURCHASE_ACCRUAL,
                description=f"Purchase of {purchase_amount}",
                reference=reference,
                expires_on=today + timedelta(days=self.policy.validity_days),
            )

        logger.info("Accrued %s points for user %s", points, user_id)
        points_earned.send(sender=self.__class__, user_id=user_id, entry=entry)

        if self.policy.auto_recompute_stage:
            self.update_stage(user_id)
        return points

    def use_points(self, user_id: str, points: int, reference: str = "") -> EntryInfo:
        """
        Redeem points from the user's balance.

        The balance check and the debit happen in one per-user scope, so
        concurrent redemptions cannot overdraw.

        Returns:
            The redemption entry

        Raises:
            PointmanError: INVALID_AMOUNT if points <= 0,
                INSUFFICIENT_BALANCE if the balance is lower than points
        """
        if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
            raise PointmanError(
                "INVALID_AMOUNT",
                message="Points to redeem must be a positive integer",
                points=points if isinstance(points, int) else str(points),
            )

        with self._user_scope(user_id):
            available = self.ledger.sum_points(user_id)
            if available < points:
                logger.warning(
                    "Redemption rejected for user %s: %s requested, %s available",
                    user_id,
                    points,
                    available,
                )
                raise PointmanError(
                    "INSUFFICIENT_BALANCE",
                    available=available,
                    requested=points,
                )

            entry = self.ledger.append_entry(
                user_id,
                -points,
                self._today(),
                EntryReason.REDEMPTION,
                description="Point redemption",
                reference=reference,
            )

        logger.info("Redeemed %s points for user %s", points, user_id)
        points_redeemed.send(sender=self.__class__, user_id=user_id, entry=entry)

        if self.policy.auto_recompute_stage:
            self.update_stage(user_id)
        return entry

    # ======================================================================
    # Stages
    # ======================================================================

    def stage_for_balance(self, balance: int) -> tuple[int, str]:
        """(threshold, label) of the highest rung whose threshold <= balance."""
        for threshold, label in self.policy.ladder:
            if balance >= threshold:
                return threshold, label
        return self.policy.ladder[-1]

    def get_stage(self, user_id: str) -> StageInfo | None:
        return self.stages.get(user_id)

    def update_stage(self, user_id: str) -> str:
        """
        Recompute the user's stage from the current balance.

        The record is written only when it is missing or its label changes,
        so repeated calls without ledger changes write nothing.

        Returns:
            The current stage label
        """
        with self._user_scope(user_id):
            current = self.stages.get(user_id)
            balance = self.ledger.sum_points(user_id)
            threshold, label = self.stage_for_balance(balance)

            if current is not None and current.stage == label:
                return label

            self.stages.upsert(user_id, label, threshold)

        previous = current.stage if current else None
        logger.info("Stage for user %s: %s -> %s (balance %s)", user_id, previous, label, balance)
        stage_changed.send(
            sender=self.__class__,
            user_id=user_id,
            previous=previous,
            current=label,
        )
        return label

    # ======================================================================
    # Benefits
    # ======================================================================

    def list_benefits(self) -> list[BenefitInfo]:
        return self.catalog.list_all()

    def apply_benefit(self, user_id: str, benefit_id: int) -> ApplicationInfo:
        """
        Apply a benefit for a user.

        Checked in order: the benefit exists, it is inside its validity
        window, and the user's stage is eligible. A user without a stage
        record is on the lowest rung. Applying the same benefit twice
        returns the existing application with created=False.

        Raises:
            PointmanError: BENEFIT_NOT_FOUND, BENEFIT_EXPIRED or INELIGIBLE_STAGE
        """
        benefit = self.catalog.get(benefit_id)
        if benefit is None:
            raise PointmanError("BENEFIT_NOT_FOUND", benefit_id=benefit_id)

        if not benefit.is_active_at(self.clock()):
            raise PointmanError(
                "BENEFIT_EXPIRED",
                benefit_id=benefit.id,
                valid_from=benefit.valid_from.isoformat(),
                valid_until=benefit.valid_until.isoformat(),
            )

        record = self.stages.get(user_id)
        stage = record.stage if record else self.policy.default_stage
        if stage not in benefit.eligible_stages:
            raise PointmanError(
                "INELIGIBLE_STAGE",
                benefit_id=benefit.id,
                stage=stage,
                eligible_stages=sorted(benefit.eligible_stages),
            )

        application = self.catalog.record_application(benefit.id, user_id)
        if application.created:
            logger.info("Benefit %s applied for user %s", benefit.id, user_id)
            benefit_applied.send(
                sender=self.__class__,
                user_id=user_id,
                application=application,
            )
        return application

    # ======================================================================
    # Expiration notice
    # ======================================================================

    def expiring_points(self, user_id: str) -> list[EntryInfo]:
        """Entries expiring between today and today + notice window (inclusive)."""
        today = self._today()
        cutoff = today + timedelta(days=self.policy.notice_days)
        return [
            entry
            for entry in self.ledger.entries_expiring_before(user_id, cutoff)
            if entry.expires_on is not None and entry.expires_on >= today
        ]

    def notify_expiration(self, user_id: str) -> bool:
        """
        Notify the user if any of their points expire inside the window.

        Returns:
            True if a notice was sent, False if nothing expires soon
        """
        expiring = self.expiring_points(user_id)
        if not expiring:
            return False

        self.notifier.send(user_id, self.policy.notice_message)
        logger.info(
            "Expiration notice sent to user %s (%s expiring entries)",
            user_id,
            len(expiring),
        )
        return True

    # ======================================================================
    # Internals
    # ======================================================================

    @contextmanager
    def _user_scope(self, user_id: str):
        with self.locks.hold(user_id), self.ledger.user_scope(user_id):
            yield

    def _today(self) -> date:
        now = self.clock()
        if timezone.is_aware(now):
            return timezone.localdate(now)
        return now.date()


def _to_decimal(value) -> Decimal:
    if isinstance(value, bool):
        raise PointmanError("INVALID_AMOUNT", amount=str(value))
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise PointmanError("INVALID_AMOUNT", amount=str(value))
    if not amount.is_finite():
        raise PointmanError("INVALID_AMOUNT", amount=str(value))
    return amount
