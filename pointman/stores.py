"""
Django ORM implementations of the loyalty store protocols.

Database failures surface as PointmanError("STORE_UNAVAILABLE") chained to
the underlying DatabaseError. Nothing here retries.
"""

import logging
from contextlib import contextmanager
from datetime import date

from django.db import DatabaseError, transaction
from django.db.models import F, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from pointman.exceptions import PointmanError
from pointman.models import (
    Benefit,
    BenefitApplication,
    LedgerEntry,
    PointAccount,
    StageRecord,
)
from pointman.protocols import ApplicationInfo, BenefitInfo, EntryInfo, StageInfo

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(store: str):
    try:
        yield
    except DatabaseError as exc:
        logger.error("Loyalty store %s failed: %s", store, exc)
        raise PointmanError("STORE_UNAVAILABLE", store=store) from exc


# =============================================================================
# Ledger
# =============================================================================


class DjangoLedgerStore:
    """Ledger backed by LedgerEntry rows, serialized on the PointAccount row."""

    @contextmanager
    def user_scope(self, user_id: str):
        """
        Transaction holding a row lock on the user's PointAccount.

        Concurrent scopes for the same user wait on the lock; the lock is
        released on commit or rollback.
        """
        with _store_errors("ledger"), transaction.atomic():
            PointAccount.objects.get_or_create(user_id=user_id)
            PointAccount.objects.select_for_update().get(user_id=user_id)
            yield

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
        with _store_errors("ledger"), transaction.atomic():
            entry = LedgerEntry.objects.create(
                user_id=user_id,
                points=points,
                reason=reason,
                description=description,
                reference=reference,
                entry_date=entry_date,
                expires_on=expires_on,
            )
            PointAccount.objects.get_or_create(user_id=user_id)
            PointAccount.objects.filter(user_id=user_id).update(
                balance=F("balance") + points,
                updated_at=timezone.now(),
            )
        return _entry_info(entry)

    def sum_points(self, user_id: str) -> int:
        with _store_errors("ledger"):
            result = LedgerEntry.objects.filter(user_id=user_id).aggregate(
                total=Coalesce(Sum("points"), Value(0)),
            )
        return result["total"]

    def entries_expiring_before(self, user_id: str, cutoff: date) -> list[EntryInfo]:
        with _store_errors("ledger"):
            rows = list(
                LedgerEntry.objects.filter(
                    user_id=user_id,
                    expires_on__isnull=False,
                    expires_on__lte=cutoff,
                ).order_by("expires_on", "id")
            )
        return [_entry_info(row) for row in rows]

    def history(self, user_id: str, limit: int) -> list[EntryInfo]:
        with _store_errors("ledger"):
            rows = list(LedgerEntry.objects.filter(user_id=user_id)[:limit])
        return [_entry_info(row) for row in rows]


# =============================================================================
# Stages
# =============================================================================


class DjangoStageStore:
    """Stage records, one StageRecord row per user."""

    def get(self, user_id: str) -> StageInfo | None:
        with _store_errors("stages"):
            record = StageRecord.objects.filter(user_id=user_id).first()
        return _stage_info(record) if record else None

    def upsert(self, user_id: str, stage: str, promotion_threshold: int) -> StageInfo:
        with _store_errors("stages"):
            record, _ = StageRecord.objects.update_or_create(
                user_id=user_id,
                defaults={
                    "stage": stage,
                    "promotion_threshold": promotion_threshold,
                },
            )
        return _stage_info(record)


# =============================================================================
# Benefits
# =============================================================================


class DjangoBenefitCatalog:
    """Benefit catalog. list_all() returns the benefits active right now."""

    def get(self, benefit_id: int) -> BenefitInfo | None:
        with _store_errors("benefits"):
            benefit = Benefit.objects.filter(pk=benefit_id).first()
        return _benefit_info(benefit) if benefit else None

    def list_all(self) -> list[BenefitInfo]:
        now = timezone.now()
        with _store_errors("benefits"):
            rows = list(Benefit.objects.filter(valid_from__lte=now, valid_until__gt=now))
        return [_benefit_info(row) for row in rows]

    def record_application(self, benefit_id: int, user_id: str) -> ApplicationInfo:
        with _store_errors("benefits"):
            application, created = BenefitApplication.objects.get_or_create(
                benefit_id=benefit_id,
                user_id=user_id,
            )
        return ApplicationInfo(
            benefit_id=application.benefit_id,
            user_id=application.user_id,
            applied_at=application.applied_at,
            created=created,
        )


# =============================================================================
# Row -> info
# =============================================================================


def _entry_info(entry: LedgerEntry) -> EntryInfo:
    return EntryInfo(
        id=entry.pk,
        user_id=entry.user_id,
        points=entry.points,
        reason=entry.reason,
        entry_date=entry.entry_date,
        description=entry.description,
        reference=entry.reference,
        expires_on=entry.expires_on,
        created_at=entry.created_at,
    )


def _stage_info(record: StageRecord) -> StageInfo:
    return StageInfo(
        user_id=record.user_id,
        stage=record.stage,
        promotion_threshold=record.promotion_threshold,
        applied_at=record.applied_at,
        updated_at=record.updated_at,
    )


def _benefit_info(benefit: Benefit) -> BenefitInfo:
    stages = benefit.eligible_stages or []
    if isinstance(stages, str):
        stages = [stages]
    return BenefitInfo(
        id=benefit.pk,
        description=benefit.description,
        eligible_stages=frozenset(stages),
        valid_from=benefit.valid_from,
        valid_until=benefit.valid_until,
        created_at=benefit.created_at,
    )
