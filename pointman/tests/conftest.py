"""Pytest fixtures for Pointman tests."""

import itertools
import time
from contextlib import contextmanager
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from django.utils import timezone

from pointman.conf import LoyaltyPolicy
from pointman.engine import LoyaltyEngine
from pointman.models import Benefit
from pointman.protocols import ApplicationInfo, BenefitInfo, EntryInfo, StageInfo

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=dt_timezone.utc)


# ═══════════════════════════════════════════════════════════════════
# In-memory collaborators
# ═══════════════════════════════════════════════════════════════════


class MemoryLedger:
    """Ledger kept in a list. ``read_delay`` widens check-then-act windows."""

    def __init__(self):
        self.entries: list[EntryInfo] = []
        self.read_delay = 0.0
        self._ids = itertools.count(1)

    @contextmanager
    def user_scope(self, user_id):
        yield

    def append_entry(
        self,
        user_id,
        points,
        entry_date,
        reason,
        *,
        description="",
        reference="",
        expires_on=None,
    ):
        entry = EntryInfo(
            id=next(self._ids),
            user_id=user_id,
            points=points,
            reason=reason,
            entry_date=entry_date,
            description=description,
            reference=reference,
            expires_on=expires_on,
        )
        self.entries.append(entry)
        return entry

    def sum_points(self, user_id):
        total = sum(e.points for e in self.entries if e.user_id == user_id)
        if self.read_delay:
            time.sleep(self.read_delay)
        return total

    def entries_expiring_before(self, user_id, cutoff):
        return [
            e
            for e in self.entries
            if e.user_id == user_id and e.expires_on is not None and e.expires_on <= cutoff
        ]

    def history(self, user_id, limit):
        return [e for e in reversed(self.entries) if e.user_id == user_id][:limit]


class MemoryStages:
    def __init__(self):
        self.records: dict[str, StageInfo] = {}
        self.writes = 0

    def get(self, user_id):
        return self.records.get(user_id)

    def upsert(self, user_id, stage, promotion_threshold):
        self.writes += 1
        previous = self.records.get(user_id)
        record = StageInfo(
            user_id=user_id,
            stage=stage,
            promotion_threshold=promotion_threshold,
            applied_at=previous.applied_at if previous else NOW,
            updated_at=NOW,
        )
        self.records[user_id] = record
        return record


class MemoryCatalog:
    def __init__(self):
        self.benefits: dict[int, BenefitInfo] = {}
        self.applications: dict[tuple[int, str], ApplicationInfo] = {}

    def add(self, benefit_id, stages, valid_from, valid_until, description="Perk"):
        benefit = BenefitInfo(
            id=benefit_id,
            description=description,
            eligible_stages=frozenset(stages),
            valid_from=valid_from,
            valid_until=valid_until,
        )
        self.benefits[benefit_id] = benefit
        return benefit

    def get(self, benefit_id):
        return self.benefits.get(benefit_id)

    def list_all(self):
        return list(self.benefits.values())

    def record_application(self, benefit_id, user_id):
        key = (benefit_id, user_id)
        if key in self.applications:
            first = self.applications[key]
            return ApplicationInfo(first.benefit_id, first.user_id, first.applied_at, created=False)
        application = ApplicationInfo(benefit_id, user_id, NOW, created=True)
        self.applications[key] = application
        return application


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def send(self, user_id, message):
        self.sent.append((user_id, message))
        return True


class Clock:
    """Settable clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# ═══════════════════════════════════════════════════════════════════
# Engine fixtures
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def ledger():
    return MemoryLedger()


@pytest.fixture
def stages():
    return MemoryStages()


@pytest.fixture
def catalog():
    return MemoryCatalog()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return Clock(NOW)


@pytest.fixture
def engine(ledger, stages, catalog, notifier, clock):
    return LoyaltyEngine(
        ledger=ledger,
        stages=stages,
        catalog=catalog,
        notifier=notifier,
        policy=LoyaltyPolicy(),
        clock=clock,
    )


@pytest.fixture
def credit(ledger, clock):
    """Append a raw accrual entry of exactly ``points``."""

    def _credit(user_id, points, expires_in_days=365):
        today = clock().date()
        return ledger.append_entry(
            user_id,
            points,
            today,
            "purchase_accrual",
            expires_on=today + timedelta(days=expires_in_days),
        )

    return _credit


# ═══════════════════════════════════════════════════════════════════
# Database fixtures
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def benefit_gold(db):
    """Gold/Silver benefit valid around now."""
    now = timezone.now()
    return Benefit.objects.create(
        description="Free shipping",
        eligible_stages=["Gold", "Silver"],
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=30),
    )


@pytest.fixture
def benefit_expired(db):
    """Bronze benefit whose window already closed."""
    now = timezone.now()
    return Benefit.objects.create(
        description="Launch week discount",
        eligible_stages=["Bronze", "Silver", "Gold"],
        valid_from=now - timedelta(days=30),
        valid_until=now - timedelta(days=1),
    )
