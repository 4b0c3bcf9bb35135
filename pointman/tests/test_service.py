"""LoyaltyService on the Django stores."""

import logging
import threading
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core.exceptions import ValidationError
from django.db import OperationalError

from pointman import service
from pointman.exceptions import PointmanError
from pointman.models import Benefit, BenefitApplication, LedgerEntry, PointAccount, StageRecord
from pointman.service import LoyaltyService
from pointman.stores import DjangoLedgerStore


pytestmark = pytest.mark.django_db


# ═══════════════════════════════════════════════════════════════════
# Points
# ═══════════════════════════════════════════════════════════════════


class TestPoints:
    def test_unknown_user_has_zero_balance(self):
        assert LoyaltyService.get_balance("USER-001") == 0
        assert LoyaltyService.get_history("USER-001") == []

    def test_add_points_writes_entry_and_account(self):
        earned = LoyaltyService.add_points("USER-001", Decimal("250.00"), reference="order:1")

        assert earned == 25
        entry = LedgerEntry.objects.get(user_id="USER-001")
        assert entry.points == 25
        assert entry.reason == "purchase_accrual"
        assert entry.reference == "order:1"
        assert entry.expires_on is not None
        assert PointAccount.objects.get(user_id="USER-001").balance == 25

    def test_use_points(self):
        LoyaltyService.add_points("USER-001", 2000)
        entry = LoyaltyService.use_points("USER-001", 150)

        assert entry.points == -150
        assert entry.expires_on is None
        assert LoyaltyService.get_balance("USER-001") == 50
        assert PointAccount.objects.get(user_id="USER-001").balance == 50

    def test_insufficient_balance_does_not_write(self):
        LoyaltyService.add_points("USER-001", 500)

        with pytest.raises(PointmanError, match="INSUFFICIENT_BALANCE"):
            LoyaltyService.use_points("USER-001", 51)

        assert LedgerEntry.objects.filter(user_id="USER-001").count() == 1
        assert PointAccount.objects.get(user_id="USER-001").balance == 50

    def test_cached_balance_matches_ledger(self):
        for amount in (1000, 370, 45):
            LoyaltyService.add_points("USER-001", amount)
        LoyaltyService.use_points("USER-001", 60)

        assert LoyaltyService.get_balance("USER-001") == 81
        assert PointAccount.objects.get(user_id="USER-001").balance == 81

    def test_history_newest_first(self):
        LoyaltyService.add_points("USER-001", 100)
        LoyaltyService.add_points("USER-001", 200)
        LoyaltyService.use_points("USER-001", 5)

        assert [e.points for e in LoyaltyService.get_history("USER-001")] == [-5, 20, 10]
        assert len(LoyaltyService.get_history("USER-001", limit=1)) == 1

    def test_history_limit_from_settings(self, settings):
        settings.POINTMAN = {"HISTORY_LIMIT": 2}
        for amount in (100, 200, 300):
            LoyaltyService.add_points("USER-001", amount)
        assert len(LoyaltyService.get_history("USER-001")) == 2

    def test_accrual_rate_from_settings(self, settings):
        settings.POINTMAN = {"ACCRUAL_RATE": Decimal("0.02")}
        assert LoyaltyService.add_points("USER-001", 149) == 2


class TestLedgerImmutability:
    def test_entry_cannot_be_updated(self):
        LoyaltyService.add_points("USER-001", 100)
        entry = LedgerEntry.objects.get(user_id="USER-001")
        entry.points = 1000

        with pytest.raises(ValueError):
            entry.save()

    def test_entry_cannot_be_deleted(self):
        LoyaltyService.add_points("USER-001", 100)
        entry = LedgerEntry.objects.get(user_id="USER-001")

        with pytest.raises(ValueError):
            entry.delete()


class TestStoreFailures:
    def test_database_error_becomes_store_unavailable(self):
        with patch.object(
            LedgerEntry.objects,
            "filter",
            side_effect=OperationalError("database is locked"),
        ):
            with pytest.raises(PointmanError) as exc:
                LoyaltyService.get_balance("USER-001")

        assert exc.value.code == "STORE_UNAVAILABLE"
        assert exc.value.data == {"store": "ledger"}
        assert isinstance(exc.value.__cause__, OperationalError)

    def test_user_scope_rolls_back_on_error(self):
        store = DjangoLedgerStore()
        with pytest.raises(RuntimeError):
            with store.user_scope("USER-001"):
                store.append_entry("USER-001", 10, date(2026, 1, 1), "purchase_accrual")
                raise RuntimeError("abort")

        assert LedgerEntry.objects.filter(user_id="USER-001").count() == 0


# ═══════════════════════════════════════════════════════════════════
# Stages
# ═══════════════════════════════════════════════════════════════════


class TestStages:
    def test_get_stage_absent(self):
        assert LoyaltyService.get_stage("USER-001") is None

    def test_update_stage_creates_record(self):
        LoyaltyService.add_points("USER-001", 6000)

        assert LoyaltyService.update_stage("USER-001") == "Silver"
        record = StageRecord.objects.get(user_id="USER-001")
        assert record.stage == "Silver"
        assert record.promotion_threshold == 500

    def test_update_stage_is_idempotent(self):
        LoyaltyService.add_points("USER-001", 10000)
        LoyaltyService.update_stage("USER-001")
        first = StageRecord.objects.get(user_id="USER-001")

        assert LoyaltyService.update_stage("USER-001") == "Gold"
        second = StageRecord.objects.get(user_id="USER-001")
        assert second.updated_at == first.updated_at
        assert StageRecord.objects.count() == 1

    def test_demotion_updates_in_place(self):
        LoyaltyService.add_points("USER-001", 10000)
        LoyaltyService.update_stage("USER-001")
        applied_at = StageRecord.objects.get(user_id="USER-001").applied_at

        LoyaltyService.use_points("USER-001", 600)
        assert LoyaltyService.update_stage("USER-001") == "Bronze"

        record = StageRecord.objects.get(user_id="USER-001")
        assert record.stage == "Bronze"
        assert record.applied_at == applied_at
        assert record.updated_at > applied_at

    def test_auto_recompute_setting(self, settings):
        settings.POINTMAN = {"AUTO_RECOMPUTE_STAGE": True}
        LoyaltyService.add_points("USER-001", 10000)
        assert LoyaltyService.get_stage("USER-001").stage == "Gold"


# ═══════════════════════════════════════════════════════════════════
# Benefits
# ═══════════════════════════════════════════════════════════════════


class TestBenefits:
    def test_list_benefits_only_active(self, benefit_gold, benefit_expired):
        benefits = LoyaltyService.list_benefits()
        assert [b.id for b in benefits] == [benefit_gold.pk]
        assert benefits[0].eligible_stages == frozenset({"Gold", "Silver"})

    def test_apply_benefit(self, benefit_gold):
        LoyaltyService.add_points("USER-001", 5000)
        LoyaltyService.update_stage("USER-001")

        application = LoyaltyService.apply_benefit("USER-001", benefit_gold.pk)
        assert application.created is True
        assert BenefitApplication.objects.filter(user_id="USER-001").count() == 1

    def test_reapply_is_noop(self, benefit_gold):
        LoyaltyService.add_points("USER-001", 5000)
        LoyaltyService.update_stage("USER-001")

        LoyaltyService.apply_benefit("USER-001", benefit_gold.pk)
        again = LoyaltyService.apply_benefit("USER-001", benefit_gold.pk)

        assert again.created is False
        assert BenefitApplication.objects.count() == 1

    def test_bronze_user_is_ineligible(self, benefit_gold):
        with pytest.raises(PointmanError) as exc:
            LoyaltyService.apply_benefit("USER-001", benefit_gold.pk)
        assert exc.value.code == "INELIGIBLE_STAGE"
        assert BenefitApplication.objects.count() == 0

    def test_expired_benefit(self, benefit_expired):
        with pytest.raises(PointmanError, match="BENEFIT_EXPIRED"):
            LoyaltyService.apply_benefit("USER-001", benefit_expired.pk)

    def test_missing_benefit(self):
        with pytest.raises(PointmanError, match="BENEFIT_NOT_FOUND"):
            LoyaltyService.apply_benefit("USER-001", 12345)

    def test_bare_string_stage_is_one_stage(self, benefit_gold):
        Benefit.objects.filter(pk=benefit_gold.pk).update(eligible_stages="Gold")
        LoyaltyService.add_points("USER-001", 10000)
        LoyaltyService.update_stage("USER-001")

        [benefit] = LoyaltyService.list_benefits()
        assert benefit.eligible_stages == frozenset({"Gold"})
        assert LoyaltyService.apply_benefit("USER-001", benefit_gold.pk).created is True

    def test_clean_requires_list_of_stages(self, benefit_gold):
        benefit_gold.eligible_stages = "Gold"
        with pytest.raises(ValidationError) as exc:
            benefit_gold.full_clean()
        assert "eligible_stages" in exc.value.message_dict

        benefit_gold.eligible_stages = ["Gold", 3]
        with pytest.raises(ValidationError):
            benefit_gold.full_clean()

        benefit_gold.eligible_stages = ["Gold"]
        benefit_gold.full_clean()

    def test_clean_rejects_empty_window(self, benefit_gold):
        benefit_gold.valid_until = benefit_gold.valid_from
        with pytest.raises(ValidationError) as exc:
            benefit_gold.full_clean()
        assert "valid_until" in exc.value.message_dict


# ═══════════════════════════════════════════════════════════════════
# Engine wiring
# ═══════════════════════════════════════════════════════════════════


class TestEngineWiring:
    def test_engines_share_the_process_lock_registry(self):
        first = LoyaltyService.build_engine()
        second = LoyaltyService.build_engine()

        assert len(service._user_locks) == 0
        assert first.locks is service._user_locks
        assert second.locks is first.locks

    def test_same_user_blocks_across_service_engines(self):
        first = LoyaltyService.build_engine()
        second = LoyaltyService.build_engine()
        acquired = threading.Event()

        def contender():
            with second.locks.hold("USER-001"):
                acquired.set()

        with first.locks.hold("USER-001"):
            worker = threading.Thread(target=contender)
            worker.start()
            assert not acquired.wait(timeout=0.1)

        assert acquired.wait(timeout=1)
        worker.join(timeout=1)

    def test_other_user_is_not_blocked(self):
        first = LoyaltyService.build_engine()
        second = LoyaltyService.build_engine()
        acquired = threading.Event()

        def contender():
            with second.locks.hold("USER-002"):
                acquired.set()

        with first.locks.hold("USER-001"):
            worker = threading.Thread(target=contender)
            worker.start()
            assert acquired.wait(timeout=1)
        worker.join(timeout=1)


# ═══════════════════════════════════════════════════════════════════
# Expiration notice
# ═══════════════════════════════════════════════════════════════════


class TestNotifyExpiration:
    def test_nothing_expiring(self, caplog):
        LoyaltyService.add_points("USER-001", 1000)
        with caplog.at_level(logging.INFO, logger="pointman.notifications"):
            assert LoyaltyService.notify_expiration("USER-001") is False
        assert "Notice for user" not in caplog.text

    def test_points_expiring_soon(self, settings, caplog):
        settings.POINTMAN = {"POINTS_VALIDITY_DAYS": 10}
        LoyaltyService.add_points("USER-001", 1000)

        with caplog.at_level(logging.INFO, logger="pointman.notifications"):
            assert LoyaltyService.notify_expiration("USER-001") is True

        notices = [r for r in caplog.records if r.name == "pointman.notifications"]
        assert len(notices) == 1
        assert "USER-001" in notices[0].getMessage()
