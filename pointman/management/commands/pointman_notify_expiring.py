"""Management command to send expiration notices in batch."""

from dataclasses import replace
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from pointman.models import LedgerEntry
from pointman.service import LoyaltyService


class Command(BaseCommand):
    help = "Send an expiration notice to every user with points expiring in EXPIRY_NOTICE_DAYS"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Override EXPIRY_NOTICE_DAYS setting",
        )

    def handle(self, *args, **options):
        engine = LoyaltyService.build_engine()
        if options["days"] is not None:
            engine.policy = replace(engine.policy, notice_days=options["days"])

        today = timezone.localdate()
        cutoff = today + timedelta(days=engine.policy.notice_days)
        user_ids = (
            LedgerEntry.objects.filter(expires_on__gte=today, expires_on__lte=cutoff)
            .order_by("user_id")
            .values_list("user_id", flat=True)
            .distinct()
        )

        notified = sum(1 for user_id in user_ids if engine.notify_expiration(user_id))
        self.stdout.write(self.style.SUCCESS(f"Sent {notified} expiration notices."))
