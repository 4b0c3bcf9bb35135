"""Management command to check cached balances against the ledger."""

from django.core.management.base import BaseCommand
from django.db.models import Sum

from pointman.models import LedgerEntry, PointAccount


class Command(BaseCommand):
    help = "Compare PointAccount.balance with the ledger sum for every user"

    def add_arguments(self, parser):
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Overwrite mismatched balances with the ledger sum",
        )

    def handle(self, *args, **options):
        sums = dict(
            LedgerEntry.objects.order_by()
            .values("user_id")
            .annotate(total=Sum("points"))
            .values_list("user_id", "total")
        )

        mismatches = 0
        for account in PointAccount.objects.order_by("user_id"):
            expected = sums.get(account.user_id) or 0
            if account.balance == expected:
                continue
            mismatches += 1
            self.stdout.write(
                f"{account.user_id}: cached {account.balance}, ledger {expected}"
            )
            if options["fix"]:
                PointAccount.objects.filter(pk=account.pk).update(balance=expected)

        if mismatches and not options["fix"]:
            self.stdout.write(self.style.WARNING(f"{mismatches} accounts out of sync."))
        else:
            self.stdout.write(
                self.style.SUCCESS(f"Reconciled ledger ({mismatches} accounts fixed).")
            )
