# hm_ledger/billing/management/commands/update_overdue_bills.py
from datetime import date

from django.core.management.base import BaseCommand, CommandError

from hm_ledger.billing.sweeps import OverdueScanner


class Command(BaseCommand):
    help = "Flag PENDING / PARTIALLY_PAID bills past their due date as OVERDUE (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--as-of",
            dest="as_of",
            default=None,
            help="Evaluate due dates against this date (YYYY-MM-DD). Defaults to today.",
        )

    def handle(self, *args, **options):
        as_of = None
        if options.get("as_of"):
            try:
                as_of = date.fromisoformat(options["as_of"])
            except ValueError:
                raise CommandError("--as-of must be a date in YYYY-MM-DD format.")

        result = OverdueScanner.run_overdue_sweep(as_of=as_of)

        self.stdout.write(
            self.style.SUCCESS(
                f"Overdue sweep as of {result.as_of.isoformat()}: "
                f"scanned={result.scanned} updated={result.updated_count}"
            )
        )
        if result.failed_bill_ids:
            self.stderr.write(
                self.style.WARNING(
                    "Failed bills: " + ", ".join(str(x) for x in result.failed_bill_ids)
                )
            )
