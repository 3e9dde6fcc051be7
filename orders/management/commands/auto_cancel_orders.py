"""Cancel prepaid orders whose payment never completed.

Meant to run from cron:

    python manage.py auto_cancel_orders --timeout 15
"""

from django.core.management.base import BaseCommand, CommandError

from orders import lifecycle


class Command(BaseCommand):
    help = "Cancel pending prepaid orders older than the timeout and release their promotion uses."

    def add_arguments(self, parser):
        parser.add_argument(
            "--timeout",
            type=int,
            default=None,
            help="Age in minutes after which an unpaid order is cancelled (default: ORDER_AUTO_CANCEL_TIMEOUT_MINUTES).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many orders would be cancelled.",
        )

    def handle(self, *args, **options):
        timeout = options["timeout"]
        if timeout is None:
            timeout = lifecycle.default_timeout_minutes()
        if timeout < 1:
            raise CommandError("--timeout must be at least 1 minute.")

        if options["dry_run"]:
            count = lifecycle.stale_pending_orders(timeout).count()
            self.stdout.write(f"{count} order(s) would be cancelled (timeout {timeout} min).")
            return

        cancelled = lifecycle.auto_cancel_stale_pending(timeout)
        for order in cancelled:
            self.stdout.write(f"  cancelled {order.order_number}")
        self.stdout.write(self.style.SUCCESS(f"Cancelled {len(cancelled)} order(s) (timeout {timeout} min)."))
