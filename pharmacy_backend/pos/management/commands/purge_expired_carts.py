# pharmacy_backend/pos/management/commands/purge_expired_carts.py

"""
PATH: pos/management/commands/purge_expired_carts.py

Removes carts whose expires_at has passed (schedule from cron).

--abandon-idle-days N additionally marks active carts with no activity for
N days as abandoned before purging.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand

from pos.models import Cart
from pos.services.cart_service import find_abandoned_carts, purge_expired_carts


class Command(BaseCommand):
    help = "Delete expired POS carts (and optionally abandon idle ones)."

    def add_arguments(self, parser):
        parser.add_argument("--abandon-idle-days", type=int, default=0)

    def handle(self, *args, **options):
        days = int(options.get("abandon_idle_days") or 0)
        if days > 0:
            marked = find_abandoned_carts(days=days).update(status=Cart.STATUS_ABANDONED)
            self.stdout.write(f"Abandoned {marked} idle cart(s).")

        removed = purge_expired_carts()
        self.stdout.write(self.style.SUCCESS(f"Purged {removed} expired cart(s)."))
