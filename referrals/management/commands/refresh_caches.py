from django.core.management.base import BaseCommand
from django.utils import timezone

from referrals.realtime.broadcast import publish
from referrals.services.stats import KPI_CACHE_KEY, invalidate_kpis, cached_kpis


class Command(BaseCommand):
    help = "Rebuild the team KPI cache and broadcast a WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        invalidate_kpis()
        cached_kpis()
        keys_refreshed = [KPI_CACHE_KEY]

        event = {"type": "broadcast.refresh", "version": int(now.timestamp()), "ts": now.isoformat(), "keys": keys_refreshed}
        if not publish(event):
            self.stdout.write(self.style.WARNING("No channel layer configured; refresh not broadcast"))

        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} keys at {now}"))
