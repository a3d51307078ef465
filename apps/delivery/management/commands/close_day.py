import datetime as dt
from django.core.management.base import BaseCommand
from apps.delivery.daily import close_day


class Command(BaseCommand):
    help = "Saves the day's delivery-fee profit to daily_profits and clears all orders."

    def add_arguments(self, parser):
        parser.add_argument("--date", dest="date", help="Date (YYYY-MM-DD) to record; default: today", default=None)

    def handle(self, *args, **options):
        d = options.get("date")
        date = None
        if d:
            try:
                date = dt.date.fromisoformat(d)
            except ValueError:
                return self.stdout.write(self.style.ERROR("--date invalid; use YYYY-MM-DD"))
        res = close_day(date)
        if res.get("ok"):
            self.stdout.write(self.style.SUCCESS(f"OK: {res}"))
        else:
            self.stdout.write(self.style.WARNING(f"Skip: {res}"))
