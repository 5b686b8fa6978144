# inventory/management/commands/expire_units.py
"""
Django management command to run the blood unit expiry sweep
Usage: python manage.py expire_units [--date YYYY-MM-DD]
"""
from datetime import date

from django.core.management.base import BaseCommand, CommandError

from inventory.utils import expire_outdated_units


class Command(BaseCommand):
    help = 'Mark blood units past their expiry date as expired'

    def add_arguments(self, parser):
        parser.add_argument('--date', type=str, help='Reference date (defaults to today)')

    def handle(self, *args, **options):
        today = None
        if options.get('date'):
            try:
                today = date.fromisoformat(options['date'])
            except ValueError:
                raise CommandError(f"Invalid date: {options['date']}")

        count = expire_outdated_units(today=today)
        self.stdout.write(self.style.SUCCESS(f'{count} unit(s) marked as expired'))
