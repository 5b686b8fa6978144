# donors/management/commands/import_donors.py
"""
Django management command to import donor data from Excel or CSV
Usage: python manage.py import_donors path/to/donors.xlsx
"""
from pathlib import Path

import pandas as pd
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from algorithms.blood_compatibility import is_valid_blood_type
from algorithms.lifecycle import calculate_next_eligible_date
from donors.models import BloodDonor

REQUIRED_COLUMNS = ['first_name', 'last_name', 'date_of_birth', 'gender', 'blood_type']
GENDERS = {'male', 'female', 'other'}


def read_donor_file(path):
    """Load a donor sheet; column names are normalised to snake_case"""
    path = Path(path)
    if path.suffix.lower() == '.csv':
        df = pd.read_csv(path, dtype=str)
    else:
        df = pd.read_excel(path, dtype=str)
    df.columns = [str(c).strip().lower().replace(' ', '_') for c in df.columns]
    return df


def parse_date(value):
    if value is None or pd.isna(value) or str(value).strip() == '':
        return None
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        raise ValueError(f'Invalid date {value!r}')
    return parsed.date()


def clean_text(row, column):
    value = row.get(column)
    if value is None or pd.isna(value):
        return ''
    return str(value).strip()


class Command(BaseCommand):
    help = 'Import blood donors from an Excel or CSV file'

    def add_arguments(self, parser):
        parser.add_argument('donor_file', type=str, help='Path to the .xlsx or .csv file')
        parser.add_argument('--dry-run', action='store_true', help='Validate without saving')

    def handle(self, *args, **options):
        donor_file = options['donor_file']

        self.stdout.write(self.style.WARNING(f'Starting import from {donor_file}...'))

        try:
            df = read_donor_file(donor_file)
        except FileNotFoundError:
            raise CommandError(f'File not found: {donor_file}')

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise CommandError(f'Missing columns: {", ".join(missing)}')

        self.stdout.write(f'Found {len(df)} rows')

        imported_count = 0
        updated_count = 0
        skipped_count = 0

        with transaction.atomic():
            for index, row in df.iterrows():
                line = index + 2
                first_name = clean_text(row, 'first_name')
                last_name = clean_text(row, 'last_name')
                blood_type = clean_text(row, 'blood_type').upper()
                gender = clean_text(row, 'gender').lower()

                if not first_name or not last_name:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Missing name'))
                    skipped_count += 1
                    continue

                if not is_valid_blood_type(blood_type):
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid blood type {blood_type}'))
                    skipped_count += 1
                    continue

                if gender not in GENDERS:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid gender {gender}'))
                    skipped_count += 1
                    continue

                try:
                    date_of_birth = parse_date(row.get('date_of_birth'))
                    last_donation_date = parse_date(row.get('last_donation_date'))
                except ValueError as e:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: {e}'))
                    skipped_count += 1
                    continue

                if date_of_birth is None:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Missing date of birth'))
                    skipped_count += 1
                    continue

                defaults = {
                    'gender': gender,
                    'blood_type': blood_type,
                    'phone': clean_text(row, 'phone'),
                    'email': clean_text(row, 'email'),
                    'address': clean_text(row, 'address'),
                    'medical_conditions': clean_text(row, 'medical_conditions'),
                    'last_donation_date': last_donation_date,
                    'next_eligible_date': calculate_next_eligible_date(last_donation_date) if last_donation_date else None,
                }

                donor, created = BloodDonor.objects.update_or_create(
                    first_name=first_name,
                    last_name=last_name,
                    date_of_birth=date_of_birth,
                    defaults=defaults,
                )

                if created:
                    imported_count += 1
                    self.stdout.write(f'Created: {donor.full_name} ({donor.blood_type})')
                else:
                    updated_count += 1
                    self.stdout.write(f'Updated: {donor.full_name} ({donor.blood_type})')

            if options['dry_run']:
                transaction.set_rollback(True)

        self.stdout.write(
            self.style.SUCCESS(
                f'\nImport complete{" (dry run)" if options["dry_run"] else ""}!\n'
                f'Created: {imported_count}\n'
                f'Updated: {updated_count}\n'
                f'Skipped: {skipped_count}'
            )
        )
