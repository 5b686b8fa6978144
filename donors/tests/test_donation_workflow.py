import datetime

import pytest
from django.core.management import call_command
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from algorithms.identifiers import is_valid_bag_number
from bloodbank.exceptions import DonorNotEligible
from donors.models import BloodDonor, BloodDonation
from donors.utils import eligible_donors, find_donors_for_recipient, record_donation
from inventory.models import BloodInventoryItem

pytestmark = pytest.mark.django_db


def test_first_time_donor_is_eligible(make_donor):
    donor = make_donor()
    assert donor.is_eligible
    assert donor.eligibility_status['label'] == 'Eligible'


def test_record_donation_updates_donor_history(make_donor):
    donor = make_donor('A+')
    donation = record_donation(donor, collected_by='Nurse Gurung', donation_date=datetime.date(2024, 1, 10))

    assert is_valid_bag_number(donation.bag_number)
    assert donation.blood_type == 'A+'

    donor.refresh_from_db()
    assert donor.total_donations == 1
    assert donor.last_donation_date == datetime.date(2024, 1, 10)
    assert donor.next_eligible_date == datetime.date(2024, 3, 6)


def test_donation_within_56_days_is_refused(make_donor):
    donor = make_donor(last_donation_date=None)
    record_donation(donor, collected_by='Nurse Gurung')

    with pytest.raises(DonorNotEligible):
        record_donation(donor, collected_by='Nurse Gurung')

    assert BloodDonation.objects.filter(donor=donor).count() == 1


def test_donor_eligible_again_on_day_56(make_donor):
    donor = make_donor()
    BloodDonor.objects.filter(pk=donor.pk).update(
        last_donation_date=timezone.localdate() - datetime.timedelta(days=56)
    )
    donor.refresh_from_db()
    assert donor.is_eligible
    record_donation(donor, collected_by='Nurse Gurung')


def test_backdated_donation_within_56_days_is_refused(make_donor):
    today = timezone.localdate()
    donor = make_donor()
    first = today - datetime.timedelta(days=60)
    record_donation(donor, collected_by='Nurse Gurung', donation_date=first)

    # the donor is eligible today, but the entry is dated 10 days after the last donation
    donor.refresh_from_db()
    assert donor.is_eligible
    with pytest.raises(DonorNotEligible):
        record_donation(donor, collected_by='Nurse Gurung', donation_date=first + datetime.timedelta(days=10))

    donor.refresh_from_db()
    assert donor.total_donations == 1
    assert donor.last_donation_date == first


def test_future_dated_donation_is_refused(make_donor):
    donor = make_donor()
    with pytest.raises(ValidationError):
        record_donation(
            donor, collected_by='Nurse Gurung',
            donation_date=timezone.localdate() + datetime.timedelta(days=1),
        )
    assert not BloodDonation.objects.filter(donor=donor).exists()


def test_older_donation_keeps_last_donation_date(make_donor):
    today = timezone.localdate()
    donor = make_donor()
    recent = today - datetime.timedelta(days=60)
    record_donation(donor, collected_by='Nurse Gurung', donation_date=recent)

    older = today - datetime.timedelta(days=400)
    record_donation(donor, collected_by='Nurse Gurung', donation_date=older)

    donor.refresh_from_db()
    assert donor.total_donations == 2
    assert donor.last_donation_date == recent
    assert donor.next_eligible_date == recent + datetime.timedelta(days=56)


def test_older_donation_must_respect_interval(make_donor):
    today = timezone.localdate()
    donor = make_donor()
    record_donation(donor, collected_by='Nurse Gurung', donation_date=today - datetime.timedelta(days=200))
    record_donation(donor, collected_by='Nurse Gurung', donation_date=today - datetime.timedelta(days=60))

    # between the two recorded donations, 30 days from the earlier one
    with pytest.raises(DonorNotEligible):
        record_donation(donor, collected_by='Nurse Gurung', donation_date=today - datetime.timedelta(days=170))
    # exactly 56 days before the recent one and 84 after the earlier one
    record_donation(donor, collected_by='Nurse Gurung', donation_date=today - datetime.timedelta(days=116))

    donor.refresh_from_db()
    assert donor.total_donations == 3
    assert donor.last_donation_date == today - datetime.timedelta(days=60)


def test_deferred_and_inactive_donors_are_refused(make_donor):
    deferred = make_donor(is_deferred=True, eligibility_notes='Low hemoglobin')
    assert deferred.eligibility_status == {
        'eligible': False, 'label': 'Not Eligible', 'reason': 'Low hemoglobin',
    }
    with pytest.raises(DonorNotEligible):
        record_donation(deferred, collected_by='Nurse Gurung')

    inactive = make_donor(first_name='Bishal')
    BloodDonor.objects.filter(pk=inactive.pk).update(status='inactive')
    with pytest.raises(DonorNotEligible):
        record_donation(inactive, collected_by='Nurse Gurung')


def test_blood_type_must_match_donor(make_donor):
    donor = make_donor('B+')
    with pytest.raises(ValidationError):
        record_donation(donor, collected_by='Nurse Gurung', blood_type='O-')


def test_donation_split_into_quarantined_units(make_donor):
    donor = make_donor('O+')
    donation = record_donation(
        donor,
        collected_by='Nurse Gurung',
        donation_date=datetime.date(2024, 1, 1),
        components=['packed_rbc', 'platelets', 'fresh_frozen_plasma'],
    )

    units = {u.component_type: u for u in BloodInventoryItem.objects.filter(donation=donation)}
    assert set(units) == {'packed_rbc', 'platelets', 'fresh_frozen_plasma'}
    assert all(u.status == 'quarantine' and u.blood_type == 'O+' for u in units.values())
    assert units['packed_rbc'].expiry_date == datetime.date(2024, 2, 12)
    assert units['platelets'].expiry_date == datetime.date(2024, 1, 6)
    assert units['fresh_frozen_plasma'].expiry_date == datetime.date(2025, 1, 1)

    donation.refresh_from_db()
    assert donation.status == 'processed'


def test_eligible_donor_queries(make_donor):
    ready = make_donor('O-')
    waiting = make_donor('O-', first_name='Bishal')
    record_donation(waiting, collected_by='Nurse Gurung')
    make_donor('A+', first_name='Chandra')

    assert set(eligible_donors()) >= {ready}
    assert waiting not in eligible_donors()
    # A- recipients take A- and O- red cells
    assert list(find_donors_for_recipient('A-', 'packed_rbc')) == [ready]
    assert list(find_donors_for_recipient('Z+', 'packed_rbc')) == []


def test_import_donors_from_csv(tmp_path):
    csv_file = tmp_path / 'donors.csv'
    csv_file.write_text(
        'First Name,Last Name,Date Of Birth,Gender,Blood Type,Phone,Last Donation Date\n'
        'Asha,Rai,1990-05-17,female,o-,9800000001,2024-01-01\n'
        'Bishal,Thapa,1985-02-01,male,A+,9800000002,\n'
        'Chandra,Karki,1992-07-09,male,Q+,9800000003,\n'
        'Dipa,Shrestha,not-a-date,female,B+,9800000004,\n'
    )

    call_command('import_donors', str(csv_file))

    assert BloodDonor.objects.count() == 2
    asha = BloodDonor.objects.get(first_name='Asha')
    assert asha.blood_type == 'O-'
    assert asha.next_eligible_date == datetime.date(2024, 2, 26)

    # second import updates rather than duplicates
    call_command('import_donors', str(csv_file))
    assert BloodDonor.objects.count() == 2


def test_import_donors_dry_run(tmp_path):
    csv_file = tmp_path / 'donors.csv'
    csv_file.write_text('first_name,last_name,date_of_birth,gender,blood_type\nAsha,Rai,1990-05-17,female,O-\n')

    call_command('import_donors', str(csv_file), '--dry-run')

    assert BloodDonor.objects.count() == 0
