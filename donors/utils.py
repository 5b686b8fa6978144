import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from algorithms.blood_compatibility import WHOLE_BLOOD, get_compatible_donors
from algorithms.lifecycle import DONATION_INTERVAL_DAYS, calculate_next_eligible_date
from bloodbank.exceptions import DonorNotEligible
from donors.models import BloodDonor, BloodDonation
from inventory.utils import add_unit, create_with_bag_number

# Typical volume of each component prepared from one whole-blood donation
COMPONENT_VOLUME_ML = {
    'packed_rbc': 280,
    'platelets': 50,
    'fresh_frozen_plasma': 250,
    'cryoprecipitate': 15,
}

# Logger setup
logger = logging.getLogger(__name__)


def register_donor(**fields):
    """Register a new active donor with no donation history"""
    fields.pop('total_donations', None)
    fields.pop('last_donation_date', None)
    fields.pop('next_eligible_date', None)
    fields['status'] = 'active'
    donor = BloodDonor.objects.create(**fields)
    logger.info(f"Donor {donor.id} registered ({donor.blood_type})")
    return donor


def eligible_donors(today=None):
    """
    Active, non-deferred donors whose last donation was at least 56 days ago.
    """
    today = today or timezone.localdate()
    cutoff = today - timedelta(days=DONATION_INTERVAL_DAYS)
    return BloodDonor.objects.filter(status='active', is_deferred=False).filter(
        Q(last_donation_date__isnull=True) |
        Q(last_donation_date__lte=cutoff)
    )


def find_donors_for_recipient(recipient_blood_type, component_type=WHOLE_BLOOD, today=None):
    """
    Eligible donors whose blood can be given to the recipient.
    Donors who have waited longest since their last donation come first.
    """
    donor_types = get_compatible_donors(recipient_blood_type, component_type)
    return eligible_donors(today).filter(blood_type__in=donor_types).order_by(
        F('last_donation_date').asc(nulls_first=True), 'created_at'
    )


def _check_donation_interval(donor, donation_date):
    """Refuse a donation closer than 56 days to the last or any recorded donation"""
    window = timedelta(days=DONATION_INTERVAL_DAYS)
    last = donor.last_donation_date
    too_close = last is not None and abs((donation_date - last).days) < DONATION_INTERVAL_DAYS
    if not too_close:
        too_close = donor.donations.filter(
            donation_date__gt=donation_date - window,
            donation_date__lt=donation_date + window,
        ).exists()

    if too_close:
        logger.warning(f"Donation refused for donor {donor.id}: {donation_date} within {DONATION_INTERVAL_DAYS} days of another donation")
        raise DonorNotEligible(
            f"Donor is not eligible to donate: {donation_date} is within {DONATION_INTERVAL_DAYS} days of another donation."
        )


@transaction.atomic
def record_donation(donor, *, components=(), **fields):
    """
    Record a donation and update the donor's donation history.

    Steps:
    1. Lock the donor row and check it is active and not deferred
    2. Check the donation date is not in the future and is at least 56 days
       from the last donation and from every other recorded donation
    3. Create the donation with a generated bag number
    4. Update the donation count, and the last donation and next eligible
       dates when this is the donor's most recent donation
    5. Optionally split the donation into quarantined inventory units

    Raises:
        DonorNotEligible: inactive, deferred, or within 56 days of another donation
        ValidationError: future donation date, or blood type differs from the donor's registered type
    """
    donor = BloodDonor.objects.select_for_update().get(pk=donor.pk)

    if donor.status != 'active':
        logger.warning(f"Donation refused for donor {donor.id}: inactive")
        raise DonorNotEligible('Donor is not active.')

    if donor.is_deferred:
        reason = donor.eligibility_notes or 'Deferred'
        logger.warning(f"Donation refused for donor {donor.id}: {reason}")
        raise DonorNotEligible(f"Donor is not eligible to donate: {reason}.")

    blood_type = fields.pop('blood_type', None) or donor.blood_type
    if blood_type != donor.blood_type:
        raise ValidationError({'blood_type': f"Donor is registered as {donor.blood_type}, not {blood_type}."})

    now = timezone.localtime()
    fields.pop('bag_number', None)
    donation_date = fields.pop('donation_date', None) or now.date()
    donation_time = fields.pop('donation_time', None) or now.time().replace(microsecond=0)

    if donation_date > now.date():
        raise ValidationError({'donation_date': 'Donation date cannot be in the future.'})

    _check_donation_interval(donor, donation_date)

    donation = create_with_bag_number(
        BloodDonation,
        donor=donor,
        blood_type=blood_type,
        donation_date=donation_date,
        donation_time=donation_time,
        **fields
    )

    history = {'total_donations': F('total_donations') + 1, 'updated_at': timezone.now()}
    # Older entries fill in history without moving the last donation date back
    if donor.last_donation_date is None or donation_date > donor.last_donation_date:
        history['last_donation_date'] = donation_date
        history['next_eligible_date'] = calculate_next_eligible_date(donation_date)
    BloodDonor.objects.filter(pk=donor.pk).update(**history)

    units = []
    for component_type in components:
        volume = donation.volume_ml if component_type == WHOLE_BLOOD else COMPONENT_VOLUME_ML.get(component_type)
        units.append(add_unit(
            blood_type=blood_type,
            component_type=component_type,
            collection_date=donation_date,
            volume_ml=volume or donation.volume_ml,
            donation=donation,
        ))

    if units:
        donation.status = 'processed'
        donation.save(update_fields=['status', 'updated_at'])

    logger.info(f"Donation {donation.bag_number} recorded for donor {donor.id}, {len(units)} unit(s) created")
    return donation
