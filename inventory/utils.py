import logging
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from algorithms.blood_compatibility import (
    BLOOD_TYPES, get_compatible_donors, is_valid_blood_type, is_valid_component_type,
)
from algorithms.identifiers import generate_bag_number
from algorithms.lifecycle import EXPIRING_SOON_DAYS, calculate_expiry_date
from algorithms.stock import get_stock_level
from bloodbank.exceptions import InvalidStatusTransition
from inventory.models import BloodInventoryItem

# Constants
BAG_NUMBER_ATTEMPTS = 5

ALLOWED_TRANSITIONS = {
    'quarantine': {'available', 'expired', 'discarded'},
    'available': {'reserved', 'issued', 'expired', 'discarded'},
    'reserved': {'available', 'issued', 'expired', 'discarded'},
    'issued': {'used', 'discarded'},
    'expired': {'discarded'},
    'used': set(),
    'discarded': set(),
}

# Statuses that count as usable stock
USABLE_STATUSES = ('available', 'reserved')
# Statuses swept to 'expired' once past expiry
EXPIRABLE_STATUSES = ('quarantine', 'available', 'reserved')
# Units that must never leave the bank
FAILED_SCREENING = (
    Q(testing_status='failed') | Q(hiv_status='reactive') | Q(hbv_status='reactive') |
    Q(hcv_status='reactive') | Q(syphilis_status='reactive') | Q(malaria_status='reactive')
)

# Logger
logger = logging.getLogger(__name__)


def create_with_bag_number(model, **fields):
    """
    Insert a row with a freshly generated bag number.

    Bag numbers are random, so a collision with an existing row is retried
    with a new number; any other integrity error propagates.
    """
    for attempt in range(1, BAG_NUMBER_ATTEMPTS + 1):
        bag_number = generate_bag_number()
        try:
            with transaction.atomic():
                return model.objects.create(bag_number=bag_number, **fields)
        except IntegrityError:
            collided = model.objects.filter(bag_number=bag_number).exists()
            if not collided or attempt == BAG_NUMBER_ATTEMPTS:
                raise
            logger.warning(f"Bag number collision on {bag_number}, retrying ({attempt}/{BAG_NUMBER_ATTEMPTS})")


def add_unit(*, blood_type, component_type, collection_date, volume_ml, donation=None, **extra):
    """
    Add a blood unit to inventory.

    The bag number and the expiry date are always computed here, never
    taken from the caller. New units start in quarantine.
    """
    if not is_valid_blood_type(blood_type):
        raise ValidationError({'blood_type': f"Unknown blood type: {blood_type}"})
    if not is_valid_component_type(component_type):
        raise ValidationError({'component_type': f"Unknown component type: {component_type}"})

    extra.pop('bag_number', None)
    extra.pop('expiry_date', None)

    unit = create_with_bag_number(
        BloodInventoryItem,
        donation=donation,
        blood_type=blood_type,
        component_type=component_type,
        collection_date=collection_date,
        expiry_date=calculate_expiry_date(collection_date, component_type),
        volume_ml=volume_ml,
        **extra
    )
    logger.info(f"Unit {unit.bag_number} ({blood_type} {component_type}) added, expires {unit.expiry_date}")
    return unit


def transition_unit(unit, new_status):
    """
    Move a unit to a new status.

    The update is conditional on the status the caller last saw, so two
    workflows racing for the same unit cannot both succeed.
    """
    current = unit.status
    if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransition(f"Cannot change unit {unit.bag_number} from {current} to {new_status}")

    if new_status in ('available', 'reserved', 'issued') and unit.is_expired:
        raise InvalidStatusTransition(f"Unit {unit.bag_number} expired on {unit.expiry_date}")

    updated = BloodInventoryItem.objects.filter(pk=unit.pk, status=current).update(
        status=new_status, updated_at=timezone.now()
    )
    if not updated:
        raise InvalidStatusTransition(f"Unit {unit.bag_number} was modified by another operation")

    unit.status = new_status
    logger.info(f"Unit {unit.bag_number}: {current} -> {new_status}")
    return unit


def check_screening(unit, action='released'):
    """Refuse a unit whose testing failed or that has a reactive marker"""
    if unit.failed_screening:
        logger.warning(f"Refused {action} of unit {unit.bag_number}: screening failed")
        raise InvalidStatusTransition(f"Unit {unit.bag_number} failed screening and cannot be {action}")


def release_unit(unit):
    """Release a quarantined unit into available stock once screening allows it"""
    check_screening(unit, 'released')
    return transition_unit(unit, 'available')


def reserve_unit(unit):
    check_screening(unit, 'reserved')
    return transition_unit(unit, 'reserved')


def discard_unit(unit, reason=''):
    transition_unit(unit, 'discarded')
    if reason:
        unit.notes = f"{unit.notes}\n{reason}".strip()
        unit.save(update_fields=['notes', 'updated_at'])
    return unit


def compatible_units(recipient_blood_type, component_type, include_reserved=False, today=None):
    """
    Usable units that can be given to a recipient, earliest expiry first.

    Returns an empty queryset for an unknown recipient blood type.
    """
    today = today or timezone.localdate()
    donor_types = get_compatible_donors(recipient_blood_type, component_type)
    statuses = USABLE_STATUSES if include_reserved else ('available',)

    return BloodInventoryItem.objects.filter(
        status__in=statuses,
        component_type=component_type,
        blood_type__in=donor_types,
        expiry_date__gte=today,
    ).exclude(FAILED_SCREENING).order_by('expiry_date', 'collection_date')


def expire_outdated_units(today=None):
    """
    Mark units past their expiry date as expired.

    Returns:
        Number of units expired
    """
    today = today or timezone.localdate()
    count = BloodInventoryItem.objects.filter(
        status__in=EXPIRABLE_STATUSES,
        expiry_date__lt=today,
    ).update(status='expired', updated_at=timezone.now())

    if count:
        logger.info(f"{count} blood units expired as of {today}")
    return count


def expiring_soon_count(today=None):
    today = today or timezone.localdate()
    return BloodInventoryItem.objects.filter(
        status='available',
        expiry_date__gte=today,
        expiry_date__lte=today + timedelta(days=EXPIRING_SOON_DAYS),
    ).count()


def availability_by_blood_type(today=None):
    """
    Available, unexpired units per blood type with a stock level label.
    Every blood type is present, with zero units when out of stock.
    """
    today = today or timezone.localdate()
    rows = BloodInventoryItem.objects.filter(
        status='available', expiry_date__gte=today
    ).values('blood_type').annotate(units=Count('id'))
    counts = {row['blood_type']: row['units'] for row in rows}

    return [
        {
            'blood_type': blood_type,
            'units': counts.get(blood_type, 0),
            'stock_level': get_stock_level(counts.get(blood_type, 0)),
        }
        for blood_type in BLOOD_TYPES
    ]
