"""
Component lifecycle arithmetic.

Shelf life of each blood component and the minimum interval between
whole-blood donations. All functions accept either ``date`` or ``datetime``
values and return the same type they were given.
"""
from datetime import date, datetime, timedelta

from algorithms.blood_compatibility import (
    WHOLE_BLOOD, PACKED_RBC, PLATELETS, FRESH_FROZEN_PLASMA, CRYOPRECIPITATE,
)

# Shelf life per component: ('days', n) or ('years', n)
SHELF_LIFE = {
    WHOLE_BLOOD: ('days', 35),
    PACKED_RBC: ('days', 42),
    PLATELETS: ('days', 5),
    FRESH_FROZEN_PLASMA: ('years', 1),
    CRYOPRECIPITATE: ('years', 1),
}
DEFAULT_SHELF_LIFE_DAYS = 35

DONATION_INTERVAL_DAYS = 56
EXPIRING_SOON_DAYS = 7


def add_years(value, years):
    """
    Add calendar years to a date or datetime.

    29 February rolls over to 1 March when the target year is not a leap year.
    """
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, month=3, day=1)


def calculate_expiry_date(collection_date, component_type):
    """
    Calculate expiry date based on component type.

    Unknown components get the whole blood shelf life (35 days).
    """
    default = ('days', DEFAULT_SHELF_LIFE_DAYS)
    try:
        unit, amount = SHELF_LIFE.get(component_type, default)
    except TypeError:
        # unhashable input
        unit, amount = default
    if unit == 'years':
        return add_years(collection_date, amount)
    return collection_date + timedelta(days=amount)


def calculate_next_eligible_date(last_donation_date):
    """Next eligible donation date (56 days after the last donation)"""
    return last_donation_date + timedelta(days=DONATION_INTERVAL_DAYS)


def _current_moment(reference):
    if isinstance(reference, datetime):
        return datetime.now(tz=reference.tzinfo)
    return date.today()


def is_donor_eligible(last_donation_date, now=None) -> bool:
    """
    Check if donor is eligible based on last donation date.

    Evaluated against the current moment on every call; a donor who has
    never donated (None) is always eligible. The boundary is inclusive.
    """
    if last_donation_date is None:
        return True

    if now is None:
        now = _current_moment(last_donation_date)
    elif isinstance(now, datetime) and not isinstance(last_donation_date, datetime):
        now = now.date()

    next_eligible = calculate_next_eligible_date(last_donation_date)
    if isinstance(next_eligible, datetime) and not isinstance(now, datetime):
        next_eligible = next_eligible.date()
    return now >= next_eligible


def days_until_expiry(expiry_date, today=None) -> int:
    if isinstance(expiry_date, datetime):
        expiry_date = expiry_date.date()
    today = today or date.today()
    return (expiry_date - today).days


def expiry_status(expiry_date, today=None):
    """Classify a unit as 'expired', 'expiring_soon' (within 7 days) or 'ok'"""
    days = days_until_expiry(expiry_date, today)
    if days < 0:
        return 'expired'
    if days <= EXPIRING_SOON_DAYS:
        return 'expiring_soon'
    return 'ok'
