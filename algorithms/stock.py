"""
Stock arithmetic for blood unit issue and intake.

Counts are always sanitised to non-negative integers before comparison so
that a stock balance can never be driven below zero.
"""

MAX_UNITS_INPUT = 10000
MAX_STOCK_BALANCE = 100000
MAX_UNITS_PER_ISSUE = 10

STOCK_THRESHOLDS = {
    'out_of_stock': 0,
    'critical': 5,
    'low': 10,
    'adequate': 20,
}


def sanitize_units(value) -> int:
    """
    Coerce user input into a unit count.

    Non-numeric, non-finite and negative input gives 0; values are capped
    at MAX_UNITS_INPUT and truncated to whole units.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number or number in (float('inf'), float('-inf')):
        return 0
    if number < 0:
        return 0
    if number > MAX_UNITS_INPUT:
        return MAX_UNITS_INPUT
    return int(number)


def validate_stock_availability(current_stock, requested_units):
    """
    Returns:
        (valid, error) tuple, error is None when valid
    """
    current = sanitize_units(current_stock)
    requested = sanitize_units(requested_units)

    if requested <= 0:
        return False, 'Units must be a positive number'
    if requested > current:
        return False, (
            f'Insufficient stock. Only {current} units available, '
            f'cannot issue {requested} units.'
        )
    return True, None


def calculate_new_balance(current_stock, units, operation):
    """
    Returns:
        (new_balance, valid, error); on failure new_balance is the unchanged stock
    """
    current = sanitize_units(current_stock)
    units = sanitize_units(units)

    if units <= 0:
        return current, False, 'Units must be positive'

    if operation == 'add':
        new_balance = current + units
        if new_balance > MAX_STOCK_BALANCE:
            return current, False, 'Maximum stock limit exceeded'
    elif operation == 'issue':
        new_balance = current - units
        if new_balance < 0:
            return current, False, f'Insufficient stock. Only {current} units available.'
    else:
        return current, False, f'Unknown stock operation: {operation}'

    return new_balance, True, None


def get_stock_level(units):
    units = sanitize_units(units)
    if units <= STOCK_THRESHOLDS['out_of_stock']:
        return 'out_of_stock'
    if units < STOCK_THRESHOLDS['critical']:
        return 'critical'
    if units < STOCK_THRESHOLDS['low']:
        return 'low'
    return 'adequate'
