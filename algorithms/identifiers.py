import random
import re
import string
from datetime import datetime, timezone

BAG_NUMBER_PREFIX = 'BB'
BAG_NUMBER_RANDOM_LENGTH = 6
BAG_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
BAG_NUMBER_PATTERN = re.compile(r'^BB-\d{8}-[A-Z0-9]{6}$')


def generate_bag_number(now=None):
    """Generate a bag number in format BB-YYYYMMDD-XXXXXX (UTC date)"""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    date_part = now.strftime('%Y%m%d')
    random_part = ''.join(random.choices(BAG_NUMBER_ALPHABET, k=BAG_NUMBER_RANDOM_LENGTH))
    return f'{BAG_NUMBER_PREFIX}-{date_part}-{random_part}'


def is_valid_bag_number(value):
    return isinstance(value, str) and bool(BAG_NUMBER_PATTERN.match(value))
