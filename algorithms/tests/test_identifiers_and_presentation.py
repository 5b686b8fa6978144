from datetime import datetime, timedelta, timezone

import pytest

from algorithms.identifiers import BAG_NUMBER_PATTERN, generate_bag_number, is_valid_bag_number
from algorithms.presentation import (
    FALLBACK_COLOR, get_blood_type_color, get_priority_color, get_status_color,
)


def test_bag_number_format():
    for _ in range(50):
        assert BAG_NUMBER_PATTERN.match(generate_bag_number())


def test_consecutive_bag_numbers_differ():
    assert generate_bag_number() != generate_bag_number()


def test_bag_number_uses_utc_date():
    # 23:30 on Jan 1 at UTC-5 is already Jan 2 in UTC
    local = datetime(2024, 1, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert generate_bag_number(local).startswith('BB-20240102-')


@pytest.mark.parametrize('value, expected', [
    ('BB-20240101-A1B2C3', True),
    ('BB-20240101-a1b2c3', False),
    ('BB-2024011-A1B2C3', False),
    ('XX-20240101-A1B2C3', False),
    (None, False),
])
def test_is_valid_bag_number(value, expected):
    assert is_valid_bag_number(value) is expected


def test_known_colors():
    assert get_blood_type_color('O-') == 'bg-green-600'
    assert get_blood_type_color('AB+') == 'bg-purple-500'
    assert get_priority_color('critical') == 'bg-red-500'
    assert get_priority_color('urgent') == 'bg-yellow-500'
    assert get_status_color('available') == 'bg-green-500'


@pytest.mark.parametrize('bad', ['unknown-value', '', None, ['critical']])
def test_unknown_values_get_fallback_color(bad):
    assert get_priority_color(bad) == FALLBACK_COLOR == 'bg-gray-500'
    assert get_blood_type_color(bad) == FALLBACK_COLOR
    assert get_status_color(bad) == FALLBACK_COLOR
