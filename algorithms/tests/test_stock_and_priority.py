from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from algorithms.priority import calculate_due_score, calculate_priority_score, rank_blood_requests
from algorithms.stock import (
    MAX_UNITS_INPUT, calculate_new_balance, get_stock_level, sanitize_units,
    validate_stock_availability,
)


@pytest.mark.parametrize('value, expected', [
    (5, 5),
    ('7', 7),
    (3.9, 3),
    (-2, 0),
    ('abc', 0),
    (None, 0),
    (float('nan'), 0),
    (float('inf'), 0),
    (10 ** 9, MAX_UNITS_INPUT),
])
def test_sanitize_units(value, expected):
    assert sanitize_units(value) == expected


def test_validate_stock_availability():
    assert validate_stock_availability(5, 3) == (True, None)
    valid, error = validate_stock_availability(2, 3)
    assert not valid
    assert 'Only 2 units available' in error
    assert validate_stock_availability(5, 0)[0] is False


def test_calculate_new_balance():
    assert calculate_new_balance(10, 5, 'add') == (15, True, None)
    assert calculate_new_balance(10, 4, 'issue') == (6, True, None)
    balance, valid, error = calculate_new_balance(3, 4, 'issue')
    assert (balance, valid) == (3, False)
    assert 'Insufficient stock' in error
    # current stock is capped before the balance check
    assert calculate_new_balance(99999, 5, 'add') == (10005, True, None)
    assert calculate_new_balance(10, 1, 'transfer')[1] is False


@pytest.mark.parametrize('units, level', [
    (0, 'out_of_stock'),
    (-3, 'out_of_stock'),
    (4, 'critical'),
    (5, 'low'),
    (9, 'low'),
    (10, 'adequate'),
])
def test_stock_levels(units, level):
    assert get_stock_level(units) == level


def test_priority_scores():
    assert calculate_priority_score('critical') == 100
    assert calculate_priority_score('routine') == 20
    assert calculate_priority_score('bogus') == 20


def test_due_scores():
    today = date(2024, 6, 1)
    assert calculate_due_score(None, today) == 0
    assert calculate_due_score(date(2024, 5, 30), today) == 100
    assert calculate_due_score(date(2024, 6, 2), today) == 80
    assert calculate_due_score(date(2024, 6, 4), today) == 50
    assert calculate_due_score(date(2024, 6, 7), today) == 20
    assert calculate_due_score(date(2024, 6, 8), today) == 0


def _request(priority, required_date=None, hour=0):
    return SimpleNamespace(
        priority=priority,
        required_date=required_date,
        created_at=datetime(2024, 6, 1, hour, tzinfo=timezone.utc),
    )


def test_rank_blood_requests_orders_by_priority_then_due_then_age():
    today = date(2024, 6, 1)
    routine_today = _request('routine', today, hour=1)
    critical = _request('critical', hour=5)
    urgent_late = _request('urgent', hour=3)
    urgent_early = _request('urgent', hour=2)

    ranked = rank_blood_requests([urgent_late, routine_today, critical, urgent_early], today=today)

    assert [r['request'] for r in ranked] == [critical, routine_today, urgent_early, urgent_late]
    assert ranked[0]['score'] == 70.0
    assert ranked[1]['score'] == 44.0


def test_rank_empty():
    assert rank_blood_requests([]) == []
    assert rank_blood_requests(None) == []
