import datetime
from unittest import mock

import pytest
from django.core.management import call_command
from django.db import IntegrityError
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from algorithms.identifiers import is_valid_bag_number
from bloodbank.exceptions import InvalidStatusTransition
from inventory import utils
from inventory.models import BloodInventoryItem
from inventory.reports import stock_report
from inventory.tasks import expire_outdated_units

pytestmark = pytest.mark.django_db

TODAY = timezone.localdate()


def test_add_unit_computes_bag_number_and_expiry():
    unit = utils.add_unit(
        blood_type='A+',
        component_type='platelets',
        collection_date=datetime.date(2024, 12, 20),
        volume_ml=50,
        bag_number='BB-19990101-AAAAAA',
        expiry_date=datetime.date(2030, 1, 1),
    )
    assert is_valid_bag_number(unit.bag_number)
    assert unit.bag_number != 'BB-19990101-AAAAAA'
    assert unit.expiry_date == datetime.date(2024, 12, 25)
    assert unit.status == 'quarantine'


def test_add_unit_rejects_unknown_types():
    with pytest.raises(ValidationError):
        utils.add_unit(blood_type='C+', component_type='packed_rbc', collection_date=TODAY, volume_ml=280)
    with pytest.raises(ValidationError):
        utils.add_unit(blood_type='A+', component_type='granulocytes', collection_date=TODAY, volume_ml=280)


def test_bag_number_collision_is_retried(make_unit):
    existing = make_unit()
    numbers = iter([existing.bag_number, 'BB-20240101-ZZZZZZ'])
    with mock.patch.object(utils, 'generate_bag_number', side_effect=lambda: next(numbers)):
        unit = utils.add_unit(blood_type='O+', component_type='packed_rbc', collection_date=TODAY, volume_ml=280)
    assert unit.bag_number == 'BB-20240101-ZZZZZZ'


def test_bag_number_collision_gives_up(make_unit):
    existing = make_unit()
    with mock.patch.object(utils, 'generate_bag_number', return_value=existing.bag_number):
        with pytest.raises(IntegrityError):
            utils.add_unit(blood_type='O+', component_type='packed_rbc', collection_date=TODAY, volume_ml=280)


def test_status_lifecycle(make_unit):
    unit = make_unit(release=False)
    utils.release_unit(unit)
    utils.reserve_unit(unit)
    assert BloodInventoryItem.objects.get(pk=unit.pk).status == 'reserved'

    utils.transition_unit(unit, 'available')
    utils.discard_unit(unit, reason='Bag leaking')
    unit.refresh_from_db()
    assert unit.status == 'discarded'
    assert 'Bag leaking' in unit.notes

    with pytest.raises(InvalidStatusTransition):
        utils.transition_unit(unit, 'available')


def test_release_refused_after_failed_screening(make_unit):
    unit = make_unit(release=False, hiv_status='reactive')
    with pytest.raises(InvalidStatusTransition):
        utils.release_unit(unit)

    failed = make_unit(release=False)
    failed.testing_status = 'failed'
    with pytest.raises(InvalidStatusTransition):
        utils.release_unit(failed)


def test_expired_unit_cannot_be_released(make_unit):
    unit = make_unit(component_type='platelets', collection_date=TODAY - datetime.timedelta(days=10), release=False)
    assert unit.is_expired
    with pytest.raises(InvalidStatusTransition):
        utils.release_unit(unit)


def test_expiry_follows_configured_time_zone(make_unit):
    unit = make_unit(component_type='platelets', release=False)
    expiry = unit.expiry_date

    with mock.patch('django.utils.timezone.localdate', return_value=expiry):
        assert not unit.is_expired
        assert unit.days_until_expiry == 0
    with mock.patch('django.utils.timezone.localdate', return_value=expiry + datetime.timedelta(days=1)):
        assert unit.is_expired
        assert unit.expiry_status == 'expired'
        with pytest.raises(InvalidStatusTransition):
            utils.release_unit(unit)


def test_stale_status_loses_the_race(make_unit):
    unit = make_unit()
    stale = BloodInventoryItem.objects.get(pk=unit.pk)
    utils.reserve_unit(unit)

    with pytest.raises(InvalidStatusTransition):
        utils.transition_unit(stale, 'issued')


def test_compatible_units_ordered_by_expiry(make_unit):
    later = make_unit('O-', collection_date=TODAY)
    sooner = make_unit('A-', collection_date=TODAY - datetime.timedelta(days=30))
    make_unit('B-')
    make_unit('A-', component_type='platelets')
    reserved = make_unit('O-')
    utils.reserve_unit(reserved)

    assert list(utils.compatible_units('A-', 'packed_rbc')) == [sooner, later]
    assert reserved in utils.compatible_units('A-', 'packed_rbc', include_reserved=True)
    assert list(utils.compatible_units('unknown', 'packed_rbc')) == []


def test_expiry_sweep_only_touches_past_expiry_units(make_unit):
    old = make_unit(component_type='platelets', collection_date=TODAY - datetime.timedelta(days=10), release=False)
    last_day = make_unit(component_type='platelets', collection_date=TODAY - datetime.timedelta(days=5))
    fresh = make_unit()

    assert expire_outdated_units() == '1 unit(s) expired'

    old.refresh_from_db()
    last_day.refresh_from_db()
    fresh.refresh_from_db()
    assert old.status == 'expired'
    assert last_day.status == 'available'
    assert fresh.status == 'available'


def test_expire_units_command_accepts_date(make_unit):
    unit = make_unit()
    call_command('expire_units', '--date', (TODAY + datetime.timedelta(days=60)).isoformat())
    unit.refresh_from_db()
    assert unit.status == 'expired'


def test_availability_and_stock_report(make_unit):
    for _ in range(3):
        make_unit('O-')
    make_unit('A+', component_type='fresh_frozen_plasma')
    make_unit('A+', release=False)
    make_unit('B+', component_type='platelets', collection_date=TODAY - datetime.timedelta(days=3))

    availability = {row['blood_type']: row for row in utils.availability_by_blood_type()}
    assert availability['O-']['units'] == 3
    assert availability['O-']['stock_level'] == 'critical'
    assert availability['AB-']['stock_level'] == 'out_of_stock'

    report = stock_report()
    assert report['matrix']['O-']['packed_rbc'] == 3
    assert report['matrix']['A+']['fresh_frozen_plasma'] == 1
    assert report['matrix']['A+']['packed_rbc'] == 0
    assert report['by_status'] == {'available': 5, 'quarantine': 1}
    assert report['expiring_soon'] == 1
    assert len(report['totals']) == 8


def test_stock_report_on_empty_inventory():
    report = stock_report()
    assert report['expiring_soon'] == 0
    assert report['by_status'] == {}
    assert all(row['stock_level'] == 'out_of_stock' for row in report['totals'])
