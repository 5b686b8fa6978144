import datetime

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient


@pytest.fixture
def nurse(db):
    return get_user_model().objects.create_user(
        username='nurse1', password='P@ssw0rd1', role='nurse', email='nurse@bloodbank.test',
    )


@pytest.fixture
def bank_admin(db):
    return get_user_model().objects.create_user(
        username='bankadmin', password='P@ssw0rd1', role='admin', email='admin@bloodbank.test',
    )


@pytest.fixture
def api_client(nurse):
    """APIClient authenticated as blood bank nurse"""
    client = APIClient()
    client.force_authenticate(user=nurse)
    return client


@pytest.fixture
def admin_api_client(bank_admin):
    client = APIClient()
    client.force_authenticate(user=bank_admin)
    return client


@pytest.fixture
def make_donor(db):
    from donors.utils import register_donor

    def _make_donor(blood_type='O-', **fields):
        defaults = {
            'first_name': 'Asha',
            'last_name': 'Rai',
            'date_of_birth': datetime.date(1990, 5, 17),
            'gender': 'female',
            'phone': '9800000000',
        }
        defaults.update(fields)
        return register_donor(blood_type=blood_type, **defaults)
    return _make_donor


@pytest.fixture
def make_unit(db):
    """Create a unit; released into available stock unless release=False"""
    from inventory.utils import add_unit, release_unit

    def _make_unit(blood_type='O-', component_type='packed_rbc', collection_date=None, release=True, **fields):
        unit = add_unit(
            blood_type=blood_type,
            component_type=component_type,
            collection_date=collection_date or timezone.localdate(),
            volume_ml=fields.pop('volume_ml', 280),
            testing_status='passed',
            **fields
        )
        if release:
            release_unit(unit)
        return unit
    return _make_unit
