import datetime

import pytest
from django.core import mail
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from bloodbank.exceptions import (
    IncompatibleBloodType, InsufficientStock, InvalidStatusTransition, RequestNotIssuable,
)
from inventory.models import BloodInventoryItem
from inventory.utils import reserve_unit, transition_unit
from transfusions import utils
from transfusions.models import BloodIssue, BloodRequest
from transfusions.tasks import notify_urgent_request

pytestmark = pytest.mark.django_db


@pytest.fixture
def make_request(nurse):
    def _make_request(blood_type='A+', component_type='packed_rbc', units_requested=2, **fields):
        fields.setdefault('priority', 'routine')
        return BloodRequest.objects.create(
            patient_name='Ram Bahadur',
            requested_by=nurse,
            blood_type=blood_type,
            component_type=component_type,
            units_requested=units_requested,
            indication='Post-partum haemorrhage',
            **fields
        )
    return _make_request


@pytest.fixture
def approved_request(make_request, bank_admin):
    blood_request = make_request()
    return utils.approve_request(blood_request, bank_admin)


def test_approve_records_reviewer(make_request, bank_admin):
    blood_request = utils.approve_request(make_request(), bank_admin)
    blood_request.refresh_from_db()
    assert blood_request.request_status == 'approved'
    assert blood_request.approved_by == bank_admin
    assert blood_request.approved_at is not None

    with pytest.raises(InvalidStatusTransition):
        utils.approve_request(blood_request, bank_admin)


def test_reject_requires_reason(make_request, bank_admin):
    blood_request = make_request()
    with pytest.raises(ValidationError):
        utils.reject_request(blood_request, bank_admin, '  ')
    utils.reject_request(blood_request, bank_admin, 'Duplicate request')
    assert BloodRequest.objects.get(pk=blood_request.pk).request_status == 'rejected'


def test_pending_request_cannot_be_issued(make_request, make_unit, bank_admin):
    unit = make_unit('O-')
    with pytest.raises(RequestNotIssuable):
        utils.issue_units(make_request(), [unit.pk], bank_admin)


def test_issue_compatible_units(approved_request, make_unit, nurse):
    first = make_unit('O-')
    second = make_unit('A+')

    issues = utils.issue_units(approved_request, [first.pk], nurse)
    assert len(issues) == 1
    approved_request.refresh_from_db()
    assert approved_request.request_status == 'partially_fulfilled'
    assert approved_request.units_issued == 1

    utils.issue_units(approved_request, [second.pk], nurse)
    approved_request.refresh_from_db()
    assert approved_request.request_status == 'fulfilled'
    assert set(BloodInventoryItem.objects.filter(pk__in=[first.pk, second.pk]).values_list('status', flat=True)) == {'issued'}
    assert BloodIssue.objects.filter(request=approved_request).count() == 2


def test_incompatible_unit_is_refused(approved_request, make_unit, nurse):
    good = make_unit('O-')
    bad = make_unit('B+')

    with pytest.raises(IncompatibleBloodType):
        utils.issue_units(approved_request, [good.pk, bad.pk], nurse)

    # nothing was claimed
    good.refresh_from_db()
    assert good.status == 'available'
    assert not BloodIssue.objects.exists()


def test_wrong_component_is_refused(approved_request, make_unit, nurse):
    plasma = make_unit('A+', component_type='fresh_frozen_plasma')
    with pytest.raises(IncompatibleBloodType):
        utils.issue_units(approved_request, [plasma.pk], nurse)


def test_more_units_than_requested_is_refused(approved_request, make_unit, nurse):
    units = [make_unit('O-') for _ in range(3)]
    with pytest.raises(InsufficientStock):
        utils.issue_units(approved_request, [u.pk for u in units], nurse)


def test_quarantined_or_unknown_units_are_refused(approved_request, make_unit, nurse):
    quarantined = make_unit('O-', release=False)
    with pytest.raises(InvalidStatusTransition):
        utils.issue_units(approved_request, [quarantined.pk], nurse)
    with pytest.raises(ValidationError):
        utils.issue_units(approved_request, [987654], nurse)


def test_expired_unit_cannot_be_issued(approved_request, make_unit, nurse):
    unit = make_unit('O-')
    BloodInventoryItem.objects.filter(pk=unit.pk).update(
        collection_date=timezone.localdate() - datetime.timedelta(days=50),
        expiry_date=timezone.localdate() - datetime.timedelta(days=1),
    )
    with pytest.raises(InvalidStatusTransition):
        utils.issue_units(approved_request, [unit.pk], nurse)


def test_suggest_units_limits_to_outstanding(approved_request, make_unit):
    for blood_type in ('O-', 'A-', 'A+', 'B+'):
        make_unit(blood_type)
    suggested = list(utils.suggest_units(approved_request))
    assert len(suggested) == 2
    assert all(u.blood_type in ('O-', 'A-', 'A+') for u in suggested)


def test_record_transfusion_marks_unit_used(approved_request, make_unit, nurse):
    unit = make_unit('O-')
    utils.issue_units(approved_request, [unit.pk], nurse)

    transfusion = utils.record_transfusion(unit, administered_by=nurse, patient_consent_obtained=True)

    assert transfusion.patient_name == 'Ram Bahadur'
    assert transfusion.request == approved_request
    assert transfusion.bag_number == unit.bag_number
    assert transfusion.compatibility_verified
    unit.refresh_from_db()
    assert unit.status == 'used'


def test_transfusion_requires_issued_unit(make_unit, nurse):
    unit = make_unit('O-')
    with pytest.raises(InvalidStatusTransition):
        utils.record_transfusion(unit, administered_by=nurse, recipient_blood_type='O-', patient_name='Sita')


def test_transfusion_rechecks_compatibility(make_unit, nurse):
    unit = make_unit('A+')
    transition_unit(unit, 'issued')

    with pytest.raises(IncompatibleBloodType):
        utils.record_transfusion(unit, administered_by=nurse, recipient_blood_type='O+', patient_name='Sita')
    unit.refresh_from_db()
    assert unit.status == 'issued'


def test_transfusion_against_another_request_is_refused(approved_request, make_unit, nurse, bank_admin, make_request):
    unit = make_unit('O-')
    utils.issue_units(approved_request, [unit.pk], nurse)

    # O- red cells suit the other patient too, but the unit was issued for Ram Bahadur
    other = utils.approve_request(make_request('AB+', patient_identifier='HN-2002'), bank_admin)
    with pytest.raises(ValidationError):
        utils.record_transfusion(unit, blood_request=other, administered_by=nurse, patient_name='Sita Devi')
    unit.refresh_from_db()
    assert unit.status == 'issued'

    transfusion = utils.record_transfusion(unit, blood_request=approved_request, administered_by=nurse)
    assert transfusion.request == approved_request


def test_unit_failing_screening_after_release_is_not_issued(approved_request, make_unit, nurse):
    unit = make_unit('O-')
    BloodInventoryItem.objects.filter(pk=unit.pk).update(hiv_status='reactive', testing_status='failed')

    assert unit not in utils.suggest_units(approved_request)
    with pytest.raises(InvalidStatusTransition):
        utils.issue_units(approved_request, [unit.pk], nurse)
    with pytest.raises(InvalidStatusTransition):
        reserve_unit(BloodInventoryItem.objects.get(pk=unit.pk))

    unit.refresh_from_db()
    assert unit.status == 'available'
    assert not BloodIssue.objects.exists()


def test_unit_failing_screening_after_issue_is_not_transfused(approved_request, make_unit, nurse):
    unit = make_unit('O-')
    utils.issue_units(approved_request, [unit.pk], nurse)
    BloodInventoryItem.objects.filter(pk=unit.pk).update(hbv_status='reactive')

    with pytest.raises(InvalidStatusTransition):
        utils.record_transfusion(unit, administered_by=nurse)
    unit.refresh_from_db()
    assert unit.status == 'issued'


def test_adverse_reaction_sets_outcome(approved_request, make_unit, nurse):
    unit = make_unit('A+')
    utils.issue_units(approved_request, [unit.pk], nurse)
    transfusion = utils.record_transfusion(
        unit, administered_by=nurse, adverse_reaction=True, reaction_type='Febrile',
        reaction_severity='mild',
    )
    assert transfusion.outcome == 'reaction'


def test_urgent_request_notifies_admins(make_request, bank_admin, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        make_request(priority='critical')
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == [bank_admin.email]
    assert 'Critical' in mail.outbox[0].subject


def test_routine_request_sends_nothing(make_request, bank_admin, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        make_request(priority='routine')
    assert mail.outbox == []


def test_notify_missing_request():
    assert notify_urgent_request(424242) == 'Blood request 424242 not found'
