import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from algorithms.blood_compatibility import is_compatible
from algorithms.stock import MAX_UNITS_PER_ISSUE, validate_stock_availability
from bloodbank.exceptions import (
    IncompatibleBloodType, InsufficientStock, InvalidStatusTransition, RequestNotIssuable,
)
from inventory.models import BloodInventoryItem
from inventory.utils import USABLE_STATUSES, check_screening, compatible_units, transition_unit
from transfusions.models import BloodIssue, BloodRequest, BloodTransfusion

# Logger setup
logger = logging.getLogger(__name__)


def _change_request_status(blood_request, allowed_from, new_status, **fields):
    """Conditional status update, refused if the request moved on meanwhile"""
    current = blood_request.request_status
    if current not in allowed_from:
        raise InvalidStatusTransition(f"Cannot change request #{blood_request.id} from {current} to {new_status}")

    fields['request_status'] = new_status
    fields['updated_at'] = timezone.now()
    updated = BloodRequest.objects.filter(pk=blood_request.pk, request_status=current).update(**fields)
    if not updated:
        raise InvalidStatusTransition(f"Request #{blood_request.id} was modified by another operation")

    for name, value in fields.items():
        setattr(blood_request, name, value)
    logger.info(f"Request #{blood_request.id}: {current} -> {new_status}")
    return blood_request


def approve_request(blood_request, approved_by):
    return _change_request_status(
        blood_request, ('pending',), 'approved',
        approved_by=approved_by, approved_at=timezone.now(),
    )


def reject_request(blood_request, rejected_by, reason):
    if not reason or not reason.strip():
        raise ValidationError({'rejection_reason': 'A reason is required to reject a request.'})
    return _change_request_status(
        blood_request, ('pending', 'approved'), 'rejected',
        approved_by=rejected_by, rejection_reason=reason.strip(),
    )


def cancel_request(blood_request):
    return _change_request_status(blood_request, BloodRequest.OPEN_STATUSES, 'cancelled')


def suggest_units(blood_request, today=None):
    """Compatible available units for the outstanding part of a request, earliest expiry first"""
    units = compatible_units(blood_request.blood_type, blood_request.component_type, today=today)
    return units[:blood_request.units_remaining]


@transaction.atomic
def issue_units(blood_request, unit_ids, issued_by, notes=''):
    """
    Issue inventory units against an approved request.

    Every unit is checked before any is claimed; a failure on one unit
    leaves all of them untouched.

    Raises:
        RequestNotIssuable: request is not approved or partially fulfilled
        InsufficientStock: more units than the request still needs
        IncompatibleBloodType: unit blood type or component does not match the recipient
        InvalidStatusTransition: unit is not available/reserved, is expired, or failed screening
    """
    blood_request = BloodRequest.objects.select_for_update().get(pk=blood_request.pk)

    if blood_request.request_status not in BloodRequest.ISSUABLE_STATUSES:
        logger.warning(f"Issue refused for request #{blood_request.id}: status {blood_request.request_status}")
        raise RequestNotIssuable(
            f"Request #{blood_request.id} is {blood_request.request_status}, it must be approved first"
        )

    unit_ids = list(dict.fromkeys(unit_ids))
    if not unit_ids:
        raise ValidationError({'unit_ids': 'Select at least one unit.'})
    if len(unit_ids) > MAX_UNITS_PER_ISSUE:
        raise ValidationError({'unit_ids': f'At most {MAX_UNITS_PER_ISSUE} units can be issued at once.'})

    valid, error = validate_stock_availability(blood_request.units_remaining, len(unit_ids))
    if not valid:
        logger.warning(f"Issue refused for request #{blood_request.id}: {error}")
        raise InsufficientStock(error)

    units = list(BloodInventoryItem.objects.filter(pk__in=unit_ids))
    found = {unit.pk for unit in units}
    missing = [pk for pk in unit_ids if pk not in found]
    if missing:
        raise ValidationError({'unit_ids': f'Unknown units: {missing}'})

    for unit in units:
        if unit.status not in USABLE_STATUSES:
            raise InvalidStatusTransition(f"Unit {unit.bag_number} is {unit.status} and cannot be issued")
        if unit.is_expired:
            raise InvalidStatusTransition(f"Unit {unit.bag_number} expired on {unit.expiry_date}")
        check_screening(unit, 'issued')
        if unit.component_type != blood_request.component_type:
            logger.warning(f"Issue refused: unit {unit.bag_number} is {unit.component_type}, request needs {blood_request.component_type}")
            raise IncompatibleBloodType(
                f"Unit {unit.bag_number} is {unit.get_component_type_display()}, "
                f"request needs {blood_request.get_component_type_display()}"
            )
        if not is_compatible(blood_request.blood_type, unit.blood_type, blood_request.component_type):
            logger.warning(f"Issue refused: {unit.blood_type} unit {unit.bag_number} for {blood_request.blood_type} recipient")
            raise IncompatibleBloodType(
                f"{unit.blood_type} {unit.get_component_type_display()} cannot be given to a {blood_request.blood_type} recipient"
            )

    issues = []
    for unit in units:
        transition_unit(unit, 'issued')
        issues.append(BloodIssue.objects.create(
            request=blood_request,
            inventory_item=unit,
            issued_by=issued_by,
            notes=notes,
        ))

    blood_request.units_issued += len(units)
    blood_request.request_status = 'fulfilled' if blood_request.units_remaining == 0 else 'partially_fulfilled'
    blood_request.save(update_fields=['units_issued', 'request_status', 'updated_at'])

    logger.info(f"{len(units)} unit(s) issued for request #{blood_request.id}, status {blood_request.request_status}")
    return issues


@transaction.atomic
def record_transfusion(unit, *, administered_by=None, blood_request=None, recipient_blood_type=None, **fields):
    """
    Record a transfusion of an issued unit and mark the unit used.

    The recipient's blood type comes from the request the unit was issued
    against, or from recipient_blood_type when there is no request.
    A request given by the caller must be the one the unit was issued for.
    Compatibility is verified again before the unit is consumed.
    """
    unit = BloodInventoryItem.objects.select_for_update().get(pk=unit.pk)
    if unit.status != 'issued':
        raise InvalidStatusTransition(f"Unit {unit.bag_number} is {unit.status}, only issued units can be transfused")

    check_screening(unit, 'transfused')

    issue = BloodIssue.objects.select_related('request').filter(inventory_item=unit).first()
    if issue is not None:
        if blood_request is not None and blood_request.pk != issue.request_id:
            logger.warning(f"Transfusion refused: unit {unit.bag_number} was issued for request #{issue.request_id}, not #{blood_request.pk}")
            raise ValidationError({'request': f"Unit {unit.bag_number} was issued for request #{issue.request_id}."})
        blood_request = issue.request

    if blood_request is not None:
        recipient_blood_type = blood_request.blood_type
        fields.setdefault('patient_name', blood_request.patient_name)

    if not recipient_blood_type:
        raise ValidationError({'recipient_blood_type': 'Recipient blood type is required for unrequested units.'})
    if not fields.get('patient_name'):
        raise ValidationError({'patient_name': 'Patient name is required.'})

    if not is_compatible(recipient_blood_type, unit.blood_type, unit.component_type):
        logger.warning(f"Transfusion refused: {unit.blood_type} unit {unit.bag_number} for {recipient_blood_type} recipient")
        raise IncompatibleBloodType(
            f"{unit.blood_type} {unit.get_component_type_display()} cannot be given to a {recipient_blood_type} recipient"
        )

    now = timezone.localtime()
    fields.setdefault('transfusion_date', now.date())
    fields.setdefault('start_time', now.time().replace(microsecond=0))
    if fields.get('adverse_reaction') and fields.get('outcome', 'completed') == 'completed':
        fields['outcome'] = 'reaction'

    transfusion = BloodTransfusion.objects.create(
        request=blood_request,
        inventory_item=unit,
        bag_number=unit.bag_number,
        blood_type=unit.blood_type,
        component_type=unit.component_type,
        volume_ml=unit.volume_ml,
        administered_by=administered_by,
        compatibility_verified=True,
        **fields
    )
    transition_unit(unit, 'used')

    if transfusion.adverse_reaction:
        logger.warning(f"Adverse reaction recorded for unit {unit.bag_number}: {transfusion.reaction_type or 'unspecified'}")
    logger.info(f"Transfusion of unit {unit.bag_number} recorded for {transfusion.patient_name}")
    return transfusion
