import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class BloodBankConflict(APIException):
    """A workflow gate refused a state change."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The requested blood bank operation is not allowed.'
    default_code = 'conflict'


class DonorNotEligible(BloodBankConflict):
    default_detail = 'Donor is not eligible to donate.'
    default_code = 'donor_not_eligible'


class IncompatibleBloodType(BloodBankConflict):
    default_detail = 'Blood unit is not compatible with the recipient.'
    default_code = 'incompatible_blood_type'


class InsufficientStock(BloodBankConflict):
    default_detail = 'Insufficient blood stock available for this request.'
    default_code = 'insufficient_stock'


class InvalidStatusTransition(BloodBankConflict):
    default_detail = 'Status change is not allowed.'
    default_code = 'invalid_status_transition'


class RequestNotIssuable(BloodBankConflict):
    default_detail = 'Blood request cannot be issued in its current state.'
    default_code = 'request_not_issuable'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.error(f"Unhandled API error in {context.get('view').__class__.__name__}: {exc}", exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    code = 'api_error'
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            code = codes
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
