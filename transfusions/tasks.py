# transfusions/tasks.py
"""
Celery tasks for blood request notifications
"""
import logging

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail

from transfusions.models import BloodRequest

logger = logging.getLogger(__name__)


@shared_task
def notify_urgent_request(blood_request_id):
    """
    Email blood bank admins about a new emergency or critical request
    """
    try:
        blood_request = BloodRequest.objects.get(id=blood_request_id)
    except BloodRequest.DoesNotExist:
        return f"Blood request {blood_request_id} not found"

    recipients = list(
        get_user_model().objects.filter(role='admin', is_active=True)
        .exclude(email='')
        .values_list('email', flat=True)
    )
    if not recipients:
        logger.warning(f"No admin email to notify for request #{blood_request.id}")
        return f"No recipients for request {blood_request_id}"

    required = blood_request.required_date.strftime('%b %d, %Y') if blood_request.required_date else 'As soon as possible'
    message = f"""
{blood_request.get_priority_display().upper()} blood request

Request ID: {blood_request.id}
Patient: {blood_request.patient_name}
Blood Type: {blood_request.blood_type}
Component: {blood_request.get_component_type_display()}
Units Requested: {blood_request.units_requested}
Required: {required}
Indication: {blood_request.indication}

Review the request: {settings.SITE_URL}/api/blood-requests/{blood_request.id}/
"""

    send_mail(
        subject=f"{blood_request.get_priority_display()}: {blood_request.units_requested} unit(s) {blood_request.blood_type} needed",
        message=message,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=recipients,
        fail_silently=False,
    )
    logger.info(f"Request #{blood_request.id} notification sent to {len(recipients)} admin(s)")
    return f"Notified {len(recipients)} admin(s) for request {blood_request_id}"
