# transfusions/signals.py
"""
Signals to notify blood bank staff when an urgent request is created
"""
from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from transfusions.models import BloodRequest
from transfusions.tasks import notify_urgent_request


@receiver(post_save, sender=BloodRequest)
def auto_notify_urgent_request(sender, instance, created, **kwargs):
    """
    Queue a staff notification once a new high priority request is committed
    """
    if created and instance.priority in settings.BLOOD_BANK_NOTIFY_PRIORITIES:
        transaction.on_commit(lambda: notify_urgent_request.delay(instance.id))
