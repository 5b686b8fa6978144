# inventory/tasks.py
"""
Celery tasks for blood unit lifecycle housekeeping
"""
from celery import shared_task

from inventory import utils


@shared_task
def expire_outdated_units():
    """
    Mark every quarantined, available or reserved unit past its expiry date
    as expired. Scheduled daily by Celery beat.
    """
    count = utils.expire_outdated_units()
    return f"{count} unit(s) expired"
