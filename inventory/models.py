# inventory/models.py
from django.db import models
from django.utils import timezone
from django.core.validators import MinValueValidator

from algorithms.blood_compatibility import BLOOD_TYPE_CHOICES, COMPONENT_CHOICES
from algorithms.lifecycle import days_until_expiry, expiry_status


class BloodInventoryItem(models.Model):
    """A single bag of a blood component held by the blood bank"""
    STATUS_CHOICES = [
        ('quarantine', 'Quarantine'),
        ('available', 'Available'),
        ('reserved', 'Reserved'),
        ('issued', 'Issued'),
        ('used', 'Used'),
        ('expired', 'Expired'),
        ('discarded', 'Discarded'),
    ]

    TESTING_CHOICES = [
        ('pending', 'Pending'),
        ('passed', 'Passed'),
        ('failed', 'Failed'),
    ]

    MARKER_CHOICES = [
        ('pending', 'Pending'),
        ('non_reactive', 'Non-reactive'),
        ('reactive', 'Reactive'),
    ]

    donation = models.ForeignKey(
        'donors.BloodDonation',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='units'
    )

    bag_number = models.CharField(max_length=32, unique=True)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, db_index=True)
    component_type = models.CharField(max_length=24, choices=COMPONENT_CHOICES, db_index=True)
    volume_ml = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    collection_date = models.DateField()
    expiry_date = models.DateField(db_index=True)

    storage_location = models.CharField(max_length=100, blank=True)
    storage_temperature = models.CharField(max_length=30, blank=True)

    # Infectious marker screening
    testing_status = models.CharField(max_length=10, choices=TESTING_CHOICES, default='pending')
    hiv_status = models.CharField(max_length=12, choices=MARKER_CHOICES, default='pending')
    hbv_status = models.CharField(max_length=12, choices=MARKER_CHOICES, default='pending')
    hcv_status = models.CharField(max_length=12, choices=MARKER_CHOICES, default='pending')
    syphilis_status = models.CharField(max_length=12, choices=MARKER_CHOICES, default='pending')
    malaria_status = models.CharField(max_length=12, choices=MARKER_CHOICES, default='pending')
    crossmatch_compatible = models.BooleanField(null=True, blank=True)

    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='quarantine', db_index=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.bag_number} {self.blood_type} {self.get_component_type_display()} ({self.status})"

    @property
    def days_until_expiry(self):
        return days_until_expiry(self.expiry_date, timezone.localdate())

    @property
    def expiry_status(self):
        return expiry_status(self.expiry_date, timezone.localdate())

    @property
    def is_expired(self) -> bool:
        return self.expiry_status == 'expired'

    @property
    def has_reactive_marker(self) -> bool:
        return 'reactive' in (
            self.hiv_status, self.hbv_status, self.hcv_status,
            self.syphilis_status, self.malaria_status,
        )

    @property
    def failed_screening(self) -> bool:
        return self.testing_status == 'failed' or self.has_reactive_marker

    class Meta:
        ordering = ['expiry_date']
        verbose_name = 'Blood Inventory Item'
        verbose_name_plural = 'Blood Inventory'
        indexes = [
            models.Index(fields=['status', 'blood_type', 'component_type'], name='inventory_stock_lookup_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(expiry_date__gt=models.F('collection_date')),
                name='inventory_expiry_after_collection',
            ),
        ]
