# transfusions/models.py
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from algorithms.blood_compatibility import BLOOD_TYPE_CHOICES, COMPONENT_CHOICES, PACKED_RBC
from algorithms.priority import PRIORITY_CHOICES
from algorithms.stock import MAX_UNITS_PER_ISSUE


class BloodRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('partially_fulfilled', 'Partially Fulfilled'),
        ('fulfilled', 'Fulfilled'),
        ('rejected', 'Rejected'),
        ('cancelled', 'Cancelled'),
    ]

    # Statuses from which units may still be issued
    ISSUABLE_STATUSES = ('approved', 'partially_fulfilled')
    OPEN_STATUSES = ('pending', 'approved', 'partially_fulfilled')

    patient_name = models.CharField(max_length=200)
    patient_age = models.PositiveSmallIntegerField(null=True, blank=True)
    patient_identifier = models.CharField(max_length=50, blank=True, help_text="Hospital patient number")

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='blood_requests'
    )

    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, help_text="Recipient blood type")
    component_type = models.CharField(max_length=24, choices=COMPONENT_CHOICES, default=PACKED_RBC)
    units_requested = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(MAX_UNITS_PER_ISSUE)]
    )
    units_issued = models.PositiveSmallIntegerField(default=0)

    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='routine', db_index=True)
    indication = models.TextField(help_text="Clinical reason for transfusion")
    clinical_notes = models.TextField(blank=True)

    required_date = models.DateField(null=True, blank=True)
    required_time = models.TimeField(null=True, blank=True)

    request_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_blood_requests'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"#{self.id} {self.patient_name} - {self.blood_type} {self.get_component_type_display()} ({self.priority})"

    @property
    def units_remaining(self):
        return max(self.units_requested - self.units_issued, 0)

    @property
    def is_open(self):
        return self.request_status in self.OPEN_STATUSES

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Blood Request'
        verbose_name_plural = 'Blood Requests'


class BloodIssue(models.Model):
    """A unit handed out against a request"""
    request = models.ForeignKey(BloodRequest, on_delete=models.PROTECT, related_name='issues')
    inventory_item = models.OneToOneField(
        'inventory.BloodInventoryItem',
        on_delete=models.PROTECT,
        related_name='issue'
    )
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='issued_units'
    )
    issued_at = models.DateTimeField(auto_now_add=True)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.inventory_item.bag_number} -> request #{self.request_id}"

    class Meta:
        ordering = ['-issued_at']


class BloodTransfusion(models.Model):
    OUTCOME_CHOICES = [
        ('completed', 'Completed'),
        ('stopped', 'Stopped Early'),
        ('reaction', 'Completed With Reaction'),
    ]

    SEVERITY_CHOICES = [
        ('mild', 'Mild'),
        ('moderate', 'Moderate'),
        ('severe', 'Severe'),
        ('life_threatening', 'Life Threatening'),
    ]

    request = models.ForeignKey(
        BloodRequest,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transfusions'
    )
    inventory_item = models.ForeignKey(
        'inventory.BloodInventoryItem',
        on_delete=models.PROTECT,
        related_name='transfusions'
    )

    patient_name = models.CharField(max_length=200)
    bag_number = models.CharField(max_length=32)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, help_text="Donor unit blood type")
    component_type = models.CharField(max_length=24, choices=COMPONENT_CHOICES)
    volume_ml = models.PositiveIntegerField()

    transfusion_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField(null=True, blank=True)

    administered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='administered_transfusions'
    )
    verified_by = models.CharField(max_length=200, blank=True)

    # {"bp": "120/80", "pulse": 72, "temperature": 36.8}
    pre_vitals = models.JSONField(default=dict, blank=True)
    post_vitals = models.JSONField(default=dict, blank=True)

    compatibility_verified = models.BooleanField(default=False)
    patient_consent_obtained = models.BooleanField(default=False)

    adverse_reaction = models.BooleanField(default=False)
    reaction_type = models.CharField(max_length=100, blank=True)
    reaction_severity = models.CharField(max_length=20, choices=SEVERITY_CHOICES, blank=True)
    reaction_details = models.TextField(blank=True)

    outcome = models.CharField(max_length=10, choices=OUTCOME_CHOICES, default='completed')
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.bag_number} -> {self.patient_name} ({self.transfusion_date})"

    class Meta:
        ordering = ['-transfusion_date', '-start_time']
        verbose_name = 'Blood Transfusion'
        verbose_name_plural = 'Blood Transfusions'
