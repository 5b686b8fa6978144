from django.db import models
from django.utils import timezone
from django.core.validators import MinValueValidator, MaxValueValidator

from algorithms.blood_compatibility import BLOOD_TYPE_CHOICES
from algorithms.lifecycle import calculate_next_eligible_date, is_donor_eligible


# ---------------------------
# Blood Donor
# ---------------------------
class BloodDonor(models.Model):
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, db_index=True)

    phone = models.CharField(max_length=20, blank=True, db_index=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)

    # Health info (optional)
    weight_kg = models.FloatField(
        null=True, blank=True,
        validators=[MinValueValidator(45)]
    )
    medical_conditions = models.TextField(blank=True)
    medications = models.TextField(blank=True)

    # Donation tracking. next_eligible_date is informational only,
    # eligibility is always recomputed from last_donation_date.
    last_donation_date = models.DateField(null=True, blank=True)
    next_eligible_date = models.DateField(null=True, blank=True)
    total_donations = models.PositiveIntegerField(default=0)

    # Manual deferral by clinical staff
    is_deferred = models.BooleanField(default=False)
    eligibility_notes = models.TextField(blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_eligible(self) -> bool:
        """Not deferred and at least 56 days since the last donation"""
        if self.is_deferred:
            return False
        return is_donor_eligible(self.last_donation_date, timezone.localdate())

    @property
    def eligibility_status(self):
        if self.is_deferred:
            return {
                'eligible': False,
                'label': 'Not Eligible',
                'reason': self.eligibility_notes or 'Deferred',
            }

        if not is_donor_eligible(self.last_donation_date, timezone.localdate()):
            next_date = calculate_next_eligible_date(self.last_donation_date)
            return {
                'eligible': False,
                'label': 'Waiting',
                'reason': f"Eligible after {next_date:%b %d, %Y}",
            }

        return {
            'eligible': True,
            'label': 'Eligible',
            'reason': 'Ready to donate',
        }

    def __str__(self):
        return f"{self.full_name} ({self.blood_type})"

    class Meta:
        verbose_name = "Blood Donor"
        verbose_name_plural = "Blood Donors"
        ordering = ['-created_at']


class BloodDonation(models.Model):
    SCREENING_CHOICES = [
        ('pending', 'Pending'),
        ('passed', 'Passed'),
        ('failed', 'Failed'),
    ]

    STATUS_CHOICES = [
        ('collected', 'Collected'),
        ('processed', 'Processed'),
        ('discarded', 'Discarded'),
    ]

    donor = models.ForeignKey(
        BloodDonor,
        on_delete=models.PROTECT,
        related_name='donations'
    )

    donation_date = models.DateField()
    donation_time = models.TimeField()
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    volume_ml = models.PositiveIntegerField(
        default=450,
        validators=[MinValueValidator(200), MaxValueValidator(550)]
    )

    # Pre-donation vitals
    hemoglobin_level = models.FloatField(null=True, blank=True)
    blood_pressure_systolic = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.PositiveSmallIntegerField(null=True, blank=True)
    pulse_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    temperature = models.FloatField(null=True, blank=True)

    bag_number = models.CharField(max_length=32, unique=True)
    collection_site = models.CharField(max_length=200, blank=True)
    collected_by = models.CharField(max_length=200)

    screening_status = models.CharField(max_length=10, choices=SCREENING_CHOICES, default='pending')
    screening_notes = models.TextField(blank=True)
    adverse_reactions = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='collected')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.bag_number} | {self.donor.full_name} | {self.donation_date}"

    class Meta:
        ordering = ['-donation_date', '-donation_time']
        verbose_name = "Blood Donation"
        verbose_name_plural = "Blood Donations"
