from django.contrib.auth.models import AbstractUser
from django.db import models

# Roles allowed to operate the blood bank
BLOOD_BANK_ROLES = ('admin', 'doctor', 'nurse')


class CustomUser(AbstractUser):
    ROLE_CHOICES = (
        ('admin', 'Admin'),
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('lab_technician', 'Lab Technician'),
        ('receptionist', 'Receptionist'),
        ('pharmacist', 'Pharmacist'),
        ('patient', 'Patient'),
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default='patient'
    )

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def is_blood_bank_staff(self) -> bool:
        return self.role in BLOOD_BANK_ROLES
