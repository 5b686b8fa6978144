import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


BLOOD_TYPE_CHOICES = [
    ('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'),
    ('AB+', 'AB+'), ('AB-', 'AB-'), ('O+', 'O+'), ('O-', 'O-'),
]

COMPONENT_CHOICES = [
    ('whole_blood', 'Whole Blood'),
    ('packed_rbc', 'Packed RBC'),
    ('platelets', 'Platelets'),
    ('fresh_frozen_plasma', 'Fresh Frozen Plasma'),
    ('cryoprecipitate', 'Cryoprecipitate'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('inventory', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BloodRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('patient_name', models.CharField(max_length=200)),
                ('patient_age', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('patient_identifier', models.CharField(blank=True, help_text='Hospital patient number', max_length=50)),
                ('blood_type', models.CharField(choices=BLOOD_TYPE_CHOICES, help_text='Recipient blood type', max_length=3)),
                ('component_type', models.CharField(choices=COMPONENT_CHOICES, default='packed_rbc', max_length=24)),
                ('units_requested', models.PositiveSmallIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)])),
                ('units_issued', models.PositiveSmallIntegerField(default=0)),
                ('priority', models.CharField(choices=[('routine', 'Routine'), ('urgent', 'Urgent'), ('emergency', 'Emergency'), ('critical', 'Critical')], db_index=True, default='routine', max_length=10)),
                ('indication', models.TextField(help_text='Clinical reason for transfusion')),
                ('clinical_notes', models.TextField(blank=True)),
                ('required_date', models.DateField(blank=True, null=True)),
                ('required_time', models.TimeField(blank=True, null=True)),
                ('request_status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('partially_fulfilled', 'Partially Fulfilled'), ('fulfilled', 'Fulfilled'), ('rejected', 'Rejected'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='approved_blood_requests', to=settings.AUTH_USER_MODEL)),
                ('requested_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='blood_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Blood Request',
                'verbose_name_plural': 'Blood Requests',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='BloodIssue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('issued_at', models.DateTimeField(auto_now_add=True)),
                ('notes', models.TextField(blank=True)),
                ('inventory_item', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='issue', to='inventory.bloodinventoryitem')),
                ('issued_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='issued_units', to=settings.AUTH_USER_MODEL)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='issues', to='transfusions.bloodrequest')),
            ],
            options={
                'ordering': ['-issued_at'],
            },
        ),
        migrations.CreateModel(
            name='BloodTransfusion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('patient_name', models.CharField(max_length=200)),
                ('bag_number', models.CharField(max_length=32)),
                ('blood_type', models.CharField(choices=BLOOD_TYPE_CHOICES, help_text='Donor unit blood type', max_length=3)),
                ('component_type', models.CharField(choices=COMPONENT_CHOICES, max_length=24)),
                ('volume_ml', models.PositiveIntegerField()),
                ('transfusion_date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField(blank=True, null=True)),
                ('verified_by', models.CharField(blank=True, max_length=200)),
                ('pre_vitals', models.JSONField(blank=True, default=dict)),
                ('post_vitals', models.JSONField(blank=True, default=dict)),
                ('compatibility_verified', models.BooleanField(default=False)),
                ('patient_consent_obtained', models.BooleanField(default=False)),
                ('adverse_reaction', models.BooleanField(default=False)),
                ('reaction_type', models.CharField(blank=True, max_length=100)),
                ('reaction_severity', models.CharField(blank=True, choices=[('mild', 'Mild'), ('moderate', 'Moderate'), ('severe', 'Severe'), ('life_threatening', 'Life Threatening')], max_length=20)),
                ('reaction_details', models.TextField(blank=True)),
                ('outcome', models.CharField(choices=[('completed', 'Completed'), ('stopped', 'Stopped Early'), ('reaction', 'Completed With Reaction')], default='completed', max_length=10)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('administered_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='administered_transfusions', to=settings.AUTH_USER_MODEL)),
                ('inventory_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfusions', to='inventory.bloodinventoryitem')),
                ('request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transfusions', to='transfusions.bloodrequest')),
            ],
            options={
                'verbose_name': 'Blood Transfusion',
                'verbose_name_plural': 'Blood Transfusions',
                'ordering': ['-transfusion_date', '-start_time'],
            },
        ),
    ]
