import django.core.validators
import django.db.models.deletion
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

MARKER_CHOICES = [('pending', 'Pending'), ('non_reactive', 'Non-reactive'), ('reactive', 'Reactive')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('donors', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='BloodInventoryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bag_number', models.CharField(max_length=32, unique=True)),
                ('blood_type', models.CharField(choices=BLOOD_TYPE_CHOICES, db_index=True, max_length=3)),
                ('component_type', models.CharField(choices=COMPONENT_CHOICES, db_index=True, max_length=24)),
                ('volume_ml', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('collection_date', models.DateField()),
                ('expiry_date', models.DateField(db_index=True)),
                ('storage_location', models.CharField(blank=True, max_length=100)),
                ('storage_temperature', models.CharField(blank=True, max_length=30)),
                ('testing_status', models.CharField(choices=[('pending', 'Pending'), ('passed', 'Passed'), ('failed', 'Failed')], default='pending', max_length=10)),
                ('hiv_status', models.CharField(choices=MARKER_CHOICES, default='pending', max_length=12)),
                ('hbv_status', models.CharField(choices=MARKER_CHOICES, default='pending', max_length=12)),
                ('hcv_status', models.CharField(choices=MARKER_CHOICES, default='pending', max_length=12)),
                ('syphilis_status', models.CharField(choices=MARKER_CHOICES, default='pending', max_length=12)),
                ('malaria_status', models.CharField(choices=MARKER_CHOICES, default='pending', max_length=12)),
                ('crossmatch_compatible', models.BooleanField(blank=True, null=True)),
                ('status', models.CharField(choices=[('quarantine', 'Quarantine'), ('available', 'Available'), ('reserved', 'Reserved'), ('issued', 'Issued'), ('used', 'Used'), ('expired', 'Expired'), ('discarded', 'Discarded')], db_index=True, default='quarantine', max_length=12)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('donation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='units', to='donors.blooddonation')),
            ],
            options={
                'verbose_name': 'Blood Inventory Item',
                'verbose_name_plural': 'Blood Inventory',
                'ordering': ['expiry_date'],
                'indexes': [models.Index(fields=['status', 'blood_type', 'component_type'], name='inventory_stock_lookup_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('expiry_date__gt', models.F('collection_date'))), name='inventory_expiry_after_collection')],
            },
        ),
    ]
