# api/serializers.py

from rest_framework import serializers

from algorithms.blood_compatibility import BLOOD_TYPE_CHOICES, COMPONENT_CHOICES
from algorithms.presentation import get_blood_type_color, get_priority_color, get_status_color
from algorithms.stock import MAX_UNITS_PER_ISSUE
from donors.models import BloodDonor, BloodDonation
from donors.utils import record_donation
from inventory.models import BloodInventoryItem
from inventory.utils import add_unit
from transfusions.models import BloodIssue, BloodRequest, BloodTransfusion
from transfusions.utils import record_transfusion


class BloodDonorSerializer(serializers.ModelSerializer):
    """
    Donor with eligibility computed at serialization time
    """
    blood_type_color = serializers.SerializerMethodField()

    class Meta:
        model = BloodDonor
        fields = [
            'id',
            'first_name',
            'last_name',
            'full_name',
            'date_of_birth',
            'gender',
            'blood_type',
            'blood_type_color',
            'phone',
            'email',
            'address',
            'weight_kg',
            'medical_conditions',
            'medications',
            'last_donation_date',
            'next_eligible_date',
            'total_donations',
            'is_deferred',
            'eligibility_notes',
            'is_eligible',
            'eligibility_status',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['last_donation_date', 'next_eligible_date', 'total_donations']

    def get_blood_type_color(self, obj):
        return get_blood_type_color(obj.blood_type)


class BloodDonationSerializer(serializers.ModelSerializer):
    """
    Creating a donation runs the eligibility gate and can split the
    donation into inventory units in one step.
    """
    donor_name = serializers.CharField(source='donor.full_name', read_only=True)
    components = serializers.ListField(
        child=serializers.ChoiceField(choices=COMPONENT_CHOICES),
        write_only=True,
        required=False,
        allow_empty=True,
    )
    unit_ids = serializers.PrimaryKeyRelatedField(source='units', many=True, read_only=True)

    class Meta:
        model = BloodDonation
        fields = [
            'id',
            'donor',
            'donor_name',
            'donation_date',
            'donation_time',
            'blood_type',
            'volume_ml',
            'hemoglobin_level',
            'blood_pressure_systolic',
            'blood_pressure_diastolic',
            'pulse_rate',
            'temperature',
            'bag_number',
            'collection_site',
            'collected_by',
            'screening_status',
            'screening_notes',
            'adverse_reactions',
            'status',
            'components',
            'unit_ids',
            'created_at',
        ]
        read_only_fields = ['bag_number', 'blood_type', 'status']
        extra_kwargs = {
            'donation_date': {'required': False},
            'donation_time': {'required': False},
        }

    def create(self, validated_data):
        donor = validated_data.pop('donor')
        components = validated_data.pop('components', [])
        return record_donation(donor, components=components, **validated_data)


class BloodInventoryItemSerializer(serializers.ModelSerializer):
    """
    Blood unit. Bag number and expiry date are computed on creation;
    status only changes through the unit actions.
    """
    IMMUTABLE_FIELDS = ('blood_type', 'component_type', 'collection_date', 'donation')

    blood_type_color = serializers.SerializerMethodField()
    status_color = serializers.SerializerMethodField()

    class Meta:
        model = BloodInventoryItem
        fields = [
            'id',
            'donation',
            'bag_number',
            'blood_type',
            'blood_type_color',
            'component_type',
            'volume_ml',
            'collection_date',
            'expiry_date',
            'days_until_expiry',
            'expiry_status',
            'storage_location',
            'storage_temperature',
            'testing_status',
            'hiv_status',
            'hbv_status',
            'hcv_status',
            'syphilis_status',
            'malaria_status',
            'crossmatch_compatible',
            'status',
            'status_color',
            'notes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['bag_number', 'expiry_date', 'status']

    def get_blood_type_color(self, obj):
        return get_blood_type_color(obj.blood_type)

    def get_status_color(self, obj):
        return get_status_color(obj.status)

    def validate(self, attrs):
        if self.instance is not None:
            changed = [
                name for name in self.IMMUTABLE_FIELDS
                if name in attrs and attrs[name] != getattr(self.instance, name)
            ]
            if changed:
                raise serializers.ValidationError({name: 'Cannot be changed after the unit is created.' for name in changed})
        return attrs

    def create(self, validated_data):
        return add_unit(**validated_data)


class BloodRequestSerializer(serializers.ModelSerializer):
    requested_by_name = serializers.CharField(source='requested_by.get_full_name', read_only=True, default='')
    priority_color = serializers.SerializerMethodField()
    status_color = serializers.SerializerMethodField()

    class Meta:
        model = BloodRequest
        fields = [
            'id',
            'patient_name',
            'patient_age',
            'patient_identifier',
            'requested_by',
            'requested_by_name',
            'blood_type',
            'component_type',
            'units_requested',
            'units_issued',
            'units_remaining',
            'priority',
            'priority_color',
            'indication',
            'clinical_notes',
            'required_date',
            'required_time',
            'request_status',
            'status_color',
            'approved_by',
            'approved_at',
            'rejection_reason',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'requested_by', 'units_issued', 'request_status',
            'approved_by', 'approved_at', 'rejection_reason',
        ]

    def get_priority_color(self, obj):
        return get_priority_color(obj.priority)

    def get_status_color(self, obj):
        return get_status_color(obj.request_status)

    def validate(self, attrs):
        if self.instance is not None and self.instance.request_status != 'pending':
            raise serializers.ValidationError('Only pending requests can be edited.')
        return attrs


class BloodIssueSerializer(serializers.ModelSerializer):
    bag_number = serializers.CharField(source='inventory_item.bag_number', read_only=True)
    blood_type = serializers.CharField(source='inventory_item.blood_type', read_only=True)
    component_type = serializers.CharField(source='inventory_item.component_type', read_only=True)

    class Meta:
        model = BloodIssue
        fields = ['id', 'request', 'inventory_item', 'bag_number', 'blood_type', 'component_type',
                  'issued_by', 'issued_at', 'notes']


class IssueUnitsSerializer(serializers.Serializer):
    unit_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        min_length=1,
        max_length=MAX_UNITS_PER_ISSUE,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RejectRequestSerializer(serializers.Serializer):
    reason = serializers.CharField()


class DiscardUnitSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class BloodTransfusionSerializer(serializers.ModelSerializer):
    recipient_blood_type = serializers.ChoiceField(choices=BLOOD_TYPE_CHOICES, write_only=True, required=False)

    class Meta:
        model = BloodTransfusion
        fields = [
            'id',
            'request',
            'inventory_item',
            'recipient_blood_type',
            'patient_name',
            'bag_number',
            'blood_type',
            'component_type',
            'volume_ml',
            'transfusion_date',
            'start_time',
            'end_time',
            'administered_by',
            'verified_by',
            'pre_vitals',
            'post_vitals',
            'compatibility_verified',
            'patient_consent_obtained',
            'adverse_reaction',
            'reaction_type',
            'reaction_severity',
            'reaction_details',
            'outcome',
            'notes',
            'created_at',
        ]
        read_only_fields = [
            'bag_number', 'blood_type', 'component_type', 'volume_ml',
            'administered_by', 'compatibility_verified',
        ]
        extra_kwargs = {
            'patient_name': {'required': False},
            'transfusion_date': {'required': False},
            'start_time': {'required': False},
        }

    def create(self, validated_data):
        unit = validated_data.pop('inventory_item')
        blood_request = validated_data.pop('request', None)
        return record_transfusion(unit, blood_request=blood_request, **validated_data)
