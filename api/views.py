# api/views.py
from datetime import timedelta

from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from accounts.permissions import IsBloodBankAdmin, IsBloodBankStaff
from algorithms.blood_compatibility import (
    WHOLE_BLOOD, get_compatible_donors, get_compatible_recipients, is_valid_component_type,
)
from algorithms.lifecycle import EXPIRING_SOON_DAYS
from algorithms.presentation import get_blood_type_color
from algorithms.priority import rank_blood_requests
from donors.models import BloodDonor, BloodDonation
from donors.utils import eligible_donors, find_donors_for_recipient, register_donor
from inventory import utils as inventory_utils
from inventory.models import BloodInventoryItem
from inventory.reports import stock_report as build_stock_report
from transfusions import utils as transfusion_utils
from transfusions.models import BloodRequest, BloodTransfusion

from .serializers import (
    BloodDonationSerializer, BloodDonorSerializer, BloodInventoryItemSerializer,
    BloodIssueSerializer, BloodRequestSerializer, BloodTransfusionSerializer,
    DiscardUnitSerializer, IssueUnitsSerializer, RejectRequestSerializer,
)

TRUTHY = ('1', 'true', 'yes')


def _flag(request, name):
    return request.query_params.get(name, '').lower() in TRUTHY


def _component_param(request):
    component_type = request.query_params.get('component') or WHOLE_BLOOD
    if not is_valid_component_type(component_type):
        raise ValidationError({'component': f'Unknown component type: {component_type}'})
    return component_type


class DonorViewSet(mixins.CreateModelMixin,
                   mixins.UpdateModelMixin,
                   viewsets.ReadOnlyModelViewSet):
    """API endpoint for the donor registry"""
    queryset = BloodDonor.objects.all().order_by('-created_at')
    serializer_class = BloodDonorSerializer
    permission_classes = [IsBloodBankStaff]

    def get_queryset(self):
        queryset = super().get_queryset()
        if _flag(self.request, 'eligible'):
            queryset = eligible_donors().order_by('-created_at')
        blood_type = self.request.query_params.get('blood_type')
        if blood_type and blood_type != 'all':
            queryset = queryset.filter(blood_type=blood_type)
        status_filter = self.request.query_params.get('status')
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=status_filter)
        return queryset

    def perform_create(self, serializer):
        serializer.instance = register_donor(**serializer.validated_data)

    @action(detail=True, methods=['get'])
    def donations(self, request, pk=None):
        """Donation history of a donor, newest first"""
        donor = self.get_object()
        serializer = BloodDonationSerializer(donor.donations.all(), many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def eligibility(self, request, pk=None):
        donor = self.get_object()
        return Response({
            'donor': donor.id,
            'is_eligible': donor.is_eligible,
            'last_donation_date': donor.last_donation_date,
            'next_eligible_date': donor.next_eligible_date,
            **donor.eligibility_status,
        })

    @action(detail=False, methods=['get'])
    def for_recipient(self, request):
        """Eligible donors whose blood a recipient can receive"""
        recipient = request.query_params.get('recipient', '')
        donors = find_donors_for_recipient(recipient, _component_param(request))
        return Response(self.get_serializer(donors, many=True).data)


class DonationViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """API endpoint for donations; creating one runs the donation workflow"""
    queryset = BloodDonation.objects.select_related('donor').order_by('-donation_date', '-donation_time')
    serializer_class = BloodDonationSerializer
    permission_classes = [IsBloodBankStaff]

    def get_queryset(self):
        queryset = super().get_queryset()
        donor = self.request.query_params.get('donor')
        if donor:
            queryset = queryset.filter(donor_id=donor)
        return queryset


class InventoryViewSet(mixins.CreateModelMixin,
                       mixins.UpdateModelMixin,
                       viewsets.ReadOnlyModelViewSet):
    """API endpoint for blood units"""
    queryset = BloodInventoryItem.objects.all().order_by('expiry_date', 'collection_date')
    serializer_class = BloodInventoryItemSerializer
    permission_classes = [IsBloodBankStaff]

    def get_permissions(self):
        if self.action == 'discard':
            return [IsBloodBankAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        for param in ('status', 'blood_type', 'component_type'):
            value = self.request.query_params.get(param)
            if value and value != 'all':
                queryset = queryset.filter(**{param: value})
        if _flag(self.request, 'expiring'):
            today = timezone.localdate()
            queryset = queryset.filter(
                status='available',
                expiry_date__gte=today,
                expiry_date__lte=today + timedelta(days=EXPIRING_SOON_DAYS),
            )
        return queryset

    def _unit_response(self, unit):
        unit.refresh_from_db()
        return Response(self.get_serializer(unit).data)

    @action(detail=True, methods=['post'])
    def release(self, request, pk=None):
        """Move a screened unit from quarantine into available stock"""
        unit = inventory_utils.release_unit(self.get_object())
        return self._unit_response(unit)

    @action(detail=True, methods=['post'])
    def reserve(self, request, pk=None):
        unit = inventory_utils.reserve_unit(self.get_object())
        return self._unit_response(unit)

    @action(detail=True, methods=['post'])
    def discard(self, request, pk=None):
        serializer = DiscardUnitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        unit = inventory_utils.discard_unit(self.get_object(), serializer.validated_data['reason'])
        return self._unit_response(unit)

    @action(detail=False, methods=['get'])
    def compatible(self, request):
        """
        Units a recipient can receive: ?recipient=A+&component=packed_rbc
        An unknown recipient blood type gives an empty list.
        """
        recipient = request.query_params.get('recipient', '')
        units = inventory_utils.compatible_units(
            recipient,
            _component_param(request),
            include_reserved=_flag(request, 'include_reserved'),
        )
        return Response(self.get_serializer(units, many=True).data)


class BloodRequestViewSet(mixins.CreateModelMixin,
                          mixins.UpdateModelMixin,
                          viewsets.ReadOnlyModelViewSet):
    """API endpoint for managing blood requests"""
    queryset = BloodRequest.objects.select_related('requested_by').order_by('-created_at')
    serializer_class = BloodRequestSerializer
    permission_classes = [IsBloodBankStaff]

    def get_permissions(self):
        if self.action in ('approve', 'reject'):
            return [IsBloodBankAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        status_filter = self.request.query_params.get('status')
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(request_status=status_filter)
        priority = self.request.query_params.get('priority')
        if priority and priority != 'all':
            queryset = queryset.filter(priority=priority)
        return queryset

    def list(self, request, *args, **kwargs):
        if not _flag(request, 'ranked'):
            return super().list(request, *args, **kwargs)

        # Open requests only, most pressing first
        queryset = self.filter_queryset(self.get_queryset()).filter(
            request_status__in=BloodRequest.OPEN_STATUSES
        )
        ranked = rank_blood_requests(queryset, today=timezone.localdate())
        return Response([
            {
                **self.get_serializer(item['request']).data,
                'score': item['score'],
                'priority_score': item['priority_score'],
                'due_score': item['due_score'],
            }
            for item in ranked
        ])

    def perform_create(self, serializer):
        serializer.save(requested_by=self.request.user)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        blood_request = transfusion_utils.approve_request(self.get_object(), request.user)
        return Response(self.get_serializer(blood_request).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        serializer = RejectRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        blood_request = transfusion_utils.reject_request(
            self.get_object(), request.user, serializer.validated_data['reason']
        )
        return Response(self.get_serializer(blood_request).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        blood_request = transfusion_utils.cancel_request(self.get_object())
        return Response(self.get_serializer(blood_request).data)

    @action(detail=True, methods=['get'])
    def compatible_units(self, request, pk=None):
        """Suggested units for the outstanding part of the request"""
        units = transfusion_utils.suggest_units(self.get_object())
        return Response(BloodInventoryItemSerializer(units, many=True).data)

    @action(detail=True, methods=['post'])
    def issue(self, request, pk=None):
        serializer = IssueUnitsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        blood_request = self.get_object()
        issues = transfusion_utils.issue_units(
            blood_request,
            serializer.validated_data['unit_ids'],
            request.user,
            notes=serializer.validated_data['notes'],
        )
        blood_request.refresh_from_db()
        return Response({
            'request': self.get_serializer(blood_request).data,
            'issued': BloodIssueSerializer(issues, many=True).data,
        }, status=status.HTTP_201_CREATED)


class TransfusionViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """API endpoint for transfusion records"""
    queryset = BloodTransfusion.objects.all().order_by('-transfusion_date', '-start_time')
    serializer_class = BloodTransfusionSerializer
    permission_classes = [IsBloodBankStaff]

    def get_queryset(self):
        queryset = super().get_queryset()
        if _flag(self.request, 'adverse_reaction'):
            queryset = queryset.filter(adverse_reaction=True)
        return queryset

    def perform_create(self, serializer):
        serializer.save(administered_by=self.request.user)


@api_view(['GET'])
@permission_classes([IsBloodBankStaff])
def dashboard_stats(request):
    """Get dashboard statistics"""
    today = timezone.localdate()

    return Response({
        'available_units': BloodInventoryItem.objects.filter(
            status='available', expiry_date__gte=today
        ).count(),
        'expiring_soon': inventory_utils.expiring_soon_count(today),
        'quarantined_units': BloodInventoryItem.objects.filter(status='quarantine').count(),
        'pending_requests': BloodRequest.objects.filter(request_status='pending').count(),
        'open_requests': BloodRequest.objects.filter(
            request_status__in=BloodRequest.OPEN_STATUSES
        ).count(),
        'active_donors': BloodDonor.objects.filter(status='active').count(),
        'eligible_donors': eligible_donors(today).count(),
        'availability': inventory_utils.availability_by_blood_type(today),
    })


@api_view(['GET'])
@permission_classes([IsBloodBankStaff])
def compatibility(request):
    """
    Donor and recipient blood types for ?blood_type=O-&component=whole_blood
    """
    blood_type = request.query_params.get('blood_type', '')
    component_type = _component_param(request)

    def with_color(blood_types):
        return [{'blood_type': bt, 'color': get_blood_type_color(bt)} for bt in blood_types]

    return Response({
        'blood_type': blood_type,
        'component_type': component_type,
        'color': get_blood_type_color(blood_type),
        'can_receive_from': with_color(get_compatible_donors(blood_type, component_type)),
        'can_donate_to': with_color(get_compatible_recipients(blood_type, component_type)),
    })


@api_view(['GET'])
@permission_classes([IsBloodBankStaff])
def stock_report(request):
    """Available stock by blood type and component"""
    return Response(build_stock_report())
