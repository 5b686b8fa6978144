# transfusions/admin.py
from django.contrib import admin, messages
from django.utils.html import format_html

from bloodbank.exceptions import BloodBankConflict
from .models import BloodIssue, BloodRequest, BloodTransfusion
from . import utils

PRIORITY_STYLES = {
    'critical': 'color: red; font-weight: bold;',
    'emergency': 'color: darkorange; font-weight: bold;',
    'urgent': 'color: goldenrod;',
    'routine': 'color: gray;',
}


class BloodIssueInline(admin.TabularInline):
    model = BloodIssue
    extra = 0
    fields = ['inventory_item', 'issued_by', 'issued_at']
    readonly_fields = fields
    can_delete = False


@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'patient_name',
        'blood_type',
        'component_type',
        'units_display',
        'priority_display',
        'required_date',
        'request_status',
    ]
    list_filter = ['request_status', 'priority', 'blood_type', 'component_type', 'created_at']
    search_fields = ['patient_name', 'patient_identifier', 'indication']
    readonly_fields = ['units_issued', 'approved_by', 'approved_at', 'created_at', 'updated_at']
    inlines = [BloodIssueInline]

    fieldsets = (
        ('Patient', {
            'fields': ('patient_name', 'patient_age', 'patient_identifier')
        }),
        ('Request Information', {
            'fields': ('blood_type', 'component_type', 'units_requested', 'units_issued',
                       'priority', 'indication', 'clinical_notes', 'required_date', 'required_time')
        }),
        ('Review', {
            'fields': ('request_status', 'approved_by', 'approved_at', 'rejection_reason')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description='Units')
    def units_display(self, obj):
        return f"{obj.units_issued}/{obj.units_requested}"

    @admin.display(description='Priority', ordering='priority')
    def priority_display(self, obj):
        return format_html(
            '<span style="{}">{}</span>',
            PRIORITY_STYLES.get(obj.priority, ''),
            obj.get_priority_display(),
        )

    actions = ['approve_selected']

    @admin.action(description='Approve selected pending requests')
    def approve_selected(self, request, queryset):
        approved = 0
        for blood_request in queryset.filter(request_status='pending'):
            try:
                utils.approve_request(blood_request, request.user)
                approved += 1
            except BloodBankConflict as e:
                self.message_user(request, str(e.detail), level=messages.WARNING)
        self.message_user(request, f'{approved} request(s) approved.')


@admin.register(BloodIssue)
class BloodIssueAdmin(admin.ModelAdmin):
    list_display = ['inventory_item', 'request', 'issued_by', 'issued_at']
    search_fields = ['inventory_item__bag_number', 'request__patient_name']
    readonly_fields = ['request', 'inventory_item', 'issued_by', 'issued_at']

    def has_add_permission(self, request):
        return False


@admin.register(BloodTransfusion)
class BloodTransfusionAdmin(admin.ModelAdmin):
    list_display = ['bag_number', 'patient_name', 'blood_type', 'component_type',
                    'transfusion_date', 'adverse_reaction', 'outcome']
    list_filter = ['adverse_reaction', 'outcome', 'component_type', 'transfusion_date']
    search_fields = ['bag_number', 'patient_name']
    readonly_fields = ['bag_number', 'blood_type', 'component_type', 'volume_ml',
                       'compatibility_verified', 'created_at', 'updated_at']
