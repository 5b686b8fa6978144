from django.contrib import admin, messages

from bloodbank.exceptions import InvalidStatusTransition
from .models import BloodInventoryItem
from . import utils


@admin.register(BloodInventoryItem)
class BloodInventoryItemAdmin(admin.ModelAdmin):
    list_display   = ['bag_number', 'blood_type', 'component_type', 'volume_ml', 'expiry_date', 'status', 'testing_status']
    list_filter    = ['status', 'blood_type', 'component_type', 'testing_status']
    search_fields  = ['bag_number', 'donation__bag_number']
    ordering       = ['expiry_date']
    readonly_fields = ['bag_number', 'expiry_date', 'status', 'created_at', 'updated_at']

    fieldsets = (
        ('Unit', {
            'fields': ('bag_number', 'donation', 'blood_type', 'component_type', 'volume_ml')
        }),
        ('Dates', {
            'fields': ('collection_date', 'expiry_date')
        }),
        ('Storage', {
            'fields': ('storage_location', 'storage_temperature', 'status', 'notes')
        }),
        ('Screening', {
            'fields': ('testing_status', 'hiv_status', 'hbv_status', 'hcv_status',
                       'syphilis_status', 'malaria_status', 'crossmatch_compatible'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['release_selected_units']

    @admin.action(description='Release selected units from quarantine')
    def release_selected_units(self, request, queryset):
        released = 0
        for unit in queryset.filter(status='quarantine'):
            try:
                utils.release_unit(unit)
                released += 1
            except InvalidStatusTransition as exc:
                self.message_user(request, str(exc.detail), level=messages.WARNING)
        self.message_user(request, f'{released} unit(s) released.')

    def has_add_permission(self, request):
        # Units are created through add_unit so bag number and expiry are computed
        return False
