from django.contrib import admin

from .models import BloodDonor, BloodDonation


class BloodDonationInline(admin.TabularInline):
    model = BloodDonation
    extra = 0
    fields = ['bag_number', 'donation_date', 'volume_ml', 'screening_status', 'status']
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(BloodDonor)
class BloodDonorAdmin(admin.ModelAdmin):
    list_display   = ['full_name', 'blood_type', 'phone', 'total_donations', 'last_donation_date', 'status', 'eligible_display']
    list_filter    = ['blood_type', 'status', 'is_deferred']
    search_fields  = ['first_name', 'last_name', 'phone', 'email']
    ordering       = ['-created_at']
    readonly_fields = ['total_donations', 'last_donation_date', 'next_eligible_date', 'created_at', 'updated_at']
    inlines = [BloodDonationInline]

    fieldsets = (
        ('Personal Info', {
            'fields': ('first_name', 'last_name', 'date_of_birth', 'gender', 'blood_type')
        }),
        ('Contact', {
            'fields': ('phone', 'email', 'address')
        }),
        ('Donation Stats', {
            'fields': ('total_donations', 'last_donation_date', 'next_eligible_date', 'status')
        }),
        ('Health', {
            'fields': ('weight_kg', 'medical_conditions', 'medications', 'is_deferred', 'eligibility_notes'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(boolean=True, description='Can Donate Now')
    def eligible_display(self, obj):
        return obj.is_eligible

    actions = ['defer_donors', 'clear_deferral']

    @admin.action(description='Defer selected donors')
    def defer_donors(self, request, queryset):
        updated = queryset.update(is_deferred=True)
        self.message_user(request, f'{updated} donor(s) deferred.')

    @admin.action(description='Clear deferral for selected donors')
    def clear_deferral(self, request, queryset):
        updated = queryset.update(is_deferred=False)
        self.message_user(request, f'{updated} donor(s) cleared.')


@admin.register(BloodDonation)
class BloodDonationAdmin(admin.ModelAdmin):
    list_display  = ['bag_number', 'donor', 'blood_type', 'donation_date', 'volume_ml', 'screening_status', 'status']
    list_filter   = ['blood_type', 'screening_status', 'status', 'donation_date']
    search_fields = ['bag_number', 'donor__first_name', 'donor__last_name']
    ordering      = ['-donation_date', '-donation_time']
    readonly_fields = ['bag_number', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        # Donations go through record_donation so the eligibility gate applies
        return False
