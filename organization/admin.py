from django.contrib import admin
from .models import (
    DonorVerification,
    EmergencyRequest,
    InventoryItem,
    MedicalReport,
    Organization,
    OrganizationLog,
    OrganizationMember,
)


class InventoryInline(admin.TabularInline):
    model = InventoryItem
    extra = 0


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'city', 'license_number', 'verified']
    list_filter = ['type', 'verified', 'state']
    search_fields = ['name', 'license_number', 'user__email']
    inlines = [InventoryInline]


@admin.register(EmergencyRequest)
class EmergencyRequestAdmin(admin.ModelAdmin):
    list_display = ['organization', 'blood_group', 'units_required', 'urgency_level', 'status', 'created_at']
    list_filter = ['status', 'urgency_level', 'blood_group']


@admin.register(MedicalReport)
class MedicalReportAdmin(admin.ModelAdmin):
    list_display = ['donor', 'organization', 'blood_group', 'units_donated', 'test_date']
    list_filter = ['hiv_status', 'hepatitis_b', 'hepatitis_c', 'syphilis', 'malaria']


admin.site.register(DonorVerification)
admin.site.register(OrganizationMember)
admin.site.register(OrganizationLog)
