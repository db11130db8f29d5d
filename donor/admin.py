from django.contrib import admin
from .models import Donor, Donation, Reminder


class DonationInline(admin.TabularInline):
    model = Donation
    extra = 0
    fields = ['date', 'units', 'organization', 'notes']


@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['donor_tag', 'get_name', 'blood_type', 'phone', 'city', 'is_available']
    list_filter = ['blood_type', 'is_available', 'state']
    search_fields = ['full_name', 'user__username', 'user__email', 'phone']
    readonly_fields = ['availability_updated_at', 'created_at']
    inlines = [DonationInline]


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ['donor', 'date', 'units', 'organization']
    list_filter = ['date']
    search_fields = ['donor__full_name', 'donor__user__username']


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ['donor', 'reminder_date', 'message']
