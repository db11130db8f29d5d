from django.contrib import admin
from .models import Notification, PasswordResetCode, Seeker

@admin.register(Seeker)
class SeekerAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'blood_type', 'phone', 'district', 'created_at']
    list_filter = ['blood_type', 'state']
    search_fields = ['full_name', 'email', 'phone']

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'kind', 'donor', 'organization', 'is_read', 'created_at']
    list_filter = ['kind', 'is_read']
    search_fields = ['title', 'message']

@admin.register(PasswordResetCode)
class PasswordResetCodeAdmin(admin.ModelAdmin):
    list_display = ['user', 'expires_at', 'created_at']
    exclude = ['code']
