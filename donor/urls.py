from django.urls import path
from . import views

urlpatterns = [
    path('auth/register', views.register_view, name='auth-register'),
    path('auth/login', views.login_view, name='auth-login'),
    path('auth/check-username', views.check_username_view, name='auth-check-username'),
    path('auth/forgot-password', views.forgot_password_view, name='auth-forgot-password'),
    path('auth/verify-reset-code', views.verify_reset_code_view, name='auth-verify-reset-code'),
    path('auth/reset-password', views.reset_password_view, name='auth-reset-password'),
    path('auth/google', views.google_auth_view, name='auth-google'),
    path('auth/complete-profile', views.complete_profile_view, name='auth-complete-profile'),

    path('donor/stats', views.stats_view, name='donor-stats'),
    path('donor/donations', views.donations_view, name='donor-donations'),
    path('donor/donations/<int:pk>', views.donation_detail_view, name='donor-donation-detail'),
    path('donor/reminders', views.reminders_view, name='donor-reminders'),
    path('donor/reminders/<int:pk>', views.reminder_detail_view, name='donor-reminder-detail'),
    path('donor/profile', views.profile_view, name='donor-profile'),
    path('donor/profile-picture', views.profile_picture_view, name='donor-profile-picture'),
    path('donor/reports', views.reports_view, name='donor-reports'),
    path('donor/urgent-needs', views.urgent_needs_view, name='donor-urgent-needs'),
    path('donor/notifications', views.notifications_view, name='donor-notifications'),
    path('donor/notifications/read-all', views.notifications_read_all_view, name='donor-notifications-read-all'),
    path('donor/notifications/clear-all', views.notifications_clear_view, name='donor-notifications-clear'),
    path('donor/notifications/<int:pk>', views.notification_delete_view, name='donor-notification-delete'),
    path('donor/notifications/<int:pk>/read', views.notification_read_view, name='donor-notification-read'),
    path('donor/chat', views.chat_view, name='donor-chat'),
    path('donor/password-strength', views.password_strength_view, name='donor-password-strength'),
]
