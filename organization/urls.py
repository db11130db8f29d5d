from django.urls import path
from . import views

urlpatterns = [
    path('register', views.register_view, name='org-register'),
    path('login', views.login_view, name='org-login'),
    path('profile', views.profile_view, name='org-profile'),
    path('stats', views.stats_view, name='org-stats'),

    path('inventory', views.inventory_view, name='org-inventory'),
    path('inventory/update', views.inventory_update_view, name='org-inventory-update'),
    path('inventory/adjust', views.inventory_adjust_view, name='org-inventory-adjust'),
    path('inventory/alerts', views.inventory_alerts_view, name='org-inventory-alerts'),

    path('requests', views.requests_view, name='org-requests'),
    path('requests/create', views.request_create_view, name='org-request-create'),
    path('requests/<int:pk>/status', views.request_status_view, name='org-request-status'),

    path('donors/search', views.donor_search_view, name='org-donor-search'),
    path('verify', views.verify_donor_view, name='org-verify'),
    path('donors/<int:donor_id>/reports', views.donor_reports_view, name='org-donor-reports'),

    path('members', views.members_view, name='org-members'),
    path('members/<int:donor_id>', views.member_remove_view, name='org-member-remove'),

    path('history', views.history_view, name='org-history'),
    path('analytics', views.analytics_view, name='org-analytics'),
    path('recent-activity', views.recent_activity_view, name='org-recent-activity'),
]
