from django.urls import path
from . import admin_views, views

urlpatterns = [
    path('donors', views.donors_view, name='public-donors'),
    path('donors/featured', views.featured_donors_view, name='public-featured-donors'),
    path('seekers', views.seekers_view, name='public-seekers'),
    path('smart-match', views.smart_match_view, name='public-smart-match'),

    # Admin back-office
    path('admin/login', admin_views.login_view, name='admin-login'),
    path('admin/stats', admin_views.stats_view, name='admin-stats'),
    path('admin/donors', admin_views.donors_view, name='admin-donors'),
    path('admin/donors/<int:pk>', admin_views.donor_detail_view, name='admin-donor-detail'),
    path('admin/organizations', admin_views.organizations_view, name='admin-organizations'),
    path('admin/organizations/<int:pk>', admin_views.organization_detail_view, name='admin-organization-detail'),
    path('admin/organizations/<int:pk>/verify', admin_views.organization_verify_view, name='admin-organization-verify'),
    path('admin/inventory', admin_views.inventory_view, name='admin-inventory'),
    path('admin/requests', admin_views.requests_view, name='admin-requests'),
    path('admin/reports', admin_views.reports_view, name='admin-reports'),
    path('admin/reports/<int:pk>', admin_views.report_detail_view, name='admin-report-detail'),
    path('admin/admins', admin_views.admins_view, name='admin-admins'),
    path('admin/admins/<int:pk>', admin_views.admin_delete_view, name='admin-admin-delete'),
    path('admin/admins/<int:pk>/status', admin_views.admin_status_view, name='admin-admin-status'),
    path('admin/notifications', admin_views.broadcast_view, name='admin-notifications'),
]
