"""ebloodbank URL Configuration

Everything the clients talk to is JSON under ``/api/``; ``/admin/`` is the
stock Django admin for operators.
"""
import os

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path, re_path
from django.views.static import serve as static_serve

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/', include('blood.urls')),
    path('api/', include('donor.urls')),
    path('api/org/', include('organization.urls')),
]

# Serve media files during development, or explicitly in simple single-container deployments.
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
elif os.getenv('SERVE_MEDIA', 'false').lower() == 'true':
    urlpatterns += [
        re_path(r'^media/(?P<path>.*)$', static_serve, {'document_root': settings.MEDIA_ROOT}),
    ]
