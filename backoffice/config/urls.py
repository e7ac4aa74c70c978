"""
URL configuration for the back-office project.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "CRM Back-Office Admin Panel"
admin.site.site_title = "CRM Back-Office Admin Portal"
admin.site.index_title = "Welcome to the CRM Back-Office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backoffice.core.urls')),
    path('api/v1/', include('backoffice.directions.urls')),
    path('api/v1/', include('backoffice.offices.urls')),
    path('api/v1/', include('backoffice.complex_objects.urls')),
    path('api/v1/', include('backoffice.contracts.urls')),
    path('api/v1/', include('backoffice.measurements.urls')),
    path('api/v1/', include('backoffice.tasks.urls')),
    path('api/v1/', include('backoffice.suppliers.urls')),
    path('api/v1/', include('backoffice.notifications.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
