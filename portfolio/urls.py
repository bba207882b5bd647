"""
URL configuration for the portfolio contact backend.

    POST /api/contact           public contact form (rate limited)
    GET  /api/admin/messages    stored messages (bearer token)
    GET  /api/health            liveness check
"""
from django.urls import path, include

from contact.views import HealthCheckView

urlpatterns = [
    path('api/contact', include('contact.urls')),
    path('api/admin/', include('contact.admin_urls')),
    path('api/health', HealthCheckView.as_view(), name='health'),
]
