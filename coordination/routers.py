"""
URL mappings for the coordination API.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``).
"""
from django.urls import path, include
from rest_framework_simplejwt.views import TokenRefreshView

from .auth_views import login_view
from .views import health
from .views import matching
from .views import notifications


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', TokenRefreshView.as_view(), name='jwt_refresh'),
    # Matching
    path('api/matching/find-matches', matching.find_matches, name='matching_find'),
    path('api/matching/create-request', matching.create_request, name='matching_create'),
    path('api/matching/requests', matching.requests_list, name='matching_requests'),
    path('api/matching/requests/<str:request_id>', matching.request_detail_view, name='matching_request_detail'),
    path('api/matching/incoming', matching.incoming, name='matching_incoming'),
    path('api/matching/respond', matching.respond, name='matching_respond'),
    path('api/matching/stats', matching.stats, name='matching_stats'),
    # Notifications
    path('api/notifications', notifications.notifications_list, name='notifications'),
    path('api/notifications/read', notifications.notifications_read, name='notifications_read'),
]
