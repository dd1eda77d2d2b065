"""
Root URL configuration.

``/admin/`` is the Django admin, ``/swagger/`` and ``/redoc/`` serve the
generated OpenAPI documentation, everything else is routed by
``coordination.routers``.
"""
from django.contrib import admin
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework.permissions import AllowAny

api_info = openapi.Info(
    title="Organ Portal API",
    default_version="v1",
    description="Ranks donors across hospitals for a patient's organ need and "
                "coordinates the accept/reject handshake between hospitals.",
)

docs = get_schema_view(api_info, public=True, permission_classes=[AllowAny])

urlpatterns = [
    path("admin/", admin.site.urls),
    path("swagger/", docs.with_ui("swagger", cache_timeout=0), name="schema-swagger-ui"),
    path("redoc/", docs.with_ui("redoc", cache_timeout=0), name="schema-redoc"),
    path("", include("coordination.routers")),
]
