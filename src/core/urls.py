"""Root URL configuration for the user administration and audit API."""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

urlpatterns = [
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("auth/", include("authentication.urls")),
    path("audit/", include("audit.urls")),
    path("", include("users.urls")),
]
