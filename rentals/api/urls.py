"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from rentals.api.views import AdminHealthView, RegionListView

urlpatterns = [
    path("regions", RegionListView.as_view(), name="regions"),
    path("admin/health", AdminHealthView.as_view(), name="admin-health"),
]
