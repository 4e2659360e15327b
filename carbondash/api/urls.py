"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from carbondash.api.views import DashboardView, ErrorView, PostcodeView, TipsView

urlpatterns = [
    path("dashboard", DashboardView.as_view(), name="dashboard"),
    path("dashboard/postcode", PostcodeView.as_view(), name="dashboard-postcode"),
    path("dashboard/tips", TipsView.as_view(), name="dashboard-tips"),
    path("dashboard/error", ErrorView.as_view(), name="dashboard-error"),
]
