"""Routing for the audit dashboard endpoints."""

from django.urls import path

from .views import (
    AuditExportView,
    AuditReportView,
    SuspiciousActivityView,
    TargetUserHistoryView,
    UserActionsView,
)

urlpatterns = [
    path("report/", AuditReportView.as_view(), name="audit-report"),
    path("report/export/", AuditExportView.as_view(), name="audit-report-export"),
    path("users/<int:user_id>/actions/", UserActionsView.as_view(), name="audit-user-actions"),
    path("users/<int:user_id>/history/", TargetUserHistoryView.as_view(), name="audit-user-history"),
    path("suspicious/", SuspiciousActivityView.as_view(), name="audit-suspicious"),
]
