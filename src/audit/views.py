"""Admin-only endpoints exposing the audit log analyzer."""

from rest_framework.response import Response
from rest_framework.views import APIView

from access_control.permissions import RolePermission
from access_control.roles import Permission
from core.response import BaseAPIView, api_response
from .analyzer import get_audit_log_analyzer
from .serializers import DateQuerySerializer, DateRangeQuerySerializer


class AuditAdminMixin:
    permission_classes = [RolePermission]
    required_permission = Permission.ACCESS_ADMIN_PANEL

    @staticmethod
    def _range(request, default_days=DateRangeQuerySerializer.DEFAULT_DAYS):
        serializer = DateRangeQuerySerializer(data=request.query_params, context={"default_days": default_days})
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data["start"], serializer.validated_data["end"]

    @staticmethod
    def _date(request):
        serializer = DateQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data["date"]


class AuditReportView(AuditAdminMixin, BaseAPIView):
    """Dashboard summary: the period report plus suspicious IPs on the last day."""

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        start, end = self._range(request)
        analyzer = get_audit_log_analyzer()
        report = analyzer.generate_audit_report(start, end)
        return api_response(
            {
                "report": report.as_dict(),
                "suspicious": analyzer.detect_suspicious_activity(end),
            }
        )


class AuditExportView(AuditAdminMixin, APIView):
    """Download the raw report as a JSON attachment (no envelope)."""

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        start, end = self._range(request)
        report = get_audit_log_analyzer().generate_audit_report(start, end)
        filename = f"audit-report-{start}-to-{end}.json"
        return Response(
            report.as_dict(),
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )


class UserActionsView(AuditAdminMixin, BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, user_id: int):
        day = self._date(request)
        actions = get_audit_log_analyzer().get_user_actions(user_id, day)
        return api_response(
            {
                "userId": user_id,
                "date": day,
                "actions": [event.as_dict() for event in actions],
            }
        )


class TargetUserHistoryView(AuditAdminMixin, BaseAPIView):
    """Change history for one user; this view looks back 30 days by default."""

    HISTORY_DAYS = 30

    def get(self, request, user_id: int):
        start, end = self._range(request, default_days=self.HISTORY_DAYS)
        history = get_audit_log_analyzer().get_target_user_history(user_id, start, end)
        return api_response(
            {
                "targetId": user_id,
                "start": start,
                "end": end,
                "history": [event.as_dict() for event in history],
            }
        )


class SuspiciousActivityView(AuditAdminMixin, BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        day = self._date(request)
        return api_response({"date": day, "suspicious": get_audit_log_analyzer().detect_suspicious_activity(day)})


__all__ = [
    "AuditReportView",
    "AuditExportView",
    "UserActionsView",
    "TargetUserHistoryView",
    "SuspiciousActivityView",
]
