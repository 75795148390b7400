"""App configuration for the audit log writer and analyzer."""

from django.apps import AppConfig


class AuditConfig(AppConfig):
    """Audit app: log format, analyzer, dashboard endpoints and CLI."""

    name = "audit"
