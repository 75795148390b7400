"""Inspect audit logs from the command line."""

import json
from datetime import timedelta
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from audit import dates
from audit.analyzer import AuditLogAnalyzer, InvalidConfiguration, get_audit_log_analyzer
from audit.dates import InvalidDate

LEVEL_MARKERS = {"INFO": "+", "WARNING": "!", "ERROR": "x"}
RULE = "-" * 60


class Command(BaseCommand):
    """Query per-user actions, target history, suspicious IPs, or a full report."""

    help = (
        "Analyze date-partitioned audit logs. Subcommands: user-actions, "
        "user-history, suspicious-activity, generate-report."
    )

    def add_arguments(self, parser):
        subparsers = parser.add_subparsers(dest="subcommand", required=True)

        actions = subparsers.add_parser("user-actions", help="Actions performed by one user on one day.")
        actions.add_argument("--user-id", type=int, required=True)
        actions.add_argument("--date", help="YYYY-MM-DD (default: today, UTC)")

        history = subparsers.add_parser("user-history", help="Change history of one target user.")
        history.add_argument("--target-id", type=int, required=True)
        history.add_argument("--start", help="YYYY-MM-DD (default: 7 days ago)")
        history.add_argument("--end", help="YYYY-MM-DD (default: today)")

        suspicious = subparsers.add_parser("suspicious-activity", help="IPs with repeated failures on one day.")
        suspicious.add_argument("--date", help="YYYY-MM-DD (default: today, UTC)")

        report = subparsers.add_parser("generate-report", help="Aggregate report for a date range.")
        report.add_argument("--start", help="YYYY-MM-DD (default: 7 days ago)")
        report.add_argument("--end", help="YYYY-MM-DD (default: today)")
        report.add_argument("--output", help="Where to write the JSON report.")

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        try:
            analyzer = get_audit_log_analyzer()
            subcommand = options["subcommand"]
            if subcommand == "user-actions":
                self._user_actions(analyzer, options["user_id"], options.get("date"))
            elif subcommand == "user-history":
                self._user_history(analyzer, options["target_id"], options.get("start"), options.get("end"))
            elif subcommand == "suspicious-activity":
                self._suspicious_activity(analyzer, options.get("date"))
            elif subcommand == "generate-report":
                self._generate_report(analyzer, options.get("start"), options.get("end"), options.get("output"))
            else:  # pragma: no cover - argparse rejects unknown subcommands
                raise CommandError(f"Unknown subcommand: {subcommand}")
        except (InvalidDate, InvalidConfiguration) as exc:
            raise CommandError(str(exc)) from exc

    def _user_actions(self, analyzer: AuditLogAnalyzer, user_id: int, day) -> None:
        self.stdout.write(f"Actions by user {user_id}")
        self.stdout.write("=" * 60)

        actions = analyzer.get_user_actions(user_id, day)
        if not actions:
            self.stdout.write("No actions found for this user.")
            return

        for event in actions:
            context = event.context
            self.stdout.write(f"{context.get('timestamp', event.timestamp)}")
            self.stdout.write(f"  user:   {context.get('actor_username', 'N/A')}")
            self.stdout.write(f"  action: {context.get('action', 'N/A')}")
            self.stdout.write(f"  target: {context.get('target_email', 'N/A')}")
            self.stdout.write(f"  ip:     {context.get('ip_address', 'N/A')}")
            self.stdout.write(RULE)
        self.stdout.write(f"Total: {len(actions)} actions")

    def _user_history(self, analyzer: AuditLogAnalyzer, target_id: int, start, end) -> None:
        self.stdout.write(f"Change history for user {target_id}")
        self.stdout.write("=" * 60)

        history = analyzer.get_target_user_history(target_id, start, end)
        if not history:
            self.stdout.write("No history found for this user.")
            return

        for event in history:
            marker = LEVEL_MARKERS.get(event.level, "-")
            self.stdout.write(f"[{marker}] [{event.level}] {event.date}")
            self.stdout.write(f"    {event.message}")
            context = event.context
            if "actor_username" in context:
                self.stdout.write(f"    by: {context['actor_username']}")
            if "old_email" in context and "target_email" in context:
                self.stdout.write(f"    email: {context['old_email']} -> {context['target_email']}")
            self.stdout.write(RULE)
        self.stdout.write(f"Total: {len(history)} events")

    def _suspicious_activity(self, analyzer: AuditLogAnalyzer, day) -> None:
        suspicious = analyzer.detect_suspicious_activity(day)
        if not suspicious:
            self.stdout.write(self.style.SUCCESS("No suspicious activity detected."))
            return

        self.stdout.write(self.style.WARNING("IPs with repeated failed attempts:"))
        for ip, count in suspicious.items():
            self.stdout.write(f"  {ip}: {count} failed attempts")

    def _generate_report(self, analyzer: AuditLogAnalyzer, start, end, output) -> None:
        today = dates.today()
        start = start or (today - timedelta(days=AuditLogAnalyzer.DEFAULT_HISTORY_DAYS)).isoformat()
        end = end or today.isoformat()

        report = analyzer.generate_audit_report(start, end).as_dict()

        self.stdout.write(f"Audit report {report['period']['start']} to {report['period']['end']}")
        self.stdout.write("=" * 60)
        self.stdout.write(f"Completed operations: {report['totalEvents']}")
        self.stdout.write(f"Unique users:         {report['uniqueUsers']}")
        self.stdout.write(f"Modifications:        {report['modifications']}")
        self.stdout.write(f"Failed attempts:      {report['failedAttempts']}")

        if report["byAction"]:
            self.stdout.write("By action:")
            for action, count in sorted(report["byAction"].items(), key=lambda item: item[1], reverse=True):
                self.stdout.write(f"  {action}: {count}")

        if report["topUsers"]:
            self.stdout.write("Top users:")
            for entry in report["topUsers"][:5]:
                self.stdout.write(f"  {entry['username']} ({entry['userId']}): {entry['count']} actions")

        path = Path(output) if output else Path(settings.AUDIT_LOG_DIR) / (
            f"audit-report-{report['period']['start']}-to-{report['period']['end']}.json"
        )
        path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        self.stdout.write(self.style.SUCCESS(f"Report saved to {path}"))
