"""Query-parameter serializers for the audit endpoints."""

from datetime import timedelta

from rest_framework import serializers

from . import dates
from .dates import InvalidDate, parse_date


class DateQuerySerializer(serializers.Serializer):
    """Optional single ``date``; defaults to today (UTC)."""

    date = serializers.CharField(required=False, allow_blank=True)

    @staticmethod
    def validate_date(value):
        try:
            return parse_date(value).isoformat()
        except InvalidDate as exc:
            raise serializers.ValidationError(str(exc)) from exc

    def validate(self, attrs):
        attrs.setdefault("date", dates.today().isoformat())
        return attrs


class DateRangeQuerySerializer(serializers.Serializer):
    """Optional ``start``/``end`` pair; missing bounds fall back to a window ending today.

    Pass ``default_days`` in the serializer context to change the window.
    """

    start = serializers.CharField(required=False, allow_blank=True)
    end = serializers.CharField(required=False, allow_blank=True)

    DEFAULT_DAYS = 7

    @staticmethod
    def _parse(value):
        try:
            return parse_date(value) if value else None
        except InvalidDate as exc:
            raise serializers.ValidationError(str(exc)) from exc

    def validate_start(self, value):
        return self._parse(value)

    def validate_end(self, value):
        return self._parse(value)

    def validate(self, attrs):
        """Fill in defaults and reject ranges that end before they start."""
        days = self.context.get("default_days", self.DEFAULT_DAYS)
        today = dates.today()
        start = attrs.get("start") or today - timedelta(days=days)
        end = attrs.get("end") or today
        if start > end:
            raise serializers.ValidationError("start must be on or before end")
        return {"start": start.isoformat(), "end": end.isoformat()}


__all__ = ["DateQuerySerializer", "DateRangeQuerySerializer"]
