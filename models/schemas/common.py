from datetime import date, datetime

from marshmallow import ValidationError, fields

from utils.constants import DATE_FMT, DATETIME_FMT

# Accepted input layouts, tried in order
DATE_LAYOUTS = (DATE_FMT, DATETIME_FMT)


def parse_datetime(raw) -> datetime:
    """Parse 'YYYY-MM-DD', 'YYYY-MM-DD HH:MM:SS' or ISO 8601 (RFC 3339)."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("A date string is required.")
    value = raw.strip()
    for layout in DATE_LAYOUTS:
        try:
            return datetime.strptime(value, layout)
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("Invalid date. Use YYYY-MM-DD, YYYY-MM-DD HH:MM:SS or ISO 8601.")


def validate_not_future(d: date) -> None:
    if d and d > date.today():
        raise ValidationError("Date cannot be in the future.")


class FlexibleDate(fields.Field):
    """Loads any layout parse_datetime accepts, dumps YYYY-MM-DD."""

    def _deserialize(self, value, attr, data, **kwargs):
        return parse_datetime(value).date()

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return value.strftime(DATE_FMT)


class FlexibleDateTime(fields.Field):
    """Loads any layout parse_datetime accepts, dumps YYYY-MM-DD HH:MM:SS."""

    def _deserialize(self, value, attr, data, **kwargs):
        return parse_datetime(value)

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return value.strftime(DATETIME_FMT)
