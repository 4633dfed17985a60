"""
Date coercion for workflow inputs.

Workflow actions accept either ``date`` objects or ISO strings from the
HTTP layer; anything unparsable is a ValidationError, never a crash.
"""

from __future__ import annotations

from datetime import date, datetime

from dateutil import parser
from dateutil.parser import ParserError

from hr_admin.errors import ValidationError


def parse_date(value: date | str | None, field: str, required: bool = True) -> date | None:
    """Coerce ``value`` into a ``date``; ``field`` names it in error messages."""
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    try:
        return parser.isoparse(value).date()
    except (ParserError, ValueError, TypeError) as e:
        raise ValidationError(f"Invalid date for {field}: {value!r}. Please use YYYY-MM-DD.") from e
