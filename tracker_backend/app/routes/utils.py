from __future__ import annotations
from datetime import date, datetime
from flask import abort

def require_fields(data, fields):
    missing = [f for f in fields if f not in (data or {})]
    if missing:
        abort(400, f"Missing fields: {', '.join(missing)}")


def parse_day(value) -> str:
    """ISO date string for ``value``; today when empty, 400 when malformed."""
    if not value:
        return date.today().isoformat()
    try:
        return datetime.fromisoformat(str(value)).date().isoformat()
    except ValueError:
        abort(400, f"Invalid date: {value}")
