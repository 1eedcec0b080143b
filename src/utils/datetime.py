# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for Secretaria Online.

All timestamps are stored in UTC and all Python datetimes are
timezone-aware. Academic terms are half-years: semester 1 runs
January-June, semester 2 July-December.

Usage:
    from src.utils.datetime import utc_now, current_term

    now = utc_now()
    semester, year = current_term()
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current UTC calendar date."""
    return utc_now().date()


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Naive datetimes are assumed to be UTC (SQLite returns them naive).

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime | None) -> str | None:
    """Format datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO formatted string or None.
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def format_br_date(value: date | datetime) -> str:
    """Format a date as DD/MM/YYYY, as printed on contracts."""
    return value.strftime("%d/%m/%Y")


def semester_of(value: date | datetime) -> int:
    """Return the academic semester (1 or 2) a date falls in."""
    return 1 if value.month <= 6 else 2


def current_term(reference: date | datetime | None = None) -> tuple[int, int]:
    """Return the (semester, year) pair for a reference date.

    Args:
        reference: Date to classify; defaults to today (UTC).

    Returns:
        Tuple of semester (1 or 2) and four-digit year.
    """
    reference = reference or utc_now()
    return semester_of(reference), reference.year
