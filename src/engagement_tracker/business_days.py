"""
Date helpers

- Business days are Monday to Friday, holidays are not considered.
- Start and end dates are stored as MM/DD/YY text.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

DATE_FORMAT = "%m/%d/%y"
INPUT_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d")


def count_business_days(start: date, end: date) -> int:
    """
    Counts Monday..Friday in [start, end], both ends included.
    start > end gives 0.
    """
    count = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return count


def parse_date(raw: str) -> Optional[date]:
    """
    Reads a date from text.
    Supported formats:
    - MM/DD/YYYY
    - MM/DD/YY
    - YYYY-MM-DD
    """
    s = raw.strip()
    for fmt in INPUT_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    """Stored form of a date (MM/DD/YY)."""
    return d.strftime(DATE_FORMAT)


def validate_date(prompt: str, view) -> date:
    """
    Asks until a valid date is entered.
    The month is checked once more before the date is accepted.
    """
    while True:
        parsed = parse_date(view.prompt(prompt))
        if parsed is not None and 1 <= parsed.month <= 12:
            return parsed
        view.show_message("Invalid date (use MM/DD/YYYY, MM/DD/YY or YYYY-MM-DD).")
