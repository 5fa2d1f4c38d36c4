"""
Domain holds the entities and the normalization rules

This module contains only the record logic.
It has no UI or JSON logic.

- Entities are dataclasses.
- Derived fields (hours difference, business days) are always recomputed, never typed in.
- Operations return new records instead of changing shared ones.
- Missing values are allowed (e.g. client_rating=None) for old data files.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from .business_days import count_business_days, format_date


PRESET_ENGAGEMENT_TYPES: List[str] = [
    "Internal",
    "External",
    "Web Application",
    "Wireless",
    "Social Engineering",
    "Physical",
    "Cloud",
    "Mobile Application",
    "Red Team",
]

FEEDBACK_QUESTIONS: List[str] = [
    "How satisfied were you with the communication during the engagement?",
    "Did the engagement meet the agreed scope and objectives?",
    "How clear and actionable was the final report?",
    "How professional was the testing team?",
    "Would you engage us again for future assessments?",
]


def normalize_boolean(value: Any) -> bool:
    """
    Tolerant bool for hand-edited files.
    - A real bool is returned unchanged.
    - Everything else counts as True only if it reads "true" (any case).
    """
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def parse_rating(text: str) -> float:
    """
    Parses a client rating.

    More than one digit after the decimal point -> rounded to one decimal.
    Otherwise the value is kept as typed ("4.5" stays 4.5, "4" stays 4.0).
    Invalid input raises ValueError; the caller decides what to do with it.
    """
    s = str(text).strip()
    value = float(s)

    if "." in s and len(s.split(".", 1)[1]) > 1:
        return float(Decimal(s).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    return value


def round_half_up(value: float, places: int = 2) -> float:
    """Rounds half away from zero on the decimal text of the value."""
    exp = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exp, rounding=ROUND_HALF_UP))


@dataclass(slots=True)
class FeedbackAnswer:
    """One client feedback question with its answer."""
    question: str
    answer: str = ""


@dataclass(slots=True)
class EngagementRecord:
    """
    One security assessment for one client.

    - client_name is the lookup key, it is not unique.
    - engagement_types keeps order and duplicates.
    - hours_difference and business_days_count are derived.
    """
    client_name: str
    engagement_types: List[str] = field(default_factory=list)
    created: str = ""
    domain_admin_obtained: bool = False
    number_of_users: int = 0
    number_of_live_hosts: int = 0
    compromised_users_count: int = 0
    sensitive_data_obtained: bool = False
    feedback: List[FeedbackAnswer] = field(default_factory=list)
    client_rating: Optional[float] = None
    projected_hours: Optional[int] = None
    hours_spent: Optional[int] = None
    hours_difference: Optional[int] = None
    start_date: str = ""
    end_date: str = ""
    business_days_count: int = 0
    extras: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """
        Checks the basic rules after creation.
        Value ranges are checked at input time, so old files still load.
        """
        if not self.client_name.strip():
            raise ValueError("client_name must not be empty.")

    def has_type(self, wanted: str) -> bool:
        """Case-insensitive check against the engagement types (trimmed)."""
        needle = wanted.strip().lower()
        return any(str(t).strip().lower() == needle for t in self.engagement_types)

    def with_hours(
        self,
        projected_hours: Optional[int] = None,
        hours_spent: Optional[int] = None,
    ) -> "EngagementRecord":
        """
        New record with changed hours.
        - None keeps the current value.
        - hours_difference = hours_spent - projected_hours.
        """
        projected = self.projected_hours if projected_hours is None else projected_hours
        spent = self.hours_spent if hours_spent is None else hours_spent

        difference = None
        if projected is not None and spent is not None:
            difference = spent - projected

        return replace(
            self,
            projected_hours=projected,
            hours_spent=spent,
            hours_difference=difference,
        )

    def with_dates(self, start: date, end: date) -> "EngagementRecord":
        """New record with start/end date and a fresh business day count."""
        return replace(
            self,
            start_date=format_date(start),
            end_date=format_date(end),
            business_days_count=count_business_days(start, end),
        )


@dataclass(slots=True)
class EngagementDocument:
    """
    The whole database file.

    total_records mirrors metadata.totalRecords.
    After loading it can differ from the real count (old or hand-edited files).
    Every change goes through with_engagements, which sets it again.

    unmapped holds raw entries that are no valid record (no object, no client name).
    They are not selectable and not part of any metric, but they are written back
    unchanged and count towards totalRecords.
    """
    total_records: int = 0
    engagements: List[EngagementRecord] = field(default_factory=list)
    unmapped: List[Any] = field(default_factory=list)

    @property
    def count_mismatch(self) -> bool:
        return self.total_records != len(self.engagements) + len(self.unmapped)

    def with_engagements(self, records: Iterable[EngagementRecord]) -> "EngagementDocument":
        """New document with the given records and a matching count."""
        records = list(records)
        return EngagementDocument(
            total_records=len(records) + len(self.unmapped),
            engagements=records,
            unmapped=list(self.unmapped),
        )

    def add(self, record: EngagementRecord) -> "EngagementDocument":
        return self.with_engagements([*self.engagements, record])

    def without_client(self, client_name: str) -> "EngagementDocument":
        """Removes every record of this client."""
        return self.with_engagements(
            r for r in self.engagements if r.client_name != client_name
        )

    def replace_first(self, client_name: str, updated: EngagementRecord) -> "EngagementDocument":
        """
        Replaces the first record of this client.
        Other records and the order stay as they are.
        """
        rebuilt: List[EngagementRecord] = []
        done = False
        for r in self.engagements:
            if not done and r.client_name == client_name:
                rebuilt.append(updated)
                done = True
            else:
                rebuilt.append(r)
        return self.with_engagements(rebuilt)

    def find_first(self, client_name: str) -> Optional[EngagementRecord]:
        for r in self.engagements:
            if r.client_name == client_name:
                return r
        return None

    def client_names(self) -> List[str]:
        """Client names in collection order, without duplicates."""
        return list(dict.fromkeys(r.client_name for r in self.engagements))
