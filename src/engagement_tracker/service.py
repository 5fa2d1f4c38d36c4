"""
Application/Use-Case layer

The StatisticsService computes the reporting metrics from domain objects only.
Every metric is its own reduction over all records:
a record that lacks a field is left out of that metric and does not break the others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from statistics import mean
from typing import List, Optional, Tuple

from .config import AppConfig
from .domain import EngagementRecord, round_half_up
from .selector import sort_names

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
NO_INTERNAL = "No internal engagements"
INTERNAL_TYPE = "internal"

Row = Tuple[str, str]


@dataclass(slots=True)
class MetricsReport:
    """
    Data object for the complete metrics view and the CSV export.
    - rows: (label, value) in display order
    - diagnostics: extra lines in debug mode
    """
    rows: List[Row] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)

    def label_width(self) -> int:
        """Width of the longest label."""
        return max((len(label) for label, _ in self.rows), default=0)


class StatisticsService:
    """
    Service for the reports.
    It reads the records, computes the metrics and returns plain text values.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self._config = config or AppConfig()

    def complete_metrics(self, records: List[EngagementRecord]) -> MetricsReport:
        """
        Builds the complete metrics report.
        In debug mode a single internal engagement is explained in detail.
        """
        report = MetricsReport(rows=[
            ("Total Engagements", str(len(records))),
            ("Internal Engagement DA Rate", self.internal_domain_admin_rate(records)),
            ("Avg Compromised Users", self.average_compromised_percentage(records)),
            ("Avg Hours Variance", self.average_hours_variance(records)),
            ("Avg Project Length", self.average_project_length(records)),
            ("Avg Client Rating", self.average_client_rating(records)),
        ])

        if self._config.debug:
            report.diagnostics = self._single_internal_diagnostics(records)

        return report

    def internal_domain_admin_rate(self, records: List[EngagementRecord]) -> str:
        """
        Share of internal engagements with domain admin.
        Format: "P% (d/n)".
        """
        internal = self._internal(records)
        if not internal:
            return NO_INTERNAL

        obtained = sum(1 for r in internal if r.domain_admin_obtained)
        percent = round_half_up(obtained / len(internal) * 100, 2)
        return f"{percent:.2f}% ({obtained}/{len(internal)})"

    def average_compromised_percentage(self, records: List[EngagementRecord]) -> str:
        """Mean of compromised/users * 100 over records with users > 0."""
        shares = [
            r.compromised_users_count / r.number_of_users * 100
            for r in records
            if r.number_of_users > 0
        ]
        if not shares:
            return NOT_AVAILABLE
        return f"{round_half_up(mean(shares), 2):.2f}%"

    def average_hours_variance(self, records: List[EngagementRecord]) -> str:
        """
        Mean of hours_spent - projected_hours.
        Only records with both values set and not negative.
        """
        variances = [
            r.hours_spent - r.projected_hours
            for r in records
            if r.hours_spent is not None
            and r.projected_hours is not None
            and r.hours_spent >= 0
            and r.projected_hours >= 0
        ]
        if not variances:
            return NOT_AVAILABLE

        avg = round_half_up(mean(variances), 2)
        if avg > 0:
            return f"Over by {avg:.2f}h"
        if avg < 0:
            return f"Under by {abs(avg):.2f}h"
        return "Exactly on target!"

    def average_project_length(self, records: List[EngagementRecord]) -> str:
        """
        Mean business days, rounded to whole days.
        Format: "D days (W wks, R days)", one week = 5 business days.
        """
        lengths = [r.business_days_count for r in records if r.business_days_count > 0]
        if not lengths:
            return NOT_AVAILABLE

        days = int(round_half_up(mean(lengths), 0))
        weeks, rest = divmod(days, 5)
        return f"{days} days ({weeks} wks, {rest} days)"

    def average_client_rating(self, records: List[EngagementRecord]) -> str:
        """Mean rating of all rated records."""
        ratings = [r.client_rating for r in records if r.client_rating is not None]
        if not ratings:
            return NOT_AVAILABLE
        return f"{round_half_up(mean(ratings), 2):.2f}"

    def basic_averages(self, records: List[EngagementRecord]) -> List[Row]:
        """
        Plain means of users, live hosts and compromised users.
        An empty collection gives "N/A" instead of a number.
        """
        def avg(values: List[int]) -> str:
            if not values:
                return NOT_AVAILABLE
            return f"{round_half_up(mean(values), 2):.2f}"

        return [
            ("Average Number of Users", avg([r.number_of_users for r in records])),
            ("Average Number of Live Hosts", avg([r.number_of_live_hosts for r in records])),
            ("Average Compromised Users", avg([r.compromised_users_count for r in records])),
        ]

    def rating_listing(self, records: List[EngagementRecord]) -> List[str]:
        """All records sorted by client name: "Client: NAME, Rating: R/5"."""
        order = {name: i for i, name in enumerate(sort_names({r.client_name for r in records}))}
        ordered = sorted(records, key=lambda r: order[r.client_name])

        lines = []
        for r in ordered:
            rating = NOT_AVAILABLE if r.client_rating is None else f"{r.client_rating:g}"
            lines.append(f"Client: {r.client_name}, Rating: {rating}/5")
        return lines

    def _internal(self, records: List[EngagementRecord]) -> List[EngagementRecord]:
        return [r for r in records if r.has_type(INTERNAL_TYPE)]

    def _single_internal_diagnostics(self, records: List[EngagementRecord]) -> List[str]:
        """
        Details for the case of exactly one internal engagement.
        Empty list otherwise.
        """
        internal = self._internal(records)
        if len(internal) != 1:
            return []

        r = internal[0]
        logger.debug("Exactly one internal engagement: %s", r.client_name)
        return [
            "DEBUG: exactly one internal engagement found",
            f"DEBUG:   client: {r.client_name}",
            f"DEBUG:   engagement types: {', '.join(r.engagement_types)}",
            f"DEBUG:   domain admin obtained: {r.domain_admin_obtained}",
        ]
