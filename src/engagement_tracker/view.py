"""
UI layer for the console

This view shows menus, records and reports in the console.
- Format and print text
- Build record details as an ASCII box
- Read input
"""

from __future__ import annotations

import shutil
import textwrap
from typing import List, Sequence, Tuple

from .domain import EngagementRecord
from .service import MetricsReport


class ConsoleEngagementView:
    """
    View for the console.

    The width follows the current terminal window.
    """

    def __init__(self, width: int | None = None) -> None:
        """
        Creates the view.
        - If width is None, the terminal width is used.
        - There is a minimum width.
        - The real terminal width is never exceeded.
        """
        term_cols = shutil.get_terminal_size(fallback=(100, 24)).columns

        if width is None:
            width = term_cols

        width = max(60, width)
        self._width = min(width, max(60, term_cols))

    def render_menu(self) -> None:
        print()
        print("╔═══════════════════════════════════════╗")
        print("║        ENGAGEMENT TRACKER             ║")
        print("╠═══════════════════════════════════════╣")
        print("║  1) Add engagement                    ║")
        print("║  2) Modify/delete engagement          ║")
        print("║  3) View engagement                   ║")
        print("║  4) Query metrics                     ║")
        print("║  5) Exit                              ║")
        print("╚═══════════════════════════════════════╝")

    def render_query_menu(self) -> None:
        print()
        print("  1) Complete metrics report")
        print("  2) Basic averages")
        print("  3) Client ratings")

    def prompt(self, question: str) -> str:
        return input(question)

    def show_message(self, text: str) -> None:
        print(text)

    def render_metrics(self, report: MetricsReport) -> None:
        """
        Prints the complete metrics report.
        Labels are padded to the longest label.
        """
        for line in self.format_metrics(report):
            print(line)

    def format_metrics(self, report: MetricsReport) -> List[str]:
        """Text lines of the metrics report, without printing."""
        width = report.label_width()
        lines = ["", "=== COMPLETE METRICS ==="]
        lines.extend(f"{label.ljust(width)} : {value}" for label, value in report.rows)
        lines.extend(report.diagnostics)
        return lines

    def render_rows(self, title: str, rows: Sequence[Tuple[str, str]]) -> None:
        """Simple "label: value" list."""
        print(f"\n=== {title} ===")
        for label, value in rows:
            print(f"  {label}: {value}")

    def render_lines(self, title: str, lines: Sequence[str]) -> None:
        """List of prepared lines."""
        print(f"\n=== {title} ===")
        if not lines:
            print("  No engagements recorded.")
        for line in lines:
            print(f"  {line}")

    def render_record(self, record: EngagementRecord) -> None:
        print(self._build_record(record))

    def _build_record(self, r: EngagementRecord) -> str:
        w = self._width
        sep_eq = "+" + "═" * (w - 2) + "+"
        sep_dash = "+" + "─" * (w - 2) + "+"

        lines: List[str] = [sep_eq]
        lines.extend(self._rows_wrapped(f"Client: {r.client_name}   (created {r.created or '-'})"))
        lines.extend(self._rows_wrapped(f"Engagement types: {', '.join(r.engagement_types) or '-'}"))
        lines.append(sep_eq)

        rating = "-" if r.client_rating is None else f"{r.client_rating:g}/5"
        details = [
            f"Domain admin obtained: {self._yes_no(r.domain_admin_obtained)}",
            f"Sensitive data obtained: {self._yes_no(r.sensitive_data_obtained)}",
            f"Users: {r.number_of_users}   Live hosts: {r.number_of_live_hosts}   "
            f"Compromised users: {r.compromised_users_count}",
            f"Hours projected: {self._fmt_opt(r.projected_hours)}   "
            f"spent: {self._fmt_opt(r.hours_spent)}   "
            f"difference: {self._fmt_signed(r.hours_difference)}",
            f"Period: {r.start_date or '-'} - {r.end_date or '-'}   "
            f"Business days: {r.business_days_count}",
            f"Client rating: {rating}",
        ]
        for text in details:
            lines.extend(self._rows_wrapped(text))

        lines.append(sep_dash)
        lines.extend(self._rows_wrapped("CLIENT FEEDBACK"))
        if not r.feedback:
            lines.extend(self._rows_wrapped(" No feedback recorded"))
        for i, f in enumerate(r.feedback, 1):
            lines.extend(self._rows_wrapped(f" {i}. {f.question}"))
            lines.extend(self._rows_wrapped(f"    -> {f.answer or '-'}"))
        lines.append(sep_eq)

        return "\n".join(lines)

    def _rows_wrapped(self, text: str) -> List[str]:
        """Wraps long text into box rows of the view width."""
        inner = self._width - 2
        rows: List[str] = []

        for raw in text.splitlines() or [""]:
            wrapped = textwrap.wrap(
                raw,
                width=inner,
                break_long_words=True,
                replace_whitespace=False,
                drop_whitespace=False,
            ) or [""]

            for part in wrapped:
                rows.append("│" + part.ljust(inner) + "│")

        return rows

    def _yes_no(self, value: bool) -> str:
        return "Yes" if value else "No"

    def _fmt_opt(self, value: int | None) -> str:
        return "-" if value is None else str(value)

    def _fmt_signed(self, value: int | None) -> str:
        return "-" if value is None else f"{value:+d}"
