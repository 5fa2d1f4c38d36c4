"""
Controller layer

The EngagementController runs the app. It connects repository, service and view.

Tasks:
- Load the document fresh for every action
- Read new records and changes from the console
- Compute reports through the StatisticsService
- Save after every change
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Callable, Dict, List, Optional

from .business_days import validate_date
from .config import AppConfig
from .domain import (
    FEEDBACK_QUESTIONS,
    PRESET_ENGAGEMENT_TYPES,
    EngagementDocument,
    EngagementRecord,
    FeedbackAnswer,
    parse_rating,
)
from .export import write_metrics_csv
from .persistence import EngagementRepository
from .selector import select_client
from .service import StatisticsService
from .view import ConsoleEngagementView

SELECT_PROMPT = "Client (text to search, number, ':list', empty = cancel): "


class EngagementController:
    """
    Main controller.

    Tasks:
    - Menu loop
    - Calls to service and view
    - Saving changes
    """

    def __init__(
        self,
        repo: EngagementRepository,
        service: StatisticsService,
        view: ConsoleEngagementView,
        config: Optional[AppConfig] = None,
        today: Optional[date] = None,
    ) -> None:
        """
        Creates the controller.

        - repo: load/save
        - service: metrics
        - view: input/output
        - config: report path and debug flag
        """
        self._repo = repo
        self._service = service
        self._view = view
        self._config = config or AppConfig()
        self._today: date = today or date.today()

    def start_app(self) -> None:
        """
        Starts the menu loop.
        Runs until "5" is chosen.
        """
        self._view.show_message(f"Engagement tracker started ({self._config.db_path}).")

        while True:
            self._view.render_menu()
            choice = self._view.prompt("Choice: ").strip()

            if choice == "1":
                self.add_engagement()
            elif choice == "2":
                self.modify_or_delete()
            elif choice == "3":
                self.view_engagement()
            elif choice == "4":
                self.query_metrics()
            elif choice == "5":
                self._view.show_message("Goodbye.")
                break
            else:
                self._view.show_message("Invalid choice.")

    def add_engagement(self) -> None:
        """
        Reads a new record and appends it.
        A wrong number aborts the whole input, nothing is saved.
        """
        document = self._repo.load()

        client_name = self._view.prompt("Client name: ").strip()
        if not client_name:
            self._view.show_message("Client name is required.")
            return

        types = self._prompt_engagement_types()
        if types is None:
            return

        domain_admin = self._prompt_yes_no("Domain admin obtained? (y/n): ")

        counts = {}
        for key, label in (
            ("number_of_users", "Number of users: "),
            ("number_of_live_hosts", "Number of live hosts: "),
            ("compromised_users_count", "Compromised users: "),
        ):
            value = self._prompt_non_negative(label)
            if value is None:
                return
            counts[key] = value

        sensitive = self._prompt_yes_no("Sensitive data obtained? (y/n): ")
        feedback = self._prompt_feedback()
        rating = self._prompt_rating()

        projected = self._prompt_non_negative("Projected hours: ")
        if projected is None:
            return
        spent = self._prompt_non_negative("Hours spent: ")
        if spent is None:
            return

        start, end = self._prompt_period()

        record = EngagementRecord(
            client_name=client_name,
            engagement_types=types,
            created=self._today.isoformat(),
            domain_admin_obtained=domain_admin,
            sensitive_data_obtained=sensitive,
            feedback=feedback,
            client_rating=rating,
            **counts,
        ).with_hours(projected_hours=projected, hours_spent=spent).with_dates(start, end)

        document = document.add(record)
        if self._save(document):
            self._view.show_message(
                f"Engagement for '{client_name}' added ({document.total_records} records)."
            )

    def modify_or_delete(self) -> None:
        """
        Selects a client, then changes one field or deletes the client.
        Delete removes every record with this client name.
        """
        document = self._repo.load()
        client_name = self._select(document)
        if client_name is None:
            return

        action = self._view.prompt("(m)odify or (d)elete? ").strip().lower()
        if action in ("d", "delete"):
            confirm = self._view.prompt(f"Delete '{client_name}'? (y/n): ").strip().lower()
            if confirm not in ("y", "yes"):
                self._view.show_message("Nothing deleted.")
                return
            document = document.without_client(client_name)
            if self._save(document):
                self._view.show_message(
                    f"'{client_name}' deleted ({document.total_records} records left)."
                )
        elif action in ("m", "modify"):
            record = document.find_first(client_name)
            if record is None:
                return
            updated = self._modify_field(record)
            if updated is None:
                return
            if self._save(document.replace_first(client_name, updated)):
                self._view.show_message(f"'{client_name}' updated.")
        else:
            self._view.show_message("Invalid choice.")

    def view_engagement(self) -> None:
        """Shows the full record of one client."""
        document = self._repo.load()
        client_name = self._select(document)
        if client_name is None:
            return

        for record in document.engagements:
            if record.client_name == client_name:
                self._view.render_record(record)

    def query_metrics(self) -> None:
        """
        Query submenu.
        - 1: complete metrics (also written as CSV)
        - 2: basic averages
        - 3: client ratings
        """
        records = self._repo.load().engagements
        self._view.render_query_menu()
        choice = self._view.prompt("Report: ").strip()

        if choice == "1":
            report = self._service.complete_metrics(records)
            self._view.render_metrics(report)
            try:
                path = write_metrics_csv(report, self._config.report_path)
                self._view.show_message(f"Report written to {path}.")
            except OSError as e:
                self._view.show_message(f"ERROR writing report: {e}")
        elif choice == "2":
            self._view.render_rows("BASIC AVERAGES", self._service.basic_averages(records))
        elif choice == "3":
            self._view.render_lines("CLIENT RATINGS", self._service.rating_listing(records))
        else:
            self._view.show_message("Invalid choice.")

    def _modify_field(self, record: EngagementRecord) -> Optional[EngagementRecord]:
        """
        Asks for one field and returns the changed record.
        None if the input was invalid or cancelled.
        Derived fields are computed again.
        """
        editors: Dict[str, Callable[[EngagementRecord], Optional[EngagementRecord]]] = {
            "1": self._edit_types,
            "2": lambda r: replace(
                r, domain_admin_obtained=self._prompt_yes_no("Domain admin obtained? (y/n): ")
            ),
            "3": lambda r: self._edit_count(r, "number_of_users", "Number of users: "),
            "4": lambda r: self._edit_count(r, "number_of_live_hosts", "Number of live hosts: "),
            "5": lambda r: self._edit_count(r, "compromised_users_count", "Compromised users: "),
            "6": lambda r: replace(
                r, sensitive_data_obtained=self._prompt_yes_no("Sensitive data obtained? (y/n): ")
            ),
            "7": lambda r: replace(r, feedback=self._prompt_feedback()),
            "8": lambda r: replace(r, client_rating=self._prompt_rating()),
            "9": lambda r: self._edit_hours(r, "projected_hours", "Projected hours: "),
            "10": lambda r: self._edit_hours(r, "hours_spent", "Hours spent: "),
            "11": self._edit_period,
        }

        self._view.show_message(
            "Fields: 1) engagement types  2) domain admin  3) users  4) live hosts  "
            "5) compromised users  6) sensitive data  7) feedback  8) rating  "
            "9) projected hours  10) hours spent  11) start/end date"
        )
        choice = self._view.prompt("Field: ").strip()
        editor = editors.get(choice)
        if editor is None:
            self._view.show_message("Invalid choice.")
            return None
        return editor(record)

    def _edit_types(self, record: EngagementRecord) -> Optional[EngagementRecord]:
        types = self._prompt_engagement_types()
        if types is None:
            return None
        return replace(record, engagement_types=types)

    def _edit_count(self, record: EngagementRecord, attr: str, label: str) -> Optional[EngagementRecord]:
        value = self._prompt_non_negative(label)
        if value is None:
            return None
        return replace(record, **{attr: value})

    def _edit_hours(self, record: EngagementRecord, attr: str, label: str) -> Optional[EngagementRecord]:
        value = self._prompt_non_negative(label)
        if value is None:
            return None
        return record.with_hours(**{attr: value})

    def _edit_period(self, record: EngagementRecord) -> EngagementRecord:
        start, end = self._prompt_period()
        return record.with_dates(start, end)

    def _select(self, document: EngagementDocument) -> Optional[str]:
        """Client selection, with a message if there is nothing to select."""
        if not document.engagements:
            self._view.show_message("No engagements recorded.")
            return None
        return select_client(document.client_names(), SELECT_PROMPT, self._view)

    def _prompt_engagement_types(self) -> Optional[List[str]]:
        """
        Engagement types as comma-separated list.
        - Numbers pick from the preset list.
        - Other text is taken as a custom type.
        """
        self._view.show_message("Engagement types:")
        for i, name in enumerate(PRESET_ENGAGEMENT_TYPES, 1):
            self._view.show_message(f"  {i}) {name}")

        raw = self._view.prompt("Types (numbers and/or custom names, comma-separated): ")
        types: List[str] = []
        for token in (t.strip() for t in raw.split(",")):
            if not token:
                continue
            if token.isdigit():
                index = int(token)
                if not 1 <= index <= len(PRESET_ENGAGEMENT_TYPES):
                    self._view.show_message(f"Invalid type number: {token}.")
                    return None
                types.append(PRESET_ENGAGEMENT_TYPES[index - 1])
            else:
                types.append(token)
        return types

    def _prompt_non_negative(self, label: str) -> Optional[int]:
        """
        Whole number >= 0.
        None after printing an error.
        """
        raw = self._view.prompt(label).strip()
        try:
            value = int(raw)
        except ValueError:
            self._view.show_message("Invalid number (must be a whole number).")
            return None

        if value < 0:
            self._view.show_message("Number must not be negative.")
            return None

        return value

    def _prompt_yes_no(self, label: str) -> bool:
        return self._view.prompt(label).strip().lower() in ("y", "yes")

    def _prompt_feedback(self) -> List[FeedbackAnswer]:
        """Asks the fixed feedback questions."""
        answers = []
        for question in FEEDBACK_QUESTIONS:
            answer = self._view.prompt(f"{question} ").strip()
            answers.append(FeedbackAnswer(question=question, answer=answer))
        return answers

    def _prompt_rating(self) -> float:
        """
        Client rating 0..5.
        Invalid input is not asked again: the rating becomes 0 with a warning.
        """
        raw = self._view.prompt("Client rating (0-5): ")
        try:
            rating = parse_rating(raw)
        except ValueError:
            self._view.show_message("WARNING: invalid rating, using 0.")
            return 0.0

        if not 0.0 <= rating <= 5.0:
            self._view.show_message("WARNING: rating must be between 0 and 5, using 0.")
            return 0.0

        return rating

    def _prompt_period(self):
        """Start and end date. Asks again until both are valid dates."""
        start = validate_date("Start date (MM/DD/YYYY): ", self._view)
        end = validate_date("End date (MM/DD/YYYY): ", self._view)
        if end < start:
            self._view.show_message("Note: end date is before start date, business days = 0.")
        return start, end

    def _save(self, document: EngagementDocument) -> bool:
        """
        Writes the document.
        False after printing an error.
        """
        try:
            self._repo.save(document)
        except OSError as e:
            self._view.show_message(f"ERROR while saving: {e}")
            return False
        return True
