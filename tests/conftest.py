"""
Test configuration: puts src/ on sys.path and provides shared fixtures.
"""

import sys
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parent.parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from engagement_tracker.domain import EngagementRecord  # noqa: E402
from engagement_tracker.persistence import JsonEngagementRepository  # noqa: E402


class FakeView:
    """Scripted console: answers come from a list, output is collected."""

    def __init__(self, answers=None):
        self.answers = list(answers or [])
        self.prompts = []
        self.messages = []
        self.records = []
        self.reports = []

    def prompt(self, question):
        self.prompts.append(question)
        if not self.answers:
            raise AssertionError(f"no scripted answer left for prompt: {question!r}")
        return self.answers.pop(0)

    def show_message(self, text):
        self.messages.append(text)

    def render_menu(self):
        pass

    def render_query_menu(self):
        pass

    def render_record(self, record):
        self.records.append(record)

    def render_metrics(self, report):
        self.reports.append(report)

    def render_rows(self, title, rows):
        self.messages.append(title)
        self.messages.extend(f"{label}: {value}" for label, value in rows)

    def render_lines(self, title, lines):
        self.messages.append(title)
        self.messages.extend(lines)


@pytest.fixture
def make_record():
    """Factory for records with sensible defaults."""
    def _make(client_name="Acme Corp", **kwargs):
        return EngagementRecord(client_name=client_name, **kwargs)
    return _make


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "engagements.json"


@pytest.fixture
def repo(db_path):
    return JsonEngagementRepository(db_path)


@pytest.fixture
def fake_view():
    return FakeView
