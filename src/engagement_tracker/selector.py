"""
Client selection

Finds one client name in the records.
The logic is a small state machine without console I/O, so it can be tested alone.
select_client connects it to the console.

Inputs:
- ":list" shows all clients (sorted)
- a number picks from the last match list, or from the sorted list if there is none
- text is a case-insensitive substring search
- empty input cancels
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

LIST_COMMAND = ":list"


class SelectorState(Enum):
    """States of the selection."""
    AWAITING_INPUT = "awaitingInput"
    HAS_PENDING_MATCHES = "hasPendingMatches"
    DONE = "done"


@dataclass(slots=True)
class SelectorStep:
    """
    Result of one input.
    - messages: lines for the console
    - selection: chosen client name (only when done)
    """
    messages: List[str] = field(default_factory=list)
    selection: Optional[str] = None
    done: bool = False


def sort_names(names: Iterable[str]) -> List[str]:
    """Client names sorted ascending, case-insensitive."""
    return sorted(names, key=lambda n: (n.lower(), n))


class ClientSelector:
    """
    State machine for the client selection.
    """

    def __init__(self, names: Iterable[str]) -> None:
        """
        names in collection order. Duplicates are removed.
        """
        self._names: List[str] = list(dict.fromkeys(names))
        self._sorted: List[str] = sort_names(self._names)
        self._pending: List[str] = []
        self._state = SelectorState.AWAITING_INPUT
        self._selection: Optional[str] = None

    @property
    def state(self) -> SelectorState:
        return self._state

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    @property
    def selection(self) -> Optional[str]:
        return self._selection

    def handle(self, raw: str) -> SelectorStep:
        """
        Processes one input line.
        After DONE further input is ignored.
        """
        if self._state == SelectorState.DONE:
            return SelectorStep(selection=self._selection, done=True)

        text = raw.strip()

        if not text:
            return self._finish(None)

        if text.lower() == LIST_COMMAND:
            return SelectorStep(messages=self._numbered("All clients:", self._sorted))

        if text.isdigit():
            return self._pick_number(int(text))

        return self._search(text)

    def _pick_number(self, number: int) -> SelectorStep:
        """Number from the pending matches or from the sorted list."""
        choices = self._pending if self._pending else self._sorted
        if 1 <= number <= len(choices):
            return self._finish(choices[number - 1])
        return SelectorStep(messages=[f"Invalid number. Choose 1-{len(choices)}."])

    def _search(self, text: str) -> SelectorStep:
        """
        Substring search.
        - 0 matches: message, pending list cleared
        - 1 match: selected
        - more: numbered list, kept as pending
        """
        needle = text.lower()
        matches = [n for n in self._names if needle in n.lower()]

        if not matches:
            self._pending = []
            self._state = SelectorState.AWAITING_INPUT
            return SelectorStep(messages=[f"No client matches '{text}'."])

        if len(matches) == 1:
            return self._finish(matches[0])

        self._pending = matches
        self._state = SelectorState.HAS_PENDING_MATCHES
        return SelectorStep(messages=self._numbered(f"{len(matches)} clients match '{text}':", matches))

    def _finish(self, name: Optional[str]) -> SelectorStep:
        self._state = SelectorState.DONE
        self._selection = name
        self._pending = []
        return SelectorStep(selection=name, done=True)

    def _numbered(self, title: str, names: List[str]) -> List[str]:
        lines = [title]
        for i, n in enumerate(names, 1):
            lines.append(f"  {i}) {n}")
        return lines


def select_client(names: Iterable[str], prompt: str, view) -> Optional[str]:
    """
    Asks until a client is chosen or the input is empty.
    Returns the client name or None.
    """
    selector = ClientSelector(names)

    while True:
        step = selector.handle(view.prompt(prompt))
        for line in step.messages:
            view.show_message(line)
        if step.done:
            return step.selection
