"""
Persistence layer (JSON)

The engagement database is one JSON file. The domain stays free of JSON details.
- EngagementRepository: interface (load / save)
- JsonEngagementRepository: file repository
- JsonSerializer: mapping between entities and JSON

Loading is tolerant:
- Missing, empty, broken or non-UTF-8 files give an empty document.
- Entries that cannot be mapped are kept as raw entries and written back unchanged.
- Old files (a bare list of records) are wrapped into the current shape.
- A wrong metadata.totalRecords is reported, not fixed. The next save writes the real count.
"""

from __future__ import annotations

import json
import logging
import math
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .domain import (
    EngagementDocument,
    EngagementRecord,
    FeedbackAnswer,
    normalize_boolean,
)

logger = logging.getLogger(__name__)

# JSON key -> attribute name
FIELD_MAP: Dict[str, str] = {
    "clientName": "client_name",
    "engagementType": "engagement_types",
    "date": "created",
    "domainAdminObtained": "domain_admin_obtained",
    "numberOfUsers": "number_of_users",
    "numberOfLiveHosts": "number_of_live_hosts",
    "compromisedUsersCount": "compromised_users_count",
    "sensitiveDataObtained": "sensitive_data_obtained",
    "clientFeedbackQuestions": "feedback",
    "clientRating": "client_rating",
    "projectedHours": "projected_hours",
    "hoursSpent": "hours_spent",
    "hoursDifference": "hours_difference",
    "startDate": "start_date",
    "endDate": "end_date",
    "businessDaysCount": "business_days_count",
}


class DocumentShape(Enum):
    """Shapes a loaded JSON payload can have."""
    CURRENT = "current"
    LEGACY = "legacy"
    EMPTY = "empty"


class EngagementRepository(Protocol):
    """
    Interface for persistence.
    """
    def load(self) -> EngagementDocument:
        ...

    def save(self, document: EngagementDocument) -> None:
        ...


class FileStorage:
    """
    File handling for load and save.
    - Read/write only.
    - Always UTF-8, a byte order mark from an editor is skipped on reading.
    - The file is opened and closed on every call.
    """

    def read_text(self, path: Path) -> str:
        """
        Reads a file as text.
        FileNotFoundError if the file is missing,
        UnicodeDecodeError if it is no valid UTF-8.
        """
        with open(path, "r", encoding="utf-8-sig") as f:
            return f.read()

    def write_text(self, path: Path, content: str) -> None:
        """
        Writes text to a file. The old content is replaced completely.
        """
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)


class JsonSerializer:
    """
    Converts EngagementDocument <-> JSON.
    - Current shape: {"metadata": {"totalRecords": n}, "engagements": [...]}
    - Legacy shape: a bare list of records.
    - Parsing of single fields is tolerant.
    """

    def to_json(self, document: EngagementDocument) -> str:
        """
        Makes a JSON string from the document.
        Formatted with indent = 2, nested lists are written out completely.
        Unmapped raw entries are written back unchanged after the records.
        """
        payload = {
            "metadata": {"totalRecords": document.total_records},
            "engagements": [
                *(self._record_to_dict(r) for r in document.engagements),
                *document.unmapped,
            ],
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    def from_json(self, raw: str) -> EngagementDocument:
        """
        Builds a document from JSON.
        json.JSONDecodeError is passed on to the caller.
        """
        payload = json.loads(raw)
        shape, total, items = self.classify(payload)

        if shape == DocumentShape.LEGACY:
            logger.debug("Legacy record list found, wrapping %d records", len(items))
        elif shape == DocumentShape.EMPTY:
            logger.debug("Unexpected JSON shape (%s), starting empty", type(payload).__name__)

        records = []
        unmapped = []
        for index, item in enumerate(items):
            record = self._record_from_dict_or_none(item, index)
            if record is None:
                unmapped.append(item)
            else:
                records.append(record)

        return EngagementDocument(total_records=total, engagements=records, unmapped=unmapped)

    def classify(self, payload: Any) -> Tuple[DocumentShape, int, List[Any]]:
        """
        Decides the shape of the payload.
        Returns shape, stored record count and the raw record list.
        A missing totalRecords is filled with the length of the list.
        """
        if isinstance(payload, list):
            return DocumentShape.LEGACY, len(payload), list(payload)

        if not isinstance(payload, dict):
            return DocumentShape.EMPTY, 0, []

        items = payload.get("engagements")
        if not isinstance(items, list):
            items = []

        metadata = payload.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}

        total = self._to_int(metadata.get("totalRecords"))
        if total is None:
            total = len(items)

        return DocumentShape.CURRENT, total, list(items)

    def _to_int(self, raw: Any, default: Optional[int] = None) -> Optional[int]:
        """
        Tolerant int.
        - bool is not a number here.
        - "12", 12.0 -> 12
        """
        if raw is None or isinstance(raw, bool):
            return default
        try:
            return int(float(raw))
        except (TypeError, ValueError, OverflowError):
            return default

    def _to_float(self, raw: Any) -> Optional[float]:
        """Tolerant float, None if missing, invalid or not finite (inf, nan)."""
        if raw is None or isinstance(raw, bool):
            return None
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        return value if math.isfinite(value) else None

    def _record_to_dict(self, r: EngagementRecord) -> Dict[str, Any]:
        d: Dict[str, Any] = dict(r.extras)
        d.update({
            "clientName": r.client_name,
            "engagementType": list(r.engagement_types),
            "date": r.created,
            "domainAdminObtained": r.domain_admin_obtained,
            "numberOfUsers": r.number_of_users,
            "numberOfLiveHosts": r.number_of_live_hosts,
            "compromisedUsersCount": r.compromised_users_count,
            "sensitiveDataObtained": r.sensitive_data_obtained,
            "clientFeedbackQuestions": [
                {"question": f.question, "answer": f.answer} for f in r.feedback
            ],
            "clientRating": r.client_rating,
            "projectedHours": r.projected_hours,
            "hoursSpent": r.hours_spent,
            "hoursDifference": r.hours_difference,
            "startDate": r.start_date,
            "endDate": r.end_date,
            "businessDaysCount": r.business_days_count,
        })
        return d

    def _record_from_dict_or_none(self, item: Any, index: int) -> Optional[EngagementRecord]:
        """
        Maps one entry. None for entries that are no object or have no client name;
        the caller keeps those unchanged as unmapped raw entries.
        """
        if not isinstance(item, dict):
            logger.warning("Engagement #%d is not a JSON object, kept unchanged", index + 1)
            return None
        try:
            return self._record_from_dict(item)
        except ValueError as e:
            logger.warning("Engagement #%d kept unchanged: %s", index + 1, e)
            return None

    def _record_from_dict(self, d: Dict[str, Any]) -> EngagementRecord:
        """
        Mapping for one record.
        domainAdminObtained is always normalized to a real bool.
        """
        types = d.get("engagementType")
        if isinstance(types, str):
            types = [types]
        elif not isinstance(types, list):
            types = []

        return EngagementRecord(
            client_name=str(d.get("clientName") or "").strip(),
            engagement_types=[str(t) for t in types],
            created=str(d.get("date") or ""),
            domain_admin_obtained=normalize_boolean(d.get("domainAdminObtained")),
            number_of_users=self._to_int(d.get("numberOfUsers"), 0),
            number_of_live_hosts=self._to_int(d.get("numberOfLiveHosts"), 0),
            compromised_users_count=self._to_int(d.get("compromisedUsersCount"), 0),
            sensitive_data_obtained=normalize_boolean(d.get("sensitiveDataObtained")),
            feedback=self._feedback_from_raw(d.get("clientFeedbackQuestions")),
            client_rating=self._to_float(d.get("clientRating")),
            projected_hours=self._to_int(d.get("projectedHours")),
            hours_spent=self._to_int(d.get("hoursSpent")),
            hours_difference=self._to_int(d.get("hoursDifference")),
            start_date=str(d.get("startDate") or ""),
            end_date=str(d.get("endDate") or ""),
            business_days_count=self._to_int(d.get("businessDaysCount"), 0),
            extras={k: v for k, v in d.items() if k not in FIELD_MAP},
        )

    def _feedback_from_raw(self, raw: Any) -> List[FeedbackAnswer]:
        """
        Feedback entries.
        - {"question": ..., "answer": ...}
        - or [question, answer]
        """
        if not isinstance(raw, list):
            return []

        answers = []
        for entry in raw:
            if isinstance(entry, dict):
                answers.append(FeedbackAnswer(
                    question=str(entry.get("question", "")),
                    answer=str(entry.get("answer", "")),
                ))
            elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                answers.append(FeedbackAnswer(question=str(entry[0]), answer=str(entry[1])))
        return answers


class JsonEngagementRepository:
    """
    Repository for one JSON file.
    - FileStorage for file access
    - JsonSerializer for mapping
    """

    def __init__(
        self,
        path: Path,
        storage: Optional[FileStorage] = None,
        serializer: Optional[JsonSerializer] = None
    ) -> None:
        self._path = Path(path)
        self._storage = storage or FileStorage()
        self._serializer = serializer or JsonSerializer()

    def load(self) -> EngagementDocument:
        """
        Loads the file and builds the document.
        A broken file is treated as "no data yet".
        """
        try:
            raw = self._storage.read_text(self._path)
        except FileNotFoundError:
            logger.debug("Database %s not found, starting empty", self._path)
            return EngagementDocument()
        except UnicodeDecodeError as e:
            logger.debug("Database %s is not valid UTF-8 (%s), starting empty", self._path, e)
            return EngagementDocument()

        if not raw.strip():
            return EngagementDocument()

        try:
            document = self._serializer.from_json(raw)
        except json.JSONDecodeError as e:
            logger.debug("Database %s is not valid JSON (%s), starting empty", self._path, e)
            return EngagementDocument()

        if document.count_mismatch:
            logger.warning(
                "metadata.totalRecords is %d but %d engagements were found; "
                "the count is corrected on the next save",
                document.total_records,
                len(document.engagements) + len(document.unmapped),
            )

        return document

    def save(self, document: EngagementDocument) -> None:
        raw = self._serializer.to_json(document)
        self._storage.write_text(self._path, raw)
