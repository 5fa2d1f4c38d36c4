"""
Tests for the JSON store: tolerant loading, legacy migration and saving.
"""

import json
import logging

import pytest

from engagement_tracker.domain import EngagementDocument, FeedbackAnswer
from engagement_tracker.persistence import DocumentShape, JsonSerializer


def write_json(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


def legacy_record(name, **extra):
    record = {"clientName": name, "engagementType": ["Internal"], "numberOfUsers": 10}
    record.update(extra)
    return record


# =============================================================================
# LOAD: EMPTY / BROKEN FILES
# =============================================================================


class TestLoadFallbacks:
    """Every broken file gives an empty document."""

    def test_missing_file(self, repo):
        doc = repo.load()
        assert doc.total_records == 0
        assert doc.engagements == []

    @pytest.mark.parametrize("content", ["", "   \n\t  "])
    def test_empty_file(self, repo, db_path, content):
        db_path.write_text(content, encoding="utf-8")
        doc = repo.load()
        assert (doc.total_records, doc.engagements) == (0, [])

    def test_malformed_json(self, repo, db_path):
        db_path.write_text('{"metadata": {"totalRecords": 2}, "engagements": [', encoding="utf-8")
        doc = repo.load()
        assert (doc.total_records, doc.engagements) == (0, [])

    def test_unexpected_top_level_value(self, repo, db_path):
        write_json(db_path, 42)
        doc = repo.load()
        assert (doc.total_records, doc.engagements) == (0, [])

    def test_invalid_utf8(self, repo, db_path):
        # truncated multi-byte sequence, as left by an interrupted write
        db_path.write_bytes(b'[{"clientName": "M' + "\u00fc".encode("utf-8")[:1])
        doc = repo.load()
        assert (doc.total_records, doc.engagements) == (0, [])

    def test_latin1_file(self, repo, db_path):
        db_path.write_bytes(json.dumps([{"clientName": "M\u00fcller"}], ensure_ascii=False).encode("latin-1"))
        assert repo.load().engagements == []


# =============================================================================
# LOAD: SHAPE REPAIR
# =============================================================================


class TestLoadShapes:

    def test_legacy_array_is_wrapped(self, repo, db_path):
        write_json(db_path, [legacy_record("C"), legacy_record("A"), legacy_record("B")])
        doc = repo.load()
        assert doc.total_records == 3
        assert [r.client_name for r in doc.engagements] == ["C", "A", "B"]

    def test_legacy_load_does_not_touch_file(self, repo, db_path):
        write_json(db_path, [legacy_record("A")])
        before = db_path.read_text(encoding="utf-8")
        repo.load()
        assert db_path.read_text(encoding="utf-8") == before

    def test_missing_total_records_is_backfilled(self, repo, db_path):
        write_json(db_path, {"metadata": {}, "engagements": [legacy_record("A"), legacy_record("B")]})
        assert repo.load().total_records == 2

    def test_missing_metadata_is_backfilled(self, repo, db_path):
        write_json(db_path, {"engagements": [legacy_record("A")]})
        assert repo.load().total_records == 1

    def test_missing_engagements_gives_empty_list(self, repo, db_path):
        write_json(db_path, {"metadata": {"totalRecords": 0}, "engagements": None})
        doc = repo.load()
        assert doc.engagements == []
        assert not doc.count_mismatch

    def test_count_mismatch_is_warned_not_fixed(self, repo, db_path, caplog):
        write_json(db_path, {"metadata": {"totalRecords": 5}, "engagements": [legacy_record("A")]})
        with caplog.at_level(logging.WARNING, logger="engagement_tracker.persistence"):
            doc = repo.load()
        assert doc.total_records == 5
        assert len(doc.engagements) == 1
        assert doc.count_mismatch
        assert "totalRecords is 5" in caplog.text

    def test_non_object_entries_are_kept_aside(self, repo, db_path):
        write_json(db_path, [legacy_record("A"), "garbage", legacy_record("B")])
        doc = repo.load()
        assert [r.client_name for r in doc.engagements] == ["A", "B"]
        assert doc.unmapped == ["garbage"]
        assert not doc.count_mismatch

    def test_nameless_entry_is_kept_aside(self, repo, db_path):
        nameless = {"clientName": "", "numberOfUsers": 50}
        write_json(db_path, {"metadata": {"totalRecords": 2}, "engagements": [legacy_record("A"), nameless]})
        doc = repo.load()
        assert [r.client_name for r in doc.engagements] == ["A"]
        assert doc.unmapped == [nameless]
        assert doc.total_records == 2

    def test_byte_order_mark_is_ignored(self, repo, db_path):
        payload = {"metadata": {"totalRecords": 1}, "engagements": [legacy_record("A")]}
        db_path.write_bytes(b"\xef\xbb\xbf" + json.dumps(payload).encode("utf-8"))
        doc = repo.load()
        assert [r.client_name for r in doc.engagements] == ["A"]
        assert doc.total_records == 1


class TestFieldNormalization:

    @pytest.mark.parametrize("raw,expected", [
        (True, True),
        ("True", True),
        ("TRUE", True),
        ("false", False),
        ("no", False),
        (1, False),
        (None, False),
    ])
    def test_domain_admin_is_always_bool(self, repo, db_path, raw, expected):
        write_json(db_path, [legacy_record("A", domainAdminObtained=raw)])
        assert repo.load().engagements[0].domain_admin_obtained is expected

    def test_domain_admin_missing(self, repo, db_path):
        write_json(db_path, [legacy_record("A")])
        assert repo.load().engagements[0].domain_admin_obtained is False

    def test_numbers_from_strings(self, repo, db_path):
        write_json(db_path, [legacy_record("A", numberOfUsers="25", clientRating="4.5")])
        r = repo.load().engagements[0]
        assert r.number_of_users == 25
        assert r.client_rating == 4.5

    def test_single_type_string_becomes_list(self, repo, db_path):
        write_json(db_path, [legacy_record("A", engagementType="External")])
        assert repo.load().engagements[0].engagement_types == ["External"]

    def test_feedback_pairs_as_lists(self, repo, db_path):
        write_json(db_path, [legacy_record("A", clientFeedbackQuestions=[["Q1", "A1"]])])
        assert repo.load().engagements[0].feedback == [FeedbackAnswer("Q1", "A1")]

    def test_rating_overflowing_float_is_missing(self, repo, db_path):
        db_path.write_text('[{"clientName": "A", "clientRating": 1e999}]', encoding="utf-8")
        assert repo.load().engagements[0].client_rating is None

    @pytest.mark.parametrize("raw", ["Infinity", "-inf", "nan", "NaN"])
    def test_non_finite_rating_text_is_missing(self, repo, db_path, raw):
        write_json(db_path, [legacy_record("A", clientRating=raw)])
        assert repo.load().engagements[0].client_rating is None

    def test_non_finite_rating_literal_is_missing(self, repo, db_path):
        db_path.write_text('[{"clientName": "A", "clientRating": NaN}]', encoding="utf-8")
        assert repo.load().engagements[0].client_rating is None


# =============================================================================
# SAVE
# =============================================================================


class TestSave:

    def test_written_shape(self, repo, db_path, make_record):
        doc = EngagementDocument().add(make_record(
            "Acme Corp",
            feedback=[FeedbackAnswer("How was it?", "Great")],
            client_rating=4.5,
        ))
        repo.save(doc)

        payload = json.loads(db_path.read_text(encoding="utf-8"))
        assert payload["metadata"] == {"totalRecords": 1}
        saved = payload["engagements"][0]
        assert saved["clientName"] == "Acme Corp"
        assert saved["domainAdminObtained"] is False
        assert saved["clientFeedbackQuestions"] == [{"question": "How was it?", "answer": "Great"}]

    def test_add_save_reload_keeps_count_in_sync(self, repo, db_path):
        write_json(db_path, {"metadata": {"totalRecords": 7}, "engagements": [legacy_record("A")]})
        doc = repo.load()
        repo.save(doc.add(doc.engagements[0]))

        reloaded = repo.load()
        assert reloaded.total_records == len(reloaded.engagements) == 2

    def test_delete_only_record(self, repo, make_record):
        repo.save(EngagementDocument().add(make_record("Solo Ltd")))
        doc = repo.load()
        repo.save(doc.without_client("Solo Ltd"))

        reloaded = repo.load()
        assert reloaded.total_records == 0
        assert reloaded.engagements == []

    def test_unknown_fields_survive(self, repo, db_path):
        write_json(db_path, [legacy_record("A", internalNotes={"lead": "jd", "tags": [["x"]]})])
        repo.save(repo.load())
        payload = json.loads(db_path.read_text(encoding="utf-8"))
        assert payload["engagements"][0]["internalNotes"] == {"lead": "jd", "tags": [["x"]]}

    def test_round_trip_keeps_values(self, repo, make_record):
        original = make_record(
            "Globex",
            engagement_types=["Internal", "Internal"],
            domain_admin_obtained=True,
            number_of_users=120,
            client_rating=3.5,
        ).with_hours(projected_hours=40, hours_spent=38)
        repo.save(EngagementDocument().add(original))
        assert repo.load().engagements == [original]

    def test_unmapped_entries_survive_save(self, repo, db_path):
        nameless = {"clientName": "", "numberOfUsers": 50}
        write_json(db_path, [legacy_record("A"), nameless, [1, 2]])
        repo.save(repo.load())

        payload = json.loads(db_path.read_text(encoding="utf-8"))
        assert payload["metadata"] == {"totalRecords": 3}
        assert payload["engagements"][0]["clientName"] == "A"
        assert payload["engagements"][1:] == [nameless, [1, 2]]

    def test_add_keeps_unmapped_entries(self, repo, db_path, make_record):
        nameless = {"clientName": "  ", "notes": "fix me"}
        write_json(db_path, {"metadata": {"totalRecords": 2}, "engagements": [legacy_record("A"), nameless]})
        repo.save(repo.load().add(make_record("B")))

        reloaded = repo.load()
        assert [r.client_name for r in reloaded.engagements] == ["A", "B"]
        assert reloaded.unmapped == [nameless]
        assert reloaded.total_records == 3
        assert not reloaded.count_mismatch


class TestClassify:

    def test_shapes(self):
        s = JsonSerializer()
        assert s.classify([])[0] == DocumentShape.LEGACY
        assert s.classify({})[0] == DocumentShape.CURRENT
        assert s.classify("text")[0] == DocumentShape.EMPTY
