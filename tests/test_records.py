"""Tests for the project record model: validation and normalization."""

from __future__ import annotations

import logging
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from tests.conftest import NOW, make_record
from toad.exit_codes import InvalidRecord
from toad.model.records import (
    ActivityTier,
    BloatEntry,
    ProjectRecord,
    SearchHit,
    Snapshot,
    VcsStatus,
    normalize_tag,
)


class TestValidation:
    def test_empty_name_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord(name="")

    def test_blank_name_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord(name="   ")

    def test_negative_size_rejected(self):
        with pytest.raises(InvalidRecord) as exc:
            ProjectRecord(name="x", size_bytes=-1)
        assert exc.value.name == "x"
        assert "negative" in exc.value.message

    def test_non_integer_size_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord(name="x", size_bytes=1.5)

    def test_bool_size_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord(name="x", size_bytes=True)

    def test_unknown_vcs_status_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord(name="x", vcs_status="exploded")

    def test_bad_timestamp_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord(name="x", last_activity="not a date")

    @pytest.mark.parametrize("kwargs", [
        {"essence": 5},
        {"context_detail": ["x"]},
        {"tags": 5},
        {"tags": ["core", None]},
        {"stack": 7},
        {"stack": {"rust": 1}},
        {"path": 3.5},
        {"last_activity": 10 ** 20},
    ])
    def test_mistyped_fields_rejected(self, kwargs):
        with pytest.raises(InvalidRecord) as exc:
            ProjectRecord(name="x", **kwargs)
        assert exc.value.name == "x"

    def test_zero_size_is_valid(self):
        assert ProjectRecord(name="x", size_bytes=0).size_bytes == 0

    def test_invalid_record_is_a_toad_error(self):
        from toad.exit_codes import ToadError

        with pytest.raises(ToadError):
            ProjectRecord(name="")


class TestNormalization:
    def test_tags_lowercased_and_hash_stripped(self):
        r = ProjectRecord(name="x", tags=["#Backend", "core", "CORE"])
        assert r.tags == frozenset({"backend", "core"})

    def test_single_string_tag(self):
        assert ProjectRecord(name="x", tags="core").tags == frozenset({"core"})

    def test_stack_keeps_order_and_dedupes(self):
        r = ProjectRecord(name="x", stack=["Rust", "tokio", "rust"])
        assert r.stack == ("rust", "tokio")

    def test_vcs_status_aliases(self):
        assert ProjectRecord(name="x", vcs_status="NoRepo").vcs_status is VcsStatus.NO_REPO
        assert ProjectRecord(name="x", vcs_status="no_repo").vcs_status is VcsStatus.NO_REPO
        assert ProjectRecord(name="x", vcs_status="Dirty").vcs_status is VcsStatus.DIRTY

    def test_naive_timestamp_is_utc(self):
        r = ProjectRecord(name="x", last_activity=datetime(2026, 1, 1, 12, 0))
        assert r.last_activity == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_posix_timestamp(self):
        r = ProjectRecord(name="x", last_activity=0)
        assert r.last_activity == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_iso_string_timestamp(self):
        r = ProjectRecord(name="x", last_activity="2026-03-01T12:00:00Z")
        assert r.last_activity == NOW

    def test_records_are_immutable(self):
        r = make_record("x")
        with pytest.raises(FrozenInstanceError):
            r.name = "y"

    def test_normalize_tag(self):
        assert normalize_tag("  #Infra ") == "infra"


class TestFromDict:
    def test_round_fields(self):
        r = ProjectRecord.from_dict(
            {"name": "p", "tags": ["a"], "stack": ["go"], "size_bytes": 5, "vcs_status": "dirty"}
        )
        assert r.name == "p"
        assert r.vcs_status is VcsStatus.DIRTY
        assert r.stack == ("go",)

    def test_missing_name_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord.from_dict({"size_bytes": 1})

    def test_not_a_mapping_rejected(self):
        with pytest.raises(InvalidRecord):
            ProjectRecord.from_dict(["name", "x"])

    def test_to_dict_is_json_friendly(self):
        r = make_record("p", tags=["b", "a"], last_activity=NOW)
        d = r.to_dict()
        assert d["tags"] == ["a", "b"]
        assert d["last_activity"] == "2026-03-01T12:00:00Z"
        assert d["vcs_status"] == "clean"
        assert "context_detail" not in d
        assert r.to_dict(include_context=True)["context_detail"] is None


class TestSnapshot:
    def test_coerce_excludes_invalid_with_diagnostic(self):
        snap = Snapshot.coerce([
            {"name": "good", "size_bytes": 1},
            {"name": "bad", "size_bytes": -5},
            make_record("also-good"),
        ])
        assert [r.name for r in snap.records] == ["good", "also-good"]
        assert len(snap.diagnostics) == 1
        assert "bad" in snap.diagnostics[0]

    def test_coerce_warns_for_each_rejected_record(self, caplog):
        with caplog.at_level(logging.WARNING, logger="toad.model.records"):
            Snapshot.coerce([{"name": "a", "tags": 1}, {"name": "b", "essence": 2}, {"name": "c"}])
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2
        assert "'a'" in warnings[0].getMessage()

    def test_coerce_passes_snapshot_through(self):
        snap = Snapshot(records=(make_record("a"),))
        assert Snapshot.coerce(snap) is snap

    def test_find(self):
        snap = Snapshot(records=(make_record("a"), make_record("b")))
        assert snap.find("b").name == "b"
        assert snap.find("c") is None
        assert len(snap) == 2


class TestResultShapes:
    def test_search_hit_rounds_score(self):
        d = SearchHit("x", 1.23456789, ("name",)).to_dict()
        assert d == {"name": "x", "score": 1.2346, "matched_fields": ["name"]}

    def test_bloat_entry(self):
        assert BloatEntry("x", 10, 0.5).to_dict() == {"name": "x", "size_bytes": 10, "relative_index": 0.5}

    def test_tier_parse(self):
        assert ActivityTier.parse("Dormant") is ActivityTier.DORMANT
        with pytest.raises(ValueError):
            ActivityTier.parse("sleepy")
