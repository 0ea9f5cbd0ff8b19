"""Tests for output formatting helpers and the JSON envelope."""

from __future__ import annotations

import json

from toad.output.formatter import (
    ENVELOPE_SCHEMA_NAME,
    budget_truncate,
    compact_json_envelope,
    estimate_tokens,
    format_size,
    format_table,
    format_table_compact,
    json_envelope,
    to_json,
    truncate_text,
)


class TestFormatSize:
    def test_bytes(self):
        assert format_size(512) == "512 B"

    def test_kilobytes(self):
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(5 * 1024 * 1024) == "5.0 MB"

    def test_caps_at_gigabytes(self):
        assert format_size(3 * 1024 ** 4) == "3072.0 GB"


class TestTruncateText:
    def test_short_unchanged(self):
        assert truncate_text("hello") == "hello"

    def test_long_clipped(self):
        out = truncate_text("x" * 100, 20)
        assert len(out) == 20
        assert out.endswith("...")

    def test_whitespace_collapsed(self):
        assert truncate_text("a\n  b\tc") == "a b c"

    def test_empty(self):
        assert truncate_text("") == ""


class TestTables:
    def test_padded(self):
        out = format_table(["Name", "Size"], [["alpha", "1 B"], ["b", "20 KB"]])
        lines = out.splitlines()
        assert lines[0].startswith("Name ")
        assert lines[1].startswith("-----")
        assert lines[2] == "alpha  1 B"

    def test_empty(self):
        assert format_table(["A"], []) == "(none)"
        assert format_table_compact(["A"], []) == "(none)"

    def test_budget(self):
        out = format_table(["N"], [[str(i)] for i in range(5)], budget=2)
        assert out.splitlines()[-1] == "(+3 more)"

    def test_compact(self):
        assert format_table_compact(["A", "B"], [["1", "2"]]) == "A\tB\n1\t2"


class TestBudget:
    def test_zero_is_unlimited(self):
        text = "x" * 10_000
        assert budget_truncate(text, 0) == text

    def test_fits(self):
        assert budget_truncate("short", 100) == "short"

    def test_truncates_on_line_boundary(self):
        text = "\n".join(f"line {i:04d}" for i in range(200))
        out = budget_truncate(text, 20)
        body, notice = out.split("\n\n... truncated")
        assert body.splitlines()[-1].startswith("line ")
        assert len(body.splitlines()[-1]) == len("line 0000")
        assert "budget: 20 tokens" in notice

    def test_estimate_tokens(self):
        assert estimate_tokens("") == 1
        assert estimate_tokens("x" * 400) == 100


class TestEnvelope:
    def test_keys(self):
        env = json_envelope("list_projects", summary={"verdict": "ok"}, projects=[])
        assert env["schema"] == ENVELOPE_SCHEMA_NAME
        assert env["command"] == "list_projects"
        assert env["summary"] == {"verdict": "ok"}
        assert env["projects"] == []
        assert isinstance(env["version"], str)

    def test_no_timestamp(self):
        env = json_envelope("x")
        assert not any("time" in k for k in env)

    def test_compact(self):
        env = compact_json_envelope(json_envelope("x", summary={"verdict": "v"}, items=[1]))
        assert set(env) == {"command", "summary", "items"}

    def test_to_json_sorted(self):
        out = to_json({"b": 1, "a": 2})
        assert out.index('"a"') < out.index('"b"')
        assert json.loads(out) == {"a": 2, "b": 1}
