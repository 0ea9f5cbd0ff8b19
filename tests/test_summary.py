"""Tests for ecosystem aggregates and the rendered overview."""

from __future__ import annotations

from tests.conftest import NOW, days_ago, make_record
from toad.engine.summary import ecosystem_summary, render_overview, status_reports


def _records():
    return [
        make_record("alpha", essence="Query engine", tags=["core"], stack=["python"], size_bytes=100),
        make_record("beta", tags=["core", "web"], stack=["node"], vcs_status="dirty",
                    size_bytes=300, last_activity=days_ago(20)),
        make_record("gamma", vcs_status="no-repo", size_bytes=0, last_activity=days_ago(365)),
    ]


class TestEcosystemSummary:
    def test_counts(self):
        s = ecosystem_summary(_records(), NOW)
        assert s["total_projects"] == 3
        assert s["total_size_bytes"] == 400
        assert s["stale_projects"] == 1
        assert s["by_tag"] == {"core": 2, "web": 1}
        assert s["by_stack"] == {"node": 1, "python": 1}
        assert s["by_tier"] == {"active": 1, "maturing": 1, "dormant": 0, "stale": 1, "unknown": 0}
        assert s["by_vcs_status"] == {
            "clean": 1, "dirty": 1, "untracked": 0, "no-repo": 1, "unknown": 0,
        }

    def test_empty(self):
        s = ecosystem_summary([], NOW)
        assert s["total_projects"] == 0
        assert s["by_tag"] == {}
        assert sum(s["by_tier"].values()) == 0


def test_status_reports_one_per_record():
    reports = status_reports(_records(), NOW)
    assert [r.record_name for r in reports] == ["alpha", "beta", "gamma"]
    assert [r.is_stale for r in reports] == [False, False, True]


class TestRenderOverview:
    def test_grouped_by_tier(self):
        text = render_overview(_records(), NOW)
        assert text.startswith("# Ecosystem Overview")
        assert "3 projects." in text
        assert text.index("## Active (1)") < text.index("## Maturing (1)") < text.index("## Stale (1)")
        assert "- **alpha**: Query engine (stack: python; #core)" in text
        assert "## Dormant" not in text

    def test_unlimited_when_zero(self):
        records = [make_record(f"p{i:03d}", essence="x" * 80) for i in range(100)]
        assert "truncated" not in render_overview(records, NOW, token_limit=0)

    def test_truncated_to_budget(self):
        records = [make_record(f"p{i:03d}", essence="x" * 80) for i in range(100)]
        text = render_overview(records, NOW, token_limit=50)
        assert "... truncated (budget: 50 tokens" in text
        assert len(text) < 400

    def test_empty(self):
        assert render_overview([], NOW) == "# Ecosystem Overview\n\n0 projects.\n"
