"""Ecosystem-wide aggregates: tag/stack/tier counts and status reports."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable

from toad.engine.status import TIER_ORDER, classify, tier_counts
from toad.model.records import ProjectRecord, StatusReport, VcsStatus
from toad.output.formatter import budget_truncate


def _sorted_counts(counter: Counter) -> dict[str, int]:
    return dict(sorted(counter.items()))


def status_reports(records: Iterable[ProjectRecord], now: datetime) -> list[StatusReport]:
    return [classify(r, now) for r in records]


def ecosystem_summary(records: Iterable[ProjectRecord], now: datetime) -> dict:
    """Aggregate counts over the whole snapshot."""
    records = list(records)
    tags: Counter = Counter()
    stacks: Counter = Counter()
    vcs: Counter = Counter()
    stale = 0
    for r in records:
        tags.update(r.tags)
        stacks.update(r.stack)
        vcs[r.vcs_status.value] += 1
        if classify(r, now).is_stale:
            stale += 1
    return {
        "total_projects": len(records),
        "total_size_bytes": sum(r.size_bytes for r in records),
        "stale_projects": stale,
        "by_tag": _sorted_counts(tags),
        "by_stack": _sorted_counts(stacks),
        "by_tier": tier_counts(records, now),
        "by_vcs_status": {s.value: vcs.get(s.value, 0) for s in VcsStatus},
    }


def render_overview(records: Iterable[ProjectRecord], now: datetime, token_limit: int = 0) -> str:
    """Render a markdown ecosystem overview, truncated to *token_limit*.

    Projects are grouped by activity tier (most active first) and listed by
    name within each tier.  ``token_limit`` of 0 means unlimited.
    """
    records = list(records)
    by_tier: dict = {tier: [] for tier in TIER_ORDER}
    for r in records:
        by_tier[classify(r, now).tier].append(r)

    lines = ["# Ecosystem Overview", "", f"{len(records)} projects."]
    for tier in TIER_ORDER:
        members = sorted(by_tier[tier], key=lambda r: r.name)
        if not members:
            continue
        lines.append("")
        lines.append(f"## {tier.value.title()} ({len(members)})")
        for r in members:
            line = f"- **{r.name}**"
            if r.essence:
                line += f": {r.essence}"
            extras = []
            if r.stack:
                extras.append("stack: " + ", ".join(r.stack))
            if r.tags:
                extras.append(" ".join("#" + t for t in sorted(r.tags)))
            if extras:
                line += f" ({'; '.join(extras)})"
            lines.append(line)
    return budget_truncate("\n".join(lines) + "\n", token_limit)
