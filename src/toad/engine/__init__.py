"""Query and aggregation engine over project snapshots."""

from toad.engine.bloat import bloat_index, central_size
from toad.engine.filters import FilterSpec, apply_filter
from toad.engine.ranking import FIELD_WEIGHTS, rank, tokenize_query
from toad.engine.status import classify, classify_tier, tier_counts
from toad.engine.summary import ecosystem_summary, render_overview, status_reports

__all__ = [
    "FilterSpec",
    "apply_filter",
    "rank",
    "tokenize_query",
    "FIELD_WEIGHTS",
    "classify",
    "classify_tier",
    "tier_counts",
    "bloat_index",
    "central_size",
    "ecosystem_summary",
    "render_overview",
    "status_reports",
]
