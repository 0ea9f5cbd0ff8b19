"""Activity tier and staleness classification.

Tiers come from the age of ``last_activity`` relative to an explicit *now*:

    active    age <   7 days
    maturing  age <  30 days
    dormant   age < 180 days
    stale     age >= 180 days
    unknown   no timestamp

A timestamp in the future has age 0.  The classifier never reads the
clock; callers pass *now* so results are reproducible.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable

from toad.model.records import ActivityTier, ProjectRecord, StatusReport, VcsStatus, to_utc

ACTIVE_DAYS = 7
MATURING_DAYS = 30
DORMANT_DAYS = 180

_THRESHOLDS = (
    (timedelta(days=ACTIVE_DAYS), ActivityTier.ACTIVE),
    (timedelta(days=MATURING_DAYS), ActivityTier.MATURING),
    (timedelta(days=DORMANT_DAYS), ActivityTier.DORMANT),
)

_STALE_TIERS = frozenset({ActivityTier.DORMANT, ActivityTier.STALE})

# Stable display/aggregation order
TIER_ORDER = (
    ActivityTier.ACTIVE,
    ActivityTier.MATURING,
    ActivityTier.DORMANT,
    ActivityTier.STALE,
    ActivityTier.UNKNOWN,
)


def classify_tier(last_activity: datetime | None, now: datetime) -> ActivityTier:
    if last_activity is None:
        return ActivityTier.UNKNOWN
    age = to_utc(now) - to_utc(last_activity)
    if age < timedelta(0):
        age = timedelta(0)
    for limit, tier in _THRESHOLDS:
        if age < limit:
            return tier
    return ActivityTier.STALE


def classify(record: ProjectRecord, now: datetime) -> StatusReport:
    """Derive tier and the ``is_stale`` flag for *record* at *now*.

    ``is_stale`` is set for dormant/stale tiers, and for projects whose VCS
    state is unknown and that have no timestamp at all.
    """
    tier = classify_tier(record.last_activity, now)
    is_stale = tier in _STALE_TIERS or (
        record.vcs_status is VcsStatus.UNKNOWN and record.last_activity is None
    )
    return StatusReport(
        record_name=record.name,
        vcs_status=record.vcs_status,
        tier=tier,
        is_stale=is_stale,
        last_activity=record.last_activity,
    )


def tier_counts(records: Iterable[ProjectRecord], now: datetime) -> dict[str, int]:
    """Count records per tier; every tier is present, zero or not."""
    counts = Counter(classify_tier(r.last_activity, now) for r in records)
    return {tier.value: counts.get(tier, 0) for tier in TIER_ORDER}
