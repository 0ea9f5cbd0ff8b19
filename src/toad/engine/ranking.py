"""Deterministic weighted multi-field project search.

Each query token is matched against four fields of every record.  A field
contributes ``weight * strength`` per token, where strength is 1.0 for an
exact token match, 0.5 for a substring match and 0.0 otherwise:

    field    weight
    name     4.0
    essence  3.0
    tags     2.0
    stack    1.0

Records scoring 0 are dropped.  Hits are ordered by score descending, then
name ascending (plain code-point comparison, independent of locale).
"""

from __future__ import annotations

import re
from typing import Iterable

from toad.model.records import ProjectRecord, SearchHit

FIELD_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("name", 4.0),
    ("essence", 3.0),
    ("tags", 2.0),
    ("stack", 1.0),
)

EXACT_MATCH = 1.0
SUBSTRING_MATCH = 0.5

_WORD_RE = re.compile(r"[a-z0-9]+")


def tokenize_query(query: str) -> list[str]:
    """Lowercase, split on whitespace, strip ``#``, drop empties and repeats."""
    if not query:
        return []
    tokens: list[str] = []
    for raw in query.lower().split():
        token = raw.lstrip("#")
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def _field_views(record: ProjectRecord) -> dict[str, tuple[frozenset[str], tuple[str, ...]]]:
    """Per field: (exact-match tokens, texts searched for substrings)."""
    name = record.name.lower()
    essence = record.essence.lower()
    return {
        "name": (frozenset(_WORD_RE.findall(name)) | {name}, (name,)),
        "essence": (frozenset(_WORD_RE.findall(essence)), (essence,)),
        "tags": (record.tags, tuple(sorted(record.tags))),
        "stack": (frozenset(record.stack), record.stack),
    }


def _strength(token: str, exact: frozenset[str], texts: tuple[str, ...]) -> float:
    if token in exact:
        return EXACT_MATCH
    if any(token in text for text in texts):
        return SUBSTRING_MATCH
    return 0.0


def score_record(record: ProjectRecord, tokens: list[str]) -> SearchHit:
    views = _field_views(record)
    total = 0.0
    matched: list[str] = []
    for field, weight in FIELD_WEIGHTS:
        exact, texts = views[field]
        contribution = sum(weight * _strength(tok, exact, texts) for tok in tokens)
        if contribution > 0:
            matched.append(field)
            total += contribution
    return SearchHit(record_name=record.name, score=total, matched_fields=tuple(matched))


def rank(records: Iterable[ProjectRecord], query: str) -> list[SearchHit]:
    """Score *records* against *query*; an empty query matches nothing."""
    tokens = tokenize_query(query)
    if not tokens:
        return []
    hits = [score_record(r, tokens) for r in records]
    hits = [h for h in hits if h.score > 0]
    hits.sort(key=lambda h: (-h.score, h.record_name))
    return hits
