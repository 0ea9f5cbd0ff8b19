"""Conjunctive project filters.

Every option of a :class:`FilterSpec` is optional; set options combine with
AND and unset ones pass everything through.  Filtering never reorders.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from toad.engine.status import classify_tier
from toad.exit_codes import InvalidArguments
from toad.model.records import ActivityTier, ProjectRecord, VcsStatus, normalize_tag


@dataclass(frozen=True)
class FilterSpec:
    name: str | None = None
    tags: frozenset[str] | None = None
    stacks: frozenset[str] | None = None
    activity_tier: ActivityTier | None = None
    vcs_status: VcsStatus | None = None

    @property
    def is_empty(self) -> bool:
        return (
            not self.name
            and not self.tags
            and not self.stacks
            and self.activity_tier is None
            and self.vcs_status is None
        )

    @classmethod
    def from_arguments(cls, args: Mapping[str, Any]) -> "FilterSpec":
        """Build a filter from raw tool arguments.

        Recognised keys: ``name``, ``tag``, ``stack``, ``activity_tier``,
        ``vcs_status``.  Raises :class:`InvalidArguments` naming the first
        bad field.  Callers are responsible for rejecting unknown keys.
        """
        name = args.get("name")
        if name is not None and not isinstance(name, str):
            raise InvalidArguments("name", "expected a string")

        tags = _string_set(args.get("tag"), "tag", normalize_tag)
        stacks = _string_set(args.get("stack"), "stack", lambda s: s.strip().lower())

        tier = None
        raw_tier = args.get("activity_tier")
        if raw_tier is not None and raw_tier != "":
            try:
                tier = ActivityTier.parse(raw_tier)
            except ValueError:
                choices = ", ".join(t.value for t in ActivityTier)
                raise InvalidArguments("activity_tier", f"expected one of {choices}") from None

        status = None
        raw_status = args.get("vcs_status")
        if raw_status is not None and raw_status != "":
            try:
                status = VcsStatus.parse(raw_status)
            except ValueError:
                choices = ", ".join(s.value for s in VcsStatus)
                raise InvalidArguments("vcs_status", f"expected one of {choices}") from None

        return cls(
            name=name.strip().lower() if name else None,
            tags=tags,
            stacks=stacks,
            activity_tier=tier,
            vcs_status=status,
        )

    def matches(self, record: ProjectRecord, now: datetime) -> bool:
        if self.name and self.name not in record.name.lower():
            return False
        if self.tags and not (self.tags & record.tags):
            return False
        if self.stacks and not any(s in self.stacks for s in record.stack):
            return False
        if self.vcs_status is not None and record.vcs_status is not self.vcs_status:
            return False
        if self.activity_tier is not None:
            if classify_tier(record.last_activity, now) is not self.activity_tier:
                return False
        return True


def _string_set(value: Any, field: str, normalize) -> frozenset[str] | None:
    """Accept a string or a list of strings; empty input means unset."""
    if value is None:
        return None
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        raise InvalidArguments(field, "expected a string or a list of strings")
    if not all(isinstance(item, str) for item in items):
        raise InvalidArguments(field, "expected a string or a list of strings")
    normalized = frozenset(n for n in (normalize(item) for item in items) if n)
    return normalized or None


def apply_filter(records: Iterable[ProjectRecord], spec: FilterSpec, now: datetime) -> list[ProjectRecord]:
    """Return the records matching *spec*, in their original order."""
    if spec.is_empty:
        return list(records)
    return [r for r in records if spec.matches(r, now)]
