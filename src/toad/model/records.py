"""Normalized in-memory project records and the per-query result shapes."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from toad.exit_codes import InvalidRecord

log = logging.getLogger(__name__)


class VcsStatus(str, enum.Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    UNTRACKED = "untracked"
    NO_REPO = "no-repo"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "VcsStatus":
        """Parse ``Clean``, ``no_repo``, ``NoRepo`` etc. into a member.

        Raises ValueError for anything else.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        if key == "norepo":
            key = "no-repo"
        return cls(key)


class ActivityTier(str, enum.Enum):
    ACTIVE = "active"
    MATURING = "maturing"
    DORMANT = "dormant"
    STALE = "stale"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "ActivityTier":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


def normalize_tag(tag: str) -> str:
    """Lowercase a tag and strip a leading ``#`` (``#Backend`` -> ``backend``)."""
    return str(tag).strip().lstrip("#").strip().lower()


def to_utc(value: Any) -> datetime | None:
    """Coerce a datetime, POSIX timestamp or ISO-8601 string to aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise TypeError("timestamp cannot be a boolean")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise TypeError(f"unsupported timestamp type {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(ts: datetime | None) -> str | None:
    if ts is None:
        return None
    return ts.replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ProjectRecord:
    """One discovered project's normalized facts.

    Construction validates and normalizes; instances are never mutated.
    ``context_detail`` stays ``None`` except for single-project detail
    requests.
    """

    name: str
    essence: str = ""
    tags: frozenset[str] = frozenset()
    stack: tuple[str, ...] = ()
    vcs_status: VcsStatus = VcsStatus.UNKNOWN
    last_activity: datetime | None = None
    size_bytes: int = 0
    context_detail: str | None = None
    path: Path | None = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidRecord("Project record has an empty name", name=None)
        size = self.size_bytes
        if isinstance(size, bool) or not isinstance(size, int):
            raise InvalidRecord(
                f"Project '{self.name}' has a non-integer size_bytes: {size!r}",
                name=self.name,
            )
        if size < 0:
            raise InvalidRecord(
                f"Project '{self.name}' has negative size_bytes: {size}",
                name=self.name,
            )
        try:
            status = VcsStatus.parse(self.vcs_status)
        except ValueError:
            raise InvalidRecord(
                f"Project '{self.name}' has unknown vcs_status: {self.vcs_status!r}",
                name=self.name,
            ) from None
        try:
            last_activity = to_utc(self.last_activity)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise InvalidRecord(
                f"Project '{self.name}' has an invalid last_activity: {exc}",
                name=self.name,
            ) from None

        for key in ("essence", "context_detail"):
            value = getattr(self, key)
            if value is not None and not isinstance(value, str):
                raise InvalidRecord(
                    f"Project '{self.name}' has a non-string {key}: {value!r}",
                    name=self.name,
                )
        if self.path is not None and not isinstance(self.path, (str, os.PathLike)):
            raise InvalidRecord(
                f"Project '{self.name}' has an invalid path: {self.path!r}",
                name=self.name,
            )
        tags = _string_items(self.tags, "tags", self.name)
        stack = _string_items(self.stack, "stack", self.name)

        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "essence", (self.essence or "").strip())
        object.__setattr__(self, "tags", frozenset(t for t in (normalize_tag(t) for t in tags) if t))
        object.__setattr__(self, "stack", _dedupe(s.strip().lower() for s in stack))
        object.__setattr__(self, "vcs_status", status)
        object.__setattr__(self, "last_activity", last_activity)
        if self.path is not None:
            object.__setattr__(self, "path", Path(self.path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectRecord":
        """Build a record from a raw mapping, ignoring unknown keys."""
        if not isinstance(data, Mapping):
            raise InvalidRecord(f"Project record must be a mapping, got {type(data).__name__}")
        return cls(
            name=data.get("name", ""),
            essence=data.get("essence") or "",
            tags=data.get("tags") or (),
            stack=data.get("stack") or (),
            vcs_status=data.get("vcs_status") or VcsStatus.UNKNOWN,
            last_activity=data.get("last_activity"),
            size_bytes=data.get("size_bytes", 0),
            context_detail=data.get("context_detail"),
            path=data.get("path"),
        )

    def to_dict(self, include_context: bool = False) -> dict:
        out = {
            "name": self.name,
            "essence": self.essence,
            "tags": sorted(self.tags),
            "stack": list(self.stack),
            "vcs_status": self.vcs_status.value,
            "last_activity": _iso(self.last_activity),
            "size_bytes": self.size_bytes,
        }
        if include_context:
            out["context_detail"] = self.context_detail
        return out


def _string_items(value: Any, key: str, name: str) -> list[str]:
    """A single string or a collection of strings; anything else is invalid."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set, frozenset)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise InvalidRecord(
        f"Project '{name}' has an invalid {key}: expected a string or a list of strings",
        name=name,
    )


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    out = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


@dataclass(frozen=True)
class Snapshot:
    """The records handed to one query plus diagnostics for rejected ones."""

    records: tuple[ProjectRecord, ...] = ()
    diagnostics: tuple[str, ...] = ()

    @classmethod
    def coerce(cls, value: Any) -> "Snapshot":
        """Accept a Snapshot or any iterable of records / record mappings.

        Mappings that fail validation are excluded and recorded as
        diagnostics rather than failing the whole snapshot.
        """
        if isinstance(value, Snapshot):
            return value
        records = []
        diagnostics = []
        for item in value or ():
            if isinstance(item, ProjectRecord):
                records.append(item)
                continue
            try:
                records.append(ProjectRecord.from_dict(item))
            except InvalidRecord as exc:
                log.warning("rejected project record: %s", exc.message)
                diagnostics.append(exc.message)
        return cls(records=tuple(records), diagnostics=tuple(diagnostics))

    def find(self, name: str) -> ProjectRecord | None:
        for record in self.records:
            if record.name == name:
                return record
        return None

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class StatusReport:
    record_name: str
    vcs_status: VcsStatus
    tier: ActivityTier
    is_stale: bool
    last_activity: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.record_name,
            "vcs_status": self.vcs_status.value,
            "activity": self.tier.value,
            "is_stale": self.is_stale,
            "last_activity": _iso(self.last_activity),
        }


@dataclass(frozen=True)
class SearchHit:
    record_name: str
    score: float
    matched_fields: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "name": self.record_name,
            "score": round(self.score, 4),
            "matched_fields": list(self.matched_fields),
        }


@dataclass(frozen=True)
class BloatEntry:
    record_name: str
    size_bytes: int
    relative_index: float

    def to_dict(self) -> dict:
        return {
            "name": self.record_name,
            "size_bytes": self.size_bytes,
            "relative_index": round(self.relative_index, 4),
        }
