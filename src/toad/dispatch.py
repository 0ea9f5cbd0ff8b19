"""Query dispatcher: the single entry point for all toad tools.

A request is a tool name plus an argument mapping.  Every request ends in
exactly one of two terminal states:

- :class:`Responded` -- a JSON-serializable result envelope
- :class:`Failed` -- a :class:`~toad.exit_codes.ToadError` with a
  machine-readable code and a human-readable message

The dispatcher pulls a fresh snapshot from the discovery collaborator for
every request and reads the clock once, so all components of one request
see the same data and the same *now*.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol

from toad.engine.bloat import bloat_index, central_size
from toad.engine.filters import FilterSpec, apply_filter
from toad.engine.ranking import rank
from toad.engine.status import classify, tier_counts
from toad.engine.summary import ecosystem_summary, render_overview, status_reports
from toad.exit_codes import (
    InvalidArguments,
    NotFound,
    ToadError,
    UnknownTool,
    UpstreamUnavailable,
)
from toad.model.records import ProjectRecord, Snapshot
from toad.output.formatter import json_envelope

log = logging.getLogger(__name__)

DEFAULT_TOKEN_LIMIT = 2000

_STR = (str,)
_STR_OR_LIST = (str, list, tuple)
_INT = (int,)

# tool -> {argument: (accepted types, required)}
TOOL_ARGUMENTS: dict[str, dict[str, tuple[tuple[type, ...], bool]]] = {
    "list_projects": {
        "name": (_STR, False),
        "tag": (_STR_OR_LIST, False),
        "stack": (_STR_OR_LIST, False),
        "activity_tier": (_STR, False),
        "vcs_status": (_STR, False),
    },
    "get_project_detail": {
        "name": (_STR, True),
    },
    "search_projects": {
        "query": (_STR, True),
        "tag": (_STR_OR_LIST, False),
    },
    "get_ecosystem_summary": {
        "token_limit": (_INT, False),
    },
    "get_ecosystem_status": {
        "name": (_STR, False),
        "tag": (_STR_OR_LIST, False),
    },
    "get_project_stats": {
        "name": (_STR, False),
        "tag": (_STR_OR_LIST, False),
    },
}

TOOL_NAMES = tuple(TOOL_ARGUMENTS)

_FILTER_KEYS = frozenset({"name", "tag", "stack", "activity_tier", "vcs_status"})

_RETRYABLE_CODES = {"UPSTREAM_UNAVAILABLE"}


class SnapshotProvider(Protocol):
    def get_snapshot(self) -> Snapshot | list[ProjectRecord]: ...


@dataclass(frozen=True)
class Responded:
    tool: str
    result: dict

    ok = True

    def to_dict(self) -> dict:
        return self.result


@dataclass(frozen=True)
class Failed:
    tool: str
    error: ToadError

    ok = False

    def to_dict(self) -> dict:
        """Structured error payload (MCP ``isError`` convention)."""
        out = self.error.to_dict()
        out["tool"] = self.tool
        out["isError"] = True
        out["retryable"] = self.error.code in _RETRYABLE_CODES
        out["suggested_action"] = out.get("hint", "check the error message")
        return out


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_arguments(tool: str, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
    """Check *arguments* against the tool's shape.

    ``None`` values count as absent.  Returns a plain dict of the present
    arguments.  Raises :class:`InvalidArguments` naming the first bad field.
    """
    shape = TOOL_ARGUMENTS[tool]
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidArguments("arguments", "expected an object")

    for key in arguments:
        if key not in shape:
            raise InvalidArguments(str(key), f"not accepted by {tool}")

    args: dict[str, Any] = {}
    for key, (types, required) in shape.items():
        value = arguments.get(key)
        if value is None:
            if required:
                raise InvalidArguments(key, "required")
            continue
        # bool is an int subclass; never a valid value here
        if isinstance(value, bool) or not isinstance(value, types):
            expected = " or ".join(t.__name__ for t in types)
            raise InvalidArguments(key, f"expected {expected}, got {type(value).__name__}")
        if isinstance(value, int) and value < 0:
            raise InvalidArguments(key, "must be >= 0")
        args[key] = value

    # surface bad tier/status values before any discovery work happens
    filter_args = {k: v for k, v in args.items() if k in _FILTER_KEYS}
    if filter_args and tool != "get_project_detail":
        FilterSpec.from_arguments(filter_args)
    return args


class QueryDispatcher:
    """Route tool requests to the engine components.

    Parameters
    ----------
    discovery:
        Object with ``get_snapshot()``; optionally ``load_context(record)``
        for CONTEXT.md deep-dives.
    clock:
        Returns the request's reference time (aware UTC).
    context_loader:
        Overrides ``discovery.load_context``.
    default_token_limit:
        Budget for the rendered ecosystem overview when the caller passes none.
    """

    def __init__(
        self,
        discovery: SnapshotProvider,
        clock: Callable[[], datetime] | None = None,
        context_loader: Callable[[ProjectRecord], str | None] | None = None,
        default_token_limit: int = DEFAULT_TOKEN_LIMIT,
    ):
        self.discovery = discovery
        self.clock = clock or _utcnow
        self.context_loader = context_loader or getattr(discovery, "load_context", None)
        self.default_token_limit = default_token_limit
        self._handlers: dict[str, Callable[[Snapshot, dict, datetime], dict]] = {
            "list_projects": self._list_projects,
            "get_project_detail": self._get_project_detail,
            "search_projects": self._search_projects,
            "get_ecosystem_summary": self._get_ecosystem_summary,
            "get_ecosystem_status": self._get_ecosystem_status,
            "get_project_stats": self._get_project_stats,
        }

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def dispatch(self, tool: str, arguments: Mapping[str, Any] | None = None) -> Responded | Failed:
        try:
            if tool not in self._handlers:
                raise UnknownTool(tool)
            args = validate_arguments(tool, arguments)
            snapshot = self._snapshot()
            now = self.clock()
            return Responded(tool, self._handlers[tool](snapshot, args, now))
        except ToadError as exc:
            log.info("%s failed: %s %s", tool, exc.code, exc.message)
            return Failed(tool, exc)

    def _snapshot(self) -> Snapshot:
        try:
            return Snapshot.coerce(self.discovery.get_snapshot())
        except Exception as exc:
            message = exc.message if isinstance(exc, ToadError) else str(exc)
            raise UpstreamUnavailable(f"Project discovery failed: {message}") from exc

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _project_summary(self, record: ProjectRecord, now: datetime) -> dict:
        status = classify(record, now)
        out = record.to_dict()
        out["activity"] = status.tier.value
        out["is_stale"] = status.is_stale
        return out

    @staticmethod
    def _base_summary(snapshot: Snapshot, verdict: str, **extra) -> dict:
        summary = {"verdict": verdict, "diagnostics": list(snapshot.diagnostics)}
        summary.update(extra)
        return summary

    def _list_projects(self, snapshot: Snapshot, args: dict, now: datetime) -> dict:
        spec = FilterSpec.from_arguments(args)
        matched = apply_filter(snapshot.records, spec, now)
        return json_envelope(
            "list_projects",
            summary=self._base_summary(
                snapshot,
                f"{len(matched)} of {len(snapshot)} projects",
                total_projects=len(snapshot),
                matched=len(matched),
            ),
            projects=[self._project_summary(r, now) for r in matched],
        )

    def _get_project_detail(self, snapshot: Snapshot, args: dict, now: datetime) -> dict:
        name = args["name"]
        record = snapshot.find(name)
        if record is None:
            raise NotFound(name)
        context = None
        if self.context_loader is not None:
            try:
                context = self.context_loader(record)
            except Exception as exc:
                raise UpstreamUnavailable(f"Cannot load context for '{name}': {exc}") from exc
        detail = self._project_summary(record, now)
        detail["context_detail"] = context
        return json_envelope(
            "get_project_detail",
            summary=self._base_summary(
                snapshot,
                f"{name}: {detail['activity']}, {detail['vcs_status']}",
                has_context=context is not None,
            ),
            project=detail,
        )

    def _search_projects(self, snapshot: Snapshot, args: dict, now: datetime) -> dict:
        query = args["query"]
        candidates = snapshot.records
        if "tag" in args:
            candidates = apply_filter(candidates, FilterSpec.from_arguments({"tag": args["tag"]}), now)
        hits = rank(candidates, query)
        return json_envelope(
            "search_projects",
            summary=self._base_summary(
                snapshot,
                f'{len(hits)} matches for "{query}"',
                query=query,
                total_matches=len(hits),
            ),
            results=[h.to_dict() for h in hits],
        )

    def _get_ecosystem_summary(self, snapshot: Snapshot, args: dict, now: datetime) -> dict:
        token_limit = args.get("token_limit")
        if token_limit is None:
            configured = getattr(self.discovery, "ecosystem_tokens", None)
            token_limit = configured if configured is not None else self.default_token_limit
        counts = ecosystem_summary(snapshot.records, now)
        return json_envelope(
            "get_ecosystem_summary",
            summary=self._base_summary(
                snapshot,
                f"{counts['total_projects']} projects, {counts['stale_projects']} stale",
                total_projects=counts["total_projects"],
                stale_projects=counts["stale_projects"],
                token_limit=token_limit,
            ),
            ecosystem=counts,
            overview=render_overview(snapshot.records, now, token_limit),
        )

    def _get_ecosystem_status(self, snapshot: Snapshot, args: dict, now: datetime) -> dict:
        records = apply_filter(snapshot.records, FilterSpec.from_arguments(args), now)
        reports = status_reports(records, now)
        stale = sum(1 for r in reports if r.is_stale)
        return json_envelope(
            "get_ecosystem_status",
            summary=self._base_summary(
                snapshot,
                f"{len(reports)} projects, {stale} stale",
                total=len(reports),
                stale=stale,
                by_tier=tier_counts(records, now),
            ),
            projects=[r.to_dict() for r in reports],
        )

    def _get_project_stats(self, snapshot: Snapshot, args: dict, now: datetime) -> dict:
        # index is relative to the whole workspace; filters only narrow the report
        entries = bloat_index(snapshot.records)
        spec = FilterSpec.from_arguments(args)
        if not spec.is_empty:
            keep = {r.name for r in apply_filter(snapshot.records, spec, now)}
            entries = [e for e in entries if e.record_name in keep]
        mean = central_size(snapshot.records)
        return json_envelope(
            "get_project_stats",
            summary=self._base_summary(
                snapshot,
                f"{len(entries)} projects, mean size {round(mean)} bytes",
                central_value="mean",
                mean_size_bytes=round(mean, 2),
                total_size_bytes=sum(e.size_bytes for e in entries),
            ),
            entries=[e.to_dict() for e in entries],
        )
