from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from field_events.contracts import SessionUpdate

IdleStrategy = Literal["explicit", "gap_estimate"]

IDLE_EXPLICIT: IdleStrategy = "explicit"
IDLE_GAP_ESTIMATE: IdleStrategy = "gap_estimate"

DEFAULT_IDLE_GAP_MS = 5 * 60 * 1000


@dataclass(frozen=True)
class SessionSummary:
    total_session_ms: int
    idle_time_ms: int
    session_count: int
    strategy: IdleStrategy

    @property
    def idle_ratio(self) -> float:
        """Idle share of session time, clamped to ``[0, 1]``; 0 without sessions."""

        if self.total_session_ms <= 0:
            return 0.0
        return max(0.0, min(self.idle_time_ms / self.total_session_ms, 1.0))


def summarize_explicit(updates: Iterable[SessionUpdate]) -> SessionSummary:
    """Session and idle totals from explicit transitions.

    Open intervals are closed at the last update seen. Cumulative counters
    reported by the client win over interval-derived totals.
    """

    ordered = sorted(updates, key=lambda update: update.timestamp_ms)
    session_ms = 0
    idle_ms = 0
    session_count = 0
    session_open: int | None = None
    idle_open: int | None = None
    reported_session: int | None = None
    reported_idle: int | None = None

    for update in ordered:
        ts = update.timestamp_ms
        if update.kind == "session_start":
            session_count += 1
            if session_open is not None:
                session_ms += ts - session_open
            if idle_open is not None:
                idle_ms += ts - idle_open
                idle_open = None
            session_open = ts
        elif update.kind == "session_end":
            if session_open is not None:
                session_ms += ts - session_open
                session_open = None
            if idle_open is not None:
                idle_ms += ts - idle_open
                idle_open = None
        elif update.kind == "idle_detected":
            if idle_open is None:
                idle_open = ts
        elif update.kind == "active_resumed":
            if idle_open is not None:
                idle_ms += ts - idle_open
                idle_open = None

        if update.session_duration_ms is not None:
            reported_session = update.session_duration_ms
        if update.idle_time_ms is not None:
            reported_idle = update.idle_time_ms

    if ordered:
        last_ts = ordered[-1].timestamp_ms
        if session_open is not None:
            session_ms += last_ts - session_open
        if idle_open is not None:
            idle_ms += last_ts - idle_open

    return SessionSummary(
        total_session_ms=reported_session if reported_session is not None else session_ms,
        idle_time_ms=reported_idle if reported_idle is not None else idle_ms,
        session_count=session_count,
        strategy=IDLE_EXPLICIT,
    )


def summarize_gap_estimate(
    updates: Iterable[SessionUpdate],
    event_timestamps: Iterable[int],
    *,
    idle_gap_ms: int = DEFAULT_IDLE_GAP_MS,
) -> SessionSummary:
    """Idle estimated from silence between events, for replayed days."""

    explicit = summarize_explicit(updates)
    timestamps = sorted(event_timestamps)

    idle_ms = 0
    for previous, current in zip(timestamps, timestamps[1:]):
        gap = current - previous
        if gap > idle_gap_ms:
            idle_ms += gap

    total_session_ms = explicit.total_session_ms
    if total_session_ms <= 0 and len(timestamps) >= 2:
        total_session_ms = timestamps[-1] - timestamps[0]

    return SessionSummary(
        total_session_ms=total_session_ms,
        idle_time_ms=idle_ms,
        session_count=explicit.session_count,
        strategy=IDLE_GAP_ESTIMATE,
    )
