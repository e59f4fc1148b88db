from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol


class StructuredLogger(Protocol):
    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None: ...


class MetricsRecorder(Protocol):
    def increment(
        self, name: str, value: int = 1, tags: Mapping[str, str] | None = None
    ) -> None: ...

    def observe(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None: ...

    def gauge(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None: ...


@dataclass(frozen=True)
class StdlibLogger:
    logger: logging.Logger

    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None:
        self.logger.log(level, message, extra={"fields": dict(fields)})


@dataclass(frozen=True)
class NullLogger:
    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None:
        return None


@dataclass(frozen=True)
class NullMetrics:
    def increment(
        self, name: str, value: int = 1, tags: Mapping[str, str] | None = None
    ) -> None:
        return None

    def observe(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None:
        return None

    def gauge(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None:
        return None


@dataclass
class Observability:
    logger: StructuredLogger
    metrics: MetricsRecorder

    def log_event_rejected(
        self, *, user_id: str, event_type: str, timestamp_ms: int, civil_date: str, reason: str | None
    ) -> None:
        self.logger.log(
            logging.WARNING,
            "daily_store.event.rejected",
            {
                "user_id": user_id,
                "event_type": event_type,
                "timestamp_ms": timestamp_ms,
                "civil_date": civil_date,
                "reason": reason,
            },
        )
        self.metrics.increment(
            "daily_store.events.rejected", tags={"reason": reason or "unknown"}
        )

    def log_event_duplicate(
        self, *, user_id: str, event_type: str, timestamp_ms: int, civil_date: str
    ) -> None:
        self.logger.log(
            logging.DEBUG,
            "daily_store.event.duplicate",
            {
                "user_id": user_id,
                "event_type": event_type,
                "timestamp_ms": timestamp_ms,
                "civil_date": civil_date,
            },
        )
        self.metrics.increment("daily_store.events.duplicate", tags={"event_type": event_type})

    def log_event_accepted(
        self, *, user_id: str, event_type: str, civil_date: str, activity_score: int
    ) -> None:
        self.logger.log(
            logging.DEBUG,
            "daily_store.event.accepted",
            {
                "user_id": user_id,
                "event_type": event_type,
                "civil_date": civil_date,
                "activity_score": activity_score,
            },
        )
        self.metrics.increment("daily_store.events.accepted", tags={"event_type": event_type})

    def log_rollover(self, *, previous_date: str, civil_date: str, users_dropped: int) -> None:
        self.logger.log(
            logging.INFO,
            "daily_store.rollover",
            {
                "previous_date": previous_date,
                "civil_date": civil_date,
                "users_dropped": users_dropped,
            },
        )
        self.metrics.gauge("daily_store.users", 0.0)

    def log_user_cleared(self, *, user_id: str, civil_date: str) -> None:
        self.logger.log(
            logging.INFO,
            "daily_store.user.cleared",
            {"user_id": user_id, "civil_date": civil_date},
        )

    def log_reconstruction_started(self, *, civil_date: str, user_id: str | None) -> None:
        self.logger.log(
            logging.INFO,
            "daily_store.reconstruction.started",
            {"civil_date": civil_date, "user_id": user_id},
        )

    def log_reconstruction_completed(
        self,
        *,
        civil_date: str,
        user_id: str | None,
        entries: int,
        records: int,
        duration_ms: float,
    ) -> None:
        self.logger.log(
            logging.INFO,
            "daily_store.reconstruction.completed",
            {
                "civil_date": civil_date,
                "user_id": user_id,
                "entries": entries,
                "records": records,
                "duration_ms": round(duration_ms, 3),
            },
        )
        self.metrics.observe("daily_store.reconstruction.duration_ms", duration_ms)

    def log_reconstruction_failed(
        self, *, civil_date: str, user_id: str | None, error: BaseException
    ) -> None:
        self.logger.log(
            logging.ERROR,
            "daily_store.reconstruction.failed",
            {
                "civil_date": civil_date,
                "user_id": user_id,
                "error_kind": type(error).__name__,
                "error_detail": str(error),
            },
        )
        self.metrics.increment("daily_store.reconstruction.failures")

    def log_cache_hit(self, *, civil_date: str, user_id: str | None, coalesced: bool) -> None:
        self.logger.log(
            logging.DEBUG,
            "daily_store.cache.hit",
            {"civil_date": civil_date, "user_id": user_id, "coalesced": coalesced},
        )
        self.metrics.increment(
            "daily_store.cache.hits", tags={"coalesced": "true" if coalesced else "false"}
        )

    def log_cache_evicted(
        self, *, civil_date: str | None, user_id: str | None, keys: int
    ) -> None:
        self.logger.log(
            logging.INFO,
            "daily_store.cache.evicted",
            {"civil_date": civil_date, "user_id": user_id, "keys": keys},
        )

    def log_scheduler_armed(self, *, civil_date: str, delay_ms: int) -> None:
        self.logger.log(
            logging.INFO,
            "daily_store.scheduler.armed",
            {"civil_date": civil_date, "delay_ms": delay_ms},
        )


def null_observability() -> Observability:
    return Observability(logger=NullLogger(), metrics=NullMetrics())
