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


@dataclass(frozen=True)
class Observability:
    logger: StructuredLogger
    metrics: MetricsRecorder

    def log_decode_failure(
        self, *, error_kind: str, error_detail: str, entry_index: int | None = None
    ) -> None:
        self.logger.log(
            logging.WARNING,
            "field_events.decode_failure",
            {
                "error_kind": error_kind,
                "error_detail": error_detail,
                "entry_index": entry_index,
            },
        )
        self.metrics.increment("field_events.decode_failures", tags={"error_kind": error_kind})

    def log_misrouted_fix(self, *, user_id: str, timestamp_ms: int) -> None:
        self.logger.log(
            logging.DEBUG,
            "field_events.misrouted_fix_recovered",
            {"user_id": user_id, "timestamp_ms": timestamp_ms},
        )


def null_observability() -> Observability:
    return Observability(logger=NullLogger(), metrics=NullMetrics())
