from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol


class StructuredLogger(Protocol):
    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None: ...

    def is_enabled_for(self, level: int) -> bool: ...


@dataclass(frozen=True)
class StdlibLogger:
    logger: logging.Logger

    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None:
        self.logger.log(level, message, extra={"fields": dict(fields)})

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)


@dataclass(frozen=True)
class NullLogger:
    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None:
        return None

    def is_enabled_for(self, level: int) -> bool:
        return False


@dataclass(frozen=True)
class Observability:
    logger: StructuredLogger

    def log_day_computed(
        self,
        *,
        user_id: str,
        civil_date: str,
        idle_strategy: str,
        activity_score: int,
        active_time_ms: int,
        distance_m: float,
        total_actions: int,
        score_components: Mapping[str, float] | None = None,
    ) -> None:
        fields: dict[str, object] = {
            "user_id": user_id,
            "civil_date": civil_date,
            "idle_strategy": idle_strategy,
            "activity_score": activity_score,
            "active_time_ms": active_time_ms,
            "distance_m": round(distance_m, 3),
            "total_actions": total_actions,
        }
        if score_components is not None and self.logger.is_enabled_for(logging.DEBUG):
            fields["score_components"] = dict(score_components)
        self.logger.log(logging.DEBUG, "activity_metrics.day.computed", fields)


_OBSERVABILITY = Observability(logger=NullLogger())


def set_observability(observability: Observability) -> None:
    global _OBSERVABILITY
    _OBSERVABILITY = observability


def get_observability() -> Observability:
    return _OBSERVABILITY
