from __future__ import annotations

from activity_metrics.config import MetricsConfig
from activity_metrics.day_metrics import DaySnapshot, compute_day_metrics
from activity_metrics.sessions import IDLE_EXPLICIT, IdleStrategy
from daily_store.contracts import (
    APPLY_ACCEPTED,
    APPLY_DUPLICATE,
    APPLY_REJECTED,
    ApplyResult,
    DailyUserRecord,
    record_from_metrics,
)
from daily_store.dedup import DedupGuards
from field_events.contracts import (
    ActionEvent,
    DeviceStatus,
    GpsFix,
    PhotoSubmission,
    RawEvent,
    SessionUpdate,
)
from field_events.validation import EventValidator

_ACCEPTED = ApplyResult(status=APPLY_ACCEPTED)
_DUPLICATE = ApplyResult(status=APPLY_DUPLICATE)
_EVENT_TYPES = (GpsFix, SessionUpdate, DeviceStatus, ActionEvent, PhotoSubmission)


class UserDayState:
    """Accepted events of one user for one civil day.

    ``apply`` is the single validate, dedup and append routine shared by the
    live aggregator and the batch reconstructor; ``build_record`` recomputes
    every metric from the full event set.
    """

    def __init__(
        self,
        *,
        user_id: str,
        username: str,
        civil_date: str,
        validator: EventValidator,
        metrics_config: MetricsConfig | None = None,
        idle_strategy: IdleStrategy = IDLE_EXPLICIT,
    ) -> None:
        self.user_id = user_id
        self.username = username
        self.civil_date = civil_date
        self._validator = validator
        self._metrics_config = metrics_config or MetricsConfig()
        self._idle_strategy = idle_strategy
        self._guards = DedupGuards()
        self._raw_events: list[RawEvent] = []
        self._fixes: list[GpsFix] = []
        self._session_updates: list[SessionUpdate] = []
        self._device_statuses: list[DeviceStatus] = []
        self._actions: list[ActionEvent] = []
        self._photos: list[PhotoSubmission] = []

    @property
    def event_count(self) -> int:
        return len(self._raw_events)

    def apply(self, event: RawEvent) -> ApplyResult:
        if not isinstance(event, _EVENT_TYPES):
            raise TypeError(f"unsupported event: {type(event).__name__}")
        result = self._validator.validate(event, record_date=self.civil_date)
        if not result.accepted:
            return ApplyResult(status=APPLY_REJECTED, reason=result.reason)

        if isinstance(event, ActionEvent):
            if not self._guards.admit_action(event.occurred_at_ms):
                return _DUPLICATE
            self._actions.append(event)
        elif isinstance(event, PhotoSubmission):
            if not self._guards.admit_photo(event.content_hash):
                return _DUPLICATE
            self._photos.append(event)
        elif not self._guards.admit_event(event):
            return _DUPLICATE
        elif isinstance(event, GpsFix):
            self._fixes.append(event)
        elif isinstance(event, SessionUpdate):
            self._session_updates.append(event)
        else:
            self._device_statuses.append(event)

        self._raw_events.append(event)
        if event.username:
            self.username = event.username
        return _ACCEPTED

    def snapshot(self) -> DaySnapshot:
        return DaySnapshot(
            user_id=self.user_id,
            civil_date=self.civil_date,
            fixes=tuple(self._fixes),
            session_updates=tuple(self._session_updates),
            device_statuses=tuple(self._device_statuses),
            actions=tuple(self._actions),
            photos=tuple(self._photos),
            event_timestamps=tuple(event.timestamp_ms for event in self._raw_events),
            idle_strategy=self._idle_strategy,
            reference_timezone=self._validator.reference_timezone,
        )

    def build_record(self) -> DailyUserRecord:
        metrics = compute_day_metrics(self.snapshot(), self._metrics_config)
        return record_from_metrics(
            user_id=self.user_id,
            username=self.username,
            civil_date=self.civil_date,
            metrics=metrics,
            raw_events=self._raw_events,
        )
