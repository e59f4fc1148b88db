from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from field_events.contracts import ActionEvent, BulkOutcome, SingularOutcome

TRANSITION_SEPARATOR = "->"


@dataclass(frozen=True)
class OutcomeSummary:
    final_statuses: Mapping[str, int]
    status_transitions: Mapping[str, int]
    unique_addresses: int


def resident_key(dataset_id: str | None, resident_id: str) -> str:
    if dataset_id:
        return f"{dataset_id}::{resident_id}"
    return resident_id


def transition_key(from_status: str, to_status: str) -> str:
    return f"{from_status}{TRANSITION_SEPARATOR}{to_status}"


def resident_timelines(actions: Iterable[ActionEvent]) -> dict[str, list[str]]:
    """Status sequence per resident, ordered by when the action occurred.

    A singular edit that reports the status it replaced seeds an empty
    timeline with that previous status so the first edit is a transition.
    """

    timelines: dict[str, list[str]] = {}
    ordered = sorted(actions, key=lambda action: action.occurred_at_ms)
    for action in ordered:
        outcome = action.outcome
        if isinstance(outcome, BulkOutcome):
            for resident in outcome.residents:
                if resident.status is None:
                    continue
                key = resident_key(action.dataset_id, resident.resident_id)
                timelines.setdefault(key, []).append(resident.status)
        elif isinstance(outcome, SingularOutcome):
            if outcome.status is None or outcome.resident_id is None:
                continue
            key = resident_key(action.dataset_id, outcome.resident_id)
            timeline = timelines.setdefault(key, [])
            if not timeline and outcome.previous_status is not None:
                timeline.append(outcome.previous_status)
            timeline.append(outcome.status)
    return timelines


def summarize_outcomes(actions: Iterable[ActionEvent]) -> OutcomeSummary:
    materialized = list(actions)
    timelines = resident_timelines(materialized)

    final_statuses: dict[str, int] = {}
    transitions: dict[str, int] = {}
    for timeline in timelines.values():
        last = timeline[-1]
        final_statuses[last] = final_statuses.get(last, 0) + 1
        for previous, current in zip(timeline, timeline[1:]):
            if previous == current:
                continue
            key = transition_key(previous, current)
            transitions[key] = transitions.get(key, 0) + 1

    addresses = {action.address for action in materialized if action.address}
    return OutcomeSummary(
        final_statuses=dict(sorted(final_statuses.items())),
        status_transitions=dict(sorted(transitions.items())),
        unique_addresses=len(addresses),
    )
