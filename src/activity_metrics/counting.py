from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from field_events.contracts import ActionEvent, BulkOutcome, SingularOutcome


@dataclass(frozen=True)
class ActionCounts:
    total_actions: int
    actions_by_kind: Mapping[str, int]
    status_changes: Mapping[str, int]

    @property
    def total_status_changes(self) -> int:
        return sum(self.status_changes.values())


def counted_statuses(action: ActionEvent) -> tuple[str, ...]:
    """Destination statuses an action contributes to ``status_changes``.

    Bulk saves are settled end-state snapshots: every resident with a status
    counts. A singular edit counts only when it actually changed the status.
    """

    outcome = action.outcome
    if isinstance(outcome, BulkOutcome):
        return tuple(item.status for item in outcome.residents if item.status is not None)
    if isinstance(outcome, SingularOutcome) and outcome.status is not None:
        if outcome.previous_status is None or outcome.previous_status != outcome.status:
            return (outcome.status,)
    return ()


def tally(actions: Iterable[ActionEvent]) -> ActionCounts:
    total = 0
    by_kind: dict[str, int] = {}
    status_changes: dict[str, int] = {}
    for action in actions:
        total += 1
        by_kind[action.action_kind] = by_kind.get(action.action_kind, 0) + 1
        for status in counted_statuses(action):
            status_changes[status] = status_changes.get(status, 0) + 1
    return ActionCounts(
        total_actions=total,
        actions_by_kind=dict(sorted(by_kind.items())),
        status_changes=dict(sorted(status_changes.items())),
    )
