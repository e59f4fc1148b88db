from __future__ import annotations

from collections.abc import Hashable, Iterable


class DedupGuards:
    """Per-user guards against at-least-once redelivery.

    An action is identified by the time it occurred, a photo by the hash of
    its extracted content. Fixes, session updates and device reports carry
    no identity of their own, so only an exact repeat of one is dropped.
    Guards live exactly as long as the owning day.
    """

    def __init__(
        self,
        *,
        action_timestamps: Iterable[int] = (),
        photo_hashes: Iterable[str] = (),
    ) -> None:
        self._action_timestamps: set[int] = set(action_timestamps)
        self._photo_hashes: set[str] = set(photo_hashes)
        self._events: set[Hashable] = set()

    def admit_action(self, occurred_at_ms: int) -> bool:
        if occurred_at_ms in self._action_timestamps:
            return False
        self._action_timestamps.add(occurred_at_ms)
        return True

    def admit_photo(self, content_hash: str) -> bool:
        if content_hash in self._photo_hashes:
            return False
        self._photo_hashes.add(content_hash)
        return True

    def admit_event(self, event: Hashable) -> bool:
        if event in self._events:
            return False
        self._events.add(event)
        return True

    def seen_action(self, occurred_at_ms: int) -> bool:
        return occurred_at_ms in self._action_timestamps

    def seen_photo(self, content_hash: str) -> bool:
        return content_hash in self._photo_hashes

    def reset(self) -> None:
        self._action_timestamps.clear()
        self._photo_hashes.clear()
        self._events.clear()
