from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any


class JsonlDayLogSource:
    """Reads day logs written as JSON lines.

    ``path`` is either a directory holding one ``YYYY-MM-DD.jsonl`` file per
    civil day, or a single file whose entries are all returned. A missing day
    file is an empty day, not a failure.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def fetch_day_log(
        self, civil_date: str, user_id: str | None = None
    ) -> Sequence[Mapping[str, Any]]:
        target = self._path if self._path.is_file() else self._path / f"{civil_date}.jsonl"
        if not target.exists():
            return []
        entries = _read_jsonl(target)
        if user_id is None:
            return entries
        return [entry for entry in entries if _entry_user(entry) == user_id]


def _read_jsonl(path: Path) -> list[Mapping[str, Any]]:
    entries: list[Mapping[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                entries.append(json.loads(text))
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_number}: invalid JSON") from exc
    return entries


def _entry_user(entry: object) -> object:
    if not isinstance(entry, Mapping):
        return None
    return entry.get("user_id", entry.get("userId"))
