"""Session archive of every successful generation."""

from __future__ import annotations

import itertools
from dataclasses import dataclass

from ..assets import ImageAsset
from ..utils import now_utc_iso


@dataclass(frozen=True)
class SessionRecord:
    id: str
    asset: ImageAsset
    created_at: str
    prompt_used: str


class SessionArchive:
    """Append-only log, newest first. Undo/redo never touches it."""

    def __init__(self) -> None:
        self._records: list[SessionRecord] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._records)

    def append(self, asset: ImageAsset, prompt_text: str) -> SessionRecord:
        record = SessionRecord(
            id=f"gen-{next(self._ids):04d}",
            asset=asset,
            created_at=now_utc_iso(),
            prompt_used=prompt_text,
        )
        self._records.insert(0, record)
        return record

    def list(self) -> list[SessionRecord]:
        return list(self._records)

    def get(self, record_id: str) -> SessionRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def clear(self) -> None:
        """Session teardown only."""

        self._records.clear()
