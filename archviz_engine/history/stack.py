"""Branch-truncating undo/redo history."""

from __future__ import annotations

from typing import Iterable

from ..assets import ImageAsset


class HistoryStack:
    def __init__(self) -> None:
        self._entries: list[ImageAsset] = []
        self._step = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def step(self) -> int:
        return self._step

    @property
    def entries(self) -> tuple[ImageAsset, ...]:
        return tuple(self._entries)

    def current(self) -> ImageAsset | None:
        if self._step < 0:
            return None
        return self._entries[self._step]

    def push(self, asset: ImageAsset) -> None:
        del self._entries[self._step + 1 :]
        self._entries.append(asset)
        self._step = len(self._entries) - 1

    def can_undo(self) -> bool:
        return self._step > 0

    def can_redo(self) -> bool:
        return self._step < len(self._entries) - 1

    def undo(self) -> ImageAsset | None:
        """Step back one entry; ``None`` when already at the oldest."""

        if not self.can_undo():
            return None
        self._step -= 1
        return self._entries[self._step]

    def redo(self) -> ImageAsset | None:
        if not self.can_redo():
            return None
        self._step += 1
        return self._entries[self._step]

    def reset(self, assets: Iterable[ImageAsset] = ()) -> None:
        self._entries = list(assets)
        self._step = len(self._entries) - 1
