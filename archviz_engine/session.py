"""Editing session: the source, generated and reference slots around a dispatcher."""

from __future__ import annotations

from datetime import date
from typing import Any

from .assets import ImageAsset
from .bridge import HostBridge
from .engine import GenerationDispatcher, GenerationResult
from .history.archive import SessionRecord
from .prompts.request import GenerationRequest
from .quota.gate import STANDARD, QuotaState
from .transform import FLIP, ROTATE, ImageTransformer


class EditSession:
    """Owns the active edit target.

    Undo, redo and transforms write into the generated slot when a generated
    image exists, otherwise into the source slot.
    """

    def __init__(
        self,
        dispatcher: GenerationDispatcher,
        *,
        transformer: ImageTransformer | None = None,
        bridge: HostBridge | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.history = dispatcher.history
        self.archive = dispatcher.archive
        self.events = dispatcher.events
        self.transformer = transformer or ImageTransformer(self.events)
        self.source_image: ImageAsset | None = None
        self.generated_image: ImageAsset | None = None
        self.reference_image: ImageAsset | None = None
        self.bridge = bridge
        if bridge is not None:
            bridge.register(self.receive_host_image)
        self.events.emit("session_started", host_bridge=bridge is not None)

    @property
    def active_image(self) -> ImageAsset | None:
        return self.generated_image or self.source_image

    def set_source(self, asset: ImageAsset) -> None:
        self.source_image = asset
        if self.generated_image is None:
            self.history.reset([asset])
            self._emit_history("source_set")

    def clear_source(self) -> None:
        self.source_image = None
        if self.generated_image is None:
            self.history.reset()
            self._emit_history("source_cleared")

    def set_reference(self, asset: ImageAsset | None) -> None:
        self.reference_image = asset

    def build_request(self, **selections: Any) -> GenerationRequest:
        return GenerationRequest(
            source_image=self.source_image,
            reference_image=self.reference_image,
            **selections,
        )

    async def generate(
        self,
        quota_state: QuotaState,
        requested_tier: str = STANDARD,
        override_key: str | None = None,
        *,
        today: date | None = None,
        **selections: Any,
    ) -> GenerationResult:
        request = self.build_request(**selections)
        result = await self.dispatcher.generate(request, quota_state, requested_tier, override_key, today=today)
        self.generated_image = result.asset
        return result

    def undo(self) -> ImageAsset | None:
        asset = self.history.undo()
        if asset is None:
            return None
        if self.generated_image is not None:
            self.generated_image = asset
        else:
            self.source_image = asset
        self._emit_history("undo")
        return asset

    def redo(self) -> ImageAsset | None:
        asset = self.history.redo()
        if asset is None:
            return None
        if self.generated_image is not None:
            self.generated_image = asset
        else:
            self.source_image = asset
        self._emit_history("redo")
        return asset

    def rotate(self) -> ImageAsset | None:
        return self._transform(ROTATE)

    def flip(self) -> ImageAsset | None:
        return self._transform(FLIP)

    def _transform(self, operation: str) -> ImageAsset | None:
        active = self.active_image
        if active is None:
            return None
        result = self.transformer.apply(active, operation)
        if result is active:
            return active
        if self.generated_image is not None:
            self.generated_image = result
        else:
            self.source_image = result
        self.history.push(result)
        self._emit_history(operation)
        return result

    def reset(self) -> None:
        """Discard the generated image and reference, keeping the source."""

        self.generated_image = None
        self.reference_image = None
        self.history.reset([self.source_image] if self.source_image else [])
        self._emit_history("reset")

    def use_as_input(self) -> None:
        if self.generated_image is None:
            return
        self.source_image = self.generated_image
        self.generated_image = None

    def restore(self, record_id: str) -> SessionRecord | None:
        record = self.archive.get(record_id)
        if record is None:
            return None
        self.generated_image = record.asset
        self.history.push(record.asset)
        self.events.emit("archive_restored", record_id=record.id)
        self._emit_history("restore")
        return record

    def receive_host_image(self, asset: ImageAsset) -> None:
        self.source_image = asset
        self.generated_image = None
        self.history.reset([asset])
        self.events.emit("host_image_received", media_type=asset.media_type, byte_count=len(asset.data))
        self._emit_history("host_image")

    def close(self) -> None:
        if self.bridge is not None:
            self.bridge.unregister()
        self.history.reset()
        self.archive.clear()
        self.source_image = None
        self.generated_image = None
        self.reference_image = None
        self.events.emit("session_closed")

    def _emit_history(self, action: str) -> None:
        self.events.emit(
            "history_changed",
            action=action,
            step=self.history.step,
            length=len(self.history),
            can_undo=self.history.can_undo(),
            can_redo=self.history.can_redo(),
        )
