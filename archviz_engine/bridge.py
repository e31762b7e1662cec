"""Inbound port for images pushed by an embedding host application."""

from __future__ import annotations

from typing import Callable

from .assets import HOST_MEDIA_TYPE, ImageAsset

HostImageHandler = Callable[[ImageAsset], None]


class HostBridge:
    def __init__(self) -> None:
        self._handler: HostImageHandler | None = None

    @property
    def is_registered(self) -> bool:
        return self._handler is not None

    def register(self, handler: HostImageHandler) -> None:
        if self._handler is not None:
            raise RuntimeError("A host image receiver is already registered.")
        self._handler = handler

    def unregister(self) -> None:
        self._handler = None

    def deliver(self, payload: str | bytes) -> ImageAsset:
        """Decode a host payload and hand it to the registered receiver.

        Strings may be data URLs or bare base64 (assumed JPEG); bytes are taken
        as an encoded JPEG.
        """

        if self._handler is None:
            raise RuntimeError("No host image receiver is registered.")
        if isinstance(payload, (bytes, bytearray)):
            if not payload:
                raise ValueError("Image payload is empty.")
            asset = ImageAsset(data=bytes(payload), media_type=HOST_MEDIA_TYPE)
        else:
            asset = ImageAsset.from_data_url(payload, default_media_type=HOST_MEDIA_TYPE)
        self._handler(asset)
        return asset
