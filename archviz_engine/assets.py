"""Opaque image assets passed between the engine, backends and history."""

from __future__ import annotations

import base64
import binascii
import hashlib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MEDIA_TYPE = "image/png"
HOST_MEDIA_TYPE = "image/jpeg"


@dataclass(frozen=True, eq=False)
class ImageAsset:
    """Encoded image bytes plus their media type.

    Equality is identity: two assets with the same bytes are still distinct
    history entries. Use ``sha256`` to compare content.
    """

    data: bytes
    media_type: str = DEFAULT_MEDIA_TYPE

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.data).hexdigest()

    @property
    def extension(self) -> str:
        subtype = self.media_type.split("/", 1)[-1].lower()
        if subtype in {"jpeg", "jpg"}:
            return "jpg"
        if subtype == "webp":
            return "webp"
        return "png"

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path

    @classmethod
    def from_path(cls, value: str | Path) -> ImageAsset:
        path = Path(value).expanduser()
        return cls(data=path.read_bytes(), media_type=media_type_for_suffix(path.suffix) or DEFAULT_MEDIA_TYPE)

    @classmethod
    def from_data_url(cls, value: str, default_media_type: str = DEFAULT_MEDIA_TYPE) -> ImageAsset:
        """Decode a ``data:<type>;base64,<payload>`` string or bare base64."""

        text = str(value or "").strip()
        media_type = default_media_type
        payload = text
        if text.startswith("data:"):
            header, _, payload = text.partition(",")
            declared = header[5:].split(";", 1)[0].strip()
            if declared:
                media_type = declared
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Image payload is not valid base64.") from exc
        if not data:
            raise ValueError("Image payload is empty.")
        return cls(data=data, media_type=media_type)


def media_type_for_suffix(suffix: str) -> str | None:
    lowered = str(suffix or "").strip().lower()
    if lowered == ".png":
        return "image/png"
    if lowered in {".jpg", ".jpeg"}:
        return "image/jpeg"
    if lowered == ".webp":
        return "image/webp"
    return None
