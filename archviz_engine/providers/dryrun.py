"""Dry-run backend (offline)."""

from __future__ import annotations

import hashlib
from io import BytesIO

from PIL import Image, ImageDraw, ImageFont

from .base import BackendCall, BackendResponse, Candidate, InlineImagePart, TextPart

_ASPECT_SIZES = {
    "16:9": (1536, 864),
    "9:16": (864, 1536),
    "4:3": (1280, 960),
    "3:4": (960, 1280),
    "1:1": (1024, 1024),
}


class DryRunBackend:
    name = "dryrun"

    def __init__(self) -> None:
        self.calls: list[BackendCall] = []

    async def generate(self, call: BackendCall, api_key: str) -> BackendResponse:
        self.calls.append(call)
        prompt = "".join(part.text for part in call.parts if isinstance(part, TextPart))
        width, height = _resolve_size(call.aspect_ratio)
        image = Image.new("RGB", (width, height), _color_from_prompt(prompt))
        draw = ImageDraw.Draw(image)
        draw.text((20, 20), f"dryrun {call.model}\n{prompt[:60]}", fill=(255, 255, 255), font=ImageFont.load_default())
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        candidate = Candidate(
            parts=(
                TextPart(text=f"Eye-level view rendered offline by {call.model}. {prompt[:200]}"),
                InlineImagePart(data=buffer.getvalue(), media_type="image/png"),
            )
        )
        return BackendResponse(candidates=(candidate,), metadata={"model": call.model, "dryrun": True})


def _resolve_size(aspect_ratio: str | None) -> tuple[int, int]:
    return _ASPECT_SIZES.get(str(aspect_ratio or "").strip(), (1024, 1024))


def _color_from_prompt(prompt: str) -> tuple[int, int, int]:
    digest = hashlib.sha256(prompt.encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]
