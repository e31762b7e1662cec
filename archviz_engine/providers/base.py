"""Backend wire types and registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol, Union


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineImagePart:
    data: bytes
    media_type: str


Part = Union[TextPart, InlineImagePart]


@dataclass(frozen=True)
class BackendCall:
    model: str
    parts: tuple[Part, ...]
    image_size: str | None = None
    aspect_ratio: str | None = None

    @property
    def image_config(self) -> dict[str, str]:
        config: dict[str, str] = {}
        if self.image_size:
            config["image_size"] = self.image_size
        if self.aspect_ratio:
            config["aspect_ratio"] = self.aspect_ratio
        return config

    def describe(self) -> dict[str, Any]:
        parts: list[dict[str, Any]] = []
        for part in self.parts:
            if isinstance(part, TextPart):
                parts.append({"part_type": "text", "text_chars": len(part.text)})
            else:
                parts.append({"part_type": "image", "media_type": part.media_type, "byte_count": len(part.data)})
        return {"model": self.model, "parts": parts, "config": self.image_config}


@dataclass(frozen=True)
class Candidate:
    parts: tuple[Part, ...] = ()

    def first_image(self) -> InlineImagePart | None:
        for part in self.parts:
            if isinstance(part, InlineImagePart) and part.data:
                return part
        return None

    def first_text(self) -> str | None:
        for part in self.parts:
            if isinstance(part, TextPart) and part.text.strip():
                return part.text
        return None


@dataclass(frozen=True)
class BackendResponse:
    candidates: tuple[Candidate, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def first_candidate(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None


class ImageBackend(Protocol):
    name: str

    async def generate(self, call: BackendCall, api_key: str) -> BackendResponse:
        ...


class BackendRegistry:
    def __init__(self, backends: Iterable[ImageBackend]) -> None:
        self._backends = {backend.name: backend for backend in backends}

    def get(self, name: str) -> ImageBackend | None:
        return self._backends.get(name)

    def list(self) -> list[str]:
        return sorted(self._backends.keys())
