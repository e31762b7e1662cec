"""Gemini image backend."""

from __future__ import annotations

from typing import Any, Sequence

from google import genai
from google.genai import types

from .base import BackendCall, BackendResponse, Candidate, InlineImagePart, Part, TextPart


class GeminiBackend:
    name = "gemini"

    async def generate(self, call: BackendCall, api_key: str) -> BackendResponse:
        client = genai.Client(api_key=api_key)
        config = _build_content_config(call)
        response = await client.aio.models.generate_content(
            model=call.model,
            contents=_build_message_parts(call.parts),
            config=config,
        )
        candidates = getattr(response, "candidates", None) or []
        metadata: dict[str, Any] = {"model": call.model, "candidates": len(candidates)}
        usage = getattr(response, "usage_metadata", None)
        if usage is not None and hasattr(usage, "model_dump"):
            metadata["usage"] = usage.model_dump(exclude_none=True)
        return BackendResponse(candidates=_convert_candidates(candidates), metadata=metadata)


def _build_content_config(call: BackendCall) -> types.GenerateContentConfig | None:
    if not call.image_config:
        return None
    return types.GenerateContentConfig(image_config=types.ImageConfig(**call.image_config))


def _build_message_parts(parts: Sequence[Part]) -> list[types.Part]:
    message: list[types.Part] = []
    for part in parts:
        if isinstance(part, TextPart):
            message.append(types.Part(text=part.text))
        elif isinstance(part, InlineImagePart):
            message.append(types.Part(inline_data=types.Blob(data=part.data, mime_type=part.media_type)))
    return message


def _convert_candidates(candidates: Sequence[Any]) -> tuple[Candidate, ...]:
    converted: list[Candidate] = []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        raw_parts = getattr(content, "parts", None) or []
        parts: list[Part] = []
        for part in raw_parts:
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data else None
            if isinstance(data, (bytes, bytearray)) and data:
                mime_type = getattr(inline_data, "mime_type", None) or "image/png"
                parts.append(InlineImagePart(data=bytes(data), media_type=mime_type))
                continue
            text = getattr(part, "text", None)
            if isinstance(text, str) and text:
                parts.append(TextPart(text=text))
        converted.append(Candidate(parts=tuple(parts)))
    return tuple(converted)
