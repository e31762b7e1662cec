"""Model registry: which backend model serves each tier."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping

from ..errors import ConfigError

STANDARD_TIER = "standard"
PREMIUM_TIER = "premium"
ANALYSIS_ROLE = "analysis"

MODEL_CONFIG_MESSAGE = "System Error: Model configuration is invalid. Please contact admin."


@dataclass(frozen=True)
class ModelSpec:
    name: str
    role: str
    capabilities: tuple[str, ...]
    image_size: str | None = None
    aspect_ratio: str | None = None

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities


_DEFAULT_MODELS: dict[str, ModelSpec] = {
    "gemini-2.5-flash-image": ModelSpec(
        name="gemini-2.5-flash-image",
        role=STANDARD_TIER,
        capabilities=("image", "edit"),
    ),
    "gemini-3-pro-image-preview": ModelSpec(
        name="gemini-3-pro-image-preview",
        role=PREMIUM_TIER,
        capabilities=("image", "edit"),
        image_size="2K",
        aspect_ratio="16:9",
    ),
    "gemini-2.5-flash": ModelSpec(
        name="gemini-2.5-flash",
        role=ANALYSIS_ROLE,
        capabilities=("text", "vision"),
    ),
}


class ModelRegistry:
    def __init__(self, models: Mapping[str, ModelSpec] | None = None) -> None:
        self._models = dict(models) if models else dict(_DEFAULT_MODELS)

    def get(self, name: str) -> ModelSpec | None:
        return self._models.get(name)

    def list(self) -> Iterable[ModelSpec]:
        return self._models.values()

    def for_role(self, role: str) -> ModelSpec:
        model = _find_role(self._models, role)
        if model is None:
            raise ConfigError(f"No model registered for '{role}'.", user_message=MODEL_CONFIG_MESSAGE)
        return model

    def with_overrides(self, overrides: Mapping[str, str | None]) -> ModelRegistry:
        """Rename the model serving a role while keeping its generation parameters.

        Raises ``ConfigError`` when the new name already serves another role.
        """

        models = dict(self._models)
        for role, name in overrides.items():
            if not name:
                continue
            current = _find_role(models, role)
            if current is None:
                raise ConfigError(f"No model registered for '{role}'.", user_message=MODEL_CONFIG_MESSAGE)
            taken = models.get(name)
            if taken is not None and taken.role != role:
                raise ConfigError(
                    f"Model '{name}' already serves '{taken.role}' and cannot also serve '{role}'.",
                    user_message=MODEL_CONFIG_MESSAGE,
                )
            del models[current.name]
            models[name] = replace(current, name=name)
        return ModelRegistry(models)


def _find_role(models: Mapping[str, ModelSpec], role: str) -> ModelSpec | None:
    for model in models.values():
        if model.role == role:
            return model
    return None
