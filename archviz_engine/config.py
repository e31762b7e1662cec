"""Environment-driven engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .models.registry import ANALYSIS_ROLE, PREMIUM_TIER, STANDARD_TIER, ModelRegistry
from .quota.store import DB_PATH
from .utils import getenv_flag

DEFAULT_SETTINGS_PATH = Path.home() / ".archviz" / "settings.json"


@dataclass(frozen=True)
class EngineConfig:
    backend: str = "gemini"
    standard_model: str | None = None
    premium_model: str | None = None
    analysis_model: str | None = None
    settings_path: Path = DEFAULT_SETTINGS_PATH
    quota_db_path: Path = DB_PATH

    @classmethod
    def from_env(cls) -> EngineConfig:
        return cls(
            backend="dryrun" if getenv_flag("ARCHVIZ_DRYRUN", False) else "gemini",
            standard_model=_env_str("ARCHVIZ_STANDARD_MODEL"),
            premium_model=_env_str("ARCHVIZ_PREMIUM_MODEL"),
            analysis_model=_env_str("ARCHVIZ_ANALYSIS_MODEL"),
            settings_path=_env_path("ARCHVIZ_SETTINGS_PATH") or DEFAULT_SETTINGS_PATH,
            quota_db_path=_env_path("ARCHVIZ_QUOTA_DB") or DB_PATH,
        )

    def model_registry(self) -> ModelRegistry:
        return ModelRegistry().with_overrides(
            {
                STANDARD_TIER: self.standard_model,
                PREMIUM_TIER: self.premium_model,
                ANALYSIS_ROLE: self.analysis_model,
            }
        )


def _env_str(name: str) -> str | None:
    value = str(os.getenv(name) or "").strip()
    return value or None


def _env_path(name: str) -> Path | None:
    value = _env_str(name)
    return Path(value).expanduser() if value else None
