"""Backend key resolution: user override, process default, remote settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .errors import ConfigError
from .utils import read_json

PROCESS_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")
SETTINGS_DOCUMENT = "global"
SETTINGS_KEY_FIELD = "gemini_api_key"
_PLACEHOLDER_VALUES = {"undefined", "null", "none"}

Resolver = Callable[[], Optional[str]]


@dataclass(frozen=True)
class ResolvedCredential:
    api_key: str
    source: str

    def __repr__(self) -> str:
        return f"ResolvedCredential(source={self.source!r})"


@dataclass
class SettingsStore:
    """Settings documents kept as ``{document: {field: value}}`` JSON."""

    path: Path

    def get(self, document: str, field: str) -> str | None:
        payload = read_json(self.path, {})
        if not isinstance(payload, dict):
            return None
        doc = payload.get(document)
        if not isinstance(doc, dict):
            return None
        value = doc.get(field)
        return value if isinstance(value, str) else None


def _clean_key(value: str | None) -> str | None:
    text = str(value or "").strip()
    if not text or text.lower() in _PLACEHOLDER_VALUES:
        return None
    return text


def resolve_first(resolvers: Sequence[tuple[str, Resolver]]) -> ResolvedCredential:
    for source, resolver in resolvers:
        key = _clean_key(resolver())
        if key:
            return ResolvedCredential(api_key=key, source=source)
    raise ConfigError("No backend API key could be resolved.")


class CredentialResolver:
    def __init__(
        self,
        settings: SettingsStore | None = None,
        env_vars: Sequence[str] = PROCESS_KEY_ENV_VARS,
    ) -> None:
        self.settings = settings
        self.env_vars = tuple(env_vars)

    def resolvers(self, override_key: str | None = None) -> list[tuple[str, Resolver]]:
        chain: list[tuple[str, Resolver]] = [
            ("override", lambda: override_key),
            ("process", self._from_env),
        ]
        if self.settings is not None:
            chain.append(("remote", self._from_settings))
        return chain

    def resolve(self, override_key: str | None = None) -> ResolvedCredential:
        return resolve_first(self.resolvers(override_key))

    def _from_env(self) -> str | None:
        for name in self.env_vars:
            value = _clean_key(os.getenv(name))
            if value:
                return value
        return None

    def _from_settings(self) -> str | None:
        if self.settings is None:
            return None
        return self.settings.get(SETTINGS_DOCUMENT, SETTINGS_KEY_FIELD)
