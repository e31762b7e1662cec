from __future__ import annotations

import asyncio
import sqlite3
from datetime import date
from pathlib import Path

import pytest

from archviz_engine.assets import ImageAsset
from archviz_engine.credentials import CredentialResolver
from archviz_engine.engine import GenerationDispatcher, build_backend_call, classify_backend_error
from archviz_engine.errors import (
    BackendAuthError,
    BackendError,
    BackendRateLimitError,
    ConfigError,
    NoImageError,
    ValidationError,
)
from archviz_engine.history.archive import SessionArchive
from archviz_engine.history.stack import HistoryStack
from archviz_engine.models.registry import MODEL_CONFIG_MESSAGE, ModelRegistry
from archviz_engine.prompts.request import GenerationRequest
from archviz_engine.providers.base import BackendCall, BackendResponse, Candidate, InlineImagePart, TextPart
from archviz_engine.quota.gate import (
    DEFAULT_DAILY_LIMIT,
    PREMIUM,
    QUOTA_EXCEEDED_MESSAGE,
    STANDARD,
    QuotaGate,
    QuotaState,
    TierDecision,
)
from archviz_engine.quota.store import QuotaStore
from archviz_engine.runs.events import EventWriter

TODAY = date(2026, 3, 14)
YESTERDAY = date(2026, 3, 13)
ENV_VAR = "ARCHVIZ_TEST_PROCESS_KEY"
IDENTITY = "ana@example.com"


def _image_response(data: bytes = b"\x89PNG-rendered") -> BackendResponse:
    candidate = Candidate(
        parts=(
            TextPart(text="Here is your render."),
            InlineImagePart(data=data, media_type="image/png"),
        )
    )
    return BackendResponse(candidates=(candidate,))


class StaticBackend:
    name = "static"

    def __init__(self, response: BackendResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or _image_response()
        self.error = error
        self.calls: list[tuple[BackendCall, str]] = []

    async def generate(self, call: BackendCall, api_key: str) -> BackendResponse:
        self.calls.append((call, api_key))
        if self.error is not None:
            raise self.error
        return self.response


class ApiError(Exception):
    def __init__(self, code: int, status: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


def _setup(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    backend: StaticBackend,
    *,
    used_today: int = 3,
    last_usage_date: date | None = YESTERDAY,
    process_key: str | None = "process-key",
) -> tuple[GenerationDispatcher, QuotaStore, EventWriter]:
    if process_key:
        monkeypatch.setenv(ENV_VAR, process_key)
    else:
        monkeypatch.delenv(ENV_VAR, raising=False)
    store = QuotaStore(tmp_path / "quota.sqlite")
    store.init_db()
    store.upsert_record(IDENTITY, daily_limit=10, used_today=used_today, last_usage_date=last_usage_date)
    events = EventWriter(tmp_path / "events.jsonl", "session-1")
    dispatcher = GenerationDispatcher(
        backend,
        history=HistoryStack(),
        archive=SessionArchive(),
        quota_gate=QuotaGate(store),
        credentials=CredentialResolver(env_vars=(ENV_VAR,)),
        events=events,
    )
    return dispatcher, store, events


def _state(dispatcher: GenerationDispatcher) -> QuotaState:
    return dispatcher.quota_gate.load(IDENTITY)


def _event_types(events: EventWriter) -> list[str]:
    return [event["type"] for event in events.read()]


def test_premium_generation_is_billed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, store, events = _setup(tmp_path, monkeypatch, backend)
    request = GenerationRequest(tab="exterior", free_text="pool villa at dusk")

    result = asyncio.run(dispatcher.generate(request, _state(dispatcher), PREMIUM, today=TODAY))

    call, api_key = backend.calls[0]
    assert api_key == "process-key"
    assert call.model == "gemini-3-pro-image-preview"
    assert call.image_config == {"image_size": "2K", "aspect_ratio": "16:9"}
    assert result.decision.granted_tier == PREMIUM
    assert result.advisory is None
    assert result.used_today == 1
    assert result.asset.data == b"\x89PNG-rendered"
    assert result.record.prompt_used == "pool villa at dusk"
    assert dispatcher.history.current() is result.asset
    assert dispatcher.archive.list() == [result.record]
    record = store.get_record(IDENTITY)
    assert record is not None
    assert record.used_today == 1
    assert record.last_usage_date == TODAY
    types = _event_types(events)
    assert types.index("tier_decided") < types.index("generation_started") < types.index("quota_billed")
    assert types[-1] == "generation_succeeded"


def test_exhausted_quota_downgrades_with_advisory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, store, events = _setup(tmp_path, monkeypatch, backend, used_today=10, last_usage_date=TODAY)
    request = GenerationRequest(tab="exterior", arch_style_id="modern")

    result = asyncio.run(dispatcher.generate(request, _state(dispatcher), PREMIUM, today=TODAY))

    call, _ = backend.calls[0]
    assert call.model == "gemini-2.5-flash-image"
    assert call.image_config == {}
    assert result.decision.granted_tier == STANDARD
    assert result.advisory is not None
    assert result.advisory.message == QUOTA_EXCEEDED_MESSAGE
    assert result.used_today is None
    assert store.get_record(IDENTITY).used_today == 10
    assert "quota_downgraded" in _event_types(events)


def test_long_override_key_is_premium_and_unbilled(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, store, _ = _setup(tmp_path, monkeypatch, backend, used_today=10, last_usage_date=TODAY)
    request = GenerationRequest(tab="exterior", free_text="villa")

    result = asyncio.run(
        dispatcher.generate(request, _state(dispatcher), PREMIUM, "personal-key-0123456", today=TODAY)
    )

    assert backend.calls[0][1] == "personal-key-0123456"
    assert result.credential_source == "override"
    assert result.decision.granted_tier == PREMIUM
    assert result.decision.billable is False
    assert store.get_record(IDENTITY).used_today == 10


def test_short_override_key_is_used_but_still_metered(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, store, _ = _setup(tmp_path, monkeypatch, backend)
    request = GenerationRequest(tab="exterior", free_text="villa")

    result = asyncio.run(dispatcher.generate(request, _state(dispatcher), PREMIUM, "short-key", today=TODAY))

    assert backend.calls[0][1] == "short-key"
    assert result.decision.billable is True
    assert store.get_record(IDENTITY).used_today == 1


def test_standard_generation_leaves_quota_alone(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, store, _ = _setup(tmp_path, monkeypatch, backend)
    request = GenerationRequest(tab="interior", room_type_id="kitchen")

    result = asyncio.run(dispatcher.generate(request, _state(dispatcher), STANDARD, today=TODAY))

    assert result.decision.billable is False
    assert result.record.prompt_used == "Generated Image"
    record = store.get_record(IDENTITY)
    assert record.used_today == 3
    assert record.last_usage_date == YESTERDAY


def test_identity_without_record_is_metered_to_default_limit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    backend = StaticBackend()
    dispatcher, store, _ = _setup(tmp_path, monkeypatch, backend)
    request = GenerationRequest(tab="exterior", free_text="villa")

    granted = []
    for _ in range(DEFAULT_DAILY_LIMIT + 3):
        state = dispatcher.quota_gate.load("newcomer@example.com")
        result = asyncio.run(dispatcher.generate(request, state, PREMIUM, today=TODAY))
        granted.append(result.decision.granted_tier)

    assert granted.count(PREMIUM) == DEFAULT_DAILY_LIMIT
    assert granted[-3:] == [STANDARD, STANDARD, STANDARD]
    record = store.get_record("newcomer@example.com")
    assert record is not None
    assert record.daily_limit is None
    assert record.used_today == DEFAULT_DAILY_LIMIT
    assert record.last_usage_date == TODAY


def test_first_billable_use_counts_one(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    dispatcher, _, events = _setup(tmp_path, monkeypatch, StaticBackend())
    state = dispatcher.quota_gate.load("newcomer@example.com")

    result = asyncio.run(
        dispatcher.generate(GenerationRequest(free_text="villa"), state, PREMIUM, today=TODAY)
    )

    assert result.used_today == 1
    billed = [event for event in events.read() if event["type"] == "quota_billed"]
    assert billed[0]["identity"] == "newcomer@example.com"
    assert billed[0]["used_today"] == 1


def test_billing_failure_keeps_delivered_image(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    dispatcher, _, events = _setup(tmp_path, monkeypatch, StaticBackend())

    def locked(identity: str, today: date | None = None) -> int:
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(dispatcher.quota_gate, "bill", locked)
    request = GenerationRequest(tab="exterior", free_text="villa")

    result = asyncio.run(dispatcher.generate(request, _state(dispatcher), PREMIUM, today=TODAY))

    assert result.decision.billable is True
    assert result.used_today is None
    assert result.asset.data == b"\x89PNG-rendered"
    assert dispatcher.history.entries == (result.asset,)
    assert dispatcher.archive.list() == [result.record]
    failures = [event for event in events.read() if event["type"] == "quota_billing_failed"]
    assert failures[0]["error"] == "database is locked"
    assert _event_types(events)[-1] == "generation_succeeded"


def test_missing_tier_model_is_a_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, store, events = _setup(tmp_path, monkeypatch, backend)
    standard_only = ModelRegistry().for_role(STANDARD)
    dispatcher.models = ModelRegistry({standard_only.name: standard_only})
    request = GenerationRequest(tab="exterior", free_text="villa")

    with pytest.raises(ConfigError) as excinfo:
        asyncio.run(dispatcher.generate(request, _state(dispatcher), PREMIUM, today=TODAY))

    assert excinfo.value.user_message == MODEL_CONFIG_MESSAGE
    assert backend.calls == []
    assert len(dispatcher.history) == 0
    assert store.get_record(IDENTITY).used_today == 3
    failures = [event for event in events.read() if event["type"] == "generation_failed"]
    assert failures[0]["stage"] == "prepare"
    assert failures[0]["error_type"] == "ConfigError"


def test_response_without_image_changes_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    response = BackendResponse(candidates=(Candidate(parts=(TextPart(text="I cannot draw that."),)),))
    backend = StaticBackend(response=response)
    dispatcher, store, events = _setup(tmp_path, monkeypatch, backend)
    request = GenerationRequest(tab="exterior", free_text="villa")

    with pytest.raises(NoImageError) as excinfo:
        asyncio.run(dispatcher.generate(request, _state(dispatcher), PREMIUM, today=TODAY))

    assert excinfo.value.user_message == "No image generated."
    assert len(dispatcher.history) == 0
    assert len(dispatcher.archive) == 0
    assert store.get_record(IDENTITY).used_today == 3
    failures = [event for event in events.read() if event["type"] == "generation_failed"]
    assert failures[0]["stage"] == "response"


def test_empty_candidates_is_no_image(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    dispatcher, _, _ = _setup(tmp_path, monkeypatch, StaticBackend(response=BackendResponse()))

    with pytest.raises(NoImageError):
        asyncio.run(
            dispatcher.generate(GenerationRequest(free_text="villa"), _state(dispatcher), today=TODAY)
        )


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (RuntimeError("API key not valid. Please pass a valid API key."), BackendAuthError),
        (ApiError(403, "PERMISSION_DENIED", "denied"), BackendAuthError),
        (ApiError(429, "RESOURCE_EXHAUSTED", "slow down"), BackendRateLimitError),
        (RuntimeError("socket closed"), BackendError),
    ],
)
def test_backend_failures_are_classified(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    error: Exception,
    expected: type,
) -> None:
    dispatcher, store, _ = _setup(tmp_path, monkeypatch, StaticBackend(error=error))
    request = GenerationRequest(tab="exterior", free_text="villa")

    with pytest.raises(expected) as excinfo:
        asyncio.run(dispatcher.generate(request, _state(dispatcher), PREMIUM, today=TODAY))

    assert excinfo.value.__cause__ is error
    assert len(dispatcher.history) == 0
    assert store.get_record(IDENTITY).used_today == 3


def test_missing_credentials_never_reach_backend(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, _, events = _setup(tmp_path, monkeypatch, backend, process_key=None)

    with pytest.raises(ConfigError):
        asyncio.run(
            dispatcher.generate(GenerationRequest(free_text="villa"), _state(dispatcher), today=TODAY)
        )

    assert backend.calls == []
    failures = [event for event in events.read() if event["type"] == "generation_failed"]
    assert failures[0]["stage"] == "prepare"
    assert failures[0]["error_type"] == "ConfigError"


def test_validation_runs_before_credentials(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = StaticBackend()
    dispatcher, _, _ = _setup(tmp_path, monkeypatch, backend, process_key=None)

    with pytest.raises(ValidationError):
        asyncio.run(dispatcher.generate(GenerationRequest(tab="exterior"), _state(dispatcher), today=TODAY))

    assert backend.calls == []


def test_successful_results_accumulate_in_history(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    dispatcher, _, _ = _setup(tmp_path, monkeypatch, StaticBackend())
    request = GenerationRequest(free_text="villa")

    first = asyncio.run(dispatcher.generate(request, _state(dispatcher), today=TODAY))
    second = asyncio.run(dispatcher.generate(request, _state(dispatcher), today=TODAY))

    assert dispatcher.history.entries == (first.asset, second.asset)
    assert [record.id for record in dispatcher.archive.list()] == [second.record.id, first.record.id]


def test_backend_call_orders_source_then_reference() -> None:
    source = ImageAsset(data=b"source", media_type="image/jpeg")
    reference = ImageAsset(data=b"reference")
    request = GenerationRequest(free_text="villa", source_image=source, reference_image=reference)
    model = ModelRegistry().for_role(STANDARD)
    decision = TierDecision(requested_tier=STANDARD, granted_tier=STANDARD, billable=False, downgraded=False)

    call = build_backend_call("prompt text", request, model, decision)

    assert call.parts == (
        TextPart(text="prompt text"),
        InlineImagePart(data=b"source", media_type="image/jpeg"),
        InlineImagePart(data=b"reference", media_type="image/png"),
    )
    assert call.image_size is None


def test_classify_quota_message_without_code() -> None:
    error = classify_backend_error(RuntimeError("429 Quota exceeded for model"))

    assert isinstance(error, BackendRateLimitError)
    assert error.user_message == "System busy (Quota exceeded). Please try again later."
    assert error.retryable is True


def test_classify_generic_uses_generic_message() -> None:
    error = classify_backend_error(ValueError("unexpected payload"))

    assert type(error) is BackendError
    assert error.user_message == "Failed to generate image."
    assert error.detail == "unexpected payload"
