"""Generation dispatch: credentials, tier, prompt, backend call, history."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from datetime import date

from .assets import ImageAsset
from .credentials import CredentialResolver
from .errors import (
    BackendAuthError,
    BackendError,
    BackendRateLimitError,
    GenerationError,
    NoImageError,
)
from .history.archive import SessionArchive, SessionRecord
from .history.stack import HistoryStack
from .models.registry import ModelRegistry, ModelSpec
from .prompts.composer import compose, validate
from .prompts.request import GenerationRequest
from .providers.base import BackendCall, BackendResponse, ImageBackend, InlineImagePart, Part, TextPart
from .quota.gate import STANDARD, QuotaDowngrade, QuotaGate, QuotaState, TierDecision, is_override_key
from .runs.events import EventWriter

_AUTH_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}
_AUTH_MARKERS = ("requested entity was not found", "api key not valid", "api_key_invalid")
_RATE_LIMIT_MARKERS = ("429", "quota exceeded", "resource_exhausted")


@dataclass(frozen=True)
class GenerationResult:
    asset: ImageAsset
    prompt: str
    model: str
    decision: TierDecision
    record: SessionRecord
    credential_source: str
    used_today: int | None = None

    @property
    def advisory(self) -> QuotaDowngrade | None:
        return self.decision.advisory


class GenerationDispatcher:
    def __init__(
        self,
        backend: ImageBackend,
        *,
        history: HistoryStack,
        archive: SessionArchive,
        quota_gate: QuotaGate,
        credentials: CredentialResolver,
        events: EventWriter,
        models: ModelRegistry | None = None,
    ) -> None:
        self.backend = backend
        self.history = history
        self.archive = archive
        self.quota_gate = quota_gate
        self.credentials = credentials
        self.events = events
        self.models = models or ModelRegistry()

    async def generate(
        self,
        request: GenerationRequest,
        quota_state: QuotaState,
        requested_tier: str = STANDARD,
        override_key: str | None = None,
        *,
        today: date | None = None,
    ) -> GenerationResult:
        """Run one generation end to end.

        Raises a ``GenerationError`` subclass on failure, in which case neither
        the quota record nor the history has been touched. A successful result
        may carry a downgrade advisory when premium was requested but denied.
        """

        try:
            validate(request)
            credential = self.credentials.resolve(override_key)
        except GenerationError as exc:
            self._emit_failure(exc, stage="prepare")
            raise
        self.events.emit("credential_resolved", source=credential.source)

        has_override = quota_state.has_override_credential or is_override_key(override_key)
        decision = self.quota_gate.decide(quota_state, requested_tier, has_override, today=today)
        self.events.emit(
            "tier_decided",
            identity=quota_state.identity,
            requested_tier=decision.requested_tier,
            granted_tier=decision.granted_tier,
            billable=decision.billable,
            downgraded=decision.downgraded,
        )
        if decision.advisory:
            self.events.emit("quota_downgraded", identity=quota_state.identity, message=decision.advisory.message)

        try:
            prompt = compose(request)
            model = self.models.for_role(decision.granted_tier)
        except GenerationError as exc:
            self._emit_failure(exc, stage="prepare")
            raise
        call = build_backend_call(prompt, request, model, decision)
        self.events.emit("generation_started", tab=request.tab, call=call.describe())

        started_at = time.monotonic()
        try:
            response = await self.backend.generate(call, credential.api_key)
        except GenerationError as exc:
            self._emit_failure(exc, stage="backend", model=model.name)
            raise
        except Exception as exc:
            error = classify_backend_error(exc)
            self._emit_failure(error, stage="backend", model=model.name)
            raise error from exc
        elapsed = max(time.monotonic() - started_at, 0.0)

        try:
            image = extract_first_image(response)
        except NoImageError as exc:
            self._emit_failure(exc, stage="response", model=model.name)
            raise

        asset = ImageAsset(data=image.data, media_type=image.media_type)
        self.history.push(asset)
        record = self.archive.append(asset, request.archive_label)
        used_today = self._bill(quota_state.identity, today) if decision.billable else None
        self.events.emit(
            "generation_succeeded",
            record_id=record.id,
            model=model.name,
            granted_tier=decision.granted_tier,
            media_type=asset.media_type,
            sha256=asset.sha256,
            latency_s=elapsed,
            history_step=self.history.step,
        )
        return GenerationResult(
            asset=asset,
            prompt=prompt,
            model=model.name,
            decision=decision,
            record=record,
            credential_source=credential.source,
            used_today=used_today,
        )

    def _bill(self, identity: str, today: date | None) -> int | None:
        # The image is already delivered; accounting failures are recorded, not raised.
        try:
            used_today = self.quota_gate.bill(identity, today)
        except (sqlite3.Error, OSError) as exc:
            self.events.emit("quota_billing_failed", identity=identity, error=str(exc))
            return None
        self.events.emit("quota_billed", identity=identity, used_today=used_today)
        return used_today

    def _emit_failure(self, error: GenerationError, *, stage: str, model: str | None = None) -> None:
        self.events.emit(
            "generation_failed",
            stage=stage,
            model=model,
            error_type=type(error).__name__,
            error=error.detail,
            user_message=error.user_message,
        )


def build_backend_call(
    prompt: str,
    request: GenerationRequest,
    model: ModelSpec,
    decision: TierDecision,
) -> BackendCall:
    parts: list[Part] = [TextPart(text=prompt)]
    for image in (request.source_image, request.reference_image):
        if image is not None:
            parts.append(InlineImagePart(data=image.data, media_type=image.media_type))
    premium = decision.granted_tier != STANDARD
    return BackendCall(
        model=model.name,
        parts=tuple(parts),
        image_size=model.image_size if premium else None,
        aspect_ratio=model.aspect_ratio if premium else None,
    )


def extract_first_image(response: BackendResponse) -> InlineImagePart:
    candidate = response.first_candidate()
    image = candidate.first_image() if candidate else None
    if image is None:
        raise NoImageError("Backend response contained no inline image.")
    return image


def classify_backend_error(exc: Exception) -> GenerationError:
    message = str(exc) or type(exc).__name__
    lowered = message.lower()
    code = getattr(exc, "code", None)
    status = str(getattr(exc, "status", "") or "").upper()
    if code in (401, 403) or status in _AUTH_STATUSES or any(marker in lowered for marker in _AUTH_MARKERS):
        return BackendAuthError(message)
    if code == 429 or status == "RESOURCE_EXHAUSTED" or any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
        return BackendRateLimitError(message)
    return BackendError(message)
