"""Quota-aware tier selection and billing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from ..utils import today_utc
from .store import QuotaRecord, QuotaStore

STANDARD = "standard"
PREMIUM = "premium"
TIERS = (STANDARD, PREMIUM)

DEFAULT_DAILY_LIMIT = 10
OVERRIDE_KEY_MIN_LENGTH = 10
QUOTA_EXCEEDED_MESSAGE = "Daily Quota Exceeded. Switched to Standard Mode."


@dataclass(frozen=True)
class QuotaState:
    identity: str
    daily_limit: int
    used_today: int = 0
    last_usage_date: date | None = None
    has_override_credential: bool = False
    is_privileged: bool = False

    def __post_init__(self) -> None:
        if self.daily_limit < 0:
            raise ValueError("daily_limit must be non-negative.")
        if self.used_today < 0:
            raise ValueError("used_today must be non-negative.")

    @classmethod
    def from_record(cls, record: QuotaRecord, *, has_override_credential: bool = False) -> QuotaState:
        # Only a missing limit takes the default; an explicit 0 is kept.
        limit = DEFAULT_DAILY_LIMIT if record.daily_limit is None else int(record.daily_limit)
        return cls(
            identity=record.identity,
            daily_limit=limit,
            used_today=record.used_today,
            last_usage_date=record.last_usage_date,
            has_override_credential=has_override_credential,
            is_privileged=record.is_privileged,
        )


@dataclass(frozen=True)
class QuotaDowngrade:
    """Advisory attached to a successful result that ran below the requested tier."""

    requested_tier: str
    granted_tier: str
    message: str = QUOTA_EXCEEDED_MESSAGE


@dataclass(frozen=True)
class TierDecision:
    requested_tier: str
    granted_tier: str
    billable: bool
    downgraded: bool

    @property
    def advisory(self) -> QuotaDowngrade | None:
        if not self.downgraded:
            return None
        return QuotaDowngrade(requested_tier=self.requested_tier, granted_tier=self.granted_tier)


def is_override_key(api_key: str | None) -> bool:
    return len(str(api_key or "").strip()) > OVERRIDE_KEY_MIN_LENGTH


def effective_used(state: QuotaState, today: date | None = None) -> int:
    today = today or today_utc()
    return state.used_today if state.last_usage_date == today else 0


def has_premium_quota(state: QuotaState, today: date | None = None) -> bool:
    if state.is_privileged:
        return True
    return effective_used(state, today) < state.daily_limit


def decide(
    state: QuotaState,
    requested_tier: str,
    has_override: bool | None = None,
    *,
    today: date | None = None,
) -> TierDecision:
    if requested_tier not in TIERS:
        raise ValueError(f"Unknown tier '{requested_tier}'. Expected one of: {', '.join(TIERS)}.")
    override = state.has_override_credential if has_override is None else bool(has_override)
    if requested_tier == STANDARD:
        return TierDecision(requested_tier=STANDARD, granted_tier=STANDARD, billable=False, downgraded=False)
    if override or has_premium_quota(state, today):
        return TierDecision(
            requested_tier=PREMIUM,
            granted_tier=PREMIUM,
            billable=not override and not state.is_privileged,
            downgraded=False,
        )
    return TierDecision(requested_tier=PREMIUM, granted_tier=STANDARD, billable=False, downgraded=True)


def plan_name(daily_limit: int) -> str:
    if daily_limit >= 500:
        return "ENTERPRISE"
    if daily_limit >= 50:
        return "PRO PLAN"
    if daily_limit >= 1:
        return "STARTER"
    return "FREE"


def quota_summary(state: QuotaState, today: date | None = None) -> dict[str, Any]:
    used = effective_used(state, today)
    limit = state.daily_limit
    pct = 100.0 if limit == 0 else min(used / limit * 100.0, 100.0)
    return {
        "identity": state.identity,
        "plan": plan_name(limit),
        "daily_limit": limit,
        "used_today": used,
        "remaining": max(limit - used, 0),
        "usage_pct": round(pct, 1),
        "premium_available": has_premium_quota(state, today) or state.has_override_credential,
    }


class QuotaGate:
    def __init__(self, store: QuotaStore) -> None:
        self.store = store

    def load(self, identity: str, *, has_override_credential: bool = False) -> QuotaState:
        record = self.store.get_record(identity)
        if record is None:
            record = QuotaRecord(identity=identity, daily_limit=None, used_today=0, last_usage_date=None)
        return QuotaState.from_record(record, has_override_credential=has_override_credential)

    def decide(
        self,
        state: QuotaState,
        requested_tier: str,
        has_override: bool | None = None,
        *,
        today: date | None = None,
    ) -> TierDecision:
        return decide(state, requested_tier, has_override, today=today)

    def bill(self, identity: str, today: date | None = None) -> int:
        """Count one premium use and return the stored count."""

        return self.store.increment_usage(identity, today or today_utc())
