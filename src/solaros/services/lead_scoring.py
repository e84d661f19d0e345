from __future__ import annotations

from typing import Iterable

from solaros.domain.prospect import ProspectAttributes, ScoringOutput
from solaros.domain.rules import TIER_THRESHOLDS, FALLBACK_TIER, apply_rules, classify

REASON_SEPARATOR = " • "

REBUTTALS: dict[str, str] = {
    "low_consumption_low_roi": (
        "Solar still provides 15-20 year payback even at lower consumption. "
        "Combined with battery backup for outage protection, the value extends "
        "beyond just savings."
    ),
    "renter_no_ownership": (
        "We specialize in community solar programs for renters. Let's explore "
        "alternatives that work for your situation."
    ),
    "financing_status_unknown": (
        "We work with multiple lenders. Let's discuss your financing comfort level "
        "and I'll identify the best programs for you."
    ),
    "credit_score_concern": (
        "Credit score is just one factor. We have programs for fair credit ranges. "
        "Let's review your options."
    ),
}

_NEXT_ACTION_BY_TIER = {tier: action for _, tier, action in TIER_THRESHOLDS}
_NEXT_ACTION_BY_TIER[FALLBACK_TIER[0]] = FALLBACK_TIER[1]


def _scoring_reason(p: ProspectAttributes) -> str:
    reasons: list[str] = []

    if p.monthly_bill >= 200:
        reasons.append("High electricity consumption ($200+/mo)")
    elif not p.monthly_bill >= 80:
        reasons.append("Low electricity consumption - limited ROI")

    if p.home_owner:
        reasons.append("Homeowner (decision maker)")
    if p.financing_readiness == "cash":
        reasons.append("Cash buyer (fast close potential)")
    if p.appointment_scheduled:
        reasons.append("Appointment already scheduled")
    if p.engagement_activity >= 5:
        reasons.append(f"High engagement ({p.engagement_activity} activities)")

    return REASON_SEPARATOR.join(reasons)


def score(prospect: ProspectAttributes) -> ScoringOutput:
    """
    Deterministic lead qualification.

    Runs the weighted rule table in priority order, then buckets the total:
    >= 80 hot, >= 40 warm, anything else cold.
    """
    points, flags = apply_rules(prospect)
    tier, next_action = classify(points)
    return ScoringOutput(
        tier=tier,
        points=points,
        reason=_scoring_reason(prospect),
        next_action=next_action,
        objection_flags=tuple(flags),
    )


def next_action_for_tier(tier: str) -> str:
    return _NEXT_ACTION_BY_TIER.get(tier, "follow_up")


def get_rebuttals(objection_flags: Iterable[str]) -> dict[str, str]:
    # unknown flags are skipped
    return {flag: REBUTTALS[flag] for flag in objection_flags if flag in REBUTTALS}
