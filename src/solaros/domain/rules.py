from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from solaros.domain.prospect import LeadTier, ProspectAttributes


@dataclass(frozen=True)
class ScoringRule:
    name: str
    applies: Callable[[ProspectAttributes], bool]
    points: int
    flag: str | None = None


def _financed_with_weak_credit(p: ProspectAttributes) -> bool:
    return (
        p.financing_readiness != "cash"
        and p.credit_tier is not None
        and p.credit_tier not in ("excellent", "good")
    )


# Applied left to right; every rule whose predicate holds contributes.
LEAD_RULES: tuple[ScoringRule, ...] = (
    # 1. consumption (primary demand indicator)
    ScoringRule("bill_200_plus", lambda p: p.monthly_bill >= 200, 40),
    ScoringRule("bill_120_plus", lambda p: 120 <= p.monthly_bill < 200, 30),
    ScoringRule("bill_80_plus", lambda p: 80 <= p.monthly_bill < 120, 15),
    # catch-all for the bands above
    ScoringRule("bill_low", lambda p: not p.monthly_bill >= 80, -20, "low_consumption_low_roi"),
    # 2. ownership
    ScoringRule("home_owner", lambda p: p.home_owner, 20),
    ScoringRule("renter", lambda p: not p.home_owner, -30, "renter_no_ownership"),
    # 3. property category
    ScoringRule("residential", lambda p: p.property_category == "residential", 15),
    ScoringRule("commercial", lambda p: p.property_category == "commercial", 10),
    ScoringRule("non_profit", lambda p: p.property_category == "non-profit", 25),
    # 4. financing readiness
    ScoringRule("cash", lambda p: p.financing_readiness == "cash", 25),
    ScoringRule("loan", lambda p: p.financing_readiness == "loan", 20),
    ScoringRule("lease", lambda p: p.financing_readiness == "lease", 10),
    ScoringRule(
        "financing_unknown",
        lambda p: p.financing_readiness == "unknown",
        -15,
        "financing_status_unknown",
    ),
    # 5. credit, only matters when financing
    ScoringRule("weak_credit", _financed_with_weak_credit, -20, "credit_score_concern"),
    # 6. appointment (intent)
    ScoringRule("appointment", lambda p: p.appointment_scheduled, 20),
    ScoringRule("no_appointment", lambda p: not p.appointment_scheduled, -10),
    # 7. engagement (sales velocity)
    ScoringRule("engagement_high", lambda p: p.engagement_activity >= 5, 15),
    ScoringRule("engagement_some", lambda p: 2 <= p.engagement_activity < 5, 5),
    ScoringRule("engagement_low", lambda p: p.engagement_activity < 2, -10),
)

# (lower bound inclusive, tier, next action), checked top-down
TIER_THRESHOLDS: tuple[tuple[int, LeadTier, str], ...] = (
    (80, "hot", "schedule_site_survey"),
    (40, "warm", "send_proposal_request"),
)
FALLBACK_TIER: tuple[LeadTier, str] = ("cold", "nurture_campaign")


def apply_rules(
    prospect: ProspectAttributes,
    rules: tuple[ScoringRule, ...] = LEAD_RULES,
) -> tuple[int, list[str]]:
    points = 0
    flags: list[str] = []
    for rule in rules:
        if not rule.applies(prospect):
            continue
        points += rule.points
        if rule.flag and rule.flag not in flags:
            flags.append(rule.flag)
    return points, flags


def classify(points: int) -> tuple[LeadTier, str]:
    for lower, tier, action in TIER_THRESHOLDS:
        if points >= lower:
            return tier, action
    return FALLBACK_TIER
