from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LeadTier = Literal["hot", "warm", "cold"]
PropertyCategory = Literal["residential", "commercial", "non-profit"]
FinancingReadiness = Literal["cash", "loan", "lease", "unknown"]
CreditTier = Literal["excellent", "good", "fair", "poor"]


class ProspectAttributes(BaseModel):
    """
    Everything the qualification rules look at for one prospect.

    Optional fields default to values that earn no bonus, so a sparse
    intake form still scores.
    """
    model_config = ConfigDict(frozen=True)

    monthly_bill: float = Field(..., allow_inf_nan=False, description="Average monthly electric bill in dollars")
    home_owner: bool = False
    property_category: PropertyCategory = "residential"
    financing_readiness: FinancingReadiness = "unknown"
    appointment_scheduled: bool = False
    engagement_activity: int = Field(default=0, ge=0, description="Recent calls, emails, visits")
    credit_tier: CreditTier | None = None


@dataclass(frozen=True)
class ScoringOutput:
    tier: LeadTier
    points: int                       # running total after all rules
    reason: str                       # informational, never used to classify
    next_action: str
    objection_flags: tuple[str, ...]  # rule order, no duplicates

    def to_dict(self) -> dict:
        return {
            "tier": self.tier,
            "points": self.points,
            "reason": self.reason,
            "next_action": self.next_action,
            "objection_flags": list(self.objection_flags),
        }
