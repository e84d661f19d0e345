# src/solaros/domain/reference.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

IncentiveType = Literal["federal_tax_credit", "state_rebate", "utility_rebate"]


class IncentiveBucket(str, Enum):
    FEDERAL = "federal"
    STATE = "state"
    UTILITY = "utility"


_BUCKET_BY_TYPE: dict[str, IncentiveBucket] = {
    "federal_tax_credit": IncentiveBucket.FEDERAL,
    "state_rebate": IncentiveBucket.STATE,
    "utility_rebate": IncentiveBucket.UTILITY,
}


class UtilityRatePlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str = ""
    region: str = Field(..., description="State code the plan belongs to, e.g. CA")
    zip_code: str = ""

    base_rate: float = Field(..., description="$ per kWh")
    rate_escalation_pct: float = Field(default=0.0, description="Annual escalation, 3.8 means 3.8%")
    tiered_rates: bool = False
    net_metering_available: bool = False
    net_metering_credit: float = 0.0

    @field_validator("base_rate")
    @classmethod
    def _rate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("base_rate must be > 0")
        return v


class PermittingAuthority(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    county_name: str = ""
    region: str = ""
    city: str | None = None

    permit_fee: float = Field(default=0.0, ge=0)
    inspection_fee: float = Field(default=0.0, ge=0)

    avg_permit_days: int | None = None
    avg_inspection_wait_days: int | None = None
    requires_electrical_sealed: bool = False


class RegionalWeather(BaseModel):
    model_config = ConfigDict(frozen=True)

    zip_code: str
    region: str = ""
    peak_sun_hours: float = Field(..., description="Average peak sun hours per day")

    # stored for reference, the engine does not apply them
    production_multiplier: float = 1.0
    weather_adjustment: float = 1.0

    @field_validator("peak_sun_hours")
    @classmethod
    def _sun_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("peak_sun_hours must be > 0")
        return v


class IncentiveProgram(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str
    description: str = ""
    type: IncentiveType

    amount: float = Field(..., description="Flat dollars, or percent of gross cost when is_percentage")
    is_percentage: bool = False
    cap: float | None = Field(default=None, ge=0)
    region: str | None = None  # None = available everywhere
    expiration_date: date

    @property
    def bucket(self) -> IncentiveBucket:
        return _BUCKET_BY_TYPE[self.type]

    def is_active(self, as_of: date) -> bool:
        return self.expiration_date > as_of

    def matches_region(self, region: str | None) -> bool:
        if self.region is None:
            return True
        return (region or "").strip().upper() == self.region.strip().upper()


class FinancingProgram(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    lender_name: str = ""
    program_name: str
    region: str | None = None

    min_credit_score: int = 0
    min_loan_amount: float = Field(default=0.0, ge=0)
    max_loan_amount: float = Field(..., gt=0)
    interest_rate: float = Field(..., ge=0, description="Annual percent, 7.99 means 7.99%")
    term_years: int = Field(..., gt=0)
    origination_fee_pct: float = Field(default=0.0, ge=0)
    can_combine_with_incentives: bool = True


@dataclass(frozen=True)
class ReferenceDataBundle:
    """
    Snapshot of everything one proposal calculation reads.

    The three site records may be None so the calculator can report exactly
    which ones the caller failed to supply.
    """
    utility: UtilityRatePlan | None
    authority: PermittingAuthority | None
    weather: RegionalWeather | None
    incentives: Sequence[IncentiveProgram] = field(default_factory=tuple)
    financing_program: FinancingProgram | None = None
