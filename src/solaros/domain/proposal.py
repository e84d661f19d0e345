from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from solaros.domain.errors import Advisory
from solaros.domain.prospect import CreditTier

FinancingMode = Literal["cash", "loan", "lease"]


class FinancialInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly_bill: float = Field(..., ge=0, allow_inf_nan=False, description="Average monthly electric bill in dollars")
    offset_target_pct: float = Field(default=100.0, allow_inf_nan=False, description="100 means size for 100% of usage")
    credit_tier: CreditTier | None = None
    financing_mode: FinancingMode = "cash"

    @field_validator("offset_target_pct", mode="before")
    @classmethod
    def _pct_positive(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        f = float(v)
        if f <= 0:
            raise ValueError("offset_target_pct must be > 0")
        return f


@dataclass(frozen=True)
class SystemDesign:
    size_kw: float
    annual_production_kwh: float
    offset_pct: float
    roof_area_sqft: float  # advisory only


@dataclass(frozen=True)
class CostBreakdown:
    gross_cost: float
    federal_tax_credit: float
    state_incentives: float
    utility_rebates: float
    total_incentives: float
    net_system_cost: float  # may be negative when incentives exceed cost
    permitting_cost: float
    total_project_cost: float


@dataclass(frozen=True)
class CashFlowSummary:
    year1_savings: float
    cumulative_savings: float
    payback_years: float | None      # None when year-1 savings <= 0
    roi_pct: float | None
    approximate_irr_pct: float | None
    breakeven_year: int | None       # first year cumulative savings cover project cost


@dataclass(frozen=True)
class LoanOption:
    program_name: str
    loan_amount: float
    origination_fee: float
    financed_principal: float
    interest_rate_pct: float
    term_years: int
    number_of_payments: int
    monthly_payment: float
    total_cost: float
    total_interest: float


@dataclass(frozen=True)
class LeaseOption:
    monthly_payment: float
    term_years: int
    total_cost: float


@dataclass(frozen=True)
class FinancingOptions:
    cash_price: float
    loan: LoanOption | None = None
    lease: LeaseOption | None = None


@dataclass(frozen=True)
class EnvironmentalImpact:
    annual_co2_offset_tons: float
    net_metered_production_kwh: float


@dataclass(frozen=True)
class ProposalResult:
    system: SystemDesign
    costs: CostBreakdown
    cash_flow: CashFlowSummary
    financing: FinancingOptions
    environment: EnvironmentalImpact
    assumptions: dict[str, Any]
    schedule: tuple[dict[str, float], ...] = ()
    warnings: tuple[str, ...] = ()
    advisories: tuple[Advisory, ...] = ()
    incentive_expirations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out = {
            "system": asdict(self.system),
            "costs": asdict(self.costs),
            "cash_flow": asdict(self.cash_flow),
            "financing": asdict(self.financing),
            "environment": asdict(self.environment),
            "assumptions": dict(self.assumptions),
            "schedule": [dict(row) for row in self.schedule],
            "warnings": list(self.warnings),
            "advisories": [a.to_dict() for a in self.advisories],
            "incentive_expirations": list(self.incentive_expirations),
        }
        return out


@dataclass
class ProposalWorksheet:
    """Unrounded intermediate figures, carried through every step."""
    monthly_consumption_kwh: float = 0.0
    annual_consumption_kwh: float = 0.0
    target_production_kwh: float = 0.0
    size_kw: float = 0.0
    year1_production_kwh: float = 0.0
    offset_pct: float = 0.0
    gross_cost: float = 0.0
    roof_area_sqft: float = 0.0
    federal_tax_credit: float = 0.0
    state_incentives: float = 0.0
    utility_rebates: float = 0.0
    permitting_cost: float = 0.0
    warnings: list[str] = field(default_factory=list)
    advisories: list[Advisory] = field(default_factory=list)
    incentive_expirations: list[str] = field(default_factory=list)

    @property
    def total_incentives(self) -> float:
        return self.federal_tax_credit + self.state_incentives + self.utility_rebates

    @property
    def net_system_cost(self) -> float:
        return self.gross_cost - self.total_incentives

    @property
    def total_project_cost(self) -> float:
        return self.net_system_cost + self.permitting_cost

    def advise(self, advisory: Advisory) -> None:
        self.advisories.append(advisory)
        self.warnings.append(advisory.message)
