# src/solaros/domain/assumptions.py
from pydantic import BaseModel, ConfigDict


class ProposalAssumptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_efficiency: float = 0.85         # module + inverter losses
    cost_per_watt: float = 2.75             # installed $/W
    roof_sqft_per_kw: float = 65.0
    federal_itc_rate: float = 0.30
    production_degradation_rate: float = 0.005
    analysis_years: int = 25
    co2_tons_per_mwh: float = 0.92          # US grid average
    net_metered_share: float = 0.15         # share of production exported
    lease_annual_factor: float = 0.0075
    lease_term_years: int = 20
    expiry_notice_days: int = 90
    days_per_year: int = 365


# approximate FICO used to compare against lender minimums
CREDIT_SCORE_BY_TIER: dict[str, int] = {
    "excellent": 750,
    "good": 700,
    "fair": 650,
    "poor": 600,
}
DEFAULT_CREDIT_SCORE = 600


def credit_score_for(tier: str | None) -> int:
    if tier is None:
        return DEFAULT_CREDIT_SCORE
    return CREDIT_SCORE_BY_TIER.get(tier, DEFAULT_CREDIT_SCORE)
