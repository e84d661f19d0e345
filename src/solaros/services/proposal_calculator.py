from __future__ import annotations

from datetime import date

import pandas as pd

from solaros.domain.assumptions import ProposalAssumptions, credit_score_for
from solaros.domain.errors import Advisory, AdvisoryCode, MissingReferenceData
from solaros.domain.finance import (
    amortization_schedule,
    annuity_payment,
    approximate_irr,
    breakeven_year,
    project_savings,
    roi_pct,
    round_half_up,
    round_optional,
    simple_payback,
)
from solaros.domain.proposal import (
    CashFlowSummary,
    CostBreakdown,
    EnvironmentalImpact,
    FinancialInput,
    FinancingOptions,
    LeaseOption,
    LoanOption,
    ProposalResult,
    ProposalWorksheet,
    SystemDesign,
)
from solaros.domain.reference import (
    FinancingProgram,
    PermittingAuthority,
    ReferenceDataBundle,
    RegionalWeather,
    UtilityRatePlan,
)
from solaros.services.incentives import layer_incentives


def _require_reference_data(bundle: ReferenceDataBundle) -> None:
    missing = [
        name
        for name, record in (
            ("utility", bundle.utility),
            ("authority", bundle.authority),
            ("weather", bundle.weather),
        )
        if record is None
    ]
    if missing:
        raise MissingReferenceData(missing)


# =====================================================================
# Steps 1-4: sizing, cost, incentives, net cost
# =====================================================================


def _size_system(
    ws: ProposalWorksheet,
    inp: FinancialInput,
    utility: UtilityRatePlan,
    weather: RegionalWeather,
    a: ProposalAssumptions,
) -> None:
    ws.monthly_consumption_kwh = inp.monthly_bill / utility.base_rate
    ws.annual_consumption_kwh = ws.monthly_consumption_kwh * 12
    ws.target_production_kwh = ws.annual_consumption_kwh * inp.offset_target_pct / 100.0

    # production per kW of nameplate in year 1
    yield_per_kw = weather.peak_sun_hours * a.days_per_year * a.system_efficiency
    ws.size_kw = ws.target_production_kwh / yield_per_kw
    ws.year1_production_kwh = ws.size_kw * yield_per_kw

    if ws.annual_consumption_kwh > 0:
        ws.offset_pct = ws.year1_production_kwh / ws.annual_consumption_kwh * 100.0
    else:
        ws.offset_pct = 0.0
        ws.advise(Advisory(
            AdvisoryCode.DEGENERATE_FINANCIALS,
            "No measurable consumption; system sized at 0 kW",
        ))


def _estimate_cost(ws: ProposalWorksheet, a: ProposalAssumptions) -> None:
    ws.gross_cost = ws.size_kw * 1000 * a.cost_per_watt
    ws.roof_area_sqft = ws.size_kw * a.roof_sqft_per_kw


def _apply_incentives(
    ws: ProposalWorksheet,
    bundle: ReferenceDataBundle,
    utility: UtilityRatePlan,
    as_of: date,
    a: ProposalAssumptions,
) -> None:
    layered = layer_incentives(
        ws.gross_cost,
        bundle.incentives,
        region=utility.region,
        as_of=as_of,
        federal_itc_rate=a.federal_itc_rate,
        expiry_notice_days=a.expiry_notice_days,
    )
    ws.federal_tax_credit = layered.federal
    ws.state_incentives = layered.state
    ws.utility_rebates = layered.utility
    ws.incentive_expirations.extend(layered.expiration_notices)


def _project_costs(ws: ProposalWorksheet, authority: PermittingAuthority) -> None:
    ws.permitting_cost = authority.permit_fee + authority.inspection_fee
    if ws.net_system_cost < 0:
        # kept as-is, no floor
        ws.advise(Advisory(
            AdvisoryCode.DEGENERATE_FINANCIALS,
            "Incentives exceed system cost; net system cost is negative",
        ))


# =====================================================================
# Step 5: 25-year projection
# =====================================================================


def _project_cash_flow(
    ws: ProposalWorksheet,
    utility: UtilityRatePlan,
    a: ProposalAssumptions,
) -> tuple[CashFlowSummary, pd.DataFrame]:
    table = project_savings(
        ws.year1_production_kwh,
        utility.base_rate,
        utility.rate_escalation_pct,
        a.production_degradation_rate,
        years=a.analysis_years,
    )
    cumulative = float(table["cumulative_savings"].iloc[-1])

    # nominal first-year figure: undegraded, unescalated
    year1_savings = ws.year1_production_kwh * utility.base_rate
    total_cost = ws.total_project_cost

    payback = simple_payback(ws.net_system_cost, year1_savings)
    if payback is None:
        ws.advise(Advisory(
            AdvisoryCode.DEGENERATE_FINANCIALS,
            "Year-1 savings is not positive; payback period is undefined",
        ))

    roi = roi_pct(cumulative, total_cost)
    irr = approximate_irr(cumulative, total_cost, years=a.analysis_years)
    if total_cost <= 0:
        ws.advise(Advisory(
            AdvisoryCode.DEGENERATE_FINANCIALS,
            "Total project cost is not positive; ROI and IRR are undefined",
        ))

    table["net_position"] = table["cumulative_savings"] - total_cost

    summary = CashFlowSummary(
        year1_savings=round_half_up(year1_savings),
        cumulative_savings=round_half_up(cumulative),
        payback_years=round_optional(payback, 2),
        roi_pct=round_optional(roi),
        approximate_irr_pct=round_optional(irr),
        breakeven_year=breakeven_year(table["cumulative_savings"].to_numpy(), total_cost),
    )
    return summary, table


def _schedule_rows(table: pd.DataFrame) -> tuple[dict[str, float], ...]:
    return tuple(
        {
            "year": int(row.year),
            "utility_rate": round_half_up(float(row.utility_rate), 4),
            "production_kwh": round_half_up(float(row.production_kwh)),
            "savings": round_half_up(float(row.savings)),
            "cumulative_savings": round_half_up(float(row.cumulative_savings)),
            "net_position": round_half_up(float(row.net_position)),
        }
        for row in table.itertuples(index=False)
    )


# =====================================================================
# Step 6: financing
# =====================================================================


def _loan_option(
    ws: ProposalWorksheet,
    inp: FinancialInput,
    program: FinancingProgram,
) -> LoanOption:
    if credit_score_for(inp.credit_tier) < program.min_credit_score:
        ws.advise(Advisory(
            AdvisoryCode.CREDIT_INELIGIBLE,
            f"Credit score below {program.min_credit_score} minimum for {program.program_name}",
        ))

    if not program.can_combine_with_incentives:
        ws.advise(Advisory(
            AdvisoryCode.FINANCING_NOTICE,
            f"{program.program_name} cannot be combined with incentives; "
            "loan figures assume incentives are applied",
        ))

    loan_amount = min(ws.net_system_cost, program.max_loan_amount)
    if loan_amount <= 0:
        ws.advise(Advisory(
            AdvisoryCode.FINANCING_NOTICE,
            "Net system cost is not positive; nothing to finance",
        ))
        loan_amount = 0.0
    elif loan_amount < program.min_loan_amount:
        ws.advise(Advisory(
            AdvisoryCode.FINANCING_NOTICE,
            f"Loan amount below {program.program_name} minimum of ${program.min_loan_amount:,.0f}",
        ))

    origination_fee = loan_amount * program.origination_fee_pct / 100.0
    principal = loan_amount + origination_fee

    monthly_rate = program.interest_rate / 100.0 / 12.0
    n_payments = program.term_years * 12
    monthly_payment = annuity_payment(monthly_rate, n_payments, principal)

    schedule = amortization_schedule(principal, program.interest_rate, program.term_years)

    return LoanOption(
        program_name=program.program_name,
        loan_amount=round_half_up(loan_amount),
        origination_fee=round_half_up(origination_fee),
        financed_principal=round_half_up(principal),
        interest_rate_pct=program.interest_rate,
        term_years=program.term_years,
        number_of_payments=n_payments,
        monthly_payment=round_half_up(monthly_payment),
        total_cost=round_half_up(monthly_payment * n_payments),
        total_interest=round_half_up(float(schedule["interest"].sum())),
    )


def _lease_option(cash_price: float, a: ProposalAssumptions) -> LeaseOption:
    monthly = cash_price * a.lease_annual_factor / 12.0
    return LeaseOption(
        monthly_payment=round_half_up(monthly),
        term_years=a.lease_term_years,
        total_cost=round_half_up(monthly * 12 * a.lease_term_years),
    )


def _financing_options(
    ws: ProposalWorksheet,
    inp: FinancialInput,
    program: FinancingProgram | None,
    a: ProposalAssumptions,
) -> FinancingOptions:
    cash_price = ws.net_system_cost
    loan = None
    lease = None

    if inp.financing_mode == "loan":
        if program is not None:
            loan = _loan_option(ws, inp, program)
        else:
            ws.advise(Advisory(
                AdvisoryCode.FINANCING_NOTICE,
                "Loan financing requested without a financing program; loan figures omitted",
            ))
    elif inp.financing_mode == "lease":
        lease = _lease_option(cash_price, a)

    return FinancingOptions(cash_price=round_half_up(cash_price), loan=loan, lease=lease)


# =====================================================================
# Entry point
# =====================================================================


def calculate_proposal(
    financial_input: FinancialInput,
    bundle: ReferenceDataBundle,
    *,
    as_of: date | None = None,
    assumptions: ProposalAssumptions | None = None,
) -> ProposalResult:
    """
    Size a system and project its economics from already-resolved
    reference data.

    Raises MissingReferenceData if the utility plan, permitting authority or
    weather record is absent; every other anomaly becomes a warning on the
    returned result. Figures keep full precision until the result is built.
    """
    _require_reference_data(bundle)
    utility, authority, weather = bundle.utility, bundle.authority, bundle.weather
    a = assumptions or ProposalAssumptions()
    as_of = as_of or date.today()

    ws = ProposalWorksheet()

    _size_system(ws, financial_input, utility, weather, a)
    _estimate_cost(ws, a)
    _apply_incentives(ws, bundle, utility, as_of, a)
    _project_costs(ws, authority)
    cash_flow, table = _project_cash_flow(ws, utility, a)
    financing = _financing_options(ws, financial_input, bundle.financing_program, a)

    # Step 7: environmental impact
    co2_tons = ws.year1_production_kwh / 1000.0 * a.co2_tons_per_mwh
    net_metered = ws.year1_production_kwh * a.net_metered_share if utility.net_metering_available else 0.0

    return ProposalResult(
        system=SystemDesign(
            size_kw=round_half_up(ws.size_kw, 2),
            annual_production_kwh=round_half_up(ws.year1_production_kwh),
            offset_pct=round_half_up(ws.offset_pct),
            roof_area_sqft=round_half_up(ws.roof_area_sqft),
        ),
        costs=CostBreakdown(
            gross_cost=round_half_up(ws.gross_cost),
            federal_tax_credit=round_half_up(ws.federal_tax_credit),
            state_incentives=round_half_up(ws.state_incentives),
            utility_rebates=round_half_up(ws.utility_rebates),
            total_incentives=round_half_up(ws.total_incentives),
            net_system_cost=round_half_up(ws.net_system_cost),
            permitting_cost=round_half_up(ws.permitting_cost),
            total_project_cost=round_half_up(ws.total_project_cost),
        ),
        cash_flow=cash_flow,
        financing=financing,
        environment=EnvironmentalImpact(
            annual_co2_offset_tons=round_half_up(co2_tons, 2),
            net_metered_production_kwh=round_half_up(net_metered),
        ),
        assumptions={
            "utility_rate_per_kwh": utility.base_rate,
            "rate_escalation_pct": utility.rate_escalation_pct,
            "production_degradation_pct": a.production_degradation_rate * 100.0,
            "peak_sun_hours_per_day": weather.peak_sun_hours,
            "system_efficiency": a.system_efficiency,
            "cost_per_watt": a.cost_per_watt,
            "federal_itc_pct": a.federal_itc_rate * 100.0,
            "offset_target_pct": financial_input.offset_target_pct,
            "analysis_years": a.analysis_years,
            "as_of": as_of.isoformat(),
        },
        schedule=_schedule_rows(table),
        warnings=tuple(ws.warnings),
        advisories=tuple(ws.advisories),
        incentive_expirations=tuple(ws.incentive_expirations),
    )
