from __future__ import annotations

import logging
import time
import uuid
from datetime import date, datetime, timedelta
from typing import Any

from solaros.adapters.config import AppConfig, config
from solaros.adapters.logging_utils import get_logger, log_event
from solaros.domain.assumptions import ProposalAssumptions
from solaros.domain.errors import RecordNotFound
from solaros.domain.ports import LeadRepository, ProposalRepository, ReferenceDataProvider
from solaros.domain.proposal import FinancialInput, ProposalResult
from solaros.domain.reference import ReferenceDataBundle
from solaros.services.proposal_calculator import calculate_proposal

logger = get_logger(__name__)


def assumptions_from_config(cfg: AppConfig = config) -> ProposalAssumptions:
    return ProposalAssumptions(
        system_efficiency=cfg.SYSTEM_EFFICIENCY,
        cost_per_watt=cfg.COST_PER_WATT,
        federal_itc_rate=cfg.FEDERAL_ITC_RATE,
        production_degradation_rate=cfg.PRODUCTION_DEGRADATION_RATE,
        expiry_notice_days=cfg.INCENTIVE_EXPIRY_NOTICE_DAYS,
    )


def resolve_reference_data(
    reference: ReferenceDataProvider,
    *,
    utility_id: int,
    authority_id: int,
    loan_program_id: int | None = None,
) -> ReferenceDataBundle:
    """
    Fetch one consistent snapshot for the calculator. Absent records stay
    None; the calculator decides whether that is fatal.
    """
    utility = reference.get_utility(utility_id)
    authority = reference.get_authority(authority_id)

    weather = None
    incentives = []
    if utility is not None:
        weather = reference.get_weather(zip_code=utility.zip_code, region=utility.region)
        incentives = reference.list_incentives(region=utility.region)

    program = reference.get_financing_program(loan_program_id) if loan_program_id else None

    return ReferenceDataBundle(
        utility=utility,
        authority=authority,
        weather=weather,
        incentives=tuple(incentives),
        financing_program=program,
    )


def _proposal_number() -> str:
    return f"PROP-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6].upper()}"


def _summary(result: ProposalResult) -> dict[str, Any]:
    cf = result.cash_flow
    loan = result.financing.loan
    lease = result.financing.lease
    return {
        "system_size": f"{result.system.size_kw} kW",
        "annual_production": f"{result.system.annual_production_kwh:,.0f} kWh",
        "offset_percentage": f"{result.system.offset_pct:.0f}%",
        "year1_savings": f"${cf.year1_savings:,.0f}",
        "total_savings_25_years": f"${cf.cumulative_savings:,.0f}",
        "payback_period": f"{cf.payback_years} years" if cf.payback_years is not None else "n/a",
        "net_cost": f"${result.costs.net_system_cost:,.0f}",
        "loan": f"${loan.monthly_payment:,.0f}/month" if loan else None,
        "lease": f"${lease.monthly_payment:,.0f}/month" if lease else None,
    }


def generate_proposal(
    request: dict[str, Any],
    *,
    reference: ReferenceDataProvider,
    leads: LeadRepository,
    proposals: ProposalRepository,
    assumptions: ProposalAssumptions | None = None,
    as_of: date | None = None,
    valid_days: int | None = None,
) -> dict[str, Any]:
    """
    Build, persist and return a draft proposal for an existing lead.

    Raises:
      ValueError            missing ids / bad inputs
      RecordNotFound        unknown lead
      MissingReferenceData  utility, authority or weather absent
    """
    if not request.get("lead_id") or not request.get("utility_id") or not request.get("authority_id"):
        raise ValueError("Missing lead_id, utility_id, or authority_id")

    lead = leads.get(int(request["lead_id"]))
    if lead is None:
        raise RecordNotFound(f"Lead not found: {request['lead_id']}")

    financing = str(request.get("financing") or "cash").lower()
    loan_program_id = request.get("loan_program_id")
    bundle = resolve_reference_data(
        reference,
        utility_id=int(request["utility_id"]),
        authority_id=int(request["authority_id"]),
        loan_program_id=int(loan_program_id) if loan_program_id and financing == "loan" else None,
    )

    offset = request.get("offset_target_pct")
    inp = FinancialInput(
        monthly_bill=float(lead["monthly_electric_bill"]),
        # 0 is passed through so the validator rejects it
        offset_target_pct=config.DEFAULT_OFFSET_TARGET_PCT if offset is None else offset,
        credit_tier=lead.get("credit_range") or None,
        financing_mode=financing,
    )
    result = calculate_proposal(
        inp,
        bundle,
        as_of=as_of,
        assumptions=assumptions or assumptions_from_config(),
    )
    log_event(
        logger,
        "proposal_calculated",
        lead_id=lead["id"],
        system_size_kw=result.system.size_kw,
        warnings=len(result.warnings),
    )

    days = valid_days if valid_days is not None else config.PROPOSAL_VALID_DAYS
    number = _proposal_number()
    payload = result.to_dict()
    saved = proposals.save(
        {
            "lead_id": lead["id"],
            "proposal_number": number,
            "loan_program_id": bundle.financing_program.id if bundle.financing_program else None,
            "system_size_kw": result.system.size_kw,
            "estimated_annual_production": result.system.annual_production_kwh,
            "offset_percentage": result.system.offset_pct,
            "monthly_consumption_kwh": inp.monthly_bill / bundle.utility.base_rate,
            "roof_condition_approved": bool(request.get("roof_condition_approved")),
            "projected_annual_savings": result.cash_flow.year1_savings,
            "projected_total_savings": result.cash_flow.cumulative_savings,
            "payback_years": result.cash_flow.payback_years,
            "cash_price": result.financing.cash_price,
            "total_incentives": result.costs.total_incentives,
            "status": "draft",
            "expiration_date": datetime.utcnow() + timedelta(days=days),
            "result": payload,
        }
    )
    log_event(logger, "proposal_saved", proposal_id=saved["id"], number=number)

    leads.update(lead["id"], {"status": "proposed", "next_action": "review_proposal"})
    payback = result.cash_flow.payback_years
    try:
        leads.add_activity(
            lead_id=lead["id"],
            type="proposal_sent",
            notes=(
                f"Proposal {number} generated: {result.system.size_kw}kW system, "
                f"{payback if payback is not None else 'n/a'} year payback"
            ),
        )
    except Exception as e:
        log_event(logger, "lead_activity_failed", logging.WARNING, lead_id=lead["id"], error=str(e))

    return {
        "id": saved["id"],
        "proposal_number": number,
        "lead_id": lead["id"],
        "status": "draft",
        "expires_at": saved["expiration_date"],
        "summary": _summary(result),
        **payload,
    }
