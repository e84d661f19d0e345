from __future__ import annotations

import logging
from typing import Any

from solaros.adapters.logging_utils import get_logger, log_event
from solaros.domain.ports import LeadRepository, ReferenceDataProvider
from solaros.domain.prospect import ProspectAttributes, ScoringOutput
from solaros.services.lead_scoring import get_rebuttals, score
from solaros.services.validation import validate_lead_changes, validate_lead_payload

logger = get_logger(__name__)

# lead columns that feed the scoring rules
_SCORING_FIELDS = {
    "monthly_electric_bill",
    "home_owner",
    "property_type",
    "financing",
    "appointment_scheduled",
    "engagement_activity",
    "credit_range",
}


def prospect_from_lead(lead: dict[str, Any]) -> ProspectAttributes:
    return ProspectAttributes(
        monthly_bill=float(lead.get("monthly_electric_bill") or 0.0),
        home_owner=bool(lead.get("home_owner")),
        property_category=lead.get("property_type") or "residential",
        financing_readiness=lead.get("financing") or "unknown",
        appointment_scheduled=bool(lead.get("appointment_scheduled")),
        engagement_activity=int(lead.get("engagement_activity") or 0),
        credit_tier=lead.get("credit_range") or None,
    )


def _scoring_columns(scoring: ScoringOutput) -> dict[str, Any]:
    return {
        "score": scoring.tier,
        "score_points": scoring.points,
        "next_action": scoring.next_action,
        "objections": get_rebuttals(scoring.objection_flags),
    }


def _log_activity(repo: LeadRepository, lead_id: int, type: str, notes: str) -> None:
    try:
        repo.add_activity(lead_id=lead_id, type=type, notes=notes)
    except Exception as e:
        # the lead itself is already stored; a missing activity row is tolerable
        log_event(logger, "lead_activity_failed", logging.WARNING, lead_id=lead_id, error=str(e))


def create_lead(
    raw_payload: dict[str, Any],
    *,
    reference: ReferenceDataProvider,
    repo: LeadRepository,
) -> dict[str, Any]:
    """
    Intake a new prospect: validate, score, attach rebuttals, persist.

    Raises ValueError for bad payloads or an unknown utility id.
    """
    payload = validate_lead_payload(raw_payload)

    utility = reference.get_utility(payload["utility_id"])
    if utility is None:
        raise ValueError("Invalid utility ID")

    authority = reference.find_authority(region=payload["state"], city=payload.get("city"))
    territory = reference.find_territory(region=payload["state"])

    scoring = score(prospect_from_lead(payload))

    record = {
        **payload,
        "authority_id": authority.id if authority else None,
        "territory_id": territory.get("id") if territory else None,
        "roof_type": payload.get("roof_type") or "unknown",
        "engagement_notes": payload.get("notes"),
        "status": "new",
        **_scoring_columns(scoring),
    }
    lead = repo.create(record)

    _log_activity(repo, lead["id"], "email", f"Lead created: {scoring.tier} ({scoring.reason})")
    log_event(logger, "lead_scored", lead_id=lead["id"], tier=scoring.tier, points=scoring.points)

    return {
        "id": lead["id"],
        "name": f"{lead['first_name']} {lead['last_name']}",
        "email": lead["email"],
        "score": scoring.tier,
        "next_action": scoring.next_action,
        "estimated_monthly_bill": lead["monthly_electric_bill"],
        "territory": territory.get("name") if territory else None,
        "authority": authority.county_name if authority else None,
        "scoring": {
            "points": scoring.points,
            "reason": scoring.reason,
            "objections": list(lead["objections"].keys()),
            "rebuttals": lead["objections"],
        },
    }


def update_lead(lead_id: int, changes: dict[str, Any], *, repo: LeadRepository) -> dict[str, Any] | None:
    """
    Apply a partial update. When any scoring input changes, the lead is
    re-scored so tier, next action and rebuttals stay consistent.
    """
    current = repo.get(lead_id)
    if current is None:
        return None

    cleaned = validate_lead_changes(changes)

    if _SCORING_FIELDS & cleaned.keys():
        scoring = score(prospect_from_lead({**current, **cleaned}))
        cleaned.update(_scoring_columns(scoring))
        if scoring.tier != current.get("score"):
            _log_activity(repo, lead_id, "rescored", f"Lead rescored: {current.get('score')} -> {scoring.tier}")

    return repo.update(lead_id, cleaned)
