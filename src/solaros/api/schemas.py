# src/solaros/api/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel
from pydantic import ConfigDict


# --------------------------------------------
# Leads
# --------------------------------------------

LeadStatus = Literal["new", "contacted", "qualified", "proposed", "won", "lost"]


class LeadCreateRequest(BaseModel):
    """
    Intake form payload. Money and enum fields stay loosely typed here;
    services.validation normalizes them ("$1,200" -> 1200.0, "Cash" -> "cash").
    """
    model_config = ConfigDict(extra="allow")

    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str | None = None
    zip_code: str
    state: str

    monthly_electric_bill: float | str
    property_type: str
    utility_id: int

    home_owner: bool = False
    roof_type: str | None = None
    roof_age_years: float | None = None
    credit_range: str | None = None
    financing: str | None = None
    appointment_scheduled: bool = False
    engagement_activity: int = 0
    notes: str | None = None


class LeadUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    zip_code: str | None = None
    state: str | None = None
    monthly_electric_bill: float | str | None = None
    property_type: str | None = None
    home_owner: bool | None = None
    roof_type: str | None = None
    roof_age_years: float | None = None
    credit_range: str | None = None
    financing: str | None = None
    appointment_scheduled: bool | None = None
    engagement_activity: int | None = None
    engagement_notes: str | None = None
    status: LeadStatus | None = None


class LeadItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    email: str
    phone: str
    score: Literal["hot", "warm", "cold"]
    status: str
    monthly_bill: float
    next_action: str
    created_at: datetime


# --------------------------------------------
# Proposals
# --------------------------------------------

class ProposalCreateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    lead_id: int
    utility_id: int
    authority_id: int

    offset_target_pct: float | str | None = None
    financing: Literal["cash", "loan", "lease"] = "cash"
    loan_program_id: int | None = None
    roof_condition_approved: bool = False


class ProposalResponse(BaseModel):
    """
    The calculator result is a rich nested dict; keep this permissive so
    new result sections don't break the endpoint.
    """
    model_config = ConfigDict(extra="allow")

    success: bool = True
    proposal: dict[str, Any]
