# src/solaros/api/http.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query

from solaros.adapters.config import config
from solaros.adapters.logging_utils import get_logger, log_event
from solaros.adapters.sql_repo import (
    SqlLeadRepository,
    SqlProposalRepository,
    SqlReferenceDataRepository,
)
from solaros.domain.errors import MissingReferenceData, RecordNotFound
from solaros.domain.ports import LeadRepository, ProposalRepository, ReferenceDataProvider
from solaros.domain.prospect import ProspectAttributes
from solaros.services.lead_scoring import get_rebuttals, score
from solaros.services.leads import create_lead, update_lead
from solaros.services.proposals import generate_proposal
from .schemas import (
    LeadCreateRequest,
    LeadItem,
    LeadUpdateRequest,
    ProposalCreateRequest,
    ProposalResponse,
)

logger = get_logger(__name__)

app = FastAPI(title="SolarOS")


# -------------------------------------------------------------------
# Repositories (one engine per repo, created on first use)
# -------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_reference_repo() -> ReferenceDataProvider:
    return SqlReferenceDataRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_lead_repo() -> LeadRepository:
    return SqlLeadRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_proposal_repo() -> ProposalRepository:
    return SqlProposalRepository(config.DB_URI)


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    if config.API_KEY and x_api_key != config.API_KEY:
        raise HTTPException(status_code=401, detail="Unauthorized")


# -----------------------------
# LEADS
# -----------------------------
@app.post("/leads/score", response_model=dict)
def score_lead_endpoint(payload: ProspectAttributes) -> dict[str, Any]:
    """Preview scoring without storing anything."""
    out = score(payload)
    return out.to_dict() | {"rebuttals": get_rebuttals(out.objection_flags)}


@app.post("/leads", status_code=201, response_model=dict, dependencies=[Depends(require_api_key)])
def create_lead_endpoint(
    payload: LeadCreateRequest,
    reference: ReferenceDataProvider = Depends(get_reference_repo),
    repo: LeadRepository = Depends(get_lead_repo),
) -> dict[str, Any]:
    try:
        lead = create_lead(payload.model_dump(), reference=reference, repo=repo)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"success": True, "lead": lead}


@app.get("/leads", response_model=dict, dependencies=[Depends(require_api_key)])
def list_leads_endpoint(
    tier: str | None = Query(default=None, alias="score", description="hot | warm | cold"),
    state: str | None = None,
    status: str | None = None,
    limit: int | None = None,
    repo: LeadRepository = Depends(get_lead_repo),
) -> dict[str, Any]:
    rows = repo.list_recent(
        tier=tier,
        state=state,
        status=status,
        limit=limit or config.LEADS_DEFAULT_LIMIT,
    )
    items = [
        LeadItem(
            id=r["id"],
            name=f"{r['first_name']} {r['last_name']}",
            email=r["email"],
            phone=r["phone"],
            score=r["score"],
            status=r["status"],
            monthly_bill=r["monthly_electric_bill"],
            next_action=r["next_action"],
            created_at=r["created_at"],
        ).model_dump()
        for r in rows
    ]
    return {"success": True, "count": len(items), "leads": items}


@app.get("/leads/{lead_id}", response_model=dict, dependencies=[Depends(require_api_key)])
def get_lead_endpoint(lead_id: int, repo: LeadRepository = Depends(get_lead_repo)) -> dict[str, Any]:
    lead = repo.get(lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail="Not found")
    return {"success": True, "lead": lead}


@app.put("/leads/{lead_id}", response_model=dict, dependencies=[Depends(require_api_key)])
def update_lead_endpoint(
    lead_id: int,
    payload: LeadUpdateRequest,
    repo: LeadRepository = Depends(get_lead_repo),
) -> dict[str, Any]:
    try:
        lead = update_lead(lead_id, payload.model_dump(exclude_unset=True), repo=repo)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if lead is None:
        raise HTTPException(status_code=404, detail="Not found")
    return {"success": True, "lead": lead}


@app.delete("/leads/{lead_id}", response_model=dict, dependencies=[Depends(require_api_key)])
def delete_lead_endpoint(lead_id: int, repo: LeadRepository = Depends(get_lead_repo)) -> dict[str, Any]:
    if not repo.delete(lead_id):
        raise HTTPException(status_code=404, detail="Not found")
    return {"success": True}


# -----------------------------
# PROPOSALS
# -----------------------------
@app.post("/proposals", status_code=201, response_model=ProposalResponse)
def create_proposal_endpoint(
    payload: ProposalCreateRequest,
    reference: ReferenceDataProvider = Depends(get_reference_repo),
    leads: LeadRepository = Depends(get_lead_repo),
    proposals: ProposalRepository = Depends(get_proposal_repo),
) -> ProposalResponse:
    try:
        proposal = generate_proposal(
            payload.model_dump(),
            reference=reference,
            leads=leads,
            proposals=proposals,
        )
    except MissingReferenceData as e:
        log_event(logger, "proposal_missing_reference_data", logging.WARNING, missing=list(e.missing))
        raise HTTPException(status_code=400, detail={"error": str(e), "missing": list(e.missing)}) from e
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return ProposalResponse(proposal=proposal)


@app.get("/proposals/{proposal_id}", response_model=ProposalResponse)
def get_proposal_endpoint(
    proposal_id: int,
    proposals: ProposalRepository = Depends(get_proposal_repo),
) -> ProposalResponse:
    proposal = proposals.get(proposal_id)
    if proposal is None:
        raise HTTPException(status_code=404, detail="Proposal not found")
    return ProposalResponse(proposal=proposal)
