# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from solaros.adapters.sql_repo import (
    SqlLeadRepository,
    SqlProposalRepository,
    SqlReferenceDataRepository,
)
from solaros.api.http import app, get_lead_repo, get_proposal_repo, get_reference_repo
from solaros.pipelines.seed import seed_reference_data


@pytest.fixture
def db_uri(tmp_path):
    uri = f"sqlite:///{tmp_path}/test.db"
    seed_reference_data(uri)
    return uri


@pytest.fixture
def client(db_uri):
    reference = SqlReferenceDataRepository(db_uri)
    leads = SqlLeadRepository(db_uri)
    proposals = SqlProposalRepository(db_uri)

    app.dependency_overrides[get_reference_repo] = lambda: reference
    app.dependency_overrides[get_lead_repo] = lambda: leads
    app.dependency_overrides[get_proposal_repo] = lambda: proposals
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def lead_payload():
    return {
        "first_name": "Dana",
        "last_name": "Reyes",
        "email": "dana@example.com",
        "phone": "510-555-0100",
        "address": "12 Grand Ave",
        "city": "Oakland",
        "zip_code": "94610",
        "state": "CA",
        "monthly_electric_bill": 250,
        "property_type": "residential",
        "utility_id": 1,
        "home_owner": True,
        "financing": "cash",
        "appointment_scheduled": True,
        "credit_range": "excellent",
    }
