# src/solaros/domain/ports.py
from __future__ import annotations

from typing import Any, Protocol

from solaros.domain.reference import (
    FinancingProgram,
    IncentiveProgram,
    PermittingAuthority,
    RegionalWeather,
    UtilityRatePlan,
)


# ----------------------------
# Reference data (read-only to the engines)
# ----------------------------

class ReferenceDataProvider(Protocol):
    def get_utility(self, utility_id: int) -> UtilityRatePlan | None:
        ...

    def get_authority(self, authority_id: int) -> PermittingAuthority | None:
        ...

    def find_authority(self, *, region: str, city: str | None = None) -> PermittingAuthority | None:
        ...

    def get_weather(self, *, zip_code: str, region: str) -> RegionalWeather | None:
        ...

    def list_incentives(self, *, region: str) -> list[IncentiveProgram]:
        """Region-matching programs, expired ones included."""
        ...

    def get_financing_program(self, program_id: int) -> FinancingProgram | None:
        ...

    def find_territory(self, *, region: str) -> dict[str, Any] | None:
        ...


# ----------------------------
# Leads
# ----------------------------

class LeadRepository(Protocol):
    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        ...

    def get(self, lead_id: int) -> dict[str, Any] | None:
        ...

    def update(self, lead_id: int, changes: dict[str, Any]) -> dict[str, Any] | None:
        ...

    def delete(self, lead_id: int) -> bool:
        ...

    def list_recent(
        self,
        *,
        tier: str | None = None,
        state: str | None = None,
        status: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        ...

    def add_activity(self, *, lead_id: int, type: str, notes: str) -> None:
        ...


# ----------------------------
# Proposal persistence
# ----------------------------

class ProposalRepository(Protocol):
    def save(self, record: dict[str, Any]) -> dict[str, Any]:
        ...

    def get(self, proposal_id: int) -> dict[str, Any] | None:
        ...
