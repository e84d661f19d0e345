from __future__ import annotations

from datetime import datetime
from typing import Any

from solaros.domain.ports import LeadRepository, ProposalRepository, ReferenceDataProvider
from solaros.domain.reference import (
    FinancingProgram,
    IncentiveProgram,
    PermittingAuthority,
    RegionalWeather,
    UtilityRatePlan,
)


class InMemoryReferenceData(ReferenceDataProvider):
    def __init__(
        self,
        *,
        utilities: dict[int, UtilityRatePlan] | None = None,
        authorities: dict[int, PermittingAuthority] | None = None,
        weather: list[RegionalWeather] | None = None,
        incentives: list[IncentiveProgram] | None = None,
        financing_programs: dict[int, FinancingProgram] | None = None,
        territories: list[dict[str, Any]] | None = None,
    ) -> None:
        self.utilities = dict(utilities or {})
        self.authorities = dict(authorities or {})
        self.weather = list(weather or [])
        self.incentives = list(incentives or [])
        self.financing_programs = dict(financing_programs or {})
        self.territories = list(territories or [])

    def get_utility(self, utility_id: int) -> UtilityRatePlan | None:
        return self.utilities.get(utility_id)

    def get_authority(self, authority_id: int) -> PermittingAuthority | None:
        return self.authorities.get(authority_id)

    def find_authority(self, *, region: str, city: str | None = None) -> PermittingAuthority | None:
        for auth in self.authorities.values():
            if auth.region == region and (not city or auth.city == city):
                return auth
        return None

    def get_weather(self, *, zip_code: str, region: str) -> RegionalWeather | None:
        for w in self.weather:
            if w.zip_code == zip_code and w.region == region:
                return w
        return None

    def list_incentives(self, *, region: str) -> list[IncentiveProgram]:
        return [p for p in self.incentives if p.matches_region(region)]

    def get_financing_program(self, program_id: int) -> FinancingProgram | None:
        return self.financing_programs.get(program_id)

    def find_territory(self, *, region: str) -> dict[str, Any] | None:
        for t in self.territories:
            if t.get("state") == region:
                return dict(t)
        return None


class InMemoryLeadRepository(LeadRepository):
    def __init__(self) -> None:
        self._items: dict[int, dict[str, Any]] = {}
        self._activities: list[dict[str, Any]] = []
        self._next_id = 1

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        now = datetime.utcnow()
        rec = {"status": "new", **data, "id": self._next_id, "created_at": now, "updated_at": now}
        self._items[self._next_id] = rec
        self._next_id += 1
        return dict(rec)

    def get(self, lead_id: int) -> dict[str, Any] | None:
        rec = self._items.get(lead_id)
        return dict(rec) if rec else None

    def update(self, lead_id: int, changes: dict[str, Any]) -> dict[str, Any] | None:
        rec = self._items.get(lead_id)
        if rec is None:
            return None
        rec.update(changes)
        rec["updated_at"] = datetime.utcnow()
        return dict(rec)

    def delete(self, lead_id: int) -> bool:
        return self._items.pop(lead_id, None) is not None

    def list_recent(
        self,
        *,
        tier: str | None = None,
        state: str | None = None,
        status: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        rows = [
            r for r in self._items.values()
            if (not tier or r.get("score") == tier)
            and (not state or r.get("state") == state)
            and (not status or r.get("status") == status)
        ]
        rows.sort(key=lambda r: r["id"], reverse=True)
        return [dict(r) for r in rows[:limit]]

    def add_activity(self, *, lead_id: int, type: str, notes: str) -> None:
        self._activities.append({"lead_id": lead_id, "type": type, "notes": notes})

    def list_activities(self, lead_id: int) -> list[dict[str, Any]]:
        return [a for a in self._activities if a["lead_id"] == lead_id]


class InMemoryProposalRepository(ProposalRepository):
    def __init__(self) -> None:
        self._items: list[dict[str, Any]] = []

    def save(self, record: dict[str, Any]) -> dict[str, Any]:
        rec = {**record, "id": len(self._items) + 1, "created_at": datetime.utcnow()}
        self._items.append(rec)
        return dict(rec)

    def get(self, proposal_id: int) -> dict[str, Any] | None:
        if 1 <= proposal_id <= len(self._items):
            return dict(self._items[proposal_id - 1])
        return None

    def all(self) -> list[dict[str, Any]]:
        return list(self._items)
