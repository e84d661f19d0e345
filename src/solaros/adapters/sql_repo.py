# src/solaros/adapters/sql_repo.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable

from sqlmodel import JSON, Column, Field, Session, SQLModel, create_engine, select

from solaros.domain.reference import (
    FinancingProgram,
    IncentiveProgram,
    PermittingAuthority,
    RegionalWeather,
    UtilityRatePlan,
)


def _engine(uri: str):
    # sync FastAPI routes run in a threadpool
    connect_args = {"check_same_thread": False} if uri.startswith("sqlite") else {}
    engine = create_engine(uri, echo=False, connect_args=connect_args)
    SQLModel.metadata.create_all(engine)
    return engine


# ---------- Reference data ----------

class UtilityRow(SQLModel, table=True):
    __tablename__ = "utilities"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    state: str = Field(index=True)
    zip_code: str = Field(index=True)

    base_rate_per_kwh: float
    rate_escalation_pct: float = 0.0
    tiered_rates: bool = False
    net_metering_available: bool = False
    net_metering_credit: float = 0.0

    def to_domain(self) -> UtilityRatePlan:
        return UtilityRatePlan(
            id=self.id,
            name=self.name,
            region=self.state,
            zip_code=self.zip_code,
            base_rate=self.base_rate_per_kwh,
            rate_escalation_pct=self.rate_escalation_pct,
            tiered_rates=self.tiered_rates,
            net_metering_available=self.net_metering_available,
            net_metering_credit=self.net_metering_credit,
        )


class AuthorityRow(SQLModel, table=True):
    __tablename__ = "authorities"

    id: int | None = Field(default=None, primary_key=True)
    county_name: str
    state: str = Field(index=True)
    city: str | None = Field(default=None, index=True)

    avg_permit_days: int | None = None
    avg_inspection_wait_days: int | None = None
    permit_cost_baseline: float = 0.0
    inspection_fee_baseline: float = 0.0
    requires_electrical_sealed: bool = False

    def to_domain(self) -> PermittingAuthority:
        return PermittingAuthority(
            id=self.id,
            county_name=self.county_name,
            region=self.state,
            city=self.city,
            permit_fee=self.permit_cost_baseline,
            inspection_fee=self.inspection_fee_baseline,
            avg_permit_days=self.avg_permit_days,
            avg_inspection_wait_days=self.avg_inspection_wait_days,
            requires_electrical_sealed=self.requires_electrical_sealed,
        )


class WeatherRow(SQLModel, table=True):
    __tablename__ = "regional_weather"

    id: int | None = Field(default=None, primary_key=True)
    zip_code: str = Field(index=True)
    state: str = Field(index=True)
    annual_peak_sun_hours: float
    production_multiplier: float = 1.0
    weather_adjustment: float = 1.0

    def to_domain(self) -> RegionalWeather:
        return RegionalWeather(
            zip_code=self.zip_code,
            region=self.state,
            peak_sun_hours=self.annual_peak_sun_hours,
            production_multiplier=self.production_multiplier,
            weather_adjustment=self.weather_adjustment,
        )


class IncentiveRow(SQLModel, table=True):
    __tablename__ = "incentives"

    id: int | None = Field(default=None, primary_key=True)
    type: str = Field(index=True)
    name: str
    description: str = ""
    state: str | None = Field(default=None, index=True)  # None = nationwide
    incentive_amount: float
    is_percentage: bool = False
    max_amount: float | None = None
    expiration_date: date = Field(index=True)

    def to_domain(self) -> IncentiveProgram:
        return IncentiveProgram(
            id=self.id,
            name=self.name,
            description=self.description,
            type=self.type,  # type: ignore[arg-type]
            amount=self.incentive_amount,
            is_percentage=self.is_percentage,
            cap=self.max_amount,
            region=self.state,
            expiration_date=self.expiration_date,
        )


class FinancingProgramRow(SQLModel, table=True):
    __tablename__ = "financing_programs"

    id: int | None = Field(default=None, primary_key=True)
    lender_name: str
    program_name: str
    state: str | None = Field(default=None, index=True)
    min_credit_score: int = 0
    min_loan_amount: float = 0.0
    max_loan_amount: float
    interest_rate: float
    loan_term_years: int
    origination_fee: float = 0.0
    can_use_incentives: bool = True

    def to_domain(self) -> FinancingProgram:
        return FinancingProgram(
            id=self.id,
            lender_name=self.lender_name,
            program_name=self.program_name,
            region=self.state,
            min_credit_score=self.min_credit_score,
            min_loan_amount=self.min_loan_amount,
            max_loan_amount=self.max_loan_amount,
            interest_rate=self.interest_rate,
            term_years=self.loan_term_years,
            origination_fee_pct=self.origination_fee,
            can_combine_with_incentives=self.can_use_incentives,
        )


class TerritoryRow(SQLModel, table=True):
    __tablename__ = "territories"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    state: str = Field(index=True)
    zip_codes: str = ""
    sales_rep_id: str | None = None


REFERENCE_TABLES: dict[str, type[SQLModel]] = {
    "utilities": UtilityRow,
    "authorities": AuthorityRow,
    "regional_weather": WeatherRow,
    "incentives": IncentiveRow,
    "financing_programs": FinancingProgramRow,
    "territories": TerritoryRow,
}


class SqlReferenceDataRepository:
    def __init__(self, uri: str = "sqlite:///solaros.db"):
        self.engine = _engine(uri)

    def add_many(self, rows: Iterable[SQLModel]) -> int:
        written = 0
        with Session(self.engine) as session:
            for row in rows:
                session.add(row)
                written += 1
            session.commit()
        return written

    def get_utility(self, utility_id: int) -> UtilityRatePlan | None:
        with Session(self.engine) as session:
            row = session.get(UtilityRow, utility_id)
            return row.to_domain() if row else None

    def get_authority(self, authority_id: int) -> PermittingAuthority | None:
        with Session(self.engine) as session:
            row = session.get(AuthorityRow, authority_id)
            return row.to_domain() if row else None

    def find_authority(self, *, region: str, city: str | None = None) -> PermittingAuthority | None:
        with Session(self.engine) as session:
            stmt = select(AuthorityRow).where(AuthorityRow.state == region)
            if city:
                stmt = stmt.where(AuthorityRow.city == city)
            row = session.exec(stmt.order_by(AuthorityRow.id)).first()
            return row.to_domain() if row else None

    def get_weather(self, *, zip_code: str, region: str) -> RegionalWeather | None:
        with Session(self.engine) as session:
            stmt = select(WeatherRow).where(
                WeatherRow.zip_code == zip_code,
                WeatherRow.state == region,
            )
            row = session.exec(stmt).first()
            return row.to_domain() if row else None

    def list_incentives(self, *, region: str) -> list[IncentiveProgram]:
        with Session(self.engine) as session:
            stmt = (
                select(IncentiveRow)
                .where((IncentiveRow.state == region) | (IncentiveRow.state == None))  # noqa: E711
                .order_by(IncentiveRow.id)
            )
            return [r.to_domain() for r in session.exec(stmt)]

    def get_financing_program(self, program_id: int) -> FinancingProgram | None:
        with Session(self.engine) as session:
            row = session.get(FinancingProgramRow, program_id)
            return row.to_domain() if row else None

    def find_territory(self, *, region: str) -> dict[str, Any] | None:
        with Session(self.engine) as session:
            stmt = select(TerritoryRow).where(TerritoryRow.state == region).order_by(TerritoryRow.id)
            row = session.exec(stmt).first()
            return row.model_dump() if row else None


# ---------- Leads + Lead Activities ----------

class LeadRow(SQLModel, table=True):
    __tablename__ = "leads"

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    first_name: str
    last_name: str
    email: str
    phone: str

    address: str
    city: str | None = None
    zip_code: str
    state: str = Field(index=True)

    property_type: str
    home_owner: bool = False
    monthly_electric_bill: float
    roof_type: str = "unknown"
    roof_age_years: float | None = None
    credit_range: str | None = None
    financing: str = "unknown"
    appointment_scheduled: bool = False
    engagement_activity: int = 0

    utility_id: int
    authority_id: int | None = None
    territory_id: int | None = None

    # Scoring output
    score: str = Field(default="cold", index=True)
    score_points: int = 0
    next_action: str = ""
    objections: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    engagement_notes: str | None = None
    status: str = Field(default="new", index=True)


class LeadActivityRow(SQLModel, table=True):
    __tablename__ = "lead_activities"

    id: int | None = Field(default=None, primary_key=True)
    lead_id: int = Field(index=True)
    ts: datetime = Field(default_factory=datetime.utcnow, index=True)
    type: str
    notes: str = ""


_LEAD_MUTABLE_FIELDS = {
    name for name in LeadRow.model_fields if name not in {"id", "created_at", "updated_at"}
}


class SqlLeadRepository:
    def __init__(self, uri: str = "sqlite:///solaros.db"):
        self.engine = _engine(uri)

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        row = LeadRow(**{k: v for k, v in data.items() if k in _LEAD_MUTABLE_FIELDS})
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.model_dump()

    def get(self, lead_id: int) -> dict[str, Any] | None:
        with Session(self.engine) as session:
            row = session.get(LeadRow, lead_id)
            return row.model_dump() if row else None

    def update(self, lead_id: int, changes: dict[str, Any]) -> dict[str, Any] | None:
        with Session(self.engine) as session:
            row = session.get(LeadRow, lead_id)
            if row is None:
                return None
            for field, value in changes.items():
                if field in _LEAD_MUTABLE_FIELDS:
                    setattr(row, field, value)
            row.updated_at = datetime.utcnow()
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.model_dump()

    def delete(self, lead_id: int) -> bool:
        with Session(self.engine) as session:
            row = session.get(LeadRow, lead_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def list_recent(
        self,
        *,
        tier: str | None = None,
        state: str | None = None,
        status: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = select(LeadRow)
            if tier:
                stmt = stmt.where(LeadRow.score == tier)
            if state:
                stmt = stmt.where(LeadRow.state == state)
            if status:
                stmt = stmt.where(LeadRow.status == status)
            stmt = stmt.order_by(LeadRow.created_at.desc(), LeadRow.id.desc()).limit(limit)
            return [r.model_dump() for r in session.exec(stmt)]

    def add_activity(self, *, lead_id: int, type: str, notes: str) -> None:
        with Session(self.engine) as session:
            session.add(LeadActivityRow(lead_id=lead_id, type=type, notes=notes))
            session.commit()

    def list_activities(self, lead_id: int) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = (
                select(LeadActivityRow)
                .where(LeadActivityRow.lead_id == lead_id)
                .order_by(LeadActivityRow.id)
            )
            return [r.model_dump() for r in session.exec(stmt)]


# ---------- Proposals ----------

class ProposalRow(SQLModel, table=True):
    __tablename__ = "proposals"

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    lead_id: int = Field(index=True)
    proposal_number: str = Field(index=True)
    loan_program_id: int | None = None

    system_size_kw: float
    estimated_annual_production: float
    offset_percentage: float
    monthly_consumption_kwh: float
    roof_condition_approved: bool = False

    projected_annual_savings: float
    projected_total_savings: float
    payback_years: float | None = None
    cash_price: float
    total_incentives: float

    status: str = Field(default="draft", index=True)
    expiration_date: datetime

    result: dict[str, Any] = Field(sa_column=Column(JSON))


class SqlProposalRepository:
    def __init__(self, uri: str = "sqlite:///solaros.db"):
        self.engine = _engine(uri)

    def save(self, record: dict[str, Any]) -> dict[str, Any]:
        row = ProposalRow(**record)
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.model_dump()

    def get(self, proposal_id: int) -> dict[str, Any] | None:
        with Session(self.engine) as session:
            row = session.get(ProposalRow, proposal_id)
            return row.model_dump() if row else None
