# src/solaros/pipelines/seed.py

from __future__ import annotations

from datetime import date
from typing import Any

import pandas as pd
from loguru import logger

from solaros.adapters.sql_repo import REFERENCE_TABLES, SqlReferenceDataRepository
from solaros.adapters.storage import load_reference_tables, write_df


# ---------------------------
# Built-in sample reference data
# ---------------------------

SAMPLE_REFERENCE_DATA: dict[str, list[dict[str, Any]]] = {
    "utilities": [
        {
            "name": "Pacific Gas & Electric",
            "state": "CA",
            "zip_code": "94000",
            "base_rate_per_kwh": 0.185,
            "rate_escalation_pct": 3.8,
            "tiered_rates": True,
            "net_metering_available": True,
            "net_metering_credit": 0.185,
        },
        {
            "name": "ERCOT Texas",
            "state": "TX",
            "zip_code": "75000",
            "base_rate_per_kwh": 0.12,
            "rate_escalation_pct": 2.8,
            "tiered_rates": False,
            "net_metering_available": False,
            "net_metering_credit": 0.0,
        },
    ],
    "authorities": [
        {
            "county_name": "Alameda",
            "state": "CA",
            "city": "Oakland",
            "avg_permit_days": 14,
            "avg_inspection_wait_days": 7,
            "permit_cost_baseline": 350.0,
            "inspection_fee_baseline": 200.0,
            "requires_electrical_sealed": True,
        },
    ],
    "incentives": [
        {
            "type": "federal_tax_credit",
            "name": "Federal ITC 30%",
            "description": "30% federal tax credit",
            "state": None,
            "incentive_amount": 30.0,
            "is_percentage": True,
            "max_amount": None,
            "expiration_date": date(2033, 12, 31),
        },
    ],
    "financing_programs": [
        {
            "lender_name": "Sunloans",
            "program_name": "Standard Solar Loan",
            "state": "CA",
            "min_credit_score": 650,
            "min_loan_amount": 5000.0,
            "max_loan_amount": 100000.0,
            "interest_rate": 7.99,
            "loan_term_years": 25,
            "origination_fee": 1.5,
            "can_use_incentives": True,
        },
    ],
    "territories": [
        {
            "name": "California North",
            "state": "CA",
            "zip_codes": "90000-96000",
            "sales_rep_id": "rep-001",
        },
    ],
    "regional_weather": [
        {
            "zip_code": "94000",
            "state": "CA",
            "annual_peak_sun_hours": 5.2,
            "production_multiplier": 0.95,
            "weather_adjustment": 1.0,
        },
    ],
}


def _coerce_dates(table: str, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # CSV round-trips dates as strings
    if table != "incentives":
        return records
    out = []
    for rec in records:
        rec = dict(rec)
        exp = rec.get("expiration_date")
        if exp is not None and not isinstance(exp, date):
            rec["expiration_date"] = pd.Timestamp(exp).date()
        out.append(rec)
    return out


def seed_reference_data(
    db_uri: str,
    source_dir: str | None = None,
) -> dict[str, int]:
    """
    Write reference tables into the database.

    With source_dir, reads <table>.csv / <table>.parquet files from it;
    otherwise writes the built-in sample set.
    """
    if source_dir:
        data = load_reference_tables(source_dir, REFERENCE_TABLES.keys())
        logger.info("Loaded reference tables from disk", source_dir=source_dir, tables=sorted(data))
    else:
        data = SAMPLE_REFERENCE_DATA

    repo = SqlReferenceDataRepository(db_uri)
    counts: dict[str, int] = {}
    for table, records in data.items():
        model = REFERENCE_TABLES[table]
        rows = [model(**rec) for rec in _coerce_dates(table, records)]
        counts[table] = repo.add_many(rows)
        logger.info("Seeded reference table", table=table, rows=counts[table])

    return counts


def export_sample_data(out_dir: str) -> list[str]:
    """Write the built-in sample set as CSVs, a starting point for editing."""
    written = []
    for table, records in SAMPLE_REFERENCE_DATA.items():
        path = f"{out_dir}/{table}.csv"
        write_df(pd.DataFrame.from_records(records), path)
        written.append(path)
    logger.info("Exported sample reference data", out_dir=out_dir, files=len(written))
    return written
