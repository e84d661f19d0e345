# src/solaros/services/validation.py

import math
from typing import Any

# Fields a lead cannot be created without
REQUIRED_LEAD_FIELDS = [
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "zip_code",
    "state",
    "monthly_electric_bill",
    "property_type",
    "utility_id",
]

PROPERTY_TYPES = {"residential", "commercial", "non-profit"}
FINANCING_CHOICES = {"cash", "loan", "lease", "unknown"}
CREDIT_RANGES = {"excellent", "good", "fair", "poor"}


def _to_num(val: Any, field_name: str) -> float:
    """
    Coerce values like:
      - 250
      - "250"
      - "$1,250.50"
      - "95%"
    into float. "nan" and "inf" are rejected.
    """
    if val is None:
        raise ValueError(f"Missing required numeric field: {field_name}")
    if isinstance(val, bool):
        raise ValueError(f"Invalid type for {field_name}: {type(val)}")
    if isinstance(val, (int, float)):
        f = float(val)
    elif isinstance(val, str):
        s = val.strip().replace("$", "").replace(",", "")
        if s.endswith("%"):
            s = s[:-1]
        try:
            f = float(s)
        except ValueError:
            raise ValueError(f"Invalid number for {field_name}: {val!r}")
    else:
        raise ValueError(f"Invalid type for {field_name}: {type(val)}")
    if not math.isfinite(f):
        raise ValueError(f"Invalid number for {field_name}: {val!r}")
    return f


def _to_choice(val: Any, field_name: str, choices: set[str]) -> str:
    # "non_profit" and "non-profit" are the same choice
    s = str(val).strip().lower().replace("_", "-")
    if s not in choices:
        raise ValueError(f"Invalid {field_name}: {val!r} (expected one of {sorted(choices)})")
    return s


def validate_lead_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize an incoming lead payload.

    - Ensure identity/contact/utility fields exist.
    - Coerce the bill from money-like strings, reject negatives.
    - Lower-case enum-like fields; default financing to "unknown".
    """
    for field in REQUIRED_LEAD_FIELDS:
        if raw.get(field) in (None, ""):
            raise ValueError(f"Missing required field: {field}")

    cleaned: dict[str, Any] = dict(raw)

    if "@" not in str(raw["email"]):
        raise ValueError("Invalid email")
    if len(str(raw["phone"]).strip()) < 7:
        raise ValueError("Invalid phone")

    bill = _to_num(raw["monthly_electric_bill"], "monthly_electric_bill")
    if bill < 0:
        raise ValueError("monthly_electric_bill must be non-negative")
    cleaned["monthly_electric_bill"] = bill

    cleaned["property_type"] = _to_choice(raw["property_type"], "property_type", PROPERTY_TYPES)
    cleaned["financing"] = _to_choice(raw.get("financing") or "unknown", "financing", FINANCING_CHOICES)

    credit = raw.get("credit_range")
    cleaned["credit_range"] = _to_choice(credit, "credit_range", CREDIT_RANGES) if credit else None

    cleaned["state"] = str(raw["state"]).strip().upper()
    cleaned["home_owner"] = bool(raw.get("home_owner") or False)
    cleaned["appointment_scheduled"] = bool(raw.get("appointment_scheduled") or False)

    try:
        cleaned["engagement_activity"] = max(0, int(raw.get("engagement_activity") or 0))
    except (TypeError, ValueError):
        raise ValueError("Invalid engagement_activity")

    try:
        cleaned["utility_id"] = int(raw["utility_id"])
    except (TypeError, ValueError):
        raise ValueError("Invalid utility_id")

    return cleaned


# lead columns that may be cleared with an explicit null
NULLABLE_LEAD_FIELDS = {"city", "roof_age_years", "credit_range", "engagement_notes", "financing"}


def validate_lead_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Same normalization as validate_lead_payload, for a partial update."""
    for field, value in changes.items():
        if value is None and field not in NULLABLE_LEAD_FIELDS:
            raise ValueError(f"{field} cannot be null")

    cleaned = dict(changes)
    if "monthly_electric_bill" in cleaned:
        bill = _to_num(cleaned["monthly_electric_bill"], "monthly_electric_bill")
        if bill < 0:
            raise ValueError("monthly_electric_bill must be non-negative")
        cleaned["monthly_electric_bill"] = bill
    if "property_type" in cleaned:
        cleaned["property_type"] = _to_choice(cleaned["property_type"], "property_type", PROPERTY_TYPES)
    if "financing" in cleaned:
        # null resets to "unknown"
        cleaned["financing"] = _to_choice(cleaned["financing"] or "unknown", "financing", FINANCING_CHOICES)
    if "credit_range" in cleaned:
        credit = cleaned["credit_range"]
        cleaned["credit_range"] = _to_choice(credit, "credit_range", CREDIT_RANGES) if credit else None
    if "state" in cleaned:
        cleaned["state"] = str(cleaned["state"]).strip().upper()
    if "engagement_activity" in cleaned:
        cleaned["engagement_activity"] = max(0, int(cleaned["engagement_activity"]))
    return cleaned
