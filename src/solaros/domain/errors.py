from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MissingReferenceData(LookupError):
    """Raised when a utility plan, permitting authority or weather record is absent."""

    def __init__(self, missing: list[str] | tuple[str, ...]):
        self.missing = tuple(missing)
        super().__init__(
            "Missing required reference data: " + ", ".join(self.missing)
        )


class AdvisoryCode(str, Enum):
    # payback/ROI undefined, negative net cost, zero consumption
    DEGENERATE_FINANCIALS = "degenerate_financials"
    CREDIT_INELIGIBLE = "credit_ineligible"
    FINANCING_NOTICE = "financing_notice"


@dataclass(frozen=True)
class Advisory:
    code: AdvisoryCode
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


class RecordNotFound(LookupError):
    """A lead or proposal id that the repository does not know."""
