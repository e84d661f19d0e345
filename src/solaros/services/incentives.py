from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from solaros.domain.reference import IncentiveBucket, IncentiveProgram


@dataclass
class IncentiveLayering:
    federal: float = 0.0
    buckets: dict[IncentiveBucket, float] = field(
        default_factory=lambda: {IncentiveBucket.STATE: 0.0, IncentiveBucket.UTILITY: 0.0}
    )
    applied: list[str] = field(default_factory=list)
    expiration_notices: list[str] = field(default_factory=list)

    @property
    def state(self) -> float:
        return self.buckets[IncentiveBucket.STATE]

    @property
    def utility(self) -> float:
        return self.buckets[IncentiveBucket.UTILITY]

    @property
    def total(self) -> float:
        return self.federal + self.state + self.utility


def program_amount(program: IncentiveProgram, gross_cost: float) -> float:
    """Percentage-of-gross or flat amount, clamped to the program cap."""
    if program.is_percentage:
        amount = gross_cost * program.amount / 100.0
    else:
        amount = program.amount
    if program.cap is not None:
        amount = min(amount, program.cap)
    return amount


def layer_incentives(
    gross_cost: float,
    programs: Iterable[IncentiveProgram],
    *,
    region: str | None,
    as_of: date,
    federal_itc_rate: float = 0.30,
    expiry_notice_days: int = 90,
) -> IncentiveLayering:
    """
    Fold eligible programs into the state / utility buckets.

    The federal credit is always gross_cost * federal_itc_rate and is never
    looked up, so federal-type programs only ever produce notices. Expired
    programs (expiration on or before as_of) are reported, never applied.
    """
    out = IncentiveLayering(federal=gross_cost * federal_itc_rate)
    notice_horizon = as_of + timedelta(days=expiry_notice_days)

    for program in programs:
        if not program.matches_region(region):
            continue

        if not program.is_active(as_of):
            out.expiration_notices.append(
                f"{program.name} expired {program.expiration_date.isoformat()}"
            )
            continue

        if program.expiration_date <= notice_horizon:
            out.expiration_notices.append(
                f"{program.name} expires {program.expiration_date.isoformat()}"
            )

        if program.bucket is IncentiveBucket.FEDERAL:
            continue

        out.buckets[program.bucket] += program_amount(program, gross_cost)
        out.applied.append(program.name)

    return out
