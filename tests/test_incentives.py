# tests/test_incentives.py
from datetime import date

import pytest

from solaros.domain.reference import IncentiveBucket
from solaros.services.incentives import layer_incentives, program_amount
from tests.fixtures.reference import AS_OF, incentive


def test_percentage_program_is_capped():
    p = incentive(amount=10.0, is_percentage=True, cap=1_500.0)
    assert program_amount(p, 20_000.0) == pytest.approx(1_500.0)
    assert program_amount(p, 10_000.0) == pytest.approx(1_000.0)


def test_flat_program_and_zero_cap():
    assert program_amount(incentive(amount=750.0), 20_000.0) == pytest.approx(750.0)
    assert program_amount(incentive(amount=750.0, cap=0.0), 20_000.0) == 0.0


def test_federal_credit_is_flat_rate_of_gross():
    out = layer_incentives(10_000.0, [], region="CA", as_of=AS_OF)
    assert out.federal == pytest.approx(3_000.0)
    assert out.state == 0.0
    assert out.utility == 0.0
    assert out.total == pytest.approx(3_000.0)


def test_programs_fold_into_their_buckets():
    programs = [
        incentive(name="State A", type="state_rebate", amount=500.0),
        incentive(name="State B", type="state_rebate", amount=5.0, is_percentage=True),
        incentive(name="Utility", type="utility_rebate", amount=250.0),
    ]
    out = layer_incentives(10_000.0, programs, region="CA", as_of=AS_OF)

    assert out.buckets[IncentiveBucket.STATE] == pytest.approx(1_000.0)
    assert out.utility == pytest.approx(250.0)
    assert out.total == pytest.approx(3_000.0 + 1_000.0 + 250.0)
    assert out.applied == ["State A", "State B", "Utility"]


def test_federal_programs_never_stack_on_the_flat_credit():
    programs = [
        incentive(name="Federal ITC 30%", type="federal_tax_credit", amount=30.0, is_percentage=True, region=None),
    ]
    out = layer_incentives(10_000.0, programs, region="CA", as_of=AS_OF)
    assert out.total == pytest.approx(3_000.0)
    assert out.applied == []


def test_expired_program_is_reported_not_applied():
    programs = [incentive(name="Old Rebate", expiration_date=date(2025, 12, 31))]
    out = layer_incentives(10_000.0, programs, region="CA", as_of=AS_OF)

    assert out.state == 0.0
    assert out.expiration_notices == ["Old Rebate expired 2025-12-31"]


def test_program_expiring_on_as_of_counts_as_expired():
    programs = [incentive(name="Edge", expiration_date=AS_OF)]
    out = layer_incentives(10_000.0, programs, region="CA", as_of=AS_OF)
    assert out.state == 0.0
    assert out.expiration_notices == [f"Edge expired {AS_OF.isoformat()}"]


def test_soon_expiring_program_applies_with_notice():
    programs = [incentive(name="Closing Soon", expiration_date=date(2026, 3, 1))]
    out = layer_incentives(10_000.0, programs, region="CA", as_of=AS_OF, expiry_notice_days=90)

    assert out.state == pytest.approx(1_000.0)
    assert out.expiration_notices == ["Closing Soon expires 2026-03-01"]


def test_other_region_programs_are_ignored():
    programs = [
        incentive(name="Texas Only", region="TX"),
        incentive(name="Everywhere", region=None, amount=100.0),
        incentive(name="Lowercase CA", region="ca", amount=200.0),
    ]
    out = layer_incentives(10_000.0, programs, region="CA", as_of=AS_OF)
    assert out.applied == ["Everywhere", "Lowercase CA"]
    assert out.state == pytest.approx(300.0)
