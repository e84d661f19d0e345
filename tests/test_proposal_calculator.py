# tests/test_proposal_calculator.py
from datetime import date

import pytest

from solaros.domain.assumptions import ProposalAssumptions
from solaros.domain.errors import AdvisoryCode, MissingReferenceData
from solaros.domain.proposal import FinancialInput
from solaros.services.proposal_calculator import calculate_proposal
from tests.fixtures.reference import (
    AS_OF,
    golden_bundle,
    incentive,
    pge_utility,
    sunloans_program,
)


def _codes(result):
    return [a.code for a in result.advisories]


def test_golden_cash_proposal():
    """
    $150/mo at $0.185/kWh, 5.2 peak sun hours, 100% offset:
    ~9,730 kWh/yr -> 6.03 kW -> $16,585 gross, $4,976 ITC.
    """
    r = calculate_proposal(FinancialInput(monthly_bill=150), golden_bundle(), as_of=AS_OF)

    assert r.system.size_kw == pytest.approx(6.03)
    assert r.system.annual_production_kwh == 9730
    assert r.system.offset_pct == 100
    assert r.system.roof_area_sqft == 392

    assert r.costs.gross_cost == 16585
    assert r.costs.federal_tax_credit == 4976
    assert r.costs.state_incentives == 0
    assert r.costs.utility_rebates == 0
    assert r.costs.total_incentives == 4976
    assert r.costs.net_system_cost == 11610
    assert r.costs.permitting_cost == 550
    assert r.costs.total_project_cost == 12160

    assert r.cash_flow.year1_savings == 1800
    assert r.cash_flow.payback_years == pytest.approx(6.45)
    assert r.cash_flow.breakeven_year == 7
    assert 60_000 < r.cash_flow.cumulative_savings < 75_000
    assert 400 < r.cash_flow.roi_pct < 520
    assert 6 <= r.cash_flow.approximate_irr_pct <= 8

    assert r.financing.cash_price == 11610
    assert r.financing.loan is None
    assert r.financing.lease is None

    assert r.environment.annual_co2_offset_tons == pytest.approx(8.95)
    assert r.environment.net_metered_production_kwh == 1459

    assert r.warnings == ()
    assert r.advisories == ()
    assert r.incentive_expirations == ()


def test_schedule_covers_analysis_period():
    r = calculate_proposal(FinancialInput(monthly_bill=150), golden_bundle(), as_of=AS_OF)

    assert len(r.schedule) == 25
    assert r.schedule[0]["year"] == 1
    assert r.schedule[0]["savings"] == 1800
    assert r.schedule[-1]["cumulative_savings"] == r.cash_flow.cumulative_savings
    # net position crosses zero in the breakeven year
    assert r.schedule[5]["net_position"] < 0 <= r.schedule[6]["net_position"]


def test_assumptions_are_echoed():
    r = calculate_proposal(FinancialInput(monthly_bill=150), golden_bundle(), as_of=AS_OF)
    a = r.assumptions
    assert a["utility_rate_per_kwh"] == 0.185
    assert a["rate_escalation_pct"] == 3.8
    assert a["peak_sun_hours_per_day"] == 5.2
    assert a["federal_itc_pct"] == pytest.approx(30.0)
    assert a["production_degradation_pct"] == pytest.approx(0.5)
    assert a["analysis_years"] == 25
    assert a["as_of"] == "2026-01-15"


def test_same_inputs_same_result():
    inp = FinancialInput(monthly_bill=210, offset_target_pct=90, financing_mode="lease")
    a = calculate_proposal(inp, golden_bundle(), as_of=AS_OF)
    b = calculate_proposal(inp, golden_bundle(), as_of=AS_OF)
    assert a.to_dict() == b.to_dict()


def test_offset_target_accepts_percent_string():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150, offset_target_pct="80%"),
        golden_bundle(),
        as_of=AS_OF,
    )
    assert r.system.offset_pct == 80
    assert r.system.size_kw == pytest.approx(4.82)


def test_offset_target_must_be_positive():
    with pytest.raises(ValueError):
        FinancialInput(monthly_bill=150, offset_target_pct=0)


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_inputs_are_rejected(value):
    with pytest.raises(ValueError):
        FinancialInput(monthly_bill=value)
    with pytest.raises(ValueError):
        FinancialInput(monthly_bill=150, offset_target_pct=value)


def test_missing_reference_data_names_every_gap():
    bundle = golden_bundle(utility=None, weather=None)
    with pytest.raises(MissingReferenceData) as exc:
        calculate_proposal(FinancialInput(monthly_bill=150), bundle, as_of=AS_OF)

    assert exc.value.missing == ("utility", "weather")
    assert "utility, weather" in str(exc.value)
    assert isinstance(exc.value, LookupError)


def test_zero_bill_degenerates_without_raising():
    r = calculate_proposal(FinancialInput(monthly_bill=0), golden_bundle(), as_of=AS_OF)

    assert r.system.size_kw == 0
    assert r.system.offset_pct == 0
    assert r.costs.total_project_cost == 550
    assert r.cash_flow.payback_years is None
    assert r.cash_flow.breakeven_year is None
    assert _codes(r).count(AdvisoryCode.DEGENERATE_FINANCIALS) >= 2
    assert any("payback" in w for w in r.warnings)


def test_incentives_exceeding_cost_keep_negative_net_cost():
    big = incentive(name="Huge Rebate", amount=20_000.0)
    r = calculate_proposal(
        FinancialInput(monthly_bill=150),
        golden_bundle(incentives=(big,)),
        as_of=AS_OF,
    )

    assert r.costs.state_incentives == 20_000
    assert r.costs.net_system_cost < 0
    assert r.costs.total_project_cost < 0
    assert r.cash_flow.roi_pct is None
    assert r.cash_flow.approximate_irr_pct is None
    assert r.cash_flow.breakeven_year == 0
    assert AdvisoryCode.DEGENERATE_FINANCIALS in _codes(r)
    assert any("negative" in w for w in r.warnings)


def test_expired_incentive_is_listed_not_applied():
    old = incentive(name="CA Solar Rebate", amount=1_000.0, expiration_date=date(2025, 12, 31))
    r = calculate_proposal(
        FinancialInput(monthly_bill=150),
        golden_bundle(incentives=(old,)),
        as_of=AS_OF,
    )
    assert r.costs.state_incentives == 0
    assert r.incentive_expirations == ("CA Solar Rebate expired 2025-12-31",)


def test_utility_rebate_lowers_net_cost():
    rebate = incentive(name="PG&E Rebate", type="utility_rebate", amount=500.0)
    r = calculate_proposal(
        FinancialInput(monthly_bill=150),
        golden_bundle(incentives=(rebate,)),
        as_of=AS_OF,
    )
    assert r.costs.utility_rebates == 500
    assert r.costs.net_system_cost == 11110


def test_no_net_metering_means_no_exported_kwh():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150),
        golden_bundle(utility=pge_utility(net_metering_available=False)),
        as_of=AS_OF,
    )
    assert r.environment.net_metered_production_kwh == 0


def test_loan_option_with_ineligible_credit_still_computes():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150, credit_tier="poor", financing_mode="loan"),
        golden_bundle(financing_program=sunloans_program()),
        as_of=AS_OF,
    )
    loan = r.financing.loan

    assert loan is not None
    assert loan.loan_amount == 11610
    assert loan.origination_fee == 174
    assert loan.financed_principal == 11784
    assert loan.number_of_payments == 300
    assert loan.interest_rate_pct == 7.99
    assert 85 < loan.monthly_payment < 95
    # total uses the unrounded payment
    assert loan.total_cost == pytest.approx(loan.monthly_payment * 300, abs=150)
    assert float(loan.monthly_payment).is_integer()
    assert loan.total_interest == pytest.approx(loan.total_cost - loan.financed_principal, abs=2)
    assert _codes(r) == [AdvisoryCode.CREDIT_INELIGIBLE]
    assert "650" in r.warnings[0]


def test_missing_credit_is_treated_as_lowest_tier():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150, financing_mode="loan"),
        golden_bundle(financing_program=sunloans_program(min_credit_score=600)),
        as_of=AS_OF,
    )
    assert r.advisories == ()

    r = calculate_proposal(
        FinancialInput(monthly_bill=150, financing_mode="loan"),
        golden_bundle(financing_program=sunloans_program(min_credit_score=601)),
        as_of=AS_OF,
    )
    assert _codes(r) == [AdvisoryCode.CREDIT_INELIGIBLE]


def test_loan_is_capped_at_program_maximum():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150, credit_tier="excellent", financing_mode="loan"),
        golden_bundle(financing_program=sunloans_program(max_loan_amount=8_000.0, origination_fee_pct=0.0)),
        as_of=AS_OF,
    )
    assert r.financing.loan.loan_amount == 8000
    assert r.financing.loan.financed_principal == 8000


def test_loan_below_program_minimum_gets_notice():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150, credit_tier="excellent", financing_mode="loan"),
        golden_bundle(financing_program=sunloans_program(min_loan_amount=20_000.0)),
        as_of=AS_OF,
    )
    assert r.financing.loan is not None
    assert _codes(r) == [AdvisoryCode.FINANCING_NOTICE]


def test_loan_requested_without_program():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150, financing_mode="loan"),
        golden_bundle(),
        as_of=AS_OF,
    )
    assert r.financing.loan is None
    assert _codes(r) == [AdvisoryCode.FINANCING_NOTICE]


def test_lease_option():
    r = calculate_proposal(
        FinancialInput(monthly_bill=150, financing_mode="lease"),
        golden_bundle(),
        as_of=AS_OF,
    )
    lease = r.financing.lease

    assert lease.monthly_payment == 7
    assert lease.term_years == 20
    assert lease.total_cost == 1741
    assert r.financing.loan is None


def test_custom_assumptions_flow_through():
    a = ProposalAssumptions(cost_per_watt=3.0, federal_itc_rate=0.0)
    r = calculate_proposal(FinancialInput(monthly_bill=150), golden_bundle(), as_of=AS_OF, assumptions=a)
    assert r.costs.federal_tax_credit == 0
    assert r.costs.gross_cost == 18093
    assert r.assumptions["cost_per_watt"] == 3.0


def test_to_dict_is_plain_data():
    r = calculate_proposal(
        FinancialInput(monthly_bill=0, financing_mode="loan"),
        golden_bundle(),
        as_of=AS_OF,
    )
    d = r.to_dict()
    assert set(d) >= {"system", "costs", "cash_flow", "financing", "environment", "warnings", "advisories"}
    assert d["advisories"][0]["code"] == "degenerate_financials"
    assert isinstance(d["schedule"], list)
