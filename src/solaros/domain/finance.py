from __future__ import annotations

import math

import numpy as np
import pandas as pd


def annuity_payment(rate_monthly: float, n_months: int, principal: float) -> float:
    r = rate_monthly
    if r == 0:
        return principal / n_months
    return principal * (r * (1 + r) ** n_months) / ((1 + r) ** n_months - 1)


def amortization_schedule(principal: float, annual_rate_pct: float, term_years: int) -> pd.DataFrame:
    """
    Month-by-month loan schedule for a fixed-rate annuity.

    Columns: period, payment, interest, principal, balance.
    Balances use the closed form B_k = P(1+r)^k - M((1+r)^k - 1)/r, so the
    whole table is one vector op.
    """
    r = annual_rate_pct / 100.0 / 12.0
    n = term_years * 12
    m = annuity_payment(r, n, principal)

    k = np.arange(0, n + 1, dtype=float)
    if r == 0:
        balance = principal - m * k
    else:
        growth = (1.0 + r) ** k
        balance = principal * growth - m * (growth - 1.0) / r

    interest = balance[:-1] * r
    principal_paid = m - interest

    return pd.DataFrame(
        {
            "period": np.arange(1, n + 1),
            "payment": np.full(n, m),
            "interest": interest,
            "principal": principal_paid,
            "balance": balance[1:],
        }
    )


def project_savings(
    year1_production_kwh: float,
    base_rate: float,
    escalation_pct: float,
    degradation_rate: float,
    years: int = 25,
) -> pd.DataFrame:
    """
    Yearly utility savings with compounding rate escalation and panel
    degradation, both counted from year 1:

        rate(y)       = base * (1 + escalation)^(y-1)
        production(y) = year1 * (1 - degradation)^(y-1)
        savings(y)    = production(y) * rate(y)
    """
    offset = np.arange(years, dtype=float)
    rate = base_rate * (1.0 + escalation_pct / 100.0) ** offset
    production = year1_production_kwh * (1.0 - degradation_rate) ** offset
    savings = production * rate

    return pd.DataFrame(
        {
            "year": np.arange(1, years + 1),
            "utility_rate": rate,
            "production_kwh": production,
            "savings": savings,
            "cumulative_savings": np.cumsum(savings),
        }
    )


def simple_payback(net_cost: float, year1_savings: float) -> float | None:
    # undefined when the system saves nothing in year 1
    if year1_savings <= 0:
        return None
    return net_cost / year1_savings


def roi_pct(total_savings: float, total_cost: float) -> float | None:
    if total_cost <= 0:
        return None
    return (total_savings - total_cost) / total_cost * 100.0


def approximate_irr(total_savings: float, total_cost: float, years: int = 25) -> float | None:
    """
    Geometric-mean growth of cost into lifetime savings:

        ((total_savings / total_cost) ** (1 / years) - 1) * 100

    This is not a discounted cash-flow IRR. Swap this function for an NPV
    root-find if a true IRR is ever needed.
    """
    if total_cost <= 0 or total_savings < 0:
        return None
    return ((total_savings / total_cost) ** (1.0 / years) - 1.0) * 100.0


def breakeven_year(cumulative_savings: np.ndarray, total_cost: float) -> int | None:
    if total_cost <= 0:
        return 0
    reached = np.nonzero(np.asarray(cumulative_savings) >= total_cost)[0]
    if reached.size == 0:
        return None
    return int(reached[0]) + 1


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves toward +inf, so 2.5 -> 3 and -2.5 -> -2."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_optional(value: float | None, ndigits: int = 0) -> float | None:
    if value is None:
        return None
    return round_half_up(value, ndigits)
