"""Closed-form mortgage amortization helpers."""

from model.PlanInput import Mortgage


def monthly_payment(principal: float, annual_rate: float, term_years: int) -> float:
    """Standard fixed-rate payment, rounded to cents. Zero for non-positive inputs."""
    if principal <= 0 or annual_rate <= 0 or term_years <= 0:
        return 0.0
    r = annual_rate / 12
    n = term_years * 12
    growth = (1 + r) ** n
    return round(principal * r * growth / (growth - 1), 2)


def remaining_balance(principal: float, annual_rate: float, term_years: int, years_elapsed: float) -> float:
    """Outstanding principal after ``years_elapsed`` years of scheduled payments."""
    if principal <= 0 or term_years <= 0 or years_elapsed >= term_years:
        return 0.0
    if years_elapsed <= 0:
        return principal
    if annual_rate <= 0:
        return principal * (1 - years_elapsed / term_years)

    r = annual_rate / 12
    n = term_years * 12
    p = years_elapsed * 12
    return max(0.0, principal * ((1 + r) ** n - (1 + r) ** p) / ((1 + r) ** n - 1))


def resolved_monthly_payment(mortgage: Mortgage) -> float:
    """The user's override when present, otherwise the computed payment."""
    if mortgage.monthly_payment is not None:
        return mortgage.monthly_payment
    return monthly_payment(mortgage.loan_balance, mortgage.interest_rate, mortgage.term_years)


def balance_for_calendar_year(mortgage: Mortgage, year: int) -> float:
    """Mortgage balance at the start of ``year``, zero from any scheduled payoff year on."""
    if mortgage.payoff_year is not None and year >= mortgage.payoff_year:
        return 0.0
    elapsed = year - mortgage.origination_year
    if elapsed <= 0:
        return mortgage.loan_balance
    return remaining_balance(mortgage.loan_balance, mortgage.interest_rate, mortgage.term_years, elapsed)


def payoff_amount(mortgage: Mortgage) -> float:
    """Lump paid in the scheduled payoff year, or zero when none is scheduled or the loan has ended."""
    if mortgage.payoff_year is None:
        return 0.0
    elapsed = mortgage.payoff_year - mortgage.origination_year
    if elapsed <= 0:
        return mortgage.loan_balance
    return remaining_balance(mortgage.loan_balance, mortgage.interest_rate, mortgage.term_years, elapsed)
