"""Year-by-year expense schedule.

Recurring spending only inflates from the FI year on: before FI it is
assumed to be paid from salary, so the portfolio first sees it at its
FI-year value. Housing costs follow the housing block's own inflation rate,
and the mortgage contributes a flat payment until it ends naturally or
through a scheduled lump-sum payoff.
"""

from dataclasses import dataclass
from typing import Optional

from calc.amortization import balance_for_calendar_year, payoff_amount, resolved_monthly_payment
from model.PlanInput import ExpenseItem, Expenses, HousingBlock


@dataclass
class ExpenseResult:
    """Resolved spending for one calendar year."""
    recurring: float = 0.0  # Items + housing + mortgage payments, after the spending multiplier
    mortgage_payoff: float = 0.0  # One-time lump, never scaled
    mortgage_balance: Optional[float] = None


def _item_amount(item: ExpenseItem, year: int, as_of_year: int, inflation_years: int,
                 general_inflation: float) -> float:
    start = item.start_year if item.start_year is not None else as_of_year
    if year < start or (item.end_year is not None and year > item.end_year):
        return 0.0
    if not item.inflation_adjusted:
        return item.annual_amount
    rate = item.inflation_rate if item.inflation_rate is not None else general_inflation
    return item.annual_amount * (1 + rate) ** inflation_years


def _housing(home: HousingBlock, year: int, inflation_years: int, general_inflation: float) -> ExpenseResult:
    rate = home.inflation_rate if home.inflation_rate is not None else general_inflation
    recurring = (home.property_tax + home.insurance) * (1 + rate) ** inflation_years

    mortgage = home.mortgage
    if mortgage is None:
        return ExpenseResult(recurring=recurring)

    term_end = mortgage.origination_year + mortgage.term_years
    payoff = 0.0
    if mortgage.payoff_year is not None and year == mortgage.payoff_year and year < term_end:
        payoff = payoff_amount(mortgage)
    elif mortgage.origination_year <= year < term_end and (mortgage.payoff_year is None or year < mortgage.payoff_year):
        recurring += resolved_monthly_payment(mortgage) * 12

    return ExpenseResult(recurring=recurring, mortgage_payoff=payoff,
                         mortgage_balance=balance_for_calendar_year(mortgage, year))


def calculate_year_expenses(expenses: Expenses, year: int, fi_year: int, as_of_year: int,
                            general_inflation: float, spending_multiplier: float = 1.0) -> ExpenseResult:
    """Total active spending for a calendar year.

    Args:
        expenses: Expense configuration from the plan
        year: Calendar year to resolve
        fi_year: Calendar year the household reaches FI; inflation accrues only after it
        as_of_year: First projected year, default start of open-ended items
        general_inflation: Rate for items and housing without their own rate
        spending_multiplier: What-if scaling of recurring spending

    Returns:
        ExpenseResult with recurring spending, any payoff lump and the mortgage balance
    """
    inflation_years = max(0, year - fi_year)
    recurring = sum(_item_amount(item, year, as_of_year, inflation_years, general_inflation)
                    for item in expenses.items)

    result = ExpenseResult()
    if expenses.home is not None:
        result = _housing(expenses.home, year, inflation_years, general_inflation)

    result.recurring = (recurring + result.recurring) * spending_multiplier
    return result


def base_annual_spending(expenses: Expenses, as_of_year: int, general_inflation: float) -> float:
    """Recurring spending in the as-of year, before any what-if multiplier."""
    return calculate_year_expenses(expenses, as_of_year, as_of_year, as_of_year, general_inflation).recurring
