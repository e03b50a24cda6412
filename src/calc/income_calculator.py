from typing import Iterable, Optional

from model.PlanInput import EmploymentIncome, Income, RetirementIncomeItem


def net_employment_income(employment: Optional[EmploymentIncome], years_since_start: int) -> float:
    """Take-home pay after the person's effective tax rate, grown from the as-of year."""
    if employment is None:
        return 0.0
    gross = employment.annual_gross_income * (1 + employment.annual_growth_rate) ** max(0, years_since_start)
    return gross * (1 - employment.effective_tax_rate)


def household_employment_income(income: Income, age: int, fi_age: int, years_since_start: int,
                                has_spouse: bool) -> float:
    """Net employment income for the year the primary holder turns ``age``.

    The primary holder works until the FI age. A spouse keeps working for
    ``spouse_additional_work_years`` beyond it.
    """
    total = 0.0
    if age < fi_age:
        total += net_employment_income(income.employment, years_since_start)
    if has_spouse and age < fi_age + income.spouse_additional_work_years:
        total += net_employment_income(income.spouse_employment, years_since_start)
    return total


def retirement_income(items: Iterable[RetirementIncomeItem], age: int, inflation_rate: float) -> float:
    """Income from non-benefit streams active at ``age``."""
    total = 0.0
    for item in items:
        if age < item.start_age or (item.end_age is not None and age > item.end_age):
            continue
        amount = item.annual_amount
        if item.inflation_adjusted:
            amount *= (1 + inflation_rate) ** (age - item.start_age)
        total += amount
    return total
