"""Year-by-year projection of a household plan.

Each age from the current age to life expectancy is simulated in two
phases:
1. Accumulating (age < FI age) - salary covers recurring spending; only
   life events, a mortgage payoff and contributions touch the portfolio
2. FI (age >= FI age) - the portfolio funds whatever spending benefits,
   pensions and other income do not cover

Balances are threaded through the loop as immutable maps, so a run is a
pure function of the plan snapshot and the what-if overrides.
"""

from typing import Optional, Tuple

from loguru import logger

from calc.balance_calculator import (aggregate, apply_contributions, deposit, deposit_target, grow,
                                     initial_balances)
from calc.benefit_calculator import BenefitCalculator
from calc.expense_calculator import calculate_year_expenses
from calc.income_calculator import household_employment_income, retirement_income
from calc.withdrawal_calculator import TaxRates, WithdrawalCalculator
from model.PlanInput import PlanInput, SurplusRouting, WhatIf
from model.ProjectionData import Phase, ProjectionData, YearRecord
from tax.BenefitDetails import BenefitDetails
from tax.PenaltyDetails import PenaltyDetails
from tax.StateDetails import StateDetails


class ProjectionCalculator:
    """Builds the YearRecord sequence for a plan."""

    def __init__(self, state: StateDetails, penalties: PenaltyDetails, benefits: BenefitDetails):
        self.state = state
        self.penalties = penalties
        self.benefit_calculator = BenefitCalculator(benefits)
        self.withdrawal_calculator = WithdrawalCalculator(penalties)

    def tax_rates(self, plan: PlanInput) -> TaxRates:
        """Withdrawal tax rates for the plan; explicit state rates override the state table."""
        assumptions = plan.assumptions
        state_rates = self.state.rates(plan.profile.state, assumptions.state_income_tax_rate,
                                       assumptions.state_capital_gains_rate)
        return TaxRates(
            ordinary=assumptions.traditional_tax_rate,
            capital_gains=assumptions.capital_gains_tax_rate,
            roth=assumptions.roth_tax_rate,
            state_income=state_rates.income_rate,
            state_capital_gains=state_rates.capital_gains_rate,
        )

    @staticmethod
    def return_rates(plan: PlanInput, what_if: WhatIf) -> Tuple[float, float]:
        """Accumulation and post-FI return rates.

        A what-if return replaces the accumulation rate and shifts the post-FI
        rate by the same delta.
        """
        base = plan.assumptions.investment_return
        base_fi = plan.assumptions.fi_return if plan.assumptions.fi_return is not None else base
        if what_if.investment_return is None:
            return base, base_fi
        delta = what_if.investment_return - base
        return what_if.investment_return, base_fi + delta

    def calculate(self, plan: PlanInput, what_if: Optional[WhatIf] = None) -> ProjectionData:
        """Project the plan from the current age through life expectancy.

        Args:
            plan: Immutable plan snapshot
            what_if: Optional overrides for spending, return and claiming ages

        Returns:
            ProjectionData with one YearRecord per age
        """
        what_if = what_if or WhatIf()
        profile = plan.profile
        assumptions = plan.assumptions
        accounts = plan.accounts
        fi_year = plan.fi_year
        last_accumulation_year = fi_year - 1

        rates = self.tax_rates(plan)
        accumulation_return, fi_return = self.return_rates(plan, what_if)
        settings = assumptions.penalty_settings

        balances = initial_balances(accounts)
        data = ProjectionData(as_of_year=plan.as_of_year, fi_age=profile.fi_age,
                              life_expectancy=profile.life_expectancy)

        for age in range(profile.current_age, profile.life_expectancy + 1):
            year = plan.year_for_age(age)
            spouse_age = profile.spouse_age_at(age)
            is_fi = age >= profile.fi_age

            balances, contributions = apply_contributions(accounts, balances, year, plan.as_of_year,
                                                          last_accumulation_year)

            expense = calculate_year_expenses(plan.expenses, year, fi_year, plan.as_of_year,
                                              assumptions.inflation_rate, what_if.spending_multiplier)
            events = [e.amount for e in plan.life_events if e.year == year]
            event_expenses = sum(a for a in events if a > 0)
            windfall = -sum(a for a in events if a < 0)

            benefit_income = self.benefit_calculator.household_benefits(plan.benefits, age, spouse_age, what_if)
            pension_income = self.benefit_calculator.pension_income(plan.benefits.pension, age)
            other_income = retirement_income(plan.income.retirement_incomes, age, assumptions.inflation_rate)
            employment = household_employment_income(plan.income, age, profile.fi_age, year - plan.as_of_year,
                                                     profile.is_married)
            non_portfolio = benefit_income + pension_income + other_income

            surplus = 0.0
            if is_fi:
                outflow = expense.recurring + event_expenses + expense.mortgage_payoff
                need = max(0.0, outflow - non_portfolio - windfall - employment)
                # Windfall beyond what the year needs is banked
                deposit_amount = min(windfall, max(0.0, non_portfolio + windfall + employment - outflow))
            else:
                need = event_expenses + expense.mortgage_payoff
                deposit_amount = windfall
                if assumptions.surplus_routing is not SurplusRouting.NONE:
                    surplus = max(0.0, employment + non_portfolio - expense.recurring - contributions)

            if deposit_amount > 0:
                target = deposit_target(accounts, assumptions.withdrawal_order)
                if target is None:
                    logger.warning("No account to receive windfall of {:.0f} in {}", deposit_amount, year)
                else:
                    balances = deposit(balances, target, deposit_amount)
            if surplus > 0:
                target = deposit_target(accounts, assumptions.withdrawal_order,
                                        prefer_cash=assumptions.surplus_routing is SurplusRouting.CASH)
                if target is None:
                    surplus = 0.0
                else:
                    balances = deposit(balances, target, surplus)

            result = self.withdrawal_calculator.withdraw(need, accounts, balances, assumptions.withdrawal_order,
                                                         rates, age, spouse_age, settings)
            balances = result.balances
            is_shortfall = result.unmet > 0
            if is_shortfall:
                logger.debug("Shortfall at age {} ({}): unmet need {:.2f}", age, year, result.unmet)

            label = result.source_label if need > 0 else 'N/A'
            if expense.mortgage_payoff > 0:
                label = 'Mortgage Payoff' if label in ('N/A', 'None') else f'{label} (+ Mortgage Payoff)'

            totals = aggregate(accounts, balances)
            data.records.append(YearRecord(
                year=year,
                age=age,
                phase=Phase.FI if is_fi else Phase.ACCUMULATING,
                spouse_age=spouse_age,
                expenses=expense.recurring,
                life_event_expenses=event_expenses,
                mortgage_payoff=expense.mortgage_payoff,
                benefit_income=benefit_income,
                pension_income=pension_income,
                other_income=other_income,
                windfall=windfall,
                employment_income=employment,
                contributions=contributions,
                surplus_deposited=surplus,
                gap=need,
                withdrawal=result.gross,
                withdrawal_penalty=result.penalty,
                federal_tax=result.federal_tax,
                state_tax=result.state_tax,
                withdrawal_source=label,
                unmet_need=result.unmet,
                taxable_balance=totals.taxable,
                taxable_cost_basis=totals.taxable_cost_basis,
                traditional_balance=totals.traditional,
                roth_balance=totals.roth,
                hsa_balance=totals.hsa,
                cash_balance=totals.cash,
                total_net_worth=totals.total,
                mortgage_balance=expense.mortgage_balance,
                is_shortfall=is_shortfall,
            ))

            # A shortfall year is frozen rather than grown
            if not is_shortfall:
                balances = grow(accounts, balances, fi_return if is_fi else accumulation_return)

        return data
