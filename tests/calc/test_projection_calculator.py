"""Tests for the year-by-year projection loop."""

import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from calc.amortization import payoff_amount
from calc.projection_calculator import ProjectionCalculator
from model.PlanInput import (Account, AccountType, Assumptions, Benefits, BenefitStream, EmploymentIncome,
                             Expenses, ExpenseItem, HousingBlock, Income, LifeEvent, Mortgage, Pension,
                             SurplusRouting, WhatIf, WithdrawalSource)
from model.ProjectionData import Phase


@pytest.fixture
def taxable_plan(make_plan):
    """FI today with a taxable account whose basis is 60% of its value."""
    accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=500000, cost_basis=300000)]
    assumptions = Assumptions(investment_return=0.0, inflation_rate=0.0, capital_gains_tax_rate=0.15)
    return make_plan(fi_age=50, life_expectancy=58, accounts=accounts, assumptions=assumptions)


class TestProjectionShape:
    """Tests for the structure of a projection run."""

    def test_one_record_per_age(self, planner, make_plan):
        data = planner.project(make_plan())
        assert [r.age for r in data.records] == list(range(50, 61))
        assert [r.year for r in data.records] == list(range(2026, 2037))

    def test_phases_split_at_fi_age(self, planner, make_plan):
        data = planner.project(make_plan(fi_age=56))
        assert all(r.phase is Phase.ACCUMULATING for r in data.between(50, 55))
        assert all(r.phase is Phase.FI for r in data.between(56, 60))
        assert len(data.fi_years()) == 5

    def test_projection_is_repeatable(self, planner, taxable_plan):
        assert planner.project(taxable_plan) == planner.project(taxable_plan)

    def test_tax_rates_resolve_state_table(self, planner, make_plan):
        plan = make_plan()
        rates = planner.projection_calculator.tax_rates(plan)
        assert rates.state_income == 0.0
        assert rates.capital_gains == 0.0


class TestFIWithdrawals:
    """Tests for portfolio draws in the FI phase."""

    def test_first_year_gross_up(self, planner, taxable_plan):
        record = planner.project(taxable_plan).get_age(50)
        assert record.gap == pytest.approx(40000)
        assert record.withdrawal == pytest.approx(42553.19, abs=0.01)
        assert record.federal_tax == pytest.approx(2553.19, abs=0.01)
        assert record.withdrawal_source == 'Taxable'

    def test_taxable_balance_strictly_decreasing(self, planner, taxable_plan):
        balances = [r.taxable_balance for r in planner.project(taxable_plan).records]
        assert all(later < earlier for earlier, later in zip(balances, balances[1:]))

    def test_cost_basis_ratio_constant_without_growth(self, planner, taxable_plan):
        for record in planner.project(taxable_plan).records:
            assert record.taxable_cost_basis / record.taxable_balance == pytest.approx(0.6)

    def test_withdrawal_conserves_need(self, planner, taxable_plan):
        for record in planner.project(taxable_plan).records:
            net = record.withdrawal - record.federal_tax - record.state_tax - record.withdrawal_penalty
            assert net == pytest.approx(record.gap - record.unmet_need, abs=0.01)

    def test_accumulation_years_do_not_draw_for_recurring_spending(self, planner, make_plan):
        data = planner.project(make_plan(fi_age=56))
        for record in data.between(50, 55):
            assert record.gap == 0.0
            assert record.withdrawal == 0.0
            assert record.withdrawal_source == 'N/A'
            assert record.total_net_worth == pytest.approx(410000)

    def test_spending_adjustment_scales_expenses(self, planner, make_plan):
        record = planner.project(make_plan(fi_age=50), WhatIf(spending_adjustment=-0.1)).get_age(50)
        assert record.expenses == pytest.approx(36000)
        assert record.gap == pytest.approx(36000)


class TestShortfall:
    """Tests for years the portfolio cannot cover."""

    def test_shortfall_floors_net_worth(self, planner, make_plan):
        data = planner.project(make_plan(balance=100000, fi_age=50, spending=30000))
        first = data.first_shortfall()
        assert first.age == 53
        assert first.unmet_need == pytest.approx(20000)
        for record in data.between(53, 60):
            assert record.is_shortfall
            assert record.total_net_worth == pytest.approx(0.0)

    def test_solvent_years_are_not_flagged(self, planner, make_plan):
        data = planner.project(make_plan(balance=100000, fi_age=50, spending=30000))
        assert not any(r.is_shortfall for r in data.between(50, 52))
        assert data.has_shortfall

    def test_shortfall_year_does_not_grow(self, planner, make_plan):
        accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=50000, cost_basis=50000)]
        assumptions = Assumptions(investment_return=0.05, inflation_rate=0.0, capital_gains_tax_rate=0.0)
        data = planner.project(make_plan(fi_age=50, accounts=accounts, assumptions=assumptions))
        first = data.first_shortfall()
        assert first.age == 51
        assert data.get_age(52).total_net_worth == pytest.approx(0.0)

    def test_shortfall_logged(self, planner, make_plan, log_messages):
        planner.project(make_plan(balance=100000, fi_age=50, spending=30000))
        assert ('DEBUG', 'Shortfall at age 53 (2029): unmet need 20000.00') in log_messages


class TestGrowthAndContributions:
    """Tests for returns, contributions and surplus routing."""

    def test_fi_return_applies_after_fi(self, planner, make_plan):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=100000)]
        assumptions = Assumptions(investment_return=0.10, fi_return=0.02, inflation_rate=0.0)
        plan = make_plan(fi_age=51, life_expectancy=53, spending=0, accounts=accounts, assumptions=assumptions)
        balances = [r.roth_balance for r in planner.project(plan).records]
        assert balances[:3] == pytest.approx([100000, 110000, 112200])

    def test_what_if_return_shifts_both_phases(self, make_plan):
        plan = make_plan(assumptions=Assumptions(investment_return=0.06, fi_return=0.04))
        accumulation, fi = ProjectionCalculator.return_rates(plan, WhatIf(investment_return=0.08))
        assert accumulation == pytest.approx(0.08)
        assert fi == pytest.approx(0.06)

    def test_fi_return_defaults_to_investment_return(self, make_plan):
        plan = make_plan(assumptions=Assumptions(investment_return=0.06))
        assert ProjectionCalculator.return_rates(plan, WhatIf()) == (0.06, 0.06)

    def test_cash_does_not_grow(self, planner, make_plan):
        plan = make_plan(spending=0, assumptions=Assumptions(investment_return=0.07, inflation_rate=0.0))
        assert all(r.cash_balance == pytest.approx(410000) for r in planner.project(plan).records)

    def test_contributions_stop_at_fi(self, planner, make_plan):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=0, annual_contribution=10000)]
        plan = make_plan(fi_age=53, spending=0, accounts=accounts)
        data = planner.project(plan)
        assert [r.contributions for r in data.between(50, 54)] == [10000, 10000, 10000, 0, 0]
        assert data.get_age(52).roth_balance == pytest.approx(30000)
        assert data.get_age(60).roth_balance == pytest.approx(30000)

    def test_surplus_invested_when_routed(self, planner, make_plan):
        accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=0),
                    Account('sav', 'Savings', AccountType.CASH, balance=0)]
        income = Income(employment=EmploymentIncome(annual_gross_income=100000, effective_tax_rate=0.25))
        assumptions = Assumptions(investment_return=0.0, inflation_rate=0.0,
                                  surplus_routing=SurplusRouting.INVEST)
        record = planner.project(make_plan(accounts=accounts, income=income, assumptions=assumptions)).get_age(50)
        assert record.employment_income == pytest.approx(75000)
        assert record.surplus_deposited == pytest.approx(35000)
        assert record.taxable_balance == pytest.approx(35000)
        assert record.cash_balance == 0.0

    def test_surplus_to_cash(self, planner, make_plan):
        accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=0),
                    Account('sav', 'Savings', AccountType.CASH, balance=0)]
        income = Income(employment=EmploymentIncome(annual_gross_income=100000, effective_tax_rate=0.25))
        assumptions = Assumptions(investment_return=0.0, inflation_rate=0.0, surplus_routing=SurplusRouting.CASH)
        record = planner.project(make_plan(accounts=accounts, income=income, assumptions=assumptions)).get_age(50)
        assert record.cash_balance == pytest.approx(35000)

    def test_surplus_ignored_by_default(self, planner, make_plan):
        income = Income(employment=EmploymentIncome(annual_gross_income=100000, effective_tax_rate=0.25))
        record = planner.project(make_plan(income=income)).get_age(50)
        assert record.surplus_deposited == 0.0
        assert record.total_net_worth == pytest.approx(410000)


class TestIncomeAndEvents:
    """Tests for benefits, pensions, life events and the mortgage."""

    @pytest.fixture
    def benefit_plan(self, make_plan):
        benefits = Benefits(primary=BenefitStream(monthly_benefit=2000, claiming_age=67),
                            pension=Pension(annual_benefit=6000, start_age=65))
        return make_plan(balance=1000000, current_age=60, fi_age=60, life_expectancy=72, benefits=benefits)

    def test_benefits_start_at_claiming_age(self, planner, benefit_plan):
        data = planner.project(benefit_plan)
        assert data.get_age(66).benefit_income == 0.0
        assert data.get_age(67).benefit_income == pytest.approx(24000)
        assert data.get_age(67).pension_income == pytest.approx(6000)
        assert data.get_age(67).gap == pytest.approx(10000)

    def test_claiming_age_what_if(self, planner, benefit_plan):
        data = planner.project(benefit_plan, WhatIf(claiming_age=70))
        assert data.get_age(69).benefit_income == 0.0
        assert data.get_age(70).benefit_income == pytest.approx(29760)

    def test_income_covering_spending_means_no_draw(self, planner, make_plan):
        benefits = Benefits(pension=Pension(annual_benefit=50000, start_age=50))
        record = planner.project(make_plan(fi_age=50, benefits=benefits)).get_age(50)
        assert record.gap == 0.0
        assert record.withdrawal_source == 'N/A'

    def test_life_event_expense_drawn_before_fi(self, planner, make_plan):
        plan = make_plan(life_events=(LifeEvent('Roof', 2027, 25000),))
        record = planner.project(plan).get_age(51)
        assert record.life_event_expenses == pytest.approx(25000)
        assert record.gap == pytest.approx(25000)
        assert record.total_net_worth == pytest.approx(385000)

    def test_windfall_before_fi_is_deposited(self, planner, make_plan):
        plan = make_plan(life_events=(LifeEvent('Inheritance', 2026, -50000),))
        record = planner.project(plan).get_age(50)
        assert record.windfall == pytest.approx(50000)
        assert record.total_net_worth == pytest.approx(460000)

    def test_windfall_after_fi_covers_spending_and_banks_excess(self, planner, make_plan):
        plan = make_plan(fi_age=50, life_events=(LifeEvent('Inheritance', 2026, -50000),))
        record = planner.project(plan).get_age(50)
        assert record.gap == 0.0
        assert record.total_net_worth == pytest.approx(420000)

    def test_windfall_without_taxable_or_cash_goes_to_first_bucket(self, planner, make_plan):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=100000),
                    Account('ira', 'IRA', AccountType.TRADITIONAL, balance=100000)]
        plan = make_plan(accounts=accounts, life_events=(LifeEvent('Bonus', 2026, -5000),))
        record = planner.project(plan).get_age(50)
        assert record.traditional_balance == pytest.approx(105000)
        assert record.roth_balance == pytest.approx(100000)

    def test_windfall_follows_withdrawal_order(self, planner, make_plan):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=100000),
                    Account('ira', 'IRA', AccountType.TRADITIONAL, balance=100000)]
        assumptions = Assumptions(investment_return=0.0, inflation_rate=0.0,
                                  withdrawal_order=(WithdrawalSource.ROTH, WithdrawalSource.TRADITIONAL))
        plan = make_plan(accounts=accounts, assumptions=assumptions,
                         life_events=(LifeEvent('Bonus', 2026, -5000),))
        record = planner.project(plan).get_age(50)
        assert record.roth_balance == pytest.approx(105000)

    def test_windfall_into_529_raises_basis(self, planner, make_plan):
        accounts = [Account('edu', 'College', AccountType.EDUCATION_529, balance=50000, cost_basis=30000)]
        plan = make_plan(accounts=accounts, life_events=(LifeEvent('Gift', 2026, -10000),))
        record = planner.project(plan).get_age(50)
        assert record.taxable_balance == pytest.approx(60000)
        assert record.taxable_cost_basis == pytest.approx(40000)

    def test_windfall_excess_after_fi_kept_without_taxable_account(self, planner, make_plan):
        accounts = [Account('hsa', 'HSA', AccountType.HSA, balance=20000)]
        plan = make_plan(fi_age=50, accounts=accounts, life_events=(LifeEvent('Inheritance', 2026, -50000),))
        record = planner.project(plan).get_age(50)
        assert record.gap == 0.0
        assert record.hsa_balance == pytest.approx(30000)

    def test_mortgage_payoff_year(self, planner, make_plan):
        mortgage = Mortgage(loan_balance=300000, interest_rate=0.06, term_years=30, origination_year=2016,
                            payoff_year=2028)
        expenses = Expenses(items=(ExpenseItem('Living', 40000, inflation_adjusted=False),),
                            home=HousingBlock(mortgage=mortgage))
        data = planner.project(make_plan(expenses=expenses))
        payoff_record = data.get_year(2028)
        assert payoff_record.mortgage_payoff == pytest.approx(payoff_amount(mortgage))
        assert payoff_record.gap == pytest.approx(payoff_amount(mortgage))
        assert payoff_record.withdrawal_source == 'Cash (+ Mortgage Payoff)'
        assert payoff_record.mortgage_balance == 0.0
        assert data.get_year(2027).mortgage_balance > 0
        # No payments once the loan is paid off
        assert data.get_year(2029).expenses == pytest.approx(40000)
