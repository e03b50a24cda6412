"""Shared plan builders for calculator tests."""

import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from calc.fi_planner import FIPlanner
from model.PlanInput import (Account, AccountType, Assumptions, Expenses, ExpenseItem, PlanInput, Profile)


@pytest.fixture(scope="module")
def planner():
    return FIPlanner()


@pytest.fixture
def make_plan():
    """Factory for small plans with flat, uninflated spending.

    Defaults describe a single 50-year-old with life expectancy 60, a cash
    account and $40,000 of yearly spending, no returns and no taxes, so
    balances can be checked by hand.
    """
    def _make(balance=410000, fi_age=56, current_age=50, life_expectancy=60, spending=40000,
              accounts=None, account_type=AccountType.CASH, **overrides):
        if accounts is None:
            cost_basis = balance if account_type is AccountType.TAXABLE else None
            accounts = (Account('main', 'Main', account_type, balance=balance, cost_basis=cost_basis),)
        assumptions = overrides.pop('assumptions', Assumptions(investment_return=0.0, inflation_rate=0.0,
                                                               traditional_tax_rate=0.0,
                                                               capital_gains_tax_rate=0.0))
        expenses = Expenses(items=(ExpenseItem('Living', spending, inflation_adjusted=False),))
        return PlanInput(
            as_of_year=2026,
            profile=Profile(current_age=current_age, fi_age=fi_age, life_expectancy=life_expectancy),
            accounts=tuple(accounts),
            expenses=overrides.pop('expenses', expenses),
            assumptions=assumptions,
            **overrides,
        )
    return _make
