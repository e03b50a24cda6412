"""Tests for the ordered withdrawal waterfall.

Covers cash-first ordering, gross-up arithmetic per account type, cost-basis
tracking, penalty eligibility (including the Rule of 55) and the HSA
last-resort draw.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from calc.balance_calculator import AccountBalance, initial_balances
from calc.withdrawal_calculator import WithdrawalCalculator, TaxRates
from model.PlanInput import (Account, AccountOwner, AccountType, PenaltySettings, WithdrawalSource,
                             DEFAULT_WITHDRAWAL_ORDER)
from tax.PenaltyDetails import PenaltyDetails


ORDER = DEFAULT_WITHDRAWAL_ORDER
NO_TAX = TaxRates()


@pytest.fixture
def calculator():
    return WithdrawalCalculator(PenaltyDetails())


def withdraw(calculator, needed, accounts, rates=NO_TAX, age=60, spouse_age=None, settings=None,
             order=ORDER, balances=None):
    balances = balances if balances is not None else initial_balances(accounts)
    return calculator.withdraw(needed, accounts, balances, order, rates, age, spouse_age,
                               settings or PenaltySettings())


class TestOrdering:
    """Tests for which accounts are drawn first."""

    def test_cash_is_drawn_first(self, calculator):
        accounts = [
            Account('brk', 'Brokerage', AccountType.TAXABLE, balance=100000, cost_basis=100000),
            Account('sav', 'Savings', AccountType.CASH, balance=10000),
        ]
        result = withdraw(calculator, 5000, accounts)
        assert result.balances['sav'].balance == pytest.approx(5000)
        assert result.balances['brk'].balance == pytest.approx(100000)
        assert result.sources == ['Cash']
        assert result.gross == pytest.approx(5000)

    def test_configured_order_is_followed(self, calculator):
        accounts = [
            Account('ira', 'IRA', AccountType.TRADITIONAL, balance=100000),
            Account('roth', 'Roth', AccountType.ROTH, balance=100000),
        ]
        order = (WithdrawalSource.ROTH, WithdrawalSource.TRADITIONAL, WithdrawalSource.TAXABLE)
        result = withdraw(calculator, 20000, accounts, order=order)
        assert result.balances['roth'].balance == pytest.approx(80000)
        assert result.balances['ira'].balance == pytest.approx(100000)
        assert result.source_label == 'Roth'

    def test_larger_balance_drawn_first_within_bucket(self, calculator):
        accounts = [
            Account('small', 'Small', AccountType.ROTH, balance=10000),
            Account('large', 'Large', AccountType.ROTH, balance=50000),
        ]
        result = withdraw(calculator, 20000, accounts)
        assert result.balances['large'].balance == pytest.approx(30000)
        assert result.balances['small'].balance == pytest.approx(10000)

    def test_penalty_free_account_preferred_over_larger_penalized_one(self, calculator):
        accounts = [
            Account('own', 'Own IRA', AccountType.TRADITIONAL, owner=AccountOwner.SELF, balance=200000),
            Account('sp', 'Spouse IRA', AccountType.TRADITIONAL, owner=AccountOwner.SPOUSE, balance=50000),
        ]
        # Self is 55 (penalized), spouse is 62 (penalty-free)
        result = withdraw(calculator, 10000, accounts, age=55, spouse_age=62)
        assert result.balances['sp'].balance == pytest.approx(40000)
        assert result.penalty == 0.0

    def test_taxable_like_types_share_a_bucket(self, calculator):
        accounts = [
            Account('529', 'College', AccountType.EDUCATION_529, balance=30000),
            Account('ira', 'IRA', AccountType.TRADITIONAL, balance=100000),
        ]
        result = withdraw(calculator, 10000, accounts)
        assert result.balances['529'].balance < 30000
        assert result.balances['ira'].balance == pytest.approx(100000)
        assert result.sources == ['Taxable']

    def test_hsa_is_last_resort(self, calculator):
        accounts = [
            Account('hsa', 'HSA', AccountType.HSA, balance=50000),
            Account('roth', 'Roth', AccountType.ROTH, balance=5000),
        ]
        result = withdraw(calculator, 13000, accounts, age=66)
        assert result.balances['roth'].balance == 0.0
        assert result.balances['hsa'].balance == pytest.approx(42000)
        assert result.source_label == 'Roth, HSA'


class TestGrossUp:
    """Each draw nets the remaining need after its own tax and penalty."""

    def test_taxable_taxed_on_gains_fraction(self, calculator):
        accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=100000, cost_basis=40000)]
        rates = TaxRates(capital_gains=0.15)
        result = withdraw(calculator, 9100, accounts, rates=rates)
        # 60% gains taxed at 15% -> 9% effective
        assert result.gross == pytest.approx(10000)
        assert result.federal_tax == pytest.approx(900)
        assert result.state_tax == 0.0

    def test_unknown_basis_assumes_sixty_percent(self, calculator):
        accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=100000)]
        result = withdraw(calculator, 9400, accounts, rates=TaxRates(capital_gains=0.15))
        assert result.gross == pytest.approx(10000)
        assert result.federal_tax == pytest.approx(600)

    def test_state_capital_gains_rate_applies(self, calculator):
        accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=100000, cost_basis=0)]
        result = withdraw(calculator, 7800, accounts, rates=TaxRates(capital_gains=0.15, state_capital_gains=0.07))
        assert result.gross == pytest.approx(10000)
        assert result.state_tax == pytest.approx(700)

    def test_traditional_taxed_in_full(self, calculator):
        accounts = [Account('ira', 'IRA', AccountType.TRADITIONAL, balance=100000)]
        rates = TaxRates(ordinary=0.22, state_income=0.05)
        result = withdraw(calculator, 7300, accounts, rates=rates, age=60)
        assert result.gross == pytest.approx(10000)
        assert result.federal_tax == pytest.approx(2200)
        assert result.state_tax == pytest.approx(500)
        assert result.penalty == 0.0

    def test_early_traditional_penalized(self, calculator):
        accounts = [Account('ira', 'IRA', AccountType.TRADITIONAL, balance=100000)]
        result = withdraw(calculator, 6800, accounts, rates=TaxRates(ordinary=0.22), age=50)
        assert result.gross == pytest.approx(10000)
        assert result.penalty == pytest.approx(1000)

    def test_roth_tax_rate_grossed_up(self, calculator):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=100000)]
        result = withdraw(calculator, 9500, accounts, rates=TaxRates(roth=0.05), age=60)
        assert result.gross == pytest.approx(10000)
        assert result.federal_tax == pytest.approx(500)

    def test_early_hsa_uses_hsa_penalty(self, calculator):
        accounts = [Account('hsa', 'HSA', AccountType.HSA, balance=100000)]
        result = withdraw(calculator, 8000, accounts, age=60)
        assert result.gross == pytest.approx(10000)
        assert result.penalty == pytest.approx(2000)

    def test_conservation_across_mixed_accounts(self, calculator):
        accounts = [
            Account('sav', 'Savings', AccountType.CASH, balance=3000),
            Account('brk', 'Brokerage', AccountType.TAXABLE, balance=8000, cost_basis=2000),
            Account('ira', 'IRA', AccountType.TRADITIONAL, balance=50000),
            Account('roth', 'Roth', AccountType.ROTH, balance=50000),
        ]
        rates = TaxRates(ordinary=0.22, capital_gains=0.15, state_income=0.05, state_capital_gains=0.05)
        result = withdraw(calculator, 30000, accounts, rates=rates, age=52)
        assert result.unmet == 0.0
        net = result.gross - result.federal_tax - result.state_tax - result.penalty
        assert net == pytest.approx(30000, abs=0.01)
        assert result.source_label == 'Cash, Taxable, Traditional'


class TestBalancesAndBasis:
    """Tests for balance updates."""

    def test_cost_basis_reduced_proportionally(self, calculator):
        accounts = [Account('brk', 'Brokerage', AccountType.TAXABLE, balance=100000, cost_basis=40000)]
        result = withdraw(calculator, 9100, accounts, rates=TaxRates(capital_gains=0.15))
        entry = result.balances['brk']
        assert entry.balance == pytest.approx(90000)
        assert entry.cost_basis == pytest.approx(36000)
        assert entry.cost_basis / entry.balance == pytest.approx(0.4)

    def test_input_balance_map_not_modified(self, calculator):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=100000)]
        balances = initial_balances(accounts)
        withdraw(calculator, 10000, accounts, balances=balances)
        assert balances['roth'] == AccountBalance(balance=100000, cost_basis=None)

    def test_insufficient_funds_reports_unmet_need(self, calculator):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=5000)]
        result = withdraw(calculator, 12000, accounts)
        assert result.balances['roth'].balance == 0.0
        assert result.unmet == pytest.approx(7000)

    def test_nothing_available_labels_none(self, calculator):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=0)]
        result = withdraw(calculator, 1000, accounts)
        assert result.source_label == 'None'
        assert result.unmet == pytest.approx(1000)

    def test_zero_need_is_a_no_op(self, calculator):
        accounts = [Account('roth', 'Roth', AccountType.ROTH, balance=5000)]
        result = withdraw(calculator, 0, accounts)
        assert result.gross == 0.0
        assert result.balances['roth'].balance == 5000


class TestRuleOf55:
    """Penalty carve-out for employer plans after separation at 55+."""

    @pytest.fixture
    def plan_account(self):
        return [Account('401k', '401(k)', AccountType.TRADITIONAL, balance=500000, is_employer_plan=True,
                        separated_from_service=True)]

    @pytest.mark.parametrize("age", [55, 56, 57, 58, 59])
    def test_carve_out_removes_penalty_between_55_and_59(self, calculator, plan_account, age):
        enabled = withdraw(calculator, 20000, plan_account, age=age, settings=PenaltySettings(enable_rule55=True))
        disabled = withdraw(calculator, 20000, plan_account, age=age, settings=PenaltySettings(enable_rule55=False))
        assert enabled.penalty == 0.0
        assert disabled.penalty > 0.0

    @pytest.mark.parametrize("enable", [True, False])
    def test_penalty_free_at_standard_age_either_way(self, calculator, plan_account, enable):
        result = withdraw(calculator, 20000, plan_account, age=60, settings=PenaltySettings(enable_rule55=enable))
        assert result.penalty == 0.0

    def test_carve_out_requires_separation(self, calculator):
        accounts = [Account('401k', '401(k)', AccountType.TRADITIONAL, balance=500000, is_employer_plan=True)]
        result = withdraw(calculator, 20000, accounts, age=56, settings=PenaltySettings(enable_rule55=True))
        assert result.penalty > 0.0

    def test_carve_out_not_before_55(self, calculator, plan_account):
        result = withdraw(calculator, 20000, plan_account, age=54, settings=PenaltySettings(enable_rule55=True))
        assert result.penalty > 0.0
