"""Ordered multi-account withdrawal waterfall.

Cash is spent first, then the buckets of the configured withdrawal order,
then health-savings accounts. Each draw is grossed up so that what is left
after the withdrawal's own tax and penalty nets the still-remaining need.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from calc.balance_calculator import AccountBalance, BalanceMap, known_cost_basis
from model.PlanInput import Account, AccountType, PenaltySettings, WithdrawalSource, TAXABLE_LIKE_TYPES
from tax.PenaltyDetails import PenaltyDetails

# Remaining need below this is treated as met
TOLERANCE = 0.01


@dataclass(frozen=True)
class TaxRates:
    """Flat rates applied to portfolio withdrawals."""
    ordinary: float = 0.0
    capital_gains: float = 0.0
    roth: float = 0.0
    state_income: float = 0.0
    state_capital_gains: float = 0.0


@dataclass
class WithdrawalResult:
    balances: BalanceMap
    gross: float = 0.0
    net: float = 0.0
    penalty: float = 0.0
    federal_tax: float = 0.0
    state_tax: float = 0.0
    unmet: float = 0.0
    sources: List[str] = field(default_factory=list)

    @property
    def source_label(self) -> str:
        return ', '.join(self.sources) if self.sources else 'None'


def _source_name(account: Account) -> str:
    if account.type is AccountType.CASH:
        return 'Cash'
    if account.type is AccountType.HSA:
        return 'HSA'
    return next(source.label for source in WithdrawalSource if account.type in source.account_types)


class WithdrawalCalculator:
    """Funds a net need from a set of accounts in priority order."""

    def __init__(self, penalty_details: PenaltyDetails):
        self.penalty_details = penalty_details

    def withdraw(self, needed: float, accounts: Sequence[Account], balances: BalanceMap,
                 order: Sequence[WithdrawalSource], rates: TaxRates, self_age: int,
                 spouse_age: Optional[int], settings: PenaltySettings) -> WithdrawalResult:
        """Draw ``needed`` (net of tax and penalty) from the accounts.

        Args:
            needed: Net amount to fund
            accounts: All accounts in the plan
            balances: Current balance map; not modified
            order: Bucket priority for non-cash, non-HSA accounts
            rates: Tax rates applied to the draws
            self_age: Primary holder's age this year
            spouse_age: Spouse's age this year, or None
            settings: Penalty rates and the Rule of 55 toggle

        Returns:
            WithdrawalResult with the new balance map and tax, penalty and source totals.
            ``unmet`` is the part of the need the accounts could not cover.
        """
        result = WithdrawalResult(balances=dict(balances))
        if needed <= 0:
            return result

        remaining = needed
        for group in self._draw_groups(accounts, order):
            for account in self._sorted(group, result.balances, self_age, spouse_age, settings):
                if remaining <= TOLERANCE:
                    break
                remaining -= self._draw(account, remaining, result, rates, self_age, spouse_age, settings)

        result.unmet = max(0.0, remaining) if remaining > TOLERANCE else 0.0
        return result

    @staticmethod
    def _draw_groups(accounts: Sequence[Account], order: Sequence[WithdrawalSource]) -> List[List[Account]]:
        groups = [[a for a in accounts if a.type is AccountType.CASH]]
        for source in order:
            groups.append([a for a in accounts if a.type in source.account_types])
        groups.append([a for a in accounts if a.type is AccountType.HSA])
        return groups

    def _sorted(self, group: Iterable[Account], balances: BalanceMap, self_age: int,
                spouse_age: Optional[int], settings: PenaltySettings) -> List[Account]:
        # Penalty-free accounts first, then largest balance first
        return sorted(
            group,
            key=lambda a: (not self.penalty_details.is_penalty_free(a, self_age, spouse_age, settings),
                           -balances[a.id].balance))

    def _draw(self, account: Account, remaining: float, result: WithdrawalResult, rates: TaxRates,
              self_age: int, spouse_age: Optional[int], settings: PenaltySettings) -> float:
        """Gross up one account's draw; returns the net amount it supplied."""
        entry = result.balances[account.id]
        if entry.balance <= 0:
            return 0.0

        penalty_rate = 0.0
        federal_rate = state_rate = 0.0
        if account.type in TAXABLE_LIKE_TYPES:
            gain_ratio = 1 - min(1.0, known_cost_basis(entry) / entry.balance)
            federal_rate = gain_ratio * rates.capital_gains
            state_rate = gain_ratio * rates.state_capital_gains
        elif account.type is AccountType.TRADITIONAL:
            federal_rate = rates.ordinary
            state_rate = rates.state_income
        elif account.type is AccountType.ROTH:
            federal_rate = rates.roth
        if account.type is not AccountType.CASH:
            penalty_rate = self.penalty_details.penalty_rate(account, self_age, spouse_age, settings)

        keep_ratio = 1 - federal_rate - state_rate - penalty_rate
        gross = remaining / keep_ratio if keep_ratio > 0 else entry.balance
        gross = min(gross, entry.balance)

        federal_tax = gross * federal_rate
        state_tax = gross * state_rate
        penalty = gross * penalty_rate
        net = gross - federal_tax - state_tax - penalty

        new_balance = entry.balance - gross
        cost_basis = entry.cost_basis
        if cost_basis is not None:
            cost_basis *= new_balance / entry.balance
        result.balances[account.id] = AccountBalance(balance=max(0.0, new_balance), cost_basis=cost_basis)

        result.gross += gross
        result.net += net
        result.federal_tax += federal_tax
        result.state_tax += state_tax
        result.penalty += penalty
        name = _source_name(account)
        if gross > 0 and name not in result.sources:
            result.sources.append(name)
        return net
