"""Per-account balance state threaded through a projection.

Balances are held in a mapping of account id to an immutable AccountBalance.
Every operation here returns a new mapping; the previous year's mapping is
never modified, so each step of a run can be inspected on its own.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from model.PlanInput import (Account, AccountType, DEFAULT_WITHDRAWAL_ORDER, TAXABLE_LIKE_TYPES,
                             WithdrawalSource)

# Assumed cost basis share for taxable accounts without a recorded basis
DEFAULT_BASIS_RATIO = 0.6


@dataclass(frozen=True)
class AccountBalance:
    balance: float
    cost_basis: Optional[float] = None  # None = unknown


BalanceMap = Dict[str, AccountBalance]


@dataclass
class BalanceTotals:
    """Balances aggregated by account type."""
    taxable: float = 0.0  # Taxable, 529 and other
    taxable_cost_basis: float = 0.0
    traditional: float = 0.0
    roth: float = 0.0
    hsa: float = 0.0
    cash: float = 0.0

    @property
    def total(self) -> float:
        return self.taxable + self.traditional + self.roth + self.hsa + self.cash


def known_cost_basis(entry: AccountBalance) -> float:
    """Cost basis of a balance, assuming ``DEFAULT_BASIS_RATIO`` when none is recorded."""
    if entry.cost_basis is None:
        return entry.balance * DEFAULT_BASIS_RATIO
    return entry.cost_basis


def initial_balances(accounts: Iterable[Account]) -> BalanceMap:
    """Starting balance map keyed by account id."""
    return {a.id: AccountBalance(balance=a.balance, cost_basis=a.cost_basis) for a in accounts}


def aggregate(accounts: Iterable[Account], balances: BalanceMap) -> BalanceTotals:
    """Group balances by account type.

    Args:
        accounts: Accounts to include; ids missing from ``balances`` are skipped
        balances: Current balance map

    Returns:
        BalanceTotals with 529 and other accounts pooled into taxable
    """
    totals = BalanceTotals()
    for account in accounts:
        entry = balances.get(account.id)
        if entry is None:
            continue
        if account.type in TAXABLE_LIKE_TYPES:
            totals.taxable += entry.balance
            totals.taxable_cost_basis += known_cost_basis(entry)
        elif account.type is AccountType.TRADITIONAL:
            totals.traditional += entry.balance
        elif account.type is AccountType.ROTH:
            totals.roth += entry.balance
        elif account.type is AccountType.HSA:
            totals.hsa += entry.balance
        elif account.type is AccountType.CASH:
            totals.cash += entry.balance
    return totals


def deposit(balances: BalanceMap, account: Account, amount: float) -> BalanceMap:
    """Add money to one account. Deposits to taxable-like accounts raise cost basis."""
    if amount <= 0:
        return balances
    entry = balances[account.id]
    cost_basis = entry.cost_basis
    if account.type in TAXABLE_LIKE_TYPES:
        cost_basis = known_cost_basis(entry) + amount
    updated = dict(balances)
    updated[account.id] = AccountBalance(balance=entry.balance + amount, cost_basis=cost_basis)
    return updated


def deposit_target(accounts: Iterable[Account], order: Sequence[WithdrawalSource] = DEFAULT_WITHDRAWAL_ORDER,
                   prefer_cash: bool = False) -> Optional[Account]:
    """Account that receives windfalls and routed surplus.

    Args:
        accounts: All accounts in the plan
        order: Withdrawal-order buckets, searched when there is no taxable-like or cash account
        prefer_cash: Try cash before taxable-like accounts

    Returns:
        The first taxable-like account (or the first cash account when ``prefer_cash``),
        then the other kind, then the first account of the withdrawal-order buckets,
        then any account. None only for a plan without accounts.
    """
    accounts = list(accounts)
    taxable = next((a for a in accounts if a.type in TAXABLE_LIKE_TYPES), None)
    cash = next((a for a in accounts if a.type is AccountType.CASH), None)
    preferred = (cash or taxable) if prefer_cash else (taxable or cash)
    if preferred is not None:
        return preferred
    for source in order:
        match = next((a for a in accounts if a.type in source.account_types), None)
        if match is not None:
            return match
    return accounts[0] if accounts else None


def apply_contributions(accounts: Iterable[Account], balances: BalanceMap, year: int, as_of_year: int,
                        last_accumulation_year: int) -> Tuple[BalanceMap, float]:
    """Add each account's scheduled contribution for ``year``.

    Returns:
        Tuple of (updated balances, total contributed)
    """
    total = 0.0
    for account in accounts:
        if account.annual_contribution <= 0:
            continue
        start = account.contribution_start_year if account.contribution_start_year is not None else as_of_year
        end = account.contribution_end_year if account.contribution_end_year is not None else last_accumulation_year
        if start <= year <= end:
            balances = deposit(balances, account, account.annual_contribution)
            total += account.annual_contribution
    return balances, total


def grow(accounts: Iterable[Account], balances: BalanceMap, rate: float) -> BalanceMap:
    """Apply one year of investment return. Cash and cost basis do not grow."""
    grown = dict(balances)
    for account in accounts:
        if account.type is AccountType.CASH:
            continue
        entry = balances[account.id]
        grown[account.id] = AccountBalance(balance=entry.balance * (1 + rate), cost_basis=entry.cost_basis)
    return grown
