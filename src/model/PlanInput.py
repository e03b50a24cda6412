"""Immutable input snapshot for a financial-independence projection.

A plan is stored as a camelCase JSON document (``spec.json``). This module
parses that document into frozen dataclasses so that every projection run
works from the same snapshot and perturbed variants (a hypothesized FI age,
a longer horizon, a what-if adjustment) are created with
``dataclasses.replace`` instead of being edited in place.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class AccountType(str, Enum):
    TAXABLE = 'taxable'
    TRADITIONAL = 'traditional'
    ROTH = 'roth'
    HSA = 'hsa'
    CASH = 'cash'
    EDUCATION_529 = '529'
    OTHER = 'other'


# 529 and "other" accounts are pooled with taxable brokerage for withdrawals
TAXABLE_LIKE_TYPES = frozenset({AccountType.TAXABLE, AccountType.EDUCATION_529, AccountType.OTHER})


class AccountOwner(str, Enum):
    SELF = 'self'
    SPOUSE = 'spouse'
    JOINT = 'joint'


class FilingStatus(str, Enum):
    SINGLE = 'single'
    MARRIED = 'married'


class WithdrawalSource(str, Enum):
    """Buckets that can appear in the withdrawal priority list."""
    TAXABLE = 'taxable'
    TRADITIONAL = 'traditional'
    ROTH = 'roth'

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def account_types(self) -> frozenset:
        if self is WithdrawalSource.TAXABLE:
            return TAXABLE_LIKE_TYPES
        if self is WithdrawalSource.TRADITIONAL:
            return frozenset({AccountType.TRADITIONAL})
        return frozenset({AccountType.ROTH})


class SurplusRouting(str, Enum):
    """Where positive accumulation-phase cash flow goes."""
    NONE = 'none'
    INVEST = 'invest'
    CASH = 'cash'


DEFAULT_WITHDRAWAL_ORDER = (WithdrawalSource.TAXABLE, WithdrawalSource.TRADITIONAL, WithdrawalSource.ROTH)


def _parse_enum(enum_cls, value, key: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(repr(m.value) for m in enum_cls)
        raise ValueError(f"Invalid value {value!r} for '{key}'. Expected one of: {allowed}")


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


@dataclass(frozen=True)
class Account:
    """A single investment or cash account."""
    id: str
    name: str
    type: AccountType
    owner: AccountOwner = AccountOwner.SELF
    balance: float = 0.0
    cost_basis: Optional[float] = None  # Taxable accounts only, never above balance
    is_employer_plan: bool = False  # 401(k)/403(b) style plan (Rule of 55)
    separated_from_service: bool = False  # Left that employer at 55 or later
    annual_contribution: float = 0.0
    contribution_start_year: Optional[int] = None  # None = as-of year
    contribution_end_year: Optional[int] = None  # None = last accumulation year

    @classmethod
    def from_spec(cls, spec: dict, index: int = 0) -> 'Account':
        account_type = _parse_enum(AccountType, spec.get('type', 'taxable'), 'type')
        balance = max(0.0, float(spec.get('balance', 0)))
        cost_basis = None
        if account_type is AccountType.TAXABLE and spec.get('costBasis') is not None:
            cost_basis = min(max(0.0, float(spec['costBasis'])), balance)
        return cls(
            id=str(spec.get('id', f'account-{index + 1}')),
            name=spec.get('name', account_type.value.title()),
            type=account_type,
            owner=_parse_enum(AccountOwner, spec.get('owner', 'self'), 'owner'),
            balance=balance,
            cost_basis=cost_basis,
            is_employer_plan=bool(spec.get('is401k', spec.get('isEmployerPlan', False))),
            separated_from_service=bool(spec.get('separatedFromService', False)),
            annual_contribution=float(spec.get('annualContribution', 0)),
            contribution_start_year=_optional_int(spec.get('contributionStartYear')),
            contribution_end_year=_optional_int(spec.get('contributionEndYear')),
        )


@dataclass(frozen=True)
class ExpenseItem:
    """A recurring annual expense with its own active window and inflation policy."""
    name: str
    annual_amount: float
    category: str = 'living'
    start_year: Optional[int] = None  # None = as-of year
    end_year: Optional[int] = None  # None = perpetual
    inflation_rate: Optional[float] = None  # None = general inflation rate
    inflation_adjusted: bool = True

    @classmethod
    def from_spec(cls, spec: dict) -> 'ExpenseItem':
        return cls(
            name=spec.get('name', 'Expense'),
            annual_amount=float(spec.get('annualAmount', 0)),
            category=spec.get('category', 'living'),
            start_year=_optional_int(spec.get('startYear')),
            end_year=_optional_int(spec.get('endYear')),
            inflation_rate=_optional_float(spec.get('inflationRate')),
            inflation_adjusted=bool(spec.get('inflationAdjusted', True)),
        )


@dataclass(frozen=True)
class Mortgage:
    loan_balance: float  # Original principal at origination
    interest_rate: float
    term_years: int
    origination_year: int
    monthly_payment: Optional[float] = None  # None = computed from the amortization formula
    payoff_year: Optional[int] = None  # Scheduled early payoff

    @classmethod
    def from_spec(cls, spec: dict, as_of_year: int) -> 'Mortgage':
        override = spec.get('manualPaymentOverride', 'monthlyPayment' in spec)
        early_payoff = spec.get('earlyPayoff') or {}
        payoff_year = spec.get('payoffYear')
        if early_payoff.get('enabled', False):
            payoff_year = early_payoff.get('payoffYear')
        return cls(
            loan_balance=float(spec.get('loanBalance', 0)),
            interest_rate=float(spec.get('interestRate', 0)),
            term_years=int(spec.get('loanTermYears', 30)),
            origination_year=int(spec.get('originationYear', as_of_year)),
            monthly_payment=_optional_float(spec.get('monthlyPayment')) if override else None,
            payoff_year=_optional_int(payoff_year),
        )


@dataclass(frozen=True)
class HousingBlock:
    property_tax: float = 0.0
    insurance: float = 0.0
    inflation_rate: Optional[float] = None  # None = general inflation rate
    mortgage: Optional[Mortgage] = None

    @classmethod
    def from_spec(cls, spec: dict, as_of_year: int) -> 'HousingBlock':
        mortgage_spec = spec.get('mortgage')
        return cls(
            property_tax=float(spec.get('propertyTax', 0)),
            insurance=float(spec.get('insurance', 0)),
            inflation_rate=_optional_float(spec.get('inflationRate')),
            mortgage=Mortgage.from_spec(mortgage_spec, as_of_year) if mortgage_spec else None,
        )


@dataclass(frozen=True)
class Expenses:
    items: Tuple[ExpenseItem, ...] = ()
    home: Optional[HousingBlock] = None

    @classmethod
    def from_spec(cls, spec: dict, as_of_year: int) -> 'Expenses':
        # Older plans stored a single annual spending figure
        categories = spec.get('categories')
        if categories is None and 'annualSpending' in spec:
            categories = [{'name': 'Living Expenses', 'annualAmount': spec['annualSpending']}]
        home_spec = spec.get('home')
        return cls(
            items=tuple(ExpenseItem.from_spec(c) for c in categories or []),
            home=HousingBlock.from_spec(home_spec, as_of_year) if home_spec else None,
        )


@dataclass(frozen=True)
class BenefitStream:
    """Government retirement benefit quoted at the full (reference) claiming age."""
    monthly_benefit: float
    claiming_age: int = 67
    cola_rate: Optional[float] = None  # None = primary holder's COLA rate
    include: bool = True

    @classmethod
    def from_spec(cls, spec: dict) -> 'BenefitStream':
        return cls(
            monthly_benefit=float(spec.get('monthlyBenefit', 0)),
            claiming_age=int(spec.get('startAge', 67)),
            cola_rate=_optional_float(spec.get('colaRate')),
            include=bool(spec.get('include', True)),
        )


@dataclass(frozen=True)
class Pension:
    annual_benefit: float
    start_age: int
    cola_rate: float = 0.0

    @classmethod
    def from_spec(cls, spec: dict) -> 'Pension':
        return cls(
            annual_benefit=float(spec.get('annualBenefit', 0)),
            start_age=int(spec.get('startAge', 65)),
            cola_rate=float(spec.get('colaRate', 0) or 0),
        )


@dataclass(frozen=True)
class Benefits:
    primary: Optional[BenefitStream] = None
    spouse: Optional[BenefitStream] = None
    pension: Optional[Pension] = None

    @classmethod
    def from_spec(cls, social_security: dict, pension: Optional[dict]) -> 'Benefits':
        primary = BenefitStream.from_spec(social_security) if social_security else None
        spouse_spec = (social_security or {}).get('spouse')
        return cls(
            primary=primary,
            spouse=BenefitStream.from_spec(spouse_spec) if spouse_spec else None,
            pension=Pension.from_spec(pension) if pension else None,
        )


@dataclass(frozen=True)
class RetirementIncomeItem:
    """Non-benefit income stream such as consulting or rental income."""
    name: str
    annual_amount: float
    start_age: int
    end_age: Optional[int] = None  # None = perpetual
    inflation_adjusted: bool = False
    taxable: bool = True

    @classmethod
    def from_spec(cls, spec: dict) -> 'RetirementIncomeItem':
        return cls(
            name=spec.get('name', 'Income'),
            annual_amount=float(spec.get('annualAmount', 0)),
            start_age=int(spec.get('startAge', 0)),
            end_age=_optional_int(spec.get('endAge')),
            inflation_adjusted=bool(spec.get('inflationAdjusted', False)),
            taxable=bool(spec.get('taxable', True)),
        )


@dataclass(frozen=True)
class EmploymentIncome:
    annual_gross_income: float
    effective_tax_rate: float = 0.0  # Combined federal + state
    annual_growth_rate: float = 0.0

    @classmethod
    def from_spec(cls, spec: dict) -> 'EmploymentIncome':
        return cls(
            annual_gross_income=float(spec.get('annualGrossIncome', 0)),
            effective_tax_rate=float(spec.get('effectiveTaxRate', 0)),
            annual_growth_rate=float(spec.get('annualGrowthRate', 0)),
        )


@dataclass(frozen=True)
class Income:
    employment: Optional[EmploymentIncome] = None
    spouse_employment: Optional[EmploymentIncome] = None
    spouse_additional_work_years: int = 0  # Spouse keeps working past the primary's FI age
    retirement_incomes: Tuple[RetirementIncomeItem, ...] = ()

    @classmethod
    def from_spec(cls, spec: dict) -> 'Income':
        employment = spec.get('employment')
        spouse_employment = spec.get('spouseEmployment')
        return cls(
            employment=EmploymentIncome.from_spec(employment) if employment else None,
            spouse_employment=EmploymentIncome.from_spec(spouse_employment) if spouse_employment else None,
            spouse_additional_work_years=int(spec.get('spouseAdditionalWorkYears', 0) or 0),
            retirement_incomes=tuple(RetirementIncomeItem.from_spec(r) for r in spec.get('retirementIncomes', [])),
        )


@dataclass(frozen=True)
class LifeEvent:
    name: str
    year: int
    amount: float  # positive = expense, negative = windfall

    @classmethod
    def from_spec(cls, spec: dict) -> 'LifeEvent':
        return cls(name=spec.get('name', 'Life event'), year=int(spec['year']), amount=float(spec.get('amount', 0)))


@dataclass(frozen=True)
class PenaltySettings:
    early_withdrawal_penalty_rate: float = 0.10
    hsa_early_penalty_rate: float = 0.20
    enable_rule55: bool = False

    @classmethod
    def from_spec(cls, spec: dict) -> 'PenaltySettings':
        return cls(
            early_withdrawal_penalty_rate=float(spec.get('earlyWithdrawalPenaltyRate', 0.10)),
            hsa_early_penalty_rate=float(spec.get('hsaEarlyPenaltyRate', 0.20)),
            enable_rule55=bool(spec.get('enableRule55', False)),
        )


@dataclass(frozen=True)
class Assumptions:
    """Rate assumptions and withdrawal policy.

    Effective withdrawal rates (tax + penalty) are assumed to stay below 1.0;
    range checks belong to whoever builds the snapshot.
    """
    investment_return: float = 0.06  # Accumulation phase
    fi_return: Optional[float] = None  # Post-FI phase, None = investment_return
    inflation_rate: float = 0.03
    traditional_tax_rate: float = 0.22
    capital_gains_tax_rate: float = 0.15
    roth_tax_rate: float = 0.0
    state_income_tax_rate: Optional[float] = None  # None = state table
    state_capital_gains_rate: Optional[float] = None  # None = state table
    withdrawal_order: Tuple[WithdrawalSource, ...] = DEFAULT_WITHDRAWAL_ORDER
    safe_withdrawal_rate: float = 0.04
    penalty_settings: PenaltySettings = field(default_factory=PenaltySettings)
    terminal_balance_target: Optional[float] = None
    surplus_routing: SurplusRouting = SurplusRouting.NONE

    @classmethod
    def from_spec(cls, spec: dict) -> 'Assumptions':
        order = spec.get('withdrawalOrder')
        return cls(
            investment_return=float(spec.get('investmentReturn', 0.06)),
            fi_return=_optional_float(spec.get('fiReturn')),
            inflation_rate=float(spec.get('inflationRate', 0.03)),
            traditional_tax_rate=float(spec.get('traditionalTaxRate', 0.22)),
            capital_gains_tax_rate=float(spec.get('capitalGainsTaxRate', 0.15)),
            roth_tax_rate=float(spec.get('rothTaxRate', 0)),
            state_income_tax_rate=_optional_float(spec.get('stateIncomeTaxRate')),
            state_capital_gains_rate=_optional_float(spec.get('stateCapitalGainsRate')),
            withdrawal_order=tuple(_parse_enum(WithdrawalSource, s, 'withdrawalOrder') for s in order)
            if order else DEFAULT_WITHDRAWAL_ORDER,
            safe_withdrawal_rate=float(spec.get('safeWithdrawalRate', 0.04)),
            penalty_settings=PenaltySettings.from_spec(spec.get('penaltySettings', {})),
            terminal_balance_target=_optional_float(spec.get('terminalBalanceTarget')),
            surplus_routing=_parse_enum(SurplusRouting, spec.get('surplusRouting', 'none'), 'surplusRouting'),
        )


@dataclass(frozen=True)
class Profile:
    current_age: int
    fi_age: int
    life_expectancy: int
    filing_status: FilingStatus = FilingStatus.SINGLE
    spouse_age: Optional[int] = None
    state: Optional[str] = None  # Two-letter state code

    @property
    def is_married(self) -> bool:
        return self.filing_status is FilingStatus.MARRIED and self.spouse_age is not None

    def spouse_age_at(self, age: int) -> Optional[int]:
        """Spouse's age in the year the primary holder turns ``age``."""
        if not self.is_married:
            return None
        return self.spouse_age + (age - self.current_age)

    @classmethod
    def from_spec(cls, spec: dict) -> 'Profile':
        current_age = int(spec.get('currentAge', 45))
        life_expectancy = int(spec.get('lifeExpectancy', 95))
        return cls(
            current_age=current_age,
            fi_age=int(spec.get('targetFIAge', current_age)),
            life_expectancy=life_expectancy,
            filing_status=_parse_enum(FilingStatus, spec.get('filingStatus', 'single'), 'filingStatus'),
            spouse_age=_optional_int(spec.get('spouseAge')),
            state=spec.get('state'),
        )


@dataclass(frozen=True)
class PlanInput:
    """Complete snapshot consumed by a projection run."""
    as_of_year: int
    profile: Profile
    accounts: Tuple[Account, ...] = ()
    income: Income = field(default_factory=Income)
    benefits: Benefits = field(default_factory=Benefits)
    expenses: Expenses = field(default_factory=Expenses)
    life_events: Tuple[LifeEvent, ...] = ()
    assumptions: Assumptions = field(default_factory=Assumptions)

    @property
    def fi_year(self) -> int:
        return self.year_for_age(self.profile.fi_age)

    def year_for_age(self, age: int) -> int:
        return self.as_of_year + (age - self.profile.current_age)

    def with_fi_age(self, fi_age: int, life_expectancy: Optional[int] = None) -> 'PlanInput':
        """Copy of this plan with a different FI age and optionally a different horizon."""
        profile = replace(
            self.profile,
            fi_age=fi_age,
            life_expectancy=self.profile.life_expectancy if life_expectancy is None else life_expectancy,
        )
        return replace(self, profile=profile)

    def with_life_events(self, *events: LifeEvent) -> 'PlanInput':
        return replace(self, life_events=self.life_events + tuple(events))

    @classmethod
    def from_spec(cls, spec: dict) -> 'PlanInput':
        """Parse a camelCase plan document.

        Args:
            spec: Contents of a program's spec.json

        Returns:
            PlanInput snapshot

        Raises:
            ValueError: If an enumerated field holds an unsupported value
        """
        as_of_year = int(spec.get('asOfYear', 2026))
        assets = spec.get('assets', {})
        return cls(
            as_of_year=as_of_year,
            profile=Profile.from_spec(spec.get('profile', {})),
            accounts=tuple(Account.from_spec(a, i) for i, a in enumerate(assets.get('accounts', []))),
            income=Income.from_spec(spec.get('income', {})),
            benefits=Benefits.from_spec(spec.get('socialSecurity', {}), assets.get('pension')),
            expenses=Expenses.from_spec(spec.get('expenses', {}), as_of_year),
            life_events=tuple(LifeEvent.from_spec(e) for e in spec.get('lifeEvents', [])),
            assumptions=Assumptions.from_spec(spec.get('assumptions', {})),
        )


@dataclass(frozen=True)
class WhatIf:
    """Transient overrides applied on top of a plan without changing it."""
    spending_adjustment: float = 0.0  # -0.2 = spend 20% less
    investment_return: Optional[float] = None
    claiming_age: Optional[int] = None
    spouse_claiming_age: Optional[int] = None

    @property
    def spending_multiplier(self) -> float:
        return 1.0 + self.spending_adjustment

    @classmethod
    def from_spec(cls, spec: Optional[dict]) -> 'WhatIf':
        spec = spec or {}
        return cls(
            spending_adjustment=float(spec.get('spendingAdjustment', 0) or 0),
            investment_return=_optional_float(spec.get('returnAdjustment')),
            claiming_age=_optional_int(spec.get('ssStartAge')),
            spouse_claiming_age=_optional_int(spec.get('spouseSSStartAge')),
        )
