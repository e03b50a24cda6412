"""Result data model for financial-independence projections.

A projection run produces one YearRecord per simulated age. Summaries,
search results and goal guidance are derived from those records. Every
class here is plain data so it can be passed to ``dataclasses.asdict`` and
serialized as JSON.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Phase(str, Enum):
    ACCUMULATING = 'accumulating'
    FI = 'fi'


class ConfidenceLevel(str, Enum):
    HIGH = 'high'  # Funds last 10+ years past life expectancy
    MODERATE = 'moderate'  # 5-9 years
    TIGHT = 'tight'  # Under 5 years
    NOT_ACHIEVABLE = 'not_achievable'


class GuidanceStatus(str, Enum):
    ON_TRACK = 'on_track'
    AHEAD_OF_GOAL = 'ahead_of_goal'
    BEHIND_GOAL = 'behind_goal'


@dataclass
class YearRecord:
    """All projected values for a single age."""
    year: int
    age: int
    phase: Phase
    spouse_age: Optional[int] = None

    # Outflows
    expenses: float = 0.0  # Recurring spending incl. housing, after the spending multiplier
    life_event_expenses: float = 0.0
    mortgage_payoff: float = 0.0  # One-time early payoff lump

    # Inflows
    benefit_income: float = 0.0  # Primary + spouse government benefits
    pension_income: float = 0.0
    other_income: float = 0.0  # Retirement income items
    windfall: float = 0.0  # Negative life events
    employment_income: float = 0.0  # Net of effective tax rate
    contributions: float = 0.0
    surplus_deposited: float = 0.0

    # Withdrawals
    gap: float = 0.0  # Net amount the portfolio had to supply
    withdrawal: float = 0.0  # Gross amount drawn
    withdrawal_penalty: float = 0.0
    federal_tax: float = 0.0
    state_tax: float = 0.0
    withdrawal_source: str = 'N/A'
    unmet_need: float = 0.0

    # Balances (after withdrawals, before growth)
    taxable_balance: float = 0.0
    taxable_cost_basis: float = 0.0
    traditional_balance: float = 0.0
    roth_balance: float = 0.0
    hsa_balance: float = 0.0
    cash_balance: float = 0.0
    total_net_worth: float = 0.0
    mortgage_balance: Optional[float] = None

    is_shortfall: bool = False

    @property
    def total_income(self) -> float:
        """Non-portfolio, non-employment income for the year."""
        return self.benefit_income + self.pension_income + self.other_income

    @property
    def is_fi(self) -> bool:
        return self.phase is Phase.FI


@dataclass
class ProjectionData:
    """Complete year-by-year projection for one run."""
    as_of_year: int
    fi_age: int
    life_expectancy: int
    records: List[YearRecord] = field(default_factory=list)

    def get_age(self, age: int) -> Optional[YearRecord]:
        """Get the record for a specific age."""
        for record in self.records:
            if record.age == age:
                return record
        return None

    def get_year(self, year: int) -> Optional[YearRecord]:
        """Get the record for a specific calendar year."""
        for record in self.records:
            if record.year == year:
                return record
        return None

    def between(self, start_age: Optional[int] = None, end_age: Optional[int] = None) -> List[YearRecord]:
        return [r for r in self.records
                if (start_age is None or r.age >= start_age) and (end_age is None or r.age <= end_age)]

    def fi_years(self) -> List[YearRecord]:
        return [r for r in self.records if r.is_fi]

    def first_shortfall(self) -> Optional[YearRecord]:
        return next((r for r in self.records if r.is_shortfall), None)

    @property
    def has_shortfall(self) -> bool:
        return self.first_shortfall() is not None

    @property
    def final_record(self) -> Optional[YearRecord]:
        return self.records[-1] if self.records else None


@dataclass
class Summary:
    """Headline figures derived from a projection."""
    fi_number: float  # Spending / safe withdrawal rate
    current_net_worth: float
    funding_gap: float  # Net worth minus FI number
    runway_age: int  # Last solvent age
    has_shortfall: bool = False
    shortfall_age: Optional[int] = None
    buffer_years: int = 0  # Runway past life expectancy
    surplus_at_le: Optional[float] = None
    bottleneck_age: Optional[int] = None  # FI-phase age with the lowest net worth
    bottleneck_balance: Optional[float] = None


@dataclass
class ShortfallGuidance:
    runs_out_at_age: Optional[int] = None
    spending_reduction_percent: Optional[float] = None
    spending_reduction_needed: Optional[float] = None  # Annual dollars
    additional_savings_needed: Optional[float] = None  # Annual dollars


@dataclass
class SearchResult:
    """Earliest viable FI age and how much margin it carries."""
    achievable_fi_age: Optional[int]
    confidence: ConfidenceLevel
    buffer_years: Optional[int] = None
    years_until_fi: Optional[int] = None
    is_already_fi: bool = False
    shortfall_guidance: Optional[ShortfallGuidance] = None


@dataclass
class SpendingReduction:
    percent_reduction: float
    annual_amount: float
    resulting_annual_spending: float


@dataclass
class RequiredReturn:
    rate: float
    current_rate: float


@dataclass
class ClaimingDelay:
    new_start_age: int
    sufficient: bool


@dataclass
class AdditionalSavings:
    amount: float
    sufficient: bool


@dataclass
class GoalGuidance:
    """Comparison of a desired FI age with the achievable one, plus corrective levers."""
    status: GuidanceStatus
    goal_age: int
    achievable_age: Optional[int]
    surplus_at_le: Optional[float] = None
    additional_buffer_years: Optional[int] = None
    spending_increase_room: Optional[float] = None  # Annual dollars
    spending_reduction: Optional[SpendingReduction] = None
    required_return: Optional[RequiredReturn] = None
    ss_delay_benefit: Optional[ClaimingDelay] = None
    additional_savings_needed: Optional[AdditionalSavings] = None
