"""Compare a desired FI age with the achievable one and size corrective levers.

Every lever is evaluated on its own by re-running the viability test with a
single variable perturbed; levers are never combined.
"""

import math
from dataclasses import replace
from typing import Optional

from loguru import logger

from calc.expense_calculator import base_annual_spending
from calc.fi_search import FIAgeSearch, scaled_spending
from calc.projection_calculator import ProjectionCalculator
from calc.viability import ViabilityTester
from model.PlanInput import LifeEvent, PlanInput, WhatIf
from model.ProjectionData import (AdditionalSavings, ClaimingDelay, GoalGuidance, GuidanceStatus, RequiredReturn,
                                  SearchResult, SpendingReduction)

MAX_SPENDING_REDUCTION = 80  # percent
MAX_SPENDING_INCREASE = 100  # percent
RETURN_STEP = 0.005
MAX_RETURN = 0.15
LATEST_CLAIMING_AGE = 70
SAVINGS_PRECISION = 1000
MAX_ADDITIONAL_SAVINGS = 10_000_000


class GoalGuidanceCalculator:
    """Builds GoalGuidance for a user-chosen FI age."""

    def __init__(self, tester: ViabilityTester, search: FIAgeSearch):
        self.tester = tester
        self.search = search

    @property
    def projection(self) -> ProjectionCalculator:
        return self.tester.projection

    def calculate(self, plan: PlanInput, goal_age: int, what_if: Optional[WhatIf] = None,
                  search_result: Optional[SearchResult] = None) -> GoalGuidance:
        """Guidance for reaching FI at ``goal_age``.

        Args:
            plan: Plan snapshot
            goal_age: Desired FI age
            what_if: Optional overrides applied to every probe
            search_result: Result of a prior FI-age search, recomputed when omitted

        Returns:
            GoalGuidance with the status and the levers that apply to it

        Raises:
            ValueError: If the goal age is outside [current age, life expectancy)
        """
        what_if = what_if or WhatIf()
        profile = plan.profile
        if not profile.current_age <= goal_age < profile.life_expectancy:
            raise ValueError(
                f"Goal age {goal_age} must be between {profile.current_age} and {profile.life_expectancy - 1}")

        if search_result is None:
            search_result = self.search.calculate(plan, what_if)
        achievable = search_result.achievable_fi_age

        if achievable is not None and goal_age == achievable:
            return GoalGuidance(status=GuidanceStatus.ON_TRACK, goal_age=goal_age, achievable_age=achievable,
                                surplus_at_le=self.surplus_at_le(plan, goal_age, what_if))

        if achievable is not None and goal_age > achievable:
            return GoalGuidance(
                status=GuidanceStatus.AHEAD_OF_GOAL,
                goal_age=goal_age,
                achievable_age=achievable,
                surplus_at_le=self.surplus_at_le(plan, goal_age, what_if),
                additional_buffer_years=self.tester.buffer_years(plan, goal_age, what_if)
                - self.tester.buffer_years(plan, achievable, what_if),
                spending_increase_room=self.spending_increase_room(plan, goal_age, what_if),
            )

        logger.debug("Goal age {} is earlier than achievable age {}; sizing levers", goal_age, achievable)
        return GoalGuidance(
            status=GuidanceStatus.BEHIND_GOAL,
            goal_age=goal_age,
            achievable_age=achievable,
            spending_reduction=self.spending_reduction(plan, goal_age, what_if),
            required_return=self.required_return(plan, goal_age, what_if),
            ss_delay_benefit=self.claiming_delay(plan, goal_age, what_if),
            additional_savings_needed=self.additional_savings(plan, goal_age, what_if),
        )

    def _base_spending(self, plan: PlanInput, what_if: WhatIf) -> float:
        base = base_annual_spending(plan.expenses, plan.as_of_year, plan.assumptions.inflation_rate)
        return base * what_if.spending_multiplier

    def surplus_at_le(self, plan: PlanInput, fi_age: int, what_if: WhatIf) -> Optional[float]:
        record = self.projection.calculate(plan.with_fi_age(fi_age), what_if).get_age(plan.profile.life_expectancy)
        return record.total_net_worth if record is not None else None

    def spending_increase_room(self, plan: PlanInput, goal_age: int, what_if: WhatIf) -> float:
        """Largest annual spending increase (1% steps) that keeps the goal age viable."""
        room = 0
        for percent in range(1, MAX_SPENDING_INCREASE + 1):
            if not self.tester.is_viable(plan, goal_age, scaled_spending(what_if, -percent / 100)):
                break
            room = percent
        return round(self._base_spending(plan, what_if) * room / 100)

    def spending_reduction(self, plan: PlanInput, goal_age: int, what_if: WhatIf) -> Optional[SpendingReduction]:
        base = self._base_spending(plan, what_if)
        for percent in range(1, MAX_SPENDING_REDUCTION + 1):
            if self.tester.is_viable(plan, goal_age, scaled_spending(what_if, percent / 100)):
                amount = round(base * percent / 100)
                return SpendingReduction(percent_reduction=percent, annual_amount=amount,
                                         resulting_annual_spending=round(base - amount))
        return None

    def required_return(self, plan: PlanInput, goal_age: int, what_if: WhatIf) -> Optional[RequiredReturn]:
        current = self.projection.return_rates(plan, what_if)[0]
        steps = int(round((MAX_RETURN - current) / RETURN_STEP))
        for step in range(1, steps + 1):
            rate = round(current + step * RETURN_STEP, 4)
            if self.tester.is_viable(plan, goal_age, replace(what_if, investment_return=rate)):
                return RequiredReturn(rate=rate, current_rate=current)
        return None

    def claiming_delay(self, plan: PlanInput, goal_age: int, what_if: WhatIf) -> Optional[ClaimingDelay]:
        primary = plan.benefits.primary
        if primary is None or not primary.include:
            return None
        claiming_age = what_if.claiming_age if what_if.claiming_age is not None else primary.claiming_age
        if claiming_age >= LATEST_CLAIMING_AGE:
            return None
        sufficient = self.tester.is_viable(plan, goal_age, replace(what_if, claiming_age=LATEST_CLAIMING_AGE))
        return ClaimingDelay(new_start_age=LATEST_CLAIMING_AGE, sufficient=sufficient)

    def additional_savings(self, plan: PlanInput, goal_age: int, what_if: WhatIf) -> AdditionalSavings:
        """Smallest lump deposited today (to the nearest $1,000) that makes the goal age viable."""
        def viable_with(amount: float) -> bool:
            boosted = plan.with_life_events(LifeEvent(name='Additional savings', year=plan.as_of_year,
                                                      amount=-amount))
            return self.tester.is_viable(boosted, goal_age, what_if)

        high = SAVINGS_PRECISION
        while not viable_with(high):
            if high >= MAX_ADDITIONAL_SAVINGS:
                return AdditionalSavings(amount=MAX_ADDITIONAL_SAVINGS, sufficient=False)
            high = min(high * 2, MAX_ADDITIONAL_SAVINGS)

        low = 0 if high == SAVINGS_PRECISION else high // 2
        while high - low > SAVINGS_PRECISION:
            mid = (low + high) // 2
            if viable_with(mid):
                high = mid
            else:
                low = mid
        return AdditionalSavings(amount=math.ceil(high / SAVINGS_PRECISION) * SAVINGS_PRECISION, sufficient=True)
