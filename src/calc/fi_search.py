"""Search for the earliest viable FI age.

The search assumes viability is monotonic in age: once a plan is viable
with FI at age A it stays viable for every later age. ``viability_by_age``
exposes the full verdict profile so callers can check that assumption on
plans with benefit-claiming or life-event cliffs.
"""

from dataclasses import replace
from typing import Optional

from loguru import logger

from calc.expense_calculator import base_annual_spending
from calc.viability import ViabilityTester
from model.PlanInput import PlanInput, WhatIf
from model.ProjectionData import ConfidenceLevel, SearchResult, ShortfallGuidance

HIGH_CONFIDENCE_BUFFER = 10
MODERATE_CONFIDENCE_BUFFER = 5

SPENDING_REDUCTION_STEP = 5  # percent
MAX_SPENDING_REDUCTION = 80  # percent


def confidence_for(buffer_years: int) -> ConfidenceLevel:
    if buffer_years >= HIGH_CONFIDENCE_BUFFER:
        return ConfidenceLevel.HIGH
    if buffer_years >= MODERATE_CONFIDENCE_BUFFER:
        return ConfidenceLevel.MODERATE
    return ConfidenceLevel.TIGHT


def scaled_spending(what_if: WhatIf, reduction: float) -> WhatIf:
    """What-if with spending scaled by (1 - reduction) on top of any existing adjustment."""
    return replace(what_if, spending_adjustment=what_if.spending_multiplier * (1 - reduction) - 1)


class FIAgeSearch:
    """Binary search over candidate FI ages using the viability tester."""

    def __init__(self, tester: ViabilityTester):
        self.tester = tester

    def calculate(self, plan: PlanInput, what_if: Optional[WhatIf] = None) -> SearchResult:
        """Find the earliest FI age that passes the viability test.

        Args:
            plan: Plan snapshot
            what_if: Optional overrides applied to every probe

        Returns:
            SearchResult; a plan that fails even at life expectancy - 1 is
            reported as not achievable with shortfall guidance
        """
        what_if = what_if or WhatIf()
        current_age = plan.profile.current_age
        latest = plan.profile.life_expectancy - 1

        if self.tester.is_viable(plan, current_age, what_if):
            buffer = self.tester.buffer_years(plan, current_age, what_if)
            return SearchResult(achievable_fi_age=current_age, confidence=confidence_for(buffer),
                                buffer_years=buffer, years_until_fi=0, is_already_fi=True)

        if latest < current_age or not self.tester.is_viable(plan, latest, what_if):
            logger.debug("No viable FI age up to {}", latest)
            return SearchResult(achievable_fi_age=None, confidence=ConfidenceLevel.NOT_ACHIEVABLE,
                                shortfall_guidance=self.shortfall_guidance(plan, what_if))

        # current_age fails and latest passes
        low, high = current_age, latest
        while high - low > 1:
            mid = (low + high) // 2
            if self.tester.is_viable(plan, mid, what_if):
                high = mid
            else:
                low = mid

        buffer = self.tester.buffer_years(plan, high, what_if)
        logger.debug("Earliest viable FI age {} with {} buffer years", high, buffer)
        return SearchResult(achievable_fi_age=high, confidence=confidence_for(buffer), buffer_years=buffer,
                            years_until_fi=high - current_age)

    def shortfall_guidance(self, plan: PlanInput, what_if: Optional[WhatIf] = None) -> ShortfallGuidance:
        """Describe how far an unachievable plan is from working.

        Probes the plan with FI at life expectancy - 1 for the age the money
        runs out, the spending cut that makes it viable and the extra annual
        savings that would cover the unmet need.
        """
        what_if = what_if or WhatIf()
        profile = plan.profile
        latest = profile.life_expectancy - 1
        guidance = ShortfallGuidance()

        run = self.tester.projection.calculate(plan.with_fi_age(latest), what_if)
        shortfall = run.first_shortfall()
        if shortfall is not None:
            guidance.runs_out_at_age = shortfall.age

        base = base_annual_spending(plan.expenses, plan.as_of_year, plan.assumptions.inflation_rate)
        for percent in range(SPENDING_REDUCTION_STEP, MAX_SPENDING_REDUCTION + 1, SPENDING_REDUCTION_STEP):
            if self.tester.is_viable(plan, latest, scaled_spending(what_if, percent / 100)):
                guidance.spending_reduction_percent = percent
                guidance.spending_reduction_needed = round(base * what_if.spending_multiplier * percent / 100)
                break

        unmet = sum(r.unmet_need for r in run.records if r.is_shortfall)
        years = profile.life_expectancy - profile.current_age
        if unmet > 0 and years > 0:
            guidance.additional_savings_needed = round(unmet / years)
        return guidance
