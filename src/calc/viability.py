from typing import Dict, Optional

from loguru import logger

from calc.projection_calculator import ProjectionCalculator
from model.PlanInput import PlanInput, WhatIf

# Years past life expectancy a plan must stay solvent to count as viable
SAFETY_BUFFER_YEARS = 5

# Horizon used to measure how long funds actually last
MAX_AGE = 120


class ViabilityTester:
    """Answers whether a plan survives with a hypothesized FI age."""

    def __init__(self, projection: ProjectionCalculator):
        self.projection = projection

    def is_viable(self, plan: PlanInput, fi_age: int, what_if: Optional[WhatIf] = None) -> bool:
        """Run the plan with ``fi_age`` and a horizon extended by the safety buffer.

        The plan passes when no year of the extended run is a shortfall and,
        if a terminal balance target is set, net worth in the life-expectancy
        year reaches it.
        """
        life_expectancy = plan.profile.life_expectancy
        run = self.projection.calculate(plan.with_fi_age(fi_age, life_expectancy + SAFETY_BUFFER_YEARS), what_if)
        viable = not run.has_shortfall

        target = plan.assumptions.terminal_balance_target
        if viable and target is not None:
            record = run.get_age(life_expectancy)
            viable = record is not None and record.total_net_worth >= target

        logger.debug("FI age {} viable: {}", fi_age, viable)
        return viable

    def viability_by_age(self, plan: PlanInput, what_if: Optional[WhatIf] = None) -> Dict[int, bool]:
        """Verdict for every candidate FI age from the current age to life expectancy - 1."""
        return {age: self.is_viable(plan, age, what_if)
                for age in range(plan.profile.current_age, plan.profile.life_expectancy)}

    def runway_age(self, plan: PlanInput, fi_age: int, what_if: Optional[WhatIf] = None) -> int:
        """Last solvent age when the plan is run out to MAX_AGE."""
        horizon = max(MAX_AGE, plan.profile.life_expectancy)
        run = self.projection.calculate(plan.with_fi_age(fi_age, horizon), what_if)
        shortfall = run.first_shortfall()
        return shortfall.age - 1 if shortfall is not None else horizon

    def buffer_years(self, plan: PlanInput, fi_age: int, what_if: Optional[WhatIf] = None) -> int:
        """Years past life expectancy that funds last; negative when they run out first."""
        return self.runway_age(plan, fi_age, what_if) - plan.profile.life_expectancy
