from typing import Optional

from calc.fi_search import FIAgeSearch
from calc.goal_guidance import GoalGuidanceCalculator
from calc.projection_calculator import ProjectionCalculator
from calc.summary_calculator import SummaryCalculator
from calc.viability import ViabilityTester
from model.PlanInput import PlanInput, WhatIf
from model.ProjectionData import GoalGuidance, ProjectionData, SearchResult, Summary
from tax.BenefitDetails import BenefitDetails
from tax.PenaltyDetails import PenaltyDetails
from tax.StateDetails import StateDetails


class FIPlanner:
    """Wires the detail classes and calculators together.

    Reference data is loaded once here; every call after that is a pure
    computation over the plan snapshot.
    """

    def __init__(self, state: Optional[StateDetails] = None, penalties: Optional[PenaltyDetails] = None,
                 benefits: Optional[BenefitDetails] = None):
        self.projection_calculator = ProjectionCalculator(
            state or StateDetails(), penalties or PenaltyDetails(), benefits or BenefitDetails())
        self.tester = ViabilityTester(self.projection_calculator)
        self.search = FIAgeSearch(self.tester)
        self.guidance = GoalGuidanceCalculator(self.tester, self.search)
        self.summary_calculator = SummaryCalculator(self.tester)

    def project(self, plan: PlanInput, what_if: Optional[WhatIf] = None) -> ProjectionData:
        return self.projection_calculator.calculate(plan, what_if)

    def summarize(self, plan: PlanInput, what_if: Optional[WhatIf] = None) -> Summary:
        return self.summary_calculator.calculate(plan, self.project(plan, what_if), what_if)

    def achievable_fi_age(self, plan: PlanInput, what_if: Optional[WhatIf] = None) -> SearchResult:
        return self.search.calculate(plan, what_if)

    def goal_guidance(self, plan: PlanInput, goal_age: Optional[int] = None,
                      what_if: Optional[WhatIf] = None) -> GoalGuidance:
        """Guidance for ``goal_age``, defaulting to the plan's own target FI age."""
        return self.guidance.calculate(plan, plan.profile.fi_age if goal_age is None else goal_age, what_if)
