from typing import Optional

from calc.expense_calculator import base_annual_spending
from calc.viability import ViabilityTester
from model.PlanInput import PlanInput, WhatIf
from model.ProjectionData import ProjectionData, Summary


class SummaryCalculator:
    """Derives headline figures from a projection."""

    def __init__(self, tester: ViabilityTester):
        self.tester = tester

    def calculate(self, plan: PlanInput, projection: ProjectionData, what_if: Optional[WhatIf] = None) -> Summary:
        """Summarize a projection of ``plan``.

        Args:
            plan: Plan snapshot the projection was run from
            projection: Result of ProjectionCalculator.calculate for the same plan and what-if
            what_if: Overrides used for the projection

        Returns:
            Summary with the FI number, runway, buffer and bottleneck
        """
        what_if = what_if or WhatIf()
        assumptions = plan.assumptions
        spending = base_annual_spending(plan.expenses, plan.as_of_year, assumptions.inflation_rate)
        fi_number = spending * what_if.spending_multiplier / assumptions.safe_withdrawal_rate
        net_worth = sum(a.balance for a in plan.accounts)

        shortfall = projection.first_shortfall()
        runway_age = self.tester.runway_age(plan, plan.profile.fi_age, what_if)

        summary = Summary(
            fi_number=fi_number,
            current_net_worth=net_worth,
            funding_gap=net_worth - fi_number,
            runway_age=runway_age,
            has_shortfall=shortfall is not None,
            shortfall_age=shortfall.age if shortfall is not None else None,
            buffer_years=runway_age - plan.profile.life_expectancy,
        )

        final = projection.final_record
        if final is not None:
            summary.surplus_at_le = final.total_net_worth

        fi_years = projection.fi_years()
        if fi_years:
            bottleneck = min(fi_years, key=lambda r: r.total_net_worth)
            summary.bottleneck_age = bottleneck.age
            summary.bottleneck_balance = bottleneck.total_net_worth
        return summary
