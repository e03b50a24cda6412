from typing import Optional

from model.PlanInput import Benefits, BenefitStream, Pension, WhatIf
from tax.BenefitDetails import BenefitDetails


class BenefitCalculator:
    """Resolves government benefits and pensions into annual income by age."""

    def __init__(self, benefit_details: BenefitDetails):
        self.benefit_details = benefit_details

    def benefit_income(self, stream: Optional[BenefitStream], age: Optional[int],
                       claiming_age: Optional[int] = None, cola_rate: Optional[float] = None) -> float:
        """Annual benefit received at ``age``.

        The claiming-age factor is applied to the full benefit first; COLA then
        compounds on the adjusted amount from the claiming age onward.

        Args:
            stream: Benefit configuration, or None when there is no benefit
            age: Age of the person who receives the benefit
            claiming_age: Overrides the stream's claiming age (what-if)
            cola_rate: Overrides the stream's COLA rate

        Returns:
            Annual benefit, 0 before the claiming age
        """
        if stream is None or not stream.include or age is None:
            return 0.0
        claim_at = stream.claiming_age if claiming_age is None else claiming_age
        if age < claim_at:
            return 0.0
        cola = stream.cola_rate if cola_rate is None else cola_rate
        monthly = self.benefit_details.adjusted_monthly_benefit(stream.monthly_benefit, claim_at)
        return monthly * 12 * (1 + (cola or 0.0)) ** (age - claim_at)

    @staticmethod
    def pension_income(pension: Optional[Pension], age: int) -> float:
        """Annual pension at ``age``, compounding its COLA from the start age.

        Args:
            pension: Pension block, or None when the plan has none
            age: Primary holder's age this year

        Returns:
            Annual pension income, 0 before the start age
        """
        if pension is None or age < pension.start_age:
            return 0.0
        return pension.annual_benefit * (1 + pension.cola_rate) ** (age - pension.start_age)

    def household_benefits(self, benefits: Benefits, age: int, spouse_age: Optional[int],
                           what_if: WhatIf) -> float:
        """Combined primary and spouse benefits for one year."""
        primary = self.benefit_income(benefits.primary, age, what_if.claiming_age)

        spouse = 0.0
        if benefits.spouse is not None:
            # Spouse inherits the primary COLA when none is set
            cola = benefits.spouse.cola_rate
            if cola is None and benefits.primary is not None:
                cola = benefits.primary.cola_rate
            spouse = self.benefit_income(benefits.spouse, spouse_age, what_if.spouse_claiming_age, cola)
        return primary + spouse
