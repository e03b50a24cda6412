import json
import os
from typing import Optional


class BenefitDetails:
    """Claiming-age curve for government retirement benefits.

    The reference amount is the benefit at full retirement age. Claiming
    earlier reduces it by a monthly rate (a steeper rate for the first months
    early, a gentler one beyond); claiming later earns an annual delayed
    credit. Only whole-year claiming ages are supported.
    """

    def __init__(self, reference: Optional[dict] = None):
        if reference is None:
            ref_path = os.path.join(os.path.dirname(__file__), '../../reference/benefit-details.json')
            with open(ref_path, 'r') as f:
                reference = json.load(f)

        self.full_retirement_age = reference.get('fullRetirementAge', 67)
        self.earliest_claiming_age = reference.get('earliestClaimingAge', 62)
        self.latest_claiming_age = reference.get('latestClaimingAge', 70)

        early = reference.get('earlyReduction', {})
        self.first_months = early.get('firstMonths', 36)
        self.first_monthly_rate = early.get('firstMonthlyRate', 5 / 900)
        self.additional_monthly_rate = early.get('additionalMonthlyRate', 5 / 1200)
        self.delayed_credit_rate = reference.get('delayedCreditAnnualRate', 0.08)

    def adjustment_factor(self, claiming_age: int) -> float:
        """Multiplier applied to the full benefit when claiming at ``claiming_age``.

        Raises:
            ValueError: If the age is outside the supported claiming range
        """
        if not self.earliest_claiming_age <= claiming_age <= self.latest_claiming_age:
            raise ValueError(
                f"Claiming age {claiming_age} outside supported range "
                f"{self.earliest_claiming_age}-{self.latest_claiming_age}")

        if claiming_age == self.full_retirement_age:
            return 1.0
        if claiming_age > self.full_retirement_age:
            return round(1.0 + (claiming_age - self.full_retirement_age) * self.delayed_credit_rate, 6)

        months_early = (self.full_retirement_age - claiming_age) * 12
        first = min(months_early, self.first_months)
        additional = months_early - first
        reduction = first * self.first_monthly_rate + additional * self.additional_monthly_rate
        return round(1.0 - reduction, 6)

    def adjusted_monthly_benefit(self, full_monthly_benefit: float, claiming_age: int) -> float:
        return full_monthly_benefit * self.adjustment_factor(claiming_age)
