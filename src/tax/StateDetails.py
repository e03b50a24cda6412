import os
import json
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StateTaxRates:
    income_rate: float = 0.0
    capital_gains_rate: float = 0.0


class StateDetails:
    """State income and capital-gains rates keyed by two-letter state code."""

    def __init__(self, reference: Optional[dict] = None):
        if reference is None:
            ref_path = os.path.normpath(os.path.join(os.path.dirname(__file__), '..', '..', 'reference', 'state-taxes.json'))
            with open(ref_path, 'r') as f:
                reference = json.load(f)

        self.states = {s['code'].upper(): s for s in reference.get('states', [])}

    def info(self, state_code: str) -> dict:
        """Return the reference entry for a state.

        Raises:
            ValueError: If the code is not in the state table
        """
        entry = self.states.get((state_code or '').upper())
        if entry is None:
            raise ValueError(f"Unknown state code '{state_code}'")
        return entry

    def rates(self, state_code: Optional[str], income_override: Optional[float] = None,
              capital_gains_override: Optional[float] = None) -> StateTaxRates:
        """Resolve the state rates applied to portfolio withdrawals.

        Args:
            state_code: Two-letter code, or None for no state tax
            income_override: Explicit ordinary-income rate that replaces the table value
            capital_gains_override: Explicit capital-gains rate that replaces the table value

        Returns:
            StateTaxRates for the household
        """
        income_rate = capital_gains_rate = 0.0
        if state_code:
            entry = self.info(state_code)
            income_rate = entry.get('incomeRate', 0.0)
            capital_gains_rate = entry.get('capitalGainsRate', income_rate)

        if income_override is not None:
            income_rate = income_override
        if capital_gains_override is not None:
            capital_gains_rate = capital_gains_override
        return StateTaxRates(income_rate=income_rate, capital_gains_rate=capital_gains_rate)
