import json
import os
from typing import Optional

from model.PlanInput import Account, AccountOwner, AccountType, PenaltySettings


class PenaltyDetails:
    """Early-withdrawal penalty rules by account type.

    Loads penalty-free ages and the Rule of 55 age from the reference file.
    Penalty rates themselves come from the plan's PenaltySettings so that
    households can model a different rate than the statutory default.
    """

    def __init__(self, reference: Optional[dict] = None):
        if reference is None:
            ref_path = os.path.join(os.path.dirname(__file__), '../../reference/penalty-details.json')
            with open(ref_path, 'r') as f:
                reference = json.load(f)

        self.penalty_free_ages = {
            AccountType(account_type): float(age)
            for account_type, age in reference.get('penaltyFreeAges', {}).items()
        }
        self.rule55_age = reference.get('rule55Age', 55)

    def penalty_free_age(self, account_type: AccountType) -> float:
        return self.penalty_free_ages.get(account_type, 0.0)

    @staticmethod
    def owner_age(account: Account, self_age: int, spouse_age: Optional[int]) -> int:
        """Age of the person whose age governs withdrawals from this account.

        Joint accounts use the older spouse.
        """
        if account.owner is AccountOwner.SPOUSE and spouse_age is not None:
            return spouse_age
        if account.owner is AccountOwner.JOINT and spouse_age is not None:
            return max(self_age, spouse_age)
        return self_age

    def qualifies_for_rule55(self, account: Account, owner_age: int, settings: PenaltySettings) -> bool:
        return (settings.enable_rule55
                and account.is_employer_plan
                and account.separated_from_service
                and owner_age >= self.rule55_age)

    def is_penalty_free(self, account: Account, self_age: int, spouse_age: Optional[int],
                        settings: PenaltySettings) -> bool:
        age = self.owner_age(account, self_age, spouse_age)
        if age >= self.penalty_free_age(account.type):
            return True
        return self.qualifies_for_rule55(account, age, settings)

    def penalty_rate(self, account: Account, self_age: int, spouse_age: Optional[int],
                     settings: PenaltySettings) -> float:
        """Penalty rate applied to a withdrawal from this account at the given ages."""
        if self.is_penalty_free(account, self_age, spouse_age, settings):
            return 0.0
        if account.type is AccountType.HSA:
            return settings.hsa_early_penalty_rate
        return settings.early_withdrawal_penalty_rate
