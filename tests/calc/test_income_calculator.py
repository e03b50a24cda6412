"""Tests for employment and retirement income streams."""

import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from calc.income_calculator import net_employment_income, household_employment_income, retirement_income
from model.PlanInput import EmploymentIncome, Income, RetirementIncomeItem


def test_net_employment_income_grows_and_is_taxed():
    job = EmploymentIncome(annual_gross_income=100000, effective_tax_rate=0.25, annual_growth_rate=0.03)
    assert net_employment_income(job, 0) == pytest.approx(75000)
    assert net_employment_income(job, 2) == pytest.approx(100000 * 1.03 ** 2 * 0.75)


def test_no_employment_is_zero():
    assert net_employment_income(None, 3) == 0.0


class TestHouseholdEmployment:
    """The primary works until FI; a spouse can keep working longer."""

    @pytest.fixture
    def income(self):
        return Income(
            employment=EmploymentIncome(annual_gross_income=100000, effective_tax_rate=0.2),
            spouse_employment=EmploymentIncome(annual_gross_income=50000, effective_tax_rate=0.1),
            spouse_additional_work_years=2,
        )

    def test_both_work_before_fi(self, income):
        assert household_employment_income(income, 50, 55, 0, True) == pytest.approx(80000 + 45000)

    def test_spouse_works_past_fi(self, income):
        assert household_employment_income(income, 55, 55, 5, True) == pytest.approx(45000)
        assert household_employment_income(income, 56, 55, 6, True) == pytest.approx(45000)
        assert household_employment_income(income, 57, 55, 7, True) == 0.0

    def test_single_household_ignores_spouse_income(self, income):
        assert household_employment_income(income, 50, 55, 0, False) == pytest.approx(80000)


class TestRetirementIncome:
    """Tests for age-windowed income streams."""

    def test_active_window(self):
        items = [RetirementIncomeItem('Consulting', 20000, start_age=55, end_age=60)]
        assert retirement_income(items, 54, 0.03) == 0.0
        assert retirement_income(items, 55, 0.03) == pytest.approx(20000)
        assert retirement_income(items, 60, 0.03) == pytest.approx(20000)
        assert retirement_income(items, 61, 0.03) == 0.0

    def test_inflation_from_start_age(self):
        items = [RetirementIncomeItem('Rental', 12000, start_age=60, inflation_adjusted=True)]
        assert retirement_income(items, 62, 0.03) == pytest.approx(12000 * 1.03 ** 2)

    def test_streams_are_summed(self):
        items = [RetirementIncomeItem('A', 10000, start_age=60), RetirementIncomeItem('B', 5000, start_age=65)]
        assert retirement_income(items, 66, 0.0) == pytest.approx(15000)
