import os
import sys
import json
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from tax.StateDetails import StateDetails, StateTaxRates


def load_state_reference():
    ref_path = os.path.join(os.path.dirname(__file__), '../../reference/state-taxes.json')
    with open(ref_path, 'r') as f:
        return json.load(f)


@pytest.fixture(scope="module")
def states():
    return StateDetails()


def test_every_state_and_dc_is_listed():
    codes = [s['code'] for s in load_state_reference()['states']]
    assert len(codes) == 51
    assert len(set(codes)) == 51
    assert 'DC' in codes


def test_rates_match_reference(states):
    for entry in load_state_reference()['states']:
        rates = states.rates(entry['code'])
        assert rates.income_rate == entry['incomeRate']
        assert rates.capital_gains_rate == entry['capitalGainsRate']


def test_no_income_tax_states_have_zero_income_rate(states):
    for entry in load_state_reference()['states']:
        if not entry['hasIncomeTax']:
            assert states.rates(entry['code']).income_rate == 0


def test_lookup_is_case_insensitive(states):
    assert states.rates('co') == states.rates('CO')
    assert states.info('ca')['name'] == 'California'


def test_missing_state_means_no_state_tax(states):
    assert states.rates(None) == StateTaxRates(0.0, 0.0)


def test_unknown_state_rejected(states):
    with pytest.raises(ValueError, match="Unknown state code 'ZZ'"):
        states.rates('ZZ')


def test_overrides_replace_table_values(states):
    rates = states.rates('CA', income_override=0.05, capital_gains_override=0.0)
    assert rates.income_rate == 0.05
    assert rates.capital_gains_rate == 0.0


def test_override_without_state(states):
    rates = states.rates(None, income_override=0.04)
    assert rates.income_rate == 0.04
    assert rates.capital_gains_rate == 0.0


def test_capital_gains_defaults_to_income_rate():
    details = StateDetails({'states': [{'code': 'XX', 'name': 'Test', 'incomeRate': 0.03}]})
    assert details.rates('XX') == StateTaxRates(0.03, 0.03)
