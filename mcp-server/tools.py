"""FI Planner Tools for MCP Server.

This module provides the tool implementations that wrap the FI projection
engine and expose its results through MCP.
"""

import os
import sys
import json
from dataclasses import asdict
from typing import Any, Dict, Optional

from loguru import logger

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from calc.expense_calculator import base_annual_spending
from calc.fi_planner import FIPlanner
from model.PlanInput import PlanInput, WhatIf
from model.ProjectionData import ProjectionData, YearRecord
from model.field_metadata import FIELD_METADATA, get_description


def _rounded(value: Any) -> Any:
    """Round floats (recursively) to cents for compact JSON."""
    if isinstance(value, float):
        return round(value, 2)
    if isinstance(value, dict):
        return {k: _rounded(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_rounded(v) for v in value]
    return value


def record_to_dict(record: YearRecord) -> dict:
    data = asdict(record)
    data['total_income'] = record.total_income
    return _rounded(data)


class FIPlannerTools:
    """Tools that wrap the FI planner for one program."""

    def __init__(self, base_path: str, program_name: str, planner: Optional[FIPlanner] = None):
        """Initialize with paths and load the plan.

        Args:
            base_path: Path to the project root directory
            program_name: Name of the program folder in input-parameters
            planner: Shared planner instance (one is created when omitted)
        """
        self.base_path = base_path
        self.program_name = program_name
        self.planner = planner or FIPlanner()
        self.spec = self._load_spec()
        self.plan = PlanInput.from_spec(self.spec)
        self.what_if = WhatIf.from_spec(self.spec.get('whatIf'))
        self.projection: ProjectionData = self.planner.project(self.plan, self.what_if)

    def _load_spec(self) -> dict:
        """Load the program's spec.json."""
        spec_path = os.path.join(self.base_path, 'input-parameters', self.program_name, 'spec.json')
        if not os.path.exists(spec_path):
            raise FileNotFoundError(f"Spec file not found: {spec_path}")
        with open(spec_path, 'r') as f:
            return json.load(f)

    def get_plan_overview(self) -> dict:
        """Get an overview of the plan: ages, accounts and assumptions."""
        profile = self.plan.profile
        assumptions = self.plan.assumptions
        return {
            "program_name": self.program_name,
            "as_of_year": self.plan.as_of_year,
            "profile": {
                "current_age": profile.current_age,
                "target_fi_age": profile.fi_age,
                "life_expectancy": profile.life_expectancy,
                "filing_status": profile.filing_status.value,
                "spouse_age": profile.spouse_age,
                "state": profile.state,
            },
            "accounts": [
                {"name": a.name, "type": a.type.value, "owner": a.owner.value, "balance": a.balance}
                for a in self.plan.accounts
            ],
            "current_net_worth": round(sum(a.balance for a in self.plan.accounts), 2),
            "base_annual_spending": round(base_annual_spending(self.plan.expenses, self.plan.as_of_year,
                                                               assumptions.inflation_rate), 2),
            "assumptions": {
                "investment_return": assumptions.investment_return,
                "fi_return": assumptions.fi_return,
                "inflation_rate": assumptions.inflation_rate,
                "withdrawal_order": [s.value for s in assumptions.withdrawal_order],
                "safe_withdrawal_rate": assumptions.safe_withdrawal_rate,
                "terminal_balance_target": assumptions.terminal_balance_target,
            },
        }

    def get_projection(self, start_age: Optional[int] = None, end_age: Optional[int] = None) -> dict:
        """Year records, optionally limited to an age range."""
        records = self.projection.between(start_age, end_age)
        return {
            "fi_age": self.projection.fi_age,
            "life_expectancy": self.projection.life_expectancy,
            "records": [record_to_dict(r) for r in records],
            "fields": {name: get_description(name) for name in FIELD_METADATA},
        }

    def get_year_record(self, age: Optional[int] = None, year: Optional[int] = None) -> dict:
        """A single year record looked up by age or calendar year."""
        if age is None and year is None:
            return {"error": "Specify an age or a year"}
        record = self.projection.get_age(age) if age is not None else self.projection.get_year(year)
        if record is None:
            first, last = self.projection.records[0], self.projection.records[-1]
            return {"error": f"Not in the projection (ages {first.age}-{last.age}, years {first.year}-{last.year})"}
        return record_to_dict(record)

    def get_summary(self) -> dict:
        summary = self.planner.summary_calculator.calculate(self.plan, self.projection, self.what_if)
        return _rounded(asdict(summary))

    def get_achievable_fi_age(self) -> dict:
        return _rounded(asdict(self.planner.achievable_fi_age(self.plan, self.what_if)))

    def get_goal_guidance(self, goal_age: Optional[int] = None) -> dict:
        return _rounded(asdict(self.planner.goal_guidance(self.plan, goal_age, self.what_if)))

    def run_what_if(self, spending_adjustment: Optional[float] = None, investment_return: Optional[float] = None,
                    claiming_age: Optional[int] = None, spouse_claiming_age: Optional[int] = None) -> dict:
        """Re-run summary and search with overrides and compare with the saved plan."""
        what_if = WhatIf(
            spending_adjustment=self.what_if.spending_adjustment if spending_adjustment is None
            else spending_adjustment,
            investment_return=investment_return if investment_return is not None
            else self.what_if.investment_return,
            claiming_age=claiming_age if claiming_age is not None else self.what_if.claiming_age,
            spouse_claiming_age=spouse_claiming_age if spouse_claiming_age is not None
            else self.what_if.spouse_claiming_age,
        )
        baseline_search = self.planner.achievable_fi_age(self.plan, self.what_if)
        scenario_search = self.planner.achievable_fi_age(self.plan, what_if)
        baseline_summary = self.planner.summarize(self.plan, self.what_if)
        scenario_summary = self.planner.summarize(self.plan, what_if)

        age_change = None
        if baseline_search.achievable_fi_age is not None and scenario_search.achievable_fi_age is not None:
            age_change = scenario_search.achievable_fi_age - baseline_search.achievable_fi_age

        return _rounded({
            "what_if": asdict(what_if),
            "baseline": {"search": asdict(baseline_search), "summary": asdict(baseline_summary)},
            "scenario": {"search": asdict(scenario_search), "summary": asdict(scenario_summary)},
            "achievable_age_change": age_change,
        })


class MultiProgramTools:
    """Manager for multiple FI programs.

    Discovers all available programs and caches their projections,
    allowing queries to specify which program to use.
    """

    def __init__(self, base_path: str, default_program: Optional[str] = None):
        """Initialize and discover all available programs.

        Args:
            base_path: Path to the project root directory
            default_program: Default program to use when none specified
        """
        self.base_path = base_path
        self.programs: Dict[str, FIPlannerTools] = {}
        self.default_program = default_program
        self.planner = FIPlanner()
        self._discover_programs()

    def _discover_programs(self):
        """Discover and load all available programs."""
        input_params_path = os.path.join(self.base_path, 'input-parameters')

        if not os.path.exists(input_params_path):
            return

        for name in sorted(os.listdir(input_params_path)):
            program_dir = os.path.join(input_params_path, name)
            spec_path = os.path.join(program_dir, 'spec.json')

            if os.path.isdir(program_dir) and os.path.exists(spec_path):
                try:
                    self.programs[name] = FIPlannerTools(self.base_path, name, self.planner)
                except (OSError, ValueError, KeyError) as e:
                    # Log but don't fail on individual program errors
                    logger.warning("Failed to load program '{}': {}", name, e)

        if self.default_program is None and self.programs:
            self.default_program = list(self.programs.keys())[0]
        logger.info("Loaded {} programs", len(self.programs))

    def _get_program(self, program: Optional[str] = None, require_explicit: bool = False) -> FIPlannerTools:
        """Get the specified program or default.

        Args:
            program: Program name to use, or None for default
            require_explicit: If True, raise error when program not specified and multiple exist
        """
        if program is None and len(self.programs) > 1 and require_explicit:
            available = list(self.programs.keys())
            raise ValueError(
                f"Multiple programs available: {available}. Please specify which program to query."
            )

        program_name = program or self.default_program

        if program_name not in self.programs:
            available = list(self.programs.keys())
            raise ValueError(
                f"Program '{program_name}' not found. Available programs: {available}"
            )

        return self.programs[program_name]

    def _with_program(self, result: dict, program: Optional[str]) -> dict:
        result["program"] = program or self.default_program
        return result

    def list_programs(self) -> dict:
        """List all available programs."""
        programs_info = {}
        for name, tools in self.programs.items():
            profile = tools.plan.profile
            programs_info[name] = {
                "as_of_year": tools.plan.as_of_year,
                "current_age": profile.current_age,
                "target_fi_age": profile.fi_age,
                "life_expectancy": profile.life_expectancy,
                "net_worth": round(sum(a.balance for a in tools.plan.accounts), 2),
            }

        return {
            "available_programs": list(self.programs.keys()),
            "default_program": self.default_program,
            "programs_info": programs_info
        }

    def reload_programs(self) -> dict:
        """Reload all programs from disk, refreshing the cache.

        Use this after adding, modifying, or removing program spec.json files
        to pick up changes without restarting the server.
        """
        old_programs = set(self.programs.keys())

        self.programs.clear()
        self.default_program = None
        self._discover_programs()

        new_programs = set(self.programs.keys())

        return {
            "status": "success",
            "message": f"Reloaded {len(self.programs)} programs",
            "programs_loaded": list(self.programs.keys()),
            "default_program": self.default_program,
            "changes": {
                "added": sorted(new_programs - old_programs),
                "removed": sorted(old_programs - new_programs),
                "reloaded": sorted(old_programs & new_programs)
            }
        }

    def get_plan_overview(self, program: Optional[str] = None) -> dict:
        return self._with_program(self._get_program(program, require_explicit=True).get_plan_overview(), program)

    def get_projection(self, start_age: Optional[int] = None, end_age: Optional[int] = None,
                       program: Optional[str] = None) -> dict:
        result = self._get_program(program, require_explicit=True).get_projection(start_age, end_age)
        return self._with_program(result, program)

    def get_year_record(self, age: Optional[int] = None, year: Optional[int] = None,
                        program: Optional[str] = None) -> dict:
        result = self._get_program(program, require_explicit=True).get_year_record(age, year)
        return self._with_program(result, program)

    def get_summary(self, program: Optional[str] = None) -> dict:
        return self._with_program(self._get_program(program, require_explicit=True).get_summary(), program)

    def get_achievable_fi_age(self, program: Optional[str] = None) -> dict:
        result = self._get_program(program, require_explicit=True).get_achievable_fi_age()
        return self._with_program(result, program)

    def get_goal_guidance(self, goal_age: Optional[int] = None, program: Optional[str] = None) -> dict:
        result = self._get_program(program, require_explicit=True).get_goal_guidance(goal_age)
        return self._with_program(result, program)

    def run_what_if(self, spending_adjustment: Optional[float] = None, investment_return: Optional[float] = None,
                    claiming_age: Optional[int] = None, spouse_claiming_age: Optional[int] = None,
                    program: Optional[str] = None) -> dict:
        result = self._get_program(program, require_explicit=True).run_what_if(
            spending_adjustment, investment_return, claiming_age, spouse_claiming_age)
        return self._with_program(result, program)
