"""Renderer classes for displaying FI projection results.

This module contains renderer classes that handle the presentation logic
for the different planner outputs: the year-by-year projection table, the
headline summary, the achievable FI age and goal guidance.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from model.ProjectionData import GoalGuidance, ProjectionData, SearchResult, Summary
from model.field_metadata import get_short_name, wrap_header


def format_multiline_headers(columns: List[tuple], label: str = 'Age', label_width: int = 6) -> tuple[List[str], str]:
    """Format column headers with multi-line wrapping support.

    Args:
        columns: List of (header_text, width) tuples for each column
        label: Header of the leading row-label column
        label_width: Width of the leading column (default 6)

    Returns:
        Tuple of (list of header lines, separator line)
    """
    wrapped_headers = [(wrap_header(header, width), width) for header, width in columns]

    max_lines = max(len(lines) for lines, _ in wrapped_headers) if wrapped_headers else 1

    # Pad all headers to have the same number of lines (pad at top)
    for lines, _ in wrapped_headers:
        while len(lines) < max_lines:
            lines.insert(0, "")

    header_lines = []
    for line_idx in range(max_lines):
        first = label if line_idx == max_lines - 1 else ''
        header_line = f"  {first:<{label_width}}"
        for lines, width in wrapped_headers:
            header_line += f" {lines[line_idx]:>{width}}"
        header_lines.append(header_line)

    sep_line = f"  {'-' * label_width}"
    for _, width in wrapped_headers:
        sep_line += f" {'-' * width}"

    return header_lines, sep_line


def _money(value: Optional[float]) -> str:
    return 'N/A' if value is None else f"${value:,.0f}"


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    @abstractmethod
    def render(self, data: Any) -> None:
        """Render the data to output."""
        pass


class ProjectionRenderer(BaseRenderer):
    """Table of year records, one row per age."""

    # Maximum width for a column header before wrapping
    MAX_HEADER_WIDTH = 12

    DEFAULT_FIELDS = [
        'year', 'phase', 'expenses', 'total_income', 'employment_income', 'gap', 'withdrawal',
        'federal_tax', 'state_tax', 'withdrawal_penalty', 'withdrawal_source', 'total_net_worth',
    ]

    # Fields summed in the totals row
    TOTAL_FIELDS = {'expenses', 'gap', 'withdrawal', 'federal_tax', 'state_tax', 'withdrawal_penalty',
                    'contributions', 'life_event_expenses', 'mortgage_payoff', 'unmet_need'}

    def __init__(self, start_age: int = None, end_age: int = None, fields: List[str] = None,
                 show_totals: bool = True):
        """Initialize with an optional age range and column list.

        Args:
            start_age: First age to display (defaults to the current age)
            end_age: Last age to display (defaults to life expectancy)
            fields: YearRecord fields to display as columns
            show_totals: Whether to show a totals row at the bottom
        """
        self.start_age = start_age
        self.end_age = end_age
        self.fields = fields or list(self.DEFAULT_FIELDS)
        self.show_totals = show_totals

    def _column_width(self, field: str) -> int:
        if field == 'withdrawal_source':
            return 30
        short_name = 'Income' if field == 'total_income' else get_short_name(field)
        if len(short_name) > self.MAX_HEADER_WIDTH:
            return max(max(len(line) for line in wrap_header(short_name, self.MAX_HEADER_WIDTH)), 12)
        return max(len(short_name) + 2, 12)

    @staticmethod
    def _format_value(value: Any, field: str, width: int) -> str:
        if value is None:
            return f"{'N/A':>{width}}"
        if isinstance(value, bool):
            return f"{'Yes' if value else 'No':>{width}}"
        if isinstance(value, float):
            return f"${value:>{width - 1},.0f}"
        if isinstance(value, int):
            return f"{value:>{width}}"
        if hasattr(value, 'value'):
            value = value.value
        return f"{str(value)[:width]:>{width}}"

    def render(self, data: ProjectionData) -> None:
        """Render the projection table.

        Args:
            data: ProjectionData from a projection run
        """
        columns = [('Income' if f == 'total_income' else get_short_name(f), self._column_width(f))
                   for f in self.fields]
        total_width = 8 + sum(w + 1 for _, w in columns)

        print()
        print("=" * total_width)
        print(f"{'FI PROJECTION (FI AGE ' + str(data.fi_age) + ')':^{total_width}}")
        print("=" * total_width)
        print()

        header_lines, sep_line = format_multiline_headers(columns)
        for line in header_lines:
            print(line)
        print(sep_line)

        totals = {f: 0.0 for f in self.fields}
        records = data.between(self.start_age, self.end_age)
        for record in records:
            row = f"  {record.age:<6}"
            for field, (_, width) in zip(self.fields, columns):
                value = getattr(record, field, None)
                row += f" {self._format_value(value, field, width)}"
                if field in self.TOTAL_FIELDS and value is not None:
                    totals[field] += value
            if record.is_shortfall:
                row += "  <- shortfall"
            print(row)

        if self.show_totals and records:
            print(sep_line)
            total_row = f"  {'TOTAL':<6}"
            for field, (_, width) in zip(self.fields, columns):
                if field in self.TOTAL_FIELDS:
                    total_row += f" ${totals[field]:>{width - 1},.0f}"
                else:
                    total_row += f" {'':>{width}}"
            print(total_row)

        print()
        print("=" * total_width)
        print()


class SummaryRenderer(BaseRenderer):
    """Headline figures for a projection."""

    def render(self, data: Summary) -> None:
        print()
        print("=" * 60)
        print(f"{'FI SUMMARY':^60}")
        print("=" * 60)
        print(f"  {'FI Number:':<40} {_money(data.fi_number):>16}")
        print(f"  {'Current Net Worth:':<40} {_money(data.current_net_worth):>16}")
        print(f"  {'Funding Gap:':<40} {_money(data.funding_gap):>16}")
        print(f"  {'-' * 56}")
        print(f"  {'Funds Last Until Age:':<40} {data.runway_age:>16}")
        print(f"  {'Buffer Years Past Life Expectancy:':<40} {data.buffer_years:>16}")
        if data.has_shortfall:
            print(f"  {'Shortfall Starts At Age:':<40} {data.shortfall_age:>16}")
        print(f"  {'Net Worth At Life Expectancy:':<40} {_money(data.surplus_at_le):>16}")
        if data.bottleneck_age is not None:
            print(f"  {'Lowest FI Net Worth:':<40} {_money(data.bottleneck_balance):>16}")
            print(f"  {'  at Age:':<40} {data.bottleneck_age:>16}")
        print("=" * 60)
        print()


class AchievableFIRenderer(BaseRenderer):
    """Earliest viable FI age and its confidence."""

    def render(self, data: SearchResult) -> None:
        print()
        print("=" * 60)
        print(f"{'ACHIEVABLE FI AGE':^60}")
        print("=" * 60)
        if data.achievable_fi_age is None:
            print("  FI is not achievable before life expectancy.")
            guidance = data.shortfall_guidance
            if guidance is not None:
                if guidance.runs_out_at_age is not None:
                    print(f"  {'Money Runs Out At Age:':<40} {guidance.runs_out_at_age:>16}")
                if guidance.spending_reduction_percent is not None:
                    print(f"  {'Spending Cut Needed:':<40} {guidance.spending_reduction_percent:>15}%")
                    print(f"  {'  Annual Amount:':<40} {_money(guidance.spending_reduction_needed):>16}")
                if guidance.additional_savings_needed is not None:
                    print(f"  {'Additional Annual Savings Needed:':<40} "
                          f"{_money(guidance.additional_savings_needed):>16}")
        else:
            status = 'Already FI' if data.is_already_fi else f"{data.years_until_fi} years away"
            print(f"  {'Achievable FI Age:':<40} {data.achievable_fi_age:>16}")
            print(f"  {'Status:':<40} {status:>16}")
            print(f"  {'Buffer Years:':<40} {data.buffer_years:>16}")
        print(f"  {'Confidence:':<40} {data.confidence.value:>16}")
        print("=" * 60)
        print()


class GoalGuidanceRenderer(BaseRenderer):
    """Status of a desired FI age and the levers that would reach it."""

    def render(self, data: GoalGuidance) -> None:
        achievable = data.achievable_age if data.achievable_age is not None else 'N/A'
        print()
        print("=" * 60)
        print(f"{'GOAL GUIDANCE':^60}")
        print("=" * 60)
        print(f"  {'Goal FI Age:':<40} {data.goal_age:>16}")
        print(f"  {'Achievable FI Age:':<40} {achievable:>16}")
        print(f"  {'Status:':<40} {data.status.value:>16}")
        if data.surplus_at_le is not None:
            print(f"  {'Net Worth At Life Expectancy:':<40} {_money(data.surplus_at_le):>16}")
        if data.additional_buffer_years is not None:
            print(f"  {'Additional Buffer Years:':<40} {data.additional_buffer_years:>16}")
        if data.spending_increase_room is not None:
            print(f"  {'Room To Increase Spending:':<40} {_money(data.spending_increase_room):>16}")

        if data.status.value == 'behind_goal':
            print()
            print("-" * 60)
            print("LEVERS (each on its own)")
            print("-" * 60)
            if data.spending_reduction is not None:
                cut = data.spending_reduction
                print(f"  {'Cut Spending By:':<40} {cut.percent_reduction:>15}%")
                print(f"  {'  Annual Amount:':<40} {_money(cut.annual_amount):>16}")
                print(f"  {'  Resulting Spending:':<40} {_money(cut.resulting_annual_spending):>16}")
            else:
                print("  No spending cut up to 80% reaches the goal.")
            if data.required_return is not None:
                print(f"  {'Required Return:':<40} {data.required_return.rate:>16.1%}")
                print(f"  {'  Current Return:':<40} {data.required_return.current_rate:>16.1%}")
            if data.ss_delay_benefit is not None:
                verdict = 'sufficient' if data.ss_delay_benefit.sufficient else 'not sufficient'
                print(f"  {'Delay Benefits To ' + str(data.ss_delay_benefit.new_start_age) + ':':<40} {verdict:>16}")
            if data.additional_savings_needed is not None:
                savings = data.additional_savings_needed
                amount = _money(savings.amount) if savings.sufficient else f"> {_money(savings.amount)}"
                print(f"  {'Additional Savings Today:':<40} {amount:>16}")
        print("=" * 60)
        print()


# Registry mapping mode names to renderer classes
RENDERER_REGISTRY = {
    'Projection': ProjectionRenderer,
    'Summary': SummaryRenderer,
    'AchievableFI': AchievableFIRenderer,
    'GoalGuidance': GoalGuidanceRenderer,
}
