"""Field metadata for YearRecord fields.

This module provides descriptions and short names for all YearRecord fields.
Short names are used as column headers in projection tables and as keys in
the MCP field listing.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class FieldInfo:
    """Metadata for a single field."""
    short_name: str  # Column header (unique, concise)
    description: str  # Full description of the field


# Field metadata dictionary mapping field names to their info
FIELD_METADATA: Dict[str, FieldInfo] = {
    # Timeline
    "year": FieldInfo("Year", "Calendar year"),
    "age": FieldInfo("Age", "Primary holder's age during the year"),
    "spouse_age": FieldInfo("Spouse Age", "Spouse's age during the year"),
    "phase": FieldInfo("Phase", "accumulating before the FI age, fi from it onward"),

    # Outflows
    "expenses": FieldInfo("Expenses", "Recurring spending incl. housing, after the spending adjustment"),
    "life_event_expenses": FieldInfo("Life Events", "One-time expenses scheduled for the year"),
    "mortgage_payoff": FieldInfo("Mortgage Payoff", "Lump sum paid to retire the mortgage early"),

    # Inflows
    "benefit_income": FieldInfo("Benefits", "Government retirement benefits (primary + spouse)"),
    "pension_income": FieldInfo("Pension", "Pension income"),
    "other_income": FieldInfo("Other Income", "Retirement income streams (consulting, rentals, etc.)"),
    "windfall": FieldInfo("Windfall", "One-time inflows scheduled for the year"),
    "employment_income": FieldInfo("Net Employment", "Employment income after its effective tax rate"),
    "contributions": FieldInfo("Contributions", "Scheduled account contributions"),
    "surplus_deposited": FieldInfo("Surplus Saved", "Accumulation-phase surplus deposited to savings"),

    # Withdrawals
    "gap": FieldInfo("Gap", "Net amount the portfolio had to supply"),
    "withdrawal": FieldInfo("Withdrawal", "Gross amount withdrawn, including tax and penalty"),
    "withdrawal_penalty": FieldInfo("Penalty", "Early-withdrawal penalties"),
    "federal_tax": FieldInfo("Federal Tax", "Federal tax on withdrawals"),
    "state_tax": FieldInfo("State Tax", "State tax on withdrawals"),
    "withdrawal_source": FieldInfo("Source", "Account types drawn from"),
    "unmet_need": FieldInfo("Unmet Need", "Part of the gap no account could cover"),

    # Balances
    "taxable_balance": FieldInfo("Taxable", "Taxable, 529 and other account balances"),
    "taxable_cost_basis": FieldInfo("Cost Basis", "Cost basis of taxable balances"),
    "traditional_balance": FieldInfo("Traditional", "Tax-deferred account balances"),
    "roth_balance": FieldInfo("Roth", "Tax-free account balances"),
    "hsa_balance": FieldInfo("HSA", "Health savings account balances"),
    "cash_balance": FieldInfo("Cash", "Cash account balances"),
    "total_net_worth": FieldInfo("Net Worth", "Total of all account balances"),
    "mortgage_balance": FieldInfo("Mortgage Balance", "Outstanding mortgage principal"),

    "is_shortfall": FieldInfo("Shortfall", "True if the accounts could not cover the gap"),
}


def get_short_name(field_name: str) -> str:
    """Get the short name for a field, or the field name if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.short_name if info else field_name


def get_description(field_name: str) -> str:
    """Get the description for a field, or empty string if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.description if info else ""


def wrap_header(text: str, max_width: int) -> list[str]:
    """Wrap a header text into multiple lines to fit within max_width.

    Words are split on spaces and distributed across lines to minimize
    the total number of lines while staying within max_width.

    Args:
        text: The header text to wrap
        max_width: Maximum width per line

    Returns:
        List of strings, each representing a line
    """
    if len(text) <= max_width:
        return [text]

    lines = []
    current_line = ""
    for word in text.split():
        if not current_line:
            current_line = word
        elif len(current_line) + 1 + len(word) <= max_width:
            current_line += " " + word
        else:
            lines.append(current_line)
            current_line = word

    if current_line:
        lines.append(current_line)

    return lines
