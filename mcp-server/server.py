#!/usr/bin/env python3
"""MCP Server for the FI Planner.

This server exposes the FI projection engine as MCP tools, allowing AI
assistants to answer questions about when a household can reach financial
independence and what it would take to get there sooner.
"""

import os
import sys
import json
import asyncio
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from loguru import logger
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import MultiProgramTools


# Create the MCP server
server = Server("fi-planner")

# Global tools instance (initialized on startup)
tools: MultiProgramTools | None = None


def get_tools() -> MultiProgramTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Default program can be set via FI_PLANNER_PROGRAM env var
        default_program = os.environ.get('FI_PLANNER_PROGRAM')
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = MultiProgramTools(base_path, default_program)
    return tools


# Common program parameter schema
PROGRAM_PARAM = {
    "type": "string",
    "description": "The program name (folder in input-parameters). If not specified, uses the default program. Use list_programs to see available programs."
}

NO_PARAMS = {
    "type": "object",
    "properties": {},
    "required": []
}

PROGRAM_ONLY = {
    "type": "object",
    "properties": {
        "program": PROGRAM_PARAM
    },
    "required": []
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available FI planning tools."""
    return [
        Tool(
            name="list_programs",
            description="List all available FI plans with their ages and net worth.",
            inputSchema=NO_PARAMS
        ),
        Tool(
            name="reload_programs",
            description="Reload all plans from disk. Use this after adding, modifying, or removing program spec.json files to refresh the cache without restarting the server.",
            inputSchema=NO_PARAMS
        ),
        Tool(
            name="get_plan_overview",
            description="Get an overview of a plan: ages, target FI age, accounts, base spending and key assumptions. Use this first to understand the plan.",
            inputSchema=PROGRAM_ONLY
        ),
        Tool(
            name="get_projection",
            description="Get the year-by-year projection: expenses, income, withdrawals, taxes, penalties, balances by account type and shortfall flags, with a description of each record field.",
            inputSchema={
                "type": "object",
                "properties": {
                    "start_age": {
                        "type": "integer",
                        "description": "Optional: first age to include"
                    },
                    "end_age": {
                        "type": "integer",
                        "description": "Optional: last age to include"
                    },
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_year_record",
            description="Get the projection record for a single age or calendar year.",
            inputSchema={
                "type": "object",
                "properties": {
                    "age": {
                        "type": "integer",
                        "description": "Age to look up"
                    },
                    "year": {
                        "type": "integer",
                        "description": "Calendar year to look up (used when age is not given)"
                    },
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_summary",
            description="Get the FI number, current net worth, funding gap, last solvent age, buffer years past life expectancy and the lowest-balance FI year.",
            inputSchema=PROGRAM_ONLY
        ),
        Tool(
            name="get_achievable_fi_age",
            description="Search for the earliest FI age the plan can sustain through life expectancy plus a 5-year safety buffer, with a confidence tier. When FI is not achievable, includes how far the plan falls short.",
            inputSchema=PROGRAM_ONLY
        ),
        Tool(
            name="get_goal_guidance",
            description="Compare a goal FI age with the achievable one. When behind, sizes each lever on its own: spending cut, required return, delaying benefits to 70 and additional savings today.",
            inputSchema={
                "type": "object",
                "properties": {
                    "goal_age": {
                        "type": "integer",
                        "description": "Goal FI age (defaults to the plan's target FI age)"
                    },
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="run_what_if",
            description="Re-run the summary and FI-age search with temporary overrides and compare with the saved plan. The saved plan is not changed.",
            inputSchema={
                "type": "object",
                "properties": {
                    "spending_adjustment": {
                        "type": "number",
                        "description": "Spending change as a fraction, e.g. -0.1 for 10% less"
                    },
                    "investment_return": {
                        "type": "number",
                        "description": "Accumulation-phase return rate, e.g. 0.07"
                    },
                    "claiming_age": {
                        "type": "integer",
                        "description": "Benefit claiming age (62-70)"
                    },
                    "spouse_claiming_age": {
                        "type": "integer",
                        "description": "Spouse's benefit claiming age (62-70)"
                    },
                    "program": PROGRAM_PARAM
                },
                "required": []
            }
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        fp_tools = get_tools()
        program = arguments.get("program")

        if name == "list_programs":
            result = fp_tools.list_programs()
        elif name == "reload_programs":
            result = fp_tools.reload_programs()
        elif name == "get_plan_overview":
            result = fp_tools.get_plan_overview(program)
        elif name == "get_projection":
            result = fp_tools.get_projection(arguments.get("start_age"), arguments.get("end_age"), program)
        elif name == "get_year_record":
            result = fp_tools.get_year_record(arguments.get("age"), arguments.get("year"), program)
        elif name == "get_summary":
            result = fp_tools.get_summary(program)
        elif name == "get_achievable_fi_age":
            result = fp_tools.get_achievable_fi_age(program)
        elif name == "get_goal_guidance":
            result = fp_tools.get_goal_guidance(arguments.get("goal_age"), program)
        elif name == "run_what_if":
            result = fp_tools.run_what_if(
                arguments.get("spending_adjustment"),
                arguments.get("investment_return"),
                arguments.get("claiming_age"),
                arguments.get("spouse_claiming_age"),
                program
            )
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        logger.exception("Tool {} failed", name)
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    logger.remove()
    logger.add(sys.stderr, level="INFO")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
