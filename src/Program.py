import sys
import os
import json
import argparse

from loguru import logger

from calc.fi_planner import FIPlanner
from model.PlanInput import PlanInput, WhatIf
from render.renderers import RENDERER_REGISTRY


def load_spec(program_name: str) -> dict:
    """Load ``input-parameters/<program_name>/spec.json``.

    Raises:
        FileNotFoundError: If the program has no spec file
    """
    spec_path = os.path.join(os.path.dirname(__file__), '../input-parameters', program_name, 'spec.json')
    if not os.path.exists(spec_path):
        raise FileNotFoundError(f"Spec file not found: {spec_path}")
    with open(spec_path, 'r') as f:
        return json.load(f)


def build_what_if(spec: dict, args: argparse.Namespace) -> WhatIf:
    """Combine the plan's optional whatIf block with command-line overrides."""
    what_if = WhatIf.from_spec(spec.get('whatIf'))
    return WhatIf(
        spending_adjustment=args.spending_adjustment if args.spending_adjustment is not None
        else what_if.spending_adjustment,
        investment_return=args.return_rate if args.return_rate is not None else what_if.investment_return,
        claiming_age=args.claim_age if args.claim_age is not None else what_if.claiming_age,
        spouse_claiming_age=args.spouse_claim_age if args.spouse_claim_age is not None
        else what_if.spouse_claiming_age,
    )


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
               level="DEBUG" if verbose else "WARNING")


def main():
    parser = argparse.ArgumentParser(
        description='Financial independence projection and FI-age search',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  Projection     Print the year-by-year projection table (default)
  Summary        Print FI number, runway, buffer years and bottleneck
  AchievableFI   Search for the earliest viable FI age
  GoalGuidance   Compare a goal FI age with the achievable one and size levers

Examples:
  python src/Program.py myprogram
  python src/Program.py myprogram --mode Projection --start-age 55 --end-age 70
  python src/Program.py myprogram --mode Summary --spending-adjustment -0.1
  python src/Program.py myprogram --mode AchievableFI --return 0.07
  python src/Program.py myprogram --mode GoalGuidance --goal-age 52
        """
    )
    parser.add_argument('program_name', help='Name of the program (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()),
                        default='Projection',
                        help='Output mode (default: Projection)')
    parser.add_argument('--goal-age', type=int, help='Goal FI age for GoalGuidance (default: plan target)')
    parser.add_argument('--spending-adjustment', type=float,
                        help='What-if spending change as a fraction, e.g. -0.1 for 10%% less')
    parser.add_argument('--return', dest='return_rate', type=float, help='What-if investment return')
    parser.add_argument('--claim-age', type=int, help='What-if benefit claiming age')
    parser.add_argument('--spouse-claim-age', type=int, help="What-if spouse's benefit claiming age")
    parser.add_argument('--start-age', type=int, help='First age shown in the projection table')
    parser.add_argument('--end-age', type=int, help='Last age shown in the projection table')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log search probes and shortfalls')

    args = parser.parse_args()
    configure_logging(args.verbose)

    try:
        spec = load_spec(args.program_name)
        plan = PlanInput.from_spec(spec)
        what_if = build_what_if(spec, args)
        planner = FIPlanner()
    except (FileNotFoundError, ValueError) as e:
        print(e)
        sys.exit(1)

    logger.info("Loaded program '{}' ({} accounts)", args.program_name, len(plan.accounts))

    try:
        if args.mode == 'Projection':
            renderer = RENDERER_REGISTRY['Projection'](args.start_age, args.end_age)
            renderer.render(planner.project(plan, what_if))
        elif args.mode == 'Summary':
            RENDERER_REGISTRY['Summary']().render(planner.summarize(plan, what_if))
        elif args.mode == 'AchievableFI':
            RENDERER_REGISTRY['AchievableFI']().render(planner.achievable_fi_age(plan, what_if))
        elif args.mode == 'GoalGuidance':
            RENDERER_REGISTRY['GoalGuidance']().render(planner.goal_guidance(plan, args.goal_age, what_if))
    except ValueError as e:
        print(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
