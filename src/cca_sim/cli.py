"""Command-line entry point: replay auctions and export the results."""

import argparse
import logging
import sys
from typing import List, Optional

from .analysis.scenarios import SCENARIO_LIBRARY
from .config.loader import load_bids, load_config
from .reporting.export import export_csv, export_json
from .simulation.runner import AuctionResult, replay_bids
from .simulation.settlement import summarize_settlements
from .validation.sanity_checks import SanityChecker

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cca-workbench",
        description="Continuous clearing auction simulator",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Replay a scenario or a config plus bid file")
    source = run.add_mutually_exclusive_group(required=True)
    source.add_argument("--scenario", help="Key of a built-in scenario")
    source.add_argument("--config", help="Path to an auction config YAML")
    run.add_argument("--bids", help="Path to a YAML list of scheduled bids (with --config)")
    run.add_argument("--seed", type=int, default=42, help="Seed for generated scenario bids")
    run.add_argument("--until", type=int, default=None, help="Stop at this block instead of the end")
    run.add_argument("--export-json", default=None, help="Write a JSON snapshot to this path")
    run.add_argument("--export-csv", default=None, help="Write checkpoints as CSV to this path")

    sub.add_parser("scenarios", help="List the built-in scenarios")
    return parser


def _run(args: argparse.Namespace) -> AuctionResult:
    run_to_end = args.until is None
    if args.scenario:
        if args.scenario not in SCENARIO_LIBRARY:
            available = ", ".join(sorted(SCENARIO_LIBRARY))
            raise ValueError(f"Unknown scenario '{args.scenario}'. Available: {available}")
        scenario = SCENARIO_LIBRARY[args.scenario]
        config = scenario.build_config()
        bids = scenario.build_bids(args.seed)
    else:
        config = load_config(args.config)
        bids = load_bids(args.bids) if args.bids else []
    return replay_bids(config, bids, run_to_end=run_to_end, until_block=args.until)


def _print_result(result: AuctionResult):
    summary = result.summary
    print(f"Block:            {summary['block']}")
    print(f"Clearing price:   {summary['clearing_price'].normalize()}")
    print(f"Currency raised:  {summary['currency_raised'].normalize()}")
    print(f"Tokens cleared:   {summary['total_cleared'].normalize()}")
    print(f"Graduated:        {summary['is_graduated']}")
    print(f"Ended:            {summary['is_ended']}")
    print(f"Bids:             {summary['bids']} ({summary['rejected_bids']} rejected)")

    if result.settlements:
        totals = summarize_settlements(result.settlements)
        print(f"Currency spent:   {totals['total_currency_spent'].normalize()}")
        print(f"Refunded:         {totals['total_refund'].normalize()}")
        print(f"Tokens filled:    {totals['total_tokens_filled'].normalize()}")
        print()
        for bid in result.settlements:
            print(
                f"  #{bid.id:<4} {bid.owner:<14} {bid.status.value:<17} "
                f"tokens={bid.tokens_filled.normalize()} spent={bid.currency_spent.normalize()} "
                f"refund={bid.refund.normalize()}"
            )


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "scenarios":
        for key, scenario in SCENARIO_LIBRARY.items():
            print(f"{key:<16} [{scenario.category}] {scenario.description}")
        return 0

    try:
        result = _run(args)
    except (OSError, ValueError) as exc:
        # pydantic.ValidationError is a ValueError
        print(f"error: {exc}", file=sys.stderr)
        return 2

    checker = SanityChecker(result.config)
    for warning in checker.check_config_inputs() + checker.check_state(result.state):
        logger.warning(
            "[%s] %s%s", warning.category, warning.message,
            f" ({warning.details})" if warning.details else "",
        )

    _print_result(result)

    if args.export_json:
        export_json(result.state, result.config, args.export_json)
        print(f"\nSnapshot written to {args.export_json}")
    if args.export_csv:
        export_csv(result.state, args.export_csv)
        print(f"Checkpoints written to {args.export_csv}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
