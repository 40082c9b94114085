"""Command line entry point: ``ux-steps parse|resolve|run``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from uxsteps.dsl import Scenario, parse_steps, resolve, resolve_field

from .config import load_config, validate_run_id
from .matrix import run_matrix, write_report
from .scenario import load_scenarios


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ux-steps", description="Compile and run natural-language UX steps")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    parse_cmd = sub.add_parser("parse", help="Print the actions compiled from steps")
    parse_cmd.add_argument("steps", nargs="+", help="Step instructions")
    parse_cmd.add_argument("--base-url", default="", help="Base URL for relative navigation")

    resolve_cmd = sub.add_parser("resolve", help="Print selector candidates for a description")
    resolve_cmd.add_argument("description", help="Element description")
    resolve_cmd.add_argument("--field", action="store_true", help="Resolve as a form field name")

    run_cmd = sub.add_parser("run", help="Run scenario files in real browsers")
    run_cmd.add_argument("scenarios", nargs="+", help="Scenario JSON or TOML files")
    run_cmd.add_argument("--config", default=None, help="Path to ux-steps.toml")
    run_cmd.add_argument("--report", default=None, help="Where to write the JSON report")
    run_cmd.add_argument("--run-id", default=None, help="Run identifier (defaults to a timestamp)")
    run_cmd.add_argument("--base-url", default=None, help="Override every scenario's base URL")
    return parser


def _cmd_parse(args: argparse.Namespace) -> int:
    actions = parse_steps(args.steps, args.base_url)
    print(json.dumps([action.payload() for action in actions], ensure_ascii=False, indent=2))
    return 0


def _cmd_resolve(args: argparse.Namespace) -> int:
    candidates = resolve_field(args.description) if args.field else resolve(args.description)
    print("\n".join(candidates))
    return 0


def _cmd_run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    if args.run_id is not None:
        try:
            validate_run_id(args.run_id)
        except ValueError as exc:
            parser.error(str(exc))
    scenarios: List[Scenario] = []
    for raw_path in args.scenarios:
        path = Path(raw_path)
        if not path.exists():
            parser.error(f"Scenario file {path} does not exist")
        try:
            scenarios.extend(load_scenarios(path))
        except (ValueError, ValidationError, OSError) as exc:
            parser.error(f"Failed to load {path}: {exc}")
    if args.base_url:
        scenarios = [scenario.model_copy(update={"base_url": args.base_url}) for scenario in scenarios]

    try:
        config = load_config(Path(args.config) if args.config else None)
    except (ValueError, ValidationError) as exc:
        parser.error(f"Invalid configuration: {exc}")

    report = asyncio.run(run_matrix(scenarios, config, run_id=args.run_id))
    report_path = Path(args.report) if args.report else config.output_root / report.run_id / "report.json"
    write_report(report, report_path)
    summary = report.summary()
    print(f"{summary['passed']}/{summary['total']} scenario runs passed; report: {report_path}")
    return 0 if report.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "parse":
        return _cmd_parse(args)
    if args.command == "resolve":
        return _cmd_resolve(args)
    return _cmd_run(args, parser)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
