"""Command-line entry point for the Vibe-Guard scanner."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from . import __version__
from .config import OUTPUT_FORMATS, VibeGuardConfig, load_config
from .errors import VibeGuardError
from .result import ScanResult, format_issue_table, format_summary_table
from .rules import Rule
from .scanner import Scanner, load_rules

logger = logging.getLogger(__name__)

COMMANDS = ("scan", "rules")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibe-guard",
        description="Scan source code for common security weaknesses",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    scan = subparsers.add_parser("scan", help="Scan a file or directory.")
    scan.add_argument("target", help="File or directory to scan.")
    scan.add_argument(
        "--format",
        "-f",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Report format (defaults to the configured format, then table).",
    )
    scan.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show code and suggestions for each issue and enable debug logging.",
    )
    scan.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Skip paths matching this glob (repeatable).",
    )
    scan.add_argument(
        "--include",
        action="append",
        default=[],
        metavar="GLOB",
        help="Only scan paths matching this glob (repeatable).",
    )
    scan.add_argument(
        "--config",
        default=None,
        help="Path to a .vibeguard.yml configuration file.",
    )
    scan.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of files scanned in parallel.",
    )
    scan.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the report to instead of stdout (e.g., reports/scan.json).",
    )

    subparsers.add_parser("rules", help="List the available rules.")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def format_rules(rules: Iterable[Rule]) -> str:
    lines: List[str] = []
    header = f"{'Rule':<26} | {'Severity':<8} | Description"
    lines.append(header)
    lines.append("-" * len(header))
    for rule in rules:
        lines.append(f"{rule.name:<26} | {rule.severity.value.upper():<8} | {rule.description}")
    return "\n".join(lines)


def run_scan(
    target: str,
    config: Optional[VibeGuardConfig] = None,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
    workers: Optional[int] = None,
) -> ScanResult:
    scanner = Scanner(config=config, workers=workers)
    return scanner.scan(target, include=include, exclude=exclude)


def render(result: ScanResult, report_format: str, verbose: bool = False) -> str:
    if report_format == "json":
        return json.dumps(result.to_dict(), indent=2)
    return "\n\n".join([format_issue_table(result, verbose=verbose), format_summary_table(result)])


def write_output(result: ScanResult, output_path: str | None, report_format: str, verbose: bool = False) -> None:
    payload = render(result, report_format, verbose=verbose)
    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(payload + "\n", encoding="utf-8")
        print(format_summary_table(result))
        print(f"\nReport written to {output_path}")
    else:
        print(payload)


def normalize_argv(argv: Sequence[str]) -> List[str]:
    """Treat ``vibe-guard <target>`` as ``vibe-guard scan <target>``."""

    args = list(argv)
    if args and args[0] not in COMMANDS and not args[0].startswith("-"):
        args.insert(0, "scan")
    return args


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(normalize_argv(sys.argv[1:] if argv is None else argv))

    if args.command is None:
        parser.print_help()
        return 1
    if args.command == "rules":
        print(format_rules(load_rules()))
        return 0

    configure_logging(args.verbose)
    try:
        config = load_config(args.config)
        result = run_scan(
            args.target,
            config,
            include=args.include,
            exclude=args.exclude,
            workers=args.workers,
        )
    except VibeGuardError as exc:
        logger.error("%s", exc)
        return 1

    write_output(result, args.output_path, args.format or config.output_format, verbose=args.verbose)
    return result.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
