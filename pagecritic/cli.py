"""
Command-line interface for pagecritic.

Subcommands:
    analyze URL   fetch, consolidate and print (or export) an analysis
    status        show provider configuration and health
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .analyze import NoPlatformDataError, analyze_url
from .config.platforms import PlatformConfigError, load_platforms_config
from .config.secrets import MissingAPIKeyError
from .export import export_csv, export_json
from .insights.generator import InsightGenerator
from .logging_config import configure_logging
from .platforms.health import DEFAULT_HEALTH_PATH, load_health_tracker, save_health_tracker
from .platforms.orchestrator import get_platform_statuses

logger = logging.getLogger(__name__)


def cmd_analyze(args: argparse.Namespace) -> int:
    """Analyze one URL."""
    try:
        config = load_platforms_config(Path(args.config))
    except PlatformConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tracker = load_health_tracker(Path(args.health_file))
    try:
        report = analyze_url(args.url, config, tracker=tracker)
    except NoPlatformDataError as e:
        print(f"Error: {e}", file=sys.stderr)
        for platform, error in e.errors.items():
            print(f"  {platform}: {error}", file=sys.stderr)
        return 1
    finally:
        save_health_tracker(tracker, Path(args.health_file))

    insights = None
    if args.insights:
        try:
            insights = InsightGenerator().generate(report.view)
        except MissingAPIKeyError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if args.csv:
        export_csv(report, insights, path=Path(args.csv))
        print(f"CSV written to {args.csv}")

    if args.output:
        export_json(report, insights, path=Path(args.output))
        print(f"JSON written to {args.output}")
    elif not args.csv:
        print(export_json(report, insights))

    if report.fallback:
        print("Warning: no platform could be scheduled, scores are placeholders", file=sys.stderr)
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show provider configuration and health."""
    try:
        config = load_platforms_config(Path(args.config))
    except PlatformConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tracker = load_health_tracker(Path(args.health_file))
    statuses = get_platform_statuses(config, tracker)

    if args.json:
        print(json.dumps(statuses, indent=2))
        return 0

    for entry in statuses:
        line = f"{entry['name']:<20} {entry['status']:<15}"
        if "health" in entry:
            line += f" health={entry['health']}"
        if entry.get("error"):
            line += f" ({entry['error']})"
        print(line)
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="pagecritic",
        description="Multi-platform website performance analysis"
    )
    parser.add_argument(
        "--config",
        default="config/platforms.yaml",
        help="Path to platforms config"
    )
    parser.add_argument(
        "--health-file",
        default=str(DEFAULT_HEALTH_PATH),
        help="Path to provider health state"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a URL")
    analyze_parser.add_argument("url", help="Page to analyze")
    analyze_parser.add_argument("--output", "-o", help="Write JSON report here")
    analyze_parser.add_argument("--csv", help="Write CSV report here")
    analyze_parser.add_argument("--insights", action="store_true",
                                help="Generate AI insights (requires OPENAI_API_KEY)")
    analyze_parser.set_defaults(func=cmd_analyze)

    status_parser = subparsers.add_parser("status", help="Show provider status")
    status_parser.add_argument("--json", action="store_true", help="Print JSON")
    status_parser.set_defaults(func=cmd_status)

    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
