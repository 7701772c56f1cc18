"""
Console script entrypoint for jiralog.

Subcommands:
    get-worklogs     Worklogs of one or more issues on the destination Jira
    activity-report  Tempo activity report CSV for a date range
    extract-logs     Review Tempo worklogs and replicate them to the destination Jira
"""
from __future__ import annotations

import argparse
import sys
from datetime import datetime
from typing import List, Optional

import urllib3

from . import commands
from .api import DEFAULT_TIMEOUT
from .config import default_config_path, read_config
from .errors import ApiError, MissingEntityError, TransportError
from .formatting import today
from .writers import error


def iso_date(value: str) -> str:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed options; `handler` holds the command function.
    """
    default_cfg = default_config_path()

    p = argparse.ArgumentParser(prog="jiralog", description="Jira/Tempo worklog reports.")
    p.add_argument("--config", default=default_cfg, help=f"Path to config.ini (default: {default_cfg})")
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    p.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT,
                   help=f"Per-request timeout in seconds (default={DEFAULT_TIMEOUT})")
    p.add_argument("--insecure", action="store_true", help="DISABLE SSL verification (NOT RECOMMENDED)")

    sub = p.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    gw = sub.add_parser("get-worklogs", help="Get worklogs for the given issues")
    gw.add_argument("issues", nargs="+", help="Issue key(s)")
    gw.add_argument("-e", "--email", default="",
                    help="Author e-mail to keep (default: destination email from config; 'all' keeps everyone)")
    gw.set_defaults(handler=commands.get_worklogs_command)

    ar = sub.add_parser("activity-report", help="Write the Tempo activity report CSV")
    ar.add_argument("date", nargs="?", type=iso_date, default=today(), help="Start date (default: today)")
    ar.add_argument("end_date", nargs="?", type=iso_date, default=today(), help="End date (default: today)")
    ar.add_argument("--out", default="report.csv", help="Output CSV (default: report.csv)")
    ar.set_defaults(handler=commands.activity_report_command)

    ex = sub.add_parser("extract-logs", help="Extract Tempo worklogs and replicate them")
    ex.add_argument("date", nargs="?", type=iso_date, default=today(), help="Updated since (default: today)")
    ex.set_defaults(handler=commands.extract_logs_command)

    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Program entry point: parse, configure, run one command, map errors to exit codes."""
    args = parse_args(argv)
    cfg = read_config(args.config)

    if args.insecure:
        cfg["verify_ssl"] = False
    if not cfg["verify_ssl"] and not cfg["ca_bundle"]:
        sys.stderr.write("WARNING: SSL certificate verification is DISABLED. Use only for testing.\n")
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    try:
        code = args.handler(args, cfg)
    except ApiError as e:
        for message in e.messages:
            error(message)
        code = 1
    except TransportError as e:
        print(str(e.cause), file=sys.stderr)
        code = 3
    except MissingEntityError as e:
        error(str(e))
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
