"""
Configuration

All values that change per run live in AppConfig.
Defaults come from environment variables, command line options override them.
The config object is handed to the components, nothing reads it globally.
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

DEFAULT_DB_PATH = "engagements.json"
DEFAULT_REPORT_PATH = "metrics_report.csv"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """
    Settings for one run.
    - db_path: JSON database
    - report_path: CSV output of the complete metrics report
    - debug: extra diagnostics
    """
    db_path: Path = Path(DEFAULT_DB_PATH)
    report_path: Path = Path(DEFAULT_REPORT_PATH)
    debug: bool = False


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def build_parser() -> argparse.ArgumentParser:
    """Options; defaults come from the environment."""
    parser = argparse.ArgumentParser(
        prog="engagement-tracker",
        description="Record and query security assessment engagements.",
    )
    parser.add_argument(
        "--db",
        default=os.environ.get("ENGAGEMENT_DB", DEFAULT_DB_PATH),
        help="Path to the JSON database (default: %(default)s)",
    )
    parser.add_argument(
        "--report",
        default=os.environ.get("ENGAGEMENT_REPORT", DEFAULT_REPORT_PATH),
        help="Path of the metrics CSV report (default: %(default)s)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=_env_flag("ENGAGEMENT_DEBUG"),
        help="Print extra diagnostics",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> AppConfig:
    """Builds the AppConfig from the command line."""
    args = build_parser().parse_args(argv)
    return AppConfig(
        db_path=Path(args.db),
        report_path=Path(args.report),
        debug=args.debug,
    )


def configure_logging(debug: bool = False) -> None:
    """Console logging: DEBUG with --debug, otherwise warnings only."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
