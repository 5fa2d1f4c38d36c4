"""
Entry point for the engagement tracker.
This module starts the application.
"""

from __future__ import annotations

import sys
from typing import List, Optional

from .config import configure_logging, parse_args
from .controller import EngagementController
from .persistence import JsonEngagementRepository
from .service import StatisticsService
from .view import ConsoleEngagementView


def main(argv: Optional[List[str]] = None) -> None:
    """
    Start of the application.
    Flow:
    - Read command line options
    - Set up logging
    - Create components
    - Start controller
    """
    config = parse_args(argv)
    configure_logging(config.debug)

    try:
        # A missing database file is fine, the first save creates it.
        repo = JsonEngagementRepository(config.db_path)
        service = StatisticsService(config)
        view = ConsoleEngagementView()
        controller = EngagementController(repo, service, view, config)

        controller.start_app()

    except (KeyboardInterrupt, EOFError):
        # Clean exit with Ctrl+C / Ctrl+D.
        print("\nApplication closed.")
        sys.exit(0)

    except Exception as e:
        # Unexpected error.
        print(f"\nERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
