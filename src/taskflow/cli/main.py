# src/taskflow/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the coordinator with a console presenter, then runs
the console shell until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_coordinator
from ..config import get_settings
from ..connectors.console_connector import ConsolePresenter, run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level, log_name=settings.app_name)

    logger.info("Starting %s...", settings.app_name)

    presenter = ConsolePresenter(settings.export_dir)
    coordinator = create_coordinator(presenter, settings=settings)
    coordinator.initialize()

    try:
        run_console_loop(coordinator)
    finally:
        coordinator.teardown()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
