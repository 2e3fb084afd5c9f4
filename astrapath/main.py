"""Main application entry point for AstraPath."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from astrapath.scenario import ScenarioRunner, build_simulated_devices, load_scenario
from astrapath.services.companion_service import CompanionController
from astrapath.ui.console_view import ConsoleView

from . import __version__
from .config import AstraPathConfig

logger = logging.getLogger(__name__)


class CompanionApp:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = AstraPathConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)

    def init(self, scenario_path: str):
        # Initialize services
        logger.info("Initializing services...")

        self.scenario = load_scenario(scenario_path)
        self.devices = build_simulated_devices(self.scenario.devices)

        logger.info(f"Scenario '{self.scenario.name}': {len(self.scenario.steps)} steps")
        logger.info(f"Countdown: {self.config.get_countdown_seconds()}s, "
                    f"emergency number: {self.config.get('escalation.emergency_number', '112')}")

        self.view = ConsoleView(countdown_seconds=self.config.get_countdown_seconds())
        self.controller = CompanionController(self.config, **self.devices)
        self.runner = ScenarioRunner(self.controller, self.devices["transcription_backend"], self.scenario)

    def run(self):
        try:
            asyncio.run(self.runner.run())
        except Exception as e:
            logger.error(f"Error in run: {e}", exc_info=True)
            raise
        finally:
            self.cleanup()

    def cleanup(self):
        self.controller.shutdown()
        self.view.shutdown()

        telephony = self.devices["telephony"]
        logger.info(f"Dialed numbers: {telephony.dialed}")


FILE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
CONSOLE_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def _parse_level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def setup_logging(config, level: str = "INFO") -> None:
    """Route logs to the configured file and, optionally, to stderr.

    The file always receives DEBUG and up; the console only shows
    ``logging.console_level`` (WARNING by default) so it does not drown the
    rich view on stdout.
    """
    root_level = _parse_level(level)
    console_level = _parse_level(config.get('logging.console_level', 'WARNING'))
    log_file_path = Path(config.get_log_file_path())
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    handlers = [file_handler]

    if config.get('logging.console_output', True):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(root_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info(f"AstraPath v{__version__} logging to {log_file_path} at {level.upper()}")


def main() -> None:
    """Main entry point for AstraPath."""
    parser = argparse.ArgumentParser(
        description="AstraPath - Safe Companion distress detection",
        epilog="Scenario actions: toggle, consent, decline, transcript, error, end, "
               "cancel, close, sos, sos_confirm, sos_close"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--scenario",
        type=str,
        required=True,
        help="Path to a scenario YAML file to replay against simulated devices"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"AstraPath v{__version__}"
    )

    args = parser.parse_args()

    app = CompanionApp(args.config, args.log_level)
    try:
        app.init(args.scenario)
        app.run()
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
