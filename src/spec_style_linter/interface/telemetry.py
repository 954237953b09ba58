"""Console status output for the CLI, mirrored to the standard logging tree."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from spec_style_linter.domain.protocols import TelemetryPort

PACKAGE_LOGGER = "spec_style_linter"
TELEMETRY_LOGGER = "specstyle"


def configure_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """
    Route module loggers to stderr through rich. WARNING by default, DEBUG with --verbose.

    The telemetry logger only gets a NullHandler: its messages are already on the
    console, and host applications can attach their own handler to it.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=False,
        markup=False,
    )
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers = [handler]
    package_logger.setLevel(level)

    telemetry_logger = logging.getLogger(TELEMETRY_LOGGER)
    if not telemetry_logger.handlers:
        telemetry_logger.addHandler(logging.NullHandler())
    telemetry_logger.setLevel(logging.DEBUG)


class ProjectTelemetry(TelemetryPort):
    """User-facing status on stderr. Debug lines are shown only when DEBUG logging is on."""

    def __init__(self, project_name: str, color: str, welcome_message: str) -> None:
        self.project_name = project_name
        self.color = color
        self.welcome_message = welcome_message
        self.console = Console(stderr=True, highlight=False)
        self.logger = logging.getLogger(TELEMETRY_LOGGER)

    def handshake(self) -> None:
        self.console.print(f"[bold {self.color}]{self.project_name}[/] {escape(self.welcome_message)}")
        self.logger.info("%s %s", self.project_name, self.welcome_message)

    def step(self, message: str) -> None:
        self.console.print(f"[{self.color}]>[/] {escape(message)}")
        self.logger.info(message)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]error:[/] {escape(message)}")
        self.logger.error(message)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]warning:[/] {escape(message)}")
        self.logger.warning(message)

    def debug(self, message: str) -> None:
        if logging.getLogger(PACKAGE_LOGGER).isEnabledFor(logging.DEBUG):
            self.console.print(f"[dim]{escape(message)}[/]")
        self.logger.debug(message)
