"""
Structured logging for the tracker using structlog.
Provides JSON or console output with an optional log file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    log_file: Optional[str] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Add call site information to every event
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(getattr(logging, log_level.upper()))

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder())

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))

        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.debug(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class CycleLogger:
    """
    Logger for poll cycles with context management.
    """

    def __init__(self, name: str = "tracker"):
        self.logger = structlog.get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'CycleLogger':
        """
        Bind context variables to the logger.

        Args:
            **kwargs: Context variables to bind

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    def log_cycle_start(self, dry_run: bool = False, reset_baseline: bool = False) -> None:
        """Log cycle start."""
        self.logger.info(
            "Poll cycle started",
            dry_run=dry_run,
            reset_baseline=reset_baseline,
            **self.context
        )

    def log_snapshot_fetched(self, name: str, version: str) -> None:
        """Log a successful fetch."""
        self.logger.info(
            "Fetched current snapshot",
            name=name,
            version=version,
            **self.context
        )

    def log_baseline_skipped(self, reason: str, warning: bool = False) -> None:
        """Log that no comparison takes place this cycle."""
        level = "warning" if warning else "info"
        getattr(self.logger, level)(
            "Skipping comparison",
            reason=reason,
            **self.context
        )

    def log_change(self, field_name: str, delivered: bool) -> None:
        """Log a detected change."""
        self.logger.info(
            "Change detected",
            field=field_name,
            delivered=delivered,
            **self.context
        )

    def log_baseline_saved(self, path: str) -> None:
        """Log baseline persistence."""
        self.logger.debug(
            "Baseline saved",
            path=path,
            **self.context
        )

    def log_cycle_complete(self, changes: int, delivered: int, baseline_saved: bool) -> None:
        """Log cycle completion."""
        self.logger.info(
            "Poll cycle completed",
            changes=changes,
            delivered=delivered,
            baseline_saved=baseline_saved,
            **self.context
        )

    def log_error(self, error: str) -> None:
        """Log error with context."""
        self.logger.error(
            "Poll cycle failed",
            error=error,
            **self.context
        )
