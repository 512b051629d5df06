"""structlog setup for applications embedding planclone.

planclone is a library: importing it configures nothing. Library modules log
through stdlib ``logging.getLogger(__name__)`` and telemetry through
structlog; :func:`configure_logging` routes both through one stderr handler:

- console (default): key/value lines, colored on a TTY
- JSON (``log_json=True``): one JSON object per line

Only the ``planclone`` logger is raised to DEBUG by ``verbose``; every other
library stays at WARNING.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from planclone.config.settings import ClonerSettings

LIBRARY_LOGGER = "planclone"


def _shared_processors() -> list[structlog.types.Processor]:
    """Processors applied to structlog and foreign (stdlib) records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and structlog pipeline; safe to call repeatedly.

    Args:
        verbose: DEBUG for ``planclone`` loggers instead of WARNING.
        log_json: JSON lines instead of console output.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.WARNING)
    logging.getLogger(LIBRARY_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)


def configure_from_settings(settings: ClonerSettings) -> None:
    """Apply the ``[logging]`` section of *settings*."""
    configure_logging(verbose=settings.logging.verbose, log_json=settings.logging.log_json)
