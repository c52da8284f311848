"""structlog setup for the formgraph CLI.

Library modules log through plain ``logging.getLogger(__name__)``; this
module routes those records through structlog's ``ProcessorFormatter`` so
they come out on stderr either as console lines or, with ``--log-json``,
as one JSON object per line.
"""

from __future__ import annotations

import logging
import sys

import structlog

QUERY_LOGGER = "formgraph.infrastructure.database.engine"

# Third-party loggers that stay quiet even in verbose mode.
_QUIET_LIBRARIES = ("sqlalchemy",)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    echo_queries: bool = False,
) -> None:
    """Install the stderr handler and set formgraph log levels.

    Args:
        verbose: DEBUG for every formgraph logger (dispense/load/filter
            decisions and each executed query). WARNING otherwise.
        log_json: Render JSON lines instead of console output.
        echo_queries: Keep the query logger at INFO even when not verbose,
            so ``database.echo_queries`` output is visible.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("formgraph").setLevel(logging.DEBUG if verbose else logging.WARNING)
    query_logger = logging.getLogger(QUERY_LOGGER)
    if echo_queries and not verbose:
        query_logger.setLevel(logging.INFO)
    else:
        query_logger.setLevel(logging.NOTSET)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
