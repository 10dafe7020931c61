"""structlog setup for the monitor.

Log events are snake_case strings with key/value fields, e.g.
logger.info("sample_recorded", hour=9, buy_price="41.20"). Fields bound
with tick_context() are merged into every event emitted inside a tick,
including events from the quote source and the store.
"""

import logging
from contextlib import AbstractContextManager

import structlog

# third-party loggers that log every request at INFO
_NOISY_LOGGERS = ("aiohttp.access", "uvicorn.access")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Route structlog through stdlib logging with one stream handler.

    Args:
        log_level: Root level name (DEBUG, INFO, ...). Unknown names fall back to INFO.
        log_format: "json" for machine-readable lines, anything else for the
            colored console renderer.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def tick_context(tick: int, min_amount: int, bank: str | None) -> AbstractContextManager:
    """Bind the sampling parameters of one tick to every log event inside it."""
    return structlog.contextvars.bound_contextvars(
        tick=tick, min_amount=min_amount, bank=bank or "all"
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)
