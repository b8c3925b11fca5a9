"""Logging setup for applications using the client.

The library itself only calls ``structlog.get_logger``; applications that want
structured output call :func:`configure_logging` once at startup.
"""

import logging

import structlog


def configure_logging(log_level_name: str, json_output: bool = False) -> None:
    """Configure structlog for logfmt (default) or JSON-lines output.

    Args:
        log_level_name: Standard level name; unknown names fall back to INFO.
        json_output: Render one JSON object per line instead of logfmt.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.processors.LogfmtRenderer(
            key_order=("timestamp", "level", "msg"),
        )
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
