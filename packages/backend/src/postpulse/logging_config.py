"""Centralized structlog configuration for the server process.

Learn: Modules just call structlog.get_logger() and log event names with
keyword context (logger.info("post.created", post_id=7)). This is the one
place that decides what gets printed and how: level filtering, the
request_id bound by RequestIdMiddleware (merged from contextvars), and
console vs JSON rendering.
"""

import logging

import structlog


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog. Safe to call more than once (last call wins)."""
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        level_no = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer pretty-prints exc_info itself
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        cache_logger_on_first_use=False,
    )
