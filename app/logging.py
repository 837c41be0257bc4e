"""
Logging for the pricing service: one stdout handler configured from LOG_LEVEL.
Unhandled errors are logged with log.exception in app/main.py.
"""
import logging
import sys

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# Follow LOG_LEVEL exactly
SERVICE_LOGGERS = ("bazar", "uvicorn", "uvicorn.error", "uvicorn.access")
# Library chatter stays at WARNING unless LOG_LEVEL is DEBUG
LIBRARY_LOGGERS = ("sqlalchemy.engine", "alembic", "slowapi")


def resolve_level(level: int | str) -> int:
    """'info' / 'INFO' / 20 -> 20. Unknown names raise instead of silently logging at WARNING."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(level: int | str = logging.INFO, format_string: str | None = None) -> int:
    numeric = resolve_level(level)
    logging.basicConfig(
        level=numeric,
        format=format_string or DEFAULT_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in SERVICE_LOGGERS:
        logging.getLogger(name).setLevel(numeric)
    library_level = numeric if numeric <= logging.DEBUG else max(numeric, logging.WARNING)
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
    return numeric
