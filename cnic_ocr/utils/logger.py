"""Logging setup shared by the CLI and the API server."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# httpx logs every request at INFO, httpcore logs wire events at DEBUG
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: str = "INFO", quiet_loggers: tuple[str, ...] = HTTP_CLIENT_LOGGERS
) -> None:
    """Attach a stdout handler to the root logger.

    Skipped entirely when the root logger already has handlers, e.g.
    under uvicorn or pytest. The loggers in ``quiet_loggers`` are held
    at WARNING or above so the API key header never reaches the log.

    Args:
        level: Logging level name; unknown names fall back to INFO.
        quiet_loggers: Third-party loggers to hold at WARNING.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
