import logging
import sys

LOGGER_NAME = "mpi_hypercube"
FORMAT = "mpi_hypercube(%(rank)s): %(levelname)s: %(message)s"


class _RankDefault(logging.Filter):
    def filter(self, record):
        if not hasattr(record, "rank"):
            record.rank = "-"
        return True


class RankStreamHandler(logging.StreamHandler):
    """The package's stderr handler; at most one is installed."""


def setup_logging(level="WARNING", stream=None):
    """Install the stderr handler on the package logger (once)."""
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    for handler in logger.handlers:
        if isinstance(handler, RankStreamHandler):
            return logger
    handler = RankStreamHandler(stream or sys.stderr)
    handler.addFilter(_RankDefault())
    handler.setFormatter(logging.Formatter(FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(ctx, name=LOGGER_NAME):
    return logging.LoggerAdapter(logging.getLogger(name), {"rank": ctx.rank})
