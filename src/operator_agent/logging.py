"""Logging for the operator agent.

Everything logs under the `operator_agent` namespace through get_logger();
setup_logging() is called once by the CLI to attach a stderr handler to
that namespace.
"""

import logging
import os
import sys

LOG_LEVEL_ENV = "OPERATOR_AGENT_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach a stderr handler to the package logger and set its level.

    The level comes from the `level` argument (the --log-level flag), then
    the OPERATOR_AGENT_LOG_LEVEL environment variable, then WARNING. An
    unknown level name falls back to WARNING with a notice on stderr.
    Calling this again only adjusts the level of the existing handler.

    Returns:
        The `operator_agent` logger.
    """
    resolved_level = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()

    numeric_level = getattr(logging, resolved_level, None)
    if not isinstance(numeric_level, int):
        print(f"Warning: Invalid log level '{resolved_level}', using WARNING", file=sys.stderr)
        numeric_level = logging.WARNING

    logger = logging.getLogger("operator_agent")
    logger.setLevel(numeric_level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__ so it nests under `operator_agent`."""
    return logging.getLogger(name)
