# partim/utils/logger.py
"""
Centralised logging configuration for the entire application.
Logs to console and to a rotating file in logs/.
State changes on money and shifts additionally go to logs/audit.log
through the "partim.audit" logger (see audit_log()).
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from partim.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs"
)
os.makedirs(LOG_DIR, exist_ok=True)

AUDIT_LOGGER_NAME = "partim.audit"

_configured = False


def _rotating_handler(filename: str, fmt: logging.Formatter) -> RotatingFileHandler:
    # keeps last 10 x 5MB files
    handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, filename),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(fmt)
    return handler


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    root.addHandler(console)
    root.addHandler(_rotating_handler("partim.log", fmt))

    # Audit records propagate to root as well, so they also show on console
    logging.getLogger(AUDIT_LOGGER_NAME).addHandler(_rotating_handler("audit.log", fmt))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)


def audit_log(action: str, **fields):
    """Write one key=value audit line, e.g. audit_log("ticket.settle", ticket_id=4, amount=70)."""
    details = " ".join(f"{k}={v}" for k, v in fields.items())
    get_logger(AUDIT_LOGGER_NAME).info(f"{action} {details}".strip())
