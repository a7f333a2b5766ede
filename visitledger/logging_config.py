"""
Logging configuration for visitledger.

Quiet by default: only warnings reach stderr. Debug mode and a persistent
operations log can be switched on separately.
"""

import logging
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Loggers of the libraries we talk through
_LIBRARY_LOGGERS = ("httpx", "httpcore")


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to suppress verbose library output.

    Args:
        quiet: If True, suppress verbose output. If False, show everything.
    """
    if quiet:
        warnings.filterwarnings("ignore", category=DeprecationWarning)
        for name in _LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    else:
        warnings.filterwarnings("default")
        for name in _LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(logging.NOTSET)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    # Re-enable warnings
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    for name in ("visitledger",) + _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG)


OPS_LOG_NAME = "visitledger-ops.log"

# The ops log handler currently attached to the package logger
_ops_handler = None


def configure_ops_log(store_path):
    """Send INFO and above from the ``visitledger`` logger to the store's ops log.

    The log rotates at 1 MB with 3 backups. Only one ops log is attached at
    a time: calling again for the same store returns the existing handler,
    and calling for another store replaces it.
    """
    global _ops_handler
    ledger_logger = logging.getLogger("visitledger")
    log_path = (Path(store_path) / OPS_LOG_NAME).resolve()

    if _ops_handler is not None:
        if Path(_ops_handler.baseFilename) == log_path:
            return _ops_handler
        ledger_logger.removeHandler(_ops_handler)
        _ops_handler.close()
        _ops_handler = None

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(str(log_path), maxBytes=1_000_000, backupCount=3)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    ledger_logger.addHandler(handler)
    if ledger_logger.level == logging.NOTSET or ledger_logger.level > logging.INFO:
        ledger_logger.setLevel(logging.INFO)

    _ops_handler = handler
    return handler
