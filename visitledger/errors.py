"""
Error types and error logging for visitledger.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class VisitLedgerError(Exception):
    """Base class for visitledger errors."""


class StoreError(VisitLedgerError):
    """Reading from the record store failed."""


class StoreUnavailable(StoreError):
    """The record store reported itself unavailable."""


class CommitFailed(VisitLedgerError):
    """A write to the record store did not commit."""


class CommitRejected(CommitFailed):
    """The acting identity declined the write."""


class ParseFailure(VisitLedgerError):
    """A registry or record blob could not be decoded."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Cannot parse {key}: {reason}")
        self.key = key
        self.reason = reason


class NotFound(VisitLedgerError):
    """No record exists under the requested visit id."""


class NotConnected(VisitLedgerError):
    """A write was attempted without a connected account."""


class NotOwner(VisitLedgerError):
    """The active account does not own the visit."""


class DraftIncomplete(VisitLedgerError):
    """The visit draft is missing a required field."""


ERROR_LOG_NAME = "visitledger-errors.log"


def _error_log_path() -> Path:
    store = os.environ.get("VISITLEDGER_STORE_PATH")
    base = Path(store) if store else Path.home() / ".visitledger"
    return base / ERROR_LOG_NAME


def log_exception(exc: BaseException, context: str = "") -> Path:
    """
    Append the traceback of ``exc`` to the store's error log.

    The log is created owner-readable only. If it cannot be written the
    failure is ignored; the caller still gets the path it tried.

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    header = f"--- {stamp} {context}".rstrip()
    body = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"{header}\n{body}\n")
    except OSError:
        pass
    return log_path
