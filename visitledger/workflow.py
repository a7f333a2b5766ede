"""
Transaction workflow: the single user-visible progress reporter.

    IDLE --start--> PENDING --succeed--> SUCCESS --(2s)--> IDLE
                           \\--fail-----> ERROR   --(3s)--> IDLE

There is one workflow per application. A new ``start`` overwrites whatever
is displayed and cancels a pending auto-reset; operations are not queued,
so overlapping operations clobber each other's status.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import CommitRejected
from .record_store import REJECTION_TEXT

logger = logging.getLogger(__name__)

SUCCESS_RESET_DELAY = 2.0  # seconds
ERROR_RESET_DELAY = 3.0  # seconds

REJECTED_MESSAGE = "Transaction rejected by user"


class Phase(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TransactionStatus:
    phase: Phase = Phase.IDLE
    message: str = ""

    @property
    def visible(self) -> bool:
        return self.phase is not Phase.IDLE


IDLE = TransactionStatus()

Listener = Callable[[TransactionStatus], None]


def failure_message(exc: BaseException, prefix: str) -> str:
    """User-facing message for a failed operation.

    A declined write gets the canonical rejection message; anything else is
    reported as ``"<prefix>: <error text>"``.
    """
    text = str(exc)
    if isinstance(exc, CommitRejected) or REJECTION_TEXT in text:
        return REJECTED_MESSAGE
    return f"{prefix}: {text or 'Unknown error'}"


class TransactionWorkflow:
    """Finite-state status reporter with timed auto-reset."""

    def __init__(
        self,
        *,
        success_delay: float = SUCCESS_RESET_DELAY,
        error_delay: float = ERROR_RESET_DELAY,
    ):
        self.success_delay = success_delay
        self.error_delay = error_delay
        self._status = IDLE
        self._listeners: list[Listener] = []
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        self._on_reset: Optional[Callable[[], None]] = None

    @property
    def status(self) -> TransactionStatus:
        return self._status

    @property
    def phase(self) -> Phase:
        return self._status.phase

    @property
    def message(self) -> str:
        return self._status.message

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` on every status change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, status: TransactionStatus) -> None:
        self._status = status
        logger.debug("Transaction %s: %s", status.phase.value, status.message)
        for listener in list(self._listeners):
            listener(status)

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
        self._on_reset = None

    def _schedule_reset(self, delay: float, on_reset: Optional[Callable[[], None]]) -> None:
        self._cancel_reset()
        self._on_reset = on_reset
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(delay, self._reset)

    def _reset(self) -> None:
        on_reset = self._on_reset
        self._reset_handle = None
        self._on_reset = None
        self._set(IDLE)
        if on_reset is not None:
            on_reset()

    def start(self, message: str) -> None:
        """Any state -> PENDING(message)."""
        self._cancel_reset()
        self._set(TransactionStatus(Phase.PENDING, message))

    def succeed(self, message: str, on_reset: Optional[Callable[[], None]] = None) -> None:
        """PENDING -> SUCCESS(message), then IDLE after ``success_delay``.

        ``on_reset`` runs when the auto-reset fires, unless a later
        ``start`` supersedes it first.
        """
        if self._status.phase is not Phase.PENDING:
            logger.warning("succeed() while %s; status was superseded", self._status.phase.value)
        self._set(TransactionStatus(Phase.SUCCESS, message))
        self._schedule_reset(self.success_delay, on_reset)

    def fail(self, message: str) -> None:
        """PENDING -> ERROR(message), then IDLE after ``error_delay``."""
        if self._status.phase is not Phase.PENDING:
            logger.warning("fail() while %s; status was superseded", self._status.phase.value)
        self._set(TransactionStatus(Phase.ERROR, message))
        self._schedule_reset(self.error_delay, None)

    def close(self) -> None:
        """Drop any scheduled reset without changing the displayed status."""
        self._cancel_reset()
