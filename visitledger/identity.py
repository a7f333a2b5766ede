"""
Static identity provider.

Stands in for a wallet-style account provider: a fixed, ordered list of
accounts with an explicit way to switch the active one.
"""

import logging
from typing import Callable, Iterable

logger = logging.getLogger(__name__)


class StaticIdentity:
    """Identity provider backed by a plain list of account ids."""

    def __init__(self, accounts: Iterable[str] = ()):
        self._accounts = [a for a in accounts if a]
        self._callbacks: list[Callable[[list[str]], None]] = []

    async def request_accounts(self) -> list[str]:
        return list(self._accounts)

    def on_accounts_changed(
        self, callback: Callable[[list[str]], None]
    ) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def switch_account(self, account: str) -> None:
        """Make ``account`` the active one (empty string disconnects)."""
        if account:
            self._accounts = [account] + [a for a in self._accounts if a != account]
        else:
            self._accounts = []
        logger.debug("Active account changed to %r", account)
        for callback in list(self._callbacks):
            callback(list(self._accounts))
