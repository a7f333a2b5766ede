"""
Protocol definitions for the external collaborators visitledger talks to.

- RecordStoreProtocol: the remote ledger, get/set of opaque blobs by key
- IdentityProviderProtocol: the account provider that signs writes
"""

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class RecordStoreProtocol(Protocol):
    """
    Key -> bytes ledger with independent get/set per key.

    No listing, no multi-key transactions. Implemented by:
    - MemoryRecordStore (in-process, tests and the ``memory`` backend)
    - SqliteRecordStore (local file, the ``local`` backend)
    - HttpRecordStore (ledger gateway, the ``remote`` backend)
    """

    async def is_available(self) -> bool: ...

    async def get_data(self, key: str) -> bytes:
        """Return the stored blob, or ``b""`` when the key is absent.

        Read failures should raise StoreError. Callers that enumerate
        still treat any exception from one key as that key's failure.
        """
        ...

    async def set_data(self, key: str, value: bytes) -> None:
        """Commit a blob.

        Raises CommitRejected if the acting identity declines the write,
        CommitFailed for any other failure.
        """
        ...

    async def close(self) -> None: ...


@runtime_checkable
class IdentityProviderProtocol(Protocol):
    """Source of the active account identifier."""

    async def request_accounts(self) -> list[str]:
        """Ordered account ids; the first is the active account."""
        ...

    def on_accounts_changed(
        self, callback: Callable[[list[str]], None]
    ) -> Callable[[], None]:
        """Register for account changes. Returns an unsubscribe callable."""
        ...
