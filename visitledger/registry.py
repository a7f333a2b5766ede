"""
The key registry: the only way to enumerate visits.

The ledger cannot list keys, so the ordered list of every visit id lives
as a single JSON array under REGISTRY_KEY. It is append-only.

``append`` is a plain read-modify-write with no locking. Two appends that
read the same prior state will each write back their own single addition
and one id is lost. Callers that need stronger guarantees must serialize
registry writers themselves.
"""

import json
import logging

from .errors import ParseFailure
from .protocol import RecordStoreProtocol
from .types import REGISTRY_KEY

logger = logging.getLogger(__name__)


def _parse_ids(data: bytes) -> list[str]:
    try:
        ids = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseFailure(REGISTRY_KEY, str(e)) from e
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise ParseFailure(REGISTRY_KEY, "expected a JSON array of strings")
    return ids


class KeyRegistry:
    """Ordered list of visit ids persisted under one store key."""

    def __init__(self, store: RecordStoreProtocol, key: str = REGISTRY_KEY):
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> list[str]:
        """
        Fetch the registry.

        Absent or empty registry -> []. A malformed registry also yields []
        after logging; enumeration degrades to "no visits" rather than
        failing. Store read errors propagate.
        """
        data = await self._store.get_data(self._key)
        if not data:
            return []
        try:
            return _parse_ids(data)
        except ParseFailure as e:
            logger.warning("Ignoring malformed registry: %s", e)
            return []

    async def append(self, visit_id: str) -> list[str]:
        """Add an id to the end of the registry and write it back.

        Returns the sequence that was written.
        """
        ids = await self.load()
        ids.append(visit_id)
        payload = json.dumps(ids, separators=(",", ":")).encode("utf-8")
        await self._store.set_data(self._key, payload)
        logger.debug("Registry now holds %d ids", len(ids))
        return ids
