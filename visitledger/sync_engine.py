"""
Visit sync engine: resolves the visit set and drives the write paths.

Enumeration goes registry -> per-key record fetch -> decode, one key at a
time. A bad key (unreadable, empty, malformed) is skipped and logged; it
never stops the rest of the registry from resolving.

Writes are two independent commits: the record, then the registry. If the
record commits and the registry append fails, the record is orphaned
(stored but never enumerable). Nothing here repairs that.
"""

import logging
import random
from typing import Optional

from .codec import VisitCodec
from .encryption import EncryptionStub, EncryptorProtocol
from .errors import NotFound, NotOwner, ParseFailure, StoreError
from .protocol import RecordStoreProtocol
from .registry import KeyRegistry
from .types import (
    DEFAULT_AUDIO_GUIDE,
    Visit,
    new_visit_id,
    now_epoch,
    parse_duration,
    record_key,
)

logger = logging.getLogger(__name__)


def generate_guide_label() -> str:
    """Label for a freshly generated audio guide."""
    return f"FHE-Generated Guide #{random.randrange(1000)}"


class VisitSyncEngine:
    """
    Owns the in-memory visit set and keeps it in line with the store.

    The set is replaced wholesale on every successful load; nothing else
    mutates it.
    """

    def __init__(
        self,
        store: RecordStoreProtocol,
        *,
        registry: Optional[KeyRegistry] = None,
        encryptor: Optional[EncryptorProtocol] = None,
        codec: Optional[VisitCodec] = None,
    ):
        self._store = store
        self._registry = registry or KeyRegistry(store)
        self._encryptor = encryptor or EncryptionStub()
        self._codec = codec or VisitCodec()
        self._visits: tuple[Visit, ...] = ()
        self._refreshing = False

    @property
    def store(self) -> RecordStoreProtocol:
        return self._store

    @property
    def registry(self) -> KeyRegistry:
        return self._registry

    @property
    def visits(self) -> tuple[Visit, ...]:
        """The visit set from the last successful load, most recent first."""
        return self._visits

    @property
    def refreshing(self) -> bool:
        return self._refreshing

    # -------------------------------------------------------------------------
    # Enumeration
    # -------------------------------------------------------------------------

    async def load_all(self) -> list[Visit]:
        """
        Resolve every registered visit, most recent first.

        An unavailable store is a silent no-op: returns [] and keeps the
        current in-memory set. A load already in progress makes this call
        return the current set without fetching (advisory guard only;
        writers are not held off).
        """
        if self._refreshing:
            logger.debug("Load already in progress, returning current set")
            return list(self._visits)

        self._refreshing = True
        try:
            try:
                if not await self._store.is_available():
                    logger.warning("Record store is not available")
                    return []
                ids = await self._registry.load()
            except StoreError as e:
                logger.warning("Failed to load visit registry: %s", e)
                return []
            except Exception as e:
                # third-party backends may not wrap their I/O errors
                logger.warning("Failed to load visit registry: %s: %s", type(e).__name__, e)
                return []

            visits = []
            for visit_id in ids:
                visit = await self._resolve(visit_id)
                if visit is not None:
                    visits.append(visit)

            # sort is stable; equal timestamps keep registry order
            visits.sort(key=lambda v: v.timestamp, reverse=True)
            self._visits = tuple(visits)
            logger.info("Loaded %d of %d registered visits", len(visits), len(ids))
            return visits
        finally:
            self._refreshing = False

    async def _resolve(self, visit_id: str) -> Optional[Visit]:
        """Fetch and decode one record; None if it should be skipped."""
        try:
            data = await self._store.get_data(record_key(visit_id))
        except StoreError as e:
            logger.warning("Error loading visit %s: %s", visit_id, e)
            return None
        except Exception as e:
            logger.warning("Error loading visit %s: %s: %s", visit_id, type(e).__name__, e)
            return None
        if not data:
            logger.debug("No record for registered visit %s", visit_id)
            return None
        try:
            return self._codec.decode(visit_id, data)
        except ParseFailure as e:
            logger.warning("Error parsing visit data for %s: %s", visit_id, e)
            return None

    # -------------------------------------------------------------------------
    # Write paths
    # -------------------------------------------------------------------------

    async def create(
        self,
        path: str,
        duration_input,
        preferences: str,
        visitor_id: str,
    ) -> str:
        """
        Record a new visit and register its id.

        Commits the record first, then appends to the registry. A failed
        record commit raises before the registry is touched. A failed
        append raises after the record is already stored.

        Returns:
            The new visit id
        """
        visit = Visit(
            id=new_visit_id(),
            encrypted_path=self._encryptor.encode(path, preferences),
            duration=parse_duration(duration_input),
            timestamp=now_epoch(),
            visitor=visitor_id,
            audio_guide=DEFAULT_AUDIO_GUIDE,
        )
        await self._store.set_data(record_key(visit.id), self._codec.encode(visit))
        logger.info("Stored visit %s", visit.id)

        await self._registry.append(visit.id)
        logger.info("Registered visit %s", visit.id)

        await self.load_all()
        return visit.id

    async def generate_guide(self, visit_id: str, owner: Optional[str] = None) -> Visit:
        """
        Replace a visit's audio guide label in place.

        The record key already exists, so the registry is left alone.
        When ``owner`` is given, the record must have been created by that
        account (compared case-insensitively).

        Raises:
            NotFound: if no record is stored for the id
            NotOwner: if ``owner`` did not create the visit
            ParseFailure: if the stored record is malformed
        """
        key = record_key(visit_id)
        data = await self._store.get_data(key)
        if not data:
            raise NotFound("Visit not found")

        visit = self._codec.decode(visit_id, data)
        if owner is not None and visit.visitor.lower() != owner.lower():
            raise NotOwner(f"Visit {visit_id} belongs to another account")
        visit = visit.with_audio_guide(generate_guide_label())
        await self._store.set_data(key, self._codec.encode(visit))
        logger.info("Generated audio guide for visit %s", visit_id)

        await self.load_all()
        return visit
