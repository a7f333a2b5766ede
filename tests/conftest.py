"""
Shared pytest fixtures for visitledger tests.

Everything runs against MemoryRecordStore, so no network or disk is
touched unless a test asks for tmp_path explicitly.
"""

import json

import pytest

from visitledger.app import MuseumGuideApp
from visitledger.codec import VisitCodec
from visitledger.record_store import MemoryRecordStore
from visitledger.sync_engine import VisitSyncEngine
from visitledger.types import REGISTRY_KEY, Visit, record_key
from visitledger.workflow import TransactionWorkflow

# Short enough that tests can wait out the auto-reset
FAST_DELAY = 0.01


def make_visit(
    id: str = "1700000000000-abc1234",
    *,
    duration: int = 30,
    timestamp: int = 1_700_000_000,
    visitor: str = "0xAlice",
    audio_guide: str = "Generated with FHE",
    encrypted_path: str = "FHE-e30=",
) -> Visit:
    """Create a test Visit."""
    return Visit(
        id=id,
        encrypted_path=encrypted_path,
        duration=duration,
        timestamp=timestamp,
        visitor=visitor,
        audio_guide=audio_guide,
    )


def seed_store(store: MemoryRecordStore, *visits: Visit, extra_ids=()) -> None:
    """Write records and a registry listing them (plus ``extra_ids``) directly."""
    ids = [v.id for v in visits] + list(extra_ids)
    store._data[REGISTRY_KEY] = json.dumps(ids).encode("utf-8")
    for visit in visits:
        store._data[record_key(visit.id)] = VisitCodec.encode(visit)


@pytest.fixture
def store():
    """Empty in-memory record store."""
    return MemoryRecordStore()


@pytest.fixture
def engine(store):
    return VisitSyncEngine(store)


@pytest.fixture
def workflow():
    """Workflow with near-instant auto-reset."""
    return TransactionWorkflow(success_delay=FAST_DELAY, error_delay=FAST_DELAY)


@pytest.fixture
def guide_app(engine, workflow):
    """Application state with no simulated compute delay."""
    return MuseumGuideApp(engine, workflow=workflow, guide_compute_delay=0)
