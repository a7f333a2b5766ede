"""
visitledger: encrypted museum visit records on a key-value ledger.

Quick start::

    from visitledger import MemoryRecordStore, MuseumGuideApp, StaticIdentity, VisitSyncEngine

    guide = MuseumGuideApp(VisitSyncEngine(MemoryRecordStore()))
    await guide.connect(StaticIdentity(["0xabc"]))
    guide.update_draft(path="Impressionists, Jazz Wing", duration="45")
    visit_id = await guide.submit_visit()
"""

from .app import MuseumGuideApp
from .codec import VisitCodec
from .encryption import EncryptionStub
from .errors import (
    CommitFailed,
    CommitRejected,
    NotFound,
    ParseFailure,
    StoreError,
    VisitLedgerError,
)
from .identity import StaticIdentity
from .record_store import MemoryRecordStore, SqliteRecordStore
from .registry import KeyRegistry
from .sync_engine import VisitSyncEngine
from .types import Visit, VisitDraft
from .views import average_duration, compute_stats, filter_visits
from .workflow import Phase, TransactionStatus, TransactionWorkflow

__version__ = "0.1.0"

__all__ = [
    "CommitFailed",
    "CommitRejected",
    "EncryptionStub",
    "KeyRegistry",
    "MemoryRecordStore",
    "MuseumGuideApp",
    "NotFound",
    "ParseFailure",
    "Phase",
    "SqliteRecordStore",
    "StaticIdentity",
    "StoreError",
    "TransactionStatus",
    "TransactionWorkflow",
    "Visit",
    "VisitCodec",
    "VisitDraft",
    "VisitLedgerError",
    "VisitSyncEngine",
    "average_duration",
    "compute_stats",
    "filter_visits",
]
