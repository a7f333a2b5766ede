"""
Application state for the museum guide.

MuseumGuideApp is the one owned object holding what a UI shows: the active
account, the visit list (through the sync engine), the transaction status,
the search term and the creation draft. UIs subscribe for change
notifications and call its actions; nothing is kept in module globals.
"""

import asyncio
import logging
from typing import Callable, Optional

from .errors import DraftIncomplete, NotConnected, VisitLedgerError
from .protocol import IdentityProviderProtocol
from .sync_engine import VisitSyncEngine
from .types import DurationBar, Visit, VisitDraft, VisitStats
from .views import compute_stats, filter_visits, recent_durations
from .workflow import TransactionWorkflow, failure_message

logger = logging.getLogger(__name__)

GUIDE_COMPUTE_DELAY = 3.0  # seconds

SUBMIT_PENDING = "Encrypting museum path with FHE..."
SUBMIT_SUCCESS = "Encrypted visit submitted securely!"
SUBMIT_FAILED = "Submission failed"
GUIDE_PENDING = "Generating personalized audio guide with FHE..."
GUIDE_SUCCESS = "Personalized audio guide generated with FHE!"
GUIDE_FAILED = "Generation failed"


class MuseumGuideApp:
    """Owned application state with an update/subscribe contract."""

    def __init__(
        self,
        engine: VisitSyncEngine,
        *,
        workflow: Optional[TransactionWorkflow] = None,
        guide_compute_delay: float = GUIDE_COMPUTE_DELAY,
    ):
        self.engine = engine
        self.workflow = workflow or TransactionWorkflow()
        self.guide_compute_delay = guide_compute_delay

        self.account = ""
        self.search_term = ""
        self.draft = VisitDraft()
        self.show_create = False
        self.loading = True

        self._identity: Optional[IdentityProviderProtocol] = None
        self._identity_unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: list[Callable[["MuseumGuideApp"], None]] = []
        self.workflow.subscribe(lambda _status: self._notify())

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Callable[["MuseumGuideApp"], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def visits(self) -> tuple[Visit, ...]:
        return self.engine.visits

    @property
    def filtered_visits(self) -> list[Visit]:
        return filter_visits(self.engine.visits, self.search_term)

    @property
    def stats(self) -> VisitStats:
        return compute_stats(self.engine.visits)

    @property
    def duration_chart(self) -> list[DurationBar]:
        return recent_durations(self.engine.visits)

    @property
    def connected(self) -> bool:
        return self._identity is not None and bool(self.account)

    def is_owner(self, address: str) -> bool:
        return self.account.lower() == address.lower()

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    async def connect(self, identity: IdentityProviderProtocol) -> str:
        """Adopt an identity provider; its first account becomes active."""
        self.disconnect()
        accounts = await identity.request_accounts()
        self._identity = identity
        self.account = accounts[0] if accounts else ""
        self._identity_unsubscribe = identity.on_accounts_changed(self._on_accounts_changed)
        self._sync_store_account()
        logger.info("Connected account %r", self.account)
        self._notify()
        return self.account

    def disconnect(self) -> None:
        if self._identity_unsubscribe is not None:
            self._identity_unsubscribe()
        self._identity_unsubscribe = None
        self._identity = None
        self.account = ""
        self._sync_store_account()
        self._notify()

    def _on_accounts_changed(self, accounts: list[str]) -> None:
        self.account = accounts[0] if accounts else ""
        self._sync_store_account()
        logger.info("Active account changed to %r", self.account)
        self._notify()

    def _sync_store_account(self) -> None:
        # Remote stores sign writes with the active account
        set_account = getattr(self.engine.store, "set_account", None)
        if set_account is not None:
            set_account(self.account)

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def set_search_term(self, term: str) -> None:
        self.search_term = term
        self._notify()

    def open_create(self) -> None:
        self.show_create = True
        self._notify()

    def close_create(self) -> None:
        self.show_create = False
        self._notify()

    def update_draft(self, **fields: str) -> None:
        for name, value in fields.items():
            if not hasattr(self.draft, name):
                raise ValueError(f"Unknown draft field: {name}")
            setattr(self.draft, name, value)
        self._notify()

    def _clear_draft(self) -> None:
        self.draft = VisitDraft()
        self.show_create = False
        self._notify()

    async def refresh(self) -> list[Visit]:
        try:
            return await self.engine.load_all()
        finally:
            self.loading = False
            self._notify()

    async def submit_visit(self) -> Optional[str]:
        """
        Create a visit from the current draft.

        Raises NotConnected / DraftIncomplete before anything is written.
        Store failures are reported through the workflow and yield None.
        """
        if not self.connected:
            raise NotConnected("Please connect wallet first")
        missing = self.draft.missing_fields()
        if missing:
            raise DraftIncomplete(f"Please fill required fields: {', '.join(missing)}")

        draft = self.draft
        self.workflow.start(SUBMIT_PENDING)
        try:
            visit_id = await self.engine.create(
                draft.path, draft.duration, draft.preferences, self.account
            )
        except VisitLedgerError as e:
            logger.warning("Visit submission failed: %s", e)
            self.workflow.fail(failure_message(e, SUBMIT_FAILED))
            return None
        except Exception as e:
            logger.exception("Visit submission failed unexpectedly")
            self.workflow.fail(failure_message(e, SUBMIT_FAILED))
            return None
        self.workflow.succeed(SUBMIT_SUCCESS, on_reset=self._clear_draft)
        return visit_id

    async def generate_guide(self, visit_id: str) -> Optional[Visit]:
        """
        Generate a personalized audio guide for one of the account's visits.

        Failures (including not owning the visit) are reported through the
        workflow and yield None.
        """
        if not self.connected:
            raise NotConnected("Please connect wallet first")

        self.workflow.start(GUIDE_PENDING)
        try:
            # stand-in for the external encrypted computation
            await asyncio.sleep(self.guide_compute_delay)
            visit = await self.engine.generate_guide(visit_id, owner=self.account)
        except VisitLedgerError as e:
            logger.warning("Guide generation for %s failed: %s", visit_id, e)
            self.workflow.fail(failure_message(e, GUIDE_FAILED))
            return None
        except Exception as e:
            logger.exception("Guide generation for %s failed unexpectedly", visit_id)
            self.workflow.fail(failure_message(e, GUIDE_FAILED))
            return None
        self.workflow.succeed(GUIDE_SUCCESS)
        return visit
