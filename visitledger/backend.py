"""
Pluggable record store factory.

Creates the record store named by the configuration. Built-in backends:

- ``memory``: MemoryRecordStore, nothing persisted
- ``local``: SqliteRecordStore at ``<store>/records.db``
- ``remote``: HttpRecordStore against ``[remote] api_url``

External backends register via the ``visitledger.backends`` entry point
group. They provide a factory function::

    def create_store(config: LedgerConfig) -> RecordStoreProtocol:
        ...

and register it in their pyproject.toml::

    [project.entry-points."visitledger.backends"]
    my-ledger = "my_package.backend:create_store"
"""

from .config import LedgerConfig
from .protocol import RecordStoreProtocol

RECORDS_DB = "records.db"


def create_store(config: LedgerConfig) -> RecordStoreProtocol:
    """Create the record store for ``config.backend``."""
    if config.backend == "memory":
        from .record_store import MemoryRecordStore
        return MemoryRecordStore()
    if config.backend == "local":
        from .record_store import SqliteRecordStore
        return SqliteRecordStore(config.path / RECORDS_DB)
    if config.backend == "remote":
        return _create_remote_store(config)
    return _load_backend(config.backend, config)


def _create_remote_store(config: LedgerConfig) -> RecordStoreProtocol:
    from .http_store import HttpRecordStore

    if not config.remote.api_url:
        raise ValueError(
            "Remote backend needs an API URL. "
            "Set [remote] api_url in visitledger.toml or VISITLEDGER_API_URL."
        )
    return HttpRecordStore(
        config.remote.api_url,
        config.remote.api_key or None,
        account=config.account or None,
    )


def _load_backend(name: str, config: LedgerConfig) -> RecordStoreProtocol:
    """Load a backend by entry point name."""
    from importlib.metadata import entry_points

    eps = entry_points(group="visitledger.backends")
    for ep in eps:
        if ep.name == name:
            factory = ep.load()
            return factory(config)

    available = [ep.name for ep in eps]
    if available:
        raise ValueError(
            f"Unknown backend: {name!r}. Available: {available}"
        )
    raise ValueError(
        f"Unknown backend: {name!r}. Built-in backends are 'memory', 'local' and 'remote'."
    )
