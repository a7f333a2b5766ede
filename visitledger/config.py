"""
Configuration management for visit ledger stores.

The configuration is stored as a TOML file in the store directory.
It selects the record store backend, the remote ledger endpoint, the
default account, and the transaction workflow timings.
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import tomli_w

from .app import GUIDE_COMPUTE_DELAY
from .workflow import ERROR_RESET_DELAY, SUCCESS_RESET_DELAY


CONFIG_FILENAME = "visitledger.toml"
CONFIG_VERSION = 1

DEFAULT_BACKEND = "local"


@dataclass
class RemoteConfig:
    """Ledger gateway endpoint for the ``remote`` backend."""
    api_url: str = ""
    api_key: str = ""


@dataclass
class WorkflowConfig:
    """Timings for the transaction workflow, in seconds."""
    success_delay: float = SUCCESS_RESET_DELAY
    error_delay: float = ERROR_RESET_DELAY
    guide_compute_delay: float = GUIDE_COMPUTE_DELAY


@dataclass
class LedgerConfig:
    """Complete store configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    backend: str = DEFAULT_BACKEND
    account: str = ""
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def get_store_path(override: Optional[Path] = None) -> Path:
    """
    Resolve the store directory.

    Priority: explicit override, VISITLEDGER_STORE_PATH, ~/.visitledger
    """
    if override is not None:
        return Path(override).expanduser()
    env = os.environ.get("VISITLEDGER_STORE_PATH")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".visitledger"


def apply_env_overrides(config: LedgerConfig) -> LedgerConfig:
    """Environment variables win over the TOML file."""
    api_url = os.environ.get("VISITLEDGER_API_URL")
    api_key = os.environ.get("VISITLEDGER_API_KEY")
    account = os.environ.get("VISITLEDGER_ACCOUNT")
    if api_url:
        config.remote.api_url = api_url
        config.backend = "remote"
    if api_key:
        config.remote.api_key = api_key
    if account:
        config.account = account
    return config


def load_config(store_path: Path) -> LedgerConfig:
    """
    Load configuration from a store directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = store_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    store = data.get("store", {})
    # Validate version
    version = store.get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    remote = data.get("remote", {})
    workflow = data.get("workflow", {})
    try:
        workflow_config = WorkflowConfig(
            success_delay=float(workflow.get("success_delay", SUCCESS_RESET_DELAY)),
            error_delay=float(workflow.get("error_delay", ERROR_RESET_DELAY)),
            guide_compute_delay=float(workflow.get("guide_compute_delay", GUIDE_COMPUTE_DELAY)),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid [workflow] timing in {config_path}: {e}") from e

    return LedgerConfig(
        path=store_path,
        version=version,
        created=store.get("created", ""),
        backend=store.get("backend", DEFAULT_BACKEND),
        account=data.get("identity", {}).get("account", ""),
        remote=RemoteConfig(
            api_url=remote.get("api_url", ""),
            api_key=remote.get("api_key", ""),
        ),
        workflow=workflow_config,
    )


def save_config(config: LedgerConfig) -> None:
    """
    Save configuration to the store directory.

    Creates the directory if it doesn't exist.
    """
    # Ensure directory exists
    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "store": {
            "version": config.version,
            "created": config.created,
            "backend": config.backend,
        },
        "identity": {"account": config.account},
        "remote": {
            "api_url": config.remote.api_url,
            "api_key": config.remote.api_key,
        },
        "workflow": {
            "success_delay": config.workflow.success_delay,
            "error_delay": config.workflow.error_delay,
            "guide_compute_delay": config.workflow.guide_compute_delay,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(store_path: Path, apply_env: bool = True) -> LedgerConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management. Environment
    overrides are applied to the returned config; pass apply_env=False to
    get the config as stored, e.g. before writing it back.
    """
    config_path = store_path / CONFIG_FILENAME

    if config_path.exists():
        config = load_config(store_path)
    else:
        config = LedgerConfig(path=store_path)
        save_config(config)
    if apply_env:
        apply_env_overrides(config)
    return config
