"""
CLI interface for the museum visit ledger.

Usage:
    visitledger init --account 0xabc
    visitledger record "Impressionists, then the jazz wing" --duration 45
    visitledger list --search jazz
    visitledger guide 1718000000000-k3j9x2a
    visitledger stats
"""

import asyncio
import json
import os
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .app import MuseumGuideApp
from .backend import create_store
from .config import LedgerConfig, get_store_path, load_or_create_config, save_config
from .errors import VisitLedgerError
from .identity import StaticIdentity
from .logging_config import configure_ops_log, configure_quiet_mode, enable_debug_mode
from .sync_engine import VisitSyncEngine
from .types import DEFAULT_DURATION, Visit
from .workflow import Phase, TransactionStatus, TransactionWorkflow

# Configure quiet mode by default
# Set VISITLEDGER_VERBOSE=1 to enable debug mode via environment
if os.environ.get("VISITLEDGER_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"visitledger {version('visitledger')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_store_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _store_callback(value: Optional[Path]):
    global _store_override
    _store_override = value


app = typer.Typer(
    name="visitledger",
    help="Encrypted museum visit records on a key-value ledger.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        envvar="VISITLEDGER_STORE_PATH",
        help="Path to the store directory (default: ~/.visitledger/)",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Encrypted museum visit records on a key-value ledger."""


# -----------------------------------------------------------------------------
# Common Options
# -----------------------------------------------------------------------------

AccountOption = Annotated[
    Optional[str],
    typer.Option(
        "--account", "-a",
        help="Account that signs the write (default: [identity] account)",
    )
]


# -----------------------------------------------------------------------------
# Output Formatting
# -----------------------------------------------------------------------------

def _visit_date(timestamp: int) -> str:
    try:
        return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")
    except (OverflowError, OSError, ValueError):
        return str(timestamp)


def _format_visit(visit: Visit) -> str:
    return (
        f"#{visit.short_id}  {visit.duration:>4} min  {_visit_date(visit.timestamp)}  "
        f"{visit.audio_guide}  ({visit.visitor})"
    )


def _format_visits(visits: list[Visit], as_json: bool = False) -> str:
    if as_json:
        return json.dumps([asdict(v) for v in visits], indent=2)
    if not visits:
        return "No museum visits recorded yet."
    return "\n".join(_format_visit(v) for v in visits)


def _echo_status(status: TransactionStatus) -> None:
    if status.phase is Phase.IDLE:
        return
    typer.echo(f"[{status.phase.value}] {status.message}", err=True)


# -----------------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------------

def _load_config(apply_env: bool = True) -> LedgerConfig:
    store_path = get_store_path(_store_override)
    try:
        config = load_or_create_config(store_path, apply_env=apply_env)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: cannot load config from {store_path}: {e}", err=True)
        raise typer.Exit(1)
    if config.backend == "local":
        configure_ops_log(store_path)
    return config


def _build_app(config: LedgerConfig) -> MuseumGuideApp:
    try:
        store = create_store(config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    workflow = TransactionWorkflow(
        success_delay=config.workflow.success_delay,
        error_delay=config.workflow.error_delay,
    )
    workflow.subscribe(_echo_status)
    return MuseumGuideApp(
        VisitSyncEngine(store),
        workflow=workflow,
        guide_compute_delay=config.workflow.guide_compute_delay,
    )


async def _close(guide: MuseumGuideApp) -> None:
    guide.workflow.close()
    await guide.engine.store.close()


async def _connect(guide: MuseumGuideApp, config: LedgerConfig, account: Optional[str]) -> None:
    active = account or config.account
    if not active:
        typer.echo(
            "Error: no account. Pass --account or run 'visitledger init --account ID'.",
            err=True,
        )
        raise typer.Exit(1)
    await guide.connect(StaticIdentity([active]))


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def init(
    account: Annotated[Optional[str], typer.Option(
        "--account", "-a",
        help="Default account for writes",
    )] = None,
    backend: Annotated[Optional[str], typer.Option(
        "--backend", "-b",
        help="Record store backend: local, memory, remote, or an installed plugin",
    )] = None,
    api_url: Annotated[Optional[str], typer.Option(
        "--api-url",
        help="Ledger gateway URL for the remote backend",
    )] = None,
):
    """Create or update the store configuration."""
    config = _load_config(apply_env=False)
    if account is not None:
        config.account = account
    if backend is not None:
        config.backend = backend
    if api_url is not None:
        config.remote.api_url = api_url
        if backend is None:
            config.backend = "remote"
    save_config(config)
    typer.echo(f"Config written to {config.config_path}")


@app.command("list")
def list_visits(
    search: Annotated[str, typer.Option(
        "--search", "-q",
        help="Only visits whose audio guide or visitor contains this text",
    )] = "",
):
    """List recorded visits, most recent first."""
    config = _load_config()

    async def run() -> list[Visit]:
        guide = _build_app(config)
        try:
            await guide.refresh()
            guide.set_search_term(search)
            return guide.filtered_visits
        finally:
            await _close(guide)

    visits = asyncio.run(run())
    typer.echo(_format_visits(visits, as_json=_get_json_output()))


@app.command()
def stats():
    """Show visit count, total and average duration."""
    config = _load_config()

    async def run():
        guide = _build_app(config)
        try:
            await guide.refresh()
            return guide.stats, guide.duration_chart
        finally:
            await _close(guide)

    totals, chart = asyncio.run(run())
    if _get_json_output():
        typer.echo(json.dumps({
            **asdict(totals),
            "recent": [asdict(bar) for bar in chart],
        }, indent=2))
        return

    typer.echo(f"Total visits:     {totals.count}")
    typer.echo(f"Total duration:   {totals.total_duration} min")
    typer.echo(f"Average duration: {totals.average_duration} min")
    if chart:
        typer.echo("")
        typer.echo("Recent visit durations:")
        for bar in chart:
            typer.echo(f"  {bar.label:<6} {'#' * round(bar.ratio * 30):<30} {bar.duration} min")


@app.command()
def record(
    path: Annotated[str, typer.Argument(
        help="Exhibits visited, in order",
    )],
    duration: Annotated[str, typer.Option(
        "--duration", "-d",
        help="Minutes spent (defaults to 30 if not a number)",
    )] = "",
    preferences: Annotated[str, typer.Option(
        "--preferences", "-p",
        help="Art styles, periods, etc.",
    )] = "",
    account: AccountOption = None,
):
    """Record a visit. The path is encrypted before it is stored."""
    config = _load_config()

    async def run() -> Optional[str]:
        guide = _build_app(config)
        try:
            await _connect(guide, config, account)
            guide.update_draft(path=path, duration=duration or str(DEFAULT_DURATION), preferences=preferences)
            return await guide.submit_visit()
        finally:
            await _close(guide)

    try:
        visit_id = asyncio.run(run())
    except VisitLedgerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if visit_id is None:
        raise typer.Exit(1)
    typer.echo(json.dumps({"id": visit_id}) if _get_json_output() else visit_id)


@app.command()
def guide(
    visit_id: Annotated[str, typer.Argument(
        help="Visit id as printed by 'record'",
    )],
    account: AccountOption = None,
):
    """Generate a personalized audio guide for one of your visits."""
    config = _load_config()

    async def run() -> Optional[Visit]:
        guide_app = _build_app(config)
        try:
            await _connect(guide_app, config, account)
            await guide_app.refresh()
            return await guide_app.generate_guide(visit_id)
        finally:
            await _close(guide_app)

    try:
        visit = asyncio.run(run())
    except VisitLedgerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if visit is None:
        raise typer.Exit(1)
    if _get_json_output():
        typer.echo(json.dumps(asdict(visit), indent=2))
    else:
        typer.echo(_format_visit(visit))


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="visitledger CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
