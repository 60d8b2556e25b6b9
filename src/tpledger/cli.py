"""Typer-based CLI for tpledger."""

import json
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ConfigError, LedgerConfig
from .context import AuthorizationContext
from .errors import LedgerError
from .ledger import TrustLedger

app = typer.Typer(
    name="tpledger",
    help="tpledger - permissioned trust & performance ledger",
    add_completion=False,
)

source_app = typer.Typer(help="Source registry commands")
app.add_typer(source_app, name="source")

action_app = typer.Typer(help="Action log commands")
app.add_typer(action_app, name="action")

score_app = typer.Typer(help="Scoring queries (not implemented; always 0.0)")
app.add_typer(score_app, name="score")

console = Console()

DB_HELP = "Path to ledger database (default: TPLEDGER_DB env or ./tpledger_data/ledger.sqlite)"
AS_HELP = "Caller identity (default: TPLEDGER_CALLER env or config caller_id)"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(db_path: Optional[str]) -> LedgerConfig:
    try:
        return LedgerConfig.from_env(cli_db_path=db_path)
    except ConfigError as e:
        _fail(e)


def _open(db_path: Optional[str], must_exist: bool = False) -> tuple[LedgerConfig, TrustLedger]:
    config = _load_config(db_path)
    if must_exist and not config.db_path.exists():
        console.print(f"[red]Error: Ledger not found at {escape(str(config.db_path))}[/red]")
        console.print("[yellow]Run 'tpledger init' first or check --db[/yellow]")
        raise typer.Exit(code=1)
    return config, TrustLedger.open(config.db_path)


def _auth(config: LedgerConfig, caller: Optional[str]) -> AuthorizationContext:
    caller_id = caller or config.caller_id
    if not caller_id:
        console.print("[red]Error: No caller identity; pass --as or set TPLEDGER_CALLER[/red]")
        raise typer.Exit(code=1)
    return AuthorizationContext.for_caller(caller_id, config.controller_id)


def _fail(e: Exception) -> NoReturn:
    console.print(f"[red]Error: {escape(str(e))}[/red]")
    raise typer.Exit(code=1)


@app.command()
def init(
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
    write_config: bool = typer.Option(
        False,
        "--write-config",
        help="Also write .tpledger/config.toml in the current directory",
    ),
):
    """Create the ledger database (idempotent)."""
    config = _load_config(db_path)
    existed = config.db_path.exists()

    with TrustLedger.open(config.db_path):
        pass

    if existed:
        console.print(f"[dim]Ledger already exists: {config.db_path}[/dim]")
    else:
        console.print(f"[green]+[/green] Created ledger: {config.db_path}")

    if write_config:
        config_file = Path.cwd() / ".tpledger" / "config.toml"
        if config_file.exists():
            console.print(f"[dim]Config already exists: {config_file}[/dim]")
        else:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            config_file.write_text(config.to_toml_str())
            console.print(f"[green]+[/green] Created config: {config_file}")


@source_app.command("add")
def source_add(
    identity: str = typer.Argument(..., help="Source identity to register"),
    label: str = typer.Argument(..., help="Display label for the source"),
    caller: str = typer.Option(None, "--as", help=AS_HELP),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """Register a source (controller only)."""
    config, ledger = _open(db_path)
    with ledger:
        try:
            ledger.add_source(_auth(config, caller), identity, label)
        except LedgerError as e:
            _fail(e)
    console.print(f"[green]+[/green] Registered [cyan]{identity}[/cyan] as [magenta]{label}[/magenta]")


@source_app.command("remove")
def source_remove(
    identity: str = typer.Argument(..., help="Source identity to deregister"),
    caller: str = typer.Option(None, "--as", help=AS_HELP),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """Deregister a source (controller only). Its recorded actions are kept."""
    config, ledger = _open(db_path)
    with ledger:
        try:
            ledger.remove_source(_auth(config, caller), identity)
        except LedgerError as e:
            _fail(e)
    console.print(f"[green]-[/green] Deregistered [cyan]{identity}[/cyan]")


@source_app.command("list")
def source_list(
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """List registered sources."""
    _, ledger = _open(db_path, must_exist=True)
    with ledger:
        sources = ledger.list_sources()

    if not sources:
        console.print("[dim]No sources registered[/dim]")
        return

    table = Table(title=f"{len(sources)} Source(s)")
    table.add_column("Identity", style="cyan", no_wrap=True)
    table.add_column("Label", style="magenta")
    for s in sources:
        table.add_row(s.identity, s.label)
    console.print(table)


@source_app.command("types")
def source_types(
    identity: str = typer.Argument(..., help="Source identity"),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """Show the action types a source has written, in first-seen order."""
    _, ledger = _open(db_path, must_exist=True)
    with ledger:
        try:
            types = ledger.get_source_action_types(identity)
        except LedgerError as e:
            _fail(e)
    for action_type in types:
        console.print(action_type)


@action_app.command("save")
def action_save(
    did: str = typer.Option(..., "--did", help="Subject DID"),
    trust: float = typer.Option(..., "--trust", help="Trust score"),
    performance: float = typer.Option(..., "--performance", help="Performance score"),
    action_type: str = typer.Option(..., "--type", help="Action type"),
    action_date: str = typer.Option(..., "--date", help="Action date (opaque)"),
    identifier: str = typer.Option(..., "--id", help="Correlation identifier"),
    caller: str = typer.Option(None, "--as", help=AS_HELP),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """Record one action as the calling source."""
    config, ledger = _open(db_path)
    with ledger:
        try:
            ledger.save_action(
                _auth(config, caller),
                did,
                trust,
                performance,
                action_type,
                action_date,
                identifier,
            )
        except LedgerError as e:
            _fail(e)
    console.print(f"[green]+[/green] Recorded [magenta]{action_type}[/magenta] for {did}")


@action_app.command("batch")
def action_batch(
    file: Path = typer.Argument(..., help="JSON file holding an array of action records"),
    caller: str = typer.Option(None, "--as", help=AS_HELP),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """Record a batch of actions from a JSON file as the calling source.

    Each record has trust, performance, action_type, action_date,
    account_did and identifier.
    """
    try:
        records = json.loads(file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _fail(e)
    if not isinstance(records, list):
        _fail(ValueError("Batch file must contain a JSON array"))

    config, ledger = _open(db_path)
    with ledger:
        try:
            ledger.save_actions_batch(_auth(config, caller), records)
        except (LedgerError, ValidationError) as e:
            _fail(e)
    console.print(f"[green]+[/green] Recorded {len(records)} action(s)")


@action_app.command("list")
def action_list(
    label: str = typer.Option(..., "--label", help="Source label to filter by"),
    did: str = typer.Option(..., "--did", help="Subject DID"),
    kind: str = typer.Option("all", "--kind", help="all, trust or performance"),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """List a subject's actions written under a source label."""
    queries = {
        "all": TrustLedger.get_user_actions,
        "trust": TrustLedger.get_user_trust_actions,
        "performance": TrustLedger.get_user_performance_actions,
    }
    if kind not in queries:
        _fail(ValueError(f"Unknown kind: {kind}"))

    _, ledger = _open(db_path, must_exist=True)
    with ledger:
        try:
            actions = queries[kind](ledger, label, did)
        except LedgerError as e:
            _fail(e)

    if not actions:
        console.print("[dim]No matching actions[/dim]")
        return

    table = Table(title=f"{len(actions)} Action(s) for {did}")
    table.add_column("Block Date", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Trust", justify="right")
    table.add_column("Performance", justify="right")
    table.add_column("Action Date")
    table.add_column("Identifier", style="yellow")
    table.add_column("Source", style="dim")
    for a in actions:
        table.add_row(
            a.block_date,
            a.action_type,
            f"{a.trust:g}",
            f"{a.performance:g}",
            a.action_date,
            a.identifier,
            a.source,
        )
    console.print(table)


@score_app.command("trust")
def score_trust(
    label: str = typer.Argument(..., help="Source label"),
    did: str = typer.Argument(..., help="Subject DID"),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """Trust score for a subject (always 0.0)."""
    _, ledger = _open(db_path, must_exist=True)
    with ledger:
        console.print(f"{ledger.get_user_trust(label, did):g}")


@score_app.command("performance")
def score_performance(
    label: str = typer.Argument(..., help="Source label"),
    did: str = typer.Argument(..., help="Subject DID"),
    db_path: str = typer.Option(None, "--db", help=DB_HELP),
):
    """Performance score for a subject (always 0.0)."""
    _, ledger = _open(db_path, must_exist=True)
    with ledger:
        console.print(f"{ledger.get_user_performance(label, did):g}")


@app.command()
def version():
    """Show tpledger version."""
    from . import __version__
    console.print(f"tpledger v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
