"""
FundRegistry - Command Line Interface
=======================================
CLI operatore per il registry di campagne.

Last Updated: 2026-10-18
Version: 1.0.0

Commands:
- init / status / version: gestione registry
- create, contribute, lock, unlock, end, withdraw: ciclo di vita campagne
- campaign, list, contribution, events: query
- admin: grant admin campagna
- config: amministratore, fee, pausa

Lo stato e' persistito su SQLite (--db); ogni comando carica lo snapshot,
esegue l'operazione come --caller all'altezza --height e salva.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Iterator

import typer
from pydantic import ValidationError as SettingsValidationError
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Internal imports
from fund_registry.config import RegistrySettings, get_settings, validate_config
from fund_registry.constants import format_amount
from fund_registry.domain.ledger import RecordingLedger
from fund_registry.domain.models import Campaign
from fund_registry.domain.registry import FundRegistry
from fund_registry.errors import FundRegistryException, RegistryError, InvalidConfigError
from fund_registry.logging_setup import setup_logging_from_settings, get_logger, AuditLogger
from fund_registry.storage.db import RegistryDatabase
from fund_registry.utils.serialization import serialize_to_json
from fund_registry.version import get_build_info


# ============================================================================
# CLI APP
# ============================================================================

app = typer.Typer(
    name="fundregistry",
    help="FundRegistry - Crowdfunding Campaign Registry CLI",
    add_completion=False
)

console = Console()

logger = get_logger("cli")


# ============================================================================
# GLOBAL STATE
# ============================================================================

class CLIState:
    """Global CLI state"""
    config: Optional[RegistrySettings] = None
    db_path: Optional[Path] = None
    caller: Optional[str] = None
    height: int = 0
    audit_logger: Optional[AuditLogger] = None


state = CLIState()


def _format_error(error: FundRegistryException) -> str:
    if isinstance(error, RegistryError):
        return f"[{int(error.error_code)}] {error.code}: {error.message}"
    return f"[{error.code}] {error.message}"


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(1)


@contextmanager
def registry_session(write: bool = True) -> Iterator[FundRegistry]:
    """
    Carica il registry dal database, lo espone al comando e salva lo
    snapshot se il comando termina senza errori.
    """
    try:
        database = RegistryDatabase(state.db_path)
    except FundRegistryException as e:
        _fail(f"Error: {_format_error(e)}")

    try:
        snapshot = database.load_snapshot()
        if snapshot is None:
            _fail("Registry not initialized. Run 'fundregistry init' first.")

        registry = FundRegistry.from_snapshot(
            snapshot,
            config=state.config,
            ledger=RecordingLedger(),
            audit_logger=state.audit_logger,
        )

        yield registry

        if write:
            database.save_snapshot(registry.snapshot())

    except FundRegistryException as e:
        logger.warning("Command rejected", extra_data=e.to_dict())
        _fail(f"Error: {_format_error(e)}")

    finally:
        database.close()


def _load_settings() -> RegistrySettings:
    """
    Carica e valida i settings.

    Raises:
        InvalidConfigError: Settings non parsabili o incoerenti
    """
    try:
        config = get_settings()
    except SettingsValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise InvalidConfigError(
            f"Invalid settings: {'; '.join(problems)}",
            code="INVALID_CONFIG",
            details={"errors": problems}
        ) from e

    is_valid, problems = validate_config(config)
    if not is_valid:
        raise InvalidConfigError(
            f"Invalid settings: {'; '.join(problems)}",
            code="INVALID_CONFIG",
            details={"errors": problems}
        )

    return config


def _campaign_table(campaigns: list, title: str = "Campaigns") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Raised / Goal", justify="right")
    table.add_column("Deadline", justify="right")
    table.add_column("Status")
    table.add_column("Creator", style="dim")

    for c in campaigns:
        table.add_row(
            str(c.campaign_id),
            escape(c.name),
            f"{format_amount(c.raised)} / {format_amount(c.goal)}",
            str(c.deadline),
            _campaign_status(c),
            escape(c.creator),
        )

    return table


def _campaign_status(campaign: Campaign) -> str:
    if not campaign.active:
        return "[red]ended[/red]"
    if campaign.funds_locked:
        return "[yellow]locked[/yellow]"
    return "[green]active[/green]"


# ============================================================================
# REGISTRY COMMANDS
# ============================================================================

@app.command("init")
def registry_init(
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing registry"
    )
):
    """Initialize a new registry from settings"""
    try:
        database = RegistryDatabase(state.db_path)
    except FundRegistryException as e:
        _fail(f"Error: {_format_error(e)}")

    try:
        if database.has_state() and not force:
            _fail(f"Registry already initialized at {state.db_path}. Use --force to overwrite.")

        registry = FundRegistry(config=state.config, ledger=RecordingLedger())
        database.save_snapshot(registry.snapshot())

    except FundRegistryException as e:
        _fail(f"Error: {_format_error(e)}")

    finally:
        database.close()

    console.print(Panel.fit(
        f"[green]Registry initialized[/green]\n\n"
        f"Database: [cyan]{escape(str(state.db_path))}[/cyan]\n"
        f"Administrator: [cyan]{escape(registry.get_admin())}[/cyan]\n"
        f"Creation fee: [cyan]{format_amount(registry.get_creation_fee())}[/cyan]\n"
        f"Max campaigns: [cyan]{state.config.max_campaigns}[/cyan]",
        title="FundRegistry",
        border_style="green"
    ))


@app.command("status")
def registry_status():
    """Show registry configuration"""
    with registry_session(write=False) as registry:
        registry_state = registry.get_state()
        campaigns = registry.list_campaigns()

    table = Table(title="Registry Status", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Administrator", escape(registry_state.admin))
    table.add_row("Creation fee", format_amount(registry_state.creation_fee))
    table.add_row("Paused", "yes" if registry_state.paused else "no")
    table.add_row("Campaign count", str(registry_state.next_campaign_id))
    table.add_row("Max campaigns", str(registry_state.max_campaigns))
    table.add_row("Active campaigns", str(sum(1 for c in campaigns if c.active)))
    table.add_row("Funds in custody", format_amount(sum(c.raised for c in campaigns)))

    console.print(table)


@app.command("version")
def show_version():
    """Show version information"""
    info = get_build_info()
    console.print(f"FundRegistry {info['version']} (snapshot format {info['snapshot_format']})")


# ============================================================================
# CAMPAIGN LIFECYCLE COMMANDS
# ============================================================================

@app.command("create")
def campaign_create(
    name: str = typer.Argument(..., help="Campaign name (1-100 chars)"),
    goal: int = typer.Argument(..., help="Funding goal"),
    duration: int = typer.Argument(..., help="Duration in blocks"),
    description: str = typer.Option("", "--description", "-d", help="Campaign description")
):
    """Create a campaign (charges the creation fee)"""
    with registry_session() as registry:
        campaign_id = registry.create_campaign(
            state.caller, state.height, name, description, goal, duration
        )
        campaign = registry.get_campaign(campaign_id)

    console.print(
        f"[green]Campaign {campaign_id} created[/green] "
        f"(deadline {campaign.deadline}, creator {escape(campaign.creator)})"
    )


@app.command("contribute")
def campaign_contribute(
    campaign_id: int = typer.Argument(..., help="Campaign ID"),
    amount: int = typer.Argument(..., help="Amount to contribute")
):
    """Contribute to a campaign"""
    with registry_session() as registry:
        registry.contribute(state.caller, state.height, campaign_id, amount)
        campaign = registry.get_campaign(campaign_id)

    console.print(
        f"[green]Contributed {format_amount(amount)} to campaign {campaign_id}[/green] "
        f"(raised {format_amount(campaign.raised)} / {format_amount(campaign.goal)})"
    )


@app.command("lock")
def campaign_lock(campaign_id: int = typer.Argument(..., help="Campaign ID")):
    """Lock a campaign's funds (blocks contributions)"""
    with registry_session() as registry:
        registry.lock_funds(state.caller, state.height, campaign_id)

    console.print(f"[yellow]Campaign {campaign_id} funds locked[/yellow]")


@app.command("unlock")
def campaign_unlock(campaign_id: int = typer.Argument(..., help="Campaign ID")):
    """Unlock a campaign's funds"""
    with registry_session() as registry:
        registry.unlock_funds(state.caller, state.height, campaign_id)

    console.print(f"[green]Campaign {campaign_id} funds unlocked[/green]")


@app.command("end")
def campaign_end(campaign_id: int = typer.Argument(..., help="Campaign ID")):
    """End a campaign (irreversible)"""
    with registry_session() as registry:
        registry.end_campaign(state.caller, state.height, campaign_id)

    console.print(f"[red]Campaign {campaign_id} ended[/red]")


@app.command("withdraw")
def campaign_withdraw(
    campaign_id: int = typer.Argument(..., help="Campaign ID"),
    recipient: str = typer.Argument(..., help="Recipient account"),
    amount: int = typer.Argument(..., help="Amount to withdraw")
):
    """Withdraw funds from an ended campaign"""
    with registry_session() as registry:
        registry.withdraw_funds(state.caller, state.height, campaign_id, recipient, amount)
        campaign = registry.get_campaign(campaign_id)

    console.print(
        f"[green]Withdrew {format_amount(amount)} to {escape(recipient)}[/green] "
        f"(remaining {format_amount(campaign.raised)})"
    )


# ============================================================================
# QUERY COMMANDS
# ============================================================================

@app.command("campaign")
def campaign_show(campaign_id: int = typer.Argument(..., help="Campaign ID")):
    """Show campaign details"""
    with registry_session(write=False) as registry:
        campaign = registry.get_campaign(campaign_id)

    if campaign is None:
        console.print(f"[yellow]Campaign {campaign_id} not found[/yellow]")
        return

    table = Table(title=f"Campaign {campaign_id}", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Name", escape(campaign.name))
    table.add_row("Description", escape(campaign.description) or "-")
    table.add_row("Goal", format_amount(campaign.goal))
    table.add_row("Raised", f"{format_amount(campaign.raised)} ({campaign.progress_percent()}%)")
    table.add_row("Deadline", str(campaign.deadline))
    table.add_row("Status", _campaign_status(campaign))
    table.add_row("Creator", escape(campaign.creator))

    console.print(table)


@app.command("list")
def campaign_list(
    active_only: bool = typer.Option(False, "--active", help="Only active campaigns")
):
    """List campaigns"""
    with registry_session(write=False) as registry:
        campaigns = registry.list_campaigns(active_only=active_only)

    if not campaigns:
        console.print("[yellow]No campaigns[/yellow]")
        return

    console.print(_campaign_table(campaigns))


@app.command("contribution")
def contribution_show(
    campaign_id: int = typer.Argument(..., help="Campaign ID"),
    contributor: str = typer.Argument(..., help="Contributor account")
):
    """Show the latest contribution of an account"""
    with registry_session(write=False) as registry:
        contribution = registry.get_contribution(campaign_id, contributor)

    if contribution is None:
        console.print("[yellow]No contribution found[/yellow]")
        return

    console.print(
        f"Contribution by {escape(contributor)} to campaign {campaign_id}: "
        f"amount {format_amount(contribution.amount)} at height {contribution.timestamp}"
    )


@app.command("events")
def events_show(
    campaign_id: Optional[int] = typer.Option(None, "--campaign", help="Filter by campaign"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Show the registry event journal"""
    with registry_session(write=False) as registry:
        events = registry.get_events(campaign_id)

    if as_json:
        typer.echo(serialize_to_json([e.to_dict() for e in events], indent=2))
        return

    table = Table(title="Registry Events")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Height", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Actor")
    table.add_column("Campaign", justify="right")
    table.add_column("Data")

    for e in events:
        table.add_row(
            str(e.sequence),
            str(e.block_height),
            e.event_type.value,
            escape(e.actor),
            str(e.campaign_id) if e.campaign_id is not None else "-",
            escape(serialize_to_json(e.payload)),
        )

    console.print(table)


# ============================================================================
# CAMPAIGN ADMIN COMMANDS
# ============================================================================

admin_app = typer.Typer(help="Campaign admin grants")
app.add_typer(admin_app, name="admin")


@admin_app.command("add")
def admin_add(
    campaign_id: int = typer.Argument(..., help="Campaign ID"),
    account: str = typer.Argument(..., help="Account to grant")
):
    """Grant campaign admin rights (creator only)"""
    with registry_session() as registry:
        registry.add_campaign_admin(state.caller, state.height, campaign_id, account)

    console.print(f"[green]{escape(account)} is now admin of campaign {campaign_id}[/green]")


@admin_app.command("remove")
def admin_remove(
    campaign_id: int = typer.Argument(..., help="Campaign ID"),
    account: str = typer.Argument(..., help="Account to revoke")
):
    """Revoke campaign admin rights (creator only)"""
    with registry_session() as registry:
        registry.remove_campaign_admin(state.caller, state.height, campaign_id, account)

    console.print(f"[yellow]{escape(account)} is no longer admin of campaign {campaign_id}[/yellow]")


@admin_app.command("check")
def admin_check(
    campaign_id: int = typer.Argument(..., help="Campaign ID"),
    account: str = typer.Argument(..., help="Account to check")
):
    """Check whether an account is an active campaign admin"""
    with registry_session(write=False) as registry:
        is_admin = registry.is_admin(campaign_id, account)

    verdict = "is" if is_admin else "is not"
    console.print(f"{escape(account)} {verdict} admin of campaign {campaign_id}")


# ============================================================================
# REGISTRY CONFIG COMMANDS
# ============================================================================

config_app = typer.Typer(help="Registry administrator settings")
app.add_typer(config_app, name="config")


@config_app.command("set-admin")
def config_set_admin(new_admin: str = typer.Argument(..., help="New registry administrator")):
    """Replace the registry administrator"""
    with registry_session() as registry:
        registry.set_admin(state.caller, state.height, new_admin)

    console.print(f"[green]Registry administrator is now {escape(new_admin)}[/green]")


@config_app.command("set-fee")
def config_set_fee(fee: int = typer.Argument(..., help="New creation fee")):
    """Set the campaign creation fee"""
    with registry_session() as registry:
        registry.set_creation_fee(state.caller, state.height, fee)

    console.print(f"[green]Creation fee set to {format_amount(fee)}[/green]")


@config_app.command("pause")
def config_pause():
    """Toggle the registry pause flag"""
    with registry_session() as registry:
        paused = registry.toggle_pause(state.caller, state.height)

    console.print("[yellow]Registry paused[/yellow]" if paused else "[green]Registry resumed[/green]")


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

@app.callback()
def main(
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Registry database (default: settings db_path)"
    ),
    caller: Optional[str] = typer.Option(
        None,
        "--caller",
        "-c",
        help="Caller identity (default: configured registry admin)"
    ),
    height: int = typer.Option(
        0,
        "--height",
        "-H",
        help="Current block height"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log to console"
    )
):
    """
    FundRegistry - Crowdfunding Campaign Registry CLI

    Gestisci campagne, contributi, grant admin e configurazione registry.
    """
    try:
        config = _load_settings()
    except InvalidConfigError as e:
        _fail(f"Error: {_format_error(e)}")

    state.config = config
    state.db_path = db or config.db_path
    state.caller = caller or config.registry_admin
    state.height = height

    setup_logging_from_settings(config, enable_console=verbose)

    # Context della sola invocazione corrente
    logger.clear_context()
    logger.set_context(db=str(state.db_path), caller=state.caller, height=height)

    if config.enable_audit_log:
        state.audit_logger = AuditLogger(config.log_dir)


if __name__ == "__main__":
    app()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "app",
]
