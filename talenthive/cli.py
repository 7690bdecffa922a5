"""
Command-line interface for TalentHive operators.

Provides tools to:
- Run the API server
- Release due escrow payments (run from cron)
- Create admin accounts
- Inspect and change platform settings
- Review platform statistics and transactions
"""

import json
import logging
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import load_settings
from .errors import AppError, ConfigError
from .models.transaction import TransactionStatus
from .models.user import UserRole
from .platform import Platform

console = Console()


def _cents(amount: int) -> str:
    return f"{amount / 100:,.2f}"


def get_platform(ctx: click.Context) -> Platform:
    """Build the Platform on first use so `--help` never touches the data dir."""
    obj = ctx.ensure_object(dict)
    if "platform" not in obj:
        try:
            settings = load_settings(obj.get("config_path"))
        except ConfigError as e:
            raise click.ClickException(str(e))
        if obj.get("data_dir"):
            settings.data_dir = Path(obj["data_dir"])
        obj["platform"] = Platform(settings)
    return obj["platform"]


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML config file")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Override the data directory")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], data_dir: Optional[str], verbose: bool):
    """TalentHive marketplace administration."""
    obj = ctx.ensure_object(dict)
    obj["config_path"] = config_path
    obj["data_dir"] = data_dir

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# === Server ===

@cli.command()
@click.option("--host", help="Bind address")
@click.option("--port", type=int, help="Port")
@click.option("--debug/--no-debug", default=None, help="Flask debug mode")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int], debug: Optional[bool]):
    """Run the REST API."""
    from .api.routes import create_app

    platform = get_platform(ctx)
    settings = platform.config
    app = create_app(settings, gateway=platform.gateway)

    host = host or settings.host
    port = port or settings.port
    console.print(f"Starting TalentHive API on [bold]{host}:{port}[/bold]")
    app.run(host=host, port=port, debug=settings.debug if debug is None else debug)


# === Escrow ===

@cli.command("release-escrow")
@click.pass_context
def release_escrow(ctx: click.Context):
    """Release every escrow payment whose hold period has ended."""
    result = get_platform(ctx).payments.auto_release_escrow_payments()

    console.print(f"Released: [green]{result['released']}[/green]  Failed: [red]{result['failed']}[/red]")
    for error in result["errors"]:
        console.print(f"  [red]{error['transaction_id']}[/red]: {error['error']}")

    if result["failed"]:
        ctx.exit(1)


# === Accounts ===

@cli.command("create-admin")
@click.option("--email", required=True, help="Admin email address")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--first-name", default="Platform", show_default=True)
@click.option("--last-name", default="Admin", show_default=True)
@click.pass_context
def create_admin(ctx: click.Context, email: str, password: str, first_name: str, last_name: str):
    """Create an admin account (works even when registration is disabled)."""
    platform = get_platform(ctx)
    try:
        user, _ = platform.auth.register(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ADMIN.value,
            enforce_registration_switch=False,
        )
    except AppError as e:
        raise click.ClickException(e.message)

    console.print(f"Admin created: [bold]{user.email}[/bold] ({user.id})")


# === Platform settings ===

@cli.group()
def settings():
    """Platform commission, fee and escrow settings."""


@settings.command("show")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def settings_show(ctx: click.Context, as_json: bool):
    current = get_platform(ctx).settings.get_settings().to_dict()
    if as_json:
        click.echo(json.dumps(current, indent=2))
        return

    table = Table(title="Platform settings")
    table.add_column("Setting")
    table.add_column("Value", justify="right")
    for key, value in current.items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


@settings.command("set")
@click.argument("key")
@click.argument("value")
@click.option("--admin-id", default="cli", show_default=True, help="Recorded as updated_by")
@click.pass_context
def settings_set(ctx: click.Context, key: str, value: str, admin_id: str):
    """Change one setting. VALUE is parsed as YAML, so `true`, `12` and `2.5` keep their types."""
    parsed = yaml.safe_load(value)
    try:
        updated = get_platform(ctx).settings.update_settings({key: parsed}, admin_id)
    except AppError as e:
        raise click.ClickException(e.message)

    console.print(f"{key} = [bold]{getattr(updated, key)}[/bold]")


# === Reporting ===

@cli.command()
@click.pass_context
def stats(ctx: click.Context):
    """Platform-wide statistics."""
    data = get_platform(ctx).get_statistics()

    users = data["users"]
    table = Table(title="Users")
    table.add_column("Role")
    table.add_column("Count", justify="right")
    for role, count in sorted(users["by_role"].items()):
        table.add_row(role, str(count))
    table.add_row("[bold]total[/bold]", str(users["total"]))
    console.print(table)

    txns = data["transactions"]
    table = Table(title="Payments")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Transactions", str(txns["total_transactions"]))
    table.add_row("Volume", _cents(txns["total_volume"]))
    table.add_row("Commission", _cents(txns["total_commission"]))
    table.add_row("In escrow", f"{txns['escrow_count']} ({_cents(txns['escrow_amount'])})")
    table.add_row("Refunded", str(txns["refunded_count"]))
    table.add_row("Failed", str(txns["failed_count"]))
    console.print(table)

    for area in ("projects", "proposals", "disputes", "support"):
        by_status = data[area].get("by_status", {})
        summary = ", ".join(f"{k}: {v}" for k, v in sorted(by_status.items())) or "none"
        console.print(f"[bold]{area.capitalize()}[/bold] ({data[area]['total']}): {summary}")


@cli.command()
@click.option(
    "--status",
    type=click.Choice([s.value for s in TransactionStatus]),
    help="Only transactions in this status",
)
@click.option("--limit", default=20, show_default=True)
@click.pass_context
def transactions(ctx: click.Context, status: Optional[str], limit: int):
    """Most recent transactions."""
    result = get_platform(ctx).payments.list_all_transactions(
        status=TransactionStatus(status) if status else None,
        limit=limit,
    )

    if not result["items"]:
        console.print("No transactions found.")
        return

    table = Table(title=f"Transactions ({result['pagination']['total']} total)")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Amount", justify="right")
    table.add_column("Commission", justify="right")
    table.add_column("Freelancer", justify="right")
    table.add_column("Release date")
    for txn in result["items"]:
        table.add_row(
            txn["id"],
            txn["status"],
            _cents(txn["amount"]),
            _cents(txn["platform_commission"]),
            _cents(txn["freelancer_amount"]),
            (txn.get("escrow_release_date") or "")[:10],
        )
    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
