#!/usr/bin/env python3
"""
Vesting ledger CLI commands

Operates a ledger stored in a local SQLite database:
- Instantiation and deposits
- Claims and clawbacks
- Ownership handover
- Read-only queries
"""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.table import Table

from vestledger.core import config as ledger_config
from vestledger.core.structured_logger import configure_logging
from vestledger.core.vesting_contract import VestingContract
from vestledger.core.vesting_exceptions import VestingError, get_error_context
from vestledger.core.vesting_ledger import OrderBy
from vestledger.core.vesting_types import TransferIntent, VestingAccount
from vestledger.database.storage_manager import SqliteVestingStore

logger = logging.getLogger(__name__)
console = Console()


def _cli_fail(ctx: click.Context, exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.debug("CLI error: %s", exc, exc_info=True)
    if ctx.obj and ctx.obj.get("json_output"):
        click.echo(json.dumps({"error": get_error_context(exc)}, indent=2, default=str))
    else:
        console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _emit(ctx: click.Context, payload: Any, title: str | None = None) -> None:
    if ctx.obj["json_output"]:
        click.echo(json.dumps(payload, indent=2, default=str))
        return
    if isinstance(payload, dict):
        table = Table(title=title, show_header=False, box=box.ROUNDED)
        for key, value in payload.items():
            table.add_row(f"[bold cyan]{key}", str(value))
        console.print(table)
    else:
        console.print(payload)


def _result_payload(attributes: list, transfer: TransferIntent | None = None) -> dict:
    payload = {key: value for key, value in attributes}
    if transfer is not None:
        payload["transfer"] = transfer.to_dict()
    return payload


@click.group()
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=ledger_config.DB_PATH,
    show_default=True,
    help="SQLite ledger database.",
)
@click.option(
    "--now",
    type=click.IntRange(min=0),
    help="Current time in seconds (defaults to the system clock).",
)
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--log-level",
    default=ledger_config.LOG_LEVEL,
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
)
@click.option(
    "--json-logs/--text-logs",
    default=ledger_config.JSON_LOGS,
    help="Log format on stderr.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    db_path: Path,
    now: int | None,
    json_output: bool,
    log_level: str,
    json_logs: bool,
):
    """
    Clawbackable vesting ledger.

    Every command runs as one atomic ledger operation at the time given by
    --now.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level, json_logs)

    try:
        store = SqliteVestingStore(db_path)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    ctx.call_on_close(store.close)

    ctx.obj["contract"] = VestingContract(store)
    ctx.obj["now"] = now if now is not None else int(time.time())
    ctx.obj["json_output"] = json_output


# ============================================================================
# Execute commands
# ============================================================================


@cli.command("init")
@click.option("--owner", required=True, help="Controller address")
@click.option("--token-addr", required=True, help="Settlement token service address")
@click.pass_context
def init_ledger(ctx: click.Context, owner: str, token_addr: str):
    """Create the ledger configuration."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        config = contract.instantiate(owner=owner, token_addr=token_addr)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    _emit(ctx, config.to_dict(), title="Ledger initialized")


@cli.command("deposit")
@click.option("--token-sender", required=True, help="Token service that delivered the funds")
@click.option("--depositor", required=True, help="Account that sent the funds")
@click.option("--amount", required=True, type=click.IntRange(min=0), help="Deposited amount")
@click.argument("accounts_file", type=click.File("r"))
@click.pass_context
def deposit(ctx: click.Context, token_sender: str, depositor: str, amount: int, accounts_file):
    """
    Register vesting accounts funded by a deposit.

    ACCOUNTS_FILE is a JSON list of {"address", "schedules", "clawbackable"}
    objects.

    Example:
        vestledger deposit --token-sender token --depositor owner --amount 1000 accounts.json
    """
    contract: VestingContract = ctx.obj["contract"]
    try:
        try:
            raw_accounts = json.load(accounts_file)
        except ValueError as exc:
            raise click.BadParameter(f"Invalid JSON: {exc}", param_hint="ACCOUNTS_FILE")
        if not isinstance(raw_accounts, list):
            raise click.BadParameter("Expected a JSON list", param_hint="ACCOUNTS_FILE")
        accounts = [VestingAccount.from_dict(item) for item in raw_accounts]
        result = contract.receive_deposit(
            ctx.obj["now"], token_sender, depositor, amount, accounts
        )
    except VestingError as exc:
        _cli_fail(ctx, exc)
    payload = _result_payload(result.attributes)
    payload["accounts"] = result.addresses
    _emit(ctx, payload, title="Deposit registered")


@cli.command("claim")
@click.option("--sender", required=True, help="Claiming beneficiary")
@click.option("--recipient", help="Transfer destination (defaults to sender)")
@click.option("--amount", type=click.IntRange(min=0), help="Amount to claim (defaults to all)")
@click.pass_context
def claim_cmd(ctx: click.Context, sender: str, recipient: str | None, amount: int | None):
    """Claim vested tokens."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        result = contract.claim(ctx.obj["now"], sender, recipient, amount)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    _emit(ctx, _result_payload(result.attributes, result.transfer), title="Claim")


@cli.command("clawback")
@click.option("--sender", required=True, help="Ledger owner")
@click.argument("target")
@click.pass_context
def clawback_cmd(ctx: click.Context, sender: str, target: str):
    """Revoke the remaining entitlement of TARGET."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        result = contract.clawback(ctx.obj["now"], sender, target)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    _emit(ctx, _result_payload(result.attributes, result.transfer), title="Clawback")


@cli.command("propose-owner")
@click.option("--sender", required=True, help="Current owner")
@click.option(
    "--expires-in",
    required=True,
    type=click.IntRange(min=0),
    help=f"Seconds until the proposal expires (max {ledger_config.MAX_PROPOSAL_TTL})",
)
@click.argument("new_owner")
@click.pass_context
def propose_owner(ctx: click.Context, sender: str, expires_in: int, new_owner: str):
    """Propose NEW_OWNER as the ledger owner."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        result = contract.propose_new_owner(ctx.obj["now"], sender, new_owner, expires_in)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    _emit(ctx, _result_payload(result.attributes))


@cli.command("drop-proposal")
@click.option("--sender", required=True, help="Current owner")
@click.pass_context
def drop_proposal(ctx: click.Context, sender: str):
    """Drop the pending ownership proposal."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        result = contract.drop_ownership_proposal(ctx.obj["now"], sender)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    _emit(ctx, _result_payload(result.attributes))


@cli.command("accept-ownership")
@click.option("--sender", required=True, help="Proposed owner")
@click.pass_context
def accept_ownership(ctx: click.Context, sender: str):
    """Accept a pending ownership proposal."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        result = contract.claim_ownership(ctx.obj["now"], sender)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    _emit(ctx, _result_payload(result.attributes))


# ============================================================================
# Queries
# ============================================================================


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context):
    """Show the ledger configuration."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        payload = contract.query_config()
    except VestingError as exc:
        _cli_fail(ctx, exc)
    version = contract.query_contract_version()
    if version:
        payload.update(version)
    _emit(ctx, payload, title="Ledger config")


@cli.command("account")
@click.argument("address")
@click.pass_context
def show_account(ctx: click.Context, address: str):
    """Show the vesting record of ADDRESS."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        payload = contract.query_vesting_account(address)
    except VestingError as exc:
        _cli_fail(ctx, exc)

    if ctx.obj["json_output"]:
        _emit(ctx, payload)
        return

    info = payload["info"]
    table = Table(
        title=f"Vesting account {address}",
        caption=f"released {info['released_amount']} | clawbackable {info['clawbackable']}",
        box=box.ROUNDED,
    )
    table.add_column("#", style="dim")
    table.add_column("Start", style="cyan")
    table.add_column("Start amount", style="green")
    table.add_column("End", style="cyan")
    table.add_column("End amount", style="green")
    for index, schedule in enumerate(info["schedules"]):
        start = schedule["start_point"]
        end = schedule["end_point"] or {}
        table.add_row(
            str(index),
            str(start["time"]),
            start["amount"],
            str(end.get("time", "-")),
            end.get("amount", "-"),
        )
    console.print(table)


@cli.command("accounts")
@click.option("--start-after", help="Exclusive pagination cursor")
@click.option("--limit", type=click.IntRange(min=0), help="Page size (default 10, max 30)")
@click.option("--order", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)
@click.pass_context
def list_accounts(ctx: click.Context, start_after: str | None, limit: int | None, order: str):
    """List vesting accounts."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        accounts = contract.query_vesting_accounts(start_after, limit, OrderBy(order))
    except VestingError as exc:
        _cli_fail(ctx, exc)

    if ctx.obj["json_output"]:
        _emit(ctx, {"vesting_accounts": accounts})
        return

    table = Table(title=f"Vesting accounts - {len(accounts)}", box=box.ROUNDED)
    table.add_column("Address", style="cyan")
    table.add_column("Schedules", style="magenta")
    table.add_column("Released", style="green")
    table.add_column("Clawbackable", style="yellow")
    for entry in accounts:
        info = entry["info"]
        table.add_row(
            entry["address"],
            str(len(info["schedules"])),
            info["released_amount"],
            str(info["clawbackable"]),
        )
    console.print(table)


@cli.command("available")
@click.argument("address")
@click.pass_context
def available(ctx: click.Context, address: str):
    """Show the amount ADDRESS can claim now."""
    contract: VestingContract = ctx.obj["contract"]
    try:
        amount = contract.query_available_amount(ctx.obj["now"], address)
    except VestingError as exc:
        _cli_fail(ctx, exc)
    _emit(ctx, {"address": address, "available_amount": str(amount)})


@cli.command("timestamp")
@click.pass_context
def timestamp(ctx: click.Context):
    """Show the time the ledger evaluates against."""
    contract: VestingContract = ctx.obj["contract"]
    _emit(ctx, {"timestamp": contract.query_timestamp(ctx.obj["now"])})


@cli.command("proposal")
@click.pass_context
def show_proposal(ctx: click.Context):
    """Show the pending ownership proposal, if any."""
    contract: VestingContract = ctx.obj["contract"]
    proposal = contract.query_ownership_proposal()
    if proposal is None:
        _emit(ctx, {"proposal": None})
        return
    payload = proposal.to_dict()
    payload["expired"] = proposal.is_expired(ctx.obj["now"])
    _emit(ctx, payload, title="Ownership proposal")
