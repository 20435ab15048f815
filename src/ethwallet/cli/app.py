"""CLI for ethwallet - a rudimentary Ethereum wallet for the terminal."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ethwallet.config import DEFAULT_ENVIRONMENT, Settings, load_settings
from ethwallet.errors import (
    AccountNotFound,
    ConfigError,
    DuplicateAccount,
    EncryptionFailed,
    InvalidAddress,
    InvalidAmount,
    InvalidKeyMaterial,
    InvalidPassword,
    NetworkError,
    SigningFailed,
    StoreError,
    StoreUnavailable,
    WalletError,
)
from ethwallet.wallet.chains import list_chain_names, resolve_network
from ethwallet.wallet.credentials import CredentialGate
from ethwallet.wallet.keystore import KeystoreStore
from ethwallet.wallet.manager import WalletManager
from ethwallet.wallet.provider import Web3Provider

app = typer.Typer(
    name="ethwallet",
    help="A rudimentary eth wallet.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"ethwallet {version('ethwallet')}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    env: str = typer.Option(
        DEFAULT_ENVIRONMENT,
        "--env",
        "-e",
        help="Environment name; selects .env.<env> and data/keystores.<env>.json",
        envvar="WALLET_ENV",
    ),
    network: Optional[str] = typer.Option(
        None,
        "--network",
        "-n",
        help=f"RPC URL or preset ({', '.join(list_chain_names())}); overrides NETWORK",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """A rudimentary eth wallet."""
    _configure_logging(verbose)
    try:
        settings = load_settings(env)
    except ConfigError as e:
        _fail(str(e))
    if network:
        settings = settings.model_copy(update={"network": network})
    ctx.obj = settings


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(1)


def _format_ether(amount: Decimal) -> str:
    return format(amount.normalize(), "f")


def _open_wallet(ctx: typer.Context) -> WalletManager:
    """Load the keystore document and wire up the manager for one command."""
    settings: Settings = ctx.obj
    store = KeystoreStore(settings.keystore_path)
    try:
        store.load()
    except StoreUnavailable as e:
        _fail(f"{e}. Run 'ethwallet --env {settings.environment} init' to create it.")
    except StoreError as e:
        _fail(str(e))

    gate = CredentialGate(kdf=settings.kdf, iterations=settings.kdf_iterations)
    provider = Web3Provider(
        resolve_network(settings.network),
        rpc_timeout=settings.rpc_timeout,
        receipt_timeout=settings.receipt_timeout,
    )
    return WalletManager(store, gate, provider)


def _print_accounts(manager: WalletManager, with_balances: bool = True) -> None:
    console.print("Your local accounts:")
    if len(manager.store) == 0:
        console.print("[dim]No accounts yet. Run 'ethwallet new' or 'ethwallet import'.[/dim]")
        return

    table = Table()
    table.add_column("#", style="dim", justify="right")
    table.add_column("Address", style="cyan", no_wrap=True)

    if not with_balances:
        for i, record in enumerate(manager.store):
            table.add_row(str(i), record.display_address)
        console.print(table)
        return

    symbol = manager.provider.network.native_symbol
    table.add_column("Balance", justify="right", no_wrap=True)
    table.add_column("Status", style="dim")
    for i, row in enumerate(_run(manager.list_balances())):
        if row.error:
            table.add_row(str(i), row.address, "Unknown", f"[red]{escape(row.error)}[/red]")
        else:
            table.add_row(str(i), row.address, f"{_format_ether(row.balance)} {symbol}", "[green]OK[/green]")
    console.print(table)


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------


@app.command()
def init(ctx: typer.Context):
    """Create an empty keystore document for the active environment."""
    settings: Settings = ctx.obj
    store = KeystoreStore(settings.keystore_path)
    try:
        created = store.initialize()
    except StoreUnavailable as e:
        _fail(str(e))

    if created:
        console.print(f"Created keystore [cyan]{settings.keystore_path}[/cyan]")
    else:
        console.print(f"[yellow]Keystore already exists:[/yellow] {settings.keystore_path}")


@app.command("list")
def list_accounts(ctx: typer.Context):
    """List local accounts with their balances."""
    manager = _open_wallet(ctx)
    _print_accounts(manager)


@app.command()
def balance(
    ctx: typer.Context,
    address: str = typer.Argument(help="Address to query (0x...)"),
):
    """Get the balance of the given address."""
    manager = _open_wallet(ctx)
    try:
        amount = manager.get_balance(address)
    except WalletError as e:
        _fail(f"Error checking balance for {address}: {e}")

    symbol = manager.provider.network.native_symbol
    console.print(f"Wallet Balance for {address}: [bold]{_format_ether(amount)}[/bold] {symbol}")


@app.command()
def new(ctx: typer.Context):
    """Create a new account and secure it with a password."""
    manager = _open_wallet(ctx)
    address, key = manager.provider.create_account()
    console.print(f"Your new account: [cyan]{address}[/cyan]")

    password = manager.gate.prompt_secret("Please enter a password to secure it", confirm=True)
    try:
        manager.add_account(key, password)
    except (DuplicateAccount, StoreUnavailable, EncryptionFailed) as e:
        _fail(f"Account {address} was generated but NOT saved to the wallet: {e}")

    console.print(Panel(
        f"[bold green]Your new account was created successfully[/bold green]\n\n"
        f"Address: [cyan]{address}[/cyan]\n\n"
        f"[dim]Stored encrypted in {manager.store.path}.\n"
        f"Without the password the account cannot be unlocked.[/dim]",
        title="New Account",
    ))


@app.command("import")
def import_account(ctx: typer.Context):
    """Import an already existing account from its private key."""
    manager = _open_wallet(ctx)
    private_key = manager.gate.prompt_secret("Please enter your private key to import the account")
    try:
        address, key = manager.provider.import_account(private_key)
    except InvalidKeyMaterial as e:
        _fail(str(e))
    if manager.store.find_by_address(address) is not None:
        _fail(str(DuplicateAccount(address[2:].lower())))

    password = manager.gate.prompt_secret("Please enter a password to secure it", confirm=True)
    try:
        manager.add_account(key, password)
    except (DuplicateAccount, StoreUnavailable, EncryptionFailed) as e:
        _fail(f"Account {address} was NOT imported: {e}")

    console.print(f"[bold green]Your account {address} was imported successfully[/bold green]")


@app.command()
def send(ctx: typer.Context):
    """Send ETH from a local account."""
    manager = _open_wallet(ctx)
    _print_accounts(manager, with_balances=False)

    sender = typer.prompt("Account to send from")
    try:
        record = manager.find_account(sender)
    except AccountNotFound as e:
        _fail(str(e))

    password = manager.gate.prompt_secret(f"Unlock account {record.display_address}")
    try:
        key = manager.unlock(record, password)
    except InvalidPassword:
        _fail("Unable to unlock account, invalid password")
    except EncryptionFailed as e:
        _fail(str(e))

    receiver = typer.prompt("Account to send to")
    amount = typer.prompt("Amount")
    try:
        request = manager.build_transfer(record, receiver, amount)
    except (InvalidAddress, InvalidAmount) as e:
        _fail(str(e))

    try:
        receipt = manager.send(request, key)
    except (NetworkError, SigningFailed) as e:
        _fail(f"Error sending transaction: {e}")

    network = manager.provider.network
    tx_hash = receipt.get("transactionHash", "")
    status = "[green]success[/green]" if receipt.get("status") == 1 else "[red]failed[/red]"
    lines = [
        f"Tx:       [cyan]{tx_hash}[/cyan]",
        f"Block:    {receipt.get('blockNumber')}",
        f"Gas used: {receipt.get('gasUsed')}",
        f"Status:   {status}",
    ]
    tx_url = network.tx_url(tx_hash) if tx_hash else None
    if tx_url:
        lines.append(f"Explorer: {tx_url}")
    console.print(Panel(
        f"[bold]Sent {_format_ether(request.amount_ether)} {network.native_symbol} "
        f"to {request.receiver}[/bold]\n\n" + "\n".join(lines),
        title="Transaction Receipt",
    ))
    if receipt.get("status") != 1:
        _fail(f"Transaction {tx_hash} was mined but reverted")


if __name__ == "__main__":
    app()
