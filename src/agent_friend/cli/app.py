"""CLI for Agent Friend - chat with a tool-using assistant from the terminal."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from agent_friend import __version__
from agent_friend.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from agent_friend.errors import ConfigError, ModelClientError, WalletError

app = typer.Typer(
    name="agent-friend",
    help="A conversational assistant with weather, time and Ethereum testnet wallet tools.",
    no_args_is_help=True,
)
console = Console()

_config_path: Path = DEFAULT_CONFIG_PATH

EXIT_WORDS = ("exit", "quit")


def _version_callback(value: bool):
    if value:
        console.print(f"agent-friend {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=console, rich_tracebacks=True)],
        )
    else:
        logging.basicConfig(level=logging.WARNING)


@app.callback()
def main(
    config: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to the YAML configuration file",
        envvar="AGENT_FRIEND_CONFIG",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """A conversational assistant with weather, time and Ethereum testnet wallet tools."""
    global _config_path
    _config_path = config
    _setup_logging(verbose)


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _load_config() -> AppConfig:
    try:
        return load_config(_config_path)
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# init
# ------------------------------------------------------------------


@app.command()
def init(
    persona_path: Path = typer.Option(
        Path("personality.json"), "--persona", "-p", help="Where to write the persona profile"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files"),
):
    """Write a starter configuration file and persona profile."""
    from agent_friend.config import save_config
    from agent_friend.persona import DEFAULT_PERSONA, save_persona

    written = []
    if force or not _config_path.exists():
        config = AppConfig()
        config.llm.anthropic.api_key = "${ANTHROPIC_API_KEY}"
        config.agent.persona_path = str(persona_path)
        save_config(config, _config_path)
        written.append(str(_config_path))
    if force or not persona_path.exists():
        save_persona(DEFAULT_PERSONA, persona_path)
        written.append(str(persona_path))

    if not written:
        console.print("[yellow]Nothing to do:[/yellow] files already exist (use --force to overwrite).")
        return

    console.print(Panel(
        "[bold green]Agent Friend initialized![/bold green]\n\n"
        + "\n".join(f"Wrote {p}" for p in written)
        + "\n\nNext steps:\n"
        "  export ANTHROPIC_API_KEY=...\n"
        "  agent-friend chat",
        title="Agent Friend",
    ))


# ------------------------------------------------------------------
# chat
# ------------------------------------------------------------------


@app.command()
def chat(
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="LLM provider override"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model override"),
):
    """Start an interactive chat session."""
    from agent_friend.core.agent import ChatAgent
    from agent_friend.llm.router import build_provider
    from agent_friend.persona import load_persona
    from agent_friend.storage.database import open_store
    from agent_friend.tools import build_default_registry
    from agent_friend.wallet.manager import WalletManager
    from agent_friend.wallet.parser import redact_private_key

    config = _load_config()
    try:
        persona = load_persona(config.agent.persona_path)
        llm = build_provider(config.llm, provider_name=provider, model_override=model)
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    agent = ChatAgent(
        provider=llm,
        registry=build_default_registry(WalletManager.from_config(config.chain)),
        system_prompt=persona.build_system_prompt(),
        max_tool_iterations=config.agent.max_tool_iterations,
    )

    async def _chat():
        store = await open_store(config.storage.database_url)
        console.print(f"[bold]Welcome to Agent Friend![/bold] Chatting with {persona.name}.")
        console.print(f"[dim]Tools: {', '.join(agent.registry.names())}[/dim]")
        console.print("[dim]Type 'exit' to quit.[/dim]\n")
        try:
            while True:
                try:
                    user_input = console.input("[bold blue]You>[/bold blue] ")
                except (EOFError, KeyboardInterrupt):
                    break

                text = user_input.strip()
                if not text:
                    continue
                if text.lower() in EXIT_WORDS:
                    break

                await store.save("user", redact_private_key(text))
                try:
                    with console.status("Thinking..."):
                        reply = await agent.respond(text)
                except ModelClientError as e:
                    console.print(f"[red]Error:[/red] {escape(str(e))}\n")
                    continue

                await store.save("assistant", reply)
                console.print(f"[bold green]{persona.name}>[/bold green] {escape(reply)}\n")
        finally:
            await store.close()
        console.print("[dim]Goodbye![/dim]")

    _run(_chat())


# ------------------------------------------------------------------
# history
# ------------------------------------------------------------------


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of messages to show"),
):
    """Show the saved chat transcript."""
    from agent_friend.storage.database import open_store

    config = _load_config()
    if not config.storage.database_url:
        console.print("[yellow]No database configured.[/yellow] Set storage.database_url or DATABASE_URL.")
        raise typer.Exit(1)

    async def _history():
        store = await open_store(config.storage.database_url)
        try:
            return await store.recent(limit)
        finally:
            await store.close()

    records = _run(_history())
    if not records:
        console.print("[dim]No messages saved yet.[/dim]")
        return

    table = Table(title="Chat History")
    table.add_column("Time", style="dim")
    table.add_column("Role", style="cyan")
    table.add_column("Message")
    for record in records:
        table.add_row(record.created_at.strftime("%Y-%m-%d %H:%M:%S"), record.role, escape(record.content))
    console.print(table)


# ------------------------------------------------------------------
# wallet sub-commands
# ------------------------------------------------------------------

wallet_app = typer.Typer(
    name="wallet",
    help="Generate testnet wallets, check balances and send ETH.",
    no_args_is_help=True,
)
app.add_typer(wallet_app, name="wallet")


def _wallet_manager():
    from agent_friend.wallet.manager import WalletManager

    return WalletManager.from_config(_load_config().chain)


@wallet_app.command("new")
def wallet_new():
    """Generate a new wallet. The private key is printed once and not stored."""
    entry = _wallet_manager().generate_wallet()
    console.print(Panel(
        f"[bold green]Wallet generated![/bold green]\n\n"
        f"Address: [cyan]{entry.address}[/cyan]\n"
        f"Private key: [yellow]{entry.private_key}[/yellow]\n\n"
        f"[dim]The key is not saved anywhere. Store it safely; "
        f"anyone holding it controls the funds.[/dim]",
        title="Testnet Wallet",
    ))


@wallet_app.command("balance")
def wallet_balance(
    address: str = typer.Argument(help="Address to check (0x...)"),
):
    """Show the native token balance of an address."""
    manager = _wallet_manager()
    try:
        reading = manager.get_balance(address)
    except WalletError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if reading.mock:
        console.print(f"[yellow]{escape(reading.describe())}[/yellow]")
    else:
        console.print(f"[bold]{reading.address}:[/bold] {reading.balance} {reading.symbol}")
        console.print(f"[dim]{manager.client.chain.address_url(reading.address)}[/dim]")


@wallet_app.command("send")
def wallet_send(
    amount: str = typer.Argument(help="Amount to send (e.g. 0.01)"),
    from_address: str = typer.Option(..., "--from", help="Sender address (0x...)"),
    to_address: str = typer.Option(..., "--to", "-t", help="Recipient address (0x...)"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Sender private key (prompted if omitted)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Send native tokens from an address whose private key you hold."""
    from agent_friend.wallet.models import SendIntent, TxStatus

    manager = _wallet_manager()
    chain = manager.client.chain

    console.print(f"\n[bold]Send {amount} {chain.native_symbol} on {chain.name}[/bold]")
    console.print(f"  From: {from_address}")
    console.print(f"  To: {to_address}\n")

    if not yes:
        typer.confirm("Confirm this transaction?", abort=True)
    if key is None:
        key = console.input("[bold]Private key: [/bold]", password=True)

    intent = SendIntent(
        amount=amount,
        from_address=from_address,
        to_address=to_address,
        private_key=key,
    )
    try:
        outcome = manager.send(intent)
    except WalletError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    tx_url = chain.tx_url(outcome.tx_hash) if outcome.tx_hash else None
    if outcome.status is TxStatus.REJECTED:
        console.print(f"[red]{escape(outcome.describe())}[/red]")
        raise typer.Exit(1)
    style = "green" if outcome.status is TxStatus.CONFIRMED and not outcome.reverted else "yellow"
    console.print(Panel(f"[{style}]{escape(outcome.describe(tx_url))}[/{style}]", title="Transaction"))
