"""CLI for Kiban Agent Kit - query wallets, tokens, swaps and market data from the terminal."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from kiban_agent_kit.config import config_from_env, load_config
from kiban_agent_kit.errors import KibanError
from kiban_agent_kit.kit import KibanAgentKit
from kiban_agent_kit.tokens.swap import DEFAULT_SLIPPAGE, SwapParams

app = typer.Typer(
    name="kiban",
    help="Connect AI agents to EVM wallets, ERC20 tokens and Uniswap V3.",
    no_args_is_help=True,
)
console = Console()

_config_path: Optional[Path] = None


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"kiban-agent-kit {version('kiban-agent-kit')}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML config file (defaults to KIBAN_* environment variables)",
        envvar="KIBAN_CONFIG",
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
    """Connect AI agents to EVM wallets, ERC20 tokens and Uniswap V3."""
    global _config_path
    _config_path = config
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _kit() -> KibanAgentKit:
    config = load_config(_config_path) if _config_path else config_from_env()
    return KibanAgentKit(config)


def _run(factory):
    """Build a kit, run ``factory(kit)`` to completion, and close the kit.

    Kit errors and bad input are printed and turned into exit code 1.
    """

    async def _main():
        kit = _kit()
        try:
            return await factory(kit)
        finally:
            await kit.aclose()

    try:
        return asyncio.run(_main())
    except (KibanError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# wallet sub-commands
# ------------------------------------------------------------------

wallet_app = typer.Typer(name="wallet", help="Inspect the connected wallet.", no_args_is_help=True)
app.add_typer(wallet_app, name="wallet")


@wallet_app.command("info")
def wallet_info():
    """Show address, chain and native balance."""
    info = _run(lambda kit: kit.get_wallet_info())
    console.print(Panel(
        f"Address: [cyan]{info.address}[/cyan]\n"
        f"Chain: {info.chain.name} (ID {info.chain.id})\n"
        f"Balance: [bold]{info.balance}[/bold]",
        title="Wallet",
    ))


@wallet_app.command("balance")
def wallet_balance(
    address: Optional[str] = typer.Argument(None, help="Address to check (default: own wallet)"),
):
    """Show a native token balance."""
    balance = _run(lambda kit: kit.get_native_balance(address))
    console.print(f"[bold]{balance}[/bold] ETH")


@wallet_app.command("history")
def wallet_history(
    limit: int = typer.Option(5, "--limit", "-n", help="Maximum transactions to show"),
):
    """Show the wallet's sent-transaction count."""
    history = _run(lambda kit: kit.get_transaction_history(limit))
    console.print(history.message)
    if history.view_on_explorer:
        console.print(f"Explorer: {history.view_on_explorer}")


@wallet_app.command("gas")
def wallet_gas(
    to: Optional[str] = typer.Option(None, "--to", "-t", help="Recipient for a cost estimate"),
    value: Optional[str] = typer.Option(None, "--value", help="Amount in ETH for a cost estimate"),
):
    """Show the current gas price and, optionally, a transfer cost estimate."""
    estimate = _run(lambda kit: kit.estimate_gas_for_transaction(to, value))
    console.print(f"Gas price: [bold]{estimate.current_gas_price}[/bold]")
    details = estimate.transaction_details
    if details is not None:
        if details.error:
            console.print(f"[yellow]{details.message}: {details.error}[/yellow]")
        else:
            console.print(details.message)


# ------------------------------------------------------------------
# token sub-commands
# ------------------------------------------------------------------

token_app = typer.Typer(name="token", help="ERC20 token lookups.", no_args_is_help=True)
app.add_typer(token_app, name="token")


@token_app.command("info")
def token_info(
    token: str = typer.Argument(help="Token address or symbol (WETH, USDC, USDT, DAI)"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Balance holder (default: own wallet)"),
):
    """Show name, symbol, decimals and balance of a token."""
    info = _run(lambda kit: kit.get_token_info(token, owner))
    table = Table(title=f"{info.name} ({info.symbol})")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Address", info.address)
    table.add_row("Decimals", str(info.decimals))
    table.add_row("Balance", info.balance)
    console.print(table)


@token_app.command("allowance")
def token_allowance(
    token: str = typer.Argument(help="Token address or symbol"),
    spender: str = typer.Argument(help="Spender address"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Token owner (default: own wallet)"),
):
    """Show how much a spender may move on the owner's behalf (base units)."""

    async def _allowance(kit: KibanAgentKit):
        return await kit.get_allowance(token, owner or kit.get_address(), spender)

    console.print(f"Allowance: [bold]{_run(_allowance)}[/bold]")


# ------------------------------------------------------------------
# swap sub-commands
# ------------------------------------------------------------------

swap_app = typer.Typer(name="swap", help="Quote and execute Uniswap V3 swaps.", no_args_is_help=True)
app.add_typer(swap_app, name="swap")


def _swap_params(*args) -> SwapParams:
    try:
        return SwapParams(*args)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _print_quote(quote) -> None:
    table = Table(title="Swap Quote")
    table.add_column("", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("You pay", f"{quote.token_in.amount} {quote.token_in.symbol}")
    table.add_row("You receive (est.)", f"{quote.token_out.amount} {quote.token_out.symbol}")
    table.add_row("Minimum received", f"{quote.minimum_amount_out} {quote.token_out.symbol}")
    table.add_row("Price", quote.execution_price)
    table.add_row("Price impact", quote.price_impact)
    console.print(table)


@swap_app.command("quote")
def swap_quote(
    token_in: str = typer.Argument(help="Input token address or symbol"),
    token_out: str = typer.Argument(help="Output token address or symbol"),
    amount: str = typer.Argument(help="Amount of the input token"),
    slippage: float = typer.Option(DEFAULT_SLIPPAGE, "--slippage", "-s", help="Slippage tolerance in percent"),
):
    """Quote a swap without sending anything."""
    params = _swap_params(token_in, token_out, amount, slippage)
    _print_quote(_run(lambda kit: kit.get_swap_quote(params)))


@swap_app.command("execute")
def swap_execute(
    token_in: str = typer.Argument(help="Input token address or symbol"),
    token_out: str = typer.Argument(help="Output token address or symbol"),
    amount: str = typer.Argument(help="Amount of the input token"),
    slippage: float = typer.Option(DEFAULT_SLIPPAGE, "--slippage", "-s", help="Slippage tolerance in percent"),
    recipient: Optional[str] = typer.Option(None, "--recipient", "-r", help="Recipient (default: own wallet)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Quote, confirm, and execute a swap."""
    params = _swap_params(token_in, token_out, amount, slippage, recipient)
    _print_quote(_run(lambda kit: kit.get_swap_quote(params)))
    if not yes:
        typer.confirm("Execute this swap?", abort=True)

    result = _run(lambda kit: kit.swap_tokens(params))
    console.print(Panel(
        f"[bold green]Swap confirmed![/bold green]\n\n"
        f"Swapped {result.amount_in} {result.token_in} for ~{result.expected_amount_out} {result.token_out}\n"
        f"Tx: [cyan]{result.hash}[/cyan]",
        title="Swap",
    ))


# ------------------------------------------------------------------
# market sub-commands
# ------------------------------------------------------------------

market_app = typer.Typer(name="market", help="DexScreener market data.", no_args_is_help=True)
app.add_typer(market_app, name="market")


@market_app.command("token")
def market_token(token_address: str = typer.Argument(help="Token contract address")):
    """Show price, volume and liquidity for a token."""
    data = _run(lambda kit: kit.get_token_data(token_address))
    if data is None:
        console.print("[yellow]No data found for this token.[/yellow]")
        raise typer.Exit(1)
    console.print(Panel(
        f"Price: [bold]${data.price_usd}[/bold]\n"
        f"24h volume: {data.volume_24h}\n"
        f"Liquidity: {data.liquidity}\n"
        f"Pair: {data.pair_address}",
        title=f"{data.name} ({data.symbol})",
    ))


@market_app.command("search")
def market_search(ticker: str = typer.Argument(help="Ticker to search, e.g. ETH")):
    """Show the top pairs for a ticker by 24h volume."""
    response = _run(lambda kit: kit.search_token_by_ticker(ticker))
    if not response.results:
        console.print(f"[yellow]{response.message}[/yellow]")
        return
    table = Table(title=response.message)
    table.add_column("Symbol", style="cyan")
    table.add_column("Chain")
    table.add_column("DEX")
    table.add_column("Price (USD)", justify="right")
    table.add_column("24h Volume", justify="right")
    table.add_column("Liquidity", justify="right")
    for r in response.results:
        table.add_row(r.symbol, r.chain, r.dex, r.price_usd, r.volume_24h, r.liquidity)
    console.print(table)


# ------------------------------------------------------------------
# tools sub-commands
# ------------------------------------------------------------------

tools_app = typer.Typer(name="tools", help="Inspect and invoke agent tools.", no_args_is_help=True)
app.add_typer(tools_app, name="tools")


@tools_app.command("list")
def tools_list():
    """List the agent tools and their input fields."""
    try:
        registry = _kit().get_tools()
    except (KibanError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    table = Table(title="Agent Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Fields", style="dim")
    for definition in registry.definitions():
        fields = ", ".join(definition.parameters.get("properties", {}).keys())
        table.add_row(definition.name, definition.description, fields or "-")
    console.print(table)


@tools_app.command("call")
def tools_call(
    name: str = typer.Argument(help="Tool name, e.g. get_swap_quote"),
    tool_input: str = typer.Argument("{}", help="JSON object with the tool input"),
):
    """Invoke a tool exactly as an agent would and print its text output."""
    output = _run(lambda kit: kit.get_tools().invoke(name, tool_input))
    try:
        console.print_json(output)
    except json.JSONDecodeError:
        console.print(output)


if __name__ == "__main__":
    app()
