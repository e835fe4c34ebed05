"""Command-line interface for the card identifier."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .capture.source import load_capture
from .core.types import IdentificationResult, PriceData
from .identify.session import IdentificationSession
from .match.planner import QueryPlanner
from .resolve.poketcg import PokemonTCGClient
from .store.collection import CollectionStore
from .utils.config import settings
from .utils.error_handler import CardIdentifierError
from .utils.log import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Rich console
console = Console()

app = typer.Typer(
    name="card-identifier",
    help="Identify Pokemon cards from photos and manage your collection",
    add_completion=False,
)


async def _identify(image: str, retries: int, select: Optional[int]) -> IdentificationResult:
    capture = load_capture(image)
    async with PokemonTCGClient() as client:
        session = IdentificationSession(QueryPlanner(client))

        with console.status("[bold green]Identifying card...", spinner="dots"):
            result = await session.process(capture)
            attempts = 0
            while not result.resolved and attempts < retries:
                attempts += 1
                console.print(
                    f"[yellow]⚠ {result.error}[/yellow] [dim](retrying: {result.stage.value})[/dim]"
                )
                result = await session.retry()

        if select is not None:
            result = session.select_match(select)
        return result


def _format_price(prices: Optional[PriceData]) -> str:
    if prices is None or prices.tcgplayer_market_usd is None:
        return "-"
    return f"${prices.tcgplayer_market_usd:.2f}"


def _matches_table(result: IdentificationResult, show_prices: bool) -> Table:
    table = Table(title="Potential Matches")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Card ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Set", style="white")
    table.add_column("Number", style="white")
    table.add_column("Score", justify="right")
    if show_prices:
        table.add_column("Market", justify="right", style="green")

    accepted_id = result.accepted.card_id if result.accepted else None
    for i, match in enumerate(result.potential_matches):
        record = match.record
        marker = "[bold green]✓[/bold green] " if record.card_id == accepted_id else ""
        row = [
            str(i),
            f"{marker}{record.card_id}",
            record.name,
            record.set_name or record.set_id,
            record.number,
            str(match.score),
        ]
        if show_prices:
            row.append(_format_price(record.prices))
        table.add_row(*row)
    return table


@app.command()
def identify(
    image: str = typer.Argument(..., help="Path to a photo of the card"),
    retries: int = typer.Option(0, "--retries", "-r", min=0, max=5, help="Escalation retries if not identified"),
    select: Optional[int] = typer.Option(None, "--select", "-s", help="Accept potential match by index"),
    add: bool = typer.Option(False, "--add", "-a", help="Add the accepted card to the collection"),
):
    """Identify a card from an image file."""
    try:
        result = asyncio.run(_identify(image, retries, select))
    except CardIdentifierError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        logger.error("Identification error", error=str(e))
        raise typer.Exit(1)

    show_prices = settings.PREMIUM_FEATURES

    if result.accepted:
        record = result.accepted
        console.print(
            Panel.fit(
                f"[bold]{record.name}[/bold]\n"
                f"{record.set_name or record.set_id} · #{record.number}"
                + (f" · {record.rarity}" if record.rarity else "")
                + (f"\nMarket: {_format_price(record.prices)}" if show_prices else ""),
                title="[green]✓ Identified[/green]",
                border_style="green",
            )
        )
    else:
        console.print(f"[red]❌ {result.error}[/red]")

    if result.potential_matches:
        console.print(_matches_table(result, show_prices))

    if add:
        if not result.accepted:
            console.print("[yellow]⚠ Nothing to add: no card accepted. Use --select to pick a match.[/yellow]")
            raise typer.Exit(1)
        try:
            quantity = CollectionStore().upsert(result.accepted)
        except CardIdentifierError as e:
            console.print(f"[red]❌ {e.message}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]✓ Added {result.accepted.name} to collection (x{quantity})[/green]")

    if not result.accepted:
        raise typer.Exit(2)


@app.command()
def collection():
    """List the cards in your collection."""
    try:
        entries = CollectionStore().list_all()
    except CardIdentifierError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)

    if not entries:
        console.print("[dim]Your collection is empty.[/dim]")
        return

    show_prices = settings.PREMIUM_FEATURES
    table = Table(title=f"Collection ({sum(e.quantity for e in entries)} cards)")
    table.add_column("Card ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Set", style="white")
    table.add_column("Number")
    table.add_column("Qty", justify="right")
    if show_prices:
        table.add_column("Price", justify="right", style="green")

    for entry in entries:
        row = [
            entry.card_id,
            ("★ " if entry.is_favorite else "") + entry.name,
            entry.set_name,
            entry.number,
            str(entry.quantity),
        ]
        if show_prices:
            row.append(f"${entry.current_price:.2f}" if entry.current_price is not None else "-")
        table.add_row(*row)

    console.print(table)


@app.command()
def remove(
    card_id: str = typer.Argument(..., help="Catalog card id, e.g. sv3pt5-25"),
    all_copies: bool = typer.Option(False, "--all", help="Remove every copy"),
):
    """Remove a card (one copy by default) from your collection."""
    try:
        store = CollectionStore()
        if all_copies:
            store.remove(card_id)
            gone = True
        else:
            gone = store.decrease_quantity(card_id)
    except CardIdentifierError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)

    if gone:
        console.print(f"[green]✓ Removed {card_id} from collection[/green]")
    else:
        console.print(f"[green]✓ Removed one copy of {card_id}[/green]")


if __name__ == "__main__":
    app()
