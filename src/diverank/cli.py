"""CLI for DiveRank."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import pydantic
import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from diverank import __version__
from diverank.core.config import DiveRankConfig, load_config
from diverank.core.errors import ConfigurationError, DiveRankError
from diverank.services.match import ChampionHint, MatchService
from diverank.services.storage import DiveRankStore

T = TypeVar("T")

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="diverank",
    help="DiveRank - rank dive sites by pairwise votes with Elo ratings",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
]
ActorOption = Annotated[str | None, typer.Option("--actor", help="Actor id (omit for anonymous)")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"diverank v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """DiveRank CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load(config_path: Path | None) -> DiveRankConfig:
    try:
        return load_config(config_path) if config_path else DiveRankConfig()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except pydantic.ValidationError as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


def _run(config: DiveRankConfig, action: Callable[[MatchService], Awaitable[T]]) -> T:
    """Run one async action against a fresh store, mapping expected errors to exit 1."""

    async def _main() -> T:
        store = DiveRankStore.from_config(config)
        try:
            return await action(MatchService(config, store))
        finally:
            await store.close()

    try:
        return asyncio.run(_main())
    except DiveRankError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def init(
    config_path: ConfigOption = None,
    catalog: Annotated[
        Path | None, typer.Option("--catalog", help="Dive-site catalog YAML to seed")
    ] = None,
) -> None:
    """Create the database schema and seed the dive-site catalog."""
    config = _load(config_path)
    created, updated = _run(config, lambda service: service.seed_catalog(catalog))
    console.print(f"[green]Catalog seeded:[/green] {created} created, {updated} updated")


@app.command()
def matchup(
    config_path: ConfigOption = None,
    actor: ActorOption = None,
    champion: Annotated[
        int | None, typer.Option("--champion", help="Id of the previous round's winner")
    ] = None,
    side: Annotated[str, typer.Option("--side", help="Champion side: A/B or left/right")] = "A",
) -> None:
    """Show the next matchup."""
    config = _load(config_path)
    try:
        hint = ChampionHint.parse(champion, side) if champion is not None else None
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--side") from e

    result = _run(config, lambda service: service.select_pair(actor, hint))
    for label, site in (("A", result.site_a), ("B", result.site_b)):
        console.print(f"[bold]{label}:[/bold] #{site.id} {site.name} ({site.rating:.0f})")


@app.command()
def vote(
    winner: Annotated[int, typer.Argument(help="Id of the preferred dive site")],
    loser: Annotated[int, typer.Argument(help="Id of the other dive site")],
    config_path: ConfigOption = None,
    actor: ActorOption = None,
) -> None:
    """Record a vote for WINNER over LOSER."""
    config = _load(config_path)
    comparison = _run(config, lambda service: service.record_comparison(winner, loser, actor))
    console.print(
        f"[green]Recorded[/green] {comparison.id}: #{winner} +{comparison.points_changed}, "
        f"#{loser} -{comparison.points_changed}"
    )


@app.command()
def rankings(config_path: ConfigOption = None) -> None:
    """Show the leaderboard."""
    config = _load(config_path)
    leaderboard = _run(config, lambda service: service.get_rankings())

    table = Table(title="Dive Site Rankings")
    for column in ("Rank", "Site", "Location", "Rating", "W", "L", "Change"):
        table.add_column(column)
    for entry in leaderboard:
        if entry.rank_change > 0:
            change = f"[green]+{entry.rank_change}[/green]"
        elif entry.rank_change < 0:
            change = f"[red]{entry.rank_change}[/red]"
        else:
            change = "-"
        table.add_row(
            str(entry.rank),
            entry.name,
            entry.location,
            f"{entry.rating:.0f}",
            str(entry.wins),
            str(entry.losses),
            change,
        )
    console.print(table)


@app.command()
def regions(config_path: ConfigOption = None) -> None:
    """List dive sites grouped by location."""
    config = _load(config_path)
    grouped = _run(config, lambda service: service.sites_by_region())
    if not grouped:
        console.print("No dive sites yet.")
    for region in grouped:
        console.print(f"[bold]{region.name}[/bold] ({len(region.sites)})")
        for site in region.sites:
            console.print(f"  #{site.id} {site.name} ({site.rating:.0f})")


@app.command()
def activity(
    config_path: ConfigOption = None,
    limit: Annotated[int | None, typer.Option("--limit", help="Number of votes to show")] = None,
) -> None:
    """Show recent votes."""
    config = _load(config_path)
    entries = _run(config, lambda service: service.recent_activity(limit))
    if not entries:
        console.print("No votes yet.")
    for entry in entries:
        who = entry.actor_id or "anonymous"
        console.print(
            f"{entry.timestamp:%Y-%m-%d %H:%M} {who}: {entry.winner_name} beat "
            f"{entry.loser_name} (+{entry.points_changed})"
        )


@app.command()
def progress(
    actor: Annotated[str, typer.Option("--actor", help="Actor id")],
    config_path: ConfigOption = None,
) -> None:
    """Show how many matchups an actor has completed."""
    config = _load(config_path)
    result = _run(config, lambda service: service.actor_progress(actor))
    console.print(
        f"{actor}: {result.voted_pairs}/{result.total_pairs} matchups ({result.percent}%)"
    )
    if result.completed:
        console.print("[green]All matchups completed![/green]")


@app.command()
def reset(
    actor: Annotated[str, typer.Option("--actor", help="Actor id")],
    config_path: ConfigOption = None,
    recompute: Annotated[
        bool, typer.Option("--recompute", help="Rebuild ratings after deleting the votes")
    ] = False,
) -> None:
    """Delete an actor's votes."""
    config = _load(config_path)

    async def _reset(service: MatchService) -> int:
        removed = await service.reset_actor_history(actor)
        if recompute:
            await service.recompute_ratings()
        return removed

    removed = _run(config, _reset)
    console.print(f"Removed {removed} votes for {actor}")


@app.command(name="recompute")
def recompute_command(config_path: ConfigOption = None) -> None:
    """Rebuild every rating from the vote history (run during maintenance)."""
    config = _load(config_path)
    summary = _run(config, lambda service: service.recompute_ratings())
    console.print(
        f"[green]Ratings rebuilt:[/green] {summary.replayed} votes replayed, "
        f"{summary.skipped} skipped"
    )


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file without touching the database."""
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Database: {config.get_database_url()}")
        console.print(f"  Catalog: {config.catalog_path or 'packaged'}")
        console.print(f"  Initial rating: {config.elo.initial_rating}")
        console.print(f"  K-factor: {config.elo.k_factor}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


if __name__ == "__main__":
    app()
