"""Command-line interface using Click + Rich."""

import asyncio
import json
import logging
from contextlib import nullcontext

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from bookharvest.adapters.registry import register_configured_sites
from bookharvest.config import load_config
from bookharvest.errors import ConfigurationError
from bookharvest.harvest import harvest_with_report
from bookharvest.models import SearchTask

console = Console()


def _setup_custom_sites() -> None:
    """Load custom sites from user config and register them."""
    register_configured_sites(load_config().custom_sites)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log fetch and parse details.")
def main(verbose: bool):
    """bookharvest — search book catalog sites and rank what they list."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    _setup_custom_sites()


@main.command()
@click.argument("query")
@click.option("--site", "-s", "site", required=True, help="Target site id (see 'sites').")
@click.option("--isbn", default="", help="Search by ISBN when it is well formed.")
@click.option("--author", "-a", default="", help="Author, used to boost matching titles.")
@click.option(
    "--limit",
    "-n",
    default=None,
    type=int,
    help="Max results (defaults to config).",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
def search(query: str, site: str, isbn: str, author: str, limit: int | None, as_json: bool):
    """Search one site for a book."""
    config = load_config()
    if limit is not None:
        config.limit = limit

    try:
        task = SearchTask(target_site=site, query=query, isbn=isbn, author=author)
        status = nullcontext() if as_json else console.status(f"Searching {site}...")
        with status:
            report = asyncio.run(harvest_with_report(task, config))
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e

    if as_json:
        click.echo(json.dumps([c.to_dict() for c in report.results], ensure_ascii=False, indent=2))
        return

    if report.error:
        console.print(f"[yellow]{site} unavailable:[/yellow] {report.error}")

    if not report.results:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table(title=f"Results for: {query}", show_lines=True)
    table.add_column("Site", style="cyan")
    table.add_column("Title", style="white", max_width=40)
    table.add_column("Relevance", style="green", justify="right")
    table.add_column("Detail", style="blue", max_width=50)
    table.add_column("Download", style="magenta", max_width=50)

    for c in report.results:
        table.add_row(c.site, c.title, str(c.relevance), c.detail_url, c.download_url or "-")

    console.print(table)
    console.print(
        f"[dim]{report.strategy} strategy, {report.elapsed:.2f}s[/dim]"
    )


@main.command()
def sites():
    """List all registered catalog sites."""
    from bookharvest.adapters.registry import get_all_adapters

    table = Table(title="Registered Sites")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("URL", style="blue")
    table.add_column("Download", style="green")

    for adapter in get_all_adapters():
        if adapter.derive_download is not None:
            download = "derived"
        elif adapter.needs_detail_fetch:
            download = "detail page"
        else:
            download = "-"
        table.add_row(adapter.id, adapter.name, adapter.base_url, download)

    console.print(table)


@main.command()
@click.option("--force", is_flag=True, help="Overwrite existing config file.")
def init(force: bool):
    """Create a default config file in the user config directory."""
    from bookharvest.config import write_default_config

    path = write_default_config(force=force)
    console.print(f"[green]Config written to:[/green] {path}")


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind the HTTP API.")
@click.option("--port", default=8000, type=int, help="Port for the HTTP API.")
def web(host: str, port: int):
    """Run the HTTP API (requires the web extra)."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]The HTTP API requires extra dependencies.[/red] "
            "Install with: pip install bookharvest[web]"
        )
        return

    uvicorn.run("bookharvest.web:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
