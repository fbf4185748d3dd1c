#!/usr/bin/env python3
"""
Command-line interface for running the job crawler.

Uses typer for clean CLI with subcommands.
"""

import sys
from pathlib import Path
from typing import Optional

import typer

# Add project root to path so we can import beehive
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from beehive.contexts.crawling.config import load_crawl_config
from beehive.contexts.crawling.orchestration import run_crawl, setup_logger

app = typer.Typer(
    add_completion=False,
    help="BEEHIVE job crawler",
)


@app.command("run")
def run_command(
    location: Optional[str] = typer.Option(
        None,
        "--location",
        "-l",
        help="Location to search (default: crawl.location from config, 'remote')",
    ),
    max_pages: Optional[int] = typer.Option(
        None,
        "--max-pages",
        "-n",
        help="Number of listing pages to crawl (default: crawl.max_pages from config, 3)",
        min=0,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Crawl YAML merged over the defaults (default: $CONFIG_PATH/crawl.yaml)",
        exists=True,
        dir_okay=False,
    ),
    headful: bool = typer.Option(
        False,
        "--headful",
        help="Show the browser window",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log warnings and errors to the console",
    ),
):
    """
    Crawl job listings into the database with logging to timestamped files.

    Examples:

        # Crawl 3 pages of remote jobs
        $ run_crawl.py run

        # Crawl 5 pages for a city with a visible browser
        $ run_crawl.py run -l "Austin, TX" -n 5 --headful
    """
    log_file = setup_logger(console_level="WARNING" if quiet else "INFO")
    typer.echo(f"Logging to: {log_file}", err=True)

    try:
        result = run_crawl(
            location=location,
            max_pages=max_pages,
            config_path=config,
            headless=False if headful else None,
            verbose=not quiet,
        )
    except KeyboardInterrupt:
        typer.secho("\n\nInterrupted by user", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=130)

    if result["status"] == "failed":
        typer.secho(f"Crawl failed: {result['error']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    summary = f"{result['records_processed']} records processed, {result['rows_added']} new"
    if result["reason"]:
        summary += f" (stopped early: {result['reason']})"
    typer.secho(summary, fg=typer.colors.GREEN)


@app.command("config")
def config_command(
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
):
    """Print the effective crawl configuration."""
    from omegaconf import OmegaConf

    typer.echo(OmegaConf.to_yaml(load_crawl_config(config)))


if __name__ == "__main__":
    app()
