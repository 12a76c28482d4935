"""Command-line interface for Greenhouse Autofiller."""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from greenhouse_autofiller.browser.agent import SUCCESS_STATUS, BrowserAgent
from greenhouse_autofiller.browser.forms import FillReport
from greenhouse_autofiller.config import settings
from greenhouse_autofiller.core.models import CandidateProfile
from greenhouse_autofiller.utils.logging import configure_logging

app = typer.Typer(
    name="greenhouse-autofiller",
    help="Greenhouse Autofiller - fill job application forms from a candidate profile",
    add_completion=False,
)
console = Console()


def load_profile(path: Path) -> CandidateProfile:
    """Load a camelCase profile JSON file."""
    return CandidateProfile.model_validate_json(path.read_text(encoding="utf-8"))


async def run_fill(agent: BrowserAgent, url: str, profile: CandidateProfile, linger: float) -> tuple:
    """Open the page, deliver the command and wait for the fill to settle."""
    reports: List[FillReport] = []
    try:
        if not await agent.navigate_to(url):
            return "Error: Could not open the application page.", reports

        status = await agent.send_autofill(profile)
        if status == SUCCESS_STATUS:
            reports = await agent.wait_for_fill()
            if linger > 0:
                await asyncio.sleep(linger)
        return status, reports
    finally:
        await agent.close()


def render_report(report: FillReport) -> Table:
    table = Table(title="Autofill Result")
    table.add_column("Field", style="cyan")
    table.add_column("Controls Filled", style="green")

    for field_name, count in report.filled.items():
        table.add_row(field_name, str(count))
    for field_name in report.missed:
        table.add_row(field_name, "[dim]not found[/dim]")

    table.add_row("resume", str(report.resume_attached) if report.resume_attached else "[dim]not attached[/dim]")
    return table


@app.command()
def fill(
    url: str = typer.Argument(..., help="Job application page URL"),
    profile: Path = typer.Option(..., "--profile", "-p", help="Candidate profile JSON file"),
    headless: bool = typer.Option(settings.browser_headless, help="Run browser in headless mode"),
    wait: float = typer.Option(0.0, help="Seconds to keep the page open after filling"),
    user_data_dir: Optional[str] = typer.Option(None, help="Persistent browser profile directory"),
) -> None:
    """Fill the application form at URL."""
    configure_logging()

    try:
        candidate = load_profile(profile)
    except (OSError, ValidationError) as e:
        console.print(f"❌ Could not load profile: {e}")
        raise typer.Exit(code=1)

    agent = BrowserAgent(headless=headless, user_data_dir=user_data_dir)
    status, reports = asyncio.run(run_fill(agent, url, candidate, wait))

    console.print(status)
    for report in reports:
        console.print(render_report(report))

    if status != SUCCESS_STATUS:
        raise typer.Exit(code=1)


@app.command()
def config() -> None:
    """Show current configuration."""
    table = Table(title="Greenhouse Autofiller Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Browser Headless", str(settings.browser_headless))
    table.add_row("Browser Timeout", f"{settings.browser_timeout}s")
    table.add_row("Event Stagger", f"{settings.event_stagger_ms}ms")
    table.add_row("Re-scan Delay", f"{settings.rescan_delay_ms}ms")
    table.add_row("Framework Prefixes", ", ".join(settings.framework_prop_prefixes))
    table.add_row("Resume File Name", settings.resume_filename)
    table.add_row("Resume Chunk Size", str(settings.resume_chunk_size))

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from greenhouse_autofiller import __version__
    console.print(f"Greenhouse Autofiller v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
