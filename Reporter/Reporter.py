"""
Reporter/Reporter.py — Live console output and site-model JSON generation.

Provides the :class:`Reporter` used by the spider and the entry point to
print progress, persist the site model, and summarise the scan.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from Models import CategorySet, LoginOutcome, PageRecord, SiteModel, site_model_to_dict

logger = logging.getLogger(__name__)

# Single shared console instance (stderr keeps stdout free for tool output)
console = Console(stderr=True)


class Reporter:
    """Drives all user-visible output of a scan.

    Responsibilities:
    - Rich-formatted per-page progress lines
    - Informational / error logging helpers
    - Site-model JSON persistence
    - End-of-run summary table
    """

    def __init__(self, output_file: str) -> None:
        self.output_file: str = output_file
        self.pages_scanned: int = 0
        self.pages_failed: int = 0
        self.login_outcome: Optional[LoginOutcome] = None
        self.totals: dict[str, int] = {name: 0 for name in CategorySet.names()}

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    def print_banner(self) -> None:
        """Print the tool banner to the console."""
        console.print(
            Panel(
                "[bold cyan]Site Scanner[/bold cyan]  |  Playwright-based site model crawler\n"
                "[dim]Only scan sites you are authorised to test.[/dim]",
                expand=False,
                style="bold white on black",
            )
        )

    def log_page(self, record: PageRecord) -> None:
        """Count *record* and print a one-line summary of its buckets."""
        self.pages_scanned += 1
        counts = record.categories.counts()
        for name, count in counts.items():
            self.totals[name] += count
        console.print(
            f"[green]\\[+][/green] [cyan]{record.url}[/cyan]  "
            f"controls=[yellow]{counts['clickable_controls']}[/yellow]  "
            f"inputs=[yellow]{counts['input_fields']}[/yellow]  "
            f"forms=[yellow]{counts['forms']}[/yellow]  "
            f"links=[yellow]{len(record.links)}[/yellow]"
        )

    def log_failure(self, url: str, reason: str) -> None:
        """Count a page that could not be scanned."""
        self.pages_failed += 1
        console.print(f"[yellow]\\[-][/yellow] [cyan]{url}[/cyan]  [dim]{reason}[/dim]")

    def log_login(self, url: str, outcome: LoginOutcome) -> None:
        """Record the outcome of the one login attempt of the crawl."""
        self.login_outcome = outcome
        if outcome is LoginOutcome.SUBMITTED:
            self.log_info(f"Login submitted on [cyan]{url}[/cyan]")
        else:
            self.log_error(f"Login on [cyan]{url}[/cyan]: {outcome.value.replace('_', ' ')}")

    def log_info(self, message: str) -> None:
        """Print a standard informational message (supports Rich markup)."""
        console.print(f"[dim]\\[*][/dim] {message}")

    def log_error(self, message: str) -> None:
        """Print an error message (supports Rich markup)."""
        console.print(f"[bold red]\\[!][/bold red] {message}")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, site_model: SiteModel) -> bool:
        """Serialise *site_model* to the JSON output file."""
        data = site_model_to_dict(site_model)
        try:
            Path(self.output_file).write_text(json.dumps(data, indent=2))
        except OSError as exc:
            console.print(f"[red]\\[!][/red] Failed to save site model: {exc}")
            return False
        console.print(f"\n[green]\\[+][/green] Site model saved: [bold]{self.output_file}[/bold]")
        return True

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def print_summary(self) -> None:
        """Print an end-of-run summary table."""
        table = Table(title="Scan Summary", box=box.ROUNDED, show_header=True)
        table.add_column("Metric", style="bold cyan", min_width=22)
        table.add_column("Value", style="white", justify="right")

        table.add_row("Pages scanned", str(self.pages_scanned))
        table.add_row("Pages failed", str(self.pages_failed))
        login = self.login_outcome.value if self.login_outcome else "not attempted"
        table.add_row("Login", login)
        for name, total in self.totals.items():
            table.add_row(name, str(total))

        console.print()
        console.print(table)
