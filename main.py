"""
main.py — Entry point for the Site Scanner.

Sets up the CLI, configures logging, loads the scan configuration, then
crawls the target and writes the site model consumed by the test-case
generation step. Handles SIGINT gracefully by saving the partial model.

Usage::

    python main.py https://target.com [options]

See ``python main.py --help`` for full documentation.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError

from Config import DEFAULT_CONFIG_FILE, DEFAULT_RULES_FILE, ScanConfig, load_config
from Reporter import Reporter
from Spider import crawl_site

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------


def build_arg_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="site-scanner",
        description="Crawl a web application and classify its interactive elements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=r"""
Examples
────────
  Basic scan:
    python main.py https://target.com

  With credentials and link rules from custom files:
    python main.py https://target.com --config staging.yml \
                   --link-rules rules.json

  Small visible scan:
    python main.py https://target.com --max-pages 10 --no-headless --verbose
        """,
    )

    parser.add_argument("url", metavar="URL", help="Starting URL to crawl")

    # ── Configuration ─────────────────────────────────────────────────────────
    conf = parser.add_argument_group("configuration")
    conf.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        metavar="FILE",
        help=f"YAML file with credentials and crawl settings (default: {DEFAULT_CONFIG_FILE})",
    )
    conf.add_argument(
        "--link-rules",
        default=DEFAULT_RULES_FILE,
        metavar="FILE",
        help=f"JSON include/exclude link rules (default: {DEFAULT_RULES_FILE})",
    )

    # ── Crawl limits ──────────────────────────────────────────────────────────
    limits = parser.add_argument_group("crawl limits")
    limits.add_argument(
        "--max-pages",
        type=int,
        default=None,
        metavar="N",
        help="Maximum pages to scan (default: from config, else 50)",
    )
    limits.add_argument(
        "--timeout",
        type=int,
        default=None,
        metavar="MS",
        help="Page load timeout in milliseconds (default: from config, else 30000)",
    )

    # ── Output ────────────────────────────────────────────────────────────────
    out = parser.add_argument_group("output")
    out.add_argument(
        "--output",
        default="site_analysis.json",
        metavar="FILE",
        help="Site model output path (default: site_analysis.json)",
    )
    out.add_argument(
        "--verbose",
        action="store_true",
        help="Enable DEBUG-level logging",
    )

    # ── Browser ───────────────────────────────────────────────────────────────
    browser = parser.add_argument_group("browser")
    headless = browser.add_mutually_exclusive_group()
    headless.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=None,
        help="Run browser headlessly (default)",
    )
    headless.add_argument(
        "--no-headless",
        dest="headless",
        action="store_false",
        help="Show the browser UI (useful for debugging)",
    )

    return parser


def is_valid_start_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.hostname)


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Load the config files and apply CLI overrides."""
    config = load_config(args.config, args.link_rules)
    return config.with_overrides(
        max_pages=args.max_pages,
        timeout_ms=args.timeout,
        headless=args.headless,
    )


# ---------------------------------------------------------------------------
# Main async entry point
# ---------------------------------------------------------------------------


async def run(args: argparse.Namespace, config: Optional[ScanConfig] = None) -> int:
    """Crawl, persist the site model and print the summary."""
    config = config or build_config(args)
    reporter = Reporter(output_file=args.output)
    reporter.print_banner()

    shutdown_event = asyncio.Event()

    # ── SIGINT handler ────────────────────────────────────────────────────────
    def _on_sigint(*_) -> None:
        reporter.log_info(
            "[yellow]Ctrl-C received — saving partial site model and exiting…[/yellow]"
        )
        shutdown_event.set()

    signal.signal(signal.SIGINT, _on_sigint)

    reporter.log_info(f"Target:      [bold cyan]{args.url}[/bold cyan]")
    reporter.log_info(
        f"Max pages:   {config.limits.max_pages}   timeout: {config.limits.timeout_ms} ms"
    )
    if config.credentials.has_credentials():
        reporter.log_info("Login:       [bold cyan]credentials configured[/bold cyan]")
    else:
        reporter.log_info("Login:       [yellow]None[/yellow]")
    if config.link_rules.enabled:
        reporter.log_info(
            f"Link rules:  include={len(config.link_rules.include)} "
            f"exclude={len(config.link_rules.exclude)}"
        )

    try:
        site_model = await crawl_site(args.url, config, reporter, shutdown_event)
    except PlaywrightError as exc:
        reporter.log_error(f"Could not start the browser session: {exc}")
        return 1

    reporter.log_info(f"Crawl complete — [bold]{len(site_model)}[/bold] pages scanned.")
    if not site_model:
        reporter.log_error("No pages scanned — check the URL and network access.")

    # ── Persist and summarise ─────────────────────────────────────────────────
    reporter.save(site_model)
    reporter.print_summary()
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """Parse arguments, configure logging, and run the async main loop."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    # ── Logging setup ─────────────────────────────────────────────────────────
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Suppress noisy library logs unless in verbose mode
    if not args.verbose:
        for lib in ("playwright", "asyncio"):
            logging.getLogger(lib).setLevel(logging.WARNING)

    if not is_valid_start_url(args.url):
        parser.error("URL must start with http:// or https://")

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        # Second Ctrl-C while cleanup is running: exit immediately
        sys.exit(0)


if __name__ == "__main__":
    main()
