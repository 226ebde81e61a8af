"""
Spider/Spider.py — Sequential crawl orchestrator.

Crawls from a start URL on a single reused Playwright page, never leaving
the start hostname, and for every page:
  - attempts the one opportunistic login of the crawl (while still idle)
  - snapshots every element and classifies it into the ten buckets
  - collects outbound links, filters them and feeds the frontier

A page that fails to load or scan is logged and skipped; only failing to
start the browser is fatal.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import (
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Route,
    async_playwright,
)

from Auth import AuthManager
from Classifier import classify
from Config import ScanConfig
from Frontier import Frontier, is_allowed, is_same_domain, normalize_url
from Models import LoginOutcome, LoginState, PageRecord, SiteModel
from Reporter import Reporter

logger = logging.getLogger(__name__)

_ELEMENTS_SCRIPT = r"""
    () => {
        const describe = (el) => {
            const rect = el.getBoundingClientRect();
            const tag = el.tagName.toLowerCase();
            const cls = el.className;
            const text = el.innerText
                ? el.innerText.substring(0, 50).replace(/\s+/g, ' ').trim()
                : null;
            return {
                tagName: tag,
                id: el.id || null,
                className: typeof cls === 'string' ? cls : (cls && cls.baseVal) || null,
                text: text,
                fullText: tag === 'form' ? (el.innerText || '') : null,
                attributes: Array.from(el.attributes).reduce((acc, attr) => {
                    acc[attr.name] = attr.value;
                    return acc;
                }, {}),
                rect: {
                    x: Math.round(rect.x),
                    y: Math.round(rect.y),
                    width: Math.round(rect.width),
                    height: Math.round(rect.height),
                },
                href: tag === 'a' && typeof el.href === 'string' && el.href ? el.href : null,
                inLandmark: el.closest('nav, header, footer') !== null,
                hasClickHandler: typeof el.onclick === 'function',
                draggable: el.draggable === true,
            };
        };
        return Array.from(document.querySelectorAll('*')).map(describe);
    }
"""

_LINKS_SCRIPT = """
    () => Array.from(document.querySelectorAll('a[href]'))
        .map(a => ({ url: a.href, text: (a.innerText || '').trim() }))
        .filter(link => link.url.startsWith('http'))
"""


@dataclass(frozen=True)
class RawLink:
    """An outbound anchor as found on the page."""

    url: str
    text: str = ""


# ---------------------------------------------------------------------------
# Spider
# ---------------------------------------------------------------------------


class Spider:
    """Breadth-first, strictly sequential crawler producing the site model.

    One page object is reused for the whole crawl. The spider is the only
    writer of :attr:`login_state`.
    """

    def __init__(
        self,
        context: BrowserContext,
        start_url: str,
        config: ScanConfig,
        reporter: Reporter,
        auth_manager: Optional[AuthManager] = None,
        shutdown_event: Optional[asyncio.Event] = None,
    ) -> None:
        self.context = context
        self.start_url = start_url
        self.config = config
        self.reporter = reporter
        self.auth_manager = auth_manager or AuthManager(config.credentials)
        self.shutdown_event = shutdown_event or asyncio.Event()

        self.domain: str = (urlparse(start_url).hostname or "").lower()
        self.frontier = Frontier(config.limits.max_pages)
        self.login_state = LoginState()
        self.site_model: SiteModel = {}

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def crawl(self) -> SiteModel:
        """Crawl from :attr:`start_url` and return the site model.

        Stops when the frontier is empty, the page budget is spent, or a
        shutdown is requested.
        """
        await self.context.route("**/*", self._guard_navigation)
        page = await self.context.new_page()

        self.frontier.enqueue(self.start_url)
        try:
            while not self.frontier.is_exhausted() and not self.shutdown_event.is_set():
                url = self.frontier.dequeue()
                if url is None:
                    break

                scanned = await self._visit_page(page, url)
                if scanned is None:
                    continue

                record, links = scanned
                self.site_model[record.url] = record
                self.reporter.log_page(record)
                self._enqueue_links(links)
        finally:
            if not page.is_closed():
                try:
                    await page.close()
                except PlaywrightError:
                    pass

        if len(self.frontier.visited) >= self.frontier.budget:
            logger.info("max-pages limit (%d) reached", self.frontier.budget)
        return self.site_model

    # ------------------------------------------------------------------
    # Page visit
    # ------------------------------------------------------------------

    async def _visit_page(
        self, page: Page, url: str
    ) -> Optional[tuple[PageRecord, list[RawLink]]]:
        """Load *url* on *page*, classify it and collect links, then log in if due.

        The record always describes the page as loaded from *url*. When a
        login is submitted, links found on the page it lands on are added to
        the returned links but not to the record.

        Returns *None* when the page could not be loaded or scanned.
        """
        timeout = self.config.limits.timeout_ms
        target = normalize_url(url)
        try:
            try:
                await page.goto(target, wait_until="networkidle", timeout=timeout)
            except PlaywrightError as exc:
                logger.warning("Failed to load %s: %s", url, exc)
                self.reporter.log_failure(url, "navigation failed")
                return None

            if not is_same_domain(page.url, self.domain):
                logger.debug("Redirect left domain: %s -> %s — skipping", url, page.url)
                self.reporter.log_failure(url, "redirected off-domain")
                return None

            elements = await page.evaluate(_ELEMENTS_SCRIPT)
            links = self._parse_links(await page.evaluate(_LINKS_SCRIPT))

            record = PageRecord(
                url=target,
                categories=classify(elements or []),
                links=[link.url for link in links],
            )

            if await self._maybe_login(page, url):
                links = links + await self._post_login_links(page)
            return record, links

        except PlaywrightError as exc:
            logger.warning("Playwright error scanning %s: %s", url, exc)
            self.reporter.log_failure(url, "scan failed")
            return None
        except Exception as exc:
            logger.exception("Unexpected error scanning %s: %s", url, exc)
            self.reporter.log_failure(url, "scan failed")
            return None

    async def _maybe_login(self, page: Page, url: str) -> bool:
        """Run the login attempt on the already scanned page.

        Returns True when credentials were submitted.
        """
        if self.login_state.attempted or not self.auth_manager.has_auth():
            return False
        outcome = await self.auth_manager.attempt(page, url)
        if outcome is LoginOutcome.NOT_DETECTED:
            return False
        self.login_state.attempted = True
        self.reporter.log_login(url, outcome)
        return outcome is LoginOutcome.SUBMITTED

    async def _post_login_links(self, page: Page) -> list[RawLink]:
        """Links on the page the login submit landed on, if still on-domain."""
        if not is_same_domain(page.url, self.domain):
            logger.debug("Login landed off-domain: %s", page.url)
            return []
        try:
            return self._parse_links(await page.evaluate(_LINKS_SCRIPT))
        except PlaywrightError as exc:
            logger.debug("Could not read links after login on %s: %s", page.url, exc)
            return []

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_links(raw: object) -> list[RawLink]:
        links: list[RawLink] = []
        if not isinstance(raw, list):
            return links
        for item in raw:
            if isinstance(item, str):
                links.append(RawLink(url=item))
            elif isinstance(item, dict) and item.get("url"):
                links.append(RawLink(url=str(item["url"]), text=str(item.get("text") or "")))
        return links

    def _enqueue_links(self, links: list[RawLink]) -> None:
        rules = self.config.link_rules
        for link in links:
            if is_allowed(link.url, self.domain, rules, link.text):
                self.frontier.enqueue(link.url)

    # ------------------------------------------------------------------
    # Navigation guard
    # ------------------------------------------------------------------

    async def _guard_navigation(self, route: Route) -> None:
        """Abort top-level navigations to any other hostname."""
        request = route.request
        if request.is_navigation_request() and not is_same_domain(request.url, self.domain):
            try:
                host = urlparse(request.url).hostname
            except ValueError:
                host = None
            if host is not None:
                logger.info("Blocked external navigation: %s", host)
                await route.abort()
                return
        await route.continue_()


# ---------------------------------------------------------------------------
# Session wrapper
# ---------------------------------------------------------------------------


async def crawl_site(
    start_url: str,
    config: ScanConfig,
    reporter: Reporter,
    shutdown_event: Optional[asyncio.Event] = None,
) -> SiteModel:
    """Launch Chromium, crawl *start_url* and return the site model.

    Errors while acquiring the browser session propagate to the caller.
    """
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=config.headless)
        try:
            context = await browser.new_context()
            spider = Spider(
                context=context,
                start_url=start_url,
                config=config,
                reporter=reporter,
                shutdown_event=shutdown_event,
            )
            site_model = await spider.crawl()
            try:
                await context.close()
            except PlaywrightError:
                pass
            return site_model
        finally:
            try:
                await browser.close()
            except PlaywrightError:
                pass
