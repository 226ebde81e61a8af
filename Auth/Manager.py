"""
Auth/Manager.py — Opportunistic, heuristic login for the site scanner.

No login URL or selectors are configured: on any page the manager looks for
an identity field (username/email) paired with a password field, fills the
configured credentials, checks that the identity field kept its value, and
submits. The crawl attempts this at most once; the caller owns the
:class:`~Models.LoginState` flag and decides when to invoke :meth:`attempt`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Error as PlaywrightError, Page

from Models import Credentials, LoginOutcome

logger = logging.getLogger(__name__)

#: Fallback identity selector when no exact ``name`` match exists
BROAD_IDENTITY_SELECTOR = (
    'input[type="text"], input[type="email"], '
    'input[name*="user"], input[name*="email"], '
    'input[id*="user"], input[id*="email"]'
)
PASSWORD_SELECTOR = 'input[type="password"]'
SUBMIT_SELECTOR = 'button[type="submit"], input[type="submit"], button:not([type="button"])'

_DETECT_SCRIPT = """
    ({ broad, password, submit }) => {
        let identity = null;
        for (const name of ['username', 'email', 'login']) {
            const sel = 'input[name="' + name + '"]';
            if (document.querySelector(sel)) { identity = sel; break; }
        }
        if (!identity && document.querySelector(broad)) identity = broad;
        if (!identity || !document.querySelector(password)) return null;
        return {
            identity,
            password,
            submit,
            hasSubmit: document.querySelector(submit) !== null,
        };
    }
"""


@dataclass(frozen=True)
class LoginForm:
    """Selectors of a login form found on the current page."""

    identity_selector: str
    password_selector: str
    submit_selector: str
    has_submit: bool = True


def choose_identity(credentials: Credentials, identity_selector: str) -> Optional[str]:
    """Return the credential value to type into the identity field.

    An explicit ``use_email`` flag wins; otherwise the email is used when
    the matched field looks email-like, and the username in all other cases.
    """
    if credentials.use_email is True and credentials.email:
        return credentials.email
    if credentials.use_email is False and credentials.username:
        return credentials.username
    if credentials.email and "email" in identity_selector.lower():
        return credentials.email
    return credentials.username or credentials.email


class AuthManager:
    """Detects a login form on a page and performs one login attempt.

    Usage::

        manager = AuthManager(credentials)
        if manager.has_auth():
            outcome = await manager.attempt(page, url)
    """

    #: Bounded wait for the page to settle after submitting.
    SETTLE_TIMEOUT_MS: int = 10_000

    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def has_auth(self) -> bool:
        """Return *True* if usable credentials are configured."""
        return self.credentials.has_credentials()

    async def detect(self, page: Page) -> Optional[LoginForm]:
        """Return the login form on *page*, or *None* if there is none."""
        found = await page.evaluate(
            _DETECT_SCRIPT,
            {
                "broad": BROAD_IDENTITY_SELECTOR,
                "password": PASSWORD_SELECTOR,
                "submit": SUBMIT_SELECTOR,
            },
        )
        if not found:
            return None
        return LoginForm(
            identity_selector=found["identity"],
            password_selector=found["password"],
            submit_selector=found["submit"],
            has_submit=bool(found.get("hasSubmit", True)),
        )

    async def attempt(self, page: Page, url: str) -> LoginOutcome:
        """Try to log in on the page currently loaded at *url*.

        Never raises for browser errors; they are reported as
        :attr:`LoginOutcome.ERROR`.
        """
        try:
            form = await self.detect(page)
            if form is None:
                return LoginOutcome.NOT_DETECTED

            logger.info("Login form found on %s", url)
            return await self._fill_and_submit(page, form)

        except PlaywrightError as exc:
            logger.error("Login attempt on %s failed with Playwright error: %s", url, exc)
            return LoginOutcome.ERROR

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fill_and_submit(self, page: Page, form: LoginForm) -> LoginOutcome:
        identity = choose_identity(self.credentials, form.identity_selector)
        if not identity:
            logger.warning("No username or email configured for the login form")
            return LoginOutcome.VALIDATION_FAILED

        await page.fill(form.identity_selector, identity)

        # The identity field must keep what we typed before the password goes in
        actual = await page.input_value(form.identity_selector)
        if actual != identity:
            logger.error("Validation failed: identity field did not retain its value")
            return LoginOutcome.VALIDATION_FAILED
        logger.debug("Identity field filled via %s", form.identity_selector)

        await page.fill(form.password_selector, self.credentials.password or "")

        if not form.has_submit or await page.query_selector(form.submit_selector) is None:
            logger.warning("Login form has no submit control; credentials left filled in")
            return LoginOutcome.NO_SUBMIT_CONTROL

        await page.click(form.submit_selector)
        try:
            await page.wait_for_load_state("networkidle", timeout=self.SETTLE_TIMEOUT_MS)
        except PlaywrightError:
            logger.debug("Page did not settle within %d ms after login", self.SETTLE_TIMEOUT_MS)

        logger.info("Login submitted")
        return LoginOutcome.SUBMITTED
