"""
tests/test_auth.py — Unit tests for the heuristic login manager.

The Playwright page is replaced with ``AsyncMock`` methods; the in-page
detection script itself is not executed here.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from Auth import AuthManager, LoginForm, choose_identity
from Auth.Manager import BROAD_IDENTITY_SELECTOR, PASSWORD_SELECTOR, SUBMIT_SELECTOR
from Models import Credentials, LoginOutcome


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


DETECTED = {
    "identity": 'input[name="username"]',
    "password": PASSWORD_SELECTOR,
    "submit": SUBMIT_SELECTOR,
    "hasSubmit": True,
}


def make_page(detected=DETECTED, retained=None, submit_present=True) -> MagicMock:
    """Return a mock page whose identity field echoes *retained* (or the fill)."""
    page = MagicMock()
    page.evaluate = AsyncMock(return_value=detected)
    filled: dict[str, str] = {}

    async def fill(selector, value):
        filled[selector] = value

    async def input_value(selector):
        return retained if retained is not None else filled.get(selector, "")

    page.fill = AsyncMock(side_effect=fill)
    page.input_value = AsyncMock(side_effect=input_value)
    page.query_selector = AsyncMock(return_value=object() if submit_present else None)
    page.click = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    return page


def attempt(manager: AuthManager, page) -> LoginOutcome:
    return asyncio.run(manager.attempt(page, "https://example.com/login"))


# ---------------------------------------------------------------------------
# has_auth
# ---------------------------------------------------------------------------


class TestHasAuth:
    def test_false_without_password(self):
        assert AuthManager(Credentials(username="admin")).has_auth() is False

    def test_false_without_identity(self):
        assert AuthManager(Credentials(password="secret")).has_auth() is False

    def test_true_with_username_and_password(self):
        assert AuthManager(Credentials(username="admin", password="secret")).has_auth() is True

    def test_true_with_email_and_password(self):
        creds = Credentials(email="a@example.com", password="secret")
        assert AuthManager(creds).has_auth() is True


# ---------------------------------------------------------------------------
# choose_identity
# ---------------------------------------------------------------------------


class TestChooseIdentity:
    CREDS = dict(username="admin", email="admin@example.com", password="secret")

    def test_use_email_flag_wins(self):
        creds = Credentials(use_email=True, **self.CREDS)
        assert choose_identity(creds, 'input[name="username"]') == "admin@example.com"

    def test_explicit_username_flag_wins(self):
        creds = Credentials(use_email=False, **self.CREDS)
        assert choose_identity(creds, 'input[name="email"]') == "admin"

    def test_infers_email_from_selector(self):
        creds = Credentials(**self.CREDS)
        assert choose_identity(creds, 'input[name="email"]') == "admin@example.com"

    def test_defaults_to_username(self):
        creds = Credentials(**self.CREDS)
        assert choose_identity(creds, 'input[name="login"]') == "admin"

    def test_falls_back_to_email_when_no_username(self):
        creds = Credentials(email="admin@example.com", password="secret")
        assert choose_identity(creds, 'input[name="login"]') == "admin@example.com"

    def test_use_email_without_email_uses_username(self):
        creds = Credentials(username="admin", password="secret", use_email=True)
        assert choose_identity(creds, 'input[name="username"]') == "admin"


# ---------------------------------------------------------------------------
# detect
# ---------------------------------------------------------------------------


class TestDetect:
    def test_returns_form_when_script_finds_one(self):
        page = make_page()
        form = asyncio.run(AuthManager(Credentials()).detect(page))
        assert form == LoginForm(
            identity_selector='input[name="username"]',
            password_selector=PASSWORD_SELECTOR,
            submit_selector=SUBMIT_SELECTOR,
            has_submit=True,
        )

    def test_returns_none_when_no_form(self):
        page = make_page(detected=None)
        assert asyncio.run(AuthManager(Credentials()).detect(page)) is None

    def test_passes_selectors_to_script(self):
        page = make_page()
        asyncio.run(AuthManager(Credentials()).detect(page))
        _, arg = page.evaluate.await_args.args
        assert arg == {
            "broad": BROAD_IDENTITY_SELECTOR,
            "password": PASSWORD_SELECTOR,
            "submit": SUBMIT_SELECTOR,
        }


# ---------------------------------------------------------------------------
# attempt
# ---------------------------------------------------------------------------


class TestAttempt:
    def _manager(self, **kwargs) -> AuthManager:
        creds = dict(username="admin", password="secret")
        creds.update(kwargs)
        return AuthManager(Credentials(**creds))

    def test_successful_login_submits(self):
        page = make_page()
        assert attempt(self._manager(), page) is LoginOutcome.SUBMITTED
        page.fill.assert_any_await('input[name="username"]', "admin")
        page.fill.assert_any_await(PASSWORD_SELECTOR, "secret")
        page.click.assert_awaited_once_with(SUBMIT_SELECTOR)
        page.wait_for_load_state.assert_awaited_once()

    def test_not_detected_fills_nothing(self):
        page = make_page(detected=None)
        assert attempt(self._manager(), page) is LoginOutcome.NOT_DETECTED
        page.fill.assert_not_awaited()

    def test_validation_failure_stops_before_password(self):
        page = make_page(retained="")
        assert attempt(self._manager(), page) is LoginOutcome.VALIDATION_FAILED
        page.fill.assert_awaited_once_with('input[name="username"]', "admin")
        page.click.assert_not_awaited()

    def test_missing_submit_control(self):
        page = make_page(submit_present=False)
        assert attempt(self._manager(), page) is LoginOutcome.NO_SUBMIT_CONTROL
        page.click.assert_not_awaited()
        assert page.fill.await_count == 2

    def test_settle_timeout_is_tolerated(self):
        page = make_page()
        page.wait_for_load_state = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 10000ms"))
        assert attempt(self._manager(), page) is LoginOutcome.SUBMITTED

    def test_playwright_error_reported_not_raised(self):
        page = make_page()
        page.click = AsyncMock(side_effect=PlaywrightError("element detached"))
        assert attempt(self._manager(), page) is LoginOutcome.ERROR

    @pytest.mark.parametrize("use_email,expected", [
        (True, "admin@example.com"),
        (False, "admin"),
    ])
    def test_identity_flag_honoured(self, use_email, expected):
        page = make_page()
        manager = self._manager(email="admin@example.com", use_email=use_email)
        attempt(manager, page)
        page.fill.assert_any_await('input[name="username"]', expected)
