"""
Frontier/Filter.py — Decides whether a discovered link may enter the frontier.

Pure functions only: the crawl stays on its starting hostname, never queues
binary or media resources, never follows logout links, and honours the
optional include/exclude substring rules.
"""
from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

from Models import LinkRules

logger = logging.getLogger(__name__)

# Resources that are recorded by the classifier but never navigated to
SKIP_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".ico",
        ".pdf",
        ".zip", ".tar", ".gz", ".rar", ".7z",
        ".doc", ".docx", ".xls", ".xlsx", ".csv",
        ".exe", ".dmg", ".msi", ".iso", ".pkg", ".deb",
    }
)

# Link text that would end the authenticated session
_SESSION_ENDING_WORDS: tuple[str, ...] = ("logout", "signout")


def has_skip_extension(path: str) -> bool:
    """Return *True* if *path* ends in one of :data:`SKIP_EXTENSIONS`."""
    _, dot, ext = path.lower().rpartition(".")
    return bool(dot) and "/" not in ext and f".{ext}" in SKIP_EXTENSIONS


def is_same_domain(url: str, domain: str) -> bool:
    """Return *True* if the hostname of *url* equals *domain*."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return False
    return hostname is not None and hostname == domain.lower()


def matches_rules(url: str, rules: LinkRules) -> bool:
    """Apply the include/exclude substring rules; exclude always wins."""
    if not rules.enabled:
        return True
    if any(rule and rule in url for rule in rules.exclude):
        return False
    if rules.include:
        return any(rule and rule in url for rule in rules.include)
    return True


def is_allowed(
    candidate_url: str,
    domain: str,
    rules: Optional[LinkRules] = None,
    link_text: Optional[str] = None,
) -> bool:
    """Return *True* if *candidate_url* may be queued for navigation.

    Malformed URLs are rejected rather than raised.
    """
    try:
        parsed = urlparse(candidate_url)
        # Accessing .port validates the netloc as well
        parsed.port
    except ValueError:
        logger.debug("Dropping unparsable link %r", candidate_url)
        return False

    if parsed.scheme not in {"http", "https"}:
        return False
    if parsed.hostname is None or parsed.hostname != domain.lower():
        return False
    if has_skip_extension(parsed.path):
        return False

    text = (link_text or "").lower()
    if any(word in text for word in _SESSION_ENDING_WORDS):
        logger.debug("Not following session-ending link %s", candidate_url)
        return False

    if rules is not None and not matches_rules(candidate_url, rules):
        return False

    return True
