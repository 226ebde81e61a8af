"""
Config/Loader.py — Loads the scanner configuration once at startup.

Reads credentials and crawl settings from a YAML file and the optional
link include/exclude rules from a JSON file. Problems are logged and fall
back to defaults; they never abort a scan.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from Models import CrawlLimits, Credentials, LinkRules

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yml"
DEFAULT_RULES_FILE = "link-rules.json"


@dataclass(frozen=True)
class ScanConfig:
    """Everything the spider needs, built once and passed by reference."""

    credentials: Credentials = field(default_factory=Credentials)
    link_rules: LinkRules = field(default_factory=lambda: LinkRules(enabled=False))
    limits: CrawlLimits = field(default_factory=CrawlLimits)
    headless: bool = True

    def with_overrides(
        self,
        max_pages: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        headless: Optional[bool] = None,
    ) -> "ScanConfig":
        """Return a copy with CLI-supplied values applied."""
        limits = self.limits
        if max_pages is not None:
            limits = replace(limits, max_pages=max_pages)
        if timeout_ms is not None:
            limits = replace(limits, timeout_ms=timeout_ms)
        return replace(
            self,
            limits=limits,
            headless=self.headless if headless is None else headless,
        )


def load_config(
    config_path: str = DEFAULT_CONFIG_FILE,
    rules_path: str = DEFAULT_RULES_FILE,
) -> ScanConfig:
    """Build a :class:`ScanConfig` from *config_path* and *rules_path*."""
    data = _load_yaml(config_path)
    defaults = CrawlLimits()

    credentials = Credentials(
        username=_optional_str(data.get("username")),
        email=_optional_str(data.get("email")),
        password=_optional_str(data.get("password")),
        use_email=_optional_bool(data.get("use_email")),
    )
    limits = CrawlLimits(
        max_pages=_int_or(data.get("max_pages"), defaults.max_pages),
        timeout_ms=_int_or(data.get("timeout"), defaults.timeout_ms),
    )
    rules = load_link_rules(rules_path, enabled=bool(data.get("use_link_rules", False)))

    return ScanConfig(
        credentials=credentials,
        link_rules=rules,
        limits=limits,
        headless=bool(data.get("headless", True)),
    )


def load_link_rules(path: str = DEFAULT_RULES_FILE, enabled: bool = True) -> LinkRules:
    """Parse the link-rules JSON file; a missing or blank file means no rules."""
    file = Path(path)
    if not file.exists():
        return LinkRules(enabled=enabled)
    try:
        content = file.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Cannot read link rules %s: %s", path, exc)
        return LinkRules(enabled=enabled)
    if not content.strip():
        return LinkRules(enabled=enabled)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.error("Invalid JSON in link rules %s: %s", path, exc)
        return LinkRules(enabled=enabled)
    if not isinstance(data, dict):
        logger.error("Link rules %s must be a JSON object", path)
        return LinkRules(enabled=enabled)

    return LinkRules(
        include=_str_tuple(data.get("include")),
        exclude=_str_tuple(data.get("exclude")),
        enabled=enabled,
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _load_yaml(path: str) -> dict[str, Any]:
    file = Path(path)
    if not file.exists():
        logger.debug("No config file at %s; using defaults", path)
        return {}
    try:
        with open(file, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        logger.error("Cannot read config %s: %s", path, exc)
        return {}
    except yaml.YAMLError as exc:
        logger.error("Invalid YAML in config %s: %s", path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error("Config %s must be a mapping, got %s", path, type(data).__name__)
        return {}
    return data


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    return bool(value)


def _int_or(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer config value %r", value)
        return default


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if item)
