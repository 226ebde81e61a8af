"""
Models/Site.py — Data types produced by the scanner and consumed by the
test-case generation step.

The site model is a mapping of normalized URL to :class:`CategorySet`; its
JSON shape (bucket names, element keys) is relied upon downstream.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rect:
    """Integer-rounded bounding box of an element at scan time."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def is_visible(self) -> bool:
        return self.width != 0 and self.height != 0

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Rect"]:
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                x=round(float(data.get("x", 0) or 0)),
                y=round(float(data.get("y", 0) or 0)),
                width=round(float(data.get("width", 0) or 0)),
                height=round(float(data.get("height", 0) or 0)),
            )
        except (TypeError, ValueError, OverflowError):
            return None

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class RawElement:
    """One DOM node as reported by the in-page extraction script.

    Carries a few browser-only facts (resolved ``href``, landmark ancestry,
    a live ``onclick`` handler) that cannot be recovered from attributes
    alone. Only :mod:`Classifier` reads this type.
    """

    tag: str
    id: Optional[str] = None
    class_name: Optional[str] = None
    text: Optional[str] = None
    full_text: Optional[str] = None
    """Complete visible text; only the form heuristic looks at it."""

    attributes: dict[str, str] = field(default_factory=dict)
    rect: Optional[Rect] = None
    """*None* when the descriptor carried no geometry."""

    href: Optional[str] = None
    """Absolute URL resolved by the browser (anchors only)."""

    in_landmark: bool = False
    """True when nested under ``nav``, ``header`` or ``footer``."""

    has_click_handler: bool = False

    draggable: bool = False
    """The browser's ``el.draggable``; true by default for images and links."""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawElement":
        """Build a :class:`RawElement` from a script result or a terse fixture.

        Top-level ``type``, ``name`` and ``href`` keys are folded into the
        attribute map when it does not already define them.
        """
        raw_attributes = data.get("attributes")
        if not isinstance(raw_attributes, dict):
            raw_attributes = {}
        attributes = {
            str(k): "" if v is None else str(v)
            for k, v in raw_attributes.items()
        }
        for key in ("type", "name", "href"):
            value = data.get(key)
            if value is not None and key not in attributes:
                attributes[key] = str(value)

        class_name = data.get("className", data.get("class_name"))
        if class_name is None:
            class_name = attributes.get("class")

        href = data.get("href") or attributes.get("href") or None

        return cls(
            tag=str(data.get("tagName") or data.get("tag") or "").lower(),
            id=data.get("id") or attributes.get("id") or None,
            class_name=class_name if isinstance(class_name, str) else None,
            text=data.get("text"),
            full_text=data.get("fullText", data.get("full_text")),
            attributes=attributes,
            rect=Rect.from_dict(data.get("rect")),
            href=href,
            in_landmark=bool(data.get("inLandmark", data.get("in_landmark", False))),
            has_click_handler=bool(
                data.get("hasClickHandler", data.get("has_click_handler", False))
            ),
            draggable=data.get("draggable") is True,
        )

    def attr(self, name: str) -> str:
        """Return attribute *name* lower-cased, or ``""`` when absent."""
        return (self.attributes.get(name) or "").lower()

    def to_info(self) -> "ElementInfo":
        return ElementInfo(
            tag=self.tag,
            id=self.id,
            class_name=self.class_name,
            text=self.text,
            attributes=dict(self.attributes),
            rect=self.rect,
        )


@dataclass(frozen=True)
class ElementInfo:
    """Immutable snapshot of one classified DOM node."""

    tag: str
    id: Optional[str] = None
    class_name: Optional[str] = None
    text: Optional[str] = None
    attributes: dict[str, str] = field(default_factory=dict, compare=True, hash=False)
    rect: Optional[Rect] = None
    marker: Optional[str] = None
    """Synthetic tag such as ``image`` or ``image_link``."""

    def with_marker(self, marker: Optional[str]) -> "ElementInfo":
        return self if marker is None else replace(self, marker=marker)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tagName": self.tag,
            "id": self.id,
            "className": self.class_name,
            "text": self.text,
            "attributes": dict(self.attributes),
            "rect": self.rect.to_dict() if self.rect else None,
        }
        if self.marker:
            data["type"] = self.marker
        return data


# ---------------------------------------------------------------------------
# Page results
# ---------------------------------------------------------------------------


@dataclass
class CategorySet:
    """The ten element buckets recorded for every scanned page."""

    ui_components: list[ElementInfo] = field(default_factory=list)
    clickable_controls: list[ElementInfo] = field(default_factory=list)
    input_fields: list[ElementInfo] = field(default_factory=list)
    forms: list[ElementInfo] = field(default_factory=list)
    authentication_points: list[ElementInfo] = field(default_factory=list)
    navigation_paths: list[ElementInfo] = field(default_factory=list)
    file_upload: list[ElementInfo] = field(default_factory=list)
    file_download: list[ElementInfo] = field(default_factory=list)
    drag_drop: list[ElementInfo] = field(default_factory=list)
    generic_dom: list[ElementInfo] = field(default_factory=list)

    @classmethod
    def names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def bucket(self, name: str) -> list[ElementInfo]:
        if name not in self.names():
            raise KeyError(name)
        return getattr(self, name)

    def counts(self) -> dict[str, int]:
        return {name: len(self.bucket(name)) for name in self.names()}

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            name: [info.to_dict() for info in self.bucket(name)]
            for name in self.names()
        }


@dataclass
class PageRecord:
    """Classification result for a single scanned URL."""

    url: str
    """Normalized URL, the key of this record in the site model."""

    categories: CategorySet = field(default_factory=CategorySet)
    links: list[str] = field(default_factory=list)
    """Raw outbound links collected at scan time, before filtering."""


SiteModel = dict[str, PageRecord]


def site_model_to_dict(site_model: SiteModel) -> dict[str, dict[str, list[dict[str, Any]]]]:
    """Return the JSON-serialisable ``URL -> CategorySet`` mapping."""
    return {url: record.categories.to_dict() for url, record in site_model.items()}


# ---------------------------------------------------------------------------
# Crawl configuration and state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Credentials:
    """Login credentials used for the opportunistic login attempt."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    use_email: Optional[bool] = None
    """*True* forces the email, *False* forces the username, *None* infers."""

    def has_credentials(self) -> bool:
        return bool(self.password and (self.username or self.email))


@dataclass(frozen=True)
class LinkRules:
    """Substring include/exclude rules applied to discovered links."""

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    enabled: bool = True


@dataclass(frozen=True)
class CrawlLimits:
    max_pages: int = 50
    timeout_ms: int = 30_000


@dataclass
class LoginState:
    """Crawl-scoped login flag; flips to attempted once and never resets."""

    attempted: bool = False


class LoginOutcome(str, Enum):
    NOT_DETECTED = "not_detected"
    VALIDATION_FAILED = "validation_failed"
    SUBMITTED = "submitted"
    NO_SUBMIT_CONTROL = "no_submit_control"
    ERROR = "error"
