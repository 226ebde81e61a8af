"""
Classifier/Classifier.py — Heuristic DOM classification.

Turns a page's raw element snapshot into a :class:`~Models.CategorySet`.
Each predicate is a pure function of one :class:`~Models.RawElement`
returning the ``(category, marker)`` placements it vouches for; predicates
are independent, so one element may land in several buckets. Within one
bucket an element is recorded at most once (first placement wins).

Classification never raises on odd input: a predicate that cannot make
sense of an element simply does not match.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Sequence, Union
from urllib.parse import urlparse

from Models import CategorySet, RawElement

logger = logging.getLogger(__name__)

Placement = tuple[str, Optional[str]]
Predicate = Callable[[RawElement], list[Placement]]

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg"}
)
DOCUMENT_EXTENSIONS: frozenset[str] = frozenset(
    {".pdf", ".zip", ".doc", ".docx", ".xls", ".xlsx", ".csv", ".exe", ".dmg", ".iso"}
)

_CLICK_TYPES = frozenset({"submit", "button", "reset"})
_CLICK_HANDLER_ATTRS = ("onclick", "ng-click", "@click", "v-on:click")
_PASSIVE_ROLES = frozenset({"presentation", "none", "button", "link"})
_LANDMARK_TAGS = frozenset({"header", "footer", "main", "aside", "nav", "article", "section"})
_CONTAINER_CLASS_HINTS = ("card", "modal", "dialog")
_ANCHOR_CONTAINER_TAGS = frozenset({"div", "span", "section", "article"})
_TEST_HOOK_ATTRS = ("data-testid", "data-test-id", "data-test", "data-cy", "data-qa")
_AUTH_FORM_HINTS = ("login", "sign in", "register", "password", "auth")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _extension(url: Optional[str]) -> str:
    if not url:
        return ""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return ""
    _, dot, ext = path.rpartition(".")
    if not dot or "/" in ext:
        return ""
    return f".{ext}"


def is_image_url(url: Optional[str]) -> bool:
    return _extension(url) in IMAGE_EXTENSIONS


def is_document_url(url: Optional[str]) -> bool:
    return _extension(url) in DOCUMENT_EXTENSIONS


def _class_contains(el: RawElement, needle: str) -> bool:
    return needle in (el.class_name or "")


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def clickable_control(el: RawElement) -> list[Placement]:
    """Buttons, button-typed inputs, button roles and click-handler carriers."""
    if (
        el.tag == "button"
        or el.attr("role") == "button"
        or el.attr("type") in _CLICK_TYPES
        or el.has_click_handler
        or any(name in el.attributes for name in _CLICK_HANDLER_ATTRS)
    ):
        return [("clickable_controls", None)]
    return []


def anchor_link(el: RawElement) -> list[Placement]:
    """Anchors: landmark links navigate, other links and bare anchors are controls."""
    if el.tag != "a":
        return []
    if not el.href:
        return [("clickable_controls", None)]
    if is_image_url(el.href):
        return []
    if el.in_landmark:
        return [("navigation_paths", None)]
    return [("clickable_controls", None)]


def input_field(el: RawElement) -> list[Placement]:
    if el.tag not in {"input", "textarea", "select"}:
        return []
    placements: list[Placement] = [("input_fields", None)]
    if el.tag == "input" and el.attr("type") == "file":
        placements.append(("file_upload", None))
    return placements


def form(el: RawElement) -> list[Placement]:
    """Every form; those that look like login/registration are also auth points."""
    if el.tag != "form":
        return []
    placements: list[Placement] = [("forms", None)]
    text = (el.full_text or el.text or "").lower()
    action = el.attr("action")
    if any(hint in text or hint in action for hint in _AUTH_FORM_HINTS):
        placements.append(("authentication_points", None))
    return placements


def password_input(el: RawElement) -> list[Placement]:
    if el.tag == "input" and (el.attr("type") == "password" or "password" in el.attr("name")):
        return [("authentication_points", None)]
    return []


def drag_drop(el: RawElement) -> list[Placement]:
    if (
        el.draggable
        or el.attr("draggable") == "true"
        or el.attr("role") == "application"
        or _class_contains(el, "draggable")
    ):
        return [("drag_drop", None)]
    return []


def image(el: RawElement) -> list[Placement]:
    if el.tag == "img":
        return [("ui_components", "image")]
    return []


def ui_component(el: RawElement) -> list[Placement]:
    """Semantic roles, structural landmarks and card/modal/dialog containers."""
    role = el.attr("role")
    if (
        (role and role not in _PASSIVE_ROLES)
        or el.tag in _LANDMARK_TAGS
        or any(_class_contains(el, hint) for hint in _CONTAINER_CLASS_HINTS)
    ):
        return [("ui_components", None)]
    return []


def image_link(el: RawElement) -> list[Placement]:
    if el.tag == "a" and is_image_url(el.href):
        return [("file_download", "image_link")]
    return []


def file_download(el: RawElement) -> list[Placement]:
    if el.tag == "a" and ("download" in el.attributes or is_document_url(el.href)):
        return [("file_download", None)]
    return []


def generic_dom(el: RawElement) -> list[Placement]:
    """Plain containers carrying a stable hook (id, name or test id)."""
    if el.tag not in _ANCHOR_CONTAINER_TAGS:
        return []
    if el.id or el.attributes.get("name") or any(
        el.attributes.get(attr) for attr in _TEST_HOOK_ATTRS
    ):
        return [("generic_dom", None)]
    return []


#: Applied in order to every element. ``image`` precedes ``ui_component``
#: and ``image_link`` precedes ``file_download`` so the marked placement
#: is the one kept when both match.
PREDICATES: tuple[Predicate, ...] = (
    clickable_control,
    anchor_link,
    input_field,
    form,
    password_input,
    drag_drop,
    image,
    ui_component,
    image_link,
    file_download,
    generic_dom,
)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def placements_for(
    el: RawElement, predicates: Sequence[Predicate] = PREDICATES
) -> list[Placement]:
    """Return the de-duplicated placements of *el*, in predicate order."""
    seen: set[str] = set()
    result: list[Placement] = []
    for predicate in predicates:
        try:
            matches = predicate(el)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.debug("Predicate %s failed on <%s>: %s", predicate.__name__, el.tag, exc)
            continue
        for category, marker in matches:
            if category in seen:
                continue
            seen.add(category)
            result.append((category, marker))
    return result


def classify(
    raw_elements: Iterable[Union[RawElement, dict[str, Any]]],
    predicates: Sequence[Predicate] = PREDICATES,
) -> CategorySet:
    """Partition a page's element snapshot into a fresh :class:`CategorySet`.

    Accepts :class:`RawElement` instances or the plain dicts returned by the
    extraction script. Elements with a zero width or height are skipped;
    elements without geometry are classified.
    """
    categories = CategorySet()
    for item in raw_elements:
        if isinstance(item, dict):
            try:
                el = RawElement.from_dict(item)
            except (AttributeError, TypeError, ValueError) as exc:
                logger.debug("Ignoring malformed element descriptor: %s", exc)
                continue
        elif isinstance(item, RawElement):
            el = item
        else:
            logger.debug("Ignoring element descriptor of type %s", type(item).__name__)
            continue
        if not el.tag:
            continue
        if el.rect is not None and not el.rect.is_visible:
            continue

        info = el.to_info()
        for category, marker in placements_for(el, predicates):
            categories.bucket(category).append(info.with_marker(marker))
    return categories
