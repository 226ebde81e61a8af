from .Filter import SKIP_EXTENSIONS, has_skip_extension, is_allowed, is_same_domain, matches_rules
from .Frontier import Frontier, normalize_url

__all__ = [
    "Frontier",
    "SKIP_EXTENSIONS",
    "has_skip_extension",
    "is_allowed",
    "is_same_domain",
    "matches_rules",
    "normalize_url",
]
