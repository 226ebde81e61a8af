from .Site import (
    CategorySet,
    CrawlLimits,
    Credentials,
    ElementInfo,
    LinkRules,
    LoginOutcome,
    LoginState,
    PageRecord,
    RawElement,
    Rect,
    SiteModel,
    site_model_to_dict,
)

__all__ = [
    "CategorySet",
    "CrawlLimits",
    "Credentials",
    "ElementInfo",
    "LinkRules",
    "LoginOutcome",
    "LoginState",
    "PageRecord",
    "RawElement",
    "Rect",
    "SiteModel",
    "site_model_to_dict",
]
