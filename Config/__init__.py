from .Loader import DEFAULT_CONFIG_FILE, DEFAULT_RULES_FILE, ScanConfig, load_config, load_link_rules

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_RULES_FILE",
    "ScanConfig",
    "load_config",
    "load_link_rules",
]
