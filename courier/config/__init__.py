"""Configuration utilities for courier."""

from .loader import (
    ConfigError,
    CourierConfig,
    DEFAULT_GRAPHQL_URL,
    DefaultsConfig,
    MailboxConfig,
    SearchConfig,
    load_config,
    parse_config,
)

__all__ = [
    "ConfigError",
    "CourierConfig",
    "DEFAULT_GRAPHQL_URL",
    "DefaultsConfig",
    "MailboxConfig",
    "SearchConfig",
    "load_config",
    "parse_config",
]
