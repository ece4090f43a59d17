"""Config loader for the courier project."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from web3 import Web3

from courier.core.encoding import UnconstrainedPolicy
from courier.core.errors import ConfigError
from courier.core.matching_list import MatchingList

DEFAULT_CONFIG_PATH = Path("config.json")
DEFAULT_GRAPHQL_URL = "https://api.hyperlane.xyz/v1/graphql"


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, Mapping):
        raise ConfigError(f"{name} must be a JSON object")
    return section


def _to_checksum(value: str, *, field_name: str) -> str:
    try:
        return Web3.to_checksum_address(value)
    except Exception as exc:  # web3 raises ValueError or TypeError for malformed inputs
        raise ConfigError(f"Invalid address for {field_name}: {value}") from exc


@dataclass(frozen=True)
class MailboxConfig:
    """Mailbox contract deployment used to dispatch messages."""

    address: Optional[str] = None
    rpc_url: Optional[str] = None
    chain_id: Optional[int] = None

    def ensure_address(self) -> str:
        """Return the mailbox address or raise if it is missing."""
        if not self.address:
            raise ConfigError("Mailbox address required but not configured")
        return self.address

    def ensure_rpc_url(self) -> str:
        """Return the RPC URL or raise if it is missing."""
        if not self.rpc_url:
            raise ConfigError("RPC URL required but not configured")
        return self.rpc_url


@dataclass(frozen=True)
class SearchConfig:
    """Message explorer search settings."""

    graphql_url: str = DEFAULT_GRAPHQL_URL
    limit: int = 10
    max_workers: int = 4
    unconstrained: UnconstrainedPolicy = UnconstrainedPolicy.SINGLE
    stop_on_empty: bool = False
    matching_list: MatchingList = field(default_factory=MatchingList)


@dataclass(frozen=True)
class DefaultsConfig:
    """Default operational parameters."""

    api_timeout: int = 30
    fallback_gas: int = 300_000


@dataclass(frozen=True)
class CourierConfig:
    """Typed wrapper around the courier configuration."""

    mailbox: MailboxConfig = field(default_factory=MailboxConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Return the original configuration mapping."""
        return dict(self.raw)


def _load_json(path: Path) -> MutableMapping[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file contains invalid JSON: {path}") from exc
    if not isinstance(data, MutableMapping):
        raise ConfigError(f"Config file must contain a JSON object: {path}")
    return data


def _positive_int(section: Mapping[str, Any], key: str, default: int, context: str) -> int:
    try:
        value = int(section.get(key, default))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{context}.{key} must be an integer") from exc
    if value <= 0:
        raise ConfigError(f"{context}.{key} must be positive")
    return value


def _parse_mailbox(section: Mapping[str, Any]) -> MailboxConfig:
    address = section.get("address")
    chain_id = section.get("chain_id")
    return MailboxConfig(
        address=_to_checksum(address, field_name="mailbox.address") if address else None,
        rpc_url=str(section["rpc_url"]) if section.get("rpc_url") else None,
        chain_id=int(chain_id) if chain_id is not None else None,
    )


def _parse_search(section: Mapping[str, Any]) -> SearchConfig:
    try:
        unconstrained = UnconstrainedPolicy(section.get("unconstrained", UnconstrainedPolicy.SINGLE.value))
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in UnconstrainedPolicy)
        raise ConfigError(f"search.unconstrained must be one of: {choices}") from exc

    stop_on_empty = section.get("stop_on_empty", False)
    if not isinstance(stop_on_empty, bool):
        raise ConfigError("search.stop_on_empty must be a boolean")

    return SearchConfig(
        graphql_url=str(section.get("graphql_url", DEFAULT_GRAPHQL_URL)),
        limit=_positive_int(section, "limit", 10, "search"),
        max_workers=_positive_int(section, "max_workers", 4, "search"),
        unconstrained=unconstrained,
        stop_on_empty=stop_on_empty,
        matching_list=MatchingList.parse(section.get("matching_list")),
    )


def _parse_defaults(section: Mapping[str, Any]) -> DefaultsConfig:
    return DefaultsConfig(
        api_timeout=_positive_int(section, "api_timeout", 30, "defaults"),
        fallback_gas=_positive_int(section, "fallback_gas", 300_000, "defaults"),
    )


def parse_config(data: Mapping[str, Any]) -> CourierConfig:
    """Validate a configuration mapping."""
    return CourierConfig(
        mailbox=_parse_mailbox(_section(data, "mailbox")),
        search=_parse_search(_section(data, "search")),
        defaults=_parse_defaults(_section(data, "defaults")),
        raw=data,
    )


def load_config(config_path: Optional[Path] = None) -> CourierConfig:
    """Load and validate courier configuration data.

    Without an explicit path, a missing ``config.json`` yields the defaults.
    """
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return CourierConfig()
        config_path = DEFAULT_CONFIG_PATH
    return parse_config(_load_json(config_path))


__all__ = [
    "CourierConfig",
    "ConfigError",
    "DEFAULT_GRAPHQL_URL",
    "DefaultsConfig",
    "MailboxConfig",
    "SearchConfig",
    "load_config",
    "parse_config",
]
