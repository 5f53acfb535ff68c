"""Ledger policy settings, read from the environment.

Protean's own configuration (providers, brokers, event processing) lives in
``domain.toml``. The values here steer ledger behaviour: which operation
types wait for approval, whether stock alerts are raised and pushed, retry
budget for version conflicts and page-size caps.
"""

import os
from dataclasses import dataclass, replace

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class LedgerSettings:
    approval_required_types: frozenset[str] = frozenset()
    alerts_enabled: bool = True
    push_enabled: bool = True
    settlement_retries: int = 3
    default_page_size: int = 20
    max_page_size: int = 100
    audit_max_page_size: int = 200


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_list(name: str) -> frozenset[str]:
    value = os.getenv(name, "")
    return frozenset(item.strip().lower() for item in value.split(",") if item.strip())


def load_settings() -> LedgerSettings:
    """Build settings from ``CONSUMABLES_*`` environment variables."""
    return LedgerSettings(
        approval_required_types=_env_list("CONSUMABLES_APPROVAL_REQUIRED_TYPES"),
        alerts_enabled=_env_flag("CONSUMABLES_ALERTS_ENABLED", True),
        push_enabled=_env_flag("CONSUMABLES_PUSH_ENABLED", True),
        settlement_retries=_env_int("CONSUMABLES_SETTLEMENT_RETRIES", 3),
        default_page_size=_env_int("CONSUMABLES_DEFAULT_PAGE_SIZE", 20),
        max_page_size=_env_int("CONSUMABLES_MAX_PAGE_SIZE", 100),
        audit_max_page_size=_env_int("CONSUMABLES_AUDIT_MAX_PAGE_SIZE", 200),
    )


_settings: LedgerSettings | None = None


def get_settings() -> LedgerSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def override_settings(**changes) -> LedgerSettings:
    """Replace individual settings in place (useful for testing)."""
    global _settings
    if "approval_required_types" in changes:
        changes["approval_required_types"] = frozenset(changes["approval_required_types"])
    _settings = replace(get_settings(), **changes)
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next read goes back to the environment."""
    global _settings
    _settings = None
