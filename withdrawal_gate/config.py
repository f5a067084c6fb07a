"""Withdrawal gate configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple
import os

from .app.quota.rules import ENTITLEMENT_RULES

_STORAGE_BACKENDS = {"memory", "postgres"}


@dataclass(frozen=True)
class GateConfig:
    """Runtime settings for the withdrawal gate."""

    policy_id: str
    atomic_authorization: bool
    entitlement_rule: str
    storage_backend: str
    recognized_proxies: Tuple[str, ...]
    admin_ids: Tuple[str, ...]
    log_level: str
    db_config: Dict[str, Any] = field(default_factory=dict)


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _to_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _to_choice(value: Optional[str], *, default: str, choices: set[str], name: str) -> str:
    selected = (value or default).strip().lower() or default
    if selected not in choices:
        raise ValueError(f"{name} must be one of {sorted(choices)}, got {value!r}")
    return selected


def load_gate_config(env: Optional[Mapping[str, str]] = None) -> GateConfig:
    """Load :class:`GateConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    policy_id = (env_mapping.get("WITHDRAWAL_GATE_POLICY_ID") or "withdrawal-default").strip()
    atomic_authorization = _to_bool(
        env_mapping.get("WITHDRAWAL_GATE_ATOMIC_AUTHORIZATION"), default=False
    )
    entitlement_rule = _to_choice(
        env_mapping.get("WITHDRAWAL_GATE_ENTITLEMENT_RULE"),
        default="cumulative",
        choices=set(ENTITLEMENT_RULES),
        name="WITHDRAWAL_GATE_ENTITLEMENT_RULE",
    )
    storage_backend = _to_choice(
        env_mapping.get("WITHDRAWAL_GATE_STORAGE"),
        default="memory",
        choices=_STORAGE_BACKENDS,
        name="WITHDRAWAL_GATE_STORAGE",
    )
    log_level = (env_mapping.get("WITHDRAWAL_GATE_LOG_LEVEL") or "INFO").strip().upper()

    db_config: Dict[str, Any] = {
        "host": env_mapping.get("DB_HOST", "127.0.0.1"),
        "port": _to_int(env_mapping.get("DB_PORT"), default=5432),
        "dbname": env_mapping.get("DB_NAME", "withdrawal_gate"),
        "user": env_mapping.get("DB_USER", "gate_user"),
        "password": env_mapping.get("DB_PASSWORD", "gate_pass"),
    }

    return GateConfig(
        policy_id=policy_id,
        atomic_authorization=atomic_authorization,
        entitlement_rule=entitlement_rule,
        storage_backend=storage_backend,
        recognized_proxies=_to_list(env_mapping.get("WITHDRAWAL_GATE_RECOGNIZED_PROXIES")),
        admin_ids=_to_list(env_mapping.get("WITHDRAWAL_GATE_ADMINS")),
        log_level=log_level,
        db_config=db_config,
    )
