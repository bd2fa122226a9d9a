"""Environment-driven configuration for the RedShell judge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_REASON = "Evaluated by RedShell"
DEFAULT_CHAIN_ID = "84532"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20240620"
DEFAULT_RECEIPT_TIMEOUT = 180.0


@dataclass(frozen=True)
class Settings:
    wallet_address: Optional[str] = None
    wallet_private_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    e2b_api_key: Optional[str] = None
    rpc_url: Optional[str] = None
    chain_id: Optional[str] = DEFAULT_CHAIN_ID
    contract_address: Optional[str] = None
    contract_abi: Optional[str] = None
    contract_function: Optional[str] = None
    contract_args: Optional[str] = None
    contract_reason: Optional[str] = None
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    lookup_pending_memo: bool = True


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    raw = environ.get(name)
    if raw is None:
        return None
    text = raw.strip()
    return text or None


def _float_env(environ: Mapping[str, str], name: str, fallback: float) -> float:
    raw = _env(environ, name)
    if raw is None:
        return fallback
    try:
        value = float(raw)
    except ValueError:
        return fallback
    return value if value > 0 else fallback


def _flag_env(environ: Mapping[str, str], name: str, fallback: bool) -> bool:
    raw = _env(environ, name)
    if raw is None:
        return fallback
    return raw.lower() not in {"0", "false", "no", "off"}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from ``environ`` (defaults to ``os.environ``)."""

    env = os.environ if environ is None else environ
    return Settings(
        wallet_address=_env(env, "REDSHELL_WALLET_ADDRESS"),
        wallet_private_key=_env(env, "REDSHELL_WALLET_PRIVATE_KEY"),
        webhook_secret=_env(env, "ALCHEMY_WEBHOOK_SECRET"),
        anthropic_api_key=_env(env, "ANTHROPIC_API_KEY"),
        anthropic_model=_env(env, "ANTHROPIC_MODEL") or DEFAULT_ANTHROPIC_MODEL,
        e2b_api_key=_env(env, "E2B_API_KEY"),
        rpc_url=_env(env, "BASE_RPC_URL"),
        chain_id=_env(env, "CHAIN_ID") or DEFAULT_CHAIN_ID,
        contract_address=_env(env, "ACP_CONTRACT_ADDRESS"),
        contract_abi=_env(env, "ACP_CONTRACT_ABI"),
        contract_function=_env(env, "ACP_CONTRACT_FUNCTION"),
        contract_args=_env(env, "ACP_CONTRACT_ARGS"),
        contract_reason=_env(env, "ACP_CONTRACT_REASON"),
        receipt_timeout=_float_env(env, "REDSHELL_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
        lookup_pending_memo=_flag_env(env, "REDSHELL_LOOKUP_PENDING_MEMO", True),
    )


def get_settings() -> Settings:
    """FastAPI dependency returning a fresh snapshot of the environment."""

    return load_settings()


__all__ = ["DEFAULT_REASON", "Settings", "get_settings", "load_settings"]
