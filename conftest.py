"""Repository-wide pytest configuration.

Pins the repository root on ``sys.path`` so ``redshell``, ``routes`` and
``services`` import without installation, and clears the judge's environment
configuration around every test so settings never leak between suites.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

_CONFIG_VARS = [
    "REDSHELL_WALLET_ADDRESS",
    "REDSHELL_WALLET_PRIVATE_KEY",
    "ALCHEMY_WEBHOOK_SECRET",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "E2B_API_KEY",
    "BASE_RPC_URL",
    "CHAIN_ID",
    "ACP_CONTRACT_ADDRESS",
    "ACP_CONTRACT_ABI",
    "ACP_CONTRACT_FUNCTION",
    "ACP_CONTRACT_ARGS",
    "ACP_CONTRACT_REASON",
    "REDSHELL_RECEIPT_TIMEOUT",
    "REDSHELL_LOOKUP_PENDING_MEMO",
]


@pytest.fixture(autouse=True)
def _clean_redshell_env(monkeypatch):
    """Start each test from an unconfigured environment."""

    for key in _CONFIG_VARS:
        monkeypatch.delenv(key, raising=False)
    yield
