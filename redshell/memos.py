"""Look up the memo awaiting the evaluator's approval for a job."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from web3 import Web3

from .chain import build_web3
from .config import Settings
from .identifiers import try_parse_unsigned_int

logger = logging.getLogger(__name__)

MEMO_PAGE_SIZE = 50

_MEMO_COMPONENTS = [
    {"name": "id", "type": "uint256"},
    {"name": "jobId", "type": "uint256"},
    {"name": "sender", "type": "address"},
    {"name": "content", "type": "string"},
    {"name": "memoType", "type": "uint8"},
    {"name": "createdAt", "type": "uint256"},
    {"name": "isApproved", "type": "bool"},
    {"name": "approvedBy", "type": "address"},
    {"name": "approvedAt", "type": "uint256"},
    {"name": "requiresApproval", "type": "bool"},
    {"name": "metadata", "type": "string"},
    {"name": "isSecured", "type": "bool"},
    {"name": "nextPhase", "type": "uint8"},
    {"name": "expiredAt", "type": "uint256"},
]

MEMO_READ_ABI = [
    {
        "type": "function",
        "name": "getAllMemos",
        "stateMutability": "view",
        "inputs": [
            {"name": "jobId", "type": "uint256"},
            {"name": "offset", "type": "uint256"},
            {"name": "limit", "type": "uint256"},
        ],
        "outputs": [
            {"name": "memos", "type": "tuple[]", "components": _MEMO_COMPONENTS},
            {"name": "total", "type": "uint256"},
        ],
    }
]

_FIELD_INDEX = {component["name"]: index for index, component in enumerate(_MEMO_COMPONENTS)}


@dataclass(frozen=True)
class MemoInfo:
    id: int
    is_approved: bool
    requires_approval: bool

    @property
    def pending(self) -> bool:
        return self.requires_approval and not self.is_approved


def _field(memo: Any, name: str) -> Any:
    if isinstance(memo, dict) or hasattr(memo, "keys"):
        return memo.get(name)
    if isinstance(memo, (list, tuple)):
        index = _FIELD_INDEX[name]
        return memo[index] if index < len(memo) else None
    return getattr(memo, name, None)


def normalize_memo(memo: Any) -> Optional[MemoInfo]:
    memo_id = _field(memo, "id")
    is_approved = _field(memo, "isApproved")
    requires_approval = _field(memo, "requiresApproval")
    if not isinstance(memo_id, int) or isinstance(memo_id, bool):
        return None
    if not isinstance(is_approved, bool) or not isinstance(requires_approval, bool):
        return None
    return MemoInfo(id=memo_id, is_approved=is_approved, requires_approval=requires_approval)


def select_pending_memo(memos: Iterable[Any]) -> Optional[int]:
    """Return the highest id among memos that still need approval."""

    pending = [info for info in (normalize_memo(memo) for memo in memos) if info is not None and info.pending]
    if not pending:
        return None
    return max(pending, key=lambda info: info.id).id


def fetch_pending_memo_id(job_id: str, settings: Settings, web3: Optional[Web3] = None) -> Optional[int]:
    """Read the job's memos from the contract and pick the pending one.

    Returns ``None`` whenever configuration is missing or the call fails.
    """

    if not settings.rpc_url or not settings.contract_address:
        return None
    job_value = try_parse_unsigned_int(job_id)
    if job_value is None:
        return None

    client = web3 if web3 is not None else build_web3(settings.rpc_url)
    try:
        contract = client.eth.contract(
            address=Web3.to_checksum_address(settings.contract_address), abi=MEMO_READ_ABI
        )
        memos, _total = contract.functions.getAllMemos(job_value, 0, MEMO_PAGE_SIZE).call()
    except Exception as exc:
        logger.info("Pending memo lookup failed for job %s: %s", job_id, exc)
        return None

    if not isinstance(memos, (list, tuple)):
        return None
    return select_pending_memo(memos)


__all__ = ["MEMO_READ_ABI", "MemoInfo", "fetch_pending_memo_id", "normalize_memo", "select_pending_memo"]
