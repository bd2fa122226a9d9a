"""Chain selection, signing accounts and verdict transaction submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from web3 import Web3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupportedChain:
    chain_id: int
    name: str


BASE = SupportedChain(chain_id=8453, name="base")
BASE_SEPOLIA = SupportedChain(chain_id=84532, name="base-sepolia")

SUPPORTED_CHAINS: Dict[int, SupportedChain] = {chain.chain_id: chain for chain in (BASE, BASE_SEPOLIA)}


def resolve_chain(chain_id_raw: Optional[str]) -> Optional[SupportedChain]:
    """Return the supported chain for ``chain_id_raw`` or ``None`` when unknown."""

    if chain_id_raw is None:
        return None
    try:
        chain_id = int(str(chain_id_raw).strip())
    except ValueError:
        return None
    return SUPPORTED_CHAINS.get(chain_id)


def format_private_key(private_key: str) -> str:
    key = private_key.strip()
    if key.startswith(("0x", "0X")):
        return "0x" + key[2:]
    return f"0x{key}"


def build_web3(rpc_url: str) -> Web3:
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30}))


def derive_account(web3: Web3, private_key: str):
    """Return the local signing account for ``private_key``."""

    return web3.eth.account.from_key(format_private_key(private_key))


class SubmissionError(RuntimeError):
    """Raised when a verdict transaction cannot be sent or is reverted."""


@dataclass(frozen=True)
class SubmissionReceipt:
    tx_hash: str
    block_number: Optional[int]
    status: Optional[int]


def _hash_to_hex(raw_tx_hash: Any) -> str:
    if isinstance(raw_tx_hash, str):
        return raw_tx_hash if raw_tx_hash.startswith("0x") else f"0x{raw_tx_hash}"
    return Web3.to_hex(raw_tx_hash)


class TransactionSubmitter:
    """Sign and send a single contract call, then block for its receipt.

    ``web3`` can be supplied to reuse a provider; otherwise one is created for
    ``rpc_url``. When ``chain`` is ``None`` the transaction omits ``chainId`` and
    the endpoint decides.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        *,
        chain: Optional[SupportedChain] = None,
        receipt_timeout: float = 180.0,
        web3: Optional[Web3] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.chain = chain
        self.receipt_timeout = receipt_timeout
        self.web3 = web3 if web3 is not None else build_web3(rpc_url)
        self.account = derive_account(self.web3, private_key)

    def build_transaction(
        self,
        contract_address: str,
        abi: List[Dict[str, Any]],
        function_name: str,
        args: Sequence[Any],
    ) -> Dict[str, Any]:
        contract = self.web3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=abi)
        call = contract.functions[function_name](*args)
        params: Dict[str, Any] = {
            "from": self.account.address,
            "nonce": self.web3.eth.get_transaction_count(self.account.address),
        }
        if self.chain is not None:
            params["chainId"] = self.chain.chain_id
        return call.build_transaction(params)

    def submit(
        self,
        contract_address: str,
        abi: List[Dict[str, Any]],
        function_name: str,
        args: Sequence[Any],
    ) -> SubmissionReceipt:
        try:
            tx = self.build_transaction(contract_address, abi, function_name, args)
            signed = self.account.sign_transaction(tx)
            tx_hash = _hash_to_hex(self.web3.eth.send_raw_transaction(signed.raw_transaction))
        except Exception as exc:
            raise SubmissionError(f"failed to send {function_name}: {exc}") from exc

        logger.info("Submitted verdict tx %s via %s", tx_hash, self.chain.name if self.chain else self.rpc_url)

        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as exc:
            raise SubmissionError(f"no receipt for {tx_hash}: {exc}") from exc

        status = receipt.get("status")
        block_number = receipt.get("blockNumber")
        if status == 0:
            raise SubmissionError(f"transaction {tx_hash} reverted in block {block_number}")
        return SubmissionReceipt(tx_hash=tx_hash, block_number=block_number, status=status)


__all__ = [
    "BASE",
    "BASE_SEPOLIA",
    "SUPPORTED_CHAINS",
    "SubmissionError",
    "SubmissionReceipt",
    "SupportedChain",
    "TransactionSubmitter",
    "build_web3",
    "derive_account",
    "format_private_key",
    "resolve_chain",
]
