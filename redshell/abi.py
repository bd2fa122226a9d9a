"""Contract interface parsing and function lookup.

The verdict contract is described by an operator-supplied JSON ABI fragment.
Only the parts needed to bind arguments are modelled here; the raw entries are
kept alongside so web3 can encode the call from the exact same document.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

_READ_ONLY = {"view", "pure"}


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    type: str


@dataclass(frozen=True)
class FunctionDescriptor:
    name: str
    state_mutability: str
    inputs: Tuple[ParameterDescriptor, ...]

    @property
    def is_read_only(self) -> bool:
        return self.state_mutability in _READ_ONLY


@dataclass(frozen=True)
class ContractInterface:
    """Parsed ABI: the callable functions plus the untouched source entries."""

    functions: Tuple[FunctionDescriptor, ...]
    entries: Tuple[Dict[str, Any], ...]

    @property
    def raw(self) -> List[Dict[str, Any]]:
        return [dict(entry) for entry in self.entries]


def _parse_inputs(raw_inputs: Any) -> Optional[Tuple[ParameterDescriptor, ...]]:
    if not isinstance(raw_inputs, list):
        return None
    params: List[ParameterDescriptor] = []
    for item in raw_inputs:
        if not isinstance(item, dict):
            return None
        param_type = item.get("type")
        if not isinstance(param_type, str) or not param_type:
            return None
        name = item.get("name")
        params.append(ParameterDescriptor(name=name if isinstance(name, str) else "", type=param_type))
    return tuple(params)


def _parse_function(entry: Dict[str, Any]) -> Optional[FunctionDescriptor]:
    # Solidity ABI entries default to "function" when the type key is omitted.
    if entry.get("type", "function") != "function":
        return None
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        return None
    inputs = _parse_inputs(entry.get("inputs"))
    if inputs is None:
        return None
    mutability = entry.get("stateMutability")
    if not isinstance(mutability, str):
        mutability = "view" if entry.get("constant") is True else "nonpayable"
    return FunctionDescriptor(name=name, state_mutability=mutability, inputs=inputs)


def interface_from_entries(entries: Any) -> Optional[ContractInterface]:
    """Build an interface from already-decoded ABI entries, or ``None`` when malformed."""

    if not isinstance(entries, list):
        return None
    if not all(isinstance(entry, dict) for entry in entries):
        return None
    functions = []
    for entry in entries:
        descriptor = _parse_function(entry)
        if descriptor is not None:
            functions.append(descriptor)
    return ContractInterface(functions=tuple(functions), entries=tuple(entries))


def parse_contract_abi(raw: Optional[str]) -> Optional[ContractInterface]:
    """Decode the ``ACP_CONTRACT_ABI`` JSON text."""

    if not raw:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Contract ABI is not valid JSON: %s", exc)
        return None
    interface = interface_from_entries(decoded)
    if interface is None:
        logger.warning("Contract ABI must be a JSON array of objects")
    return interface


def find_function(interface: Optional[ContractInterface], name: str) -> Optional[FunctionDescriptor]:
    """Return the function called exactly ``name``.

    State-changing overloads win over ``view``/``pure`` ones; otherwise the first
    declared match is returned.
    """

    if interface is None or not name:
        return None
    matches: Sequence[FunctionDescriptor] = [fn for fn in interface.functions if fn.name == name]
    if not matches:
        return None
    for fn in matches:
        if not fn.is_read_only:
            return fn
    return matches[0]


__all__ = [
    "ContractInterface",
    "FunctionDescriptor",
    "ParameterDescriptor",
    "find_function",
    "interface_from_entries",
    "parse_contract_abi",
]
