"""Map verdict values onto the parameters of an arbitrary contract function.

Resolution walks the ABI parameters in declaration order and asks an ordered
list of :class:`BinderRule` objects for the first one that applies. A rule that
applies but whose value is absent aborts the whole resolution, so callers only
ever see a complete argument list or ``None``.

Operators can bypass the heuristics entirely with a JSON override template such
as ``["$memoId", true, "$reason"]``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .abi import FunctionDescriptor, ParameterDescriptor

logger = logging.getLogger(__name__)

_UINT = re.compile(r"uint[0-9]*")


@dataclass(frozen=True)
class ResolutionContext:
    """Values available for binding, built once per verdict submission."""

    memo_id: Optional[int]
    job_id: Optional[int]
    target_id: int
    approved: bool
    reason: str
    evaluator: Optional[str] = None


@dataclass(frozen=True)
class Slot:
    """A parameter together with its position in the resolution walk."""

    parameter: ParameterDescriptor
    index: int
    total: int
    bound: int

    @property
    def name(self) -> str:
        return self.parameter.name.lower()

    @property
    def type(self) -> str:
        return self.parameter.type


@dataclass(frozen=True)
class BinderRule:
    name: str
    applies: Callable[[Slot], bool]
    value: Callable[[ResolutionContext], Any]


def is_uint(param_type: str) -> bool:
    return bool(_UINT.fullmatch(param_type))


def name_contains(slot: Slot, tokens: Sequence[str]) -> bool:
    return any(token in slot.name for token in tokens)


BINDER_RULES: Tuple[BinderRule, ...] = (
    BinderRule(
        "memo-id",
        lambda slot: is_uint(slot.type) and name_contains(slot, ("memo",)),
        lambda ctx: ctx.memo_id,
    ),
    BinderRule(
        "job-id",
        lambda slot: is_uint(slot.type) and name_contains(slot, ("job",)),
        lambda ctx: ctx.job_id,
    ),
    BinderRule(
        "approval-flag",
        lambda slot: slot.type == "bool" and name_contains(slot, ("approved", "accept")),
        lambda ctx: ctx.approved,
    ),
    BinderRule(
        "reason-text",
        lambda slot: slot.type == "string" and name_contains(slot, ("reason", "memo", "message")),
        lambda ctx: ctx.reason,
    ),
    BinderRule(
        "evaluator-address",
        lambda slot: slot.type == "address" and name_contains(slot, ("evaluator", "judge", "signer")),
        lambda ctx: ctx.evaluator,
    ),
    # Positional fallbacks, only reached when no named rule matched.
    BinderRule(
        "sole-target-id",
        lambda slot: slot.total == 1 and is_uint(slot.type),
        lambda ctx: ctx.target_id,
    ),
    BinderRule(
        "pair-approval-flag",
        lambda slot: slot.total == 2 and slot.index == 1 and slot.bound == 1 and slot.type == "bool",
        lambda ctx: ctx.approved,
    ),
    BinderRule(
        "trailing-reason-text",
        lambda slot: slot.total >= 3 and slot.index >= 2 and slot.bound >= 2 and slot.type == "string",
        lambda ctx: ctx.reason,
    ),
)


def match_rule(slot: Slot, rules: Sequence[BinderRule] = BINDER_RULES) -> Optional[BinderRule]:
    for rule in rules:
        if rule.applies(slot):
            return rule
    return None


def resolve_heuristic(
    function: FunctionDescriptor,
    context: ResolutionContext,
    rules: Sequence[BinderRule] = BINDER_RULES,
) -> Optional[List[Any]]:
    """Bind every parameter of ``function`` or return ``None``."""

    args: List[Any] = []
    total = len(function.inputs)
    for index, parameter in enumerate(function.inputs):
        slot = Slot(parameter=parameter, index=index, total=total, bound=len(args))
        rule = match_rule(slot, rules)
        if rule is None:
            logger.info(
                "No binding rule for %s parameter %d (%s %s)",
                function.name,
                index,
                parameter.type,
                parameter.name or "<unnamed>",
            )
            return None
        value = rule.value(context)
        if value is None:
            logger.info(
                "Rule %s matched %s parameter %d but its value is absent",
                rule.name,
                function.name,
                index,
            )
            return None
        args.append(value)
    return args


PLACEHOLDERS: dict[str, Callable[[ResolutionContext], Any]] = {
    "$memoId": lambda ctx: ctx.memo_id,
    "$jobId": lambda ctx: ctx.job_id,
    "$targetId": lambda ctx: ctx.target_id,
    "$approved": lambda ctx: ctx.approved,
    "$reason": lambda ctx: ctx.reason,
    "$evaluator": lambda ctx: ctx.evaluator,
}


def parse_override(raw: Optional[str]) -> Optional[List[Any]]:
    """Decode an override template; ``None`` when unset or not a JSON array."""

    if not raw:
        return None
    try:
        template = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring ACP_CONTRACT_ARGS, invalid JSON: %s", exc)
        return None
    if not isinstance(template, list):
        logger.warning("Ignoring ACP_CONTRACT_ARGS, expected a JSON array")
        return None
    return template


def apply_override(template: Sequence[Any], context: ResolutionContext) -> Optional[List[Any]]:
    """Substitute placeholders positionally; any absent value voids the template."""

    resolved: List[Any] = []
    for entry in template:
        if isinstance(entry, str) and entry in PLACEHOLDERS:
            value = PLACEHOLDERS[entry](context)
        else:
            value = entry
        if value is None:
            logger.info("Override entry %r resolved to no value", entry)
            return None
        resolved.append(value)
    return resolved


def resolve_arguments(
    function: FunctionDescriptor,
    context: ResolutionContext,
    override: Optional[Sequence[Any]] = None,
) -> Optional[List[Any]]:
    """Produce the argument list for ``function``.

    A parsed override always wins over the heuristics, including when it fails.
    """

    if override is not None:
        args = apply_override(override, context)
        if args is not None and len(args) != len(function.inputs):
            logger.info(
                "Override supplies %d arguments but %s takes %d",
                len(args),
                function.name,
                len(function.inputs),
            )
            return None
        return args
    return resolve_heuristic(function, context)


__all__ = [
    "BINDER_RULES",
    "BinderRule",
    "PLACEHOLDERS",
    "ResolutionContext",
    "Slot",
    "apply_override",
    "is_uint",
    "match_rule",
    "parse_override",
    "resolve_arguments",
    "resolve_heuristic",
]
