"""Verdict models and the best-effort on-chain verdict pipeline.

The pipeline is linear: configuration check, identifier resolution, ABI lookup,
argument resolution, submission. Any missing precondition short-circuits to a
logged ``skipped`` outcome. Nothing here raises into the request path; the
caller's response depends on the judgement only.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from web3 import Web3

from .abi import ContractInterface, find_function, parse_contract_abi
from .binding import ResolutionContext, parse_override, resolve_arguments
from .chain import SubmissionError, SupportedChain, TransactionSubmitter, resolve_chain
from .config import DEFAULT_REASON, Settings
from .identifiers import try_parse_unsigned_int
from .logging_utils import log_event
from .memos import fetch_pending_memo_id
from .metrics import SUBMISSION_SECONDS, SUBMISSIONS_TOTAL

logger = logging.getLogger(__name__)

JudgeKind = Literal["text", "code", "unknown"]

class Verdict(BaseModel):
    """Outcome of judging a deliverable."""

    model_config = ConfigDict(frozen=True)

    approved: bool
    reason: str
    judge: JudgeKind


@dataclass(frozen=True)
class VerdictTarget:
    job_id: Optional[int]
    memo_id: Optional[int]

    @classmethod
    def parse(cls, job_id: Optional[str], memo_id: Optional[str]) -> "VerdictTarget":
        # An unparseable identifier is dropped, not fatal.
        return cls(job_id=try_parse_unsigned_int(job_id), memo_id=try_parse_unsigned_int(memo_id))

    @property
    def target_id(self) -> Optional[int]:
        return self.memo_id if self.memo_id is not None else self.job_id


@dataclass(frozen=True)
class SubmissionPlan:
    rpc_url: str
    contract_address: str
    function_name: str
    interface: ContractInterface
    private_key: str
    target: VerdictTarget
    chain: Optional[SupportedChain]


@dataclass(frozen=True)
class Preflight:
    plan: Optional[SubmissionPlan] = None
    missing: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


@dataclass(frozen=True)
class SubmissionOutcome:
    status: Literal["skipped", "confirmed", "failed"]
    detail: str
    tx_hash: Optional[str] = None


_CONFIG_CHECKS: Tuple[Tuple[str, Callable[[Settings], Any]], ...] = (
    ("BASE_RPC_URL", lambda s: s.rpc_url),
    ("ACP_CONTRACT_ADDRESS", lambda s: s.contract_address),
    ("ACP_CONTRACT_FUNCTION", lambda s: s.contract_function),
    ("ACP_CONTRACT_ABI", lambda s: s.contract_abi),
    ("REDSHELL_WALLET_PRIVATE_KEY", lambda s: s.wallet_private_key),
)


def missing_configuration(settings: Settings) -> Optional[str]:
    for label, getter in _CONFIG_CHECKS:
        if not getter(settings):
            return label
    return None


def preflight(settings: Settings, job_id: Optional[str], memo_id: Optional[str]) -> Preflight:
    """Validate everything submission needs, reporting the first thing missing."""

    if not job_id and not memo_id:
        return Preflight(missing="memoId or jobId")
    missing = missing_configuration(settings)
    if missing is not None:
        return Preflight(missing=missing)
    interface = parse_contract_abi(settings.contract_abi)
    if interface is None:
        return Preflight(missing="valid ACP_CONTRACT_ABI")
    target = VerdictTarget.parse(job_id, memo_id)
    if target.target_id is None:
        return Preflight(missing="valid memoId or jobId")
    return Preflight(
        plan=SubmissionPlan(
            rpc_url=settings.rpc_url or "",
            contract_address=settings.contract_address or "",
            function_name=settings.contract_function or "",
            interface=interface,
            private_key=settings.wallet_private_key or "",
            target=target,
            chain=resolve_chain(settings.chain_id),
        )
    )


def contract_reason(settings: Settings) -> str:
    """Reason text written on-chain, independent of the judge's reasoning."""

    return settings.contract_reason or DEFAULT_REASON


def normalize_evaluator(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    if not Web3.is_address(address):
        logger.warning("REDSHELL_WALLET_ADDRESS is not a valid address; evaluator unavailable for binding")
        return None
    return Web3.to_checksum_address(address)


def build_context(plan: SubmissionPlan, settings: Settings, verdict: Verdict) -> ResolutionContext:
    target_id = plan.target.target_id
    if target_id is None:
        raise ValueError("submission plan has no target identifier")
    return ResolutionContext(
        memo_id=plan.target.memo_id,
        job_id=plan.target.job_id,
        target_id=target_id,
        approved=verdict.approved,
        reason=contract_reason(settings),
        evaluator=normalize_evaluator(settings.wallet_address),
    )


def build_arguments(plan: SubmissionPlan, settings: Settings, verdict: Verdict) -> Optional[List[Any]]:
    function = find_function(plan.interface, plan.function_name)
    if function is None:
        logger.info("Function %s not found in ACP_CONTRACT_ABI", plan.function_name)
        return None
    if plan.target.target_id is None:
        return None
    context = build_context(plan, settings, verdict)
    return resolve_arguments(function, context, parse_override(settings.contract_args))


SubmitterFactory = Callable[[SubmissionPlan, Settings], TransactionSubmitter]


def default_submitter(plan: SubmissionPlan, settings: Settings) -> TransactionSubmitter:
    return TransactionSubmitter(
        plan.rpc_url,
        plan.private_key,
        chain=plan.chain,
        receipt_timeout=settings.receipt_timeout,
    )


class VerdictOrchestrator:
    """Records verdicts on-chain on a best-effort basis."""

    def __init__(
        self,
        settings: Settings,
        *,
        submitter_factory: SubmitterFactory = default_submitter,
        memo_lookup: Callable[[str, Settings], Optional[int]] = fetch_pending_memo_id,
    ) -> None:
        self.settings = settings
        self._submitter_factory = submitter_factory
        self._memo_lookup = memo_lookup

    async def resolve_memo_id(self, job_id: Optional[str], memo_id: Optional[str]) -> Optional[str]:
        if memo_id or not job_id or not self.settings.lookup_pending_memo:
            return memo_id
        if missing_configuration(self.settings) is not None:
            return memo_id
        found = await asyncio.to_thread(self._memo_lookup, job_id, self.settings)
        return str(found) if found is not None else None

    def _skip(self, correlation_id: str, detail: str) -> SubmissionOutcome:
        log_event(logger, logging.INFO, "verdict.submission.skipped", correlation_id, reason=detail)
        SUBMISSIONS_TOTAL.labels(outcome="skipped").inc()
        return SubmissionOutcome(status="skipped", detail=detail)

    def _send(self, plan: SubmissionPlan, args: List[Any]):
        submitter = self._submitter_factory(plan, self.settings)
        return submitter.submit(plan.contract_address, plan.interface.raw, plan.function_name, args)

    async def submit(
        self,
        verdict: Verdict,
        *,
        job_id: Optional[str],
        memo_id: Optional[str],
        correlation_id: str,
    ) -> SubmissionOutcome:
        memo_id = await self.resolve_memo_id(job_id, memo_id)

        check = preflight(self.settings, job_id, memo_id)
        plan = check.plan
        if plan is None:
            return self._skip(correlation_id, f"missing {check.missing}")

        args = build_arguments(plan, self.settings, verdict)
        if args is None:
            return self._skip(correlation_id, f"unable to build arguments for {plan.function_name}")

        if plan.chain is None:
            log_event(logger, logging.INFO, "verdict.chain.unresolved", correlation_id, chain_id=self.settings.chain_id)

        started = time.perf_counter()
        try:
            receipt = await asyncio.to_thread(self._send, plan, args)
        except SubmissionError as exc:
            log_event(logger, logging.WARNING, "verdict.submission.failed", correlation_id, error=str(exc))
            SUBMISSIONS_TOTAL.labels(outcome="failed").inc()
            return SubmissionOutcome(status="failed", detail=str(exc))
        except Exception as exc:
            log_event(logger, logging.WARNING, "verdict.submission.failed", correlation_id, error=repr(exc))
            SUBMISSIONS_TOTAL.labels(outcome="failed").inc()
            return SubmissionOutcome(status="failed", detail=str(exc) or exc.__class__.__name__)
        finally:
            SUBMISSION_SECONDS.observe(time.perf_counter() - started)

        log_event(
            logger,
            logging.INFO,
            "verdict.submission.confirmed",
            correlation_id,
            tx_hash=receipt.tx_hash,
            block=receipt.block_number,
        )
        SUBMISSIONS_TOTAL.labels(outcome="confirmed").inc()
        return SubmissionOutcome(status="confirmed", detail="confirmed", tx_hash=receipt.tx_hash)


__all__ = [
    "JudgeKind",
    "Preflight",
    "SubmissionOutcome",
    "SubmissionPlan",
    "Verdict",
    "VerdictOrchestrator",
    "VerdictTarget",
    "build_arguments",
    "build_context",
    "contract_reason",
    "missing_configuration",
    "normalize_evaluator",
    "preflight",
]
