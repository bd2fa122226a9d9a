# routes/webhook.py
# FastAPI router receiving job events from the webhook provider.
# Exposes: POST / (judge + best-effort on-chain verdict), GET|HEAD / (liveness),
# plus /healthz and /metrics (Prometheus) on the health router.

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from redshell.config import Settings, get_settings
from redshell.extract import get_evaluator_address, get_job_id, get_memo_id
from redshell.judges.router import route_to_judge
from redshell.logging_utils import log_event
from redshell.metrics import CONTENT_TYPE_LATEST, VERDICTS_TOTAL, WEBHOOK_REQUESTS_TOTAL, render_latest
from redshell.verdicts import Verdict, VerdictOrchestrator

from .security import addresses_equal, verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])
health_router = APIRouter(tags=["health"])

LIVENESS_MESSAGE = "RedShell judge is running"

JudgeFn = Callable[[Any, Settings], Awaitable[Verdict]]
OrchestratorFactory = Callable[[Settings], VerdictOrchestrator]


def get_judge() -> JudgeFn:
    return route_to_judge


def get_orchestrator_factory() -> OrchestratorFactory:
    return VerdictOrchestrator


def _get_correlation_id(request: Request) -> str:
    return request.headers.get("X-Request-ID") or str(uuid.uuid4())


def _count(status_code: int) -> None:
    WEBHOOK_REQUESTS_TOTAL.labels(http_status=str(status_code)).inc()


@router.api_route("/", methods=["GET", "HEAD"], response_class=PlainTextResponse)
async def liveness() -> str:
    return LIVENESS_MESSAGE


@router.post("/")
async def receive_event(
    request: Request,
    settings: Settings = Depends(get_settings),
    judge: JudgeFn = Depends(get_judge),
    orchestrator_factory: OrchestratorFactory = Depends(get_orchestrator_factory),
):
    correlation_id = _get_correlation_id(request)
    body = await request.body()

    try:
        event = json.loads(body)
    except ValueError:
        log_event(logger, logging.INFO, "webhook.invalid_json", correlation_id, size=len(body))
        _count(400)
        raise HTTPException(status_code=400, detail="INVALID_JSON")

    try:
        verify_webhook_signature(request.headers, settings.webhook_secret)
    except HTTPException as exc:
        log_event(logger, logging.WARNING, "webhook.unauthorized", correlation_id, detail=exc.detail)
        _count(exc.status_code)
        raise

    try:
        return await _process_event(event, settings, judge, orchestrator_factory, correlation_id)
    except Exception:
        logger.exception("webhook.unhandled_error | cid=%s", correlation_id, extra={"cid": correlation_id})
        _count(500)
        return JSONResponse(status_code=500, content={"detail": "INTERNAL_ERROR"})


async def _process_event(
    event: Any,
    settings: Settings,
    judge: JudgeFn,
    orchestrator_factory: OrchestratorFactory,
    correlation_id: str,
) -> Response | Dict[str, Any]:
    evaluator = get_evaluator_address(event)
    expected = settings.wallet_address
    if not evaluator or not expected:
        log_event(logger, logging.INFO, "webhook.ignored", correlation_id, reason="missing evaluator or REDSHELL_WALLET_ADDRESS")
        _count(202)
        return PlainTextResponse("Ignored", status_code=202)
    if not addresses_equal(evaluator, expected):
        log_event(logger, logging.INFO, "webhook.ignored", correlation_id, reason="evaluator mismatch", evaluator=evaluator)
        _count(202)
        return PlainTextResponse("Ignored", status_code=202)

    job_id = get_job_id(event)
    memo_id = get_memo_id(event)

    verdict = await judge(event, settings)
    VERDICTS_TOTAL.labels(judge=verdict.judge, approved=str(verdict.approved).lower()).inc()
    log_event(
        logger,
        logging.INFO,
        "verdict.intent",
        correlation_id,
        job_id=job_id or "unknown",
        decision="APPROVE" if verdict.approved else "REJECT",
        judge=verdict.judge,
        reason=verdict.reason,
    )

    outcome = await orchestrator_factory(settings).submit(
        verdict, job_id=job_id, memo_id=memo_id, correlation_id=correlation_id
    )
    log_event(logger, logging.INFO, "verdict.recorded", correlation_id, job_id=job_id or "unknown", onchain=outcome.status)

    _count(200)
    return {"ok": True, "jobId": job_id, "verdict": verdict.model_dump()}


@health_router.get("/healthz")
async def healthz() -> Dict[str, bool]:
    return {"ok": True}


@health_router.get("/metrics")
def metrics() -> Response:
    return Response(render_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "get_judge",
    "get_orchestrator_factory",
    "health_router",
    "healthz",
    "liveness",
    "metrics",
    "receive_event",
    "router",
]
