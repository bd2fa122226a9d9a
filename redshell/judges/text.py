"""LLM-backed judge for prose deliverables."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from ..extract import extract_criteria, extract_deliverable, format_evidence
from ..verdicts import Verdict

logger = logging.getLogger(__name__)

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
SYSTEM_PROMPT = "You are an impartial judge for ACP deliverables."
MAX_TOKENS = 400
TEMPERATURE = 0.2

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


def _reject(reason: str) -> Verdict:
    return Verdict(approved=False, reason=reason, judge="text")


def build_prompt(criteria: str, evidence: str) -> str:
    return "\n".join(
        [
            "Return ONLY strict JSON with keys: approved (boolean), reason (string).",
            "TASK/CRITERIA:",
            criteria,
            "",
            "EVIDENCE:",
            evidence,
        ]
    )


def extract_content_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    for block in payload.get("content") or []:
        if isinstance(block, dict) and block.get("type") == "text":
            return block.get("text") or ""
    return ""


def parse_verdict(text: str) -> Optional[Dict[str, Any]]:
    """Decode the model's JSON reply, tolerating prose around the object."""

    if not text or not text.strip():
        return None
    trimmed = text.strip()
    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        match = _JSON_BLOCK.search(trimmed)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def _coerce_approved(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "approve", "approved"}
    return False


async def judge_text(event: Any, settings: Settings, *, client: Optional[httpx.AsyncClient] = None) -> Verdict:
    if not settings.anthropic_api_key:
        return _reject("Missing ANTHROPIC_API_KEY for text judge.")

    criteria = extract_criteria(event) or "No explicit criteria provided."
    evidence = format_evidence(extract_deliverable(event))
    body = {
        "model": settings.anthropic_model,
        "max_tokens": MAX_TOKENS,
        "temperature": TEMPERATURE,
        "system": SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": build_prompt(criteria, evidence)}],
    }
    headers = {
        "content-type": "application/json",
        "x-api-key": settings.anthropic_api_key,
        "anthropic-version": ANTHROPIC_VERSION,
    }

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=60) as owned:
                response = await owned.post(ANTHROPIC_URL, json=body, headers=headers)
        else:
            response = await client.post(ANTHROPIC_URL, json=body, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("Anthropic request failed: %s", exc)
        return _reject(f"Anthropic request failed: {exc}")

    if not response.is_success:
        return _reject(f"Anthropic error: {response.status_code} {response.text[:200]}")

    try:
        payload = response.json()
    except ValueError:
        return _reject("Anthropic response was not valid JSON.")

    parsed = parse_verdict(extract_content_text(payload))
    if parsed is None:
        return _reject("Anthropic response was not valid JSON.")

    reason = parsed.get("reason")
    return Verdict(
        approved=_coerce_approved(parsed.get("approved")),
        reason=reason.strip() if isinstance(reason, str) and reason.strip() else "No reason provided.",
        judge="text",
    )


__all__ = ["ANTHROPIC_URL", "build_prompt", "extract_content_text", "judge_text", "parse_verdict"]
