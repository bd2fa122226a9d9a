"""Dispatch job events to the code or text judge."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from ..config import Settings
from ..extract import get_job_type_hints, looks_like_code
from ..verdicts import JudgeKind, Verdict
from .code import judge_code
from .text import judge_text

Judge = Callable[[Any, Settings], Awaitable[Verdict]]


def detect_job_type(event: Any) -> JudgeKind:
    if not isinstance(event, dict):
        return "unknown"
    for hint in get_job_type_hints(event):
        normalized = hint.lower()
        if "code" in normalized:
            return "code"
        if "text" in normalized:
            return "text"
    if looks_like_code(event):
        return "code"
    return "unknown"


async def route_to_judge(
    event: Any,
    settings: Settings,
    *,
    text_judge: Judge = judge_text,
    code_judge: Judge = judge_code,
) -> Verdict:
    if detect_job_type(event) == "code":
        return await code_judge(event, settings)
    return await text_judge(event, settings)


__all__ = ["detect_job_type", "route_to_judge"]
