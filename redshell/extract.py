"""Field extraction from free-form job event payloads.

Webhook producers nest the interesting fields either at the top level or under
``payload``/``data``; the helpers below search those places in a fixed order.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

_NESTED_KEYS = ("payload", "data")
_CRITERIA_KEYS = ("criteria", "requirements", "spec", "task", "instructions", "prompt")
_DELIVERABLE_KEYS = ("deliverable", "output", "result", "submission", "artifact")
_CODE_KEYS = ("code", "source", "content", "snippet")
_LANGUAGE_KEYS = ("language", "lang")

_FENCE = re.compile(r"```[ \t]*([\w+#.-]*)[^\n]*\n(.*?)```", re.DOTALL)
_CODE_PATTERNS = [
    re.compile(r"^\s*(def|class)\s+\w+.*:\s*$", re.MULTILINE),
    re.compile(r"^\s*(import\s+[\w.]+|from\s+[\w.]+\s+import\s+)", re.MULTILINE),
    re.compile(r"^\s*(function\s+\w+\s*\(|const\s+\w+\s*=|let\s+\w+\s*=)", re.MULTILINE),
    re.compile(r"\bprint\s*\(.*\)"),
    re.compile(r"\bconsole\.log\s*\("),
    re.compile(r"#include\s*<"),
    re.compile(r"^\s*(fn|func|pub fn)\s+\w+\s*\(", re.MULTILINE),
]


@dataclass(frozen=True)
class CodeExtraction:
    code: Optional[str]
    language: Optional[str]


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _pick_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _pick_identifier(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return _pick_string(value)


def _search(event: Any, keys: Iterable[str]) -> List[Any]:
    """Candidates for ``keys`` at the top level, then under each nested key."""

    root = _as_dict(event)
    keys = tuple(keys)
    candidates = [root.get(key) for key in keys]
    for nested in _NESTED_KEYS:
        scope = _as_dict(root.get(nested))
        candidates.extend(scope.get(key) for key in keys)
    return candidates


def merged_payload(event: Any) -> Dict[str, Any]:
    root = _as_dict(event)
    nested: Dict[str, Any] = {}
    for key in _NESTED_KEYS:
        if isinstance(root.get(key), dict):
            nested = root[key]
            break
    return {**root, **nested}


def get_job_id(event: Any) -> Optional[str]:
    for candidate in _search(event, ("jobId", "job_id")):
        value = _pick_identifier(candidate)
        if value is not None:
            return value
    return None


def get_memo_id(event: Any) -> Optional[str]:
    for candidate in _search(event, ("memoId", "memo_id")):
        value = _pick_identifier(candidate)
        if value is not None:
            return value
    return None


def get_evaluator_address(event: Any) -> Optional[str]:
    for candidate in _search(event, ("evaluator", "evaluator_address")):
        value = _pick_string(candidate)
        if value is not None:
            return value
    return None


def get_job_type_hints(event: Any) -> List[str]:
    candidates = _search(event, ("jobType", "job_type"))
    candidates.append(_as_dict(_as_dict(event).get("deliverable")).get("type"))
    return [value for value in (_pick_string(c) for c in candidates) if value is not None]


def extract_criteria(event: Any) -> Optional[str]:
    payload = merged_payload(event)
    for key in _CRITERIA_KEYS:
        value = _pick_string(payload.get(key))
        if value is not None:
            return value
    return None


def extract_deliverable(event: Any) -> Any:
    payload = merged_payload(event)
    for key in _DELIVERABLE_KEYS:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _unfence(text: str) -> CodeExtraction:
    match = _FENCE.search(text)
    if match:
        body = match.group(2).strip()
        return CodeExtraction(code=body or None, language=match.group(1) or None)
    return CodeExtraction(code=text.strip() or None, language=None)


def extract_code(event: Any) -> CodeExtraction:
    deliverable = extract_deliverable(event)

    if isinstance(deliverable, str):
        return _unfence(deliverable)

    if isinstance(deliverable, dict):
        language = next((v for v in (_pick_string(deliverable.get(k)) for k in _LANGUAGE_KEYS) if v), None)
        for key in _CODE_KEYS:
            code = _pick_string(deliverable.get(key))
            if code is not None:
                extraction = _unfence(code)
                return CodeExtraction(code=extraction.code, language=language or extraction.language)

    return CodeExtraction(code=None, language=None)


def looks_like_code(event: Any) -> bool:
    """Whether the deliverable appears to be source code rather than prose."""

    deliverable = extract_deliverable(event)
    if isinstance(deliverable, dict):
        return any(_pick_string(deliverable.get(key)) for key in ("code", "source", "snippet"))
    if not isinstance(deliverable, str) or not deliverable.strip():
        return False
    if _FENCE.search(deliverable):
        return True
    return any(pattern.search(deliverable) for pattern in _CODE_PATTERNS)


def _truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[:max_length]}\n...<truncated>"


def format_evidence(deliverable: Any, max_length: int = 4000) -> str:
    if deliverable is None:
        return "<no deliverable provided>"
    if isinstance(deliverable, str):
        return _truncate(deliverable, max_length)
    try:
        text = json.dumps(deliverable, indent=2, default=str)
    except (TypeError, ValueError):
        text = str(deliverable)
    return _truncate(text, max_length)


__all__ = [
    "CodeExtraction",
    "extract_code",
    "extract_criteria",
    "extract_deliverable",
    "format_evidence",
    "get_evaluator_address",
    "get_job_id",
    "get_job_type_hints",
    "get_memo_id",
    "looks_like_code",
    "merged_payload",
]
