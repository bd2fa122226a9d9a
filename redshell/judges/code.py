"""Sandboxed execution judge for code deliverables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from e2b_code_interpreter import AsyncSandbox

from ..config import Settings
from ..extract import extract_code
from ..verdicts import Verdict

logger = logging.getLogger(__name__)

STDOUT_LIMIT = 200

# Interpreter kernels available besides the default Python one.
_KERNELS = {
    "js": "js",
    "javascript": "js",
    "ts": "ts",
    "typescript": "ts",
    "r": "r",
    "java": "java",
    "bash": "bash",
    "sh": "bash",
}

SandboxFactory = Callable[[str], Awaitable[Any]]


@dataclass(frozen=True)
class ExecutionResult:
    stdout: str
    stderr: str
    error: str


async def create_sandbox(api_key: str) -> Any:
    return await AsyncSandbox.create(api_key=api_key)


def _reject(reason: str) -> Verdict:
    return Verdict(approved=False, reason=reason, judge="code")


def _text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = "".join(str(item) for item in value)
    if isinstance(value, str):
        return value.strip()
    return ""


def _attr(source: Any, name: str) -> Any:
    if isinstance(source, dict):
        return source.get(name)
    return getattr(source, name, None)


def normalize_execution(execution: Any) -> ExecutionResult:
    if execution is None:
        return ExecutionResult(stdout="", stderr="", error="Unknown execution response.")

    logs = _attr(execution, "logs")
    stdout = _text(_attr(logs, "stdout")) or _text(_attr(execution, "stdout")) or _text(_attr(execution, "text"))
    stderr = _text(_attr(logs, "stderr")) or _text(_attr(execution, "stderr"))

    error_obj = _attr(execution, "error")
    if isinstance(error_obj, str):
        error = error_obj.strip()
    elif error_obj is not None:
        name = _text(_attr(error_obj, "name"))
        value = _text(_attr(error_obj, "value"))
        error = f"{name}: {value}" if name and value else (name or value or str(error_obj))
    else:
        error = ""
    return ExecutionResult(stdout=stdout, stderr=stderr, error=error)


def _truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[:max_length]}..."


async def _close_sandbox(sandbox: Any) -> None:
    for method in ("kill", "close", "stop"):
        closer = getattr(sandbox, method, None)
        if callable(closer):
            try:
                await closer()
            except Exception as exc:  # pragma: no cover - teardown must not mask the verdict
                logger.warning("Sandbox %s failed: %s", method, exc)
            return


async def judge_code(
    event: Any,
    settings: Settings,
    *,
    sandbox_factory: SandboxFactory = create_sandbox,
) -> Verdict:
    if not settings.e2b_api_key:
        return _reject("Missing E2B_API_KEY for code judge.")

    extraction = extract_code(event)
    if not extraction.code:
        return _reject("No executable code found in deliverable.")

    label = f" ({extraction.language})" if extraction.language else ""
    kernel: Optional[str] = _KERNELS.get((extraction.language or "").lower())

    try:
        sandbox = await sandbox_factory(settings.e2b_api_key)
    except Exception as exc:
        logger.warning("Sandbox creation failed: %s", exc)
        return _reject(f"Sandbox error: {exc}")

    try:
        if kernel:
            execution = await sandbox.run_code(extraction.code, language=kernel)
        else:
            execution = await sandbox.run_code(extraction.code)
        result = normalize_execution(execution)
    except Exception as exc:
        logger.warning("Sandbox execution failed: %s", exc)
        return _reject(f"Sandbox error: {exc}")
    finally:
        await _close_sandbox(sandbox)

    if result.stderr or result.error:
        return _reject(f"Runtime error{label}: {result.stderr or result.error}")

    if result.stdout:
        return Verdict(
            approved=True,
            reason=f"Execution succeeded{label}: {_truncate(result.stdout, STDOUT_LIMIT)}",
            judge="code",
        )
    return Verdict(approved=True, reason="Execution succeeded with no output.", judge="code")


__all__ = ["ExecutionResult", "create_sandbox", "judge_code", "normalize_execution"]
