"""Webhook authentication shared by the judge routers."""

from __future__ import annotations

import hmac
import logging
from typing import Mapping, Optional

from fastapi import HTTPException

SIGNATURE_HEADERS = ("x-alchemy-signature", "x-webhook-signature", "x-signature")

_AUDIT_LOGGER = logging.getLogger("redshell.audit")


def find_signature(headers: Mapping[str, str]) -> Optional[str]:
    """Return the first signature header present.

    Starlette headers already match case-insensitively; plain mappings are
    scanned by lower-cased key as a fallback.
    """

    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if value is not None:
            return value
    lowered = {str(key).lower(): value for key, value in headers.items()}
    for name in SIGNATURE_HEADERS:
        if name in lowered:
            return lowered[name]
    return None


def verify_webhook_signature(headers: Mapping[str, str], secret: Optional[str]) -> None:
    """Raise ``HTTPException(401)`` unless the signature equals ``secret``.

    No secret configured means no check.
    """

    if not secret:
        _AUDIT_LOGGER.info("webhook.signature.skipped", extra={"reason": "no secret configured"})
        return

    signature = find_signature(headers)
    if signature is None:
        _AUDIT_LOGGER.warning("webhook.signature.missing")
        raise HTTPException(status_code=401, detail="SIGNATURE_MISSING")

    if not hmac.compare_digest(signature.encode("utf-8"), secret.encode("utf-8")):
        _AUDIT_LOGGER.warning("webhook.signature.invalid")
        raise HTTPException(status_code=401, detail="SIGNATURE_INVALID")


def addresses_equal(left: str, right: str) -> bool:
    return left.strip().lower() == right.strip().lower()


__all__ = ["SIGNATURE_HEADERS", "addresses_equal", "find_signature", "verify_webhook_signature"]
