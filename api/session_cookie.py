"""
Signed session cookie holding the pending OAuth state between the
redirect and the provider callback.

The cookie value is a base64-encoded JSON payload signed with
HMAC-SHA256.  Secret is loaded from ``config.oauth_state_secret``
(env var: ``OAUTH_STATE_SECRET``).
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import logging
import time
from base64 import b64decode, b64encode
from typing import Any, Dict

from fastapi import Request, Response

from config.settings import config

logger = logging.getLogger(__name__)

COOKIE_NAME = "wallet_session"


def _sign(raw: bytes) -> str:
    return hmac.new(config.oauth_state_secret.encode(), raw, hashlib.sha256).hexdigest()


def dump_session(data: Dict[str, Any]) -> str:
    """Serialize ``data`` (plus an expiry) into a signed cookie value."""
    payload = {"data": data, "exp": int(time.time()) + config.session_max_age_seconds}
    raw = json.dumps(payload).encode()
    return b64encode(raw).decode() + "." + _sign(raw)


def load_session(request: Request) -> Dict[str, Any]:
    """
    Return the session dict from the request cookie.

    A missing, tampered or expired cookie yields an empty session; the
    callback then fails its CSRF check, which is the outcome we want.
    """
    value = request.cookies.get(COOKIE_NAME)
    if not value:
        return {}
    try:
        encoded, sig = value.split(".", 1)
        raw = b64decode(encoded)
        if not hmac.compare_digest(sig.encode(), _sign(raw).encode()):
            raise ValueError("bad signature")
        payload = json.loads(raw)
        if payload.get("exp", 0) < time.time():
            raise ValueError("session expired")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ValueError("bad payload")
        return data
    except (ValueError, binascii.Error) as exc:
        logger.info("Ignoring session cookie: %s", exc)
        return {}


def save_session(response: Response, data: Dict[str, Any]) -> None:
    """Write ``data`` back to the cookie, or delete it when empty."""
    if not data:
        response.delete_cookie(COOKIE_NAME)
        return
    response.set_cookie(
        COOKIE_NAME,
        dump_session(data),
        max_age=config.session_max_age_seconds,
        httponly=True,
        samesite="lax",
    )
