"""
OAuthClient — authorization-code and refresh-token grants against Coinbase.

Thin, synchronous wrapper around ``httpx.Client``.  Every grant comes back
as a :class:`Token` whose ``expires_at`` is an absolute UTC instant; the
provider has answered both with "seconds remaining" and with absolute
timestamps over time, so :func:`normalize_token_expiry` is the one place
that decides which is which.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode, urljoin

import httpx
from pydantic import ValidationError

from config.settings import Settings, config as default_config
from connectors.errors import AuthError, FetchError
from connectors.schemas import Token, to_utc_datetime

logger = logging.getLogger(__name__)

# A bare ``expires`` above this is an epoch timestamp, below it a duration.
_TEN_YEARS_SECONDS = 10 * 365 * 24 * 3600


def normalize_token_expiry(
    payload: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> datetime:
    """
    Turn whatever expiry the token endpoint returned into an absolute UTC time.

    * ``expires_at`` — absolute (epoch seconds or ISO-8601), used as-is.
    * ``expires_in`` — seconds from ``now``.
    * ``expires``    — absolute if it looks like an epoch timestamp,
      otherwise seconds from ``now``.

    Raises ``AuthError`` when no usable expiry is present.
    """
    now = now or datetime.now(timezone.utc)
    try:
        if payload.get("expires_at") not in (None, ""):
            return to_utc_datetime(payload["expires_at"])
        if payload.get("expires_in") not in (None, ""):
            return now + timedelta(seconds=float(payload["expires_in"]))
        if payload.get("expires") not in (None, ""):
            expires = float(payload["expires"])
            if expires > _TEN_YEARS_SECONDS:
                return to_utc_datetime(expires)
            return now + timedelta(seconds=expires)
    except (TypeError, ValueError, OverflowError, OSError) as exc:
        raise AuthError(f"Unparsable token expiry: {exc}") from exc
    raise AuthError("Token response carries no expiry")


class OAuthClient:
    """OAuth2 client for the Coinbase token and API endpoints."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings or default_config
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=self.settings.http_timeout_seconds)

    # ── Lifecycle ───────────────────────────────────────────────────────

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "OAuthClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── Authorization ───────────────────────────────────────────────────

    @property
    def scopes(self) -> List[str]:
        return list(self.settings.coinbase_scopes)

    def build_authorization_url(self) -> Tuple[str, str]:
        """Return ``(url, state_token)`` for a fresh authorization attempt."""
        state = secrets.token_urlsafe(32)
        params = {
            "response_type": "code",
            "client_id": self.settings.coinbase_client_id,
            "redirect_uri": self.settings.coinbase_redirect_uri,
            "state": state,
        }
        if self.scopes:
            params["scope"] = " ".join(self.scopes)
        return f"{self.settings.coinbase_authorize_url}?{urlencode(params)}", state

    def exchange_code(self, code: str) -> Token:
        """Authorization-code grant."""
        if not code:
            raise AuthError("Missing authorization code")
        return self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.coinbase_redirect_uri,
            }
        )

    def refresh(self, refresh_token: str) -> Token:
        """Refresh-token grant.  Keeps ``refresh_token`` if the provider doesn't rotate it."""
        if not refresh_token:
            raise AuthError("Missing refresh token")
        return self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            previous_refresh_token=refresh_token,
        )

    def revoke(self, access_token: str) -> bool:
        """Revoke the token at Coinbase.  Best effort: False on any failure."""
        try:
            resp = self._http.post(
                self.settings.coinbase_revoke_url,
                data={"token": access_token},
                headers={"Authorization": f"Bearer {access_token}"},
            )
            return resp.is_success
        except httpx.HTTPError:
            logger.warning("Coinbase token revocation failed", exc_info=True)
            return False

    # ── API ─────────────────────────────────────────────────────────────

    def get(self, path: str, access_token: str, **params: Any) -> Dict[str, Any]:
        """Bearer-authenticated GET against the Coinbase API."""
        url = urljoin(self.settings.coinbase_api_base, path.lstrip("/"))
        try:
            resp = self._http.get(
                url,
                params=params or None,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                    "CB-VERSION": self.settings.coinbase_api_version,
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Coinbase API {path} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Coinbase API {path} request failed: {exc}") from exc
        except ValueError as exc:
            raise FetchError(f"Coinbase API {path} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise FetchError(f"Coinbase API {path} returned unexpected payload")
        return data

    # ── Internals ───────────────────────────────────────────────────────

    def _token_request(
        self,
        grant: Dict[str, str],
        *,
        previous_refresh_token: Optional[str] = None,
    ) -> Token:
        form = {
            **grant,
            "client_id": self.settings.coinbase_client_id,
            "client_secret": self.settings.coinbase_client_secret,
        }
        grant_type = grant["grant_type"]
        try:
            resp = self._http.post(
                self.settings.coinbase_token_url,
                data=form,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise AuthError(f"Token request ({grant_type}) failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.is_success or not isinstance(data, dict) or "error" in data:
            detail = ""
            if isinstance(data, dict) and "error" in data:
                detail = f": {data.get('error_description') or data['error']}"
            raise AuthError(
                f"Coinbase rejected {grant_type} grant (HTTP {resp.status_code}){detail}"
            )

        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token") or previous_refresh_token
        if not access_token or not refresh_token:
            raise AuthError(f"Malformed {grant_type} response: missing tokens")

        scope = data.get("scope")
        if isinstance(scope, list):
            scope = " ".join(str(s) for s in scope)
        try:
            token = Token(
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=normalize_token_expiry(data),
                token_type=data.get("token_type") or "bearer",
                scope=scope,
            )
        except ValidationError as exc:
            raise AuthError(f"Malformed {grant_type} response: {exc.error_count()} invalid field(s)") from exc
        logger.debug("Coinbase %s grant ok, expires %s", grant_type, token.expires_at.isoformat())
        return token
