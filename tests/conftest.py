"""
Shared fixtures: an in-memory Coinbase served through ``httpx.MockTransport``.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List
from urllib.parse import parse_qsl

import httpx
import pytest

from config.settings import Settings
from connectors.coinbase import CoinbaseConnector
from connectors.oauth_client import OAuthClient


class FakeCoinbase:
    """Just enough of the Coinbase OAuth + wallet API to drive the connector."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.codes = {"good-code"}            # authorization codes are single use
        self.refresh_tokens = {"refresh-0"}
        self.access_tokens: set = set()
        self.expiry: Dict[str, Any] = {"expires_in": 7200}
        self.token_extra: Dict[str, Any] = {}        # merged into every token reply
        self.rotate_refresh = True
        self.balance: Any = {"currency": "BTC", "amount": "1.5"}
        self.balance_status = 200
        self.revoke_status = 200
        self._counter = 0

    # ── helpers ──────────────────────────────────────────────────────

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def _issue(self, refresh_token: str = "") -> Dict[str, Any]:
        self._counter += 1
        access = f"access-{self._counter}"
        self.access_tokens.add(access)
        body: Dict[str, Any] = {"access_token": access, "token_type": "bearer", "scope": "user balance"}
        if self.rotate_refresh or not refresh_token:
            new_refresh = f"refresh-{self._counter}"
            self.refresh_tokens.add(new_refresh)
            body["refresh_token"] = new_refresh
        body.update(self.expiry)
        body.update(self.token_extra)
        return body

    @staticmethod
    def _json(status: int, payload: Any) -> httpx.Response:
        return httpx.Response(status, content=json.dumps(payload), headers={"Content-Type": "application/json"})

    # ── transport ────────────────────────────────────────────────────

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/oauth/token":
            form = dict(parse_qsl(request.content.decode()))
            if form.get("client_secret") != "test-secret":
                return self._json(401, {"error": "invalid_client"})
            grant = form.get("grant_type")
            if grant == "authorization_code":
                if form.get("code") not in self.codes:
                    return self._json(401, {"error": "invalid_grant", "error_description": "code already used"})
                self.codes.discard(form["code"])
                return self._json(200, self._issue())
            if grant == "refresh_token":
                token = form.get("refresh_token")
                if token not in self.refresh_tokens:
                    return self._json(401, {"error": "invalid_grant", "error_description": "refresh token revoked"})
                if self.rotate_refresh:
                    self.refresh_tokens.discard(token)
                return self._json(200, self._issue(token))
            return self._json(400, {"error": "unsupported_grant_type"})

        if path == "/oauth/revoke":
            return httpx.Response(self.revoke_status)

        if path == "/v1/account/balance":
            auth = request.headers.get("Authorization", "")
            if auth[len("Bearer "):] not in self.access_tokens:
                return self._json(401, {"error": "invalid_token"})
            if self.balance_status != 200:
                return self._json(self.balance_status, {"error": "unavailable"})
            return self._json(200, self.balance)

        return self._json(404, {"error": "not_found"})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        coinbase_client_id="test-client",
        coinbase_client_secret="test-secret",
        coinbase_redirect_uri="https://wallet.example/accounts/coinbase/interaction",
        oauth_state_secret="test-state-secret",
    )


@pytest.fixture
def provider() -> FakeCoinbase:
    return FakeCoinbase()


@pytest.fixture
def oauth_client(settings, provider):
    client = OAuthClient(settings, http_client=httpx.Client(transport=httpx.MockTransport(provider.handler)))
    yield client
    client._http.close()


@pytest.fixture
def connector(settings, oauth_client) -> CoinbaseConnector:
    return CoinbaseConnector(settings, oauth_client=oauth_client)


@pytest.fixture
def future_epoch() -> int:
    return int(time.time()) + 3600
