"""
CoinbaseConnector — OAuth2 web flow and balance fetching for Coinbase wallets.

Setup is the usual authorization-code dance (redirect → callback →
exchange).  Every balance fetch refreshes the access token first and
hands the new token fields to the host's credential sink *before* asking
for the balance, so a failed balance query never loses a rotated token.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from config.settings import Settings, config as default_config
from connectors.base import AccountConnector, SinkLike
from connectors.errors import AuthError, CSRFError, FetchError
from connectors.oauth_client import OAuthClient
from connectors.schemas import (
    Balance,
    Credential,
    FieldSpec,
    InteractionRequest,
    InteractionResult,
    InteractionState,
)
from connectors.session import AuthorizationSession

logger = logging.getLogger(__name__)

_BALANCE_PATH = "v1/account/balance"


class CoinbaseConnector(AccountConnector):
    """Account type for the Coinbase exchange wallet."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        oauth_client: Optional[OAuthClient] = None,
    ) -> None:
        self.settings = settings or default_config
        self._oauth = oauth_client
        self._owns_oauth = oauth_client is None

    @property
    def name(self) -> str:
        return "Coinbase"

    @property
    def code(self) -> str:
        return "coinbase"

    @property
    def url(self) -> str:
        return "https://www.coinbase.com"

    @property
    def oauth(self) -> OAuthClient:
        if self._oauth is None:
            self._oauth = OAuthClient(self.settings)
        return self._oauth

    def close(self) -> None:
        if self._owns_oauth and self._oauth is not None:
            self._oauth.close()
            self._oauth = None

    def is_configured(self) -> bool:
        return bool(self.settings.coinbase_client_id and self.settings.coinbase_client_secret)

    def get_fields(self) -> Dict[str, FieldSpec]:
        return {
            "api_code": FieldSpec(title="API Code", regexp=".+", interaction=True),
            "refresh_token": FieldSpec(title="Refresh Token", regexp=".+", interaction=True),
            "access_token": FieldSpec(title="Access Token", regexp=".+", interaction=True),
            "access_token_expires": FieldSpec(title="Access Token Expires", interaction=True),
        }

    # ── Interactive setup ───────────────────────────────────────────────

    def interaction(
        self,
        request: InteractionRequest,
        session: AuthorizationSession,
        log: Optional[logging.Logger] = None,
    ) -> InteractionResult:
        log = log or logger

        if not request.code and not request.error:
            log.info("Obtaining authorization code")
            url, state = self.oauth.build_authorization_url()
            session.begin(state)
            log.info("Redirecting to %s", url)
            return InteractionResult(state=InteractionState.AWAITING_CALLBACK, redirect_url=url)

        if not session.consume(request.state):
            log.info("Intercepted invalid state")
            raise CSRFError("Invalid state")

        if request.error:
            raise AuthError(
                f"Coinbase authorization denied: {request.error_description or request.error}"
            )

        log.info("Discovering initial access token")
        token = self.oauth.exchange_code(request.code)
        fields = {"api_code": request.code, **token.as_fields()}
        return InteractionResult(state=InteractionState.AUTHORIZED, fields=fields)

    # ── Balances ────────────────────────────────────────────────────────

    def fetch_balances(
        self,
        credential: Union[Credential, Mapping[str, Any]],
        sink: Optional[SinkLike] = None,
        *,
        log: Optional[logging.Logger] = None,
    ) -> Balance:
        log = log or logger
        target = self._resolve_sink(sink)
        credential = self._as_credential(credential)

        # Refresh unconditionally: trusting access_token_expires breaks under clock skew.
        log.info("Refreshing access token")
        try:
            token = self.oauth.refresh(credential.refresh_token)
        except AuthError as exc:
            raise FetchError(f"Could not refresh Coinbase access token: {exc}") from exc

        target.update(token.as_fields())

        log.info("Fetching account balance")
        data = self.oauth.get(_BALANCE_PATH, token.access_token)
        currency = data.get("currency")
        amount = data.get("amount")
        if not isinstance(currency, str) or not currency or amount is None:
            raise FetchError(f"Unexpected Coinbase balance payload: {sorted(data)}")

        return {currency.lower(): {"confirmed": amount}}

    def disconnect(self, credential: Union[Credential, Mapping[str, Any]]) -> bool:
        credential = self._as_credential(credential)
        if not credential.access_token:
            return False
        return self.oauth.revoke(credential.access_token)

    @staticmethod
    def _as_credential(credential: Union[Credential, Mapping[str, Any]]) -> Credential:
        if isinstance(credential, Credential):
            return credential
        try:
            return Credential.from_fields(credential)
        except ValidationError as exc:
            raise FetchError(f"Invalid Coinbase credential fields: {exc}") from exc
