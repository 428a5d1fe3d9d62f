"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ── Coinbase OAuth2 ─────────────────────────────────────────────────
    coinbase_client_id: str = ""
    coinbase_client_secret: str = ""
    coinbase_redirect_uri: str = "http://localhost:8000/api/v1/accounts/coinbase/interaction"
    coinbase_scopes: List[str] = ["user", "balance"]

    coinbase_authorize_url: str = "https://www.coinbase.com/oauth/authorize"
    coinbase_token_url: str = "https://www.coinbase.com/oauth/token"
    coinbase_revoke_url: str = "https://www.coinbase.com/oauth/revoke"
    coinbase_api_base: str = "https://api.coinbase.com/"
    coinbase_api_version: str = "2015-04-08"   # sent as CB-VERSION

    http_timeout_seconds: float = 30.0

    # ── Security Secrets ──────────────────────────────────────────────────
    oauth_state_secret: str = "change-me-oauth-state"   # HMAC secret for the session cookie
    session_max_age_seconds: int = 600

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }


config = Settings()
