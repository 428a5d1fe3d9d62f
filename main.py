"""
Wallet account connectors — HTTP entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI

from api.middleware import register_middleware
from api.routes import router as accounts_router
from config.settings import config
from connectors.registry import AccountTypeRegistry

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Wallet Account Connectors",
        version="1.0.0",
        description="OAuth2 account types for the wallet aggregator.",
    )

    register_middleware(app)

    app.include_router(accounts_router, prefix="/api/v1/accounts")

    @app.on_event("startup")
    def on_startup():
        logger.info("Discovering account types…")
        registry = AccountTypeRegistry()
        registry.discover()
        configured = registry.list_configured()
        if not configured:
            logger.warning("No account type is configured; set COINBASE_CLIENT_ID / COINBASE_CLIENT_SECRET")
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    def on_shutdown():
        AccountTypeRegistry().close()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
