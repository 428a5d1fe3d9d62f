"""
Account API routes — account types, field schema, interactive OAuth
setup and balance sync.

Route prefix: /api/v1/accounts
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from api.dependencies import get_connector, get_registry
from api.session_cookie import load_session, save_session
from connectors.base import AccountConnector
from connectors.errors import AuthError, CSRFError, FetchError
from connectors.registry import AccountTypeRegistry
from connectors.schemas import InteractionRequest
from connectors.session import AuthorizationSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])


@router.get("/types")
def list_account_types(
    registry: AccountTypeRegistry = Depends(get_registry),
) -> List[Dict[str, Any]]:
    """List all known account types and their configuration status."""
    return registry.list_types()


@router.get("/{code}/fields")
def get_fields(connector: AccountConnector = Depends(get_connector)) -> Dict[str, Any]:
    return {key: spec.model_dump() for key, spec in connector.get_fields().items()}


@router.get("/{code}/interaction")
def interaction(
    request: Request,
    connector: AccountConnector = Depends(get_connector),
) -> Response:
    """
    Interactive setup.

    First call → 302 to the provider's authorization page.  The provider
    redirects back here with ``code`` and ``state``; the finalized credential
    fields are returned as JSON for the host to store.
    """
    store = load_session(request)
    session = AuthorizationSession(store, provider=connector.code)
    interaction_request = InteractionRequest.from_query(request.query_params)

    try:
        result = connector.interaction(interaction_request, session)
    except CSRFError as exc:
        response = JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": f"Invalid OAuth state: {exc}"},
        )
    except AuthError as exc:
        logger.error("%s authorization failed: %s", connector.code, exc)
        response = JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": f"Authorization failed: {exc}"},
        )
    else:
        if result.pending:
            response = RedirectResponse(result.redirect_url, status_code=status.HTTP_302_FOUND)
        else:
            logger.info("%s account authorized", connector.code)
            response = JSONResponse(content={"state": result.state.value, "fields": result.fields})

    save_session(response, session.store)
    return response


@router.post("/{code}/balances")
def fetch_balances(
    credential: Dict[str, Any] = Body(...),
    connector: AccountConnector = Depends(get_connector),
) -> Dict[str, Any]:
    """
    Sync cycle for one account.

    Body is the stored credential fields.  The response carries the
    balances plus any credential updates the host must persist.
    """
    updates: Dict[str, str] = {}
    try:
        balances = connector.fetch_balances(credential, updates.update)
    except FetchError as exc:
        logger.warning("%s balance fetch failed: %s", connector.code, exc)
        # A refreshed token may already be in ``updates``; the host still has to store it.
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": str(exc), "credential": updates},
        ) from exc
    return {"balances": balances, "credential": updates}
