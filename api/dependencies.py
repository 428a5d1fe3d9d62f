"""
FastAPI dependencies (shared across routes).
"""

from __future__ import annotations

from fastapi import HTTPException, status

from connectors.base import AccountConnector
from connectors.registry import AccountTypeRegistry


def get_registry() -> AccountTypeRegistry:
    registry = AccountTypeRegistry()
    registry.discover()
    return registry


def get_connector(code: str) -> AccountConnector:
    """Resolve the ``{code}`` path parameter to a configured account type."""
    connector = get_registry().get(code)
    if not connector:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account type '{code}' not found or not configured",
        )
    return connector
