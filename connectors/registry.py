"""
AccountTypeRegistry — discovers and provides access to all account types.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from connectors.base import AccountConnector
from connectors.coinbase import CoinbaseConnector

logger = logging.getLogger(__name__)


def _all_account_types() -> List[AccountConnector]:
    # All known account types — add new ones here
    return [
        CoinbaseConnector(),
    ]


class AccountTypeRegistry:
    """Singleton registry for all account types."""

    _instance: Optional["AccountTypeRegistry"] = None

    def __new__(cls) -> "AccountTypeRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._all = []
            cls._instance._connectors = {}
            cls._instance._discovered = False
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        if cls._instance is not None:
            cls._instance.close()
        cls._instance = None

    def close(self) -> None:
        for connector in self._all:
            connector.close()

    def register(self, connector: AccountConnector) -> None:
        self._all.append(connector)
        if connector.is_configured():
            self._connectors[connector.code] = connector
            logger.info("Account type registered: %s (%s)", connector.name, connector.code)
        else:
            logger.warning(
                "Account type %s skipped — not configured (missing client_id/secret)",
                connector.code,
            )

    def discover(self) -> None:
        """Register all configured account types."""
        if self._discovered:
            return
        for connector in _all_account_types():
            self.register(connector)
        self._discovered = True

    def get(self, code: str) -> Optional[AccountConnector]:
        """Get a configured account type by code."""
        return self._connectors.get(code)

    def list_types(self) -> List[Dict[str, object]]:
        """Return info about all known account types."""
        return [
            {
                "code": c.code,
                "name": c.name,
                "url": c.url,
                "configured": c.is_configured(),
            }
            for c in self._all
        ]

    def list_configured(self) -> List[str]:
        return list(self._connectors.keys())
