"""
AccountConnector — abstract interface for all wallet account types.

Every provider (Coinbase, …) subclasses this and implements identity,
the credential field schema, interactive setup and balance fetching.
The host framework owns credential storage; connectors only propose
updates through a :class:`CredentialSink`.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Union, runtime_checkable

from connectors.errors import ConfigurationError, FetchError
from connectors.schemas import Balance, Credential, FieldSpec, InteractionRequest, InteractionResult
from connectors.session import AuthorizationSession


@runtime_checkable
class CredentialSink(Protocol):
    """Where refreshed credential fields go to be persisted by the host."""

    def update(self, fields: Dict[str, str]) -> None:
        ...


class CallbackSink:
    """Adapts a plain ``callback(fields)`` into a :class:`CredentialSink`."""

    def __init__(self, callback: Callable[[Dict[str, str]], Any]) -> None:
        self.callback = callback

    def update(self, fields: Dict[str, str]) -> None:
        self.callback(fields)


SinkLike = Union[CredentialSink, Callable[[Dict[str, str]], Any]]


def as_sink(sink: Optional[SinkLike]) -> Optional[CredentialSink]:
    if sink is None or isinstance(sink, CredentialSink):
        return sink
    if callable(sink):
        return CallbackSink(sink)
    raise ConfigurationError(f"Not a credential sink: {sink!r}")


class AccountConnector(ABC):
    """Abstract base for all account types."""

    _update_sink: Optional[CredentialSink] = None

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable: 'Coinbase'."""
        ...

    @property
    @abstractmethod
    def code(self) -> str:
        """Unique slug: 'coinbase'."""
        ...

    @property
    def url(self) -> str:
        return ""

    # ── Fields ──────────────────────────────────────────────────────────

    @abstractmethod
    def get_fields(self) -> Dict[str, FieldSpec]:
        """Schema of the credential fields the host stores for this account type."""
        ...

    def validate_fields(self, fields: Mapping[str, Any]) -> List[str]:
        """Return the names of fields that are missing or fail their regexp."""
        invalid = []
        for key, spec in self.get_fields().items():
            if spec.regexp is None:
                continue
            value = fields.get(key)
            if not isinstance(value, str) or not re.search(spec.regexp, value):
                invalid.append(key)
        return invalid

    # ── Interaction & fetching ──────────────────────────────────────────

    @abstractmethod
    def interaction(
        self,
        request: InteractionRequest,
        session: AuthorizationSession,
        log: Optional[logging.Logger] = None,
    ) -> InteractionResult:
        """
        Drive the user through interactive setup.

        Returns a pending result (with a redirect) until the interaction
        is complete, then a result carrying the finalized field values.
        """
        ...

    @abstractmethod
    def fetch_balances(
        self,
        credential: Union[Credential, Mapping[str, Any]],
        sink: Optional[SinkLike] = None,
        *,
        log: Optional[logging.Logger] = None,
    ) -> Balance:
        """Return all account balances.  Raises ``FetchError``."""
        ...

    def fetch_supported_currencies(self, factory: Any = None, log: Optional[logging.Logger] = None) -> List[str]:
        raise FetchError(f"{self.name}: supported currency discovery is not implemented")

    # ── Credential updates ──────────────────────────────────────────────

    def register_account_update_callback(self, callback: Optional[SinkLike]) -> None:
        """Register (or clear, with None) the fallback sink used by ``fetch_balances``."""
        self._update_sink = as_sink(callback)

    def _resolve_sink(self, sink: Optional[SinkLike]) -> CredentialSink:
        resolved = as_sink(sink) or self._update_sink
        if resolved is None:
            raise ConfigurationError(
                f"{self.name} needs a credential sink (pass one to fetch_balances "
                "or call register_account_update_callback)"
            )
        return resolved

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """
        Return True if this connector has all required config
        (client IDs, secrets, etc.).
        """
        return True

    def close(self) -> None:
        """Release any HTTP resources the connector created."""

    def disconnect(self, credential: Union[Credential, Mapping[str, Any]]) -> bool:
        """
        Revoke the account's tokens at the provider (optional).
        Returns True on success, False if the provider doesn't support revocation.
        """
        return False
