"""
AuthorizationSession — the CSRF state of one interactive authorization.

Wraps whatever session mapping the caller has (a web framework session,
a signed cookie payload, a plain dict in tests) so connectors never touch
ambient global state.
"""

from __future__ import annotations

import hmac
from typing import Any, MutableMapping, Optional


class AuthorizationSession:
    """Holds at most one pending OAuth ``state`` token per provider."""

    def __init__(self, store: Optional[MutableMapping[str, Any]] = None, *, provider: str = "oauth2") -> None:
        self.store: MutableMapping[str, Any] = store if store is not None else {}
        self.key = f"{provider}_oauth2state"

    @property
    def state(self) -> Optional[str]:
        return self.store.get(self.key)

    def begin(self, state: str) -> None:
        if not state:
            raise ValueError("state token must be non-empty")
        self.store[self.key] = state

    def clear(self) -> None:
        self.store.pop(self.key, None)

    def consume(self, returned_state: Optional[str]) -> bool:
        """
        Invalidate the stored state and report whether ``returned_state`` matched it.

        The stored value is cleared whatever the outcome: a state token is good
        for exactly one callback.
        """
        expected = self.state
        self.clear()
        if not expected or not returned_state:
            return False
        return hmac.compare_digest(str(returned_state).encode(), str(expected).encode())
