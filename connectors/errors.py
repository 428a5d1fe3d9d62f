"""
Error taxonomy for account connectors.

The host framework only needs to catch ``AccountError``; the subclasses
tell it whether the failure is the user's (CSRF), the provider's (auth,
fetch) or an integration mistake (configuration).
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for every error raised by a connector."""


class CSRFError(AccountError):
    """The OAuth ``state`` returned by the provider did not match the session."""


class AuthError(AccountError):
    """The provider rejected a token exchange or refresh, or answered garbage."""


class ConfigurationError(AccountError):
    """The connector was called without something it needs (e.g. a credential sink)."""


class FetchError(AccountError):
    """Any downstream failure while retrieving account data."""
