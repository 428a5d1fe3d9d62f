"""
connectors — wallet account types for the aggregation framework.

Provides a small connector framework that handles:
  • OAuth2 auth-URL generation with a single-use CSRF state
  • Callback handling (code → token exchange)
  • Unconditional token refresh before every balance fetch
  • Handing refreshed credentials back to the host through a sink

Each provider (Coinbase, …) is a subclass of AccountConnector.
"""
