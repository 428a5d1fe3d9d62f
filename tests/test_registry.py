"""
Tests for the account type registry.
"""

from unittest.mock import MagicMock

from config.settings import Settings
from connectors.coinbase import CoinbaseConnector
from connectors.registry import AccountTypeRegistry


class TestAccountTypeRegistry:
    def setup_method(self):
        AccountTypeRegistry.reset()

    def teardown_method(self):
        AccountTypeRegistry.reset()

    def test_singleton(self):
        assert AccountTypeRegistry() is AccountTypeRegistry()

    def test_configured_type_is_available(self, settings):
        registry = AccountTypeRegistry()
        registry.register(CoinbaseConnector(settings))

        assert registry.get("coinbase") is not None
        assert registry.list_configured() == ["coinbase"]

    def test_unconfigured_type_is_listed_but_not_available(self):
        registry = AccountTypeRegistry()
        registry.register(CoinbaseConnector(Settings(coinbase_client_id="", coinbase_client_secret="")))

        assert registry.get("coinbase") is None
        assert registry.list_types()[0]["configured"] is False

    def test_discover_runs_once(self):
        registry = AccountTypeRegistry()
        registry.discover()
        registry.discover()
        assert len(registry.list_types()) == 1

    def test_reset_closes_connectors(self):
        connector = MagicMock()
        connector.code = "mock"
        registry = AccountTypeRegistry()
        registry.register(connector)

        AccountTypeRegistry.reset()
        connector.close.assert_called_once()
