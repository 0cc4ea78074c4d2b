"""Tests for configuration settings."""

from decimal import Decimal


def test_settings_loads_from_env():
    """Test that settings loads from environment variables."""
    from billing_ledger.config.settings import get_settings

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.billing_api_token is not None
    assert settings.billing_api_token.get_secret_value() == "test-token"
    assert settings.billing_email == "owner@example.com"
    assert settings.billing_password is not None
    assert settings.billing_password.get_secret_value() == "testpassword"


def test_settings_has_defaults():
    """Test that settings has sensible defaults."""
    from billing_ledger.config.settings import get_settings

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.billing_api_url == "http://localhost:5000"
    assert settings.billing_timeout == 30.0
    assert settings.billing_max_retries == 2
    assert settings.tax_enabled is False
    assert settings.tax_rate == Decimal("10")
    assert settings.log_format == "console"


def test_settings_are_cached():
    """Test that get_settings returns cached instance."""
    from billing_ledger.config.settings import get_settings

    get_settings.cache_clear()

    assert get_settings() is get_settings()


def test_tax_env_overrides(monkeypatch):
    from billing_ledger.config.settings import get_settings
    from billing_ledger.totals import TaxConfig

    monkeypatch.setenv("TAX_ENABLED", "true")
    monkeypatch.setenv("TAX_RATE", "12.5")
    get_settings.cache_clear()
    try:
        config = TaxConfig.from_settings(get_settings())
    finally:
        get_settings.cache_clear()

    assert config.enabled is True
    assert config.rate_percent == Decimal("12.5")
