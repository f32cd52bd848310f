# tests/test_settings.py
from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront.config.settings import PricingSettings, Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DEBUG_MODE", "LOG_LEVEL", "STOREFRONT_API_URL", "STOREFRONT_TAX_RATE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings()

    assert settings.pricing.free_shipping_threshold == Decimal("3000")
    assert settings.pricing.tax_rate == Decimal("0.08")
    assert settings.storage.cart_key == "guestCart"
    assert settings.log_level == "INFO"


def test_log_level_comes_from_environment(clean_env):
    clean_env.setenv("LOG_LEVEL", "error")

    assert Settings().log_level == "ERROR"


def test_debug_mode_forces_debug_logging(clean_env):
    clean_env.setenv("LOG_LEVEL", "WARNING")
    clean_env.setenv("DEBUG_MODE", "true")

    settings = Settings()

    assert settings.debug_mode
    assert settings.log_level == "DEBUG"


def test_environment_overrides_pricing_and_api(clean_env):
    clean_env.setenv("STOREFRONT_TAX_RATE", "0.15")
    clean_env.setenv("STOREFRONT_API_URL", "https://shop.example/")

    settings = Settings()

    assert settings.pricing.tax_rate == Decimal("0.15")
    assert settings.api.base_url == "https://shop.example"


def test_invalid_values_are_rejected(clean_env):
    with pytest.raises(ValidationError):
        PricingSettings(express_surcharge=Decimal("-1"))
    clean_env.setenv("LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        Settings()
