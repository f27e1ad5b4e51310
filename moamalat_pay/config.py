"""
Moamalat Pay Configuration Module

Loads environment variables for gateway endpoints and transport negotiation.

Gateway Contract Notes:
- Endpoints are data, never hard-coded at call sites, so they can be rotated
- The merchant secret is NOT configuration; it is supplied per transaction
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    """
    Library settings loaded from environment variables (prefix MOAMALAT_).

    Notes:
    - isTestEnvironment on a request selects between the two gateway endpoints
    - The availability probe for the native SDK is bounded by probe_timeout_seconds
    """

    # Gateway endpoints (lightbox script served by the hosted checkout)
    test_gateway_url: str = "https://tnpg.moamalat.net:6006/js/lightbox.js"
    production_gateway_url: str = "https://npg.moamalat.net:6006/js/lightbox.js"

    # Transport negotiation
    probe_timeout_seconds: float = 3.0

    # Transaction defaults
    default_currency_code: str = "434"  # LYD
    provider_scheme_name: str = "Moamalat"

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="MOAMALAT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


def gateway_endpoint(is_test_environment: bool, config: "Settings" = None) -> str:
    """Return the lightbox endpoint for the requested environment."""
    config = config or settings
    if is_test_environment:
        return config.test_gateway_url
    return config.production_gateway_url


# Global settings instance
settings = Settings()
