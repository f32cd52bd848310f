"""
Configuration package for the storefront.

This package contains modules for managing application settings,
environment variables, and logging configuration.
"""

from storefront.config.settings import Settings

# Export settings instance for app-wide defaults
settings = Settings()

__all__ = ["settings", "Settings"]
