"""
Application settings and configuration.

This module provides a centralized configuration management system using Pydantic.
It loads settings from environment variables, .env files, or falls back to defaults.
"""

import os
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()

# Base directories
ROOT_DIR = Path(__file__).parent.parent.parent
LOG_DIR = ROOT_DIR / "logs"
DATA_DIR = ROOT_DIR / "data"


class PricingSettings(BaseModel):
    """Shipping and tax constants used by the pricing engine."""

    free_shipping_threshold: Decimal = Field(
        default=Decimal("3000"),
        description="Subtotal at or above which the standard base rate is waived"
    )

    local_zone_marker: str = Field(
        default="dhaka",
        description="Lowercase token identifying local-zone destination cities"
    )

    local_zone_base_rate: Decimal = Field(
        default=Decimal("80"),
        description="Base shipping rate inside the local zone"
    )

    remote_zone_base_rate: Decimal = Field(
        default=Decimal("120"),
        description="Base shipping rate outside the local zone"
    )

    express_surcharge: Decimal = Field(
        default=Decimal("50"),
        description="Fixed surcharge for express shipping"
    )

    priority_surcharge: Decimal = Field(
        default=Decimal("100"),
        description="Fixed surcharge for priority shipping"
    )

    tax_rate: Decimal = Field(
        default=Decimal("0.08"),
        description="Flat tax rate applied to the subtotal"
    )

    currency_symbol: str = Field(
        default="৳",
        description="Symbol used when formatting amounts"
    )

    @field_validator(
        "free_shipping_threshold",
        "local_zone_base_rate",
        "remote_zone_base_rate",
        "express_surcharge",
        "priority_surcharge",
        "tax_rate",
    )
    @classmethod
    def must_not_be_negative(cls, v):
        """Validate that rates and thresholds are non-negative."""
        if v < 0:
            raise ValueError("Pricing constants must not be negative")
        return v

    @field_validator("local_zone_marker")
    @classmethod
    def normalize_marker(cls, v):
        """Store the marker lowercased so matching is case-insensitive."""
        v = v.strip().lower()
        if not v:
            raise ValueError("Local zone marker must not be empty")
        return v


class ApiSettings(BaseModel):
    """Remote cart/wishlist API configuration settings."""

    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the storefront API"
    )

    timeout: float = Field(
        default=10.0,
        description="Request timeout in seconds"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Normalize the base URL so paths can be appended."""
        if not v:
            logging.warning("Storefront API base URL is not set. Please set STOREFRONT_API_URL.")
        return v.rstrip("/")


class StorageSettings(BaseModel):
    """Local (guest) persistence settings."""

    path: Path = Field(
        default=DATA_DIR / "guest_storage.json",
        description="JSON file backing the guest key-value store"
    )

    cart_key: str = Field(default="guestCart", description="Storage key of the guest cart")

    wishlist_key: str = Field(default="guestWishlist", description="Storage key of the guest wishlist")


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )

    file_enabled: bool = Field(
        default=False,
        description="Whether to write logs to a file"
    )

    console_enabled: bool = Field(
        default=True,
        description="Whether to write logs to console"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate that log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class Settings(BaseModel):
    """Main application settings."""

    # Sub-configurations
    pricing: PricingSettings = Field(default_factory=lambda: PricingSettings(
        free_shipping_threshold=Decimal(os.environ.get("STOREFRONT_FREE_SHIPPING_THRESHOLD", "3000")),
        local_zone_marker=os.environ.get("STOREFRONT_LOCAL_ZONE_MARKER", "dhaka"),
        local_zone_base_rate=Decimal(os.environ.get("STOREFRONT_LOCAL_ZONE_RATE", "80")),
        remote_zone_base_rate=Decimal(os.environ.get("STOREFRONT_REMOTE_ZONE_RATE", "120")),
        express_surcharge=Decimal(os.environ.get("STOREFRONT_EXPRESS_SURCHARGE", "50")),
        priority_surcharge=Decimal(os.environ.get("STOREFRONT_PRIORITY_SURCHARGE", "100")),
        tax_rate=Decimal(os.environ.get("STOREFRONT_TAX_RATE", "0.08")),
    ))

    api: ApiSettings = Field(default_factory=lambda: ApiSettings(
        base_url=os.environ.get("STOREFRONT_API_URL", "http://localhost:3000"),
        timeout=float(os.environ.get("STOREFRONT_API_TIMEOUT", "10")),
    ))

    storage: StorageSettings = Field(default_factory=lambda: StorageSettings(
        path=Path(os.environ.get("STOREFRONT_STORAGE_PATH", str(DATA_DIR / "guest_storage.json"))),
    ))

    logging: LoggingSettings = Field(default_factory=lambda: LoggingSettings(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format=os.environ.get("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        file_enabled=_parse_bool(os.environ.get("LOG_FILE_ENABLED", "False")),
        console_enabled=_parse_bool(os.environ.get("LOG_CONSOLE_ENABLED", "True"))
    ))

    # Paths
    logs_dir: Path = LOG_DIR
    data_dir: Path = DATA_DIR

    # Runtime configs
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    def __init__(self, **data: Any):
        """Initialize settings, allowing a debug mode override from the environment."""
        super().__init__(**data)
        self.debug_mode = _parse_bool(os.environ.get("DEBUG_MODE", str(self.debug_mode)))

    @property
    def log_level(self) -> str:
        """Effective log level; debug mode forces DEBUG."""
        return "DEBUG" if self.debug_mode else self.logging.level

    def ensure_directories(self) -> None:
        """Create the log and data directories on demand."""
        for directory in [self.logs_dir, self.data_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            if not os.access(directory, os.W_OK):
                logging.warning(f"Directory {directory} is not writable")


def _parse_bool(value: str) -> bool:
    """Parse string to boolean."""
    return value.lower() in ("true", "1", "t", "yes", "y")
