"""Configuration module for the billing ledger."""

from billing_ledger.config.logging import configure_logging, get_logger
from billing_ledger.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "configure_logging", "get_logger"]
