"""Async client for the Breeze ChMS REST API."""

from .client import BreezeClient, Endpoints
from .config import Settings, get_settings
from .exceptions import (
    BreezeError,
    ConfigurationError,
    InvalidArgumentError,
    RequestError,
)
from .schemas import BreezeConfig, FundAllocation

__all__ = [
    "BreezeClient",
    "Endpoints",
    "Settings",
    "get_settings",
    "BreezeConfig",
    "FundAllocation",
    "BreezeError",
    "ConfigurationError",
    "InvalidArgumentError",
    "RequestError",
]
