"""Exceptions raised by the Breeze client."""

from __future__ import annotations

from typing import Any


class BreezeError(Exception):
    """Base exception for Breeze client errors"""


class ConfigurationError(BreezeError):
    """Raised when the client is constructed with an invalid configuration"""


class RequestError(BreezeError):
    """Raised when a request fails or the API reports an error"""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.payload = payload


class InvalidArgumentError(BreezeError, ValueError):
    """Raised when a method is called with missing or invalid arguments"""
