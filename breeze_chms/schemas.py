"""Pydantic schemas for client configuration and request payloads."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

BREEZE_URL_SCHEME = "https://"
BREEZE_DOMAIN_SUFFIX = ".breezechms.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


class BreezeConfig(BaseModel):
    """Immutable connection settings for one Breeze account."""

    base_url: str
    api_key: str
    dry_run: bool = False
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("base_url", mode="before")
    @classmethod
    def _validate_base_url(cls, value: Any) -> str:
        url = str(value or "").strip()
        if url.endswith("/"):
            url = url[:-1]
        subdomain = url[len(BREEZE_URL_SCHEME):-len(BREEZE_DOMAIN_SUFFIX)]
        if (
            not url.startswith(BREEZE_URL_SCHEME)
            or not url.endswith(BREEZE_DOMAIN_SUFFIX)
            or not subdomain
        ):
            raise ValueError(
                f"You must provide your breeze_url as https://subdomain{BREEZE_DOMAIN_SUFFIX}: {url!r}"
            )
        return url

    @field_validator("api_key", mode="before")
    @classmethod
    def _validate_api_key(cls, value: Any) -> str:
        key = str(value or "").strip()
        if not key:
            raise ValueError("You must provide an API key.")
        return key


class FundAllocation(BaseModel):
    """One fund line of a split contribution.

    When ``id`` is present it must match an existing fund and takes
    precedence over ``name`` on the Breeze side.
    """

    id: Optional[str] = None
    name: str
    amount: Decimal


_funds_adapter = TypeAdapter(list[FundAllocation])


def dump_funds_json(funds: Union[str, Iterable[Union[FundAllocation, dict]]]) -> str:
    """Serialize fund allocations into the ``funds_json`` query value."""
    if isinstance(funds, str):
        return funds
    allocations = _funds_adapter.validate_python(list(funds))
    return _funds_adapter.dump_json(allocations, exclude_none=True).decode("utf-8")
