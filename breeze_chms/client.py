"""HTTP client for the Breeze ChMS API.

Every public method maps to a single GET against a fixed Breeze endpoint.
Arguments are validated before any request is built, and the decoded JSON
body is returned unchanged unless it carries an ``error`` or ``errorCode``.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Callable, Iterable, Sequence
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .config import Settings, get_settings
from .exceptions import ConfigurationError, InvalidArgumentError, RequestError
from .schemas import BreezeConfig, FundAllocation, dump_funds_json

logger = logging.getLogger("breeze_chms")

Params = list[tuple[str, str]]
RequestHook = Callable[[str], None]


class Endpoints:
    """Breeze API endpoint paths."""

    PEOPLE = "/api/people"
    PROFILE_FIELDS = "/api/profile"
    TAGS = "/api/tags/list_tags"
    TAG_FOLDERS = "/api/tags/list_folders"
    EVENTS = "/api/events"
    EVENT_DETAIL = "/api/events/list_event"
    ATTENDANCE_ADD = "/api/events/attendance/add"
    ATTENDANCE_DELETE = "/api/events/attendance/delete"
    ATTENDANCE_LIST = "/api/events/attendance/list"
    ATTENDANCE_ELIGIBLE = "/api/events/attendance/eligible"
    CONTRIBUTIONS_LIST = "/api/giving/list"
    CONTRIBUTIONS_ADD = "/api/giving/add"
    CONTRIBUTIONS_EDIT = "/api/giving/edit"
    CONTRIBUTIONS_DELETE = "/api/giving/delete"
    FUNDS = "/api/funds/list"
    CAMPAIGNS = "/api/pledges/list_campaigns"
    PLEDGES = "/api/pledges/list_pledges"


CHECK_IN_DIRECTIONS = ("in", "out")
ATTENDANCE_TYPES = ("person", "anonymous")
SCHEDULE_DIRECTIONS = ("before", "after")


def _require(value: Any, message: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(message)


def _choice(value: str, allowed: Sequence[str], name: str) -> str:
    if value not in allowed:
        raise InvalidArgumentError(
            f"{name} must be one of {', '.join(allowed)}; got {value!r}"
        )
    return value


def _format_date(value: str | date) -> str:
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return value


def _join_ids(values: Iterable[Any]) -> str:
    return "-".join(str(value) for value in values)


def _request_succeeded(payload: Any) -> bool:
    """Return False when a decoded body reports an API error."""
    if isinstance(payload, bool) or not isinstance(payload, dict):
        return True
    return not (payload.get("error") or payload.get("errorCode"))


class BreezeClient:
    """Thin wrapper around httpx for Breeze API calls.

    Args:
        base_url: Fully qualified domain for the organization's Breeze
            account, e.g. ``https://demo.breezechms.com``.
        api_key: Breeze API key, sent in the ``Api-Key`` header.
        dry_run: Skip all network I/O and return empty results.
        timeout_seconds: Default per-request timeout.
        on_request: Optional callable invoked with the full URL of every
            request, including dry-run requests.
        http_client: Optional ``httpx.AsyncClient`` to send requests with.
            A client created here is closed by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        dry_run: bool = False,
        *,
        timeout_seconds: float = 30,
        on_request: RequestHook | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        try:
            self._config = BreezeConfig(
                base_url=base_url,
                api_key=api_key,
                dry_run=dry_run,
                timeout_seconds=timeout_seconds,
            )
        except ValidationError as exc:
            messages = "; ".join(error["msg"] for error in exc.errors())
            raise ConfigurationError(messages) from exc

        self._on_request = on_request
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._config.timeout_seconds,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        **overrides: Any,
    ) -> "BreezeClient":
        """Build a client from ``BREEZE_*`` environment settings.

        Keyword overrides take precedence over the loaded settings.
        """
        settings = settings or get_settings()
        options: dict[str, Any] = {
            "base_url": settings.url or "",
            "api_key": settings.api_key or "",
            "dry_run": settings.dry_run,
            "timeout_seconds": settings.http_timeout_seconds,
        }
        options.update(overrides)
        return cls(**options)

    @property
    def config(self) -> BreezeConfig:
        """Return the validated connection settings."""
        return self._config

    @property
    def base_url(self) -> str:
        """Return the account base URL without a trailing slash."""
        return self._config.base_url

    @property
    def dry_run(self) -> bool:
        """Return True when requests are skipped."""
        return self._config.dry_run

    async def __aenter__(self) -> "BreezeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, endpoint: str, params: Params | None = None) -> str:
        """Return the absolute URL for an endpoint and ordered parameters."""
        url = httpx.URL(self._config.base_url + endpoint, params=params or None)
        return str(url)

    async def send_request(
        self,
        endpoint: str,
        params: Params | None = None,
        timeout_seconds: float | None = None,
    ) -> Any:
        """Issue a GET against ``endpoint`` and return the decoded JSON body.

        Raises:
            RequestError: on transport failure, a non-2xx status, a body
                that is not JSON, or a body carrying ``error``/``errorCode``.
            InvalidArgumentError: when ``timeout_seconds`` is not positive.
        """
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise InvalidArgumentError("timeout_seconds must be positive")

        url = self.build_url(endpoint, params)
        logger.debug("Making request to %s", url)
        if self._on_request is not None:
            self._on_request(url)

        if self._config.dry_run:
            logger.info("Dry run enabled; skipping request to %s", endpoint)
            return {}

        headers = {
            "Content-Type": "application/json",
            "Api-Key": self._config.api_key,
        }
        timeout = self._config.timeout_seconds if timeout_seconds is None else timeout_seconds
        try:
            response = await self._client.get(url, headers=headers, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise RequestError(f"Request to {url} timed out after {timeout}s", url=url) from exc
        except httpx.HTTPError as exc:
            raise RequestError(f"Request to {url} failed: {exc}", url=url) from exc

        if response.is_error:
            logger.warning("Breeze returned HTTP %s for %s", response.status_code, endpoint)
            raise RequestError(
                f"Request to {url} failed with HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
                payload=response.text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise RequestError(
                f"Response from {url} is not valid JSON",
                url=url,
                status_code=response.status_code,
                payload=response.text,
            ) from exc

        if not _request_succeeded(payload):
            logger.warning("Breeze reported an error for %s: %s", endpoint, payload)
            raise RequestError(
                f"Breeze API error: {payload.get('error') or payload.get('errorCode')}",
                url=url,
                status_code=response.status_code,
                payload=payload,
            )
        return payload

    async def _send_for_payment_id(self, endpoint: str, params: Params) -> str | None:
        payload = await self.send_request(endpoint, params)
        if self._config.dry_run:
            return None
        if not isinstance(payload, dict) or "payment_id" not in payload:
            raise RequestError(
                f"Response from {endpoint} did not include a payment_id",
                url=self.build_url(endpoint, params),
                payload=payload,
            )
        return payload["payment_id"]

    # People

    async def get_people(
        self,
        limit: int | None = None,
        offset: int | None = None,
        details: bool = False,
        filter_json: dict[str, Any] | str | None = None,
    ) -> Any:
        """List people from the database.

        Args:
            limit: Number of people to return; all people when omitted.
            offset: Number of people to skip, for use with ``limit``.
            details: Return every profile field (slower) instead of names.
            filter_json: Profile field filter, as a dict or JSON string.
        """
        params: Params = []
        if limit is not None:
            if limit < 0:
                raise InvalidArgumentError("limit must be non-negative")
            params.append(("limit", str(limit)))
        if offset is not None:
            if offset < 0:
                raise InvalidArgumentError("offset must be non-negative")
            params.append(("offset", str(offset)))
        if details:
            params.append(("details", "1"))
        if filter_json is not None:
            if not isinstance(filter_json, str):
                filter_json = json.dumps(filter_json)
            params.append(("filter_json", filter_json))
        return await self.send_request(Endpoints.PEOPLE, params)

    async def get_person_details(self, person_id: str, details: bool = True) -> Any:
        """Retrieve one person by their Breeze ID."""
        _require(person_id, "Retrieving a person requires a person_id.")
        params: Params = [("details", "1")] if details else []
        escaped_id = quote(str(person_id), safe="")
        if escaped_id in (".", ".."):
            raise InvalidArgumentError(f"Invalid person_id: {person_id!r}")
        path = f"{Endpoints.PEOPLE}/{escaped_id}"
        return await self.send_request(path, params)

    async def get_profile_fields(self) -> Any:
        """List profile fields."""
        return await self.send_request(Endpoints.PROFILE_FIELDS)

    # Tags

    async def get_tags(self, folder_id: str | None = None) -> Any:
        """List tags, optionally only those within one folder."""
        params: Params = []
        if folder_id is not None:
            params.append(("folder_id", str(folder_id)))
        return await self.send_request(Endpoints.TAGS, params)

    async def get_tag_folders(self) -> Any:
        """List tag folders."""
        return await self.send_request(Endpoints.TAG_FOLDERS)

    # Events

    async def get_events(
        self,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        category_id: str | None = None,
        eligible: bool = False,
        details: bool = False,
        limit: int | None = None,
    ) -> Any:
        """Retrieve events in a date range.

        Breeze defaults the range to the current month when dates are
        omitted.
        """
        params: Params = []
        if start_date is not None:
            params.append(("start", _format_date(start_date)))
        if end_date is not None:
            params.append(("end", _format_date(end_date)))
        if category_id is not None:
            params.append(("category_id", str(category_id)))
        if eligible:
            params.append(("eligible", "1"))
        if details:
            params.append(("details", "1"))
        if limit is not None:
            if limit < 0:
                raise InvalidArgumentError("limit must be non-negative")
            params.append(("limit", str(limit)))
        return await self.send_request(Endpoints.EVENTS, params)

    async def get_event(
        self,
        instance_id: str,
        schedule: bool = False,
        schedule_direction: str | None = None,
        schedule_limit: int | None = None,
        eligible: bool = False,
        details: bool = False,
    ) -> Any:
        """Retrieve a single event instance.

        Args:
            instance_id: Event instance to fetch.
            schedule: Include other instances of the event's schedule.
            schedule_direction: ``before`` or ``after`` the instance.
            schedule_limit: Number of schedule instances to return.
            eligible: Include eligible people.
            details: Include event details.
        """
        _require(instance_id, "Retrieving an event requires an instance_id.")
        if (schedule_direction is not None or schedule_limit is not None) and not schedule:
            raise InvalidArgumentError("schedule_direction and schedule_limit require schedule=True.")

        params: Params = [("instance_id", str(instance_id))]
        if schedule:
            params.append(("schedule", "1"))
        if schedule_direction is not None:
            params.append(
                ("schedule_direction", _choice(schedule_direction, SCHEDULE_DIRECTIONS, "schedule_direction"))
            )
        if schedule_limit is not None:
            params.append(("schedule_limit", str(schedule_limit)))
        if eligible:
            params.append(("eligible", "1"))
        if details:
            params.append(("details", "1"))
        return await self.send_request(Endpoints.EVENT_DETAIL, params)

    async def event_check_in(
        self,
        person_id: str,
        event_instance_id: str,
        direction: str = "in",
    ) -> Any:
        """Check a person into an event instance."""
        _require(person_id, "Checking in requires a person_id.")
        _require(event_instance_id, "Checking in requires an event_instance_id.")
        params: Params = [
            ("person_id", str(person_id)),
            ("instance_id", str(event_instance_id)),
            ("direction", _choice(direction, CHECK_IN_DIRECTIONS, "direction")),
        ]
        return await self.send_request(Endpoints.ATTENDANCE_ADD, params)

    async def event_check_out(self, person_id: str, event_instance_id: str) -> Any:
        """Remove a person's attendance record for an event instance."""
        _require(person_id, "Checking out requires a person_id.")
        _require(event_instance_id, "Checking out requires an event_instance_id.")
        params: Params = [
            ("person_id", str(person_id)),
            ("instance_id", str(event_instance_id)),
        ]
        return await self.send_request(Endpoints.ATTENDANCE_DELETE, params)

    async def list_attendance(
        self,
        instance_id: str,
        details: bool = False,
        attendance_type: str | None = None,
    ) -> Any:
        """List attendance for an event instance.

        ``attendance_type`` limits results to ``person`` or ``anonymous``
        records.
        """
        _require(instance_id, "Listing attendance requires an instance_id.")
        params: Params = [("instance_id", str(instance_id))]
        if details:
            params.append(("details", "true"))
        if attendance_type is not None:
            params.append(("type", _choice(attendance_type, ATTENDANCE_TYPES, "attendance_type")))
        return await self.send_request(Endpoints.ATTENDANCE_LIST, params)

    async def list_eligible_people(self, instance_id: str) -> Any:
        """List people eligible to attend an event instance."""
        _require(instance_id, "Listing eligible people requires an instance_id.")
        return await self.send_request(
            Endpoints.ATTENDANCE_ELIGIBLE, [("instance_id", str(instance_id))]
        )

    # Giving

    async def list_contributions(
        self,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        person_id: str | None = None,
        include_family: bool = False,
        amount_min: str | None = None,
        amount_max: str | None = None,
        method_ids: Iterable[str] | None = None,
        fund_ids: Iterable[str] | None = None,
        envelope_number: str | None = None,
        batches: Iterable[str] | None = None,
        forms: Iterable[str] | None = None,
    ) -> Any:
        """Retrieve contributions matching the given filters.

        Args:
            start_date: Contributions given on or after this date.
            end_date: Contributions given on or before this date.
            person_id: Only this person's contributions.
            include_family: Include the family of ``person_id``.
            amount_min: Amounts greater than or equal to this.
            amount_max: Amounts less than or equal to this.
            method_ids: Payment method IDs.
            fund_ids: Fund IDs.
            envelope_number: Envelope number.
            batches: Batch numbers.
            forms: Form IDs.
        """
        if include_family and not person_id:
            raise InvalidArgumentError("include_family requires a person_id.")

        params: Params = []
        if start_date is not None:
            params.append(("start", _format_date(start_date)))
        if end_date is not None:
            params.append(("end", _format_date(end_date)))
        if person_id is not None:
            params.append(("person_id", str(person_id)))
        if include_family:
            params.append(("include_family", "1"))
        if amount_min is not None:
            params.append(("amount_min", str(amount_min)))
        if amount_max is not None:
            params.append(("amount_max", str(amount_max)))
        if method_ids is not None:
            params.append(("method_ids", _join_ids(method_ids)))
        if fund_ids is not None:
            params.append(("fund_ids", _join_ids(fund_ids)))
        if envelope_number is not None:
            params.append(("envelope_number", str(envelope_number)))
        if batches is not None:
            params.append(("batches", _join_ids(batches)))
        if forms is not None:
            params.append(("forms", _join_ids(forms)))
        return await self.send_request(Endpoints.CONTRIBUTIONS_LIST, params)

    async def add_contribution(
        self,
        date: str | None = None,
        name: str | None = None,
        person_id: str | None = None,
        uid: str | None = None,
        processor: str | None = None,
        method: str | None = None,
        funds_json: str | Iterable[FundAllocation | dict] | None = None,
        amount: str | None = None,
        group: str | None = None,
        batch_number: str | None = None,
        batch_name: str | None = None,
    ) -> str | None:
        """Add a contribution and return its payment ID.

        Args:
            date: Transaction date in DD-MM-YYYY format (e.g. 24-5-2015).
            name: Donor name, used to match the contribution to a profile.
            person_id: Breeze ID of the donor.
            uid: Giving platform ID of the donor, used when ``person_id``
                is unknown.
            processor: Payment processor name, used with ``uid``.
            method: Payment method, e.g. Check, Cash, Direct Deposit.
            funds_json: Fund split, as :class:`FundAllocation` items or a
                JSON string.
            amount: Total amount; must match the sum of ``funds_json``.
            group: Batch group; contributions sharing a new group go into
                a new batch.
            batch_number: Batch to import into.
            batch_name: Batch name.
        """
        if not person_id and not uid:
            raise InvalidArgumentError("Adding a contribution requires a person_id or uid.")

        params: Params = []
        if date is not None:
            params.append(("date", date))
        if name is not None:
            params.append(("name", name))
        if person_id:
            params.append(("person_id", str(person_id)))
        else:
            params.append(("uid", str(uid)))
        params.extend(
            _contribution_details(
                processor, method, funds_json, amount, group, batch_number, batch_name
            )
        )
        return await self._send_for_payment_id(Endpoints.CONTRIBUTIONS_ADD, params)

    async def edit_contribution(
        self,
        payment_id: str,
        date: str | None = None,
        name: str | None = None,
        person_id: str | None = None,
        uid: str | None = None,
        processor: str | None = None,
        method: str | None = None,
        funds_json: str | Iterable[FundAllocation | dict] | None = None,
        amount: str | None = None,
        group: str | None = None,
        batch_number: str | None = None,
        batch_name: str | None = None,
    ) -> str | None:
        """Edit an existing contribution and return its payment ID.

        Arguments other than ``payment_id`` match :meth:`add_contribution`.
        """
        _require(payment_id, "Editing a contribution requires a payment_id.")

        params: Params = [("payment_id", str(payment_id))]
        if date is not None:
            params.append(("date", date))
        if name is not None:
            params.append(("name", name))
        if person_id is not None:
            params.append(("person_id", str(person_id)))
        if uid is not None:
            params.append(("uid", str(uid)))
        params.extend(
            _contribution_details(
                processor, method, funds_json, amount, group, batch_number, batch_name
            )
        )
        return await self._send_for_payment_id(Endpoints.CONTRIBUTIONS_EDIT, params)

    async def delete_contribution(self, payment_id: str) -> str | None:
        """Delete a contribution and return its payment ID."""
        _require(payment_id, "Deleting a contribution requires a payment_id.")
        return await self._send_for_payment_id(
            Endpoints.CONTRIBUTIONS_DELETE, [("payment_id", str(payment_id))]
        )

    async def list_funds(self, include_totals: bool = False) -> Any:
        """List all funds, optionally with the amount given to each."""
        params: Params = [("include_totals", "1")] if include_totals else []
        return await self.send_request(Endpoints.FUNDS, params)

    # Pledges

    async def list_campaigns(self) -> Any:
        """List pledge campaigns."""
        return await self.send_request(Endpoints.CAMPAIGNS)

    async def list_pledges(self, campaign_id: str) -> Any:
        """List pledges within a campaign."""
        _require(campaign_id, "Listing pledges within a campaign requires a campaign_id.")
        return await self.send_request(Endpoints.PLEDGES, [("campaign_id", str(campaign_id))])


def _contribution_details(
    processor: str | None,
    method: str | None,
    funds_json: str | Iterable[FundAllocation | dict] | None,
    amount: str | None,
    group: str | None,
    batch_number: str | None,
    batch_name: str | None,
) -> Params:
    """Ordered parameters shared by contribution add and edit."""
    params: Params = []
    if processor is not None:
        params.append(("processor", processor))
    if method is not None:
        params.append(("method", method))
    if funds_json is not None:
        params.append(("funds_json", dump_funds_json(funds_json)))
    if amount is not None:
        params.append(("amount", str(amount)))
    if group is not None:
        params.append(("group", str(group)))
    if batch_number is not None:
        params.append(("batch_number", str(batch_number)))
    if batch_name is not None:
        params.append(("batch_name", batch_name))
    return params
