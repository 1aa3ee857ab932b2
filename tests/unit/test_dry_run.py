"""Dry-run mode must never reach the network."""

from __future__ import annotations

import pytest

from breeze_chms.exceptions import InvalidArgumentError

CALLS = [
    ("get_people", {"limit": 10, "offset": 5, "details": True}, {}),
    ("get_person_details", {"person_id": "1"}, {}),
    ("get_profile_fields", {}, {}),
    ("get_tags", {"folder_id": "2"}, {}),
    ("get_tag_folders", {}, {}),
    ("get_events", {"start_date": "2024-1-1"}, {}),
    ("get_event", {"instance_id": "3"}, {}),
    ("event_check_in", {"person_id": "1", "event_instance_id": "3"}, {}),
    ("event_check_out", {"person_id": "1", "event_instance_id": "3"}, {}),
    ("list_attendance", {"instance_id": "3"}, {}),
    ("list_eligible_people", {"instance_id": "3"}, {}),
    ("list_contributions", {"person_id": "1"}, {}),
    ("add_contribution", {"person_id": "1", "amount": "5"}, None),
    ("edit_contribution", {"payment_id": "9", "amount": "6"}, None),
    ("delete_contribution", {"payment_id": "9"}, None),
    ("list_funds", {"include_totals": True}, {}),
    ("list_campaigns", {}, {}),
    ("list_pledges", {"campaign_id": "4"}, {}),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("method, kwargs, expected", CALLS, ids=[call[0] for call in CALLS])
async def test_dry_run_skips_network(dry_client, api, method, kwargs, expected):
    result = await getattr(dry_client, method)(**kwargs)

    assert result == expected
    assert api.requests == []


@pytest.mark.asyncio
async def test_dry_run_still_validates_arguments(dry_client, api):
    with pytest.raises(InvalidArgumentError):
        await dry_client.event_check_in("1", "")
    assert api.requests == []
