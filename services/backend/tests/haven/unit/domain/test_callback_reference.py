"""Tests for the callback reference echoed back by the aggregator."""

from datetime import datetime, timezone
from uuid import UUID

import pytest

from haven.domain.banking.value_objects import CallbackReference

TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")


class TestCallbackReference:
    def test_format(self):
        at = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

        reference = CallbackReference.create(TEST_USER_ID, at)

        assert str(reference) == f"user-{TEST_USER_ID}-{int(at.timestamp() * 1000)}"

    def test_parse_own_format(self):
        reference = CallbackReference.parse(f"user-{TEST_USER_ID}-1760875200000")

        assert reference is not None
        assert reference.user_id == TEST_USER_ID
        assert reference.timestamp_ms == 1760875200000

    def test_created_reference_parses_back(self):
        reference = CallbackReference.create(TEST_USER_ID)

        assert CallbackReference.parse(str(reference)) == reference

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "8126e9fb-93c9-4228-937c-68f0383c2df7",
            "user-not-a-uuid-123",
            f"user-{TEST_USER_ID}",
            f"user-{TEST_USER_ID}-abc",
            f"account-{TEST_USER_ID}-1760875200000",
        ],
    )
    def test_parse_rejects_other_values(self, value):
        assert CallbackReference.parse(value) is None
