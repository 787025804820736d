"""Tests for kolour inventory queries."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from kolours.database.inventory import (
    MINTED_KOLOURS_QUERY,
    UNAVAILABLE_KOLOURS_QUERY,
    MintedKolourEntry,
    are_kolours_available,
    get_all_minted_kolours,
    get_unavailable_kolours,
)


@pytest.fixture
def mock_session():
    """Mock async database session."""
    return AsyncMock()


def rows(*values: dict) -> list[SimpleNamespace]:
    return [SimpleNamespace(**value) for value in values]


class TestGetUnavailableKolours:
    """Test cases for get_unavailable_kolours."""

    async def test_should_return_booked_subset(self, mock_session):
        """Kolours found in the book are unavailable."""
        mock_session.execute.return_value = rows({"kolour": "1A2B3C"})

        result = await get_unavailable_kolours(mock_session, ["1A2B3C", "FF00AA"])

        assert result == {"1A2B3C"}
        query, params = mock_session.execute.call_args.args
        assert query is UNAVAILABLE_KOLOURS_QUERY
        assert params == {"kolours": ["1A2B3C", "FF00AA"]}

    async def test_should_skip_query_for_empty_input(self, mock_session):
        """Nothing to check means nothing is taken."""
        assert await get_unavailable_kolours(mock_session, []) == set()
        mock_session.execute.assert_not_called()

    def test_query_should_exclude_expired_bookings(self):
        """Expired bookings release their kolour."""
        assert "status <> 'expired'" in str(UNAVAILABLE_KOLOURS_QUERY)


class TestAreKoloursAvailable:
    """Test cases for are_kolours_available."""

    async def test_should_be_true_when_none_taken(self, mock_session):
        mock_session.execute.return_value = rows()
        assert await are_kolours_available(mock_session, ["1A2B3C"]) is True

    async def test_should_be_false_when_any_taken(self, mock_session):
        mock_session.execute.return_value = rows({"kolour": "FF00AA"})
        assert await are_kolours_available(mock_session, ["1A2B3C", "FF00AA"]) is False


class TestGetAllMintedKolours:
    """Test cases for get_all_minted_kolours."""

    async def test_should_map_rows_to_entries(self, mock_session):
        """Rows become entries in query order."""
        mock_session.execute.return_value = rows(
            {
                "kolour": "1A2B3C",
                "user_address": "addr_test1",
                "fee": 2_000_000,
                "expected_earning": 150_000,
            },
            {
                "kolour": "FF00AA",
                "user_address": "addr_test2",
                "fee": 1_000_000,
                "expected_earning": None,
            },
        )

        result = await get_all_minted_kolours(mock_session)

        assert result == [
            MintedKolourEntry("1A2B3C", "addr_test1", 2_000_000, 150_000),
            MintedKolourEntry("FF00AA", "addr_test2", 1_000_000, None),
        ]
        mock_session.execute.assert_awaited_once_with(MINTED_KOLOURS_QUERY)

    async def test_should_return_empty_list(self, mock_session):
        mock_session.execute.return_value = rows()
        assert await get_all_minted_kolours(mock_session) == []
