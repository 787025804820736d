"""Kolour API endpoint tests."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI, status
from httpx import AsyncClient

from kolours.image_cid.exceptions import (
    CacheReadFailure,
    GenerationFailure,
    LockTimeout,
    UploadFailure,
)
from kolours.database.inventory import UNAVAILABLE_KOLOURS_QUERY

IMAGE_URL = "/api/v1/kolours/{}/image"


@pytest.fixture
def failing_service(test_app: FastAPI) -> MagicMock:
    """Replace the image service with a mock for failure paths."""
    service = MagicMock()
    test_app.state.image_cid_service = service
    return service


class TestGetKolourImage:
    """Test cases for GET /kolours/{kolour}/image."""

    async def test_should_return_cid_and_links(
        self, test_app_async_client: AsyncClient, content_store
    ) -> None:
        """First request generates and publishes the image."""
        response = await test_app_async_client.get(IMAGE_URL.format("1a2b3c"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "kolour": "1A2B3C",
            "cid": "bafy000example",
            "image_url": "https://ipfs.io/ipfs/bafy000example",
            "ipfs_uri": "ipfs://bafy000example",
        }
        assert len(content_store.uploads) == 1

    async def test_repeat_requests_should_upload_once(
        self, test_app_async_client: AsyncClient, content_store
    ) -> None:
        """Later requests are served from cache."""
        for _ in range(3):
            response = await test_app_async_client.get(IMAGE_URL.format("1A2B3C"))
            assert response.json()["cid"] == "bafy000example"

        assert len(content_store.uploads) == 1

    async def test_should_reject_invalid_kolour(
        self, test_app_async_client: AsyncClient, content_store
    ) -> None:
        """Malformed kolours are a client error."""
        response = await test_app_async_client.get(IMAGE_URL.format("12345G"))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        body = response.json()
        assert body["error"] == "InvalidKolourError"
        assert "12345G" in body["message"]
        assert content_store.uploads == []

    async def test_should_reject_trailing_newline(
        self, test_app_async_client: AsyncClient, content_store
    ) -> None:
        """An encoded newline after a valid kolour is not accepted."""
        response = await test_app_async_client.get(IMAGE_URL.format("1A2B3C%0A"))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "InvalidKolourError"
        assert content_store.uploads == []

    async def test_lock_timeout_should_ask_client_to_retry(
        self, test_app_async_client: AsyncClient, failing_service: MagicMock
    ) -> None:
        """A busy kolour is reported as temporarily unavailable."""
        failing_service.get_image_cid.side_effect = LockTimeout(
            "ko:kolour:img.lock:1A2B3C", 0.2
        )

        response = await test_app_async_client.get(IMAGE_URL.format("1A2B3C"))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.headers["Retry-After"] == "1"
        assert response.json()["error"] == "LockTimeout"

    @pytest.mark.parametrize(
        "error,expected_status",
        [
            (UploadFailure("IPFS add failed: down"), status.HTTP_502_BAD_GATEWAY),
            (CacheReadFailure("redis down"), status.HTTP_503_SERVICE_UNAVAILABLE),
            (GenerationFailure("encoder broke"), status.HTTP_500_INTERNAL_SERVER_ERROR),
        ],
    )
    async def test_should_map_workflow_errors(
        self,
        test_app_async_client: AsyncClient,
        failing_service: MagicMock,
        error: Exception,
        expected_status: int,
    ) -> None:
        """Workflow failures map to distinct statuses."""
        failing_service.get_image_cid.side_effect = error

        response = await test_app_async_client.get(IMAGE_URL.format("1A2B3C"))

        assert response.status_code == expected_status
        body = response.json()
        assert body["error"] == type(error).__name__
        assert body["status_code"] == expected_status
        assert "Retry-After" not in response.headers

    async def test_error_body_should_carry_correlation_id(
        self, test_app_async_client: AsyncClient, failing_service: MagicMock
    ) -> None:
        """Error responses echo the caller's request ID."""
        failing_service.get_image_cid.side_effect = UploadFailure("down")

        response = await test_app_async_client.get(
            IMAGE_URL.format("1A2B3C"), headers={"X-Request-ID": "test-abc"}
        )

        assert response.headers["X-Request-ID"] == "test-abc"
        assert response.json()["correlation_id"] == "test-abc"

    @pytest.mark.parametrize(
        "error", [RuntimeError("boom"), KeyError("kolour"), ValueError("bad")]
    )
    async def test_unexpected_error_should_return_500(
        self,
        test_app_async_client: AsyncClient,
        failing_service: MagicMock,
        error: Exception,
    ) -> None:
        """Unhandled exceptions still produce the shared error body."""
        failing_service.get_image_cid.side_effect = error

        response = await test_app_async_client.get(IMAGE_URL.format("1A2B3C"))

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"] == type(error).__name__


class TestCheckKoloursAvailability:
    """Test cases for POST /kolours/availability."""

    async def test_should_report_available(
        self, test_app_async_client: AsyncClient, mock_db_session
    ) -> None:
        """No bookings means every kolour is available."""
        mock_db_session.execute.return_value = []

        response = await test_app_async_client.post(
            "/api/v1/kolours/availability", json={"kolours": ["1a2b3c"]}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"available": True, "unavailable": []}

    async def test_should_normalize_and_dedupe(
        self, test_app_async_client: AsyncClient, mock_db_session
    ) -> None:
        """Kolours are normalized before querying."""
        mock_db_session.execute.return_value = [SimpleNamespace(kolour="FF00AA")]

        response = await test_app_async_client.post(
            "/api/v1/kolours/availability",
            json={"kolours": ["#ff00aa", "1A2B3C", "1a2b3c"]},
        )

        assert response.json() == {"available": False, "unavailable": ["FF00AA"]}
        query, params = mock_db_session.execute.call_args.args
        assert query is UNAVAILABLE_KOLOURS_QUERY
        assert params == {"kolours": ["1A2B3C", "FF00AA"]}

    async def test_empty_request_should_skip_database(
        self, test_app_async_client: AsyncClient, mock_db_session
    ) -> None:
        response = await test_app_async_client.post(
            "/api/v1/kolours/availability", json={"kolours": []}
        )

        assert response.json() == {"available": True, "unavailable": []}
        mock_db_session.execute.assert_not_called()

    async def test_should_reject_invalid_kolour(
        self, test_app_async_client: AsyncClient
    ) -> None:
        response = await test_app_async_client.post(
            "/api/v1/kolours/availability", json={"kolours": ["red"]}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "InvalidKolourError"

    async def test_should_reject_oversized_batch(
        self, test_app_async_client: AsyncClient
    ) -> None:
        response = await test_app_async_client.post(
            "/api/v1/kolours/availability",
            json={"kolours": [f"{i:06X}" for i in range(257)]},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "RequestValidationError"


class TestListMintedKolours:
    """Test cases for GET /kolours/minted."""

    async def test_should_list_entries(
        self, test_app_async_client: AsyncClient, mock_db_session
    ) -> None:
        mock_db_session.execute.return_value = [
            SimpleNamespace(
                kolour="1A2B3C",
                user_address="addr_test1",
                fee=2_000_000,
                expected_earning=150_000,
            ),
            SimpleNamespace(
                kolour="FF00AA", user_address="addr_test2", fee=1_000_000, expected_earning=None
            ),
        ]

        response = await test_app_async_client.get("/api/v1/kolours/minted")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == [
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
        ]
