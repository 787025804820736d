"""IPFS content store for kolour images."""

from typing import Protocol

import httpx

from kolours.core.logging import get_logger
from kolours.image_cid.exceptions import UploadFailure

logger = get_logger(__name__)


class ContentStore(Protocol):
    """Content-addressed blob publisher.

    Uploading byte-identical data twice yields the identical CID.
    """

    def upload(self, data: bytes) -> str: ...


class IpfsContentStore:
    """Publishes blobs through the IPFS HTTP API (``/api/v0/add``) and pins them."""

    def __init__(self, http_client: httpx.Client, cid_version: int = 1):
        """Initialize content store.

        Args:
            http_client: Client whose base_url points at the IPFS API
                (auth and timeout configured on the client)
            cid_version: CID version requested from the node
        """
        self.http_client = http_client
        self.cid_version = cid_version

    def upload(self, data: bytes) -> str:
        """Add and pin a blob.

        Not retried here; retry policy belongs to the caller.

        Args:
            data: Raw bytes to publish

        Returns:
            Content identifier reported by the node

        Raises:
            UploadFailure: On transport errors, non-2xx responses or a
                response without a CID
        """
        try:
            response = self.http_client.post(
                "/api/v0/add",
                params={"pin": "true", "cid-version": str(self.cid_version)},
                files={"file": ("image.png", data, "image/png")},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise UploadFailure(
                f"IPFS add rejected with HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise UploadFailure(f"IPFS add failed: {e}") from e
        except ValueError as e:
            raise UploadFailure(f"IPFS add returned invalid JSON: {e}") from e

        cid = payload.get("Hash") if isinstance(payload, dict) else None
        if not cid:
            raise UploadFailure(f"IPFS add response has no CID: {payload!r}")

        logger.debug("ipfs_added", cid=cid, size=len(data))
        return str(cid)
