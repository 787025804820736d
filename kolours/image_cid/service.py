"""Get-or-generate workflow for kolour image CIDs."""

import time
import uuid
from collections.abc import Callable

from kolours.core.logging import get_logger
from kolours.image_cid.cache import Cache
from kolours.image_cid.exceptions import KolourImageError
from kolours.image_cid.generator import create_kolour_image
from kolours.image_cid.ipfs import ContentStore
from kolours.image_cid.locking import LockManager, held
from kolours.image_cid.metrics import (
    CACHE_HITS,
    CACHE_MISSES,
    FAILURES,
    LOCK_WAIT_SECONDS,
    UPLOADS,
)
from kolours.image_cid.models import Kolour

logger = get_logger(__name__)

DEFAULT_CACHE_TTL = 86400  # 1 day
DEFAULT_LOCK_TTL = 5.0
DEFAULT_LOCK_WAIT = 0.2


class KolourImageService:
    """Mints, publishes and memoizes the identifying image of each kolour.

    Generation and upload happen at most once per kolour across every process
    sharing the same cache and lock backends: callers missing the cache take a
    per-kolour lock and re-check the cache before doing any work.
    """

    def __init__(
        self,
        cache: Cache,
        lock_manager: LockManager,
        content_store: ContentStore,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        lock_ttl: float = DEFAULT_LOCK_TTL,
        lock_wait: float = DEFAULT_LOCK_WAIT,
        generator: Callable[[Kolour], bytes] = create_kolour_image,
    ):
        """Initialize service.

        Args:
            cache: Stores kolour -> CID mappings
            lock_manager: Serializes generation per kolour
            content_store: Publishes and pins image bytes
            cache_ttl: Seconds a memoized CID stays valid
            lock_ttl: Lease of the generation lock in seconds
            lock_wait: Seconds to wait for a busy generation lock
            generator: Renders image bytes for a kolour
        """
        self.cache = cache
        self.lock_manager = lock_manager
        self.content_store = content_store
        self.cache_ttl = cache_ttl
        self.lock_ttl = lock_ttl
        self.lock_wait = lock_wait
        self.generator = generator

    def get_image_cid(self, kolour: Kolour | str) -> str:
        """Return the CID of the kolour's image, generating it on first use.

        Args:
            kolour: Kolour or raw colour code

        Returns:
            Content identifier of the published image

        Raises:
            InvalidKolourError: If a raw colour code is malformed
            LockTimeout: If another caller held the lock past the wait budget
            GenerationFailure: If the image could not be rendered
            UploadFailure: If the content store rejected the upload
            CacheWriteFailure: If the CID could not be memoized
        """
        if not isinstance(kolour, Kolour):
            kolour = Kolour.parse(kolour)

        try:
            return self._get_or_generate(kolour)
        except KolourImageError as e:
            FAILURES.labels(error=type(e).__name__).inc()
            logger.warning(
                "kolour_image_failed",
                kolour=kolour.hex,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

    def _get_or_generate(self, kolour: Kolour) -> str:
        cid_key = kolour.cid_key

        cached = self.cache.get(cid_key)
        if cached:
            CACHE_HITS.labels(path="fast").inc()
            logger.debug("kolour_image_cache_hit", kolour=kolour.hex, cid=cached)
            return cached

        holder = str(uuid.uuid4())
        wait_started = time.monotonic()
        with held(
            self.lock_manager, kolour.lock_key, holder, self.lock_ttl, self.lock_wait
        ):
            LOCK_WAIT_SECONDS.observe(time.monotonic() - wait_started)

            # Another caller may have finished while we waited for the lock
            cached = self.cache.get(cid_key)
            if cached:
                CACHE_HITS.labels(path="recheck").inc()
                logger.debug("kolour_image_cache_recheck_hit", kolour=kolour.hex, cid=cached)
                return cached

            CACHE_MISSES.inc()
            image = self.generator(kolour)
            logger.debug("kolour_image_generated", kolour=kolour.hex, size=len(image))

            cid = self.content_store.upload(image)
            UPLOADS.inc()
            logger.info("kolour_image_uploaded", kolour=kolour.hex, cid=cid)

            self.cache.set(cid_key, cid, self.cache_ttl)
            logger.debug("kolour_image_memoized", kolour=kolour.hex, ttl=self.cache_ttl)
            return cid
