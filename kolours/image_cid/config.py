"""Construction of kolour image backends from settings."""

import httpx
import redis

from kolours.core.config import Settings
from kolours.image_cid.cache import RedisCache
from kolours.image_cid.ipfs import IpfsContentStore
from kolours.image_cid.locking import RedisLockManager
from kolours.image_cid.service import KolourImageService


def create_redis_client(settings: Settings) -> redis.Redis:
    """Create the Redis client shared by the CID cache and the generation locks."""
    return redis.Redis.from_url(
        settings.REDIS_URL,
        decode_responses=False,
        socket_timeout=5,
        socket_connect_timeout=5,
    )


def create_ipfs_http_client(settings: Settings) -> httpx.Client:
    """Create the HTTP client used to talk to the IPFS API."""
    return httpx.Client(
        base_url=settings.IPFS_API_URL,
        auth=settings.ipfs_auth,
        timeout=settings.IPFS_TIMEOUT,
    )


def create_image_cid_service(
    settings: Settings,
    redis_client: redis.Redis,
    http_client: httpx.Client,
) -> KolourImageService:
    """Wire a KolourImageService from explicit backend clients.

    The caller owns both clients and is responsible for closing them.

    Args:
        settings: Application settings
        redis_client: Client for cache and locks
        http_client: Client for the IPFS API

    Returns:
        Configured service
    """
    return KolourImageService(
        cache=RedisCache(redis_client),
        lock_manager=RedisLockManager(redis_client),
        content_store=IpfsContentStore(http_client, cid_version=settings.IPFS_CID_VERSION),
        cache_ttl=settings.KOLOUR_IMAGE_CACHE_TTL,
        lock_ttl=settings.KOLOUR_IMAGE_LOCK_TTL,
        lock_wait=settings.KOLOUR_IMAGE_LOCK_WAIT_MS / 1000,
    )


def ipfs_gateway_url(settings: Settings, cid: str) -> str:
    """Public gateway link for a CID."""
    return f"{settings.IPFS_GATEWAY_URL.rstrip('/')}/ipfs/{cid}"


def ipfs_uri(cid: str) -> str:
    """Native ipfs:// URI for a CID."""
    return f"ipfs://{cid}"
