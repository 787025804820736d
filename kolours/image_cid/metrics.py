"""Prometheus metrics for kolour image generation."""

from prometheus_client import Counter, Histogram

CACHE_HITS = Counter(
    "kolour_image_cache_hits_total",
    "Kolour image CID lookups answered from cache",
    labelnames=["path"],
)

CACHE_MISSES = Counter(
    "kolour_image_cache_misses_total",
    "Kolour image CID lookups that had to generate and upload",
)

UPLOADS = Counter(
    "kolour_image_uploads_total",
    "Kolour images published to the content store",
)

FAILURES = Counter(
    "kolour_image_failures_total",
    "Failed kolour image CID lookups",
    labelnames=["error"],
)

LOCK_WAIT_SECONDS = Histogram(
    "kolour_image_lock_wait_seconds",
    "Time spent acquiring the kolour image generation lock",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.2, 0.5, 1.0),
)
