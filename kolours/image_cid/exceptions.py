"""Exceptions raised by the kolour image CID workflow."""


class KolourImageError(Exception):
    """Base exception for kolour image operations."""


class InvalidKolourError(KolourImageError, ValueError):
    """Kolour is not a six digit hexadecimal colour code."""


class LockError(KolourImageError):
    """Lock backend failed."""


class LockTimeout(LockError):
    """Lock was not acquired within the wait budget.

    Transient; the caller may retry later.
    """

    def __init__(self, key: str, max_wait: float):
        self.key = key
        self.max_wait = max_wait
        super().__init__(f"Lock '{key}' not acquired within {max_wait:.3f}s")


class GenerationFailure(KolourImageError):
    """Image encoding failed. Deterministic, so never retried."""


class UploadFailure(KolourImageError):
    """Content store rejected the upload or could not be reached."""


class CacheError(KolourImageError):
    """Cache backend failed."""


class CacheReadFailure(CacheError):
    """Reading a cached CID failed."""


class CacheWriteFailure(CacheError):
    """Memoizing a CID failed after it was published."""
