"""Kolour image minting: deterministic image, published once, CID memoized."""

from kolours.image_cid.exceptions import (
    CacheWriteFailure,
    GenerationFailure,
    InvalidKolourError,
    KolourImageError,
    LockTimeout,
    UploadFailure,
)
from kolours.image_cid.models import Kolour
from kolours.image_cid.service import KolourImageService

__all__ = [
    "CacheWriteFailure",
    "GenerationFailure",
    "InvalidKolourError",
    "Kolour",
    "KolourImageError",
    "KolourImageService",
    "LockTimeout",
    "UploadFailure",
]
