"""Data models for kolour images."""

import re
from dataclasses import dataclass

from kolours.image_cid.exceptions import InvalidKolourError

KOLOUR_IMAGE_CID_PREFIX = "ko:kolour:img:"
KOLOUR_IMAGE_LOCK_PREFIX = "ko:kolour:img.lock:"


@dataclass(frozen=True)
class Kolour:
    """A six digit hexadecimal RGB colour code, normalized to upper case."""

    _PATTERN = re.compile(r"[0-9A-Fa-f]{6}")

    hex: str

    def __post_init__(self) -> None:
        if not isinstance(self.hex, str):
            raise InvalidKolourError(f"Kolour must be a string, got {self.hex!r}")
        if not self._PATTERN.fullmatch(self.hex):
            raise InvalidKolourError(
                f"Invalid kolour '{self.hex}': expected 6 hexadecimal digits"
            )
        object.__setattr__(self, "hex", self.hex.upper())

    @classmethod
    def parse(cls, raw: str) -> "Kolour":
        """Parse user input, accepting an optional leading '#'."""
        if isinstance(raw, str) and raw.startswith("#"):
            raw = raw[1:]
        return cls(raw)

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (
            int(self.hex[0:2], 16),
            int(self.hex[2:4], 16),
            int(self.hex[4:6], 16),
        )

    @property
    def css(self) -> str:
        return f"#{self.hex}"

    @property
    def cid_key(self) -> str:
        """Cache key holding this kolour's image CID."""
        return KOLOUR_IMAGE_CID_PREFIX + self.hex

    @property
    def lock_key(self) -> str:
        """Lock key guarding this kolour's image generation."""
        return KOLOUR_IMAGE_LOCK_PREFIX + self.hex

    def __str__(self) -> str:
        return self.hex


@dataclass(frozen=True)
class Lock:
    """A held distributed lock."""

    key: str
    holder: str
    ttl: float
    acquired_at: float
