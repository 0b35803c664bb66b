"""Platform version, build and EPYC generation descriptions."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field

_BUILD_FORMAT = struct.Struct("<BBB")


def _check_u8(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must fit in an unsigned byte, got {value}")


@dataclass(frozen=True, order=True)
class Version:
    """A SEV platform version: major and minor numbers."""

    major: int = 0
    minor: int = 0

    def __post_init__(self) -> None:
        _check_u8("major", self.major)
        _check_u8("minor", self.minor)

    @classmethod
    def from_u16(cls, value: int) -> Version:
        """Decode a version from the packed nibble form (major in bits 7:4, minor in 3:0)."""
        return cls(major=(value & 0xF0) >> 4, minor=value & 0x0F)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True, order=True)
class Build:
    """The SEV platform's build information."""

    version: Version = field(default_factory=Version)
    build: int = 0

    SIZE = _BUILD_FORMAT.size

    def __post_init__(self) -> None:
        _check_u8("build", self.build)

    def __str__(self) -> str:
        return f"{self.version}.{self.build}"

    def to_bytes(self) -> bytes:
        """Encode as the three-byte wire layout: major, minor, build."""
        return _BUILD_FORMAT.pack(self.version.major, self.version.minor, self.build)

    @classmethod
    def from_bytes(cls, data: bytes) -> Build:
        """Decode from the three-byte wire layout."""
        if len(data) != _BUILD_FORMAT.size:
            raise ValueError(
                f"build data must be {_BUILD_FORMAT.size} bytes, got {len(data)}"
            )
        major, minor, build = _BUILD_FORMAT.unpack(data)
        return cls(version=Version(major, minor), build=build)


class Generation(enum.Enum):
    """EPYC generational product lines."""

    NAPLES = "naples"
    ROME = "rome"
    MILAN = "milan"
    GENOA = "genoa"

    @classmethod
    def from_name(cls, name: str) -> Generation:
        """Look up a generation by (case-insensitive) product name."""
        key = name.lower()
        if key in _ALIASES:
            return _ALIASES[key]
        raise ValueError(f"unknown EPYC generation: {name!r}")

    def titlecase(self) -> str:
        """A title-cased name for the generation."""
        return self.value.title()


_ALIASES = {
    "naples": Generation.NAPLES,
    "rome": Generation.ROME,
    "milan": Generation.MILAN,
    "genoa": Generation.GENOA,
    "bergamo": Generation.GENOA,
    "siena": Generation.GENOA,
}