"""Kernel certificate-table layout and the SNP commit/configuration commands."""

from __future__ import annotations

import struct
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import ClassVar

from .snp_types import CertTableEntry, Config, MaskId, TcbVersion

_ENTRY = struct.Struct("<16sII")
_COMMIT = struct.Struct("<I")
_SET_CONFIG = struct.Struct("<8sI52s")
_U32_MAX = 0xFFFF_FFFF
_ZERO_GUID = uuid.UUID(int=0)


class CertTableError(ValueError):
    """Raised when a certificate table cannot be built or parsed."""


@dataclass(frozen=True)
class RawData:
    """Raw certificate bytes, given either by address or by value."""

    pointer: int | None = None
    vector: bytes | None = None

    def __post_init__(self) -> None:
        if (self.pointer is None) == (self.vector is None):
            raise ValueError("raw data holds exactly one of a pointer or a vector")
        if self.vector is not None:
            object.__setattr__(self, "vector", bytes(self.vector))
        elif self.pointer < 0:
            raise ValueError("a pointer cannot be negative")

    @classmethod
    def from_value(cls, value: int | bytes | bytearray | memoryview | Iterable[int]) -> RawData:
        """Wrap an address (an int) or a byte sequence."""
        if isinstance(value, bool):
            raise TypeError("a boolean is not raw data")
        if isinstance(value, int):
            return cls(pointer=value)
        return cls(vector=bytes(value))


def encode_cert_table(table: Iterable[CertTableEntry]) -> bytes:
    """Build the kernel certificate table: entries, a zero terminator, then the data."""
    entries = list(table)
    offset = _ENTRY.size * (len(entries) + 1)
    header = bytearray()
    blobs = bytearray()
    for entry in entries:
        try:
            guid = uuid.UUID(entry.guid_string())
        except ValueError as exc:
            raise CertTableError(f"invalid GUID {entry.guid_string()!r}") from exc
        length = len(entry.data)
        if offset > _U32_MAX or length > _U32_MAX:
            raise CertTableError("certificate table exceeds 32-bit offsets")
        header += _ENTRY.pack(guid.bytes, offset, length)
        blobs += entry.data
        offset += length
    header += bytes(_ENTRY.size)
    return bytes(header + blobs)


def parse_cert_table(data: bytes) -> list[CertTableEntry]:
    """Parse a kernel certificate table into entries, stopping at the zero GUID."""
    data = bytes(data)
    entries: list[CertTableEntry] = []
    for position in range(0, len(data) - _ENTRY.size + 1, _ENTRY.size):
        raw_guid, offset, length = _ENTRY.unpack_from(data, position)
        guid = uuid.UUID(bytes=raw_guid)
        if guid == _ZERO_GUID:
            return entries
        end = offset + length
        if end > len(data):
            raise CertTableError(
                f"certificate {guid} spans bytes {offset}..{end} beyond table of {len(data)}"
            )
        entries.append(CertTableEntry.from_guid(guid, data[offset:end]))
    raise CertTableError("certificate table has no terminating entry")


@dataclass(frozen=True)
class SnpCommit:
    """The SNP_COMMIT command buffer."""

    buffer: int = 0

    SIZE: ClassVar[int] = _COMMIT.size

    def __post_init__(self) -> None:
        if not 0 <= self.buffer <= _U32_MAX:
            raise ValueError(f"buffer must fit in 32 bits, got {self.buffer}")

    def to_bytes(self) -> bytes:
        """Encode in the packed wire layout."""
        return _COMMIT.pack(self.buffer)


@dataclass(frozen=True)
class SnpSetConfig:
    """The SNP_SET_CONFIG command buffer."""

    reported_tcb: TcbVersion = field(default_factory=TcbVersion)
    mask_id: MaskId = field(default_factory=MaskId)
    reserved: bytes = field(default=bytes(52), repr=False)

    SIZE: ClassVar[int] = _SET_CONFIG.size

    def __post_init__(self) -> None:
        if len(self.reserved) != 52:
            raise ValueError("reserved must be 52 bytes")
        object.__setattr__(self, "reserved", bytes(self.reserved))

    @classmethod
    def from_config(cls, config: Config) -> SnpSetConfig:
        """Build the command from a configuration; reserved bytes are zeroed."""
        return cls(reported_tcb=config.reported_tcb, mask_id=config.mask_id)

    def to_config(self) -> Config:
        """The configuration carried by this command."""
        return Config(reported_tcb=self.reported_tcb, mask_id=self.mask_id)

    def to_bytes(self) -> bytes:
        """Encode in the packed 64-byte layout."""
        return _SET_CONFIG.pack(self.reported_tcb.to_bytes(), self.mask_id.value, self.reserved)

    @classmethod
    def from_bytes(cls, data: bytes) -> SnpSetConfig:
        """Decode from the packed 64-byte layout."""
        if len(data) != _SET_CONFIG.size:
            raise ValueError(f"SNP config must be {_SET_CONFIG.size} bytes, got {len(data)}")
        tcb, mask, reserved = _SET_CONFIG.unpack(data)
        return cls(TcbVersion.from_bytes(tcb), MaskId(mask), reserved)