"""SEV-SNP host types: certificate table entries, TCB versions and configuration."""

from __future__ import annotations

import enum
import functools
import struct
import uuid
from dataclasses import dataclass, field
from typing import ClassVar

from .platform import Version

_U32_MAX = 0xFFFF_FFFF


def _check_u8(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must fit in an unsigned byte, got {value}")


def _check_u32(name: str, value: int) -> None:
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"{name} must fit in 32 bits, got {value}")


class SnpPlatformStatusFlags(enum.IntFlag):
    """The SNP platform's status flags."""

    OWNED = 1 << 0
    ENCRYPTED_STATE = 1 << 8


class CertKind(enum.Enum):
    """The kinds of certificate a certificate table may hold."""

    EMPTY = "empty"
    ARK = "ark"
    ASK = "ask"
    VCEK = "vcek"
    VLEK = "vlek"
    CRL = "crl"
    OTHER = "other"


_KNOWN_GUIDS = {
    CertKind.EMPTY: uuid.UUID("00000000-0000-0000-0000-000000000000"),
    CertKind.ARK: uuid.UUID("c0b406a4-a803-4952-9743-3fb6014cd0ae"),
    CertKind.ASK: uuid.UUID("4ab7b379-bbac-4fe4-a02f-05aef327c782"),
    CertKind.VCEK: uuid.UUID("63da758d-e664-4564-adc5-f4b93be8accd"),
    CertKind.VLEK: uuid.UUID("a8074bc2-a25a-483e-aae6-39c045a0b8a1"),
    CertKind.CRL: uuid.UUID("92f81bc3-5811-4d3d-97ff-d19f88dc67ea"),
}

_KIND_BY_GUID = {guid: kind for kind, guid in _KNOWN_GUIDS.items()}

_SORT_RANK = {
    CertKind.ARK: 0,
    CertKind.VCEK: 1,
    CertKind.VLEK: 2,
    CertKind.ASK: 3,
    CertKind.CRL: 4,
    CertKind.OTHER: 5,
    CertKind.EMPTY: 6,
}


@functools.total_ordering
@dataclass(frozen=True)
class CertType:
    """A certificate type, identified by its GUID."""

    kind: CertKind
    guid: uuid.UUID | None = None

    EMPTY: ClassVar[CertType]
    ARK: ClassVar[CertType]
    ASK: ClassVar[CertType]
    VCEK: ClassVar[CertType]
    VLEK: ClassVar[CertType]
    CRL: ClassVar[CertType]

    def __post_init__(self) -> None:
        if self.kind is CertKind.OTHER:
            if self.guid is None:
                raise ValueError("an OTHER certificate type needs a GUID")
            if not isinstance(self.guid, uuid.UUID):
                object.__setattr__(self, "guid", uuid.UUID(str(self.guid)))
            return
        expected = _KNOWN_GUIDS[self.kind]
        if self.guid is None:
            object.__setattr__(self, "guid", expected)
        elif self.guid != expected:
            raise ValueError(f"GUID {self.guid} does not belong to {self.kind.name}")

    @classmethod
    def other(cls, guid: uuid.UUID | str) -> CertType:
        """A certificate type given only by its GUID."""
        if not isinstance(guid, uuid.UUID):
            guid = uuid.UUID(guid)
        return cls(CertKind.OTHER, guid)

    @classmethod
    def from_uuid(cls, value: uuid.UUID | str) -> CertType:
        """Map a GUID to a known certificate type, or to an OTHER type."""
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(value)
        kind = _KIND_BY_GUID.get(value)
        if kind is None:
            return cls(CertKind.OTHER, value)
        return cls(kind)

    def uuid(self) -> uuid.UUID:
        """The GUID of this certificate type."""
        assert self.guid is not None
        return self.guid

    def __str__(self) -> str:
        return str(self.guid)

    def _sort_key(self) -> tuple[int, int]:
        guid_order = self.guid.int if self.kind is CertKind.OTHER and self.guid else 0
        return (_SORT_RANK[self.kind], guid_order)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CertType):
            return NotImplemented
        return self._sort_key() < other._sort_key()


CertType.EMPTY = CertType(CertKind.EMPTY)
CertType.ARK = CertType(CertKind.ARK)
CertType.ASK = CertType(CertKind.ASK)
CertType.VCEK = CertType(CertKind.VCEK)
CertType.VLEK = CertType(CertKind.VLEK)
CertType.CRL = CertType(CertKind.CRL)


@dataclass(frozen=True)
class CertTableEntry:
    """A certificate and its type."""

    cert_type: CertType
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_guid(cls, guid: uuid.UUID | str, data: bytes) -> CertTableEntry:
        """Build an entry from a GUID and certificate data."""
        return cls(CertType.from_uuid(guid), data)

    def guid_string(self) -> str:
        """The GUID of the entry as a string."""
        return str(self.cert_type)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CertTableEntry):
            return NotImplemented
        return self.cert_type < other.cert_type


_TCB = struct.Struct("<BB4sBB")


@dataclass(frozen=True)
class TcbVersion:
    """The version of the firmware's trusted computing base."""

    bootloader: int = 0
    tee: int = 0
    snp: int = 0
    microcode: int = 0
    reserved: bytes = field(default=bytes(4), repr=False)

    SIZE: ClassVar[int] = _TCB.size

    def __post_init__(self) -> None:
        for name in ("bootloader", "tee", "snp", "microcode"):
            _check_u8(name, getattr(self, name))
        if len(self.reserved) != 4:
            raise ValueError("reserved must be 4 bytes")
        object.__setattr__(self, "reserved", bytes(self.reserved))

    def to_bytes(self) -> bytes:
        """Encode in the 8-byte wire layout."""
        return _TCB.pack(self.bootloader, self.tee, self.reserved, self.snp, self.microcode)

    @classmethod
    def from_bytes(cls, data: bytes) -> TcbVersion:
        """Decode from the 8-byte wire layout."""
        if len(data) != _TCB.size:
            raise ValueError(f"TCB version must be {_TCB.size} bytes, got {len(data)}")
        bootloader, tee, reserved, snp, microcode = _TCB.unpack(data)
        return cls(bootloader, tee, snp, microcode, reserved)

    def __str__(self) -> str:
        return (
            "\nTCB Version:\n"
            f"  Microcode:   {self.microcode}\n"
            f"  SNP:         {self.snp}\n"
            f"  TEE:         {self.tee}\n"
            f"  Boot Loader: {self.bootloader}\n"
            "  "
        )


@dataclass(frozen=True)
class TcbStatus:
    """Installed and reported TCB versions."""

    platform_version: TcbVersion = field(default_factory=TcbVersion)
    reported_version: TcbVersion = field(default_factory=TcbVersion)


@dataclass(frozen=True, order=True)
class SnpBuild:
    """The SEV-SNP platform's build information."""

    version: Version = field(default_factory=Version)
    build: int = 0

    def __post_init__(self) -> None:
        _check_u32("build", self.build)


@dataclass(frozen=True)
class MaskId:
    """Mask ID bits of an SNP configuration."""

    value: int = 0

    def __post_init__(self) -> None:
        _check_u32("mask id", self.value)

    def mask_chip_id(self) -> int:
        """Whether the CHIP_ID field of attestation reports is always zero."""
        return self.value & 1

    def mask_chip_key(self) -> int:
        """Whether the VCEK is unused for attestation and key derivation."""
        return (self.value >> 1) & 1

    def __str__(self) -> str:
        return (
            f"\n    MaskID ({self.value}):\n"
            f"    Mask Chip ID: {self.mask_chip_id()}\n"
            f"    ABI Chip Key: {self.mask_chip_key()}"
        )


_SNP_STATUS = struct.Struct("<BBBBIII8s8s")


@dataclass(frozen=True)
class SnpPlatformStatus:
    """The SEV-SNP platform status."""

    version: Version = field(default_factory=Version)
    state: int = 0
    is_rmp_init: int = 0
    build_id: int = 0
    mask_chip_id: int = 0
    guest_count: int = 0
    platform_tcb_version: TcbVersion = field(default_factory=TcbVersion)
    reported_tcb_version: TcbVersion = field(default_factory=TcbVersion)

    SIZE: ClassVar[int] = _SNP_STATUS.size

    def __post_init__(self) -> None:
        _check_u8("state", self.state)
        _check_u8("is_rmp_init", self.is_rmp_init)
        for name in ("build_id", "mask_chip_id", "guest_count"):
            _check_u32(name, getattr(self, name))

    @classmethod
    def from_bytes(cls, data: bytes) -> SnpPlatformStatus:
        """Decode from the firmware's status layout."""
        if len(data) != _SNP_STATUS.size:
            raise ValueError(
                f"SNP platform status must be {_SNP_STATUS.size} bytes, got {len(data)}"
            )
        (major, minor, state, rmp, build_id, mask, guests, platform, reported) = (
            _SNP_STATUS.unpack(data)
        )
        return cls(
            version=Version(major, minor),
            state=state,
            is_rmp_init=rmp,
            build_id=build_id,
            mask_chip_id=mask,
            guest_count=guests,
            platform_tcb_version=TcbVersion.from_bytes(platform),
            reported_tcb_version=TcbVersion.from_bytes(reported),
        )

    def to_bytes(self) -> bytes:
        """Encode in the firmware's status layout."""
        return _SNP_STATUS.pack(
            self.version.major,
            self.version.minor,
            self.state,
            self.is_rmp_init,
            self.build_id,
            self.mask_chip_id,
            self.guest_count,
            self.platform_tcb_version.to_bytes(),
            self.reported_tcb_version.to_bytes(),
        )


_CONFIG = struct.Struct("<8sI52s")


@dataclass(frozen=True)
class Config:
    """System-wide SNP configuration values."""

    reported_tcb: TcbVersion = field(default_factory=TcbVersion)
    mask_id: MaskId = field(default_factory=MaskId)
    reserved: bytes = field(default=bytes(52), repr=False)

    SIZE: ClassVar[int] = _CONFIG.size

    def __post_init__(self) -> None:
        if len(self.reserved) != 52:
            raise ValueError("reserved must be 52 bytes")
        object.__setattr__(self, "reserved", bytes(self.reserved))

    def to_bytes(self) -> bytes:
        """Encode in the packed 64-byte layout."""
        return _CONFIG.pack(self.reported_tcb.to_bytes(), self.mask_id.value, self.reserved)