"""SEV platform state, status and legacy attestation report types."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import ClassVar

from .platform import Build

PAGE_SIZE = 4096
"""Size of a 4K memory page, as used by the firmware interfaces."""

MNONCE_SIZE = 128 // 8
DIGEST_SIZE = 256 // 8
POLICY_SIZE = 32 // 8
POLICY_OFFSET = MNONCE_SIZE + DIGEST_SIZE
MEASURABLE_BYTES = MNONCE_SIZE + DIGEST_SIZE + POLICY_SIZE
SIGNATURE_SIZE = 144

_LEGACY_REPORT = struct.Struct(f"<{MNONCE_SIZE}s{DIGEST_SIZE}sIIII{SIGNATURE_SIZE}s")
_U32_MAX = 0xFFFF_FFFF


class State(enum.Enum):
    """The platform state; the platform only permits some actions in some states."""

    UNINITIALIZED = 0
    INITIALIZED = 1
    WORKING = 2

    def __str__(self) -> str:
        return self.name.lower()


class PlatformStatusFlags(enum.IntFlag):
    """The SEV platform's status flags."""

    OWNED = 1 << 0
    ENCRYPTED_STATE = 1 << 8


@dataclass(frozen=True)
class Status:
    """Information regarding the SEV platform's current status."""

    build: Build
    state: State
    flags: PlatformStatusFlags
    guests: int


def _check_len(name: str, value: bytes, size: int) -> bytes:
    value = bytes(value)
    if len(value) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(value)}")
    return value


def _check_u32(name: str, value: int) -> None:
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"{name} must fit in 32 bits, got {value}")


@dataclass
class LegacyAttestationReport:
    """A legacy SEV attestation report."""

    mnonce: bytes = bytes(MNONCE_SIZE)
    launch_digest: bytes = bytes(DIGEST_SIZE)
    policy: int = 0
    sig_usage: int = 0
    sig_algo: int = 0
    reserved: int = 0
    signature: bytes = bytes(SIGNATURE_SIZE)

    SIZE: ClassVar[int] = _LEGACY_REPORT.size

    def __post_init__(self) -> None:
        self.mnonce = _check_len("mnonce", self.mnonce, MNONCE_SIZE)
        self.launch_digest = _check_len("launch_digest", self.launch_digest, DIGEST_SIZE)
        self.signature = _check_len("signature", self.signature, SIGNATURE_SIZE)
        for name in ("policy", "sig_usage", "sig_algo", "reserved"):
            _check_u32(name, getattr(self, name))

    def measurable_bytes(self) -> bytes:
        """The measured bytes of the report: nonce, launch digest and policy."""
        return self.mnonce + self.launch_digest + self.policy.to_bytes(POLICY_SIZE, "little")

    @classmethod
    def from_bytes(cls, data: bytes) -> LegacyAttestationReport:
        """Decode a report from its wire layout."""
        if len(data) != _LEGACY_REPORT.size:
            raise ValueError(
                f"legacy report must be {_LEGACY_REPORT.size} bytes, got {len(data)}"
            )
        mnonce, digest, policy, usage, algo, reserved, signature = _LEGACY_REPORT.unpack(data)
        return cls(
            mnonce=mnonce,
            launch_digest=digest,
            policy=policy,
            sig_usage=usage,
            sig_algo=algo,
            reserved=reserved,
            signature=signature,
        )

    def to_bytes(self) -> bytes:
        """Encode the report in its wire layout."""
        return _LEGACY_REPORT.pack(
            self.mnonce,
            self.launch_digest,
            self.policy,
            self.sig_usage,
            self.sig_algo,
            self.reserved,
            self.signature,
        )