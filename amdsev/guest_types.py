"""SEV-SNP guest types: derived-key requests, guest policy and attestation reports."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

from .snp_types import TcbVersion

_U32_MAX = 0xFFFF_FFFF
_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF

SIGNATURE_SIZE = 512
"""Size of the report signature block: R (72 bytes), S (72 bytes), reserved."""

_SIG_COMPONENT = 72
MEASURABLE_SIZE = 0x2A0
"""Number of leading report bytes covered by the signature."""

_REPORT = struct.Struct(
    "<IIQ16s16sII8sQII64s48s32s48s48s32s32s8s24s64s8sBBBBBBBB8s168s"
    f"{SIGNATURE_SIZE}s"
)

_BYTE_FIELDS = {
    "family_id": 16,
    "image_id": 16,
    "report_data": 64,
    "measurement": 48,
    "host_data": 32,
    "id_key_digest": 48,
    "author_key_digest": 48,
    "report_id": 32,
    "report_id_ma": 32,
    "reserved_1": 24,
    "chip_id": 64,
    "reserved_4": 168,
    "signature": SIGNATURE_SIZE,
}

_U32_FIELDS = ("version", "guest_svn", "vmpl", "sig_algo", "author_key_en_bits", "reserved_0")

_U8_FIELDS = (
    "current_build",
    "current_minor",
    "current_major",
    "reserved_2",
    "committed_build",
    "committed_minor",
    "committed_major",
    "reserved_3",
)


def _check_range(name: str, value: int, maximum: int) -> None:
    if not 0 <= value <= maximum:
        raise ValueError(f"{name} must be between 0 and {maximum}, got {value}")


def hexdump(data: bytes) -> str:
    """Format bytes as rows of sixteen space-separated hex pairs."""
    data = bytes(data)
    rows = (data[start:start + 16] for start in range(0, len(data), 16))
    return "\n" + "".join(" ".join(f"{b:02x}" for b in row) + "\n" for row in rows)


_FIELD_SELECT_BITS = {
    "guest_policy": 0,
    "image_id": 1,
    "family_id": 2,
    "measurement": 3,
    "svn": 4,
    "tcb_version": 5,
}


def _bit_property(index: int, doc: str) -> property:
    def getter(self: GuestFieldSelect) -> int:
        return self.get_bit(index)

    def setter(self: GuestFieldSelect, value: int) -> None:
        self.set_bit(index, value)

    return property(getter, setter, doc=doc)


@dataclass
class GuestFieldSelect:
    """Data to be mixed into a derived key, one bit per field (bits 63:6 reserved)."""

    value: int = 0

    def __post_init__(self) -> None:
        _check_range("guest field select", self.value, _U64_MAX)

    def get_bit(self, index: int) -> int:
        """The state (0 or 1) of one bit."""
        _check_range("bit index", index, 63)
        return (self.value >> index) & 1

    def set_bit(self, index: int, value: int | bool) -> None:
        """Set or clear one of the defined selection bits (0 to 5)."""
        if index not in _FIELD_SELECT_BITS.values():
            raise ValueError(f"bit {index} is reserved and must stay zero")
        if value not in (0, 1):
            raise ValueError(f"a bit is 0 or 1, got {value!r}")
        if value:
            self.value |= 1 << index
        else:
            self.value &= ~(1 << index)

    guest_policy = _bit_property(0, "Mix the guest policy into the key.")
    image_id = _bit_property(1, "Mix the image ID into the key.")
    family_id = _bit_property(2, "Mix the family ID into the key.")
    measurement = _bit_property(3, "Mix the launch measurement into the key.")
    svn = _bit_property(4, "Mix the guest SVN into the key.")
    tcb_version = _bit_property(5, "Mix the TCB version into the key.")


@dataclass
class DerivedKey:
    """The data required to request a derived key."""

    root_key_select: int = 0
    guest_field_select: GuestFieldSelect = field(default_factory=GuestFieldSelect)
    vmpl: int = 0
    guest_svn: int = 0
    tcb_version: int = 0
    reserved_0: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        for name in ("root_key_select", "vmpl", "guest_svn", "reserved_0"):
            _check_range(name, getattr(self, name), _U32_MAX)
        _check_range("tcb_version", self.tcb_version, _U64_MAX)

    @classmethod
    def create(
        cls,
        root_key_select: bool,
        guest_field_select: GuestFieldSelect,
        vmpl: int,
        guest_svn: int,
        tcb_version: int,
    ) -> DerivedKey:
        """Build a request; a true root_key_select picks the VMRK, false the VCEK."""
        return cls(
            root_key_select=int(bool(root_key_select)),
            guest_field_select=guest_field_select,
            vmpl=vmpl,
            guest_svn=guest_svn,
            tcb_version=tcb_version,
        )


@dataclass(frozen=True)
class GuestPolicy:
    """The guest policy the firmware enforces for a guest."""

    value: int = 0

    def __post_init__(self) -> None:
        _check_range("guest policy", self.value, _U64_MAX)

    def _bits(self, low: int, high: int) -> int:
        return (self.value >> low) & ((1 << (high - low + 1)) - 1)

    @property
    def abi_minor(self) -> int:
        return self._bits(0, 7)

    @property
    def abi_major(self) -> int:
        return self._bits(8, 15)

    @property
    def smt_allowed(self) -> int:
        return self._bits(16, 16)

    @property
    def migrate_ma_allowed(self) -> int:
        return self._bits(18, 18)

    @property
    def debug_allowed(self) -> int:
        return self._bits(19, 19)

    @property
    def single_socket_required(self) -> int:
        return self._bits(20, 20)

    @property
    def cxl_allowed(self) -> int:
        return self._bits(21, 21)

    @property
    def mem_aes_256_xts(self) -> int:
        return self._bits(22, 22)

    @property
    def rapl_dis(self) -> int:
        return self._bits(23, 23)

    @property
    def ciphertext_hiding(self) -> int:
        return self._bits(24, 24)

    def __str__(self) -> str:
        return (
            f"\n    Guest Policy ({self.value}):\n"
            f"    ABI Major:     {self.abi_major}\n"
            f"    ABI Minor:     {self.abi_minor}\n"
            f"    SMT Allowed:   {self.smt_allowed}\n"
            f"    Migrate MA:    {self.migrate_ma_allowed}\n"
            f"    Debug Allowed: {self.debug_allowed}\n"
            f"    Single Socket: {self.single_socket_required}"
        )


@dataclass(frozen=True)
class PlatformInfo:
    """Platform information bits reported in an attestation report."""

    value: int = 0

    def __post_init__(self) -> None:
        _check_range("platform info", self.value, _U64_MAX)

    def _bit(self, index: int) -> int:
        return (self.value >> index) & 1

    @property
    def smt_enabled(self) -> int:
        return self._bit(0)

    @property
    def tsme_enabled(self) -> int:
        return self._bit(1)

    @property
    def ecc_enabled(self) -> int:
        return self._bit(2)

    @property
    def rapl_disabled(self) -> int:
        return self._bit(3)

    @property
    def ciphertext_hiding_enabled(self) -> int:
        return self._bit(4)

    def __str__(self) -> str:
        return (
            f"\nPlatform Info ({self.value}):\n"
            f"  SMT Enabled:               {self.smt_enabled}\n"
            f"  TSME Enabled:              {self.tsme_enabled}\n"
            f"  ECC Enabled:               {self.ecc_enabled}\n"
            f"  RAPL Disabled:             {self.rapl_disabled}\n"
            f"  Ciphertext Hiding Enabled: {self.ciphertext_hiding_enabled}\n"
        )


@dataclass
class AttestationReport:
    """An SEV-SNP attestation report, signed by the firmware's VCEK."""

    version: int = 0
    guest_svn: int = 0
    policy: GuestPolicy = field(default_factory=GuestPolicy)
    family_id: bytes = bytes(16)
    image_id: bytes = bytes(16)
    vmpl: int = 0
    sig_algo: int = 0
    current_tcb: TcbVersion = field(default_factory=TcbVersion)
    plat_info: PlatformInfo = field(default_factory=PlatformInfo)
    author_key_en_bits: int = 0
    reserved_0: int = field(default=0, repr=False)
    report_data: bytes = bytes(64)
    measurement: bytes = bytes(48)
    host_data: bytes = bytes(32)
    id_key_digest: bytes = bytes(48)
    author_key_digest: bytes = bytes(48)
    report_id: bytes = bytes(32)
    report_id_ma: bytes = bytes(32)
    reported_tcb: TcbVersion = field(default_factory=TcbVersion)
    reserved_1: bytes = field(default=bytes(24), repr=False)
    chip_id: bytes = bytes(64)
    committed_tcb: TcbVersion = field(default_factory=TcbVersion)
    current_build: int = 0
    current_minor: int = 0
    current_major: int = 0
    reserved_2: int = field(default=0, repr=False)
    committed_build: int = 0
    committed_minor: int = 0
    committed_major: int = 0
    reserved_3: int = field(default=0, repr=False)
    launch_tcb: TcbVersion = field(default_factory=TcbVersion)
    reserved_4: bytes = field(default=bytes(168), repr=False)
    signature: bytes = bytes(SIGNATURE_SIZE)

    SIZE: ClassVar[int] = _REPORT.size

    def __post_init__(self) -> None:
        for name, size in _BYTE_FIELDS.items():
            value = bytes(getattr(self, name))
            if len(value) != size:
                raise ValueError(f"{name} must be {size} bytes, got {len(value)}")
            setattr(self, name, value)
        for name in _U32_FIELDS:
            _check_range(name, getattr(self, name), _U32_MAX)
        for name in _U8_FIELDS:
            _check_range(name, getattr(self, name), 0xFF)

    @property
    def author_key_en(self) -> bool:
        """Whether the author key digest is present."""
        return self.author_key_en_bits == 1

    @classmethod
    def from_bytes(cls, data: bytes) -> AttestationReport:
        """Decode a report from its wire layout."""
        if len(data) != _REPORT.size:
            raise ValueError(f"attestation report must be {_REPORT.size} bytes, got {len(data)}")
        (
            version, guest_svn, policy, family_id, image_id, vmpl, sig_algo,
            current_tcb, plat_info, author_key_en, reserved_0, report_data,
            measurement, host_data, id_key_digest, author_key_digest, report_id,
            report_id_ma, reported_tcb, reserved_1, chip_id, committed_tcb,
            current_build, current_minor, current_major, reserved_2,
            committed_build, committed_minor, committed_major, reserved_3,
            launch_tcb, reserved_4, signature,
        ) = _REPORT.unpack(bytes(data))
        return cls(
            version=version,
            guest_svn=guest_svn,
            policy=GuestPolicy(policy),
            family_id=family_id,
            image_id=image_id,
            vmpl=vmpl,
            sig_algo=sig_algo,
            current_tcb=TcbVersion.from_bytes(current_tcb),
            plat_info=PlatformInfo(plat_info),
            author_key_en_bits=author_key_en,
            reserved_0=reserved_0,
            report_data=report_data,
            measurement=measurement,
            host_data=host_data,
            id_key_digest=id_key_digest,
            author_key_digest=author_key_digest,
            report_id=report_id,
            report_id_ma=report_id_ma,
            reported_tcb=TcbVersion.from_bytes(reported_tcb),
            reserved_1=reserved_1,
            chip_id=chip_id,
            committed_tcb=TcbVersion.from_bytes(committed_tcb),
            current_build=current_build,
            current_minor=current_minor,
            current_major=current_major,
            reserved_2=reserved_2,
            committed_build=committed_build,
            committed_minor=committed_minor,
            committed_major=committed_major,
            reserved_3=reserved_3,
            launch_tcb=TcbVersion.from_bytes(launch_tcb),
            reserved_4=reserved_4,
            signature=signature,
        )

    def to_bytes(self) -> bytes:
        """Encode the report in its wire layout."""
        return _REPORT.pack(
            self.version, self.guest_svn, self.policy.value, self.family_id,
            self.image_id, self.vmpl, self.sig_algo, self.current_tcb.to_bytes(),
            self.plat_info.value, self.author_key_en_bits, self.reserved_0,
            self.report_data, self.measurement, self.host_data, self.id_key_digest,
            self.author_key_digest, self.report_id, self.report_id_ma,
            self.reported_tcb.to_bytes(), self.reserved_1, self.chip_id,
            self.committed_tcb.to_bytes(), self.current_build, self.current_minor,
            self.current_major, self.reserved_2, self.committed_build,
            self.committed_minor, self.committed_major, self.reserved_3,
            self.launch_tcb.to_bytes(), self.reserved_4, self.signature,
        )

    def measurable_bytes(self) -> bytes:
        """The bytes covered by the signature (offsets 0 to 0x29F)."""
        return self.to_bytes()[:MEASURABLE_SIZE]

    def _signature_text(self) -> str:
        r = self.signature[:_SIG_COMPONENT]
        s = self.signature[_SIG_COMPONENT:2 * _SIG_COMPONENT]
        return f"Signature:\n  R:{hexdump(r)}  S:{hexdump(s)}"

    def __str__(self) -> str:
        return (
            f"\nAttestation Report ({self.SIZE} bytes):\n"
            f"Version:                      {self.version}\n"
            f"Guest SVN:                    {self.guest_svn}\n"
            f"{self.policy}\n"
            f"Family ID:                    {hexdump(self.family_id)}\n"
            f"Image ID:                     {hexdump(self.image_id)}\n"
            f"VMPL:                         {self.vmpl}\n"
            f"Signature Algorithm:          {self.sig_algo}\n"
            f"Current TCB:\n{self.current_tcb}\n"
            f"{self.plat_info}\n"
            f"Author Key Encryption:        {str(self.author_key_en).lower()}\n"
            f"Report Data:                  {hexdump(self.report_data)}\n"
            f"Measurement:                  {hexdump(self.measurement)}\n"
            f"Host Data:                    {hexdump(self.host_data)}\n"
            f"ID Key Digest:                {hexdump(self.id_key_digest)}\n"
            f"Author Key Digest:            {hexdump(self.author_key_digest)}\n"
            f"Report ID:                    {hexdump(self.report_id)}\n"
            f"Report ID Migration Agent:    {hexdump(self.report_id_ma)}\n"
            f"Reported TCB:                 {self.reported_tcb}\n"
            f"Chip ID:                      {hexdump(self.chip_id)}\n"
            f"Committed TCB:\n{self.committed_tcb}\n"
            f"Current Build:                {self.current_build}\n"
            f"Current Minor:                {self.current_minor}\n"
            f"Current Major:                {self.current_major}\n"
            f"Committed Build:              {self.committed_build}\n"
            f"Committed Minor:              {self.committed_minor}\n"
            f"Committed Major:              {self.committed_major}\n"
            f"Launch TCB:\n{self.launch_tcb}\n"
            f"{self._signature_text()}\n"
        )