# amdsev

Data structures and binary layouts for AMD Secure Encrypted Virtualization
(SEV) and SEV Secure Nested Paging (SEV-SNP) platform and guest management.
Every structure can be built in Python, validated on construction, and
encoded to or decoded from the byte layout the firmware uses.

The package covers:

- `amdsev.platform`: `Version` (with `Version.from_u16` for the packed
  nibble form), `Build` (three-byte encoding via `to_bytes`/`from_bytes`)
  and `Generation` (`from_name`, which also accepts the aliases "bergamo"
  and "siena" for Genoa, and `titlecase`);
- `amdsev.host_types`: SEV platform `State`, `PlatformStatusFlags`,
  `Status`, and `LegacyAttestationReport` with `measurable_bytes`,
  `to_bytes` and `from_bytes`;
- `amdsev.snp_types`: `CertType` and `CertTableEntry` (sortable in the
  order ARK, VCEK, VLEK, ASK, CRL, other GUIDs, empty), `TcbVersion`,
  `TcbStatus`, `SnpBuild`, `MaskId`, `SnpPlatformStatus`, `Config` and
  `SnpPlatformStatusFlags`;
- `amdsev.cert_table`: `encode_cert_table` and `parse_cert_table` for the
  kernel certificate table layout (16-byte GUID, 32-bit offset, 32-bit
  length per entry, a zero entry as terminator, then the certificate data),
  `CertTableError`, `RawData`, and the `SnpCommit` and `SnpSetConfig`
  command buffers;
- `amdsev.guest_types`: `AttestationReport` (`from_bytes`, `to_bytes`,
  `measurable_bytes` for the signed first 0x2A0 bytes, and a readable
  `str`), `GuestPolicy`, `PlatformInfo`, `GuestFieldSelect`, `DerivedKey`
  and `hexdump`.

There are no dependencies beyond the standard library.

## Installation

```
pip install amdsev
```

## Examples

Decode a platform version and look up a generation:

```python
from amdsev.platform import Version, Generation

print(Version.from_u16(0x13))                       # 1.3
print(Generation.from_name("bergamo").titlecase())  # Genoa
```

Build, parse and sort a certificate table:

```python
from amdsev.snp_types import CertType, CertTableEntry
from amdsev.cert_table import encode_cert_table, parse_cert_table

table = [
    CertTableEntry(CertType.ARK, b"\x01" * 25),
    CertTableEntry(CertType.VCEK, b"\x05" * 15),
]
raw = encode_cert_table(table)
assert parse_cert_table(raw) == table
assert sorted([CertType.ASK, CertType.ARK]) == [CertType.ARK, CertType.ASK]
```

Decode an attestation report and inspect its policy:

```python
from amdsev.guest_types import AttestationReport

report = AttestationReport.from_bytes(raw_report)  # raw_report: bytes of AttestationReport.SIZE
print(report.policy.abi_major, report.policy.debug_allowed)
signed_part = report.measurable_bytes()
print(report)
```

Prepare an SNP configuration command:

```python
from amdsev.snp_types import Config, MaskId, TcbVersion
from amdsev.cert_table import SnpSetConfig

config = Config(reported_tcb=TcbVersion(3, 0, 10, 169), mask_id=MaskId(1))
buffer = SnpSetConfig.from_config(config).to_bytes()   # 64 bytes
```

## What this package does not do

The package does not open `/dev/sev`, `/dev/sev-guest` or `/dev/kvm` and
issues no ioctls: it cannot query a platform, request an attestation report
or derived key from the firmware, or drive a guest launch. It also does not
verify certificate chains or report signatures. It supplies the structures
and byte layouts such tools exchange with the firmware; obtaining the bytes
and checking signatures is left to the caller.

## Running the tests

```
pip install .[test]
pytest
```