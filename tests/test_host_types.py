import pytest

from amdsev.host_types import (
    MEASURABLE_BYTES,
    LegacyAttestationReport,
    PlatformStatusFlags,
    State,
    Status,
)
from amdsev.platform import Build, Version


@pytest.mark.parametrize(
    "state, text",
    [
        (State.UNINITIALIZED, "uninitialized"),
        (State.INITIALIZED, "initialized"),
        (State.WORKING, "working"),
    ],
)
def test_state_str(state, text):
    assert str(state) == text


def test_state_from_raw_value():
    assert State(0) is State.UNINITIALIZED
    assert State(2) is State.WORKING
    with pytest.raises(ValueError):
        State(3)


def test_platform_status_flags_combination():
    flags = PlatformStatusFlags.OWNED | PlatformStatusFlags.ENCRYPTED_STATE
    assert PlatformStatusFlags.OWNED in flags
    assert PlatformStatusFlags.ENCRYPTED_STATE in flags
    assert PlatformStatusFlags(int(flags)) == flags


def test_status_equality():
    build = Build(Version(1, 2), 3)
    a = Status(build, State.WORKING, PlatformStatusFlags.OWNED, 5)
    b = Status(build, State.WORKING, PlatformStatusFlags.OWNED, 5)
    assert a == b
    assert a != Status(build, State.INITIALIZED, PlatformStatusFlags.OWNED, 5)


def _report():
    return LegacyAttestationReport(
        mnonce=bytes(range(16)),
        launch_digest=bytes(range(100, 132)),
        policy=0x01020304,
        sig_usage=7,
        sig_algo=9,
        signature=bytes([0xAB]) * 144,
    )


def test_measurable_bytes_layout():
    report = _report()
    measured = report.measurable_bytes()
    assert len(measured) == MEASURABLE_BYTES
    assert measured[:16] == report.mnonce
    assert measured[16:48] == report.launch_digest
    assert measured[48:] == b"\x04\x03\x02\x01"


def test_legacy_report_round_trip():
    report = _report()
    encoded = report.to_bytes()
    assert len(encoded) == LegacyAttestationReport.SIZE
    assert LegacyAttestationReport.from_bytes(encoded) == report


def test_legacy_report_wire_prefix_is_measured_bytes():
    report = _report()
    assert report.to_bytes()[:MEASURABLE_BYTES] == report.measurable_bytes()


def test_legacy_report_default_is_zero():
    report = LegacyAttestationReport()
    assert report.to_bytes() == bytes(LegacyAttestationReport.SIZE)


def test_legacy_report_wrong_length():
    with pytest.raises(ValueError):
        LegacyAttestationReport.from_bytes(b"\x00" * 10)


def test_legacy_report_bad_field_sizes():
    with pytest.raises(ValueError):
        LegacyAttestationReport(mnonce=b"\x00" * 15)
    with pytest.raises(ValueError):
        LegacyAttestationReport(policy=-1)