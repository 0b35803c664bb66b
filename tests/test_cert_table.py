import uuid

import pytest

from amdsev.cert_table import (
    CertTableError,
    RawData,
    SnpCommit,
    SnpSetConfig,
    encode_cert_table,
    parse_cert_table,
)
from amdsev.snp_types import CertTableEntry, CertType, Config, MaskId, TcbVersion

TABLE_BYTES = bytes(
    [
        192, 180, 6, 164, 168, 3, 73, 82, 151, 67, 63, 182, 1, 76, 208, 174, 120, 0, 0, 0,
        25, 0, 0, 0, 74, 183, 179, 121, 187, 172, 79, 228, 160, 47, 5, 174, 243, 39, 199,
        130, 145, 0, 0, 0, 25, 0, 0, 0, 99, 218, 117, 141, 230, 100, 69, 100, 173, 197,
        244, 185, 59, 232, 172, 205, 170, 0, 0, 0, 15, 0, 0, 0, 251, 182, 237, 116, 231,
        62, 68, 171, 136, 147, 66, 82, 121, 45, 115, 122, 185, 0, 0, 0, 6, 0, 0, 0, 0, 0,
        0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    ]
    + [1] * 25
    + [2] * 25
    + [5] * 15
    + [7] * 6
)


def build_table():
    return [
        CertTableEntry(CertType.ARK, bytes([1] * 25)),
        CertTableEntry(CertType.ASK, bytes([2] * 25)),
        CertTableEntry(CertType.VCEK, bytes([5] * 15)),
        CertTableEntry(
            CertType.other(uuid.UUID("fbb6ed74-e73e-44ab-8893-4252792d737a")),
            bytes([7] * 6),
        ),
    ]


def test_raw_data_from_array():
    assert RawData.from_value([1] * 72) == RawData(vector=bytes([1] * 72))


def test_raw_data_from_slice():
    assert RawData.from_value(bytearray([2] * 20)) == RawData(vector=bytes([2] * 20))


def test_raw_data_from_pointer():
    assert RawData.from_value(0x1000) == RawData(pointer=0x1000)


def test_raw_data_from_bytes():
    value = bytes([2] * 20)
    assert RawData.from_value(value).vector == value


def test_raw_data_requires_exactly_one():
    with pytest.raises(ValueError):
        RawData()
    with pytest.raises(ValueError):
        RawData(pointer=1, vector=b"x")


def test_encode_cert_table():
    assert encode_cert_table(build_table()) == TABLE_BYTES


def test_parse_table_regular():
    assert parse_cert_table(TABLE_BYTES) == build_table()


def test_parse_table_length_short():
    data = bytearray(TABLE_BYTES)
    data[20] = 1
    parsed = parse_cert_table(bytes(data))
    assert parsed != build_table()
    assert parsed[0].data == bytes([1])


def test_round_trip_empty_table():
    encoded = encode_cert_table([])
    assert encoded == bytes(24)
    assert parse_cert_table(encoded) == []


def test_parse_missing_terminator():
    with pytest.raises(CertTableError):
        parse_cert_table(TABLE_BYTES[:24])


def test_parse_out_of_bounds_certificate():
    data = bytearray(TABLE_BYTES)
    data[20] = 250
    with pytest.raises(CertTableError):
        parse_cert_table(bytes(data))


def test_snp_commit_bytes():
    assert SnpCommit(0x01020304).to_bytes() == bytes([4, 3, 2, 1])
    with pytest.raises(ValueError):
        SnpCommit(-1)


def test_set_config_round_trip():
    config = Config(reported_tcb=TcbVersion(3, 0, 10, 169), mask_id=MaskId(2))
    command = SnpSetConfig.from_config(config)
    raw = command.to_bytes()
    assert len(raw) == 64
    assert raw[:8] == bytes([3, 0, 0, 0, 0, 0, 10, 169])
    assert raw[8:12] == bytes([2, 0, 0, 0])
    assert SnpSetConfig.from_bytes(raw) == command
    assert command.to_config() == config


def test_set_config_matches_config_layout():
    config = Config(reported_tcb=TcbVersion(1, 2, 3, 4), mask_id=MaskId(1))
    assert SnpSetConfig.from_config(config).to_bytes() == config.to_bytes()


def test_set_config_bad_length():
    with pytest.raises(ValueError):
        SnpSetConfig.from_bytes(bytes(10))