import pytest

from amdsev.platform import Build, Generation, Version


def test_version_str():
    assert str(Version(1, 2)) == "1.2"


def test_version_from_u16_nibbles():
    assert Version.from_u16(0x45) == Version(4, 5)


def test_version_from_u16_ignores_high_byte():
    for value in (0x0000, 0x1234, 0xABCD, 0xFFFF):
        assert Version.from_u16(value) == Version.from_u16(value & 0xFF)


def test_version_ordering():
    assert Version(1, 9) < Version(2, 0)
    assert Version(2, 1) > Version(2, 0)
    assert sorted([Version(3, 0), Version(1, 5), Version(1, 2)]) == [
        Version(1, 2),
        Version(1, 5),
        Version(3, 0),
    ]


def test_version_default_is_zero():
    assert Version() == Version(0, 0)


def test_version_rejects_out_of_range():
    with pytest.raises(ValueError):
        Version(256, 0)
    with pytest.raises(ValueError):
        Version(0, -1)


def test_build_str():
    assert str(Build(Version(1, 2), 3)) == "1.2.3"


def test_build_to_bytes_layout():
    assert Build(Version(1, 2), 3).to_bytes() == bytes([1, 2, 3])


def test_build_from_bytes():
    assert Build.from_bytes(bytes([7, 8, 9])) == Build(Version(7, 8), 9)


@pytest.mark.parametrize("major,minor,build", [(0, 0, 0), (255, 255, 255), (1, 49, 6)])
def test_build_round_trip(major, minor, build):
    original = Build(Version(major, minor), build)
    assert Build.from_bytes(original.to_bytes()) == original


def test_build_from_bytes_wrong_length():
    with pytest.raises(ValueError):
        Build.from_bytes(b"\x01\x02")
    with pytest.raises(ValueError):
        Build.from_bytes(b"\x01\x02\x03\x04")


def test_build_ordering_by_version_then_build():
    assert Build(Version(1, 0), 9) < Build(Version(1, 1), 0)
    assert Build(Version(1, 1), 1) < Build(Version(1, 1), 2)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("naples", Generation.NAPLES),
        ("Rome", Generation.ROME),
        ("MILAN", Generation.MILAN),
        ("genoa", Generation.GENOA),
        ("bergamo", Generation.GENOA),
        ("Siena", Generation.GENOA),
    ],
)
def test_generation_from_name(name, expected):
    assert Generation.from_name(name) is expected


def test_generation_from_unknown_name():
    with pytest.raises(ValueError):
        Generation.from_name("unknown-chip")


@pytest.mark.parametrize(
    "generation,title",
    [
        (Generation.NAPLES, "Naples"),
        (Generation.ROME, "Rome"),
        (Generation.MILAN, "Milan"),
        (Generation.GENOA, "Genoa"),
    ],
)
def test_generation_titlecase(generation, title):
    assert generation.titlecase() == title


def test_generation_titlecase_round_trip():
    for generation in Generation:
        assert Generation.from_name(generation.titlecase()) is generation