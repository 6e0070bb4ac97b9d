import pytest

from x16core.utf8 import REPLACEMENT, utf8_encode


def test_ascii():
    assert utf8_encode(ord("A")) == b"A"


def test_replacement_character():
    assert utf8_encode(0xFFFD) == REPLACEMENT


@pytest.mark.parametrize(
    "code_point",
    [0x00, 0x7F, 0x80, 0xE9, 0x7FF, 0x800, 0x20AC, 0xFFFF, 0x10000, 0x1F600, 0x10FFFF],
)
def test_matches_builtin_encoder(code_point):
    encoded = utf8_encode(code_point)
    assert encoded == chr(code_point).encode("utf-8")
    assert encoded.decode("utf-8") == chr(code_point)


def test_surrogate_is_encoded():
    encoded = utf8_encode(0xD800)
    assert encoded.decode("utf-8", "surrogatepass") == "\ud800"


@pytest.mark.parametrize("code_point", [0x110000, -1])
def test_out_of_range(code_point):
    with pytest.raises(ValueError):
        utf8_encode(code_point)