import struct

import pytest

from container import Container
from errors import MalformedStreamError
from lz77 import LZ77


def test_container_roundtrip_with_progress(progress_recorder):
    data = (b"The quick brown fox jumps over the lazy dog. " * 5)
    box = Container()
    on_prog, calls = progress_recorder
    packed = box.pack(data, on_progress=on_prog)
    assert packed.startswith(Container.MAGIC)
    assert Container.read_header(packed) == len(data)

    out = box.unpack(packed, on_progress=on_prog)
    assert out == data
    assert (len(data), len(data)) in calls


@pytest.mark.parametrize(
    "data", [b"ab\x00", b"a\x00a\x00", b"\x00", b"\x00\x00\x00\x00"]
)
def test_container_keeps_trailing_zero_bytes(data):
    box = Container()
    assert box.unpack(box.pack(data)) == data


def test_container_empty_input():
    box = Container()
    packed = box.pack(b"")
    assert len(packed) == Container.HEADER.size
    assert box.unpack(packed) == b""


def test_container_uses_copy_of_settings():
    lz = LZ77(16, 4)
    box = Container(lz)
    lz.set_max_dictionary_size(0)
    assert box.lz77.get_max_dictionary_size() == 16


def test_container_bad_headers():
    with pytest.raises(ValueError):
        Container().unpack(b"LZ7")
    with pytest.raises(ValueError):
        Container().unpack(struct.pack(">4sBI", b"BAD!", 1, 0))
    with pytest.raises(ValueError):
        Container().unpack(struct.pack(">4sBI", Container.MAGIC, 99, 0))


def test_container_size_mismatch_raises():
    packed = bytearray(Container().pack(b"hello"))
    packed[5:9] = struct.pack(">I", 3)
    with pytest.raises(MalformedStreamError):
        Container().unpack(bytes(packed))


def test_is_framed():
    assert Container.is_framed(Container().pack(b"x"))
    assert not Container.is_framed(LZ77().compress(b"x"))
