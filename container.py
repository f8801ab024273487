import struct
from typing import Optional, Callable

from errors import MalformedStreamError
from lz77 import LZ77


class Container:
    """Framed token stream that records the original size.

    The raw token stream cannot tell a trailing 0x00 payload byte from the
    end-of-stream sentinel. The frame stores the original length so the
    decoder can trim exactly.

    Frame layout:
    - Magic: ``LZ7T`` (4 bytes)
    - Version: uint8
    - Original size: uint32, big-endian
    - Token stream produced by :meth:`LZ77.compress`

    :ivar MAGIC: Frame magic number.
    :type MAGIC: bytes
    :ivar VERSION: Frame format version.
    :type VERSION: int
    :ivar lz77: Compressor used for the payload.
    :type lz77: LZ77
    """

    MAGIC = b"LZ7T"
    VERSION = 1
    HEADER = struct.Struct(">4sBI")

    def __init__(self, lz77: Optional[LZ77] = None):
        """Wrap ``lz77`` (default settings if omitted).

        :param lz77: Configured compressor.
        :type lz77: Optional[LZ77]
        """
        self.lz77 = lz77.copy() if lz77 is not None else LZ77()

    def pack(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Compress ``data`` and prepend the frame header.

        :param data: Input bytes to compress.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Framed stream. For empty input, a bare header.
        :rtype: bytes
        """
        header = self.HEADER.pack(self.MAGIC, self.VERSION, len(data))
        return header + self.lz77.compress(data, on_progress=on_progress)

    def unpack(
        self,
        data: bytes,
        strict: bool = False,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Decompress a stream produced by :meth:`pack`.

        :param data: Framed stream.
        :type data: bytes
        :param strict: Passed to :meth:`LZ77.decode_stream`.
        :type strict: bool
        :param on_progress: Optional callback ``on_progress(done, total)``.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Original bytes.
        :rtype: bytes
        :raises ValueError: If the header is truncated, the magic is wrong
            or the version is unsupported.
        :raises MalformedStreamError: If the payload is misaligned or does
            not decode to the recorded size.
        """
        orig_size = self.read_header(data)
        payload = data[self.HEADER.size:]
        output = self.lz77.decode_stream(
            payload, strict=strict, on_progress=on_progress
        )
        if len(output) == orig_size + 1 and output[-1] == 0:
            del output[-1]
        if len(output) != orig_size:
            raise MalformedStreamError(
                f"Decoded {len(output)} bytes, expected {orig_size}"
            )
        return bytes(output)

    @classmethod
    def read_header(cls, data: bytes) -> int:
        """Validate the frame header and return the original size.

        :param data: Framed stream (at least the header).
        :type data: bytes
        :returns: Original size recorded in the header.
        :rtype: int
        :raises ValueError: If the header is invalid.
        """
        if len(data) < cls.HEADER.size:
            raise ValueError("Truncated header")
        magic, version, orig_size = cls.HEADER.unpack_from(data)
        if magic != cls.MAGIC:
            raise ValueError("Invalid stream format (bad magic)")
        if version != cls.VERSION:
            raise ValueError(f"Unsupported version: {version}")
        return orig_size

    @classmethod
    def is_framed(cls, data: bytes) -> bool:
        """``True`` if ``data`` starts with the frame magic.

        :rtype: bool
        """
        return data[:len(cls.MAGIC)] == cls.MAGIC
