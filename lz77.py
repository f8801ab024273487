from typing import Tuple, Optional, Callable

from tokens import (
    MAX_DISTANCE,
    MAX_LENGTH,
    TOKEN_SIZE,
    TokenReader,
    TokenWriter,
    decode_token,
)


def find_longest_match(history: bytes, lookahead: bytes) -> Tuple[int, int]:
    """Find the longest prefix of ``lookahead`` that occurs in ``history``.

    Lengths are tried from ``len(lookahead)`` down to 1; for each length the
    rightmost occurrence wins, keeping the distance as small as possible.

    :param history: Bytes already processed (search window).
    :type history: bytes
    :param lookahead: Bytes to be encoded next.
    :type lookahead: bytes
    :returns: Tuple ``(distance, length)``; ``(0, 0)`` if nothing matches.
    :rtype: Tuple[int, int]
    """
    for length in range(len(lookahead), 0, -1):
        start = history.rfind(lookahead[:length])
        if start != -1:
            return len(history) - start, length
    return 0, 0


def _check_window(name: str, value: int, limit: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= limit:
        raise ValueError(f"{name} must be in range 0..{limit}, got {value}")
    return value


class LZ77:
    """LZ77 compressor emitting fixed 3-byte tokens.

    Window sizes shape the match search only; the token fields stay
    12 bits (distance) and 4 bits (length), so sizes are capped to what
    those fields can carry.

    :ivar DEFAULT_MAX_DICTIONARY_SIZE: Default history window size.
    :type DEFAULT_MAX_DICTIONARY_SIZE: int
    :ivar DEFAULT_LOOKAHEAD_BUFFER_SIZE: Default lookahead window size.
    :type DEFAULT_LOOKAHEAD_BUFFER_SIZE: int
    """

    DEFAULT_MAX_DICTIONARY_SIZE = MAX_DISTANCE
    DEFAULT_LOOKAHEAD_BUFFER_SIZE = MAX_LENGTH

    def __init__(
        self,
        max_dictionary_size: int = DEFAULT_MAX_DICTIONARY_SIZE,
        lookahead_buffer_size: int = DEFAULT_LOOKAHEAD_BUFFER_SIZE,
    ):
        """Create a compressor with the given window sizes.

        :raises ValueError: If a size exceeds the token format's capacity.
        """
        self._max_dictionary_size = _check_window(
            "max_dictionary_size", max_dictionary_size, MAX_DISTANCE
        )
        self._lookahead_buffer_size = _check_window(
            "lookahead_buffer_size", lookahead_buffer_size, MAX_LENGTH
        )

    def __repr__(self):
        return (
            f"LZ77(max_dictionary_size={self._max_dictionary_size}, "
            f"lookahead_buffer_size={self._lookahead_buffer_size})"
        )

    def __eq__(self, other):
        if not isinstance(other, LZ77):
            return NotImplemented
        return (
            self._max_dictionary_size == other._max_dictionary_size
            and self._lookahead_buffer_size == other._lookahead_buffer_size
        )

    def get_max_dictionary_size(self) -> int:
        return self._max_dictionary_size

    def set_max_dictionary_size(self, new_size: int):
        """Set the history window size.

        :raises ValueError: If ``new_size`` is outside ``0..4095``.
        """
        self._max_dictionary_size = _check_window(
            "max_dictionary_size", new_size, MAX_DISTANCE
        )

    def get_lookahead_buffer_size(self) -> int:
        return self._lookahead_buffer_size

    def set_lookahead_buffer_size(self, new_size: int):
        """Set the lookahead window size.

        :raises ValueError: If ``new_size`` is outside ``0..15``.
        """
        self._lookahead_buffer_size = _check_window(
            "lookahead_buffer_size", new_size, MAX_LENGTH
        )

    max_dictionary_size = property(
        get_max_dictionary_size, set_max_dictionary_size
    )
    lookahead_buffer_size = property(
        get_lookahead_buffer_size, set_lookahead_buffer_size
    )

    def copy(self) -> "LZ77":
        """Return an independent compressor with the same settings.

        :rtype: LZ77
        """
        return LZ77(self._max_dictionary_size, self._lookahead_buffer_size)

    __copy__ = copy

    def compress(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Compress ``data`` with this instance's window sizes.

        :param data: Uncompressed input bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(pos, total)``.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Token stream.
        :rtype: bytes
        """
        return self.compress_with(
            data,
            self._max_dictionary_size,
            self._lookahead_buffer_size,
            on_progress=on_progress,
        )

    @staticmethod
    def compress_with(
        data: bytes,
        max_dictionary_size: int,
        lookahead_buffer_size: int,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Compress raw data into a stream of 3-byte tokens.

        At each position the preceding ``max_dictionary_size`` bytes are
        searched for the longest prefix of the next
        ``lookahead_buffer_size`` bytes. Each token carries the match and
        the byte following it; when the match runs to the end of the input
        that byte is 0, which :meth:`decompress` strips again.

        :param data: Uncompressed input bytes.
        :type data: bytes
        :param max_dictionary_size: History window size (0-4095).
        :type max_dictionary_size: int
        :param lookahead_buffer_size: Lookahead window size (0-15).
        :type lookahead_buffer_size: int
        :param on_progress: Optional callback ``on_progress(pos, total)``
            invoked after every token with the number of input bytes
            consumed and the input size.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Token stream; empty for empty input.
        :rtype: bytes
        :raises ValueError: If a window size exceeds the token format.
        """
        _check_window(
            "max_dictionary_size", max_dictionary_size, MAX_DISTANCE
        )
        _check_window(
            "lookahead_buffer_size", lookahead_buffer_size, MAX_LENGTH
        )

        data = bytes(data)
        total = len(data)
        writer = TokenWriter()
        pos = 0

        while pos < total:
            history = data[max(pos - max_dictionary_size, 0):pos]
            lookahead = data[pos:min(pos + lookahead_buffer_size, total)]
            distance, length = find_longest_match(history, lookahead)

            if pos + length >= total:
                literal = 0
            else:
                literal = data[pos + length]
            writer.write(distance, length, literal)

            pos += length + 1
            if on_progress is not None:
                on_progress(min(pos, total), total)

        return writer.flush()

    @staticmethod
    def decode_stream(
        data: bytes,
        strict: bool = False,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytearray:
        """Replay every token of ``data`` into a fresh buffer.

        The end-of-stream sentinel, if any, is left in place.

        :param data: Token stream.
        :type data: bytes
        :param strict: Raise on back-references before the buffer start.
        :type strict: bool
        :param on_progress: Optional callback ``on_progress(done, total)``
            in compressed bytes.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Reconstructed bytes including any trailing sentinel.
        :rtype: bytearray
        :raises MalformedStreamError: If ``data`` is misaligned.
        :raises CorruptBackReferenceError: In strict mode only.
        """
        reader = TokenReader(data)
        output = bytearray()
        total = len(data)
        done = 0
        for chunk in reader:
            decode_token(output, chunk, strict=strict)
            done += TOKEN_SIZE
            if on_progress is not None:
                on_progress(done, total)
        return output

    @staticmethod
    def decompress(
        data: bytes,
        strict: bool = False,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Decompress a token stream produced by ``compress``.

        A trailing 0 byte is treated as the end-of-stream sentinel and
        dropped, so input that itself ends in 0x00 loses that byte. Use
        :class:`container.Container` when that matters.

        :param data: Token stream.
        :type data: bytes
        :param strict: Raise on back-references before the buffer start
            instead of skipping them.
        :type strict: bool
        :param on_progress: Optional callback ``on_progress(done, total)``.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Decompressed data.
        :rtype: bytes
        :raises MalformedStreamError: If the length is not a multiple of 3.
        :raises CorruptBackReferenceError: In strict mode only.
        """
        output = LZ77.decode_stream(
            data, strict=strict, on_progress=on_progress
        )
        if output and output[-1] == 0:
            del output[-1]
        return bytes(output)
