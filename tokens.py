from typing import Iterator, NamedTuple

from errors import (
    CorruptBackReferenceError,
    FieldOverflowError,
    MalformedStreamError,
)

TOKEN_SIZE = 3  #: Bytes per token
MAX_DISTANCE = 0x0FFF  #: Largest distance a 12-bit field can hold
MAX_LENGTH = 0x0F  #: Largest length a 4-bit field can hold


class Token(NamedTuple):
    """A decoded token.

    :ivar distance: Bytes to step back from the end of the output.
    :type distance: int
    :ivar length: Number of bytes to copy from ``distance`` back.
    :type length: int
    :ivar literal: Byte appended after the copy.
    :type literal: int
    """

    distance: int
    length: int
    literal: int

    @property
    def is_literal(self) -> bool:
        """``True`` when the token carries no back-reference.

        :rtype: bool
        """
        return self.distance == 0 and self.length == 0


def encode_token(distance: int, length: int, literal: int) -> bytes:
    """Pack ``(distance, length, literal)`` into a 3-byte token.

    Layout: low 8 bits of distance, then high 4 bits of distance in the
    low nibble with length in the high nibble, then the literal byte.

    :param distance: Back-reference distance (0-4095).
    :type distance: int
    :param length: Match length (0-15).
    :type length: int
    :param literal: Byte following the match (0-255).
    :type literal: int
    :returns: Encoded token.
    :rtype: bytes
    :raises FieldOverflowError: If a value does not fit its field.
    """
    if not 0 <= distance <= MAX_DISTANCE:
        raise FieldOverflowError(
            f"Distance {distance} out of range 0..{MAX_DISTANCE}"
        )
    if not 0 <= length <= MAX_LENGTH:
        raise FieldOverflowError(
            f"Length {length} out of range 0..{MAX_LENGTH}"
        )
    if not 0 <= literal <= 0xFF:
        raise FieldOverflowError(f"Literal {literal} is not a byte")
    return bytes(
        (
            distance & 0xFF,
            ((distance >> 8) & 0x0F) | ((length & 0x0F) << 4),
            literal,
        )
    )


def parse_token(chunk: bytes) -> Token:
    """Unpack a 3-byte chunk without applying it.

    :param chunk: Exactly ``TOKEN_SIZE`` bytes.
    :type chunk: bytes
    :returns: The decoded token.
    :rtype: Token
    :raises MalformedStreamError: If ``chunk`` has the wrong size.
    """
    if len(chunk) != TOKEN_SIZE:
        raise MalformedStreamError(
            f"Token must be {TOKEN_SIZE} bytes, got {len(chunk)}"
        )
    distance = chunk[0] | ((chunk[1] & 0x0F) << 8)
    length = chunk[1] >> 4
    return Token(distance, length, chunk[2])


def decode_token(
    output: bytearray, chunk: bytes, strict: bool = False
) -> None:
    """Apply one token to ``output`` in place.

    The back-reference is replayed one byte at a time from the growing
    buffer, so a distance shorter than the length repeats the pattern.
    A reference reaching before the start of ``output`` is skipped unless
    ``strict`` is set. The literal byte is always appended.

    :param output: Buffer being reconstructed.
    :type output: bytearray
    :param chunk: Encoded token.
    :type chunk: bytes
    :param strict: Raise on out-of-range references instead of skipping.
    :type strict: bool
    :returns: None
    :rtype: None
    :raises CorruptBackReferenceError: In strict mode, if the distance is
        zero or reaches before the start of ``output``.
    """
    token = parse_token(chunk)
    if not token.is_literal:
        if strict and (token.distance == 0 or token.distance > len(output)):
            raise CorruptBackReferenceError(
                f"Invalid LZ77 distance {token.distance} "
                f"at output position {len(output)}"
            )
        start = max(len(output) - token.distance, 0)
        if start < len(output):
            for k in range(token.length):
                output.append(output[start + k])
    output.append(token.literal)


class TokenWriter:
    """Accumulates encoded tokens.

    :ivar buffer: Bytes written so far.
    :type buffer: bytearray
    :ivar count: Number of tokens written.
    :type count: int
    """

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.count = 0

    def write(self, distance: int, length: int, literal: int) -> None:
        """Encode and append one token.

        :raises FieldOverflowError: See :func:`encode_token`.
        """
        self.buffer.extend(encode_token(distance, length, literal))
        self.count += 1

    def flush(self) -> bytes:
        """Return everything written so far.

        :rtype: bytes
        """
        return bytes(self.buffer)


class TokenReader:
    """Iterates a compressed buffer in token-sized chunks.

    Each iteration starts again from the first token.

    :ivar data: Compressed stream.
    :type data: bytes
    """

    def __init__(self, data: bytes):
        """Create a reader over ``data``.

        :param data: Compressed stream.
        :type data: bytes
        :raises MalformedStreamError: If ``data`` is not a whole number
            of tokens.
        """
        if len(data) % TOKEN_SIZE:
            raise MalformedStreamError(
                f"Compressed length {len(data)} is not "
                f"a multiple of {TOKEN_SIZE}"
            )
        self.data = data

    def __len__(self) -> int:
        return len(self.data) // TOKEN_SIZE

    def __iter__(self) -> Iterator[bytes]:
        for pos in range(0, len(self.data), TOKEN_SIZE):
            yield bytes(self.data[pos:pos + TOKEN_SIZE])


def iter_tokens(data: bytes) -> Iterator[Token]:
    """Yield the tokens of a compressed stream.

    :raises MalformedStreamError: If ``data`` is misaligned.
    """
    for chunk in TokenReader(data):
        yield parse_token(chunk)
