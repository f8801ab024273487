class LZ77Error(ValueError):
    """Base class for token stream errors.

    Subclasses ``ValueError`` so callers catching the generic error keep
    working.
    """


class MalformedStreamError(LZ77Error):
    """Compressed data is not a whole number of 3-byte tokens,
    or a framed stream does not decode to its recorded size."""


class CorruptBackReferenceError(LZ77Error):
    """A back-reference points before the start of the output buffer.

    Only raised by strict decoding; lenient decoding skips the copy.
    """


class FieldOverflowError(LZ77Error):
    """A value does not fit in its token field."""
