class CodecError(Exception):
    """Base class for every failure raised by the Huffman codec."""


class EmptyInputError(CodecError, ValueError):
    """A Huffman tree was requested for a table with no symbols."""


class InvalidFormatError(CodecError, ValueError):
    """The container does not start with the expected marker or layout."""


class InvalidPaddingError(CodecError, ValueError):
    """The declared padding length is outside 0-7 or exceeds the payload."""


class MalformedTreeError(CodecError, ValueError):
    """A tree violates the two-children-per-internal-node invariant."""


class TruncatedTreeError(CodecError, EOFError):
    """The serialized tree ends before its structure is complete."""


class TruncatedPayloadError(CodecError, EOFError):
    """The container is shorter than its declared header or payload."""
