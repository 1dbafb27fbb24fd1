"""
Error kinds raised while decoding bencoded data.
"""
from enum import Enum, auto
from typing import Optional


class ErrorKind(Enum):
    """Closed set of reasons a decode can fail."""
    MALFORMED_INTEGER = auto()
    MALFORMED_STRING = auto()
    MALFORMED_LIST = auto()
    MALFORMED_DICTIONARY = auto()
    MALFORMED_VALUE = auto()

    # Not enough bytes buffered yet to accept or reject the value
    INCOMPLETE_INPUT = auto()

    INVALID_DESTINATION = auto()
    DESTINATION_MISMATCH = auto()
    STREAM_ENDED = auto()


class BencodeDecodeError(Exception):
    """
    Raised for every decoding failure.

    ``kind`` tells callers what went wrong; ``offset`` is the position of the
    offending byte relative to the slice handed to the failing recognizer.
    """
    def __init__(self, kind: ErrorKind, message: str, offset: Optional[int] = None):
        self.kind = kind
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """True when more input could still make the value parseable."""
        return self.kind is ErrorKind.INCOMPLETE_INPUT

    def __repr__(self):
        return f"BencodeDecodeError({self.kind.name}, {str(self)!r})"
