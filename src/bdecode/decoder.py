"""
Bencode recognizers for BitTorrent metainfo, tracker and peer-wire payloads.

Every recognizer takes a byte slice that *begins* with an encoded value
(trailing bytes are allowed) and returns ``(value, consumed)``:

    parse_int(b"i42e4:spam")    -> (BencodeInt(42), 4)
    parse_string(b"4:spami3e")  -> (BencodeString(b'spam'), 6)

Failures raise :class:`BencodeDecodeError`. A kind of
``ErrorKind.INCOMPLETE_INPUT`` means the bytes seen so far are a valid prefix
and more data could complete the value; every other kind is final.

Only the integer and string recognizers tell "not enough data" apart from
"bad data" precisely. Lists and dictionaries treat running out of bytes as a
syntax error, so a caller decoding them from a stream must buffer the whole
container first.
"""
import re
from enum import Enum, auto
from typing import Tuple

from .errors import BencodeDecodeError, ErrorKind
from .structure import (
    INT64_MAX,
    INT64_MIN,
    BencodeDict,
    BencodeInt,
    BencodeList,
    BencodeString,
    BencodeType,
)

__all__ = [
    "Token",
    "dispatch",
    "parse_int",
    "parse_string",
    "parse_list",
    "parse_dict",
    "parse_value",
    "decode",
]

INT_START = ord("i")
LIST_START = ord("l")
DICT_START = ord("d")
END = ord("e")
COLON = ord(":")

# Leading zeros and "-0" are accepted
_INT_DIGITS = re.compile(rb"-?[0-9]+")

# 2**63 has 19 digits
MAX_INT64_DIGITS = 19


class Token(Enum):
    """What the lookahead byte says comes next."""
    INTEGER = auto()
    STRING = auto()
    LIST = auto()
    DICTIONARY = auto()
    END = auto()


def _is_digit(byte: int) -> bool:
    return 0x30 <= byte <= 0x39


def dispatch(byte: int) -> Token:
    """Maps a lookahead byte to the recognizer that handles it."""
    if byte == INT_START:
        return Token.INTEGER
    if _is_digit(byte):
        return Token.STRING
    if byte == LIST_START:
        return Token.LIST
    if byte == DICT_START:
        return Token.DICTIONARY
    if byte == END:
        return Token.END
    raise BencodeDecodeError(
        ErrorKind.MALFORMED_VALUE, f"Invalid token {bytes([byte])!r}"
    )


# --------------------------
# Recognizers
#
# Internal forms take the whole buffer plus the start of the slice so that
# nested values never copy the remaining input. Consumed counts and error
# offsets are relative to ``start``.
# --------------------------

def _significant(digits: bytes) -> bytes:
    """Strips leading zeros, keeping a single zero for zero itself."""
    return digits.lstrip(b"0") or b"0"


def _parse_int(buf: bytes, start: int) -> Tuple[BencodeInt, int]:
    """Parses an integer from the Bencoded data."""
    if start >= len(buf):
        raise BencodeDecodeError(ErrorKind.INCOMPLETE_INPUT, "No integer data", 0)
    if buf[start] != INT_START:
        raise BencodeDecodeError(ErrorKind.MALFORMED_INTEGER, "Expected 'i'", 0)

    end = buf.find(b"e", start + 1)
    if end == -1:
        raise BencodeDecodeError(
            ErrorKind.INCOMPLETE_INPUT, "Integer is not terminated yet", len(buf) - start
        )

    digits = buf[start + 1:end]
    if not _INT_DIGITS.fullmatch(digits):
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_INTEGER, f"Invalid integer format {digits[:32]!r}", 1
        )

    negative = digits.startswith(b"-")
    magnitude = _significant(digits[1:] if negative else digits)
    if len(magnitude) > MAX_INT64_DIGITS:
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_INTEGER, "Integer out of 64-bit range", 1
        )

    num = -int(magnitude) if negative else int(magnitude)
    if not INT64_MIN <= num <= INT64_MAX:
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_INTEGER, "Integer out of 64-bit range", 1
        )

    return BencodeInt(num), end + 1 - start


def _parse_string(buf: bytes, start: int) -> Tuple[BencodeString, int]:
    """Parses a byte string from the Bencoded data."""
    size = len(buf)
    if start >= size:
        raise BencodeDecodeError(ErrorKind.INCOMPLETE_INPUT, "No string data", 0)
    if not _is_digit(buf[start]):
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_STRING, "String must start with a length digit", 0
        )

    colon = start
    while colon < size and _is_digit(buf[colon]):
        colon += 1

    # Digits may simply not be followed by anything yet
    if colon == size:
        raise BencodeDecodeError(
            ErrorKind.INCOMPLETE_INPUT, "Length prefix is not terminated yet", colon - start
        )
    if buf[colon] != COLON:
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_STRING, "Expected ':' after string length", colon - start
        )

    length_digits = _significant(buf[start:colon])
    if len(length_digits) > MAX_INT64_DIGITS or int(length_digits) > INT64_MAX:
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_STRING, "String length out of 64-bit range", 0
        )

    length = int(length_digits)
    payload_start = colon + 1
    payload_end = payload_start + length
    if payload_end > size:
        raise BencodeDecodeError(
            ErrorKind.INCOMPLETE_INPUT,
            f"String needs {length} bytes, {size - payload_start} available",
            payload_start - start,
        )

    return BencodeString(buf[payload_start:payload_end]), payload_end - start


class _Container:
    """A list or dictionary still being filled while walking nested data."""
    __slots__ = ("token", "start", "items", "key")

    def __init__(self, token: Token, start: int):
        self.token = token
        self.start = start
        self.items = {} if token is Token.DICTIONARY else []
        self.key = None  # dictionary key waiting for its value

    @property
    def kind(self) -> ErrorKind:
        if self.token is Token.DICTIONARY:
            return ErrorKind.MALFORMED_DICTIONARY
        return ErrorKind.MALFORMED_LIST

    def add(self, value: BencodeType):
        if self.token is Token.DICTIONARY:
            # duplicate keys: last one wins
            self.items[self.key] = value
            self.key = None
        else:
            self.items.append(value)

    def finish(self) -> BencodeType:
        if self.token is Token.DICTIONARY:
            return BencodeDict(self.items)
        return BencodeList(self.items)


def _parse_nested(buf: bytes, start: int):
    """
    Parses the list or dictionary opening at ``start``.

    Nested containers are tracked on an explicit stack, so nesting depth is
    bounded only by memory. Each error offset is relative to the container
    that failed.
    """
    stack = [_Container(dispatch(buf[start]), start)]
    pos = start + 1  # skip 'l' / 'd'
    while True:
        frame = stack[-1]
        if pos >= len(buf):
            if frame.key is not None:
                raise BencodeDecodeError(
                    frame.kind, f"Key {frame.key!r} has no value", pos - frame.start
                )
            name = "Dictionary" if frame.token is Token.DICTIONARY else "List"
            raise BencodeDecodeError(frame.kind, f"{name} is not terminated", pos - frame.start)

        lead = buf[pos]
        if frame.token is Token.DICTIONARY and frame.key is None and lead != END:
            # keys MUST be strings
            if not _is_digit(lead):
                raise BencodeDecodeError(
                    frame.kind, "Dictionary key must be a byte string", pos - frame.start
                )
            key, consumed = _parse_string(buf, pos)
            frame.key = key.value
            pos += consumed
            continue

        if lead == END and frame.key is not None:
            raise BencodeDecodeError(
                frame.kind, f"Key {frame.key!r} has no value", pos - frame.start
            )

        token = dispatch(lead)
        if token is Token.END:
            pos += 1  # skip 'e'
            stack.pop()
            value = frame.finish()
            if not stack:
                return value, pos - start
            stack[-1].add(value)
        elif token in (Token.LIST, Token.DICTIONARY):
            stack.append(_Container(token, pos))
            pos += 1
        else:
            value, consumed = _RECOGNIZERS[token](buf, pos)
            frame.add(value)
            pos += consumed


def _parse_list(buf: bytes, start: int) -> Tuple[BencodeList, int]:
    """Parses a list from the Bencoded data."""
    if start >= len(buf) or buf[start] != LIST_START:
        raise BencodeDecodeError(ErrorKind.MALFORMED_LIST, "Expected 'l'", 0)
    return _parse_nested(buf, start)


def _parse_dict(buf: bytes, start: int) -> Tuple[BencodeDict, int]:
    """Parses a dictionary from the Bencoded data."""
    if start >= len(buf) or buf[start] != DICT_START:
        raise BencodeDecodeError(ErrorKind.MALFORMED_DICTIONARY, "Expected 'd'", 0)
    return _parse_nested(buf, start)


_RECOGNIZERS = {
    Token.INTEGER: _parse_int,
    Token.STRING: _parse_string,
    Token.LIST: _parse_list,
    Token.DICTIONARY: _parse_dict,
}


def _parse_value(buf: bytes, start: int) -> Tuple[BencodeType, int]:
    """Parses whichever value starts at ``start``."""
    if start >= len(buf):
        raise BencodeDecodeError(ErrorKind.INCOMPLETE_INPUT, "No data", 0)

    token = dispatch(buf[start])
    if token is Token.END:
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_VALUE, "Unexpected 'e' where a value was expected", 0
        )
    return _RECOGNIZERS[token](buf, start)


def _as_bytes(data) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"Cannot decode object of type {type(data)}; expected bytes")


# --------------------------
# Public entry points
# --------------------------

def parse_int(data) -> Tuple[BencodeInt, int]:
    """
    Parses ``i<digits>e`` at the start of ``data``.

    "i42e<remaining bytes>" -> (BencodeInt(42), 4)
    """
    return _parse_int(_as_bytes(data), 0)


def parse_string(data) -> Tuple[BencodeString, int]:
    """
    Parses ``<length>:<payload>`` at the start of ``data``. The payload is
    returned untouched and may hold any byte.

    "4:spam<remaining bytes>" -> (BencodeString(b'spam'), 6)
    """
    return _parse_string(_as_bytes(data), 0)


def parse_list(data) -> Tuple[BencodeList, int]:
    """
    Parses ``l<values>e`` at the start of ``data``.

    "li3ei5ee<remaining bytes>" -> (BencodeList([...]), 8)

    The whole list must already be in ``data``: a missing terminator is
    reported as MALFORMED_LIST, not INCOMPLETE_INPUT.
    Nesting depth is not limited.
    """
    return _parse_list(_as_bytes(data), 0)


def parse_dict(data) -> Tuple[BencodeDict, int]:
    """
    Parses ``d<key><value>...e`` at the start of ``data``.

    "d3:cow3:mooe<remaining bytes>" -> (BencodeDict({b'cow': ...}), 12)

    Like :func:`parse_list`, the dictionary must be fully buffered. When a
    key repeats, the last value wins.
    """
    return _parse_dict(_as_bytes(data), 0)


def parse_value(data) -> Tuple[BencodeType, int]:
    """Parses whichever value starts ``data``; used to walk envelopes segment by segment."""
    return _parse_value(_as_bytes(data), 0)


def decode(data) -> BencodeType:
    """
    Convenience function to decode one complete Bencoded document.
    Trailing bytes after the value are rejected.
    """
    buf = _as_bytes(data)
    value, consumed = _parse_value(buf, 0)
    if consumed != len(buf):
        raise BencodeDecodeError(
            ErrorKind.MALFORMED_VALUE,
            f"{len(buf) - consumed} trailing bytes after value",
            consumed,
        )
    return value
