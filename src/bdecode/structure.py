"""
Data structures for representing decoded Bencode values.
"""
from types import MappingProxyType

__all__ = [
    "BencodeType",
    "BencodeInt",
    "BencodeString",
    "BencodeList",
    "BencodeDict",
]

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class BencodeType:
    """Base class for all Bencode data types. Instances are immutable."""
    __slots__ = ("_value",)

    @property
    def value(self):
        return self._value

    def __setattr__(self, name, val):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash((type(self).__name__, self._value))

    def to_python(self):
        """Recursively unwraps into plain int / bytes / list / dict."""
        raise NotImplementedError

    def _set(self, value):
        object.__setattr__(self, "_value", value)


class BencodeInt(BencodeType):
    """Represents a Bencoded integer."""
    __slots__ = ()

    def __init__(self, value: int):
        # bool is an int subclass but never a bencode integer
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("BencodeInt requires an integer.")
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueError("BencodeInt must fit in a signed 64-bit integer.")
        self._set(value)

    def to_python(self) -> int:
        return self._value

    def __repr__(self):
        return f"BencodeInt({self._value})"


class BencodeString(BencodeType):
    """Represents a Bencoded byte string."""
    __slots__ = ()

    def __init__(self, value: bytes):
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError("BencodeString requires bytes.")
        self._set(bytes(value))

    def to_python(self) -> bytes:
        return self._value

    def __repr__(self):
        return f"BencodeString({self._value!r})"


class BencodeList(BencodeType):
    """Represents a Bencoded list. Items keep their encounter order."""
    __slots__ = ()

    def __init__(self, value):
        if not isinstance(value, (list, tuple)):
            raise TypeError("BencodeList requires a list.")
        for item in value:
            if not isinstance(item, BencodeType):
                raise TypeError("BencodeList items must be Bencode values.")
        self._set(tuple(value))

    def to_python(self) -> list:
        return [item.to_python() for item in self._value]

    def __len__(self):
        return len(self._value)

    def __getitem__(self, idx):
        return self._value[idx]

    def __repr__(self):
        return f"BencodeList({list(self._value)!r})"


class BencodeDict(BencodeType):
    """
    Represents a Bencoded dictionary.

    Keys are raw bytes. Encounter order is preserved; it carries no meaning
    but is kept so the original layout can be reproduced.
    """
    __slots__ = ()

    def __init__(self, value: dict):
        if not isinstance(value, dict):
            raise TypeError("BencodeDict requires a dict.")
        # keys must be bytes (bencode requirement)
        for k, v in value.items():
            if not isinstance(k, bytes):
                raise TypeError("BencodeDict keys must be bytes.")
            if not isinstance(v, BencodeType):
                raise TypeError("BencodeDict values must be Bencode values.")
        self._set(MappingProxyType(dict(value)))

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return dict(self._value) == dict(other._value)

    __hash__ = None

    def to_python(self) -> dict:
        return {k: v.to_python() for k, v in self._value.items()}

    def get(self, key: bytes, default=None):
        return self._value.get(key, default)

    def __len__(self):
        return len(self._value)

    def __getitem__(self, key: bytes):
        return self._value[key]

    def __contains__(self, key):
        return key in self._value

    def __repr__(self):
        return f"BencodeDict({dict(self._value)!r})"
