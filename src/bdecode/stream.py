"""
Streaming front-end: decodes bencoded scalars from a byte source that may
deliver a value over many short reads.

Each decode request re-runs the integer or string recognizer over everything
buffered so far. INCOMPLETE_INPUT means "read more and try again"; any other
error ends the request at once. Bytes left after a successful decode stay
buffered for the next call.
"""
import logging
from typing import Optional, Protocol, Union

from . import config
from .decoder import INT_START, parse_int, parse_string
from .errors import BencodeDecodeError, ErrorKind
from .structure import BencodeInt, BencodeType

logger = logging.getLogger(__name__)

__all__ = ["ByteSource", "AsyncByteSource", "StreamBuffer", "StreamDecoder", "AsyncStreamDecoder"]

# Destinations a scalar can be bound to
DESTINATIONS = (int, bytes, str)

Scalar = Union[int, bytes, str]


class ByteSource(Protocol):
    """
    Anything with a blocking ``read(n)`` returning bytes; only ``b""`` signals
    end of data. Non-blocking readers that return None are not supported.
    """
    def read(self, size: int) -> bytes: ...


class AsyncByteSource(Protocol):
    """asyncio.StreamReader, aiohttp response content and the like."""
    async def read(self, size: int) -> bytes: ...


class StreamBuffer:
    """
    Growable buffer owned by a single decoder.
    Bytes at [0, filled) are valid data read from the source.
    """
    def __init__(self, size: int):
        self.data = bytearray(max(size, 1))
        self.filled = 0

    def view(self) -> bytes:
        return bytes(self.data[:self.filled])

    def append(self, chunk: bytes) -> int:
        """Copies ``chunk`` into the tail, growing storage when needed."""
        needed = self.filled + len(chunk)
        if needed > len(self.data):
            # at least double
            grow = max(needed - len(self.data), len(self.data))
            self.data.extend(bytes(grow))
        self.data[self.filled:needed] = chunk
        self.filled = needed
        return len(chunk)

    def consume(self, n: int):
        """Drops the first ``n`` bytes and moves the leftovers to the front."""
        if not 0 <= n <= self.filled:
            raise ValueError(f"Cannot consume {n} of {self.filled} buffered bytes")
        leftover = self.filled - n
        self.data[:leftover] = self.data[n:self.filled]
        self.filled = leftover


class _StreamDecoderBase:
    def __init__(self, read_size: Optional[int] = None, buffer_size: Optional[int] = None,
                 encoding: Optional[str] = None):
        self.read_size = read_size or config.READ_SIZE
        self.encoding = encoding or config.TEXT_ENCODING
        self._buffer = StreamBuffer(buffer_size or config.BUFFER_SIZE)

    @property
    def buffered(self) -> int:
        """Number of bytes read from the source but not yet decoded."""
        return self._buffer.filled

    @staticmethod
    def _check_destination(into):
        if into is None:
            raise BencodeDecodeError(ErrorKind.INVALID_DESTINATION, "Destination can't be None")
        if not any(into is target for target in DESTINATIONS):
            raise BencodeDecodeError(
                ErrorKind.INVALID_DESTINATION,
                f"Unsupported destination {into!r}; expected int, bytes or str",
            )

    def _attempt(self) -> Optional[BencodeType]:
        """
        Runs the scalar recognizer over the whole buffered prefix.
        Returns None when more bytes are needed.
        """
        buf = self._buffer.view()
        recognizer = parse_int if buf[0] == INT_START else parse_string
        try:
            value, consumed = recognizer(buf)
        except BencodeDecodeError as err:
            if not err.retryable:
                raise
            logger.debug("Incomplete value in %d buffered bytes, reading more", len(buf))
            return None

        self._buffer.consume(consumed)
        if self._buffer.filled:
            logger.debug("Keeping %d leftover bytes for the next value", self._buffer.filled)
        return value

    def _received(self, chunk) -> bool:
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"Byte source read() must return bytes (b'' at end of data), got {type(chunk).__name__}"
            )
        if not chunk:
            logger.debug("Source closed with %d bytes buffered", self._buffer.filled)
            return False
        self._buffer.append(chunk)
        logger.debug("Read %d bytes (%d buffered)", len(chunk), self._buffer.filled)
        return True

    def _stream_ended(self) -> BencodeDecodeError:
        if self._buffer.filled:
            msg = f"Stream ended before value completed ({self._buffer.filled} bytes buffered)"
        else:
            msg = "Stream ended before a value started"
        return BencodeDecodeError(ErrorKind.STREAM_ENDED, msg)

    def _bind(self, value: BencodeType, into) -> Scalar:
        if isinstance(value, BencodeInt):
            if into is int:
                return value.value
        elif into is bytes:
            return value.value
        elif into is str:
            try:
                return value.value.decode(self.encoding)
            except UnicodeDecodeError as exc:
                raise BencodeDecodeError(
                    ErrorKind.MALFORMED_STRING, f"String is not valid {self.encoding}"
                ) from exc

        raise BencodeDecodeError(
            ErrorKind.DESTINATION_MISMATCH,
            f"Cannot bind {type(value).__name__} to {into.__name__}",
        )


class StreamDecoder(_StreamDecoderBase):
    """
    Decodes integers and strings from a blocking byte source.

        dec = StreamDecoder(sock.makefile("rb"))
        n = dec.decode(int)

    Not safe to share between threads. Lists and dictionaries are not
    supported here; buffer them fully and use :func:`bdecode.parse_list` /
    :func:`bdecode.parse_dict`.
    """
    def __init__(self, source: ByteSource, **kwargs):
        super().__init__(**kwargs)
        self.source = source

    def decode(self, into) -> Scalar:
        """Decodes the next value into ``into`` (``int``, ``bytes`` or ``str``)."""
        self._check_destination(into)

        while True:
            if self._buffer.filled:
                value = self._attempt()
                if value is not None:
                    return self._bind(value, into)

            if not self._received(self.source.read(self.read_size)):
                raise self._stream_ended()

    def decode_int(self) -> int:
        return self.decode(int)

    def decode_bytes(self) -> bytes:
        return self.decode(bytes)

    def decode_str(self) -> str:
        return self.decode(str)


class AsyncStreamDecoder(_StreamDecoderBase):
    """Same as :class:`StreamDecoder` for asyncio readers."""
    def __init__(self, reader: AsyncByteSource, **kwargs):
        super().__init__(**kwargs)
        self.reader = reader

    async def decode(self, into) -> Scalar:
        self._check_destination(into)

        while True:
            if self._buffer.filled:
                value = self._attempt()
                if value is not None:
                    return self._bind(value, into)

            if not self._received(await self.reader.read(self.read_size)):
                raise self._stream_ended()

    async def decode_int(self) -> int:
        return await self.decode(int)

    async def decode_bytes(self) -> bytes:
        return await self.decode(bytes)

    async def decode_str(self) -> str:
        return await self.decode(str)
