import io

import pytest

from bdecode.errors import BencodeDecodeError, ErrorKind
from bdecode.stream import StreamBuffer, StreamDecoder


class ChunkedSource:
    """
    Fake byte source that hands out data in fixed pieces,
    one piece per read() call, then signals end of data.
    """
    def __init__(self, *chunks):
        self.chunks = list(chunks)
        self.reads = 0

    def read(self, size):
        self.reads += 1
        if not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        if len(chunk) > size:
            self.chunks.insert(0, chunk[size:])
            chunk = chunk[:size]
        return chunk


def _kind(fn, *args):
    with pytest.raises(BencodeDecodeError) as exc:
        fn(*args)
    return exc.value.kind


# --------------------------
# Buffer
# --------------------------

def test_buffer_append_and_consume():
    buf = StreamBuffer(4)
    buf.append(b"4:sp")
    buf.append(b"ami3e")
    assert buf.filled == 9
    assert buf.view() == b"4:spami3e"

    buf.consume(6)
    assert buf.filled == 3
    assert buf.view() == b"i3e"


def test_buffer_grows():
    buf = StreamBuffer(2)
    buf.append(b"x" * 100)
    assert buf.filled == 100
    assert len(buf.data) >= 100


def test_buffer_consume_bounds():
    buf = StreamBuffer(8)
    buf.append(b"abc")
    with pytest.raises(ValueError):
        buf.consume(4)


# --------------------------
# Decoder
# --------------------------

def test_decode_string_and_int():
    dec = StreamDecoder(io.BytesIO(b"4:spam"))
    assert dec.decode(str) == "spam"

    dec = StreamDecoder(io.BytesIO(b"i42e"))
    assert dec.decode(int) == 42


def test_decode_split_reads():
    source = ChunkedSource(b"4:s", b"pam")
    dec = StreamDecoder(source)
    assert dec.decode(bytes) == b"spam"
    assert source.reads == 2


def test_decode_byte_at_a_time():
    data = b"i-2502859205e"
    source = ChunkedSource(data)
    dec = StreamDecoder(source, read_size=1)
    assert dec.decode_int() == -2502859205
    assert source.reads == len(data)


def test_decode_long_string_over_many_reads():
    payload = bytes(range(256)) * 64
    source = ChunkedSource(b"16384:" + payload)
    dec = StreamDecoder(source, read_size=1000, buffer_size=16)
    assert dec.decode_bytes() == payload


def test_leftover_bytes_kept_for_next_call():
    source = ChunkedSource(b"i1e4:spami-7e")
    dec = StreamDecoder(source)
    assert dec.decode(int) == 1
    assert dec.buffered == 10
    assert dec.decode(bytes) == b"spam"
    assert dec.decode(int) == -7
    # everything came in a single read
    assert source.reads == 1
    assert dec.buffered == 0


def test_decode_uses_buffer_before_reading():
    class OneShot:
        def __init__(self):
            self.done = False

        def read(self, size):
            if self.done:
                raise AssertionError("read after data was already buffered")
            self.done = True
            return b"i1ei2e"

    dec = StreamDecoder(OneShot())
    assert dec.decode(int) == 1
    assert dec.decode(int) == 2


@pytest.mark.parametrize("into", [None, list, dict, float, object, [], "str", 0])
def test_invalid_destination(into):
    source = ChunkedSource(b"4:spam")
    dec = StreamDecoder(source)
    assert _kind(dec.decode, into) is ErrorKind.INVALID_DESTINATION
    assert source.reads == 0

    # decoder is still usable afterwards
    assert dec.decode(str) == "spam"


def test_malformed_stops_without_more_reads():
    source = ChunkedSource(b"4spam", b"never read")
    dec = StreamDecoder(source)
    assert _kind(dec.decode, bytes) is ErrorKind.MALFORMED_STRING
    assert source.reads == 1


def test_malformed_integer():
    dec = StreamDecoder(ChunkedSource(b"i4x2e"))
    assert _kind(dec.decode, int) is ErrorKind.MALFORMED_INTEGER


def test_containers_are_not_streamed():
    dec = StreamDecoder(ChunkedSource(b"li1ee"))
    assert _kind(dec.decode, int) is ErrorKind.MALFORMED_STRING


def test_stream_ended_mid_value():
    source = ChunkedSource(b"4:sp")
    dec = StreamDecoder(source)
    with pytest.raises(BencodeDecodeError) as exc:
        dec.decode(bytes)
    assert exc.value.kind is ErrorKind.STREAM_ENDED
    assert not exc.value.retryable
    assert source.reads == 2


def test_stream_ended_before_value():
    dec = StreamDecoder(ChunkedSource())
    assert _kind(dec.decode, int) is ErrorKind.STREAM_ENDED


def test_destination_mismatch():
    dec = StreamDecoder(ChunkedSource(b"i42e4:spam"))
    assert _kind(dec.decode, str) is ErrorKind.DESTINATION_MISMATCH
    assert _kind(dec.decode, int) is ErrorKind.DESTINATION_MISMATCH


def test_text_encoding():
    data = "naïve".encode("utf-8")
    dec = StreamDecoder(ChunkedSource(str(len(data)).encode() + b":" + data))
    assert dec.decode_str() == "naïve"

    dec = StreamDecoder(ChunkedSource(b"2:\xff\xfe"))
    assert _kind(dec.decode, str) is ErrorKind.MALFORMED_STRING

    dec = StreamDecoder(ChunkedSource(b"2:\xff\xfe"), encoding="latin-1")
    assert dec.decode_str() == "\xff\xfe"


def test_defaults_come_from_config():
    from bdecode import config

    dec = StreamDecoder(ChunkedSource())
    assert dec.read_size == config.READ_SIZE
    assert dec.encoding == config.TEXT_ENCODING
    assert len(dec._buffer.data) == config.BUFFER_SIZE


def test_long_integer_span_is_a_decode_error():
    dec = StreamDecoder(io.BytesIO(b"i" + b"1" * 5000 + b"e"))
    assert _kind(dec.decode, int) is ErrorKind.MALFORMED_INTEGER

    dec = StreamDecoder(io.BytesIO(b"i" + b"0" * 5000 + b"42e"))
    assert dec.decode(int) == 42


def test_source_returning_none_breaks_contract():
    class NonBlocking:
        def read(self, size):
            return None

    dec = StreamDecoder(NonBlocking())
    with pytest.raises(TypeError):
        dec.decode(int)


def test_source_returning_bytearray():
    class Buffered:
        def __init__(self):
            self.chunks = [bytearray(b"4:sp"), memoryview(b"am")]

        def read(self, size):
            return self.chunks.pop(0) if self.chunks else b""

    dec = StreamDecoder(Buffered())
    assert dec.decode(bytes) == b"spam"
