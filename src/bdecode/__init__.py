"""
Bencode decoding for BitTorrent data: buffer recognizers and a streaming front-end.
"""
import logging

from .decoder import decode, dispatch, parse_dict, parse_int, parse_list, parse_string, parse_value, Token
from .errors import BencodeDecodeError, ErrorKind
from .stream import AsyncStreamDecoder, StreamBuffer, StreamDecoder
from .structure import BencodeDict, BencodeInt, BencodeList, BencodeString, BencodeType

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'decode', 'parse_value', 'parse_int', 'parse_string', 'parse_list', 'parse_dict',
    'dispatch', 'Token',
    'StreamDecoder', 'AsyncStreamDecoder', 'StreamBuffer',
    'BencodeDecodeError', 'ErrorKind',
    'BencodeType', 'BencodeInt', 'BencodeString', 'BencodeList', 'BencodeDict',
]
