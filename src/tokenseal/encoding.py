"""
URL-Safe Codec
==============

Reversible text encoding used for every segment of a signed string.

- ``encode`` / ``decode``: URL-and-filename-safe base64 with the ``=`` padding
  stripped on encode and restored from the input length on decode.
- ``encode_int`` / ``decode_int``: non-negative integers (timestamps) as their
  big-endian bytes with leading zero bytes removed, then ``encode``.

Example:
    >>> encode(b"hello world")
    'aGVsbG8gd29ybGQ'
    >>> encode_int(1560181622)
    'XP57dg'
"""

import base64
import binascii
import re
from typing import Union

from .error_handling import BadData

# Characters that may appear in encoded output; "=" is included because it is
# the padding character and must never be used as a separator either.
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_="

_VALID_ENCODED = re.compile(r"[A-Za-z0-9_-]*")

# Timestamps are unsigned 64-bit values.
MAX_INT_BYTES = 8


def want_bytes(value: Union[str, bytes], encoding: str = "utf-8") -> bytes:
    """Return ``value`` as bytes, encoding text with ``encoding``."""
    if isinstance(value, str):
        return value.encode(encoding)
    return bytes(value)


def in_alphabet(char: str) -> bool:
    """Check whether ``char`` can appear in encoded output."""
    return len(char) == 1 and char in ALPHABET


def encode(data: Union[str, bytes]) -> str:
    """Encode bytes as unpadded URL-safe base64 text."""
    return base64.urlsafe_b64encode(want_bytes(data)).rstrip(b"=").decode("ascii")


def decode(text: Union[str, bytes]) -> bytes:
    """
    Decode unpadded URL-safe base64 text.

    Args:
        text: Encoded text as produced by ``encode``

    Returns:
        The original bytes

    Raises:
        BadData: If the text has characters outside the alphabet, a length
            that no padding can make valid, or non-zero unused bits in its
            last character
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("ascii")
        except UnicodeDecodeError as e:
            raise BadData(
                "Encoded segment contains non-ASCII bytes", {"length": len(text)}
            ) from e

    if not _VALID_ENCODED.fullmatch(text):
        raise BadData(
            "Encoded segment contains characters outside the URL-safe alphabet",
            {"length": len(text)},
        )

    if len(text) % 4 == 1:
        raise BadData(
            "Encoded segment has an invalid length", {"length": len(text)}
        )

    padded = text + "=" * (-len(text) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise BadData("Could not base64 decode segment", {"length": len(text)}) from e

    # The last character may carry unused low bits; only the encoding that
    # ``encode`` produces is accepted, so each byte string has one valid text.
    if encode(data) != text:
        raise BadData(
            "Encoded segment is not in canonical form", {"length": len(text)}
        )
    return data


def int_to_bytes(num: int) -> bytes:
    """Big-endian bytes of ``num`` without leading zero bytes (0 gives b"")."""
    if num < 0:
        raise ValueError("Only non-negative integers can be encoded")
    return num.to_bytes((num.bit_length() + 7) // 8, "big")


def bytes_to_int(data: bytes) -> int:
    return int.from_bytes(data, "big")


def encode_int(num: int) -> str:
    """Encode a non-negative integer into a compact URL-safe string."""
    return encode(int_to_bytes(num))


def decode_int(text: Union[str, bytes]) -> int:
    """
    Decode a string produced by ``encode_int``.

    Raises:
        BadData: On characters outside the alphabet or when the value does not
            fit in an unsigned 64-bit integer
    """
    data = decode(text)
    if len(data) > MAX_INT_BYTES:
        raise BadData(
            "Encoded integer overflows 64 bits", {"byte_length": len(data)}
        )
    return bytes_to_int(data)
