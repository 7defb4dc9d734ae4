"""Hex text helpers for call data, topics and log payloads."""

from __future__ import annotations

from typing import Union

from eth_utils import decode_hex, encode_hex, is_hex, remove_0x_prefix

from .errors import DecodeError

BytesLike = Union[bytes, bytearray, memoryview, str]


def to_bytes(data: BytesLike) -> bytes:
    """Accept raw bytes or hex text with or without a ``0x`` prefix."""

    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if not isinstance(data, str):
        raise DecodeError(f"expected bytes or hex text, got {type(data).__name__}")
    text = data.strip()
    if text and not is_hex(text):
        raise DecodeError(f"invalid hex text {text[:16]!r}")
    if len(remove_0x_prefix(text)) % 2:
        raise DecodeError("hex text has an odd number of digits")
    return decode_hex(text)


def to_hex(data: bytes) -> str:
    """Render lowercase ``0x``-prefixed hex."""

    return encode_hex(bytes(data))


def to_topic(data: BytesLike) -> bytes:
    raw = to_bytes(data)
    if len(raw) != 32:
        raise DecodeError(f"topic must be 32 bytes, got {len(raw)}")
    return raw


__all__ = ["BytesLike", "to_bytes", "to_hex", "to_topic"]
