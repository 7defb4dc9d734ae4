"""Keccak-256 selectors and topics derived from canonical signatures."""

from __future__ import annotations

from typing import Iterable

from web3 import Web3

from .types import AbiType


def keccak(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``data``."""

    return bytes(Web3.keccak(primitive=bytes(data)))


def signature(name: str, types: Iterable[AbiType]) -> str:
    """Render ``name(t1,t2,...)`` using canonical type names; parameter names never appear."""

    return f"{name}({','.join(typ.canonical() for typ in types)})"


def function_selector(text: str) -> bytes:
    return bytes(Web3.keccak(text=text))[:4]


def event_topic(text: str) -> bytes:
    return bytes(Web3.keccak(text=text))


__all__ = ["event_topic", "function_selector", "keccak", "signature"]
