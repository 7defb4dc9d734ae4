"""Error taxonomy shared by every evmabi layer."""

from __future__ import annotations

from typing import Any, Optional


class AbiError(ValueError):
    """Base class for all evmabi failures."""


# -- type grammar -----------------------------------------------------------
class GrammarError(AbiError):
    """Malformed Solidity type text."""

    def __init__(self, message: str, *, text: str = "", position: int = 0, expected: str = "") -> None:
        self.text = text
        self.position = position
        self.expected = expected
        detail = message
        if text:
            detail = f"{message} at position {position} in {text!r}"
        if expected:
            detail = f"{detail} (expected {expected})"
        super().__init__(detail)


class UnknownTypeError(GrammarError):
    """The base type keyword is not part of the ABI grammar."""


class InvalidWidthError(GrammarError):
    """A bit or byte width suffix is out of range."""


class InvalidArrayLengthError(GrammarError):
    """An array dimension is not a positive decimal integer."""


class TrailingInputError(GrammarError):
    """Characters remain after a complete type was parsed."""


class GrammarSyntaxError(GrammarError):
    """Punctuation is missing or misplaced."""


# -- schema -----------------------------------------------------------------
class SchemaError(AbiError):
    """A JSON ABI entry is malformed or unsupported."""

    def __init__(self, message: str, *, entry: Optional[int] = None, field: Optional[str] = None) -> None:
        self.entry = entry
        self.field = field
        prefix = ""
        if entry is not None:
            prefix = f"entry {entry}: "
        if field:
            prefix = f"{prefix}{field}: "
        super().__init__(prefix + message)


# -- codec ------------------------------------------------------------------
class EncodeError(AbiError):
    """A value does not conform to the type it is encoded against."""

    def __init__(self, message: str, *, path: str = "", expected: Any = None, found: Any = None) -> None:
        self.path = path
        self.expected = expected
        self.found = found
        detail = f"{path}: {message}" if path else message
        super().__init__(detail)


class DecodeError(AbiError):
    """Encoded bytes cannot be interpreted as the requested types."""

    def __init__(self, message: str, *, offset: Optional[int] = None) -> None:
        self.offset = offset
        detail = f"{message} (at byte {offset})" if offset is not None else message
        super().__init__(detail)


class OutOfBoundsError(DecodeError):
    """A read, offset or length addresses past the end of the buffer."""

    def __init__(self, message: str, *, offset: int, size: int, available: int) -> None:
        self.size = size
        self.available = available
        super().__init__(f"{message}: need {size} bytes, {available} available", offset=offset)


class InvalidUtf8Error(DecodeError):
    """A string field does not hold valid UTF-8."""


class DirtyPaddingError(DecodeError):
    """A head slot carries non-zero bits outside its declared width (strict decoding only)."""


# -- lookup -----------------------------------------------------------------
class UnknownSelectorError(AbiError):
    """No function or error in the schema matches a 4-byte selector."""

    def __init__(self, selector: bytes) -> None:
        self.selector = bytes(selector)
        super().__init__(f"unknown selector 0x{self.selector.hex()}")


class UnknownEntryError(AbiError, KeyError):
    """No function, event or error in the schema has the requested name or signature."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key!r} not found in ABI")

    def __str__(self) -> str:
        # KeyError would otherwise render the message through repr().
        return str(self.args[0])


class UnknownTopicError(AbiError):
    """No event in the schema matches a log's first topic."""

    def __init__(self, topic: Optional[bytes]) -> None:
        self.topic = bytes(topic) if topic is not None else None
        if self.topic is None:
            super().__init__("log carries no topics and no event hint was given")
        else:
            super().__init__(f"unknown event topic 0x{self.topic.hex()}")


__all__ = [
    "AbiError",
    "DecodeError",
    "DirtyPaddingError",
    "EncodeError",
    "GrammarError",
    "GrammarSyntaxError",
    "InvalidArrayLengthError",
    "InvalidUtf8Error",
    "InvalidWidthError",
    "OutOfBoundsError",
    "SchemaError",
    "TrailingInputError",
    "UnknownEntryError",
    "UnknownSelectorError",
    "UnknownTopicError",
    "UnknownTypeError",
]
