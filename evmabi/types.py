"""Structured Solidity ABI types.

Every type is an immutable dataclass. Whether a type is *dynamic* (encoded
behind an offset) or *static* (encoded inline) is derived from the tree on
every call to :meth:`AbiType.is_dynamic`; nothing is cached on the node.
"""

from __future__ import annotations

from dataclasses import dataclass
from .errors import GrammarSyntaxError, InvalidArrayLengthError, InvalidWidthError

WORD_SIZE = 32


class AbiType:
    """Common behaviour of all ABI type variants."""

    def is_dynamic(self) -> bool:
        raise NotImplementedError

    def head_size(self) -> int:
        """Return the number of bytes this type occupies in an enclosing head."""

        return WORD_SIZE

    def canonical(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.canonical()


def _check_int_width(bits: int, keyword: str) -> None:
    if not isinstance(bits, int) or isinstance(bits, bool):
        raise InvalidWidthError(f"{keyword} width must be an integer, got {bits!r}")
    if bits < 8 or bits > 256 or bits % 8:
        raise InvalidWidthError(
            f"invalid {keyword} width {bits}",
            expected="a multiple of 8 between 8 and 256",
        )


@dataclass(frozen=True)
class Uint(AbiType):
    bits: int = 256

    def __post_init__(self) -> None:
        _check_int_width(self.bits, "uint")

    def is_dynamic(self) -> bool:
        return False

    def canonical(self) -> str:
        return f"uint{self.bits}"


@dataclass(frozen=True)
class Int(AbiType):
    bits: int = 256

    def __post_init__(self) -> None:
        _check_int_width(self.bits, "int")

    def is_dynamic(self) -> bool:
        return False

    def canonical(self) -> str:
        return f"int{self.bits}"


@dataclass(frozen=True)
class Address(AbiType):
    def is_dynamic(self) -> bool:
        return False

    def canonical(self) -> str:
        return "address"


@dataclass(frozen=True)
class Bool(AbiType):
    def is_dynamic(self) -> bool:
        return False

    def canonical(self) -> str:
        return "bool"


@dataclass(frozen=True)
class FixedBytes(AbiType):
    size: int

    def __post_init__(self) -> None:
        if not isinstance(self.size, int) or isinstance(self.size, bool) or not 1 <= self.size <= 32:
            raise InvalidWidthError(f"invalid bytes width {self.size!r}", expected="1 to 32 bytes")

    def is_dynamic(self) -> bool:
        return False

    def canonical(self) -> str:
        return f"bytes{self.size}"


@dataclass(frozen=True)
class Bytes(AbiType):
    def is_dynamic(self) -> bool:
        return True

    def canonical(self) -> str:
        return "bytes"


@dataclass(frozen=True)
class String(AbiType):
    def is_dynamic(self) -> bool:
        return True

    def canonical(self) -> str:
        return "string"


@dataclass(frozen=True)
class FixedArray(AbiType):
    """``T[k]``: exactly ``length`` elements, dynamic only if ``T`` is."""

    elem: AbiType
    length: int

    def __post_init__(self) -> None:
        if not isinstance(self.length, int) or isinstance(self.length, bool) or self.length < 1:
            raise InvalidArrayLengthError(
                f"invalid fixed array length {self.length!r}",
                expected="a positive integer",
            )

    def is_dynamic(self) -> bool:
        return self.elem.is_dynamic()

    def head_size(self) -> int:
        if self.is_dynamic():
            return WORD_SIZE
        return self.length * self.elem.head_size()

    def canonical(self) -> str:
        return f"{self.elem.canonical()}[{self.length}]"


@dataclass(frozen=True)
class Array(AbiType):
    """``T[]``: a count word followed by the elements; always dynamic."""

    elem: AbiType

    def is_dynamic(self) -> bool:
        return True

    def canonical(self) -> str:
        return f"{self.elem.canonical()}[]"


@dataclass(frozen=True)
class Tuple(AbiType):
    """An ordered, non-empty list of named fields; names may be empty strings."""

    fields: tuple[tuple[str, AbiType], ...]

    def __post_init__(self) -> None:
        # Accept any iterable of pairs but store an immutable tuple.
        object.__setattr__(self, "fields", tuple((str(name), typ) for name, typ in self.fields))
        if not self.fields:
            raise GrammarSyntaxError("tuple must have at least one field")

    @classmethod
    def of(cls, *types: AbiType) -> "Tuple":
        return cls(tuple(("", typ) for typ in types))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.fields]

    @property
    def types(self) -> list[AbiType]:
        return [typ for _, typ in self.fields]

    def is_dynamic(self) -> bool:
        return any(typ.is_dynamic() for _, typ in self.fields)

    def head_size(self) -> int:
        if self.is_dynamic():
            return WORD_SIZE
        return sum(typ.head_size() for _, typ in self.fields)

    def canonical(self) -> str:
        return "(" + ",".join(typ.canonical() for _, typ in self.fields) + ")"


def is_value_type(typ: AbiType) -> bool:
    """Return ``True`` for Solidity value types (stored raw in event topics)."""

    return isinstance(typ, (Uint, Int, Address, Bool, FixedBytes))


__all__ = [
    "WORD_SIZE",
    "AbiType",
    "Address",
    "Array",
    "Bool",
    "Bytes",
    "FixedArray",
    "FixedBytes",
    "Int",
    "String",
    "Tuple",
    "Uint",
    "is_value_type",
]
