"""Recursive-descent parser for Solidity ABI type strings.

Grammar::

    type    := base dims*
    base    := "tuple" "(" list ")" | "(" list ")" | "tuple" | keyword
    list    := [ type { "," type } ]
    dims    := "[" [ length ] "]"

A bare ``tuple`` keyword only appears in JSON ABI documents, where the field
types are supplied through ``components``; :func:`parse_type` accepts those
already resolved as ``(name, type)`` pairs.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from .errors import (
    GrammarSyntaxError,
    InvalidArrayLengthError,
    InvalidWidthError,
    TrailingInputError,
    UnknownTypeError,
)
from .types import (
    AbiType,
    Address,
    Array,
    Bool,
    Bytes,
    FixedArray,
    FixedBytes,
    Int,
    String,
    Tuple,
    Uint,
)

_KEYWORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_SIZED = re.compile(r"^(uint|int|bytes)([0-9]*)$")
_FIXED_POINT = re.compile(r"^u?fixed([0-9]+x[0-9]+)?$")
_DIGITS = re.compile(r"[0-9]+")

Components = Sequence[tuple]


class _Parser:
    def __init__(self, text: str, components: Optional[Components]) -> None:
        self.text = text
        self.pos = 0
        self.components = components

    # -- helpers ----------------------------------------------------------
    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, char: str, expected: str) -> None:
        if self._peek() != char:
            found = self._peek() or "end of input"
            raise GrammarSyntaxError(f"unexpected {found!r}", text=self.text, position=self.pos, expected=expected)
        self.pos += 1

    # -- productions ------------------------------------------------------
    def parse(self) -> AbiType:
        typ = self._type(top_level=True)
        if self.pos != len(self.text):
            raise TrailingInputError(
                f"unexpected trailing input {self.text[self.pos:]!r}",
                text=self.text,
                position=self.pos,
                expected="end of type",
            )
        return typ

    def _type(self, top_level: bool = False) -> AbiType:
        typ = self._base(top_level)
        while self._peek() == "[":
            typ = self._dimension(typ)
        return typ

    def _base(self, top_level: bool) -> AbiType:
        start = self.pos
        if self._peek() == "(":
            return self._tuple_body(start, top_level)
        match = _KEYWORD.match(self.text, self.pos)
        if match is None:
            found = self._peek() or "end of input"
            raise GrammarSyntaxError(f"unexpected {found!r}", text=self.text, position=start, expected="a type")
        keyword = match.group(0)
        self.pos = match.end()
        if keyword == "tuple":
            if self._peek() == "(":
                return self._tuple_body(start, top_level)
            if top_level and self.components is not None:
                return Tuple(tuple(self.components))
            raise GrammarSyntaxError(
                "tuple without components",
                text=self.text,
                position=self.pos,
                expected="'(' or a components list",
            )
        return self._keyword(keyword, start)

    def _keyword(self, keyword: str, start: int) -> AbiType:
        if keyword == "address":
            return Address()
        if keyword == "bool":
            return Bool()
        if keyword == "string":
            return String()
        if keyword == "bytes":
            return Bytes()
        sized = _SIZED.match(keyword)
        if sized is not None:
            base, digits = sized.groups()
            if not digits:
                return Uint() if base == "uint" else Int()
            if digits.startswith("0"):
                raise InvalidWidthError(
                    f"invalid {base} width {digits!r}",
                    text=self.text,
                    position=start + len(base),
                    expected="a width without leading zeros",
                )
            width = int(digits)
            if base == "bytes":
                if not 1 <= width <= 32:
                    raise InvalidWidthError(
                        f"invalid bytes width {width}",
                        text=self.text,
                        position=start + len(base),
                        expected="1 to 32 bytes",
                    )
                return FixedBytes(width)
            if width < 8 or width > 256 or width % 8:
                raise InvalidWidthError(
                    f"invalid {base} width {width}",
                    text=self.text,
                    position=start + len(base),
                    expected="a multiple of 8 between 8 and 256",
                )
            return Uint(width) if base == "uint" else Int(width)
        if _FIXED_POINT.match(keyword):
            raise UnknownTypeError(
                f"fixed-point type {keyword!r} is not supported",
                text=self.text,
                position=start,
                expected="an integer, address, bool, bytes or string type",
            )
        raise UnknownTypeError(
            f"unknown type {keyword!r}",
            text=self.text,
            position=start,
            expected="uint, int, address, bool, bytes, bytesN, string or tuple",
        )

    def _tuple_body(self, start: int, top_level: bool) -> Tuple:
        self._expect("(", "'('")
        members = []
        if self._peek() != ")":
            members.append(self._type())
            while self._peek() == ",":
                self.pos += 1
                members.append(self._type())
        if not members:
            raise GrammarSyntaxError("empty tuple", text=self.text, position=self.pos, expected="a member type")
        self._expect(")", "',' or ')'")
        if top_level and self.components is not None:
            if len(self.components) != len(members):
                raise GrammarSyntaxError(
                    f"tuple has {len(members)} members but {len(self.components)} components",
                    text=self.text,
                    position=start,
                    expected=f"{len(self.components)} members",
                )
            return Tuple(tuple((name, typ) for (name, _), typ in zip(self.components, members)))
        return Tuple.of(*members)

    def _dimension(self, elem: AbiType) -> AbiType:
        self._expect("[", "'['")
        if self._peek() == "]":
            self.pos += 1
            return Array(elem)
        start = self.pos
        match = _DIGITS.match(self.text, self.pos)
        if match is None:
            if not self._peek():
                raise GrammarSyntaxError(
                    "unterminated array dimension", text=self.text, position=start, expected="']' or a length"
                )
            raise InvalidArrayLengthError(
                f"invalid array length starting with {self._peek()!r}",
                text=self.text,
                position=start,
                expected="a positive decimal integer",
            )
        digits = match.group(0)
        if digits.startswith("0"):
            raise InvalidArrayLengthError(
                f"invalid array length {digits!r}",
                text=self.text,
                position=start,
                expected="a positive decimal integer without leading zeros",
            )
        self.pos = match.end()
        if self._peek() != "]":
            if not self._peek():
                raise GrammarSyntaxError(
                    "unterminated array dimension", text=self.text, position=self.pos, expected="']'"
                )
            raise InvalidArrayLengthError(
                f"invalid character {self._peek()!r} in array length",
                text=self.text,
                position=self.pos,
                expected="a decimal digit or ']'",
            )
        self.pos += 1
        return FixedArray(elem, int(digits))


def parse_type(text: str, components: Optional[Components] = None) -> AbiType:
    """Parse ``text`` into an :class:`~evmabi.types.AbiType`.

    ``components`` supplies the resolved ``(name, type)`` fields for a
    top-level ``tuple`` (or array of tuples) coming from a JSON ABI entry.
    """

    if not isinstance(text, str):
        raise GrammarSyntaxError(f"type must be a string, got {type(text).__name__}")
    if not text:
        raise GrammarSyntaxError("empty type", text=text, position=0, expected="a type")
    return _Parser(text, components).parse()


def parse_types(texts: Sequence[str]) -> list[AbiType]:
    return [parse_type(text) for text in texts]


__all__ = ["parse_type", "parse_types"]
