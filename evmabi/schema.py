"""JSON ABI entries: functions, events, errors, constructor, fallback and receive."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .errors import GrammarError, SchemaError
from .grammar import parse_type
from .hashing import event_topic, function_selector, signature
from .types import AbiType, Array, FixedArray, Tuple, is_value_type

logger = logging.getLogger(__name__)


class StateMutability(str, Enum):
    PURE = "pure"
    VIEW = "view"
    NONPAYABLE = "nonpayable"
    PAYABLE = "payable"


def _json_type(typ: AbiType) -> str:
    if isinstance(typ, Tuple):
        return "tuple"
    if isinstance(typ, FixedArray):
        return f"{_json_type(typ.elem)}[{typ.length}]"
    if isinstance(typ, Array):
        return f"{_json_type(typ.elem)}[]"
    return typ.canonical()


def _innermost(typ: AbiType) -> AbiType:
    while isinstance(typ, (Array, FixedArray)):
        typ = typ.elem
    return typ


@dataclass(frozen=True)
class Param:
    """A named, typed function input/output or event argument."""

    name: str
    type: AbiType
    indexed: Optional[bool] = None
    components: Optional[tuple["Param", ...]] = None
    internal_type: Optional[str] = None

    @property
    def is_indexed(self) -> bool:
        return bool(self.indexed)

    def to_dict(self) -> Dict[str, Any]:
        """Render the JSON ABI form of this parameter."""

        payload: Dict[str, Any] = {}
        if self.internal_type is not None:
            payload["internalType"] = self.internal_type
        payload["name"] = self.name
        payload["type"] = _json_type(self.type)
        base = _innermost(self.type)
        if isinstance(base, Tuple):
            if self.components is not None:
                payload["components"] = [component.to_dict() for component in self.components]
            else:
                payload["components"] = [Param(name, typ).to_dict() for name, typ in base.fields]
        if self.indexed is not None:
            payload["indexed"] = self.indexed
        return payload


def _param_list(params: Sequence[Param]) -> List[Dict[str, Any]]:
    return [param.to_dict() for param in params]


@dataclass(frozen=True)
class Function:
    name: str
    inputs: tuple[Param, ...] = ()
    outputs: tuple[Param, ...] = ()
    state_mutability: StateMutability = StateMutability.NONPAYABLE

    @property
    def input_types(self) -> List[AbiType]:
        return [param.type for param in self.inputs]

    @property
    def output_types(self) -> List[AbiType]:
        return [param.type for param in self.outputs]

    @property
    def signature(self) -> str:
        return signature(self.name, self.input_types)

    @property
    def selector(self) -> bytes:
        return function_selector(self.signature)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "inputs": _param_list(self.inputs),
            "outputs": _param_list(self.outputs),
            "stateMutability": self.state_mutability.value,
        }


@dataclass(frozen=True)
class Event:
    name: str
    inputs: tuple[Param, ...] = ()
    anonymous: bool = False

    @property
    def signature(self) -> str:
        return signature(self.name, [param.type for param in self.inputs])

    @property
    def topic(self) -> bytes:
        """Keccak-256 of the signature, whether or not the event is anonymous."""

        return event_topic(self.signature)

    @property
    def topic0(self) -> Optional[bytes]:
        """The first log topic, or ``None`` for anonymous events."""

        return None if self.anonymous else self.topic

    @property
    def indexed_inputs(self) -> List[Param]:
        return [param for param in self.inputs if param.is_indexed]

    @property
    def data_inputs(self) -> List[Param]:
        return [param for param in self.inputs if not param.is_indexed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "event",
            "name": self.name,
            "inputs": _param_list(self.inputs),
            "anonymous": self.anonymous,
        }


@dataclass(frozen=True)
class ErrorEntry:
    """A custom Solidity error; revert data starts with its selector."""

    name: str
    inputs: tuple[Param, ...] = ()

    @property
    def signature(self) -> str:
        return signature(self.name, [param.type for param in self.inputs])

    @property
    def selector(self) -> bytes:
        return function_selector(self.signature)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "error", "name": self.name, "inputs": _param_list(self.inputs)}


@dataclass(frozen=True)
class Constructor:
    inputs: tuple[Param, ...] = ()
    state_mutability: StateMutability = StateMutability.NONPAYABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "constructor",
            "inputs": _param_list(self.inputs),
            "stateMutability": self.state_mutability.value,
        }


@dataclass(frozen=True)
class Fallback:
    state_mutability: StateMutability = StateMutability.NONPAYABLE

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "fallback", "stateMutability": self.state_mutability.value}


@dataclass(frozen=True)
class Receive:
    state_mutability: StateMutability = StateMutability.PAYABLE

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "receive", "stateMutability": self.state_mutability.value}


Entry = Union[Function, Event, ErrorEntry, Constructor, Fallback, Receive]


# -- parsing ------------------------------------------------------------------
def _requires_components(type_text: str) -> bool:
    return type_text == "tuple" or type_text.startswith("tuple[")


def parse_param(raw: Any, *, entry: Optional[int] = None, field: str = "inputs", event: bool = False) -> Param:
    """Build a :class:`Param` from its JSON object, resolving nested components."""

    if not isinstance(raw, Mapping):
        raise SchemaError("parameter must be an object", entry=entry, field=field)
    type_text = raw.get("type")
    if not isinstance(type_text, str) or not type_text:
        raise SchemaError("parameter is missing its type", entry=entry, field=field)
    name = raw.get("name") or ""
    if not isinstance(name, str):
        raise SchemaError("parameter name must be a string", entry=entry, field=field)

    components: Optional[tuple[Param, ...]] = None
    raw_components = raw.get("components")
    if _requires_components(type_text):
        if not isinstance(raw_components, list) or not raw_components:
            raise SchemaError(f"{type_text!r} requires a non-empty components list", entry=entry, field=field)
    if isinstance(raw_components, list) and type_text.startswith("tuple"):
        label = f"{field}.{name}" if name else f"{field}.components"
        components = tuple(parse_param(item, entry=entry, field=label) for item in raw_components)

    try:
        typ = parse_type(
            type_text,
            [(component.name, component.type) for component in components] if components else None,
        )
    except GrammarError as exc:
        raise SchemaError(str(exc), entry=entry, field=field) from exc

    indexed: Optional[bool] = None
    if event:
        indexed = bool(raw.get("indexed", False))
    internal_type = raw.get("internalType")
    return Param(
        name=name,
        type=typ,
        indexed=indexed,
        components=components,
        internal_type=internal_type if isinstance(internal_type, str) else None,
    )


def _params(raw: Mapping[str, Any], key: str, index: int, *, event: bool = False) -> tuple[Param, ...]:
    items = raw.get(key)
    if items is None:
        return ()
    if not isinstance(items, list):
        raise SchemaError(f"{key} must be an array", entry=index, field=key)
    return tuple(parse_param(item, entry=index, field=key, event=event) for item in items)


def _state_mutability(raw: Mapping[str, Any], index: int, default: StateMutability) -> StateMutability:
    value = raw.get("stateMutability")
    if value is not None:
        try:
            return StateMutability(value)
        except ValueError:
            raise SchemaError(f"unknown state mutability {value!r}", entry=index, field="stateMutability") from None
    # Pre-0.5 ABI documents only carry the constant/payable flags.
    if raw.get("payable"):
        return StateMutability.PAYABLE
    if raw.get("constant"):
        return StateMutability.VIEW
    return default


def _name(raw: Mapping[str, Any], index: int, kind: str) -> str:
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise SchemaError(f"{kind} is missing its name", entry=index, field="name")
    return name


def parse_entry(raw: Any, index: int = 0) -> Optional[Entry]:
    """Parse one JSON ABI entry; returns ``None`` for an unknown discriminator."""

    if not isinstance(raw, Mapping):
        raise SchemaError("ABI entry must be an object", entry=index)
    kind = raw.get("type", "function")
    if kind == "function":
        return Function(
            name=_name(raw, index, "function"),
            inputs=_params(raw, "inputs", index),
            outputs=_params(raw, "outputs", index),
            state_mutability=_state_mutability(raw, index, StateMutability.NONPAYABLE),
        )
    if kind == "event":
        return Event(
            name=_name(raw, index, "event"),
            inputs=_params(raw, "inputs", index, event=True),
            anonymous=bool(raw.get("anonymous", False)),
        )
    if kind == "error":
        return ErrorEntry(name=_name(raw, index, "error"), inputs=_params(raw, "inputs", index))
    if kind == "constructor":
        return Constructor(
            inputs=_params(raw, "inputs", index),
            state_mutability=_state_mutability(raw, index, StateMutability.NONPAYABLE),
        )
    if kind == "fallback":
        return Fallback(state_mutability=_state_mutability(raw, index, StateMutability.NONPAYABLE))
    if kind == "receive":
        return Receive(state_mutability=_state_mutability(raw, index, StateMutability.PAYABLE))
    return None


def parse_entries(raw_entries: Any, *, strict: bool = True) -> List[Entry]:
    """Parse a JSON ABI array.

    In strict mode an unknown entry ``type`` raises :class:`SchemaError`;
    otherwise the entry is skipped with a warning.
    """

    if not isinstance(raw_entries, list):
        raise SchemaError("ABI document must be an array of entries")
    entries: List[Entry] = []
    for index, raw in enumerate(raw_entries):
        parsed = parse_entry(raw, index)
        if parsed is None:
            kind = raw.get("type")
            if strict:
                raise SchemaError(f"unknown entry type {kind!r}", entry=index, field="type")
            logger.warning("skipping ABI entry %d with unknown type %r", index, kind)
            continue
        entries.append(parsed)
    return entries


def is_hashed_topic(typ: AbiType) -> bool:
    """Indexed arguments of reference types are stored as a Keccak-256 digest."""

    return not is_value_type(typ)


__all__ = [
    "Constructor",
    "Entry",
    "ErrorEntry",
    "Event",
    "Fallback",
    "Function",
    "Param",
    "Receive",
    "StateMutability",
    "is_hashed_topic",
    "parse_entries",
    "parse_entry",
    "parse_param",
]
