"""Contract-level facade: resolve call data and logs against a parsed ABI."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .codec import decode, decode_single, encode, encode_in_place, encode_single
from .errors import (
    DecodeError,
    EncodeError,
    OutOfBoundsError,
    SchemaError,
    UnknownEntryError,
    UnknownSelectorError,
    UnknownTopicError,
)
from .hashing import keccak
from .hexutil import BytesLike, to_bytes, to_topic
from .loader import load_abi_from_file, load_abi_from_text
from .schema import (
    Constructor,
    Entry,
    ErrorEntry,
    Event,
    Fallback,
    Function,
    Param,
    Receive,
    is_hashed_topic,
    parse_entries,
)
from .types import String, Uint
from .values import TopicHash, Value, coerce

logger = logging.getLogger(__name__)

SELECTOR_SIZE = 4

# Revert reasons emitted by the compiler itself rather than declared errors.
BUILTIN_ERRORS: Tuple[ErrorEntry, ...] = (
    ErrorEntry("Error", (Param("message", String()),)),
    ErrorEntry("Panic", (Param("code", Uint(256)),)),
)


@dataclass(frozen=True)
class DecodedParams:
    """Decoded values paired with the parameters they were decoded against."""

    entries: Tuple[Tuple[Param, Value], ...] = ()

    def __iter__(self) -> Iterator[Tuple[str, Value]]:
        return ((param.name, value) for param, value in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, key: Union[int, str]) -> Value:
        if isinstance(key, int):
            return self.entries[key][1]
        for param, value in self.entries:
            if param.name == key:
                return value
        raise KeyError(key)

    @property
    def params(self) -> List[Param]:
        return [param for param, _ in self.entries]

    def names(self) -> List[str]:
        return [param.name for param, _ in self.entries]

    def values(self) -> List[Value]:
        return [value for _, value in self.entries]

    def items(self) -> List[Tuple[str, Value]]:
        return list(self)

    def to_dict(self) -> Dict[str, Any]:
        """Plain Python view; unnamed parameters are keyed ``arg<index>``."""

        return {
            (param.name or f"arg{index}"): value.to_python()
            for index, (param, value) in enumerate(self.entries)
        }


def _arrange(params: Sequence[Param], values: Union[Sequence[Any], Mapping[str, Any]], what: str) -> List[Value]:
    if isinstance(values, Mapping):
        missing = [param.name for param in params if param.name not in values]
        if missing:
            raise EncodeError(f"{what} is missing values for {missing}", expected=[p.name for p in params])
        ordered: Sequence[Any] = [values[param.name] for param in params]
    else:
        ordered = list(values)
    if len(ordered) != len(params):
        raise EncodeError(
            f"{what} expects {len(params)} values, got {len(ordered)}",
            expected=len(params),
            found=len(ordered),
        )
    return [
        coerce(param.type, obj, param.name or f"arg[{index}]")
        for index, (param, obj) in enumerate(zip(params, ordered))
    ]


def _encode_params(params: Sequence[Param], values: Union[Sequence[Any], Mapping[str, Any]], what: str) -> bytes:
    arranged = _arrange(params, values, what)
    return encode([(param.type, value) for param, value in zip(params, arranged)])


def _decode_params(params: Sequence[Param], data: bytes, strict: bool) -> DecodedParams:
    values = decode([param.type for param in params], data, strict=strict)
    return DecodedParams(tuple(zip(params, values)))


def _index(items: Iterable[Any], key: Callable[[Any], Optional[bytes]], kind: str) -> Dict[bytes, Any]:
    """Map identifier -> entry; the first declared entry wins a collision."""

    index: Dict[bytes, Any] = {}
    for item in items:
        ident = key(item)
        if ident is None:
            continue
        existing = index.get(ident)
        if existing is None:
            index[ident] = item
        elif existing != item:
            logger.warning(
                "%s %s collides with %s on 0x%s; keeping the first declared entry",
                kind,
                item.signature,
                existing.signature,
                ident.hex(),
            )
    return index


def decode_event(event: Event, topics: Sequence[bytes], data: bytes, *, strict: bool = False) -> DecodedParams:
    """Decode a log emitted by ``event``.

    Indexed value-type arguments are read from their topic; indexed
    reference-type arguments only survive as a :class:`TopicHash`.
    Non-indexed arguments are decoded from ``data`` and merged back in
    declaration order.
    """

    if event.anonymous:
        indexed_topics = list(topics)
    else:
        if not topics:
            raise DecodeError(f"log for {event.signature} is missing its event topic")
        indexed_topics = list(topics[1:])
    indexed = event.indexed_inputs
    if len(indexed_topics) != len(indexed):
        raise DecodeError(
            f"{event.signature} declares {len(indexed)} indexed arguments but the log carries {len(indexed_topics)}"
        )

    data_values = iter(decode([param.type for param in event.data_inputs], data, strict=strict))
    topic_values = iter(indexed_topics)
    decoded: List[Tuple[Param, Value]] = []
    for param in event.inputs:
        if param.is_indexed:
            topic = next(topic_values)
            if is_hashed_topic(param.type):
                value: Value = TopicHash(topic, param.type)
            else:
                value = decode_single(param.type, topic, strict=strict)
        else:
            value = next(data_values)
        decoded.append((param, value))
    return DecodedParams(tuple(decoded))


def encode_event(event: Event, values: Union[Sequence[Any], Mapping[str, Any]]) -> Tuple[List[bytes], bytes]:
    """Build the ``(topics, data)`` pair a contract would emit for ``event``."""

    if isinstance(values, Mapping):
        missing = [param.name for param in event.inputs if param.name not in values]
        if missing:
            raise EncodeError(f"{event.name} is missing values for {missing}")
        ordered: List[Any] = [values[param.name] for param in event.inputs]
    else:
        ordered = list(values)
    if len(ordered) != len(event.inputs):
        raise EncodeError(
            f"{event.name} expects {len(event.inputs)} values, got {len(ordered)}",
            expected=len(event.inputs),
            found=len(ordered),
        )

    topics: List[bytes] = [] if event.anonymous else [event.topic]
    data_pairs: List[Tuple[Any, Any]] = []
    for index, (param, obj) in enumerate(zip(event.inputs, ordered)):
        if not param.is_indexed:
            data_pairs.append((param.type, coerce(param.type, obj, param.name or f"arg[{index}]")))
        elif isinstance(obj, TopicHash):
            topics.append(obj.digest)
        elif is_hashed_topic(param.type):
            topics.append(keccak(encode_in_place(param.type, obj)))
        else:
            topics.append(encode_single(param.type, obj))
    return topics, encode(data_pairs)


@dataclass(frozen=True)
class Abi:
    """An immutable, parsed contract ABI.

    Lookup indices are built once at construction. When two entries share a
    selector (or topic) the one declared first in the document wins; the
    later one stays in :attr:`functions` but is only reachable by name.
    """

    functions: Tuple[Function, ...] = ()
    events: Tuple[Event, ...] = ()
    errors: Tuple[ErrorEntry, ...] = ()
    constructor: Optional[Constructor] = None
    fallback: Optional[Fallback] = None
    receive: Optional[Receive] = None
    _by_selector: Mapping[bytes, Function] = field(init=False, repr=False, compare=False)
    _by_topic: Mapping[bytes, Event] = field(init=False, repr=False, compare=False)
    _errors_by_selector: Mapping[bytes, ErrorEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "functions", tuple(self.functions))
        object.__setattr__(self, "events", tuple(self.events))
        object.__setattr__(self, "errors", tuple(self.errors))
        by_selector = _index(self.functions, lambda item: item.selector, "function")
        by_topic = _index(self.events, lambda item: item.topic0, "event")
        errors = _index(tuple(self.errors) + BUILTIN_ERRORS, lambda item: item.selector, "error")
        object.__setattr__(self, "_by_selector", MappingProxyType(by_selector))
        object.__setattr__(self, "_by_topic", MappingProxyType(by_topic))
        object.__setattr__(self, "_errors_by_selector", MappingProxyType(errors))

    # -- construction -----------------------------------------------------
    @classmethod
    def from_parsed(cls, entries: Iterable[Entry]) -> "Abi":
        functions: List[Function] = []
        events: List[Event] = []
        errors: List[ErrorEntry] = []
        constructor: Optional[Constructor] = None
        fallback: Optional[Fallback] = None
        receive: Optional[Receive] = None
        for entry in entries:
            if isinstance(entry, Function):
                functions.append(entry)
            elif isinstance(entry, Event):
                events.append(entry)
            elif isinstance(entry, ErrorEntry):
                errors.append(entry)
            elif isinstance(entry, Constructor):
                if constructor is not None:
                    raise SchemaError("ABI declares more than one constructor", field="constructor")
                constructor = entry
            elif isinstance(entry, Fallback):
                fallback = entry
            elif isinstance(entry, Receive):
                receive = entry
        return cls(tuple(functions), tuple(events), tuple(errors), constructor, fallback, receive)

    @classmethod
    def from_entries(cls, raw_entries: Any, *, strict: bool = True) -> "Abi":
        return cls.from_parsed(parse_entries(raw_entries, strict=strict))

    @classmethod
    def from_json(cls, text: Union[str, bytes], *, strict: bool = True) -> "Abi":
        """Parse a JSON ABI array or an artifact object with an ``"abi"`` key."""

        if isinstance(text, bytes):
            text = text.decode("utf-8")
        return cls.from_entries(load_abi_from_text(text), strict=strict)

    @classmethod
    def from_file(cls, path: Union[str, Path], *, strict: bool = True) -> "Abi":
        return cls.from_entries(load_abi_from_file(path), strict=strict)

    def to_entries(self) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        if self.constructor is not None:
            entries.append(self.constructor.to_dict())
        entries.extend(item.to_dict() for item in self.functions)
        entries.extend(item.to_dict() for item in self.events)
        entries.extend(item.to_dict() for item in self.errors)
        if self.fallback is not None:
            entries.append(self.fallback.to_dict())
        if self.receive is not None:
            entries.append(self.receive.to_dict())
        return entries

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_entries(), **kwargs)

    # -- lookups ----------------------------------------------------------
    @property
    def has_fallback(self) -> bool:
        return self.fallback is not None

    @property
    def has_receive(self) -> bool:
        return self.receive is not None

    @property
    def selectors(self) -> Mapping[bytes, Function]:
        return self._by_selector

    @property
    def topics(self) -> Mapping[bytes, Event]:
        return self._by_topic

    def function(self, key: Union[str, Function]) -> Function:
        """Find a function by name (first overload wins) or full signature."""

        if isinstance(key, Function):
            return key
        attribute = "signature" if "(" in key else "name"
        for function in self.functions:
            if getattr(function, attribute) == key:
                return function
        raise UnknownEntryError("function", key)

    def event(self, key: Union[str, Event]) -> Event:
        if isinstance(key, Event):
            return key
        attribute = "signature" if "(" in key else "name"
        for event in self.events:
            if getattr(event, attribute) == key:
                return event
        raise UnknownEntryError("event", key)

    def error(self, key: Union[str, ErrorEntry]) -> ErrorEntry:
        if isinstance(key, ErrorEntry):
            return key
        attribute = "signature" if "(" in key else "name"
        for entry in tuple(self.errors) + BUILTIN_ERRORS:
            if getattr(entry, attribute) == key:
                return entry
        raise UnknownEntryError("error", key)

    def function_by_selector(self, selector: BytesLike) -> Function:
        raw = to_bytes(selector)
        try:
            return self._by_selector[raw]
        except KeyError:
            raise UnknownSelectorError(raw) from None

    def event_by_topic(self, topic: BytesLike) -> Event:
        raw = to_topic(topic)
        try:
            return self._by_topic[raw]
        except KeyError:
            raise UnknownTopicError(raw) from None

    # -- call data --------------------------------------------------------
    def encode_input(self, function: Union[str, Function], values: Union[Sequence[Any], Mapping[str, Any]]) -> bytes:
        """Return ``selector || head-tail encoded arguments``."""

        target = self.function(function)
        return target.selector + _encode_params(target.inputs, values, target.signature)

    def decode_input_from_bytes(self, data: BytesLike, *, strict: bool = False) -> Tuple[Function, DecodedParams]:
        raw = to_bytes(data)
        if len(raw) < SELECTOR_SIZE:
            raise OutOfBoundsError(
                "call data is shorter than a selector", offset=0, size=SELECTOR_SIZE, available=len(raw)
            )
        function = self.function_by_selector(raw[:SELECTOR_SIZE])
        decoded = _decode_params(function.inputs, raw[SELECTOR_SIZE:], strict)
        logger.debug("decoded call to %s", function.signature)
        return function, decoded

    def decode_input_from_hex(self, text: str, *, strict: bool = False) -> Tuple[Function, DecodedParams]:
        return self.decode_input_from_bytes(to_bytes(text), strict=strict)

    def encode_output(self, function: Union[str, Function], values: Union[Sequence[Any], Mapping[str, Any]]) -> bytes:
        target = self.function(function)
        return _encode_params(target.outputs, values, f"{target.signature} outputs")

    def decode_output(self, function: Union[str, Function], data: BytesLike, *, strict: bool = False) -> DecodedParams:
        target = self.function(function)
        return _decode_params(target.outputs, to_bytes(data), strict)

    def encode_constructor(self, values: Union[Sequence[Any], Mapping[str, Any]] = ()) -> bytes:
        """Encode constructor arguments; the caller appends them to the bytecode."""

        inputs = self.constructor.inputs if self.constructor is not None else ()
        return _encode_params(inputs, values, "constructor")

    def decode_constructor(self, data: BytesLike, *, strict: bool = False) -> DecodedParams:
        inputs = self.constructor.inputs if self.constructor is not None else ()
        return _decode_params(inputs, to_bytes(data), strict)

    # -- revert data ------------------------------------------------------
    def decode_error(self, data: BytesLike, *, strict: bool = False) -> Tuple[ErrorEntry, DecodedParams]:
        """Decode revert data against declared errors, then ``Error(string)``/``Panic(uint256)``."""

        raw = to_bytes(data)
        if len(raw) < SELECTOR_SIZE:
            raise OutOfBoundsError(
                "revert data is shorter than a selector", offset=0, size=SELECTOR_SIZE, available=len(raw)
            )
        try:
            entry = self._errors_by_selector[raw[:SELECTOR_SIZE]]
        except KeyError:
            raise UnknownSelectorError(raw[:SELECTOR_SIZE]) from None
        return entry, _decode_params(entry.inputs, raw[SELECTOR_SIZE:], strict)

    def encode_error(self, error: Union[str, ErrorEntry], values: Union[Sequence[Any], Mapping[str, Any]]) -> bytes:
        entry = self.error(error)
        return entry.selector + _encode_params(entry.inputs, values, entry.signature)

    # -- logs -------------------------------------------------------------
    def decode_log(
        self,
        topics: Sequence[BytesLike],
        data: BytesLike,
        *,
        event: Union[str, Event, None] = None,
        strict: bool = False,
    ) -> Tuple[Event, DecodedParams]:
        """Resolve a log by its first topic (or ``event``) and decode its arguments.

        Anonymous events have no identifying topic, so they can only be
        decoded when ``event`` names them.
        """

        topic_bytes = [to_topic(topic) for topic in topics]
        raw = to_bytes(data)
        if event is None:
            if not topic_bytes:
                raise UnknownTopicError(None)
            target = self.event_by_topic(topic_bytes[0])
        else:
            target = self.event(event)
            if not target.anonymous and topic_bytes and topic_bytes[0] != target.topic:
                raise DecodeError(f"first topic does not identify {target.signature}", offset=0)
        decoded = decode_event(target, topic_bytes, raw, strict=strict)
        logger.debug("decoded log for %s", target.signature)
        return target, decoded

    def decode_log_from_hex(
        self,
        topics: Sequence[str],
        data: str,
        *,
        event: Union[str, Event, None] = None,
        strict: bool = False,
    ) -> Tuple[Event, DecodedParams]:
        return self.decode_log(topics, data, event=event, strict=strict)

    def encode_log(
        self, event: Union[str, Event], values: Union[Sequence[Any], Mapping[str, Any]]
    ) -> Tuple[List[bytes], bytes]:
        return encode_event(self.event(event), values)


__all__ = [
    "BUILTIN_ERRORS",
    "SELECTOR_SIZE",
    "Abi",
    "DecodedParams",
    "decode_event",
    "encode_event",
]
