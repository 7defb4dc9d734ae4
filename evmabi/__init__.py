"""Ethereum contract ABI codec."""

__version__ = "0.1.0"

from .abi import BUILTIN_ERRORS, Abi, DecodedParams, decode_event, encode_event
from .codec import decode, decode_single, encode, encode_single, encode_values
from .errors import (
    AbiError,
    DecodeError,
    DirtyPaddingError,
    EncodeError,
    GrammarError,
    OutOfBoundsError,
    SchemaError,
    UnknownEntryError,
    UnknownSelectorError,
    UnknownTopicError,
)
from .grammar import parse_type, parse_types
from .hashing import event_topic, function_selector, keccak, signature
from .schema import Constructor, ErrorEntry, Event, Function, Param, StateMutability, parse_entries
from .values import TopicHash, coerce

__all__ = [
    "BUILTIN_ERRORS",
    "Abi",
    "AbiError",
    "Constructor",
    "DecodeError",
    "DecodedParams",
    "DirtyPaddingError",
    "EncodeError",
    "ErrorEntry",
    "Event",
    "Function",
    "GrammarError",
    "OutOfBoundsError",
    "Param",
    "SchemaError",
    "StateMutability",
    "TopicHash",
    "UnknownEntryError",
    "UnknownSelectorError",
    "UnknownTopicError",
    "__version__",
    "coerce",
    "decode",
    "decode_event",
    "decode_single",
    "encode",
    "encode_event",
    "encode_single",
    "encode_values",
    "event_topic",
    "function_selector",
    "keccak",
    "parse_entries",
    "parse_type",
    "parse_types",
    "signature",
]
