"""Load ABI documents from disk.

Accepts either a bare JSON array or a compiler/deployment artifact object
carrying the array under an ``"abi"`` key (Hardhat, Foundry, Truffle).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from .errors import SchemaError
from .logbook import log_event


def _normalise_payload(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict) and "abi" in payload:
        payload = payload["abi"]
    if not isinstance(payload, list):
        raise SchemaError("ABI definition must be a list of JSON objects")
    return payload


def load_abi_from_text(text: str) -> List[Dict[str, Any]]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"invalid JSON: {exc}") from exc
    return _normalise_payload(payload)


def load_abi_from_file(path: str | Path) -> List[Dict[str, Any]]:
    """Return the raw ABI entries stored at ``path``."""

    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise FileNotFoundError(f"ABI file not found: {file_path}")
    entries = load_abi_from_text(file_path.read_text(encoding="utf-8"))
    log_event("abi", "load", path=str(file_path), entries=len(entries))
    return entries


__all__ = ["load_abi_from_file", "load_abi_from_text"]
