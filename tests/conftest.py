from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from evmabi import logbook  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("EVMABI_HOME", str(home))
    for name in ("EVMABI_STRICT", "EVMABI_STRICT_PADDING", "EVMABI_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray ./.env out of the settings under test.
    monkeypatch.chdir(tmp_path)
    logbook.reset_logger()
    yield home
    logbook.reset_logger()
    library = logging.getLogger("evmabi")
    for handler in list(library.handlers):
        library.removeHandler(handler)
    library.setLevel(logging.NOTSET)


@pytest.fixture()
def token_abi() -> list:
    return [
        {
            "type": "constructor",
            "inputs": [
                {"internalType": "string", "name": "name", "type": "string"},
                {"internalType": "uint256", "name": "supply", "type": "uint256"},
            ],
            "stateMutability": "nonpayable",
        },
        {
            "type": "function",
            "name": "transfer",
            "inputs": [
                {"internalType": "address", "name": "to", "type": "address"},
                {"internalType": "uint256", "name": "amount", "type": "uint256"},
            ],
            "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
            "stateMutability": "nonpayable",
        },
        {
            "type": "function",
            "name": "balanceOf",
            "inputs": [{"internalType": "address", "name": "owner", "type": "address"}],
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
        },
        {
            "type": "function",
            "name": "submit",
            "inputs": [
                {
                    "internalType": "struct Order[]",
                    "name": "orders",
                    "type": "tuple[]",
                    "components": [
                        {"internalType": "uint256", "name": "amount", "type": "uint256"},
                        {"internalType": "string", "name": "memo", "type": "string"},
                    ],
                }
            ],
            "outputs": [],
            "stateMutability": "payable",
        },
        {
            "type": "event",
            "name": "Transfer",
            "inputs": [
                {"indexed": True, "internalType": "address", "name": "from", "type": "address"},
                {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
                {"indexed": False, "internalType": "uint256", "name": "value", "type": "uint256"},
            ],
            "anonymous": False,
        },
        {
            "type": "event",
            "name": "Note",
            "inputs": [
                {"indexed": True, "internalType": "string", "name": "tag", "type": "string"},
                {"indexed": False, "internalType": "bytes", "name": "body", "type": "bytes"},
            ],
            "anonymous": False,
        },
        {
            "type": "event",
            "name": "Ping",
            "inputs": [{"indexed": True, "internalType": "uint256", "name": "nonce", "type": "uint256"}],
            "anonymous": True,
        },
        {
            "type": "error",
            "name": "InsufficientBalance",
            "inputs": [
                {"internalType": "uint256", "name": "available", "type": "uint256"},
                {"internalType": "uint256", "name": "required", "type": "uint256"},
            ],
        },
        {"type": "fallback", "stateMutability": "nonpayable"},
        {"type": "receive", "stateMutability": "payable"},
    ]


@pytest.fixture()
def token_abi_file(tmp_path: Path, token_abi: list) -> Path:
    path = tmp_path / "Token.json"
    path.write_text(json.dumps({"contractName": "Token", "abi": token_abi}), encoding="utf-8")
    return path


@pytest.fixture()
def factory_abi() -> list:
    return [
        {
            "inputs": [
                {"internalType": "address", "name": "tokenA", "type": "address"},
                {"internalType": "address", "name": "tokenB", "type": "address"},
                {"internalType": "uint24", "name": "fee", "type": "uint24"},
            ],
            "name": "createPool",
            "outputs": [{"internalType": "address", "name": "pool", "type": "address"}],
            "stateMutability": "nonpayable",
            "type": "function",
        },
        {
            "anonymous": False,
            "inputs": [
                {"indexed": True, "internalType": "address", "name": "token0", "type": "address"},
                {"indexed": True, "internalType": "address", "name": "token1", "type": "address"},
                {"indexed": True, "internalType": "uint24", "name": "fee", "type": "uint24"},
                {"indexed": False, "internalType": "int24", "name": "tickSpacing", "type": "int24"},
                {"indexed": False, "internalType": "address", "name": "pool", "type": "address"},
            ],
            "name": "PoolCreated",
            "type": "event",
        },
    ]
