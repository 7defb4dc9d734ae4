from __future__ import annotations

from evmabi.grammar import parse_type
from evmabi.hashing import event_topic, function_selector, keccak, signature
from evmabi.types import Address, FixedArray, Tuple, Uint


def test_keccak_empty_input() -> None:
    assert keccak(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


def test_well_known_selectors() -> None:
    assert function_selector("transfer(address,uint256)").hex() == "a9059cbb"
    assert function_selector("balanceOf(address)").hex() == "70a08231"
    assert function_selector("Error(string)").hex() == "08c379a0"
    assert function_selector("Panic(uint256)").hex() == "4e487b71"


def test_selector_of_fixed_array_signature() -> None:
    text = signature("funname", [Address(), FixedArray(Uint(56), 5)])
    assert text == "funname(address,uint56[5])"
    assert function_selector(text).hex() == "aba0e63a"


def test_event_topics() -> None:
    assert (
        event_topic("Transfer(address,address,uint256)").hex()
        == "ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
    )
    assert (
        event_topic("Approve(uint56,string)").hex()
        == "a61d695a23b25aa2db668e3216af77ef9a2409384ddff9e6a94bfd50a32c6eeb"
    )


def test_signature_uses_canonical_names_only() -> None:
    order = Tuple((("amount", Uint()), ("owner", Address())))
    assert signature("fill", [order, parse_type("uint[]")]) == "fill((uint256,address),uint256[])"
    assert signature("noop", []) == "noop()"
