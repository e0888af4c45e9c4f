# -*- coding: utf-8 -*-
"""Unit tests for webhook payload validation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from pool_activity_monitor.api.schemas import parse_webhook_payload
from pool_activity_monitor.exceptions import ValidationError
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.swap import ConcentratedLiquiditySwap, ConstantProductSwap

PAIR = "0x" + "A1" * 20
POOL = "0x" + "b2" * 20
TOKEN0 = "0x" + "c3" * 20
TOKEN1 = "0x" + "d4" * 20
TRADER = "0x" + "e5" * 20
TX = "0x" + "f" * 64
BLOCK_HASH = "0x" + "1" * 64


def _block(**overrides: Any) -> dict[str, Any]:
    block: dict[str, Any] = {
        "number": 19000000,
        "hash": BLOCK_HASH,
        "uniswapV2": {
            "pairCreations": [
                {
                    "pair": PAIR,
                    "token0": TOKEN0,
                    "token1": TOKEN1,
                    "blockNumber": 19000000,
                    "blockTimestamp": 1760000000,
                    "transactionHash": TX,
                }
            ],
            "swaps": [
                {
                    "pair": PAIR,
                    "sender": TRADER,
                    "to": TRADER,
                    "amount0In": "0",
                    "amount1In": "115792089237316195423570985008687907853269984665640564039457584007913129639935",
                    "amount0Out": 500,
                    "amount1Out": "0",
                    "blockNumber": 19000000,
                    "blockTimestamp": 1760000000,
                    "transactionHash": TX,
                    "logIndex": 3,
                }
            ],
        },
        "uniswapV3": {
            "poolCreations": [
                {
                    "pool": POOL,
                    "token0": TOKEN0,
                    "token1": TOKEN1,
                    "fee": 3000,
                    "tickSpacing": 60,
                    "blockNumber": 19000000,
                    "blockTimestamp": 1760000000,
                    "transactionHash": TX,
                }
            ],
            "swaps": [
                {
                    "pool": POOL,
                    "sender": TRADER,
                    "recipient": TRADER,
                    "amount0": "-1000",
                    "amount1": "2000",
                    "sqrtPriceX96": "79228162514264337593543950336",
                    "liquidity": "1000",
                    "tick": -887272,
                    "blockNumber": 19000000,
                    "blockTimestamp": 1760000000,
                    "transactionHash": TX,
                    "logIndex": 4,
                }
            ],
        },
    }
    block.update(overrides)
    return block


def test_full_block_is_converted() -> None:
    [block] = parse_webhook_payload({"data": [_block()]}, Chain.ETHEREUM)

    assert block.chain is Chain.ETHEREUM
    assert [p.variant for p in block.pools] == [
        ProtocolVariant.CONSTANT_PRODUCT,
        ProtocolVariant.CONCENTRATED_LIQUIDITY,
    ]
    assert block.pools[0].address == PAIR.lower()
    assert block.pools[1].fee == 3000 and block.pools[1].tick_spacing == 60
    v2, v3 = block.swaps
    assert isinstance(v2, ConstantProductSwap)
    assert v2.amount1_in == Decimal(2**256 - 1)
    assert v2.amount0_out == Decimal(500)
    assert isinstance(v3, ConcentratedLiquiditySwap)
    assert v3.amount0 == Decimal(-1000) and v3.tick == -887272


def test_missing_protocol_sections_default_to_empty() -> None:
    [block] = parse_webhook_payload({"data": [{"number": 1, "hash": BLOCK_HASH}]}, Chain.BASE)

    assert block.chain is Chain.BASE
    assert block.pools == () and block.swaps == ()


def test_item_chain_overrides_route_chain() -> None:
    [block] = parse_webhook_payload({"data": [_block(chain="base")]}, Chain.ETHEREUM)

    assert block.chain is Chain.BASE


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"data": "nope"},
        {"data": [_block(number=-1)]},
        {"data": [_block(hash="0x1234")]},
        {"data": [_block(chain="solana")]},
    ],
    ids=["no_data", "data_not_list", "negative_number", "short_hash", "unknown_chain"],
)
def test_malformed_payload_is_rejected(body: dict[str, Any]) -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_webhook_payload(body, Chain.ETHEREUM)

    assert exc_info.value.errors


def test_bad_swap_fields_are_reported_with_location() -> None:
    block = _block()
    block["uniswapV2"]["swaps"][0]["amount0In"] = "-5"
    block["uniswapV3"]["swaps"][0]["pool"] = "0xnot-an-address"

    with pytest.raises(ValidationError) as exc_info:
        parse_webhook_payload({"data": [block]}, Chain.ETHEREUM)

    locations = {e["loc"] for e in exc_info.value.errors}
    assert "data.0.uniswapV2.swaps.0.amount0In" in locations
    assert "data.0.uniswapV3.swaps.0.pool" in locations
