# -*- coding: utf-8 -*-
"""Request schemas for the ingestion webhook (camelCase keys, as pushed by the indexer).

Amounts arrive as decimal strings (uint256 / int256 do not fit a JSON number)
or as integers; both are accepted and converted to Decimal without going
through float.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError as PydanticValidationError,
)
from pydantic.alias_generators import to_camel

from pool_activity_monitor.exceptions import ValidationError
from pool_activity_monitor.models.block import BlockEvents
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord
from pool_activity_monitor.models.swap import ConcentratedLiquiditySwap, ConstantProductSwap


def _int_to_str(value: Any) -> Any:
    # bool is an int subclass; let it fail the pattern instead of becoming "True".
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


Address = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^0x[0-9a-fA-F]{40}$")]
TxHash = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^0x[0-9a-fA-F]{64}$")]
UnsignedAmount = Annotated[
    str, BeforeValidator(_int_to_str), StringConstraints(strip_whitespace=True, pattern=r"^\d+$")
]
SignedAmount = Annotated[
    str, BeforeValidator(_int_to_str), StringConstraints(strip_whitespace=True, pattern=r"^-?\d+$")
]
NonNegativeInt = Annotated[int, Field(ge=0, strict=True)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class _EventSchema(_CamelModel):
    block_number: NonNegativeInt
    block_timestamp: NonNegativeInt
    """Unix seconds."""
    transaction_hash: TxHash


class PairCreationSchema(_EventSchema):
    """v2 PairCreated event."""

    pair: Address
    token0: Address
    token1: Address

    def to_record(self) -> PoolRecord:
        return PoolRecord.create(
            ProtocolVariant.CONSTANT_PRODUCT,
            address=self.pair,
            token0=self.token0,
            token1=self.token1,
            block_number=self.block_number,
            block_timestamp=self.block_timestamp,
            transaction_hash=self.transaction_hash,
        )


class PoolCreationSchema(_EventSchema):
    """v3 PoolCreated event."""

    pool: Address
    token0: Address
    token1: Address
    fee: NonNegativeInt
    tick_spacing: Annotated[int, Field(strict=True)]

    def to_record(self) -> PoolRecord:
        return PoolRecord.create(
            ProtocolVariant.CONCENTRATED_LIQUIDITY,
            address=self.pool,
            token0=self.token0,
            token1=self.token1,
            block_number=self.block_number,
            block_timestamp=self.block_timestamp,
            transaction_hash=self.transaction_hash,
            fee=self.fee,
            tick_spacing=self.tick_spacing,
        )


class SwapV2Schema(_EventSchema):
    """v2 Swap event."""

    pair: Address
    sender: Address
    to: Address
    amount0_in: UnsignedAmount
    amount1_in: UnsignedAmount
    amount0_out: UnsignedAmount
    amount1_out: UnsignedAmount
    log_index: NonNegativeInt

    def to_event(self) -> ConstantProductSwap:
        return ConstantProductSwap.create(
            pool=self.pair,
            sender=self.sender,
            recipient=self.to,
            amount0_in=self.amount0_in,
            amount1_in=self.amount1_in,
            amount0_out=self.amount0_out,
            amount1_out=self.amount1_out,
            block_number=self.block_number,
            block_timestamp=self.block_timestamp,
            transaction_hash=self.transaction_hash,
            log_index=self.log_index,
        )


class SwapV3Schema(_EventSchema):
    """v3 Swap event (signed amounts from the pool's perspective)."""

    pool: Address
    sender: Address
    recipient: Address
    amount0: SignedAmount
    amount1: SignedAmount
    sqrt_price_x96: UnsignedAmount = Field(alias="sqrtPriceX96")
    liquidity: UnsignedAmount
    tick: Annotated[int, Field(strict=True)]
    log_index: NonNegativeInt

    def to_event(self) -> ConcentratedLiquiditySwap:
        return ConcentratedLiquiditySwap.create(
            pool=self.pool,
            sender=self.sender,
            recipient=self.recipient,
            amount0=self.amount0,
            amount1=self.amount1,
            sqrt_price_x96=self.sqrt_price_x96,
            liquidity=self.liquidity,
            tick=self.tick,
            block_number=self.block_number,
            block_timestamp=self.block_timestamp,
            transaction_hash=self.transaction_hash,
            log_index=self.log_index,
        )


class UniswapV2Events(_CamelModel):
    pair_creations: list[PairCreationSchema] = Field(default_factory=list)
    swaps: list[SwapV2Schema] = Field(default_factory=list)


class UniswapV3Events(_CamelModel):
    pool_creations: list[PoolCreationSchema] = Field(default_factory=list)
    swaps: list[SwapV3Schema] = Field(default_factory=list)


class BlockEventBatch(_CamelModel):
    """Events of one block. `chain` overrides the chain of the route."""

    number: NonNegativeInt
    hash: TxHash
    chain: Optional[Chain] = None
    uniswap_v2: UniswapV2Events = Field(default_factory=UniswapV2Events, alias="uniswapV2")
    uniswap_v3: UniswapV3Events = Field(default_factory=UniswapV3Events, alias="uniswapV3")

    def to_block_events(self, default_chain: Chain) -> BlockEvents:
        pools = [p.to_record() for p in self.uniswap_v2.pair_creations]
        pools += [p.to_record() for p in self.uniswap_v3.pool_creations]
        swaps: list[ConstantProductSwap | ConcentratedLiquiditySwap] = [
            s.to_event() for s in self.uniswap_v2.swaps
        ]
        swaps += [s.to_event() for s in self.uniswap_v3.swaps]
        return BlockEvents(
            chain=self.chain or default_chain,
            number=self.number,
            hash=self.hash.lower(),
            pools=tuple(pools),
            swaps=tuple(swaps),
        )


class WebhookPayload(_CamelModel):
    """Body of POST /webhook: {"data": [BlockEventBatch, ...]}."""

    data: list[BlockEventBatch]


def parse_webhook_payload(body: Any, default_chain: Chain) -> list[BlockEvents]:
    """Validate a decoded JSON body and convert it to domain events.

    Raises:
        ValidationError: If the body does not match the webhook schema.
    """
    try:
        payload = WebhookPayload.model_validate(body)
    except PydanticValidationError as e:
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in e.errors(include_url=False)
        ]
        raise ValidationError(
            f"Invalid webhook payload ({e.error_count()} errors)", errors=errors
        ) from e
    return [batch.to_block_events(default_chain) for batch in payload.data]
