#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Dict,
    List,
    Optional,
    Tuple,
    Union,
)

import enum
from dataclasses import (
    dataclass,
    field,
)
from decimal import Decimal


@enum.unique
class Network(str, enum.Enum):
    BASE = "base"
    ETHEREUM = "ethereum"


@enum.unique
class DexName(str, enum.Enum):
    UNISWAP = "uniswap"
    AERODROME = "aerodrome"


@enum.unique
class DexProtocol(str, enum.Enum):
    UNISWAP_V2 = "uniswap_v2"
    UNISWAP_V3 = "uniswap_v3"
    AERODROME_BASIC = "aerodrome_basic"
    AERODROME_SLIPSTREAM = "aerodrome_slipstream"


# Stream positions and checkpoints

@dataclass(frozen=True, order=True)
class Position(object):
    """
    Totally ordered chain location (block height, ties broken by block hash)
    """
    number: int
    hash: str = ""

    def __str__(self) -> str:
        return f"{self.number}" if not self.hash else f"{self.number} ({self.hash})"


@dataclass(frozen=True)
class Checkpoint(object):
    """
    Ingestion progress of a stream

    Attributes:
        current: last position that has been durably written to the sink
        initial: position the stream originally started from
    """
    current: Position
    initial: Position

    def __post_init__(self) -> None:
        if self.current < self.initial:
            raise ValueError(f"Checkpoint {self.current} lies before its initial position {self.initial}")

    @property
    def is_fresh(self) -> bool:
        return self.initial.number == self.current.number


# Block source data

@dataclass(frozen=True)
class BlockHeader(object):
    number: int
    hash: str
    timestamp: int

    @property
    def position(self) -> Position:
        return Position(self.number, self.hash)


@dataclass(frozen=True)
class Transaction(object):
    hash: str
    index: int
    from_: str
    to: Optional[str] = None


@dataclass(frozen=True)
class Log(object):
    """
    Raw event log entry

    Note: hex values (topics, data, hashes) are ``0x`` prefixed lowercase strings, addresses are checksummed
    """
    address: str
    topics: Tuple[str, ...]
    data: str
    transaction_hash: str
    log_index: int
    transaction_index: int

    @property
    def topic0(self) -> Optional[str]:
        return self.topics[0] if self.topics else None


@dataclass
class Block(object):
    header: BlockHeader
    logs: List[Log] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)

    _tx_index: Optional[Dict[str, Transaction]] = field(default=None, init=False, repr=False, compare=False)

    def transaction(self, hash_: str) -> Optional[Transaction]:
        """
        Find a transaction of this block by hash

        :param hash_: transaction hash
        :return:
        """
        if self._tx_index is None:
            self._tx_index = {tx.hash.lower(): tx for tx in self.transactions}
        return self._tx_index.get(hash_.lower())


@dataclass(frozen=True)
class BlockBatch(object):
    """
    Unit of work handed out by a block source

    Attributes:
        blocks: blocks (ascending) that contain at least one matching log
        position: position covered by this batch, the checkpoint to save once the batch is written
    """
    blocks: List[Block]
    position: Position


@dataclass(frozen=True)
class LogFilter(object):
    """
    Declarative selection of event logs (empty ``address`` matches any contract)
    """
    topic0: Tuple[str, ...]
    address: Tuple[str, ...] = ()


# Metadata records

@dataclass(frozen=True)
class PoolRecord(object):
    network: Network
    dex: DexName
    protocol: DexProtocol
    pool: str
    token0: str
    token1: str
    factory: str
    block_number: int
    fee: Optional[int] = None
    tick_spacing: Optional[int] = None
    stable: Optional[bool] = None


@dataclass(frozen=True)
class TokenRecord(object):
    network: Network
    address: str
    decimals: int
    symbol: str


# Decoder output

@dataclass(frozen=True)
class SwapLeg(object):
    """
    One side of a decoded swap

    Attributes:
        amount: signed change of the pool balance (positive: tokens entered the pool)
        account: sender (``from_`` leg) or recipient (``to`` leg) of the swap
    """
    amount: int
    account: str


@dataclass(frozen=True)
class DecodedSwap(object):
    """
    Protocol decoder output (``from_`` is the token0 leg, ``to`` the token1 leg of the pool)
    """
    dex: DexName
    protocol: DexProtocol
    from_: SwapLeg
    to: SwapLeg
    liquidity: Optional[int] = None
    sqrt_price_x96: Optional[int] = None
    tick: Optional[int] = None


@dataclass(frozen=True)
class Unmatched(object):
    """
    A log that could not be turned into a known event shape
    """
    log: Log
    reason: str


DecodedEvent = Union[PoolRecord, DecodedSwap, Unmatched]


# Canonical output

@dataclass(frozen=True)
class CanonicalToken(object):
    address: str
    raw_amount: int
    decimals: Optional[int] = None
    symbol: Optional[str] = None
    amount: Optional[Decimal] = None


@dataclass(frozen=True)
class PoolRef(object):
    address: str
    fee: Optional[int] = None
    tick_spacing: Optional[int] = None
    stable: Optional[bool] = None
    liquidity: Optional[int] = None
    sqrt_price_x96: Optional[int] = None
    tick: Optional[int] = None


@dataclass(frozen=True)
class TransactionRef(object):
    hash: str
    index: int


@dataclass(frozen=True)
class CanonicalSwap(object):
    dex: DexName
    protocol: DexProtocol
    network: Network
    block: BlockHeader
    transaction: TransactionRef
    log_index: int
    account: str
    sender: str
    recipient: str
    factory: str
    pool: PoolRef
    token_a: CanonicalToken
    token_b: CanonicalToken
    # token A entered the pool (token A was sold for token B)
    a_to_b: bool
