#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
)

import threading

from eth_abi import encode

from web3.exceptions import Web3Exception

from xswap.contract import MULTICALL
from xswap.enrichment import (
    SELECTOR_DECIMALS,
    SELECTOR_SYMBOL,
    TokenEnrichmentClient,
)
from xswap.stream import (
    BlockSource,
    Sink,
)
from xswap.types import (
    Block,
    BlockBatch,
    CanonicalSwap,
    LogFilter,
    Network,
    Position,
)

from .logs import header

# (decimals, symbol) return data, ``None`` marks a reverting call
TReturn = Tuple[Optional[bytes], Optional[bytes]]


def token(decimals: int, symbol: str) -> TReturn:
    return encode(["uint8"], [decimals]), encode(["string"], [symbol])


class FakeMulticallClient(TokenEnrichmentClient):
    """
    Enrichment client that answers aggregated calls from a lookup table
    """

    def __init__(
        self,
        contracts: Dict[str, TReturn],
        failing: Tuple[str, ...] = (),
        error: Type[Exception] = Web3Exception,
        **kwargs,
    ) -> None:
        """
        :param contracts: token address to (decimals, symbol) return data
        :param failing: aggregated calls that include one of these tokens raise ``error``
        :param error: exception raised by failing calls
        """
        multicall = MULTICALL[Network.BASE]
        super().__init__(
            w3=None,
            network=Network.BASE,
            multicall_address=multicall.address,
            multicall_abi=multicall.abi,
            **kwargs,
        )
        self.contracts = contracts
        self.failing = failing
        self.error = error
        self.calls: List[List[str]] = []
        self._lock = threading.Lock()

    def _call(self, calls: List[Tuple[str, bytes]]) -> List[Tuple[bool, bytes]]:
        targets = [t for t, _ in calls[::2]]
        with self._lock:
            self.calls.append(targets)

        if any(t in self.failing for t in targets):
            raise self.error("aggregated call failed")

        results = []
        for target, data in calls:
            assert data in (SELECTOR_DECIMALS, SELECTOR_SYMBOL)
            decimals, symbol = self.contracts.get(target, (None, None))
            value = decimals if data == SELECTOR_DECIMALS else symbol
            results.append((value is not None, value or b""))
        return results


class FakeBlockSource(BlockSource):
    """
    Serves prepared blocks in fixed size batches
    """

    def __init__(self, blocks: List[Block], last: int, chunk_size: int = 10) -> None:
        self.blocks = {b.header.number: b for b in blocks}
        self.last = last
        self.chunk_size = chunk_size

        self.opened: List[Tuple[int, Optional[int]]] = []
        self.filters: List[LogFilter] = []
        self.acked: List[Position] = []
        self.closed = False

    def open(self, filters: Sequence[LogFilter], from_block: int, to_block: Optional[int] = None) -> Iterator[BlockBatch]:
        self.opened.append((from_block, to_block))
        self.filters = list(filters)

        end = self.last if to_block is None else min(to_block, self.last)
        start = from_block
        while start <= end and not self.closed:
            stop = min(start + self.chunk_size - 1, end)
            blocks = [self.blocks[n] for n in range(start, stop + 1) if n in self.blocks]
            yield BlockBatch(blocks=blocks, position=header(stop).position)
            start = stop + 1

    def ack(self, position: Position) -> None:
        self.acked.append(position)

    def latest(self) -> Position:
        return header(self.last).position

    def close(self) -> None:
        self.closed = True


class FakeSink(Sink):

    def __init__(self, fail_at: Optional[int] = None) -> None:
        """
        In-memory sink

        :param fail_at: raise when a batch contains a swap of this block
        """
        self.fail_at = fail_at
        self.cutoffs: List[int] = []
        self.rows: List[CanonicalSwap] = []
        self.writes = 0

    def cleanup(self, cutoff: int) -> None:
        self.cutoffs.append(cutoff)
        self.rows = [r for r in self.rows if r.block.number <= cutoff]

    def write(self, swaps: List[CanonicalSwap]) -> None:
        if self.fail_at is not None and any(s.block.number == self.fail_at for s in swaps):
            raise IOError("sink unavailable")
        self.writes += 1
        self.rows.extend(swaps)
