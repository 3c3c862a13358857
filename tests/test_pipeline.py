#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import List

import pytest

import xswap.db
from xswap.contract import TRACKED_TOKENS
from xswap.metadata import (
    PoolRegistry,
    TokenRegistry,
)
from xswap.normalizer import SwapNormalizer
from xswap.pipeline import (
    Pipeline,
    PipelineMode,
    PipelineState,
)
from xswap.protocol import ProtocolRegistry
from xswap.stream import SQLStateStore
from xswap.types import (
    Block,
    CanonicalSwap,
    Network,
    Position,
)

from .fakes import (
    FakeBlockSource,
    FakeMulticallClient,
    FakeSink,
    token,
)
from .logs import (
    POOL_1,
    POOL_2,
    TOKEN_X,
    USDC,
    WETH,
    header,
    make_block,
    v2_pair_created,
    v2_swap,
    v3_pool_created,
    v3_swap,
)

STREAM_ID = "base_swaps"


def stream_blocks() -> List[Block]:
    return [
        make_block(105, [v3_pool_created(USDC, TOKEN_X, POOL_1, tx=1)]),
        make_block(107, [v3_swap(POOL_1, amount0=1000, amount1=-2000, tx=2)]),
        make_block(115, [
            v2_pair_created(WETH, TOKEN_X, POOL_2, tx=3),
            v2_swap(POOL_2, amount0_in=10, amount1_in=0, amount0_out=0, amount1_out=20, tx=4),
            v3_swap(POOL_1, amount0=-50, amount1=60, tx=5),
        ]),
        make_block(118, [v3_swap(POOL_1, amount0=3, amount1=-4, tx=6)]),
    ]


@pytest.fixture
def normalizer(registry: ProtocolRegistry, pools: PoolRegistry, tokens: TokenRegistry) -> SwapNormalizer:
    return SwapNormalizer(
        network=Network.BASE,
        protocols=registry,
        pools=pools,
        tokens=tokens,
        enricher=FakeMulticallClient(contracts={
            USDC: token(6, "USDC"),
            WETH: token(18, "WETH"),
            TOKEN_X: token(18, "X"),
        }),
        tracked_tokens=TRACKED_TOKENS[Network.BASE],
    )


def make_pipeline(source, state, sink, normalizer, registry, mode=PipelineMode.SWAPS, stream_id=STREAM_ID) -> Pipeline:
    return Pipeline(
        stream_id=stream_id,
        source=source,
        state=state,
        sink=sink,
        normalizer=normalizer,
        filters=registry.filters(Network.BASE, pools_only=mode == PipelineMode.POOLS),
        default_start=100,
        mode=mode,
        progress_interval=0.0,
    )


def keys(swaps: List[CanonicalSwap]) -> list:
    return [(s.block.number, s.log_index) for s in swaps]


def test_pipeline_fresh_start(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry, normalizer: SwapNormalizer) -> None:
    source = FakeBlockSource(stream_blocks(), last=200, chunk_size=10)
    state = SQLStateStore(dbm)
    sink = FakeSink()

    pipeline = make_pipeline(source, state, sink, normalizer, registry)
    assert pipeline.state == PipelineState.INIT

    assert pipeline.run(to_block=120) == PipelineState.DRAINED

    assert sink.cutoffs == [99]
    assert source.opened == [(100, 120)]
    assert source.filters == registry.filters(Network.BASE)
    assert source.acked == [header(109).position, header(119).position, header(120).position]

    assert keys(sink.rows) == [(107, 0), (115, 1), (115, 2), (118, 0)]
    assert sink.rows[0].token_a.address == USDC
    assert sink.rows[0].token_a.raw_amount == 1000
    assert sink.rows[1].token_a.address == WETH

    checkpoint = state.get(STREAM_ID)
    assert checkpoint.current == header(120).position
    assert checkpoint.initial == Position(99)
    assert pipeline.checkpoint == checkpoint


def test_pipeline_resume(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry, normalizer: SwapNormalizer) -> None:
    state = SQLStateStore(dbm)
    state.save(STREAM_ID, header(150).position, header(100).position)

    source = FakeBlockSource([], last=200, chunk_size=5)
    sink = FakeSink()

    pipeline = make_pipeline(source, state, sink, normalizer, registry)
    assert pipeline.run(to_block=160) == PipelineState.DRAINED

    # leftovers after the checkpoint are removed, processing continues after it
    assert sink.cutoffs == [150]
    assert source.opened == [(151, 160)]
    assert source.acked[0] == header(155).position

    checkpoint = state.get(STREAM_ID)
    assert checkpoint.current == header(160).position
    assert checkpoint.initial == header(100).position


def test_pipeline_nothing_to_do(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry, normalizer: SwapNormalizer) -> None:
    state = SQLStateStore(dbm)
    state.save(STREAM_ID, header(150).position, header(100).position)

    source = FakeBlockSource([], last=200)
    sink = FakeSink()

    pipeline = make_pipeline(source, state, sink, normalizer, registry)
    assert pipeline.run(to_block=140) == PipelineState.DRAINED
    assert source.opened == []
    assert state.get(STREAM_ID).current == header(150).position


def test_pipeline_checkpoint_after_write(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry,
                                         normalizer: SwapNormalizer) -> None:
    source = FakeBlockSource(stream_blocks(), last=200, chunk_size=10)
    state = SQLStateStore(dbm)
    sink = FakeSink(fail_at=115)

    pipeline = make_pipeline(source, state, sink, normalizer, registry)
    with pytest.raises(IOError):
        pipeline.run(to_block=120)

    # the failed batch [110, 119] is neither checkpointed nor acknowledged
    assert state.get(STREAM_ID).current == header(109).position
    assert source.acked == [header(109).position]
    assert keys(sink.rows) == [(107, 0)]


def test_pipeline_idempotent_resume(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry,
                                    normalizer: SwapNormalizer) -> None:
    state = SQLStateStore(dbm)
    sink = FakeSink(fail_at=118)

    # interrupted while writing the second batch
    source = FakeBlockSource(stream_blocks(), last=200, chunk_size=10)
    with pytest.raises(IOError):
        make_pipeline(source, state, sink, normalizer, registry).run(to_block=120)

    sink.fail_at = None
    source = FakeBlockSource(stream_blocks(), last=200, chunk_size=10)
    assert make_pipeline(source, state, sink, normalizer, registry).run(to_block=120) == PipelineState.DRAINED

    assert sink.cutoffs == [99, 109]
    assert source.opened == [(110, 120)]

    # same result as an uninterrupted run
    assert keys(sink.rows) == [(107, 0), (115, 1), (115, 2), (118, 0)]
    assert state.get(STREAM_ID).current == header(120).position
    assert state.get(STREAM_ID).initial == Position(99)


def test_pipeline_pools_only(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry, normalizer: SwapNormalizer,
                             pools: PoolRegistry) -> None:
    source = FakeBlockSource(stream_blocks(), last=200, chunk_size=50)
    state = SQLStateStore(dbm)
    sink = FakeSink()

    pipeline = make_pipeline(source, state, sink, normalizer, registry, mode=PipelineMode.POOLS)
    assert pipeline.run(to_block=120) == PipelineState.DRAINED

    assert all(f.address for f in source.filters)
    assert sink.writes == 0
    assert sink.cutoffs == []
    assert sink.rows == []
    assert pools.get(POOL_1) is not None
    assert pools.get(POOL_2) is not None
    assert state.get(STREAM_ID).current == header(120).position


def test_pipeline_pools_only_keeps_swaps(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry,
                                        normalizer: SwapNormalizer) -> None:
    state = SQLStateStore(dbm)
    sink = FakeSink()

    swaps = make_pipeline(FakeBlockSource(stream_blocks(), last=200), state, sink, normalizer, registry)
    assert swaps.run(to_block=120) == PipelineState.DRAINED
    assert len(sink.rows) == 4

    # a fresh pool priming stream over the same range
    priming = make_pipeline(
        FakeBlockSource(stream_blocks(), last=200), state, sink, normalizer, registry,
        mode=PipelineMode.POOLS, stream_id="base_pools",
    )
    assert priming.run(to_block=120) == PipelineState.DRAINED

    assert sink.cutoffs == [99]
    assert keys(sink.rows) == [(107, 0), (115, 1), (115, 2), (118, 0)]
    assert state.get("base_pools").current == header(120).position
    assert state.get(STREAM_ID).current == header(120).position


def test_pipeline_stop(dbm: xswap.db.FusionSQL, registry: ProtocolRegistry, normalizer: SwapNormalizer) -> None:
    source = FakeBlockSource(stream_blocks(), last=200, chunk_size=10)
    state = SQLStateStore(dbm)
    pipeline = None

    class StoppingSink(FakeSink):

        def write(self, swaps: List[CanonicalSwap]) -> None:
            super().write(swaps)
            pipeline.stop()

    sink = StoppingSink()
    pipeline = make_pipeline(source, state, sink, normalizer, registry)

    # follow the chain tip until stopped
    assert pipeline.run() == PipelineState.STOPPED

    # the batch in progress is completed
    assert state.get(STREAM_ID).current == header(109).position
    assert keys(sink.rows) == [(107, 0)]
