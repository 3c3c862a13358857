#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from decimal import Decimal

import pytest

from sqlalchemy import select
import sqlalchemy.exc

import xswap.db
import xswap.db.orm as orm
from xswap.stream import SQLSwapSink
from xswap.types import (
    CanonicalSwap,
    CanonicalToken,
    DexName,
    DexProtocol,
    Network,
    PoolRef,
    TransactionRef,
)

from .logs import (
    ACCOUNT,
    POOL_1,
    RECIPIENT,
    SENDER,
    TOKEN_X,
    USDC,
    factory,
    header,
    tx_hash,
)


def swap(block_number: int, log_index: int = 0) -> CanonicalSwap:
    return CanonicalSwap(
        dex=DexName.UNISWAP,
        protocol=DexProtocol.UNISWAP_V3,
        network=Network.BASE,
        block=header(block_number),
        transaction=TransactionRef(hash=tx_hash(block_number), index=3),
        log_index=log_index,
        account=ACCOUNT,
        sender=SENDER,
        recipient=RECIPIENT,
        factory=factory(DexProtocol.UNISWAP_V3),
        pool=PoolRef(address=POOL_1, fee=500, tick_spacing=10, liquidity=1000, sqrt_price_x96=2 ** 40, tick=-5),
        token_a=CanonicalToken(address=USDC, raw_amount=1000, decimals=6, symbol="USDC", amount=Decimal("0.001")),
        token_b=CanonicalToken(address=TOKEN_X, raw_amount=-2000),
        a_to_b=True,
    )


def load(dbm: xswap.db.FusionSQL):
    with dbm.session() as session:
        return session.execute(
            select(orm.Swap)
                .order_by(orm.Swap.block_number, orm.Swap.log_index)
        ).scalars().all()


def test_sink_write(dbm: xswap.db.FusionSQL) -> None:
    sink = SQLSwapSink(dbm, Network.BASE)
    sink.write([swap(151, 0), swap(151, 4), swap(152, 1)])
    sink.write([])

    rows = load(dbm)
    assert [(r.block_number, r.log_index) for r in rows] == [(151, 0), (151, 4), (152, 1)]

    row = rows[0]
    assert row.network == "base"
    assert row.protocol == "uniswap_v3"
    assert row.token_a == USDC
    assert row.symbol_a == "USDC"
    assert row.raw_amount_a == 1000
    assert row.amount_a == Decimal("0.001")
    assert row.raw_amount_b == -2000
    assert row.decimals_b is None
    assert row.amount_b is None
    assert row.a_to_b is True
    assert row.tick == -5


def test_sink_write_all_or_nothing(dbm: xswap.db.FusionSQL) -> None:
    sink = SQLSwapSink(dbm, Network.BASE)
    sink.write([swap(151, 0)])

    # the duplicate rolls back the whole batch
    with pytest.raises(sqlalchemy.exc.IntegrityError):
        sink.write([swap(152, 0), swap(151, 0)])

    assert [(r.block_number, r.log_index) for r in load(dbm)] == [(151, 0)]


def test_sink_cleanup(dbm: xswap.db.FusionSQL) -> None:
    sink = SQLSwapSink(dbm, Network.BASE)
    sink.write([swap(149), swap(150), swap(151), swap(152)])

    sink.cleanup(150)
    assert [r.block_number for r in load(dbm)] == [149, 150]

    # nothing to remove
    sink.cleanup(150)
    assert len(load(dbm)) == 2
