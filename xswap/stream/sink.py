#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Dict,
    List,
    Optional,
)

import abc
import logging

from decimal import Decimal

from sqlalchemy import delete

import xswap.db
import xswap.db.orm as orm
from xswap.types import (
    CanonicalSwap,
    Network,
)

log = logging.getLogger(__name__)


class Sink(abc.ABC):
    """
    Downstream writer for canonical swaps
    """

    @abc.abstractmethod
    def cleanup(self, cutoff: int) -> None:
        """
        Remove everything written after block ``cutoff`` (leftovers of an interrupted batch)

        :param cutoff: last block number that is known to be complete
        :return:
        """
        raise NotImplementedError

    @abc.abstractmethod
    def write(self, swaps: List[CanonicalSwap]) -> None:
        """
        Write a batch of swaps (all-or-nothing)

        :param swaps: swaps ordered by block number and log index
        :return:
        """
        raise NotImplementedError


def _numeric(value: Optional[int]) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


def to_row(swap: CanonicalSwap) -> Dict[str, Any]:
    """
    Flatten a canonical swap into a ``swap`` table row

    :param swap: canonical swap
    :return:
    """
    return dict(
        network=swap.network.value,
        dex_name=swap.dex.value,
        protocol=swap.protocol.value,
        block_number=swap.block.number,
        block_hash=swap.block.hash,
        timestamp=swap.block.timestamp,
        transaction_hash=swap.transaction.hash,
        transaction_index=swap.transaction.index,
        log_index=swap.log_index,
        account=swap.account,
        sender=swap.sender,
        recipient=swap.recipient,
        pool=swap.pool.address,
        factory=swap.factory,
        fee=swap.pool.fee,
        tick_spacing=swap.pool.tick_spacing,
        stable=swap.pool.stable,
        liquidity=_numeric(swap.pool.liquidity),
        sqrt_price_x96=_numeric(swap.pool.sqrt_price_x96),
        tick=swap.pool.tick,
        token_a=swap.token_a.address,
        symbol_a=swap.token_a.symbol,
        decimals_a=swap.token_a.decimals,
        raw_amount_a=Decimal(swap.token_a.raw_amount),
        amount_a=swap.token_a.amount,
        token_b=swap.token_b.address,
        symbol_b=swap.token_b.symbol,
        decimals_b=swap.token_b.decimals,
        raw_amount_b=Decimal(swap.token_b.raw_amount),
        amount_b=swap.token_b.amount,
        a_to_b=swap.a_to_b,
    )


class SQLSwapSink(Sink):

    def __init__(self, db: xswap.db.FusionSQL, network: Network) -> None:
        """
        Write swaps to the ``swap`` table

        :param db: database service
        :param network: network of the stream (cleanup only touches rows of this network)
        """
        self._db = db
        self._network = network

    def cleanup(self, cutoff: int) -> None:
        with self._db.session.begin() as session:
            result = session.execute(
                delete(orm.Swap)
                    .where(orm.Swap.network == self._network.value)
                    .where(orm.Swap.block_number > cutoff)
            )

        if result.rowcount:
            log.info(f"Removed {result.rowcount} swaps after block {cutoff}")

    def write(self, swaps: List[CanonicalSwap]) -> None:
        if not swaps:
            return

        rows = []
        for swap in swaps:
            assert swap.network == self._network
            rows.append(to_row(swap))

        with self._db.session.begin() as session:
            log.debug(f"Bulk inserting {len(rows)} '{orm.Swap.__name__}' objects")
            session.bulk_insert_mappings(orm.Swap, rows)
