#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Dict,
    Iterable,
    List,
    Optional,
    Tuple,
)

import collections
import enum
import logging
from dataclasses import dataclass
from decimal import (
    Decimal,
    InvalidOperation,
)

from xswap.enrichment import TokenEnrichmentClient
from xswap.metadata import (
    PoolRegistry,
    TokenRegistry,
)
from xswap.protocol import ProtocolRegistry
from xswap.types import (
    Block,
    CanonicalSwap,
    CanonicalToken,
    DecodedSwap,
    Log,
    Network,
    PoolRecord,
    PoolRef,
    TokenRecord,
    Transaction,
    TransactionRef,
    Unmatched,
)
from xswap.util import (
    checksum,
    token_to_decimal,
    unique,
)

log = logging.getLogger(__name__)


@enum.unique
class DropReason(str, enum.Enum):
    UNKNOWN_POOL = "unknown_pool"
    MISSING_TRANSACTION = "missing_transaction"
    UNMATCHED = "unmatched"


@enum.unique
class Stat(str, enum.Enum):
    POOLS = "pools"
    SWAPS = "swaps"
    TOKENS_FETCHED = "tokens_fetched"
    TOKENS_UNRESOLVED = "tokens_unresolved"
    ENRICHMENT_ERRORS = "enrichment_errors"
    AMOUNT_OVERFLOW = "amount_overflow"


class PairOrder(object):
    """
    Deterministic token pair order

    Well-known tokens (e.g. stable coins, wrapped native tokens) take the token A slot, in list order.
    All other tokens sort after them by lowercase address.
    """

    def __init__(self, tracked: Iterable[str]) -> None:
        self._rank = {}
        for address in tracked:
            self._rank.setdefault(address.lower(), len(self._rank))

    def key(self, address: str) -> Tuple[int, str]:
        address = address.lower()
        return self._rank.get(address, len(self._rank)), address

    def is_ordered(self, token0: str, token1: str) -> bool:
        """
        Check whether token0 takes the token A slot

        :param token0: first token of the pool
        :param token1: second token of the pool
        :return:
        """
        return self.key(token0) <= self.key(token1)


@dataclass(frozen=True)
class _Pending(object):
    block: Block
    log: Log
    transaction: Transaction
    pool: PoolRecord
    swap: DecodedSwap


class SwapNormalizer(object):
    """
    Turn a batch of blocks into canonical swap records

    Per batch:
    1) register pools announced by factory creation logs (visible to the rest of the batch),
    2) resolve pool, transaction and decoder of every swap candidate (drop what can't be resolved),
    3) resolve token metadata with a single enrichment pass,
    4) build the canonical records (pair order, signed amounts, metadata).

    Note: a pool created in the same batch as its first swaps is registered before any swap
    of the batch is resolved, so a creation log always precedes dependent swaps.
    """

    def __init__(
        self,
        network: Network,
        protocols: ProtocolRegistry,
        pools: PoolRegistry,
        tokens: TokenRegistry,
        enricher: Optional[TokenEnrichmentClient],
        tracked_tokens: Iterable[str] = (),
    ) -> None:
        """
        Create a swap normalizer

        :param network: network of the stream
        :param protocols: protocol registry
        :param pools: pool registry of the network
        :param tokens: token registry of the network
        :param enricher: on-chain token metadata client (``None`` disables enrichment)
        :param tracked_tokens: token priority list used for the pair order
        """
        assert pools.network == network
        assert tokens.network == network

        self._network = network
        self._protocols = protocols
        self._pools = pools
        self._tokens = tokens
        self._enricher = enricher
        self._order = PairOrder(tracked_tokens)

        # run level counters
        self.stats = collections.Counter()
        self.drops = collections.Counter()

    @property
    def network(self) -> Network:
        return self._network

    def _drop(self, reason: DropReason, entry: Log, detail: str) -> None:
        self.drops[reason] += 1
        log.warning(
            f"Dropped log {entry.transaction_hash}:{entry.log_index} ({reason.value}): {detail}"
        )

    def index_pools(self, blocks: Iterable[Block]) -> List[PoolRecord]:
        """
        Register all pools announced in the given blocks

        :param blocks: blocks in ascending order
        :return: the effective pool records (a pool that is already known keeps its stored record)
        """
        records = []
        for block in blocks:
            for entry in block.logs:
                record = self._protocols.match_pool_created(self._network, entry, block.header)
                if isinstance(record, Unmatched):
                    self._drop(DropReason.UNMATCHED, entry, record.reason)
                elif record is not None:
                    records.append(record)

        if not records:
            return []

        pools = self._pools.put(records)
        self.stats[Stat.POOLS] += len(pools)
        log.debug(f"Registered {len(pools)} pools")
        return pools

    def _resolve_swaps(self, blocks: List[Block], local: Dict[str, PoolRecord]) -> List[_Pending]:
        candidates = []
        for block in blocks:
            for entry in block.logs:
                if self._protocols.is_swap_candidate(self._network, entry):
                    candidates.append((block, entry))

        if not candidates:
            return []

        addresses = unique(checksum(entry.address) for _, entry in candidates)
        known = self._pools.get_many(a for a in addresses if a not in local)
        known.update(local)

        pending = []
        for block, entry in candidates:
            pool = known.get(checksum(entry.address))
            if pool is None:
                self._drop(DropReason.UNKNOWN_POOL, entry, f"pool '{entry.address}' is not registered")
                continue

            tx = block.transaction(entry.transaction_hash)
            if tx is None:
                self._drop(DropReason.MISSING_TRANSACTION, entry, f"block {block.header.number} lacks the transaction")
                continue

            decoded = self._protocols.decode_swap(entry, pool)
            if isinstance(decoded, Unmatched):
                self._drop(DropReason.UNMATCHED, entry, decoded.reason)
                continue

            pending.append(_Pending(block=block, log=entry, transaction=tx, pool=pool, swap=decoded))
        return pending

    def _resolve_tokens(self, addresses: List[str]) -> Dict[str, TokenRecord]:
        tokens = self._tokens.get_many(addresses)
        missing = [a for a in addresses if a not in tokens]
        if not missing:
            return tokens

        if self._enricher is None:
            self.stats[Stat.TOKENS_UNRESOLVED] += len(missing)
            return tokens

        result = self._enricher.fetch(missing)
        self.stats[Stat.ENRICHMENT_ERRORS] += len(result.errors)
        self.stats[Stat.TOKENS_UNRESOLVED] += len(result.failed)

        # persist first, then apply what is actually stored
        for record in self._tokens.put(result.tokens.values()):
            tokens[checksum(record.address)] = record
        self.stats[Stat.TOKENS_FETCHED] += len(result.tokens)
        return tokens

    def _scale(self, raw_amount: int, token: Optional[TokenRecord]) -> Optional[Decimal]:
        if token is None:
            return None
        try:
            return token_to_decimal(raw_amount, token.decimals)
        except InvalidOperation:
            self.stats[Stat.AMOUNT_OVERFLOW] += 1
            log.warning(f"Failed to scale amount {raw_amount} of token '{token.address}'")
            return None

    def _token(self, address: str, raw_amount: int, tokens: Dict[str, TokenRecord]) -> CanonicalToken:
        token = tokens.get(checksum(address))
        return CanonicalToken(
            address=address,
            raw_amount=raw_amount,
            decimals=token.decimals if token is not None else None,
            symbol=token.symbol if token is not None else None,
            amount=self._scale(raw_amount, token),
        )

    def _build(self, item: _Pending, tokens: Dict[str, TokenRecord]) -> CanonicalSwap:
        pool = item.pool
        swap = item.swap

        leg0 = self._token(pool.token0, swap.from_.amount, tokens)
        leg1 = self._token(pool.token1, swap.to.amount, tokens)
        token_a, token_b = (leg0, leg1) if self._order.is_ordered(pool.token0, pool.token1) else (leg1, leg0)

        return CanonicalSwap(
            dex=pool.dex,
            protocol=pool.protocol,
            network=self._network,
            block=item.block.header,
            transaction=TransactionRef(
                hash=item.transaction.hash,
                index=item.transaction.index,
            ),
            log_index=item.log.log_index,
            account=item.transaction.from_,
            sender=swap.from_.account,
            recipient=swap.to.account,
            factory=pool.factory,
            pool=PoolRef(
                address=pool.pool,
                fee=pool.fee,
                tick_spacing=pool.tick_spacing,
                stable=pool.stable,
                liquidity=swap.liquidity,
                sqrt_price_x96=swap.sqrt_price_x96,
                tick=swap.tick,
            ),
            token_a=token_a,
            token_b=token_b,
            a_to_b=token_a.raw_amount > 0,
        )

    def normalize(self, blocks: Iterable[Block]) -> List[CanonicalSwap]:
        """
        Normalize the swaps of a batch

        :param blocks: blocks in ascending order
        :return: canonical swaps ordered by (block number, log index)
        """
        blocks = list(blocks)
        drops = sum(self.drops.values())

        local = {checksum(p.pool): p for p in self.index_pools(blocks)}

        pending = self._resolve_swaps(blocks, local)

        swaps = []
        if pending:
            addresses = unique(checksum(a) for item in pending for a in (item.pool.token0, item.pool.token1))
            tokens = self._resolve_tokens(addresses)
            swaps = [self._build(item, tokens) for item in pending]

        swaps.sort(key=lambda s: (s.block.number, s.log_index))
        self.stats[Stat.SWAPS] += len(swaps)

        dropped = sum(self.drops.values()) - drops
        if dropped:
            log.info(f"Normalized {len(swaps)} swaps, dropped {dropped} logs (total {dict((k.value, v) for k, v in self.drops.items())})")
        return swaps
