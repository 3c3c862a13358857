#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    TypeVar,
)

import abc
import logging

import xswap.cache
import xswap.db.orm as orm
from xswap.types import (
    DexName,
    DexProtocol,
    Network,
    PoolRecord,
    TokenRecord,
)
from xswap.util import (
    checksum,
    unique,
)

from .store import MetadataStore

log = logging.getLogger(__name__)

TRecord = TypeVar("TRecord")

# max number of records kept by the default (process local) cache
DEFAULT_CACHE_SIZE = 100_000


class MetadataRegistry(abc.ABC, Generic[TRecord]):
    """
    Read-through metadata cache for a single network

    Lookups hit the cache first, all misses are resolved with one batched query against the
    persistent store. Records that neither layer knows are reported as absent (and looked up
    again next time).
    """

    # cache key prefix
    PREFIX = None
    # orm table
    TABLE = None

    def __init__(
        self,
        network: Network,
        store: MetadataStore,
        cache: Optional[xswap.cache.Cache] = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        """
        Create a metadata registry

        :param network: network
        :param store: persistent metadata store
        :param cache: cache service (default: process local LRU cache)
        :param cache_size: max number of entries of the default cache, evicted records are reloaded from the store
        """
        self._network = network
        self._store = store
        self._cache = cache if cache is not None else xswap.cache.Cache_Memory(maxsize=cache_size)

    @property
    def network(self) -> Network:
        return self._network

    def _key(self, address: str) -> str:
        return f"_{self.PREFIX}_{self._network.value}_{checksum(address)}"

    @staticmethod
    @abc.abstractmethod
    def _address(record: TRecord) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def _to_row(self, record: TRecord) -> Dict[str, Any]:
        raise NotImplementedError

    @abc.abstractmethod
    def _from_row(self, row: Any) -> TRecord:
        raise NotImplementedError

    def get(self, address: str) -> Optional[TRecord]:
        return self.get_many([address]).get(checksum(address))

    def get_many(self, addresses: Iterable[str]) -> Dict[str, TRecord]:
        """
        Resolve several records

        :param addresses: contract addresses (any case)
        :return: checksum address to record mapping, unknown addresses are omitted
        """
        addresses = unique(checksum(a) for a in addresses)
        if not addresses:
            return {}

        cached = self._cache.get_many([self._key(a) for a in addresses])

        found = {}
        missing = []
        for address in addresses:
            record = cached.get(self._key(address))
            if record is not None:
                found[address] = record
            else:
                missing.append(address)

        if missing:
            rows = self._store.select_where(self.TABLE, self._network, missing)
            for row in rows:
                record = self._from_row(row)
                address = self._address(record)
                self._cache.set(self._key(address), record)
                found[address] = record

            log.debug(f"Loaded {len(rows)}/{len(missing)} {self.PREFIX} records from store")

        return found

    def put(self, records: Iterable[TRecord]) -> List[TRecord]:
        """
        Persist new records (insert-if-absent, the first writer wins)

        The cache always ends up holding the persisted record, so a losing writer sees the winner.

        :param records: records
        :return: the effective (persisted) records, in input order
        """
        result = []
        for record in records:
            inserted, row = self._store.upsert_if_absent(self.TABLE, self._to_row(record))
            effective = record if inserted else self._from_row(row)

            if not inserted and effective != record:
                log.debug(f"Kept existing {self.PREFIX} record '{self._address(effective)}'")

            self._cache.set(self._key(self._address(effective)), effective)
            result.append(effective)
        return result


class PoolRegistry(MetadataRegistry[PoolRecord]):
    """
    Pool composition registry (pool address -> pool record)
    """
    PREFIX = "pool"
    TABLE = orm.Pool

    @staticmethod
    def _address(record: PoolRecord) -> str:
        return record.pool

    def _to_row(self, record: PoolRecord) -> Dict[str, Any]:
        assert record.network == self._network
        return dict(
            network=record.network.value,
            dex_name=record.dex.value,
            protocol=record.protocol.value,
            address=checksum(record.pool),
            token0=checksum(record.token0),
            token1=checksum(record.token1),
            factory=checksum(record.factory),
            block_number=record.block_number,
            fee=record.fee,
            tick_spacing=record.tick_spacing,
            stable=record.stable,
        )

    def _from_row(self, row: orm.Pool) -> PoolRecord:
        return PoolRecord(
            network=Network(row.network),
            dex=DexName(row.dex_name),
            protocol=DexProtocol(row.protocol),
            pool=row.address,
            token0=row.token0,
            token1=row.token1,
            factory=row.factory,
            block_number=row.block_number,
            fee=row.fee,
            tick_spacing=row.tick_spacing,
            stable=row.stable,
        )


class TokenRegistry(MetadataRegistry[TokenRecord]):
    """
    Token registry (token address -> decimals, symbol)
    """
    PREFIX = "token"
    TABLE = orm.Token

    @staticmethod
    def _address(record: TokenRecord) -> str:
        return record.address

    def _to_row(self, record: TokenRecord) -> Dict[str, Any]:
        assert record.network == self._network
        return dict(
            network=record.network.value,
            address=checksum(record.address),
            decimals=record.decimals,
            symbol=record.symbol,
        )

    def _from_row(self, row: orm.Token) -> TokenRecord:
        return TokenRecord(
            network=Network(row.network),
            address=row.address,
            decimals=row.decimals,
            symbol=row.symbol,
        )
