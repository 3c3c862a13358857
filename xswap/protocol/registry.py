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
    Set,
    Tuple,
    Union,
)

import logging
from dataclasses import dataclass

from eth_abi.exceptions import DecodingError

from web3.exceptions import Web3Exception

from xswap.contract import FACTORIES
from xswap.types import (
    BlockHeader,
    DecodedSwap,
    DexName,
    DexProtocol,
    Log,
    LogFilter,
    Network,
    PoolRecord,
    Unmatched,
)
from xswap.util import checksum

from .aerodrome import (
    AERODROME_BASIC,
    AERODROME_SLIPSTREAM,
)
from .uniswap import (
    UNISWAP_V2,
    UNISWAP_V3,
)
from .variant import Variant

log = logging.getLogger(__name__)

TKey = Tuple[Network, DexName, DexProtocol]

VARIANTS: Dict[DexProtocol, Variant] = {
    v.protocol: v for v in [UNISWAP_V2, UNISWAP_V3, AERODROME_BASIC, AERODROME_SLIPSTREAM]
}


class RegistryError(Exception):
    """
    Conflicting or unsupported protocol configuration
    """
    pass


@dataclass(frozen=True)
class Protocol(object):
    """
    A protocol variant deployed on a network (bound to its factory contract)
    """
    network: Network
    variant: Variant
    factory: str
    from_block: int = 0

    @property
    def dex(self) -> DexName:
        return self.variant.dex

    @property
    def protocol(self) -> DexProtocol:
        return self.variant.protocol

    @property
    def key(self) -> TKey:
        return self.network, self.dex, self.protocol

    def is_pool_created(self, entry: Log) -> bool:
        return entry.address.lower() == self.factory.lower() and self.variant.pool_created.matches(entry)

    def decode_pool_created(self, entry: Log, header: BlockHeader) -> PoolRecord:
        """
        Decode a factory creation event into a pool record

        :param entry: event log entry emitted by the factory
        :param header: header of the block containing the log
        :return:
        """
        fields = self.variant.parse_pool_created(self.variant.pool_created.decode(entry))
        return PoolRecord(
            network=self.network,
            dex=self.dex,
            protocol=self.protocol,
            factory=checksum(entry.address),
            block_number=header.number,
            **fields,
        )

    def is_swap(self, entry: Log) -> bool:
        return self.variant.swap.matches(entry)

    def decode_swap(self, entry: Log) -> DecodedSwap:
        return self.variant.parse_swap(self.variant.swap.decode(entry))

    def filters(self, pools_only: bool = False) -> List[LogFilter]:
        """
        Log filters required to follow this protocol

        :param pools_only: only select pool creation events
        :return:
        """
        filters = [
            LogFilter(
                topic0=(self.variant.pool_created.topic0,),
                address=(self.factory,),
            ),
        ]
        if not pools_only:
            filters.append(LogFilter(topic0=(self.variant.swap.topic0,)))
        return filters


class ProtocolRegistry(object):
    """
    Static lookup table (network, dex, protocol) -> protocol deployment

    Pool creation logs are dispatched by (network, topic0) and the emitting factory. Swap logs are
    only ever decoded with the protocol recorded for their pool, since unrelated protocols can
    share a swap topic.
    """

    def __init__(self, protocols: Iterable[Protocol]) -> None:
        """
        Build the registry

        Raises ``RegistryError`` on duplicate keys or if two deployments could claim the same creation log.

        :param protocols: protocol deployments
        """
        self._protocols: Dict[TKey, Protocol] = {}
        self._creation: Dict[Tuple[Network, str], List[Protocol]] = {}
        self._swap_topics: Dict[Network, Set[str]] = {}

        claims = set()
        for p in protocols:
            if p.key in self._protocols:
                raise RegistryError(f"Duplicate protocol entry {p.key}")

            claim = (p.network, p.factory.lower(), p.variant.pool_created.topic0)
            if claim in claims:
                raise RegistryError(f"Ambiguous pool creation signature for factory '{p.factory}' on {p.network.value}")
            claims.add(claim)

            self._protocols[p.key] = p
            self._creation.setdefault((p.network, p.variant.pool_created.topic0), []).append(p)
            self._swap_topics.setdefault(p.network, set()).add(p.variant.swap.topic0)

            log.debug(f"Registered {p.network.value}/{p.protocol.value} (factory={p.factory})")

    def __len__(self) -> int:
        return len(self._protocols)

    def __iter__(self):
        return iter(self._protocols.values())

    def get(self, network: Network, dex: DexName, protocol: DexProtocol) -> Optional[Protocol]:
        return self._protocols.get((network, dex, protocol))

    def for_network(self, network: Network, protocols: Optional[Iterable[DexProtocol]] = None) -> List[Protocol]:
        """
        Select the deployments of a network

        :param network: network
        :param protocols: restrict to these protocol variants (default: all)
        :return:
        """
        available = [p for p in self._protocols.values() if p.network == network]
        if protocols is None:
            return available

        selected = []
        for protocol in protocols:
            matches = [p for p in available if p.protocol == protocol]
            if not matches:
                raise RegistryError(f"Protocol '{protocol.value}' is not supported on {network.value}")
            selected.extend(matches)
        return selected

    def filters(
        self,
        network: Network,
        protocols: Optional[Iterable[DexProtocol]] = None,
        pools_only: bool = False,
    ) -> List[LogFilter]:
        """
        Deduplicated log filters for a network

        :param network: network
        :param protocols: restrict to these protocol variants (default: all)
        :param pools_only: only select pool creation events
        :return:
        """
        filters = []
        for p in self.for_network(network, protocols):
            for f in p.filters(pools_only=pools_only):
                if f not in filters:
                    filters.append(f)
        return filters

    def is_swap_candidate(self, network: Network, entry: Log) -> bool:
        topic0 = entry.topic0
        return topic0 is not None and topic0.lower() in self._swap_topics.get(network, ())

    def match_pool_created(
        self,
        network: Network,
        entry: Log,
        header: BlockHeader,
    ) -> Union[PoolRecord, Unmatched, None]:
        """
        Decode a pool creation log with the first deployment that claims it

        :param network: network the log was emitted on
        :param entry: event log entry
        :param header: header of the block containing the log
        :return: pool record, ``Unmatched`` if the claimed log is malformed or ``None`` if no deployment claims the log
        """
        if entry.topic0 is None:
            return None

        for p in self._creation.get((network, entry.topic0.lower()), []):
            if p.is_pool_created(entry):
                try:
                    return p.decode_pool_created(entry, header)
                except (DecodingError, Web3Exception, ValueError) as e:
                    return Unmatched(entry, f"malformed {p.protocol.value} pool creation ({e})")
        return None

    def decode_swap(self, entry: Log, pool: PoolRecord) -> Union[DecodedSwap, Unmatched]:
        """
        Decode a swap log with the protocol recorded for its pool

        :param entry: event log entry emitted by the pool
        :param pool: pool record of the emitting pool
        :return: decoded swap or the reason why the log could not be decoded
        """
        p = self.get(pool.network, pool.dex, pool.protocol)
        if p is None:
            return Unmatched(entry, f"no decoder for {pool.network.value}/{pool.protocol.value}")

        if not p.is_swap(entry):
            return Unmatched(entry, f"not a {pool.protocol.value} swap")

        try:
            return p.decode_swap(entry)
        except (DecodingError, Web3Exception, ValueError) as e:
            return Unmatched(entry, f"malformed {pool.protocol.value} swap ({e})")


def default_registry() -> ProtocolRegistry:
    """
    Registry with all known deployments

    :return:
    """
    protocols = []
    for network, factories in FACTORIES.items():
        for protocol, info in factories.items():
            protocols.append(Protocol(
                network=network,
                variant=VARIANTS[protocol],
                factory=checksum(info.address),
                from_block=info.from_block,
            ))
    return ProtocolRegistry(protocols)
