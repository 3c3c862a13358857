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

import concurrent.futures
import logging
from dataclasses import (
    dataclass,
    field,
)

import requests

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_typing import ABI
from eth_utils import to_bytes

from web3 import Web3
from web3.exceptions import Web3Exception

from xswap.types import (
    Network,
    TokenRecord,
)
from xswap.util import (
    batched,
    checksum,
    unique,
)

log = logging.getLogger(__name__)

# function selectors
SELECTOR_DECIMALS = to_bytes(hexstr="0x313ce567")  # decimals()
SELECTOR_SYMBOL = to_bytes(hexstr="0x95d89b41")  # symbol()

DEFAULT_DECIMALS = 18
DEFAULT_SYMBOL = ""

MAX_SYMBOL_LENGTH = 32


class EnrichmentError(Exception):
    """
    Aggregated on-chain call failed (all tokens of the chunk remain unresolved)
    """

    def __init__(self, addresses: List[str], reason: str) -> None:
        super().__init__(f"Failed to fetch {len(addresses)} tokens: {reason}")
        self.addresses = addresses
        self.reason = reason


@dataclass
class EnrichmentResult(object):
    tokens: Dict[str, TokenRecord] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)
    errors: List[EnrichmentError] = field(default_factory=list)


def decode_decimals(success: bool, data: bytes) -> Optional[int]:
    """
    Decode the return data of ``decimals()``

    :param success: call succeeded
    :param data: raw return data
    :return: decimals or ``None`` if the data can't be interpreted
    """
    if not success or len(data) < 32:
        return None

    try:
        value = decode(["uint256"], data[:32])[0]
    except DecodingError:
        return None

    # must fit an uint8
    if value > 255:
        return None
    return value


def decode_symbol(success: bool, data: bytes) -> Optional[str]:
    """
    Decode the return data of ``symbol()``

    Some older tokens (e.g. MKR) return a ``bytes32`` instead of a ``string``.

    :param success: call succeeded
    :param data: raw return data
    :return: symbol or ``None`` if the data can't be interpreted
    """
    if not success or len(data) < 32:
        return None

    symbol = None
    if len(data) >= 64:
        try:
            symbol = decode(["string"], data)[0]
        except (DecodingError, OverflowError, UnicodeDecodeError):
            symbol = None

    if symbol is None:
        if len(data) != 32:
            return None
        try:
            symbol = data[:32].rstrip(b"\x00").decode("utf-8")
        except UnicodeDecodeError:
            return None

    symbol = symbol.replace("\x00", "").strip()
    return symbol[:MAX_SYMBOL_LENGTH]


class TokenEnrichmentClient(object):

    def __init__(
        self,
        w3: Web3,
        network: Network,
        multicall_address: str,
        multicall_abi: ABI,
        batch_size: int = 100,
        max_workers: int = 4,
    ) -> None:
        """
        Fetch token metadata (decimals, symbol) with aggregated read-only calls

        Each chunk of at most ``batch_size`` tokens is resolved with a single multicall
        ``tryAggregate`` request (``decimals()`` and ``symbol()`` per token).

        :param w3: web3 provider
        :param network: network the tokens live on
        :param multicall_address: multicall3 contract address
        :param multicall_abi: multicall3 contract abi
        :param batch_size: max number of tokens per aggregated call
        :param max_workers: max number of concurrent aggregated calls
        """
        assert batch_size > 0
        assert max_workers > 0

        self._w3 = w3
        self._network = network
        self._batch_size = batch_size
        self._max_workers = max_workers

        self._multicall = None
        if w3 is not None:
            self._multicall = w3.eth.contract(address=checksum(multicall_address), abi=multicall_abi)

    @property
    def network(self) -> Network:
        return self._network

    def _call(self, calls: List[Tuple[str, bytes]]) -> List[Tuple[bool, bytes]]:
        """
        Execute the aggregated call (failing sub calls don't revert the whole call)

        :param calls: list of (target, call data) tuples
        :return: list of (success, return data) tuples
        """
        return self._multicall.functions.tryAggregate(False, calls).call()

    def _fetch_chunk(self, addresses: List[str]) -> Dict[str, TokenRecord]:
        calls = []
        for address in addresses:
            calls.append((address, SELECTOR_DECIMALS))
            calls.append((address, SELECTOR_SYMBOL))

        # node, transport (incl. timeouts) and contract failures only affect this chunk
        try:
            results = self._call(calls)
        except (Web3Exception, DecodingError, requests.exceptions.RequestException, OSError) as e:
            raise EnrichmentError(addresses, str(e)) from e

        if len(results) != len(calls):
            raise EnrichmentError(addresses, f"unexpected number of results ({len(results)} != {len(calls)})")

        tokens = {}
        for i, address in enumerate(addresses):
            decimals = decode_decimals(*results[2 * i])
            if decimals is None:
                log.warning(f"Using default decimals for token '{address}'")
                decimals = DEFAULT_DECIMALS

            symbol = decode_symbol(*results[2 * i + 1])
            if symbol is None:
                log.warning(f"Using default symbol for token '{address}'")
                symbol = DEFAULT_SYMBOL

            tokens[address] = TokenRecord(
                network=self._network,
                address=address,
                decimals=decimals,
                symbol=symbol,
            )
        return tokens

    def fetch(self, addresses: Iterable[str]) -> EnrichmentResult:
        """
        Resolve token metadata

        A failing chunk only affects its own tokens, they are reported as failed and not retried.

        :param addresses: token addresses (duplicates are ignored)
        :return:
        """
        addresses = unique(checksum(a) for a in addresses)
        result = EnrichmentResult()
        if not addresses:
            return result

        chunks = list(batched(addresses, size=self._batch_size))
        log.debug(f"Fetching {len(addresses)} tokens in {len(chunks)} chunks")

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(chunks)),
            thread_name_prefix="Enrich",
        ) as executor:
            futures = [executor.submit(self._fetch_chunk, chunk) for chunk in chunks]

            # wait for all chunks, keep the chunk order
            for future in futures:
                try:
                    result.tokens.update(future.result())
                except EnrichmentError as e:
                    log.error(str(e))
                    result.failed.extend(e.addresses)
                    result.errors.append(e)

        return result
