#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

import logging
import sys

from web3 import Web3

import xswap.cache
import xswap.contract
import xswap.db
import xswap.metadata
import xswap.protocol
import xswap.stream
from xswap.config import CONFIG as C
from xswap.enrichment import TokenEnrichmentClient
from xswap.normalizer import SwapNormalizer
from xswap.pipeline import (
    Pipeline,
    PipelineMode,
    PipelineState,
)
from xswap.types import (
    DexProtocol,
    Network,
)
from xswap.util import (
    parse_csv,
    timeit,
)

log = logging.getLogger("main")

MIN_PYTHON = (3, 8)
if sys.version_info < MIN_PYTHON:
    sys.exit("Python {}.{} or later is required!".format(*MIN_PYTHON))


# Basic XSwap program flow
# 0) Pipeline: load the checkpoint, clean up the sink, drive the stream
# 1) BlockSource: fetch filtered event log entries and their blocks/transactions
# 2) SwapNormalizer: register pools, decode swaps, enrich tokens, build canonical swaps
# 3) Sink: write the swaps of a batch
# 4) StateStore: advance the checkpoint
#
# Note: only a single process should run per stream (network + mode)


@timeit
def main() -> int:
    """
    Stream swaps (or pools) of a single network, configured via environment variables.

    :return:
    """
    logging.basicConfig(level=C["LOG_LEVEL"], format=C["LOG_FORMAT"], datefmt=C["LOG_DATE_FORMAT"])

    network = Network(C["XS_NETWORK"])
    protocols = [DexProtocol(p) for p in parse_csv(C["XS_PROTOCOLS"])] or None
    mode = PipelineMode.POOLS if C["XS_POOLS_ONLY"] else PipelineMode.SWAPS

    try:
        w3 = Web3(Web3.HTTPProvider(endpoint_uri=C["API_URL"][network.value]))
    except Exception as e:
        log.error(e)
        return 1

    db = xswap.db.FusionSQL(
        conn=xswap.db.build_url(
            driver=C["DB_DRIVER"],
            host=C["DB_HOST"],
            port=C["DB_PORT"],
            username=C["DB_USERNAME"],
            password=C["DB_PASSWORD"],
            database=C["DB_DATABASE"],
        ),
        verbose=C["DB_DEBUG"],
    )

    cache = None
    if C["REDIS_ENABLED"]:
        cache = xswap.cache.Cache_Redis(
            host=C["REDIS_HOST"],
            port=C["REDIS_PORT"],
            password=C["REDIS_PASSWORD"],
            db=C["REDIS_DATABASE"],
        )

        # ensure the service is running
        cache.ping()

    registry = xswap.protocol.default_registry()
    selected = registry.for_network(network, protocols)
    filters = registry.filters(network, protocols, pools_only=mode == PipelineMode.POOLS)

    store = xswap.metadata.MetadataStore(db)
    pools = xswap.metadata.PoolRegistry(network, store, cache=cache, cache_size=int(C["XS_CACHE_SIZE"]))
    tokens = xswap.metadata.TokenRegistry(network, store, cache=cache, cache_size=int(C["XS_CACHE_SIZE"]))

    multicall = xswap.contract.MULTICALL[network]
    enricher = TokenEnrichmentClient(
        w3=w3,
        network=network,
        multicall_address=multicall.address,
        multicall_abi=multicall.abi,
        batch_size=int(C["XS_TOKEN_BATCH_SIZE"]),
        max_workers=int(C["XS_ENRICH_WORKERS"]),
    )

    normalizer = SwapNormalizer(
        network=network,
        protocols=registry,
        pools=pools,
        tokens=tokens,
        enricher=enricher,
        tracked_tokens=xswap.contract.TRACKED_TOKENS[network],
    )

    source = xswap.stream.Web3BlockSource(
        w3=w3,
        chunk_size=int(C["XS_CHUNK_SIZE"]),
        num_safety_blocks=int(C["XS_NUM_SAFETY_BLOCKS"]),
        poll_interval=float(C["XS_POLL_INTERVAL"]),
    )

    # start at the earliest deployment of the selected protocols
    default_start = min(p.from_block for p in selected)
    if C["XS_FROM_BLOCK"] is not None:
        default_start = int(C["XS_FROM_BLOCK"])
    to_block = int(C["XS_TO_BLOCK"]) if C["XS_TO_BLOCK"] is not None else None

    pipeline = Pipeline(
        stream_id=f"{network.value}_{mode.value}",
        source=source,
        state=xswap.stream.SQLStateStore(db),
        sink=xswap.stream.SQLSwapSink(db, network),
        normalizer=normalizer,
        filters=filters,
        default_start=default_start,
        mode=mode,
        progress_interval=float(C["XS_PROGRESS_INTERVAL"]),
    )

    log.info(f"Streaming {mode.value} of {', '.join(p.protocol.value for p in selected)} on {network.value}")
    state = pipeline.run(to_block=to_block)

    return 0 if state in (PipelineState.DRAINED, PipelineState.STOPPED) else 1


if __name__ == "__main__":
    sys.exit(main())
