#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Dict,
)

from xswap.types import (
    DexName,
    DexProtocol,
)

from .event import (
    EventDecoder,
    event_abi,
)
from .uniswap import (
    V3_SWAP,
    in_out_swap,
    signed_swap,
)
from .variant import Variant

# Aerodrome basic pools (stable/volatile constant product)

# event PoolCreated(address indexed token0, address indexed token1, bool indexed stable, address pool, uint256);
BASIC_POOL_CREATED = EventDecoder(event_abi("PoolCreated", [
    ("token0", "address", True),
    ("token1", "address", True),
    ("stable", "bool", True),
    ("pool", "address", False),
    ("index", "uint256", False),
]))

# event Swap(address indexed sender, address indexed to, uint256 amount0In, uint256 amount1In,
#            uint256 amount0Out, uint256 amount1Out);
BASIC_SWAP = EventDecoder(event_abi("Swap", [
    ("sender", "address", True),
    ("to", "address", True),
    ("amount0In", "uint256", False),
    ("amount1In", "uint256", False),
    ("amount0Out", "uint256", False),
    ("amount1Out", "uint256", False),
]))

# Aerodrome slipstream pools (concentrated liquidity)

# event PoolCreated(address indexed token0, address indexed token1, int24 indexed tickSpacing, address pool);
SLIPSTREAM_POOL_CREATED = EventDecoder(event_abi("PoolCreated", [
    ("token0", "address", True),
    ("token1", "address", True),
    ("tickSpacing", "int24", True),
    ("pool", "address", False),
]))

# Note: identical to the uniswap v3 swap event (same topic), pools are told apart by their factory
SLIPSTREAM_SWAP = V3_SWAP


def parse_basic_pool_created(args: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "pool": args["pool"],
        "token0": args["token0"],
        "token1": args["token1"],
        "stable": bool(args["stable"]),
    }


def parse_slipstream_pool_created(args: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "pool": args["pool"],
        "token0": args["token0"],
        "token1": args["token1"],
        "tick_spacing": args["tickSpacing"],
    }


AERODROME_BASIC = Variant(
    dex=DexName.AERODROME,
    protocol=DexProtocol.AERODROME_BASIC,
    pool_created=BASIC_POOL_CREATED,
    swap=BASIC_SWAP,
    parse_pool_created=parse_basic_pool_created,
    parse_swap=lambda args: in_out_swap(DexName.AERODROME, DexProtocol.AERODROME_BASIC, args, recipient_key="to"),
)

AERODROME_SLIPSTREAM = Variant(
    dex=DexName.AERODROME,
    protocol=DexProtocol.AERODROME_SLIPSTREAM,
    pool_created=SLIPSTREAM_POOL_CREATED,
    swap=SLIPSTREAM_SWAP,
    parse_pool_created=parse_slipstream_pool_created,
    parse_swap=lambda args: signed_swap(DexName.AERODROME, DexProtocol.AERODROME_SLIPSTREAM, args),
)
