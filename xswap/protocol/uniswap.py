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
    DecodedSwap,
    DexName,
    DexProtocol,
    SwapLeg,
)

from .event import (
    EventDecoder,
    event_abi,
)
from .variant import Variant

# Uniswap V2 (constant product)

# event PairCreated(address indexed token0, address indexed token1, address pair, uint);
V2_PAIR_CREATED = EventDecoder(event_abi("PairCreated", [
    ("token0", "address", True),
    ("token1", "address", True),
    ("pair", "address", False),
    ("index", "uint256", False),
]))

# event Swap(address indexed sender, uint amount0In, uint amount1In, uint amount0Out, uint amount1Out, address indexed to);
V2_SWAP = EventDecoder(event_abi("Swap", [
    ("sender", "address", True),
    ("amount0In", "uint256", False),
    ("amount1In", "uint256", False),
    ("amount0Out", "uint256", False),
    ("amount1Out", "uint256", False),
    ("to", "address", True),
]))

# Uniswap V3 (concentrated liquidity)

# event PoolCreated(address indexed token0, address indexed token1, uint24 indexed fee, int24 tickSpacing, address pool);
V3_POOL_CREATED = EventDecoder(event_abi("PoolCreated", [
    ("token0", "address", True),
    ("token1", "address", True),
    ("fee", "uint24", True),
    ("tickSpacing", "int24", False),
    ("pool", "address", False),
]))

# event Swap(address indexed sender, address indexed recipient, int256 amount0, int256 amount1,
#            uint160 sqrtPriceX96, uint128 liquidity, int24 tick);
V3_SWAP = EventDecoder(event_abi("Swap", [
    ("sender", "address", True),
    ("recipient", "address", True),
    ("amount0", "int256", False),
    ("amount1", "int256", False),
    ("sqrtPriceX96", "uint160", False),
    ("liquidity", "uint128", False),
    ("tick", "int24", False),
]))


def parse_v2_pair_created(args: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "pool": args["pair"],
        "token0": args["token0"],
        "token1": args["token1"],
    }


def parse_v3_pool_created(args: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "pool": args["pool"],
        "token0": args["token0"],
        "token1": args["token1"],
        "fee": args["fee"],
        "tick_spacing": args["tickSpacing"],
    }


def in_out_swap(dex: DexName, protocol: DexProtocol, args: Dict[str, Any], recipient_key: str) -> DecodedSwap:
    """
    Convert a swap reported as separate in/out amounts into signed pool deltas

    Note: both directions can be non-zero (e.g. flash swaps), the net change is what matters

    :param dex: dex name
    :param protocol: protocol variant
    :param args: decoded event args
    :param recipient_key: name of the recipient argument
    :return:
    """
    return DecodedSwap(
        dex=dex,
        protocol=protocol,
        from_=SwapLeg(
            amount=args["amount0In"] - args["amount0Out"],
            account=args["sender"],
        ),
        to=SwapLeg(
            amount=args["amount1In"] - args["amount1Out"],
            account=args[recipient_key],
        ),
    )


def signed_swap(dex: DexName, protocol: DexProtocol, args: Dict[str, Any]) -> DecodedSwap:
    """
    Concentrated liquidity pools already report signed pool deltas

    :param dex: dex name
    :param protocol: protocol variant
    :param args: decoded event args
    :return:
    """
    return DecodedSwap(
        dex=dex,
        protocol=protocol,
        from_=SwapLeg(
            amount=args["amount0"],
            account=args["sender"],
        ),
        to=SwapLeg(
            amount=args["amount1"],
            account=args["recipient"],
        ),
        liquidity=args["liquidity"],
        sqrt_price_x96=args["sqrtPriceX96"],
        tick=args["tick"],
    )


UNISWAP_V2 = Variant(
    dex=DexName.UNISWAP,
    protocol=DexProtocol.UNISWAP_V2,
    pool_created=V2_PAIR_CREATED,
    swap=V2_SWAP,
    parse_pool_created=parse_v2_pair_created,
    parse_swap=lambda args: in_out_swap(DexName.UNISWAP, DexProtocol.UNISWAP_V2, args, recipient_key="to"),
)

UNISWAP_V3 = Variant(
    dex=DexName.UNISWAP,
    protocol=DexProtocol.UNISWAP_V3,
    pool_created=V3_POOL_CREATED,
    swap=V3_SWAP,
    parse_pool_created=parse_v3_pool_created,
    parse_swap=lambda args: signed_swap(DexName.UNISWAP, DexProtocol.UNISWAP_V3, args),
)
