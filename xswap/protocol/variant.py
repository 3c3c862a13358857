#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Callable,
    Dict,
)

from dataclasses import dataclass

from xswap.types import (
    DecodedSwap,
    DexName,
    DexProtocol,
)

from .event import EventDecoder


@dataclass(frozen=True)
class Variant(object):
    """
    A DEX implementation family and its event encodings

    Attributes:
        dex: dex family name
        protocol: protocol variant
        pool_created: factory event announcing a new pool
        swap: pool swap event
        parse_pool_created: maps decoded creation args to pool fields
            (``pool``, ``token0``, ``token1`` and optional ``fee``, ``tick_spacing``, ``stable``)
        parse_swap: maps decoded swap args to a ``DecodedSwap``
    """
    dex: DexName
    protocol: DexProtocol
    pool_created: EventDecoder
    swap: EventDecoder
    parse_pool_created: Callable[[Dict[str, Any]], Dict[str, Any]]
    parse_swap: Callable[[Dict[str, Any]], DecodedSwap]
