#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Iterable,
    List,
    Optional,
)

import itertools
import logging
import time

from web3 import Web3

log = logging.getLogger(__name__)


def timeit(func: callable) -> callable:
    """
    Decorator for measuring a function's running time

    :param func: function
    :return:
    """
    def measure_time(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        elapsed = time.time() - start_time
        log.info(f"Processing time of '{func.__qualname__}()': {elapsed:.4f} seconds.")
        return result

    return measure_time


def bundled(a: list, key: callable = lambda x: x) -> list:
    """
    Group consecutive list elements with the same key

    Note: the source list needs be sorted on the same key function

    Example:
    [1, 1, 2, 3, 3] -> [[1, 1], [2], [3, 3]]

    :param a: source list
    :param key: function to extract comparison key
    :return:
    """
    return [list(g) for k, g in itertools.groupby(a, key=key)]


def batched(a: list, size: int = 8) -> list:
    """
    Yield successive evenly-sized chunks from a list

    :param a: source list
    :param size: chunk size
    :return:
    """
    assert size > 0

    for i in range(0, len(a), size):
        yield a[i:i + size]


def unique(a: Iterable) -> list:
    """
    Remove duplicates while preserving the order of first appearance

    :param a: source iterable
    :return:
    """
    return list(dict.fromkeys(a))


def checksum(address: Optional[str]) -> Optional[str]:
    """
    Normalize an address to its checksum representation (``None`` is passed through)

    :param address: hex address (any case)
    :return:
    """
    if address is None:
        return None
    return Web3.to_checksum_address(address)


def parse_csv(value: Optional[str]) -> List[str]:
    """
    Split a comma separated config value into its non-empty, stripped elements

    :param value: raw config value
    :return:
    """
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]
