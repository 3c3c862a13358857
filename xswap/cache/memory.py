#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Optional,
)

import collections

from .base import (
    Cache,
    TKey,
    TValue,
)


class Cache_Memory(Cache):
    """
    Process local in-memory cache service

    Holds at most ``maxsize`` entries, the least recently used entry is evicted first.
    """

    def __init__(self, maxsize: Optional[int] = None) -> None:
        """
        Create a memory cache

        :param maxsize: max number of entries (``None`` means unbounded)
        """
        assert maxsize is None or maxsize > 0

        self._maxsize = maxsize
        self._cache = collections.OrderedDict()

    def __len__(self) -> int:
        return len(self._cache)

    @property
    def maxsize(self) -> Optional[int]:
        return self._maxsize

    def set(self, name: TKey, value: TValue) -> Any:
        self._cache[name] = value
        self._cache.move_to_end(name)

        if self._maxsize is not None and len(self._cache) > self._maxsize:
            self._cache.popitem(last=False)

    def get(self, name: TKey) -> Any:
        value = self._cache.get(name)
        if value is not None:
            self._cache.move_to_end(name)
        return value

    def ping(self) -> Any:
        return True
