#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Dict,
    List,
    Optional,
)

import pickle
import redis

from .base import (
    Cache,
    TKey,
    TValue,
)


class Cache_Redis(Cache):
    """
    Simple wrapper around a redis instance, allows several stream processes to share
    discovered pool and token metadata.

    Note: Currently uses ``pickle`` to convert any python value/object to bytes
    """

    def __init__(self, host: str, port: int, password: Optional[str], db: int) -> None:
        self._redis = redis.Redis(
            host=host,
            port=int(port),
            password=password,
            db=int(db),
        )

    def set(self, name: TKey, value: TValue) -> Any:
        self._redis.set(name, pickle.dumps(value, protocol=5))

    def get(self, name: TKey) -> Any:
        raw = self._redis.get(name)
        if raw is None:
            return None
        return pickle.loads(raw)

    def get_many(self, names: List[TKey]) -> Dict[TKey, Any]:
        if not names:
            return {}

        found = {}
        for name, raw in zip(names, self._redis.mget(names)):
            if raw is not None:
                found[name] = pickle.loads(raw)
        return found

    def ping(self) -> Any:
        self._redis.ping()
