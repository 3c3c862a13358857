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
    Union,
)

import abc
import logging

log = logging.getLogger(__name__)

TKey = Union[bytes, str]
TValue = Any


class Cache(abc.ABC):
    """
    Key-value layer in front of the metadata store.

    The goal is to add a layer of abstraction in case the underlying cache service
    has to be replaced at some point (e.g. a process local map vs. a shared redis instance).

    Entries may disappear at any time (eviction, restart), callers must be able to
    reload them from the store.
    """

    def __contains__(self, key: TKey) -> bool:
        return self.get(key) is not None

    @abc.abstractmethod
    def set(self, name: TKey, value: TValue) -> Any:
        """
        Set the value at key ``name`` to ``value``

        :param name: key
        :param value: any picklable value
        :return:
        """
        raise NotImplementedError

    @abc.abstractmethod
    def get(self, name: TKey) -> Any:
        """
        Return the value at key ``name``, or None if the key doesn't exist

        :param name: key
        :return:
        """
        raise NotImplementedError

    def get_many(self, names: List[TKey]) -> Dict[TKey, Any]:
        """
        Return all values found for ``names``, missing keys are omitted

        :param names: keys
        :return:
        """
        found = {}
        for name in names:
            value = self.get(name)
            if value is not None:
                found[name] = value
        return found

    @abc.abstractmethod
    def ping(self) -> Any:
        """
        Ping the underlying cache service

        :return:
        """
        raise NotImplementedError
