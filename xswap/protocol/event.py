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
)

import logging

from eth_abi.codec import ABICodec
from eth_utils import to_bytes

# Currently these methods are not exposed over the official web3 API,
# but we need them to derive topics and decode event logs without a contract instance
from web3._utils.abi import build_strict_registry
from web3._utils.events import get_event_data
from web3._utils.filters import construct_event_topic_set

from xswap.types import Log

log = logging.getLogger(__name__)

# same codec a ``Web3`` instance builds for itself (``w3.codec``)
CODEC = ABICodec(build_strict_registry())


class EventDecoder(object):
    """
    ABI based decoder for a single event type

    Topic derivation and argument decoding are delegated to web3 (addresses are returned
    in checksum format), this class only adds a cheap shape check for raw log entries.
    """

    def __init__(self, abi: Dict[str, Any], codec: ABICodec = CODEC) -> None:
        """
        Create an event decoder

        :param abi: event abi entry
        :param codec: abi codec (e.g. ``w3.codec``)
        """
        assert abi["type"] == "event"

        self.abi = abi
        self.name = abi["name"]
        self.codec = codec
        self.signature = f"{self.name}({','.join(i['type'] for i in abi['inputs'])})"

        topic = construct_event_topic_set(event_abi=abi, abi_codec=codec)
        assert len(topic) == 1
        self.topic0 = topic[0].lower()

        self._num_indexed = len([i for i in abi["inputs"] if i.get("indexed")])

        log.debug(f"Event(name={self.name}, topic={self.topic0})")

    def __repr__(self) -> str:
        return f"EventDecoder <signature={self.signature} topic0={self.topic0}>"

    def matches(self, entry: Log) -> bool:
        """
        Check whether the log entry has the shape of this event (signature and number of indexed args)

        :param entry: event log entry
        :return:
        """
        return (
            entry.topic0 is not None
            and entry.topic0.lower() == self.topic0
            and len(entry.topics) == self._num_indexed + 1
        )

    def decode(self, entry: Log) -> Dict[str, Any]:
        """
        Decode the event arguments

        Raises ``ValueError`` if the log doesn't match the event, ``eth_abi.exceptions.DecodingError``
        (or a ``Web3Exception``) if the payload is malformed.

        :param entry: event log entry
        :return: argument name to value mapping
        """
        if not self.matches(entry):
            raise ValueError(f"Log entry does not match event '{self.signature}'")

        data = get_event_data(
            self.codec,
            self.abi,
            {
                "address": entry.address,
                "topics": [to_bytes(hexstr=t) for t in entry.topics],
                "data": entry.data,
                "logIndex": entry.log_index,
                "transactionIndex": entry.transaction_index,
                "transactionHash": entry.transaction_hash,
                "blockHash": None,
                "blockNumber": None,
            },
        )
        return dict(data["args"])


def event_abi(name: str, inputs: List[tuple]) -> Dict[str, Any]:
    """
    Build an event abi entry

    Example:
      event_abi("Swap", [("sender", "address", True), ("amount0", "int256", False)])

    :param name: event name
    :param inputs: list of (name, type, indexed) tuples
    :return:
    """
    return {
        "anonymous": False,
        "name": name,
        "type": "event",
        "inputs": [
            {"name": n, "type": t, "indexed": i} for n, t, i in inputs
        ],
    }
