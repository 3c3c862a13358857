#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
)

import abc
import logging
import threading

from web3 import Web3
from web3.types import (
    BlockData,
    FilterParams,
    LogReceipt,
)

from xswap.types import (
    Block,
    BlockBatch,
    BlockHeader,
    Log,
    LogFilter,
    Position,
    Transaction,
)
from xswap.util import (
    batched,
    bundled,
    checksum,
)

log = logging.getLogger(__name__)


class BlockSource(abc.ABC):
    """
    Block source base class

    Hands out batches of blocks (ascending, without gaps in the covered range) that contain the
    event logs selected by a set of filters.
    """

    @abc.abstractmethod
    def open(self, filters: Sequence[LogFilter], from_block: int, to_block: Optional[int] = None) -> Iterator[BlockBatch]:
        """
        Stream block batches starting at ``from_block``

        :param filters: log filters (a log is selected if it matches any filter)
        :param from_block: first block (included)
        :param to_block: last block (included), ``None`` follows the chain tip indefinitely
        :return:
        """
        raise NotImplementedError

    def ack(self, position: Position) -> None:
        """
        Confirm that all blocks up to ``position`` have been durably processed

        :param position: position of the acknowledged batch
        :return:
        """
        pass

    @abc.abstractmethod
    def latest(self) -> Position:
        """
        Most recent position the source could serve

        :return:
        """
        raise NotImplementedError

    def close(self) -> None:
        """
        Stop a running stream (takes effect between batches)
        """
        pass


class Web3BlockSource(BlockSource):

    # max number of json-rpc requests per batch call
    MAX_BATCH_SIZE = 50

    def __init__(
        self,
        w3: Web3,
        chunk_size: int = 500,
        num_safety_blocks: int = 10,
        poll_interval: float = 5.0,
    ) -> None:
        """
        Block source backed by a json-rpc node

        Logs are fetched with ``eth_getLogs`` per filter, blocks (incl. transactions) with batched
        ``eth_getBlockByNumber`` requests.

        :param w3: web3 provider
        :param chunk_size: number of blocks per batch
        :param num_safety_blocks: number of most recent blocks that are never served
            (ensure only blocks that are unlikely to be reorganized are processed)
        :param poll_interval: seconds to wait for new blocks when following the chain tip
        """
        assert chunk_size > 0
        assert num_safety_blocks >= 0

        self._w3 = w3
        self._chunk_size = chunk_size
        self._num_safety_blocks = num_safety_blocks
        self._poll_interval = poll_interval

        self._closing = threading.Event()
        self._acked = None

    @property
    def acked(self) -> Optional[Position]:
        return self._acked

    def ack(self, position: Position) -> None:
        assert self._acked is None or position >= self._acked
        self._acked = position
        log.debug(f"Acknowledged block {position}")

    def close(self) -> None:
        self._closing.set()

    def latest(self) -> Position:
        block = self._w3.eth.get_block("latest")
        return Position(block["number"], Web3.to_hex(block["hash"]))

    def _head(self) -> int:
        return self.latest().number - self._num_safety_blocks

    @staticmethod
    def _to_log(entry: LogReceipt) -> Log:
        return Log(
            address=checksum(entry["address"]),
            topics=tuple(Web3.to_hex(t).lower() for t in entry["topics"]),
            data=Web3.to_hex(entry["data"]),
            transaction_hash=Web3.to_hex(entry["transactionHash"]).lower(),
            log_index=entry["logIndex"],
            transaction_index=entry["transactionIndex"],
        )

    @staticmethod
    def _to_header(block: BlockData) -> BlockHeader:
        return BlockHeader(
            number=block["number"],
            hash=Web3.to_hex(block["hash"]).lower(),
            timestamp=block["timestamp"],
        )

    @staticmethod
    def _to_transaction(tx: Any) -> Transaction:
        return Transaction(
            hash=Web3.to_hex(tx["hash"]).lower(),
            index=tx["transactionIndex"],
            from_=checksum(tx["from"]),
            to=checksum(tx.get("to")),
        )

    def _get_logs(self, filters: Sequence[LogFilter], from_block: int, to_block: int) -> List[LogReceipt]:
        """
        Fetch the logs of all filters (deduplicated, sorted by block number and log index)
        """
        entries = {}
        for f in filters:
            params: FilterParams = {
                "fromBlock": from_block,
                "toBlock": to_block,
                "topics": [list(f.topic0)],
            }
            if f.address:
                params["address"] = [checksum(a) for a in f.address]

            for entry in self._w3.eth.get_logs(params):
                if entry.get("removed"):
                    continue
                entries[(entry["blockNumber"], entry["logIndex"])] = entry

        return [entries[k] for k in sorted(entries)]

    def _get_blocks(self, numbers: List[int]) -> Dict[int, BlockData]:
        """
        Fetch several blocks (incl. full transactions) with batched requests
        """
        blocks = {}
        for chunk in batched(numbers, size=self.MAX_BATCH_SIZE):
            with self._w3.batch_requests() as batch:
                for number in chunk:
                    batch.add(self._w3.eth.get_block(number, full_transactions=True))
                responses = batch.execute()

            for number, block in zip(chunk, responses):
                assert block["number"] == number
                blocks[number] = block
        return blocks

    def fetch(self, filters: Sequence[LogFilter], from_block: int, to_block: int) -> BlockBatch:
        """
        Build a single batch for a block range

        :param filters: log filters
        :param from_block: first block (included)
        :param to_block: last block (included)
        :return:
        """
        assert from_block <= to_block

        entries = self._get_logs(filters, from_block, to_block)
        groups = bundled(entries, key=lambda e: e["blockNumber"])

        # the last block of the range is always fetched, it defines the batch position
        numbers = [g[0]["blockNumber"] for g in groups]
        if to_block not in numbers:
            numbers.append(to_block)

        data = self._get_blocks(numbers)

        blocks = []
        for group in groups:
            info = data[group[0]["blockNumber"]]
            header = self._to_header(info)

            logs = [self._to_log(e) for e in group]
            for raw in group:
                assert Web3.to_hex(raw["blockHash"]).lower() == header.hash

            # only keep the transactions referenced by a log
            referenced = {entry.transaction_hash for entry in logs}
            transactions = [
                self._to_transaction(tx)
                for tx in info["transactions"]
                if Web3.to_hex(tx["hash"]).lower() in referenced
            ]

            blocks.append(Block(header=header, logs=logs, transactions=transactions))

        position = self._to_header(data[to_block]).position
        log.debug(f"Fetched {len(entries)} logs in {len(blocks)} blocks [{from_block}, {to_block}]")

        return BlockBatch(blocks=blocks, position=position)

    def open(self, filters: Sequence[LogFilter], from_block: int, to_block: Optional[int] = None) -> Iterator[BlockBatch]:
        assert to_block is None or from_block <= to_block + 1

        self._closing.clear()
        start = from_block

        while not self._closing.is_set():
            if to_block is not None and start > to_block:
                # bounded range fully served
                return

            head = self._head()
            end = head if to_block is None else min(to_block, head)

            if start > end:
                log.debug(f"Waiting for block {start} (safe head {head})")
                self._closing.wait(self._poll_interval)
                continue

            end = min(start + self._chunk_size - 1, end)
            yield self.fetch(filters, start, end)
            start = end + 1
