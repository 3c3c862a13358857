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

from eth_utils import to_bytes

from xswap.stream import Web3BlockSource
from xswap.types import (
    LogFilter,
    Position,
)

from .logs import (
    ACCOUNT,
    POOL_1,
    POOL_2,
    TOKEN_X,
    USDC,
    block_hash,
    tx_hash,
    v3_pool_created,
    v3_swap,
)


def raw_log(entry, block_number: int, log_index: int) -> Dict[str, Any]:
    return {
        "address": entry.address,
        "topics": [to_bytes(hexstr=t) for t in entry.topics],
        "data": to_bytes(hexstr=entry.data),
        "blockNumber": block_number,
        "blockHash": to_bytes(hexstr=block_hash(block_number)),
        "transactionHash": to_bytes(hexstr=entry.transaction_hash),
        "transactionIndex": entry.transaction_index,
        "logIndex": log_index,
        "removed": False,
    }


class FakeBatch(object):

    def __init__(self) -> None:
        self.requests = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    def add(self, response) -> None:
        self.requests.append(response)

    def execute(self) -> list:
        return list(self.requests)


class FakeEth(object):

    def __init__(self, logs: List[Dict[str, Any]], head: int) -> None:
        self.logs = logs
        self.head = head
        self.log_requests = []
        self.block_requests = []

    def get_logs(self, params) -> List[Dict[str, Any]]:
        self.log_requests.append(params)
        topics = [t.lower() for t in params["topics"][0]]
        addresses = [a.lower() for a in params.get("address", [])]

        found = []
        for entry in self.logs:
            if not params["fromBlock"] <= entry["blockNumber"] <= params["toBlock"]:
                continue
            if "0x" + entry["topics"][0].hex() not in topics:
                continue
            if addresses and entry["address"].lower() not in addresses:
                continue
            found.append(entry)
        return found

    def get_block(self, number, full_transactions: bool = False) -> Dict[str, Any]:
        if number == "latest":
            number = self.head
        self.block_requests.append(number)

        transactions = []
        for entry in self.logs:
            if entry["blockNumber"] == number:
                transactions.append({
                    "hash": entry["transactionHash"],
                    "transactionIndex": entry["transactionIndex"],
                    "from": ACCOUNT,
                    "to": POOL_1,
                })
        # unrelated transaction
        transactions.append({
            "hash": to_bytes(hexstr=tx_hash(999)),
            "transactionIndex": 99,
            "from": ACCOUNT,
            "to": None,
        })

        return {
            "number": number,
            "hash": to_bytes(hexstr=block_hash(number)),
            "timestamp": 1700000000 + number,
            "transactions": transactions if full_transactions else [],
        }


class FakeWeb3(object):

    def __init__(self, eth: FakeEth) -> None:
        self.eth = eth

    def batch_requests(self) -> FakeBatch:
        return FakeBatch()


def make_source(head: int = 130, chunk_size: int = 10) -> Web3BlockSource:
    created = v3_pool_created(USDC, TOKEN_X, POOL_1, tx=1)
    logs = [
        raw_log(created, 103, 0),
        raw_log(v3_swap(POOL_1, amount0=1, amount1=-1, tx=2), 103, 4),
        raw_log(v3_swap(POOL_2, amount0=5, amount1=-5, tx=3), 108, 1),
        raw_log(v3_swap(POOL_1, amount0=2, amount1=-2, tx=4), 125, 0),
    ]
    w3 = FakeWeb3(FakeEth(logs, head=head))
    return Web3BlockSource(w3, chunk_size=chunk_size, num_safety_blocks=5, poll_interval=0.0)


FILTERS = [
    LogFilter(topic0=(v3_pool_created(USDC, TOKEN_X, POOL_1).topic0,), address=(v3_pool_created(USDC, TOKEN_X, POOL_1).address,)),
    LogFilter(topic0=(v3_swap(POOL_1, 1, -1).topic0,)),
    # overlapping filter, logs must not be duplicated
    LogFilter(topic0=(v3_swap(POOL_1, 1, -1).topic0,), address=(POOL_1,)),
]


def test_source_fetch() -> None:
    source = make_source()
    batch = source.fetch(FILTERS, 100, 109)

    assert batch.position == Position(109, block_hash(109))
    assert [b.header.number for b in batch.blocks] == [103, 108]

    block = batch.blocks[0]
    assert block.header.hash == block_hash(103)
    assert block.header.timestamp == 1700000103
    assert [e.log_index for e in block.logs] == [0, 4]
    assert block.logs[1].address == POOL_1

    # only the referenced transactions are kept
    assert [tx.hash for tx in block.transactions] == [tx_hash(1), tx_hash(2)]
    assert block.transaction(tx_hash(2).upper().replace("0X", "0x")).from_ == ACCOUNT
    assert block.transaction(tx_hash(999)) is None


def test_source_open_bounded() -> None:
    source = make_source(head=130, chunk_size=10)

    batches = list(source.open(FILTERS, 100, 122))
    assert [b.position.number for b in batches] == [109, 119, 122]
    assert [len(b.blocks) for b in batches] == [2, 0, 0]


def test_source_open_safety_blocks() -> None:
    source = make_source(head=130, chunk_size=10)

    # the tip (minus safety blocks) limits the stream, close stops the live tail
    batches = []
    for batch in source.open(FILTERS, 100):
        batches.append(batch)
        if batch.position.number >= 125:
            source.close()

    assert [b.position.number for b in batches] == [109, 119, 125]
    assert [b.header.number for b in batches[-1].blocks] == [125]

    source.ack(batches[-1].position)
    assert source.acked == batches[-1].position
    assert source.latest() == Position(130, block_hash(130))
