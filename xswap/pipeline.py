#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Callable,
    List,
    Optional,
    Sequence,
)

import enum
import logging
import signal

from xswap.normalizer import SwapNormalizer
from xswap.progress import Progress
from xswap.stream import (
    BlockSource,
    Sink,
    StateStore,
)
from xswap.types import (
    BlockBatch,
    Checkpoint,
    LogFilter,
    Position,
)
from xswap.util import init_decimal_context

log = logging.getLogger(__name__)


class SignalContext(object):

    def __init__(self, signals: List[signal.Signals], handler: Callable):
        self._signals = set(signals)
        self._handler = handler
        self._cache = {}

    def __enter__(self):
        # register signal handlers
        for sig in self._signals:
            self._cache[sig] = signal.signal(sig, self._handler)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        # restore previous signal handlers
        for k, v in self._cache.items():
            signal.signal(k, v)
        self._cache = {}


class PipelineState(enum.Enum):
    UNKNOWN = 0
    INIT = enum.auto()
    RESUMING = enum.auto()
    STREAMING = enum.auto()
    ACKNOWLEDGING = enum.auto()
    DRAINED = enum.auto()
    STOPPED = enum.auto()


@enum.unique
class PipelineMode(str, enum.Enum):
    # normalize swaps and write them to the sink
    SWAPS = "swaps"
    # only register pools (prime the pool registry)
    POOLS = "pools"


class Pipeline(object):
    """
    Resumable swap stream

    Program flow per batch:
    1) BlockSource: hand out the next batch of blocks (logs selected by the registry filters)
    2) SwapNormalizer: register pools, decode, enrich and normalize swaps
    3) Sink: write the batch (all-or-nothing)
    4) StateStore: advance the checkpoint to the batch position
    5) BlockSource: acknowledge the batch

    A batch interrupted before step 4 is processed again on resume, the sink removes its leftovers
    at start up (everything after the checkpoint).
    """

    def __init__(
        self,
        stream_id: str,
        source: BlockSource,
        state: StateStore,
        sink: Sink,
        normalizer: SwapNormalizer,
        filters: Sequence[LogFilter],
        default_start: int,
        mode: PipelineMode = PipelineMode.SWAPS,
        progress_interval: float = 5.0,
    ) -> None:
        """
        Create a pipeline

        :param stream_id: checkpoint identifier
        :param source: block source
        :param state: checkpoint store
        :param sink: swap writer
        :param normalizer: swap normalizer
        :param filters: log filters handed to the block source
        :param default_start: first block of a stream without a stored checkpoint
        :param mode: processing mode
        :param progress_interval: min number of seconds between two progress log lines
        """
        assert default_start >= 0

        self._stream_id = stream_id
        self._source = source
        self._state_store = state
        self._sink = sink
        self._normalizer = normalizer
        self._filters = list(filters)
        self._default_start = default_start
        self._mode = mode
        self._progress_interval = progress_interval

        self._state = PipelineState.INIT
        self._checkpoint = None
        self._terminating = False

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def mode(self) -> PipelineMode:
        return self._mode

    @property
    def checkpoint(self) -> Optional[Checkpoint]:
        return self._checkpoint

    def _handle_signal(self, signum, frame) -> None:
        log.critical(f"Received {signal.Signals(signum).name} ({signum}) '{signal.strsignal(signum)}'. Terminating!")
        self.stop()

    def stop(self) -> None:
        """
        Stop after the batch in progress (if any) has been fully processed
        """
        self._terminating = True
        self._source.close()

    def resume(self) -> int:
        """
        Load the checkpoint and clean up the sink (swaps mode only)

        :return: first block to process
        """
        self._state = PipelineState.RESUMING

        checkpoint = self._state_store.get(self._stream_id)
        if checkpoint is None:
            initial = Position(self._default_start - 1)
            checkpoint = Checkpoint(current=initial, initial=initial)
            log.info(f"Syncing from block {self._default_start} (stream '{self._stream_id}')")
        elif checkpoint.is_fresh:
            log.info(f"Syncing from block {checkpoint.current.number + 1} (stream '{self._stream_id}')")
        else:
            log.info(
                f"Resuming from block {checkpoint.current.number + 1} (stream '{self._stream_id}', "
                f"initial block {checkpoint.initial.number + 1})"
            )

        self._checkpoint = checkpoint

        # pool priming never writes swaps, rows past its own cursor belong to the swap stream
        if self._mode == PipelineMode.SWAPS:
            self._sink.cleanup(checkpoint.current.number)
        return checkpoint.current.number + 1

    def process_batch(self, batch: BlockBatch) -> int:
        """
        Process a single batch and advance the checkpoint

        :param batch: block batch
        :return: number of swaps written
        """
        assert batch.position > self._checkpoint.current

        if self._mode == PipelineMode.POOLS:
            self._normalizer.index_pools(batch.blocks)
            swaps = []
        else:
            swaps = self._normalizer.normalize(batch.blocks)
            self._sink.write(swaps)

        self._state = PipelineState.ACKNOWLEDGING

        # the checkpoint only advances once the batch is durably written
        self._state_store.save(self._stream_id, batch.position, self._checkpoint.initial)
        self._checkpoint = Checkpoint(current=batch.position, initial=self._checkpoint.initial)
        self._source.ack(batch.position)

        self._state = PipelineState.STREAMING
        return len(swaps)

    def run(self, to_block: Optional[int] = None) -> PipelineState:
        """
        Run the stream until the range is exhausted (bounded) or the pipeline is stopped

        :param to_block: last block (included), ``None`` follows the chain tip
        :return: final pipeline state
        """
        init_decimal_context()

        with SignalContext(signals=[signal.SIGINT, signal.SIGTERM], handler=self._handle_signal):
            from_block = self.resume()

            if to_block is not None and from_block > to_block:
                log.info(f"Nothing to do, stream is already at block {from_block - 1}")
                self._state = PipelineState.DRAINED
                return self._state

            progress = Progress(start=from_block, interval=self._progress_interval)
            self._state = PipelineState.STREAMING

            for batch in self._source.open(self._filters, from_block, to_block):
                count = self.process_batch(batch)
                log.debug(f"Processed {len(batch.blocks)} blocks, {count} swaps up to block {batch.position}")

                last = to_block if to_block is not None else self._source.latest().number
                progress.update(batch.position.number, last)

                if self._terminating:
                    break

            progress.update(self._checkpoint.current.number, force=True)

        self._state = PipelineState.STOPPED if self._terminating else PipelineState.DRAINED
        log.info(
            f"Stream '{self._stream_id}' {self._state.name.lower()} at block {self._checkpoint.current.number} "
            f"(stats: {dict((k.value, v) for k, v in self._normalizer.stats.items())}, "
            f"drops: {dict((k.value, v) for k, v in self._normalizer.drops.items())})"
        )
        return self._state
