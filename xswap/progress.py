#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import Optional

import logging
import time
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressInfo(object):
    current: int
    last: Optional[int]
    # percentage of the range [start, last] that has been processed
    percent: Optional[float]
    blocks_per_second: float

    def __str__(self) -> str:
        last = self.last if self.last is not None else "?"
        percent = f"{self.percent:6.2f}%" if self.percent is not None else "     ?%"
        return f"block {self.current}/{last} {percent} ({self.blocks_per_second:.1f} blocks/s)"


class Progress(object):
    """
    Batch granularity progress reporting (rate limited log lines)
    """

    def __init__(self, start: int, interval: float = 5.0, clock: callable = time.monotonic) -> None:
        """
        Create a progress tracker

        :param start: first block of the stream
        :param interval: min number of seconds between two log lines
        :param clock: time source
        """
        self._start = start
        self._interval = interval
        self._clock = clock

        self._t0 = clock()
        self._reported = None
        self._current = start - 1
        self._last = None

    def info(self) -> ProgressInfo:
        elapsed = self._clock() - self._t0
        processed = self._current - self._start + 1
        bps = processed / elapsed if elapsed > 0 else 0.0

        percent = None
        if self._last is not None:
            total = self._last - self._start + 1
            percent = 100.0 if total <= 0 else min(100.0, 100.0 * processed / total)

        return ProgressInfo(
            current=self._current,
            last=self._last,
            percent=percent,
            blocks_per_second=bps,
        )

    def update(self, current: int, last: Optional[int] = None, force: bool = False) -> Optional[ProgressInfo]:
        """
        Record the processed position and log a progress line once per interval

        :param current: last processed block
        :param last: last known block of the stream
        :param force: log regardless of the interval
        :return: the reported progress or ``None`` if the line was skipped
        """
        self._current = current
        if last is not None:
            self._last = last

        now = self._clock()
        if not force and self._reported is not None and now - self._reported < self._interval:
            return None

        self._reported = now
        info = self.info()
        log.info(f"Progress: {info}")
        return info
