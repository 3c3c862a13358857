#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from .sink import (
    Sink,
    SQLSwapSink,
)
from .source import (
    BlockSource,
    Web3BlockSource,
)
from .state import (
    SQLStateStore,
    StateStore,
)
