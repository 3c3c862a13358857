#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from .decimal import (
    MAX_DECIMAL_PLACES,
    init_decimal_context,
    token_to_decimal,
)
from .misc import (
    batched,
    bundled,
    checksum,
    parse_csv,
    timeit,
    unique,
)
