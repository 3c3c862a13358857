#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from .base import (
    Base,
    BaseModel,
)
from .metadata import (
    Pool,
    Token,
)
from .state import State
from .swap import Swap
