#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from .event import (
    EventDecoder,
    event_abi,
)
from .registry import (
    Protocol,
    ProtocolRegistry,
    RegistryError,
    VARIANTS,
    default_registry,
)
from .variant import Variant
