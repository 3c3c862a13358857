#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from .base import Cache
from .memory import Cache_Memory
from .redis import Cache_Redis
