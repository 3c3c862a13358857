#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    String,
)

from .base import (
    Base,
    BaseModel,
    _utcnow,
)


class State(BaseModel, Base):
    """
    Stream checkpoint (one row per logical stream)
    """
    __tablename__ = "state"

    name = Column(String(length=128), unique=True, nullable=False)

    # last position durably written to the sink
    block_number = Column(BigInteger, nullable=False)
    block_hash = Column(String(length=66))

    # position the stream originally started from
    initial_number = Column(BigInteger, nullable=False)
    initial_hash = Column(String(length=66))

    date_updated = Column(DateTime, default=_utcnow, onupdate=_utcnow)
