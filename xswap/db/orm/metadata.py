#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Integer,
    SmallInteger,
    String,
    UniqueConstraint,
)

from .base import (
    Base,
    BaseModelAdded,
)

# Both tables are keyed by (network, address) and are insert-only. Rows are never updated,
# the first writer wins.


class Pool(BaseModelAdded, Base):
    """
    Store liquidity pool composition, discovered from factory creation events
    """
    __tablename__ = "pool"
    __table_args__ = (
        UniqueConstraint("network", "address"),
    )

    network = Column(String(length=32), nullable=False)
    dex_name = Column(String(length=32), nullable=False)
    protocol = Column(String(length=32), nullable=False)

    # pool contract address used as unique identifier (per network)
    address = Column(String(length=42), nullable=False)

    token0 = Column(String(length=42), nullable=False)
    token1 = Column(String(length=42), nullable=False)
    factory = Column(String(length=42), nullable=False)
    block_number = Column(BigInteger, nullable=False)

    # protocol specific parameters
    fee = Column(Integer)
    tick_spacing = Column(Integer)
    stable = Column(Boolean)


class Token(BaseModelAdded, Base):
    """
    Store token contract information (mirrored from the smart contract)
    """
    __tablename__ = "token"
    __table_args__ = (
        UniqueConstraint("network", "address"),
    )

    network = Column(String(length=32), nullable=False)

    # contract address used as unique identifier (per network)
    address = Column(String(length=42), nullable=False)

    decimals = Column(SmallInteger, nullable=False)
    symbol = Column(String(length=32), nullable=False)
