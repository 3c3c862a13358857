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
    Numeric,
    SmallInteger,
    String,
    UniqueConstraint,
)

from .base import (
    Base,
    BaseModel,
)


class Swap(BaseModel, Base):
    """
    Normalized swap (sink table)

    Note: token A/B follow the canonical pair order, amounts are signed pool balance changes
    """
    __tablename__ = "swap"
    __table_args__ = (
        UniqueConstraint("network", "block_number", "log_index"),
    )

    network = Column(String(length=32), nullable=False)
    dex_name = Column(String(length=32), nullable=False)
    protocol = Column(String(length=32), nullable=False)

    block_number = Column(BigInteger, nullable=False, index=True)
    block_hash = Column(String(length=66), nullable=False)
    timestamp = Column(BigInteger, nullable=False)
    transaction_hash = Column(String(length=66), nullable=False)
    transaction_index = Column(Integer, nullable=False)
    log_index = Column(Integer, nullable=False)

    account = Column(String(length=42), nullable=False)
    sender = Column(String(length=42), nullable=False)
    recipient = Column(String(length=42), nullable=False)

    pool = Column(String(length=42), nullable=False)
    factory = Column(String(length=42), nullable=False)
    fee = Column(Integer)
    tick_spacing = Column(Integer)
    stable = Column(Boolean)
    liquidity = Column(Numeric(precision=78, scale=0))
    sqrt_price_x96 = Column(Numeric(precision=78, scale=0))
    tick = Column(Integer)

    token_a = Column(String(length=42), nullable=False)
    symbol_a = Column(String(length=32))
    decimals_a = Column(SmallInteger)
    raw_amount_a = Column(Numeric(precision=78, scale=0), nullable=False)
    amount_a = Column(Numeric(precision=78, scale=18))

    token_b = Column(String(length=42), nullable=False)
    symbol_b = Column(String(length=32))
    decimals_b = Column(SmallInteger)
    raw_amount_b = Column(Numeric(precision=78, scale=0), nullable=False)
    amount_b = Column(Numeric(precision=78, scale=18))

    a_to_b = Column(Boolean, nullable=False)
