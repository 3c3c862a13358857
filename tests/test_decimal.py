#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

import pytest

from decimal import (
    Decimal,
    ROUND_HALF_UP,
    getcontext,
    Clamped,
    DivisionByZero,
    FloatOperation,
    InvalidOperation,
    Overflow,
    Subnormal,
    Underflow,
)

from xswap.util import token_to_decimal


def test_decimal_context() -> None:
    c = getcontext()

    assert c.prec == 78
    assert c.rounding == ROUND_HALF_UP

    traps = [k for k, v in c.traps.items() if v]
    assert set(traps) == {Clamped, DivisionByZero, FloatOperation, InvalidOperation, Overflow, Subnormal, Underflow}


def test_token_to_decimal() -> None:
    assert token_to_decimal(1000, 6) == Decimal("0.001")
    assert token_to_decimal(-2000, 18) == Decimal("-0.000000000000002")
    assert token_to_decimal(111009028044333631034, 18) == Decimal("111.009028044333631034")
    assert token_to_decimal(5, 0) == Decimal("5")

    # more fractional digits than kept are rounded
    assert token_to_decimal(15, 19) == Decimal("0.000000000000000002")
    assert token_to_decimal(-15, 19) == Decimal("-0.000000000000000002")

    # the result is always quantized to 18 fractional digits
    assert token_to_decimal(1, 0).as_tuple().exponent == -18


def test_token_to_decimal_overflow() -> None:
    # 2**256 - 1 with 18 fractional digits exceeds the context precision
    with pytest.raises(InvalidOperation):
        token_to_decimal(2 ** 256 - 1, 0)
