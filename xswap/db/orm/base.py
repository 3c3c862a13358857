#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
)
from sqlalchemy.orm import declarative_base

from xswap.config import CONFIG as C

Base = declarative_base(
    metadata=MetaData(
        schema=C["DB_SCHEMA"],
    ),
)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class BaseModel(object):
    id = Column(Integer, primary_key=True, unique=True, autoincrement=True)


class BaseModelAdded(BaseModel):
    date_added = Column(DateTime, default=_utcnow)
