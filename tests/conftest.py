#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

import logging
import pytest

from sqlalchemy import event

import xswap.cache
import xswap.db
import xswap.db.orm as orm
import xswap.metadata
import xswap.protocol
from xswap.config import CONFIG as C
from xswap.types import Network
from xswap.util import init_decimal_context

log = logging.getLogger(__name__)


def pytest_configure(config):
    logging.basicConfig(level=C["LOG_LEVEL"], format=C["LOG_FORMAT"], datefmt=C["LOG_DATE_FORMAT"])
    init_decimal_context()


@pytest.fixture(autouse=True)
def decimal_context() -> None:
    init_decimal_context()


@pytest.fixture(scope="session")
def c() -> xswap.cache.Cache:
    return xswap.cache.Cache_Redis(
        host=C["REDIS_HOST"],
        port=C["REDIS_PORT"],
        password=C["REDIS_PASSWORD"],
        db=C["REDIS_DATABASE"],
    )


@pytest.fixture
def dbm() -> xswap.db.FusionSQL:
    """
    In-memory SQlite database for testing (fresh per test)
    """
    db = xswap.db.FusionSQL(
        conn="sqlite:///:memory:",
        verbose=C["DB_DEBUG"],
    )

    # Note: SQlite doesn't have the concept of schemata as found in postgres.
    #       However, we can work around it by attaching another external database.
    @event.listens_for(db.engine, "connect")
    def schema_attach(dbapi_connection, connection_record) -> None:
        dbapi_connection.execute(f"ATTACH DATABASE ':memory:' AS {orm.Base.metadata.schema}")

    db.create_tables()
    return db


@pytest.fixture(scope="session")
def registry() -> xswap.protocol.ProtocolRegistry:
    return xswap.protocol.default_registry()


@pytest.fixture
def store(dbm: xswap.db.FusionSQL) -> xswap.metadata.MetadataStore:
    return xswap.metadata.MetadataStore(dbm)


@pytest.fixture
def pools(store: xswap.metadata.MetadataStore) -> xswap.metadata.PoolRegistry:
    return xswap.metadata.PoolRegistry(Network.BASE, store)


@pytest.fixture
def tokens(store: xswap.metadata.MetadataStore) -> xswap.metadata.TokenRegistry:
    return xswap.metadata.TokenRegistry(Network.BASE, store)
