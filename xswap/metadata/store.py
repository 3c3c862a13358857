#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Tuple,
)

import logging

from sqlalchemy import select
import sqlalchemy.exc

import xswap.db
from xswap.types import Network
from xswap.util import batched

log = logging.getLogger(__name__)


class MetadataStore(object):
    """
    Persistent metadata store (insert-only tables keyed by network and address)

    Supported tables: ``orm.Pool`` and ``orm.Token``
    """

    # max number of addresses per point lookup query
    MAX_LOOKUP_SIZE = 500

    def __init__(self, db: xswap.db.FusionSQL) -> None:
        self._db = db

    def upsert_if_absent(self, table: Any, record: Dict[str, Any]) -> Tuple[bool, Any]:
        """
        Insert a row unless one with the same (network, address) already exists

        Never errors on duplicates, the first writer wins. Concurrent writers are handled
        by the unique constraint of the table.

        :param table: orm class
        :param record: column values (must contain ``network`` and ``address``)
        :return: tuple (inserted, persisted row)
        """
        def load(s):
            return s.execute(
                select(table)
                    .filter(table.network == record["network"])
                    .filter(table.address == record["address"])
            ).scalar_one_or_none()

        with self._db.session() as session:
            row = load(session)
            if row is not None:
                return False, row

            row = table(**record)
            session.add(row)

            # handle race conditions
            try:
                session.commit()
            except sqlalchemy.exc.IntegrityError:
                session.rollback()
                row = load(session)
                log.debug(f"Lost insert race for {table.__tablename__} '{record['address']}'")
                return False, row

            return True, row

    def select_where(self, table: Any, network: Network, addresses: Iterable[str]) -> List[Any]:
        """
        Point lookup of several rows of a network

        :param table: orm class
        :param network: network
        :param addresses: checksum addresses
        :return: rows found (unordered, missing addresses are omitted)
        """
        addresses = list(addresses)
        rows = []
        if not addresses:
            return rows

        with self._db.session() as session:
            for chunk in batched(addresses, size=self.MAX_LOOKUP_SIZE):
                rows.extend(session.execute(
                    select(table)
                        .filter(table.network == network.value)
                        .filter(table.address.in_(chunk))
                ).scalars().all())
        return rows
