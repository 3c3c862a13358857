#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from . import orm

log = logging.getLogger(__name__)


class FusionSQL(object):

    def __init__(self, conn: str, verbose: bool = False, **kwargs) -> None:
        """
        Manages sqlalchemy engine and session factory.

        Note: This should only be instantiated once per process.

        :param conn: database connection string
        :param verbose: enable sqlalchemy verbosity
        :param kwargs: additional ``create_engine()`` arguments
        """
        assert isinstance(conn, str)
        assert isinstance(verbose, bool)

        self._engine = create_engine(conn, echo=False, **kwargs)

        if verbose:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.DEBUG)

        self._session = sessionmaker(
            bind=self._engine,
            autoflush=True,
            expire_on_commit=False,
        )

    @property
    def engine(self):
        return self._engine

    @property
    def session(self):
        """
        Factory session object

        The returned object should be used in a context.

        Usage:

        # closes the session
        with FusionSQL.session() as session:
            session.add(some_object)
            session.add(some_other_object)
            session.commit()

        # auto commits the transaction, closes the session
        with FusionSQL.session.begin() as session:
            session.add(some_object)
            session.add(some_other_object)

        """
        return self._session

    @property
    def orm(self):
        """
        Convenience reference to the orm module
        """
        return orm

    def create_tables(self) -> None:
        """
        Create all missing tables (used for local sqlite stores and tests, production databases
        are managed with alembic migrations)
        """
        log.info("Creating missing database tables")
        orm.Base.metadata.create_all(self._engine)
