#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from logging.config import fileConfig

from sqlalchemy import create_engine
from sqlalchemy import pool

from alembic import (
    context,
    operations,
)

import xswap.db.orm as orm
from xswap.db.misc import build_url
from xswap.config import CONFIG as C

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# metadata of the state, pool, token and swap tables (autogenerate support)
target_metadata = orm.Base.metadata


def get_url() -> str:
    return build_url(
        driver=C["DB_DRIVER"],
        host=C["DB_HOST"],
        port=C["DB_PORT"],
        username=C["DB_USERNAME"],
        password=C["DB_PASSWORD"],
        database=C["DB_DATABASE"],
    )


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode (emit the SQL script instead of applying it).
    """
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        version_table_schema=target_metadata.schema,
    )

    with context.begin_transaction():
        context.run_migrations()


def _process_revision_directives(context, revision, directives) -> None:
    """
    Create the configured schema as part of the first revision.

    See: https://stackoverflow.com/a/70571077/14834858

    :param context: the ``MigrationContext`` in use
    :param revision: tuple of revision identifiers representing the current revision of the database
    :param directives: list containing a single ``MigrationScript`` directive
    :return:
    """
    assert len(directives) == 1

    script = directives[0]
    if script.upgrade_ops.is_empty():
        return

    for schema in frozenset(i.schema for i in target_metadata.tables.values()):
        script.upgrade_ops.ops.insert(0, operations.ops.ExecuteSQLOp(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
        script.downgrade_ops.ops.append(operations.ops.ExecuteSQLOp(f"DROP SCHEMA IF EXISTS {schema} RESTRICT"))


def run_migrations_online() -> None:
    """
    Run migrations in 'online' mode (against a live connection).
    """
    connectable = create_engine(
        url=get_url(),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            process_revision_directives=_process_revision_directives,
            version_table_schema=target_metadata.schema,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
