#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import Optional

import abc
import logging

from sqlalchemy import select

import xswap.db
import xswap.db.orm as orm
from xswap.types import (
    Checkpoint,
    Position,
)

log = logging.getLogger(__name__)


class StateStore(abc.ABC):
    """
    Durable stream checkpoints (one per stream id)
    """

    @abc.abstractmethod
    def get(self, stream_id: str) -> Optional[Checkpoint]:
        """
        Load the checkpoint of a stream

        :param stream_id: stream identifier
        :return: checkpoint or ``None`` if the stream never saved one
        """
        raise NotImplementedError

    @abc.abstractmethod
    def save(self, stream_id: str, position: Position, initial: Position) -> None:
        """
        Durably store the checkpoint of a stream

        Only called once the data up to ``position`` has been durably written to the sink.

        :param stream_id: stream identifier
        :param position: last processed position
        :param initial: position the stream originally started from (never changes once stored)
        :return:
        """
        raise NotImplementedError


class SQLStateStore(StateStore):

    def __init__(self, db: xswap.db.FusionSQL) -> None:
        self._db = db

    def get(self, stream_id: str) -> Optional[Checkpoint]:
        log.debug(f"Getting state '{stream_id}'")

        with self._db.session() as session:
            state = session.execute(
                select(orm.State)
                    .filter(orm.State.name == stream_id)
            ).scalar_one_or_none()

        if state is None:
            return None

        return Checkpoint(
            current=Position(state.block_number, state.block_hash or ""),
            initial=Position(state.initial_number, state.initial_hash or ""),
        )

    def save(self, stream_id: str, position: Position, initial: Position) -> None:
        with self._db.session.begin() as session:
            state = session.execute(
                select(orm.State)
                    .filter(orm.State.name == stream_id)
            ).scalar_one_or_none()

            if state is None:
                state = orm.State(
                    name=stream_id,
                    initial_number=initial.number,
                    initial_hash=initial.hash or None,
                )
                session.add(state)
            elif state.initial_number != initial.number:
                log.warning(f"Ignoring new initial position {initial} for state '{stream_id}'")

            assert position.number >= state.initial_number

            state.block_number = position.number
            state.block_hash = position.hash or None

        log.debug(f"Saved state '{stream_id}' at block {position}")
