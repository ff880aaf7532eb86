# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
Credential and position storage.

Both stores wrap a SQLAlchemy scoped session factory. Each operation runs in
its own transaction and releases the session afterwards, so nothing is held
across requests. Duplicate usernames are rejected by the unique index at
insert time and positions are written with a single upsert statement, so
neither path has a read-then-write window.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .. import logger
from ..ub import User
from .errors import UserExistsError
from .models import Document, Position, ProgressUpdate

log = logger.create()


@dataclass(frozen=True)
class Credential:
    username: str
    password: str


class CredentialStore:

    def __init__(self, session_factory):
        self._session = session_factory

    def register_user(self, username: str, password: str) -> None:
        """
        Insert a new credential row.

        Raises:
            UserExistsError: the username is already registered
            SQLAlchemyError: on any other storage failure
        """
        session = self._session()
        try:
            session.execute(sqlite_insert(User).values(username=username, password=password))
            session.commit()
        except IntegrityError:
            session.rollback()
            log.info("Registration rejected, username '%s' already exists", username)
            raise UserExistsError(username)
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            self._session.remove()
        log.info("Registered user '%s'", username)

    def lookup_user(self, username: str) -> Optional[Credential]:
        session = self._session()
        try:
            row = session.execute(
                select(User.username, User.password).where(User.username == username)
            ).first()
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            self._session.remove()

        if row is None:
            return None
        return Credential(username=row.username, password=row.password or "")


class PositionStore:

    def __init__(self, session_factory, clock: Callable[[], float] = time.time):
        self._session = session_factory
        self._clock = clock

    def upsert_position(self, username: str, update: ProgressUpdate) -> int:
        """
        Store ``update`` as the current position of (username, document).

        The row is stamped with the server clock; the timestamp a client may
        send is never stored.

        Returns:
            The stored unix timestamp
        """
        timestamp = int(self._clock())
        values = {
            "percentage": update.percentage,
            "progress": str(update.progress),
            "device": update.device,
            "device_id": update.device_id,
            "timestamp": timestamp,
        }
        stmt = sqlite_insert(Document).values(username=username, documentid=update.document, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Document.username, Document.documentid],
            set_={key: stmt.excluded[key] for key in values},
        )

        session = self._session()
        try:
            session.execute(stmt)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            self._session.remove()

        log.debug("Stored position for user '%s', document %s at %d", username, update.document, timestamp)
        return timestamp

    def get_position(self, username: str, document: str) -> Optional[Position]:
        session = self._session()
        try:
            row = session.execute(
                select(Document).where(Document.username == username, Document.documentid == document)
            ).scalar_one_or_none()
            position = Position.from_row(row) if row is not None else None
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            self._session.remove()
        return position
