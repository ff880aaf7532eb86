# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

import os
import sqlite3

from sqlalchemy import create_engine, Column, Index, String
from sqlalchemy.orm import declarative_base, sessionmaker, scoped_session

from . import logger

log = logger.create()

Base = declarative_base()


class User(Base):
    __tablename__ = 'user'
    # index name matches databases created by earlier kosyncsrv releases
    __table_args__ = (Index('username', 'username', unique=True),)

    username = Column(String(255), primary_key=True)
    password = Column(String(255))

    def __repr__(self):
        return '<User %r>' % self.username


def init_db(app_db_path):
    """
    Open the sync database, creating missing tables and indexes.

    Returns a scoped session factory bound to the database. Any failure is
    raised to the caller, the server can't run without its storage.
    """
    # register the document table on the metadata
    from .progress_syncing import models  # noqa: F401

    _healthcheck_app_db(app_db_path)

    engine = create_engine('sqlite:///{0}'.format(app_db_path), echo=False,
                           connect_args={'timeout': 30})
    Base.metadata.create_all(engine)

    Session = scoped_session(sessionmaker())
    Session.configure(bind=engine)
    log.info("Opened sync database at %s", app_db_path)
    return Session


def _healthcheck_app_db(app_db_path):
    """Basic startup checks for the database path, permissions and integrity."""
    if os.path.isdir(app_db_path):
        log.error("Database path points to a directory: %s", app_db_path)
        return
    if not os.path.exists(app_db_path):
        log.warning("Database not found at %s; it will be created", app_db_path)
        return
    if not os.access(app_db_path, os.W_OK):
        log.error("Database is not writable: %s", app_db_path)
    try:
        with sqlite3.connect(app_db_path, timeout=5) as con:
            con.execute("PRAGMA quick_check;")
    except sqlite3.DatabaseError as e:
        log.error("Database integrity/lock check failed for %s: %s", app_db_path, e)


def dispose(session):
    if not session:
        return
    session.remove()
    if session.bind:
        session.bind.dispose()
