# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""Unit Tests for Progress Syncing Models Module"""

import sqlite3

import pytest

from kosyncsrv import ub
from kosyncsrv.progress_syncing.models import (
    Document,
    Position,
    ProgressKind,
    ProgressValue,
)


@pytest.mark.unit
class TestInitDb:
    """Test the schema created by ub.init_db."""

    def test_creates_tables(self, db_path, db_session):
        conn = sqlite3.connect(str(db_path))
        cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = {row[0] for row in cursor.fetchall()}
        conn.close()
        assert {'user', 'document'} <= tables

    def test_creates_document_columns(self, db_path, db_session):
        conn = sqlite3.connect(str(db_path))
        cursor = conn.execute("PRAGMA table_info(document)")
        columns = {row[1] for row in cursor.fetchall()}
        conn.close()
        assert columns == {'username', 'documentid', 'percentage', 'progress',
                           'device', 'device_id', 'timestamp'}

    def test_creates_unique_indexes(self, db_path, db_session):
        conn = sqlite3.connect(str(db_path))
        cursor = conn.execute("SELECT name, sql FROM sqlite_master WHERE type='index' AND sql IS NOT NULL")
        indexes = {row[0]: row[1] for row in cursor.fetchall()}
        conn.close()
        assert 'UNIQUE' in indexes['username']
        assert 'UNIQUE' in indexes['username_documentid']

    def test_idempotent(self, db_path, db_session):
        second = ub.init_db(str(db_path))
        ub.dispose(second)

        conn = sqlite3.connect(str(db_path))
        cursor = conn.execute("PRAGMA table_info(user)")
        columns = {row[1] for row in cursor.fetchall()}
        conn.close()
        assert columns == {'username', 'password'}

    def test_opens_legacy_database(self, tmp_path):
        """Tables created without primary keys, only unique indexes."""
        db = tmp_path / "legacy.db"
        conn = sqlite3.connect(str(db))
        conn.executescript("""
            CREATE TABLE "user" ("username" TEXT(255), "password" TEXT(255));
            CREATE UNIQUE INDEX username ON user(username);
            CREATE TABLE "document" (
                "username" TEXT(255), "documentid" TEXT(255), "percentage" REAL(64,4),
                "progress" TEXT(255), "device" TEXT(255), "device_id" TEXT(255), "timestamp" INTEGER
            );
            CREATE UNIQUE INDEX username_documentid ON document(username,documentid);
            INSERT INTO user VALUES ('bob', 'plainkey');
            INSERT INTO document VALUES ('bob', 'bookB', 0.5, '12', 'kindle', 'k1', 1600000000);
        """)
        conn.commit()
        conn.close()

        session = ub.init_db(str(db))
        try:
            row = session.query(Document).filter(Document.username == 'bob').one()
            assert row.documentid == 'bookB'
            assert row.progress == '12'
        finally:
            ub.dispose(session)


@pytest.mark.unit
class TestProgressValue:
    """Test the numeric-or-string progress wire value."""

    def test_integer_becomes_string(self):
        value = ProgressValue.from_wire(42)
        assert value.kind is ProgressKind.INTEGER
        assert str(value) == "42"

    def test_integer_has_no_decimal_point(self):
        assert ProgressValue.from_wire(7).text == "7"

    def test_zero(self):
        assert ProgressValue.from_wire(0).text == "0"

    def test_string_kept_unchanged(self):
        value = ProgressValue.from_wire("p7")
        assert value.kind is ProgressKind.TEXT
        assert str(value) == "p7"

    def test_xpointer_kept_unchanged(self):
        xpointer = "/body/DocFragment[12]/body/div/p[3]/text().42"
        assert ProgressValue.from_wire(xpointer).text == xpointer

    def test_numeric_string_stays_text(self):
        assert ProgressValue.from_wire("42").kind is ProgressKind.TEXT

    @pytest.mark.parametrize("raw", [42.5, True, False, None, [1], {"page": 1}])
    def test_rejects_other_types(self, raw):
        with pytest.raises(ValueError):
            ProgressValue.from_wire(raw)


@pytest.mark.unit
class TestPosition:
    """Test Position conversion."""

    def test_from_row(self):
        row = Document(username='alice', documentid='bookA', percentage=0.25, progress='10',
                       device='phone', device_id='p1', timestamp=123)
        position = Position.from_row(row)
        assert position.document == 'bookA'
        assert position.timestamp == 123

    def test_from_row_fills_nulls(self):
        row = Document(username='alice', documentid='bookA')
        position = Position.from_row(row)
        assert position.progress == ""
        assert position.percentage == 0.0
        assert position.device_id == ""
        assert position.timestamp == 0

    def test_to_wire(self):
        position = Position('alice', 'bookA', '10', 0.25, 'phone', 'p1', 123)
        assert position.to_wire() == {
            "document": "bookA",
            "progress": "10",
            "percentage": 0.25,
            "device": "phone",
            "device_id": "p1",
            "timestamp": 123,
        }

    def test_to_wire_has_no_username(self):
        position = Position('alice', 'bookA', '10', 0.25, 'phone', 'p1', 123)
        assert 'username' not in position.to_wire()
