# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
Shared pytest fixtures and configuration for kosyncsrv tests.

This module contains common fixtures that are automatically available
to all tests without needing to import them explicitly.
"""

import pytest

from kosyncsrv import create_app, ub
from kosyncsrv.cli import CliParameter
from kosyncsrv.constants import ACCEPT_HEADER_VALUE
from kosyncsrv.progress_syncing import (
    AuthenticationGate,
    CredentialStore,
    KOSyncHandler,
    PositionStore,
)


class FakeClock:
    """Settable replacement for time.time"""

    def __init__(self, now=1700000000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds=1):
        self.now += seconds


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "syncdata.db"


@pytest.fixture
def db_session(db_path):
    """Scoped session factory on a fresh sync database."""
    session = ub.init_db(str(db_path))
    yield session
    ub.dispose(session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credential_store(db_session):
    return CredentialStore(db_session)


@pytest.fixture
def position_store(db_session, clock):
    return PositionStore(db_session, clock=clock)


@pytest.fixture
def gate(credential_store):
    return AuthenticationGate(credential_store)


@pytest.fixture
def handler(credential_store, position_store):
    return KOSyncHandler(credential_store, position_store)


# ============================================================================
# Application Fixtures
# ============================================================================

@pytest.fixture
def cli_param(db_path, monkeypatch):
    for name in ('KOSYNC_DB', 'KOSYNC_HOST', 'KOSYNC_PORT', 'KOSYNC_LOGFILE',
                 'KOSYNC_LOGLEVEL', 'KOSYNC_REGISTER_LIMIT'):
        monkeypatch.delenv(name, raising=False)
    param = CliParameter()
    param.init(['-d', str(db_path), '-r', ''])
    return param


@pytest.fixture
def app(cli_param):
    app = create_app(cli_param)
    app.config["TESTING"] = True
    yield app
    ub.dispose(app.extensions['kosync']['session'])


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def kosync_headers():
    """Build request headers the way KOReader's sync plugin sends them."""
    def _headers(user=None, key=None, accept=ACCEPT_HEADER_VALUE):
        headers = {}
        if accept is not None:
            headers['Accept'] = accept
        if user is not None:
            headers['x-auth-user'] = user
        if key is not None:
            headers['x-auth-key'] = key
        return headers
    return _headers


@pytest.fixture
def registered_user(client, kosync_headers):
    """Register alice and return the (username, key) pair."""
    response = client.post('/users/create', headers=kosync_headers(),
                           json={'username': 'alice', 'password': 's3cret'})
    assert response.status_code == 201
    return 'alice', 's3cret'


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast tests of a single module"
    )
    config.addinivalue_line(
        "markers", "integration: tests going through the Flask application"
    )
