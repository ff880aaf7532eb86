# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

__package__ = "kosyncsrv"

import os

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.middleware.proxy_fix import ProxyFix

from . import logger
from . import ub
from .cli import CliParameter

log = logger.create()


def create_app(cli_param=None):
    """
    Build the sync server application.

    The database is opened here; a failure propagates to the caller, there is
    no degraded mode without storage.
    """
    from .progress_syncing import AuthenticationGate, CredentialStore, KOSyncHandler, PositionStore
    from .progress_syncing.protocols.kosync import kosync, registration, init_kosync

    if cli_param is None:
        cli_param = CliParameter()
        cli_param.init([])

    app = Flask(__name__)
    app.json.sort_keys = False

    # Fix for running behind reverse proxy (e.g. nginx, apache, caddy, ...)
    # Set TRUSTED_PROXY_COUNT to the number of proxies in your chain (default: 1)
    num_proxies = int(os.environ.get('TRUSTED_PROXY_COUNT', '1'))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=num_proxies, x_proto=num_proxies, x_host=num_proxies,
                            x_prefix=num_proxies)
    log.debug('ProxyFix configured to trust %d proxy(ies) for X-Forwarded-* headers', num_proxies)

    session = ub.init_db(cli_param.db_path)
    credentials = CredentialStore(session)
    positions = PositionStore(session)
    init_kosync(app, KOSyncHandler(credentials, positions), AuthenticationGate(credentials), session)

    # Configure rate limiter
    # https://limits.readthedocs.io/en/stable/storage.html
    app.config.update(RATELIMIT_ENABLED=bool(cli_param.register_limit),
                      RATELIMIT_STORAGE_URI="memory://",
                      RATELIMIT_HEADERS_ENABLED=True)
    limiter = Limiter(key_func=get_remote_address, app=app)
    if cli_param.register_limit:
        limiter.limit(cli_param.register_limit)(registration)
        log.info("Registration limited to %s per client address", cli_param.register_limit)

    app.register_blueprint(kosync)
    app.register_blueprint(registration)

    log.info('Sync server configured with database %s', cli_param.db_path)
    return app
