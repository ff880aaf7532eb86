# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

import sys

from sqlalchemy.exc import SQLAlchemyError

from . import create_app, logger, ub
from .cli import CliParameter
from .server import WebServer

log = logger.create()


def main(argv=None):
    cli_param = CliParameter()
    cli_param.init(argv)
    logger.setup(cli_param.logpath, cli_param.log_level)

    try:
        app = create_app(cli_param)
    except (SQLAlchemyError, OSError) as e:
        log.critical("Could not open sync database %s: %s", cli_param.db_path, e)
        print("*** Could not open sync database %s: %s ***" % (cli_param.db_path, e))
        sys.exit(1)

    web_server = WebServer()
    web_server.init_app(app, cli_param)
    success = web_server.start()
    ub.dispose(app.extensions['kosync']['session'])
    sys.exit(0 if success else 1)
