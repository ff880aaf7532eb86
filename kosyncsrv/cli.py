# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

import sys
import os
import argparse

from .constants import STABLE_VERSION, DEFAULT_DB_FILE, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_REGISTER_LIMIT
from . import logger


def version_info():
    return "kosyncsrv version %s" % STABLE_VERSION


class CliParameter(object):

    def init(self, argv=None):
        self.arg_parser(argv)

    def arg_parser(self, argv=None):
        parser = argparse.ArgumentParser(description='KOReader reading progress sync server',
                                         prog='kosyncsrv.py')
        parser.add_argument('-d', metavar='path',
                            help='path and name to the sqlite3 database file, defaults to ' + DEFAULT_DB_FILE)
        parser.add_argument('-t', metavar='host',
                            help='host address the server listens on, defaults to ' + DEFAULT_HOST)
        parser.add_argument('-p', metavar='port', type=int,
                            help='port the server listens on, defaults to %d' % DEFAULT_PORT)
        parser.add_argument('--ssl', action='store_true', help='start the server with https')
        parser.add_argument('-c', metavar='path', help='path and name to SSL certfile, e.g. /opt/test.cert')
        parser.add_argument('-k', metavar='path', help='path and name to SSL keyfile, e.g. /opt/test.key')
        parser.add_argument('-o', metavar='path',
                            help='path and name of the logfile, "/dev/stdout" or "/dev/stderr" '
                                 'for console output, defaults to console')
        parser.add_argument('-a', metavar='path', help='path and name of the access logfile, disabled if not set')
        parser.add_argument('-l', metavar='level', help='log level (debug, info, warning, error)')
        parser.add_argument('-r', metavar='limit',
                            help='rate limit for account registration per client address, e.g. "5/minute", '
                                 'an empty value disables the limit, defaults to ' + DEFAULT_REGISTER_LIMIT)
        parser.add_argument('-v', '--version', action='version', help='Shows version number and exits',
                            version=version_info())
        args = parser.parse_args(argv)

        self.db_path = args.d or os.environ.get('KOSYNC_DB') or DEFAULT_DB_FILE
        self.db_path = os.path.abspath(self.db_path)
        if os.path.isdir(self.db_path):
            print("Database path '%s' is a directory, a file name is required" % self.db_path)
            sys.exit(1)

        self.ip_address = args.t or os.environ.get('KOSYNC_HOST') or DEFAULT_HOST
        self.port = args.p or int(os.environ.get('KOSYNC_PORT', DEFAULT_PORT))

        self.use_ssl = args.ssl
        self.certfilepath = None
        self.keyfilepath = None
        if self.use_ssl:
            if not args.c or not os.path.isfile(args.c):
                print("Certfile path is invalid. Exiting...")
                sys.exit(1)
            if not args.k or not os.path.isfile(args.k):
                print("Keyfile path is invalid. Exiting...")
                sys.exit(1)
            self.certfilepath = os.path.abspath(args.c)
            self.keyfilepath = os.path.abspath(args.k)

        self.logpath = args.o or os.environ.get('KOSYNC_LOGFILE') or logger.LOG_TO_STDERR
        if not logger.is_valid_logfile(self.logpath):
            print("Logfile path '%s' is invalid. Exiting..." % self.logpath)
            sys.exit(1)
        self.access_logpath = args.a

        level_name = args.l or os.environ.get('KOSYNC_LOGLEVEL')
        self.log_level = logger.get_level(level_name) if level_name else logger.DEFAULT_LOG_LEVEL
        if self.log_level is None:
            print("Unknown log level '%s'. Exiting..." % level_name)
            sys.exit(1)

        if args.r is not None:
            self.register_limit = args.r.strip()
        else:
            self.register_limit = os.environ.get('KOSYNC_REGISTER_LIMIT', DEFAULT_REGISTER_LIMIT).strip()
