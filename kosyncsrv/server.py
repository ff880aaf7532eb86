# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

import signal
from datetime import datetime

from gevent.pool import Pool
from gevent.pywsgi import WSGIHandler, WSGIServer

from . import logger


log = logger.create()


class SyncWSGIHandler(WSGIHandler):
    """Access log line with the forwarded client address and request duration."""

    def format_request(self):
        now = datetime.now().replace(microsecond=0)
        length = self.response_length or '-'
        if self.time_finish:
            delta = '%.6f' % (self.time_finish - self.time_start)
        else:
            delta = '-'
        forwarded = self.environ.get('HTTP_X_FORWARDED_FOR', None)
        if forwarded:
            client_address = forwarded
        else:
            client_address = self.client_address[0] if isinstance(self.client_address, tuple) \
                else self.client_address
        # x-auth-key never reaches the log, only the request line does
        return '%s - %s [%s] "%s" %s %s %s' % (
            client_address or '-',
            self.environ.get('HTTP_X_AUTH_USER') or '-',
            now,
            self.requestline or '',
            (self._orig_status or self.status or '000').split()[0],
            length,
            delta)


def _readable_listen_address(address, port):
    if ':' in address:
        address = "[" + address + "]"
    return '%s:%s' % (address, port)


class WebServer(object):

    def __init__(self):
        signal.signal(signal.SIGINT, self._kill_server)
        signal.signal(signal.SIGTERM, self._kill_server)

        self.wsgiserver = None
        self.access_logger = None
        self.app = None
        self.listen_address = None
        self.listen_port = None
        self.ssl_args = None

    def init_app(self, application, cli_param):
        self.app = application
        self.listen_address = cli_param.ip_address
        self.listen_port = cli_param.port

        if cli_param.access_logpath:
            self.access_logger, logfile = logger.create_access_log(cli_param.access_logpath,
                                                                   "gevent.access",
                                                                   logger.ACCESS_FORMATTER_GEVENT)
            if logfile:
                log.info("Access log written to %s", logfile)

        if cli_param.use_ssl:
            self.ssl_args = dict(certfile=cli_param.certfilepath, keyfile=cli_param.keyfilepath)
            log.info('Serving https with certificate %s', cli_param.certfilepath)

    def _start_gevent(self):
        ssl_args = self.ssl_args or {}
        output = _readable_listen_address(self.listen_address, self.listen_port)
        log.info('Starting Gevent server on %s', output)
        self.wsgiserver = WSGIServer((self.listen_address, self.listen_port), self.app,
                                     log=self.access_logger, error_log=log,
                                     handler_class=SyncWSGIHandler, spawn=Pool(), **ssl_args)
        self.wsgiserver.serve_forever()

    def start(self):
        try:
            self._start_gevent()
        except Exception as ex:
            log.error("Error starting server: %s", ex)
            print("Error starting server: %s" % ex)
            self.stop()
            return False
        finally:
            self.wsgiserver = None
        log.info("Performing shutdown of kosyncsrv")
        return True

    def _kill_server(self, __, ___):
        self.stop()

    def stop(self):
        if self.wsgiserver:
            self.wsgiserver.close()
