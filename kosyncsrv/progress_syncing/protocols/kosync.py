# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
KOReader Sync Server HTTP endpoints

Protocol overview:
    - Content negotiation: every request must send
      ``Accept: application/vnd.koreader.v1+json``
    - Authentication: ``x-auth-user`` / ``x-auth-key`` headers
    - Endpoints:
        * GET  /healthcheck - Liveness probe
        * POST /users/create - Register a user
        * GET  /users/auth - Authenticate user
        * GET  /syncs/progress/<document> - Get reading progress
        * PUT  /syncs/progress - Update reading progress

Errors are returned as ``{"code": <int>, "message": <str>}`` with the HTTP
status of the error kind.

Based on the reference implementation from koreader-sync-server
Reference: https://github.com/koreader/koreader-sync-server
"""

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from flask_httpauth import HTTPTokenAuth
from sqlalchemy.exc import SQLAlchemyError

from ... import logger
from ...constants import ACCEPT_HEADER_VALUE, AUTH_KEY_HEADER, AUTH_USER_HEADER, MAX_HEADER_LENGTH
from ..auth import AuthenticationGate
from ..errors import KOSyncError, SyncError
from ..handler import KOSyncHandler

log = logger.create()

EXTENSION_NAME = 'kosync'

kosync = Blueprint('kosync', __name__)
# kept apart so registration can carry its own rate limit
registration = Blueprint('kosync_registration', __name__)

auth = HTTPTokenAuth(header=AUTH_KEY_HEADER)


def init_kosync(app, handler: KOSyncHandler, gate: AuthenticationGate, session=None):
    """Attach the protocol handler and authentication gate to ``app``."""
    app.extensions[EXTENSION_NAME] = {
        'handler': handler,
        'gate': gate,
        'session': session,
    }


def get_handler() -> KOSyncHandler:
    return current_app.extensions[EXTENSION_NAME]['handler']


def get_gate() -> AuthenticationGate:
    return current_app.extensions[EXTENSION_NAME]['gate']


def create_sync_response(data: Dict[str, Any], status_code: int = 200) -> tuple:
    """
    Create a standardized JSON sync response.

    Args:
        data: Response payload dictionary
        status_code: HTTP status code (default: 200)

    Returns:
        Tuple of (response, status_code) for Flask
    """
    return jsonify(data), status_code


def handle_sync_error(error: KOSyncError) -> tuple:
    """
    Turn a KOSyncError into the JSON error response of its kind.
    """
    if error.kind is SyncError.INTERNAL_ERROR:
        log.error("KOSync Error %d: %s", error.error_code, error)
    else:
        log.debug("KOSync Error %d: %s", error.error_code, error)
    return create_sync_response(error.kind.to_wire(), error.kind.status)


def handle_database_error(error: SQLAlchemyError) -> tuple:
    log.error_or_exception("Database error while handling %s %s: %s" % (request.method, request.path, error))
    return handle_sync_error(KOSyncError(SyncError.INTERNAL_ERROR, "Database error"))


def _is_valid_header_value(value: str) -> bool:
    if len(value) > MAX_HEADER_LENGTH:
        return False
    return all(ch.isprintable() for ch in value)


def check_request_headers():
    """
    Runs before every KOSync request: identity headers must be bindable
    and the Accept header must name the KOSync media type.
    """
    for name in (AUTH_USER_HEADER, AUTH_KEY_HEADER):
        value = request.headers.get(name)
        if value is not None and not _is_valid_header_value(value):
            raise KOSyncError(SyncError.INVALID_HEADER)
    if request.headers.get('Accept') != ACCEPT_HEADER_VALUE:
        raise KOSyncError(SyncError.INVALID_ACCEPT_FORMAT)


for _blueprint in (kosync, registration):
    _blueprint.before_request(check_request_headers)
    _blueprint.register_error_handler(KOSyncError, handle_sync_error)
    _blueprint.register_error_handler(SQLAlchemyError, handle_database_error)


@auth.verify_token
def verify_token(key):
    username = request.headers.get(AUTH_USER_HEADER)
    user = get_gate().authenticate(username, key)
    if user is None:
        log.warning('KOSync login failed for user "%s" IP-address: %s', username, request.remote_addr)
    return user


@auth.error_handler
def handle_unauthorized(status=401):
    return handle_sync_error(KOSyncError(SyncError.UNAUTHORIZED))


################################################################################
# API Endpoints
################################################################################

@kosync.route("/healthcheck", methods=["GET"])
def healthcheck():
    return create_sync_response({"state": "OK"})


@registration.route("/users/create", methods=["POST"])
def register():
    """
    Register a user (KOSync protocol).

    Request body:
        {"username": "alice", "password": "<key>"}

    Returns:
        201: {"username": "alice"}
        403: code 2002 if the username is taken, 2003 on missing fields
    """
    payload = request.get_json(force=True, silent=True)
    return create_sync_response(get_handler().register(payload), 201)


@kosync.route("/users/auth", methods=["GET"])
@auth.login_required
def auth_user():
    """
    Authenticate user endpoint (KOSync protocol).

    KOReader calls this as a ping with credentials while the sync account
    is being set up. It has no side effects.
    """
    return create_sync_response(get_handler().authorize())


@kosync.route("/syncs/progress/<document>", methods=["GET"])
@auth.login_required
def get_progress(document: str):
    """
    Get reading progress for a document (KOSync protocol).

    Response format:
        {
            "document": "abc123...",
            "progress": "location string",
            "percentage": 0.4567,
            "device": "KOReader",
            "device_id": "device123",
            "timestamp": 1699564800
        }

    or ``{}`` if the document was never synced.
    """
    return create_sync_response(get_handler().pull(auth.current_user(), document))


@kosync.route("/syncs/progress", methods=["PUT"])
@auth.login_required
def update_progress():
    """
    Update reading progress for a document (KOSync protocol).

    Request body:
        {
            "document": "abc123...",  # Required: Document identifier
            "progress": "location",   # Required: page number or xpointer
            "percentage": 0.4567,     # Optional, defaults to 0
            "device": "KOReader",     # Required: Device name
            "device_id": "device123"  # Optional: Device identifier
        }

    Response format:
        {"document": "abc123...", "timestamp": 1699564800}

    The timestamp is the server time of the write.
    """
    payload = request.get_json(force=True, silent=True)
    return create_sync_response(get_handler().push(auth.current_user(), payload))
