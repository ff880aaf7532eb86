# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""Error kinds of the KOSync protocol with their HTTP status and wire code."""

import enum


class SyncError(enum.Enum):
    INVALID_HEADER = (400, 100, "Invalid Header")
    INVALID_ACCEPT_FORMAT = (412, 101, "Invalid Accept header format.")
    INTERNAL_ERROR = (500, 500, "Unknown server error.")
    UNAUTHORIZED = (401, 2001, "Unauthorized")
    ALREADY_REGISTERED = (403, 2002, "Username is already registered.")
    INVALID_REQUEST = (403, 2003, "Invalid Request")
    DOCUMENT_ID_MISSING = (403, 2004, "Field 'document' not provided.")

    def __init__(self, status, code, message):
        self.status = status
        self.code = code
        self.message = message

    @classmethod
    def from_code(cls, code):
        for kind in cls:
            if kind.code == code:
                return kind
        raise ValueError("Unknown KOSync error code: %r" % code)

    def to_wire(self):
        return {"code": self.code, "message": self.message}


class KOSyncError(Exception):
    """Raised by the protocol handler, carries the error kind reported to the client"""
    def __init__(self, kind: SyncError, detail: str = None):
        self.kind = kind
        self.detail = detail
        super().__init__(detail or kind.message)

    @property
    def error_code(self):
        return self.kind.code

    @property
    def message(self):
        return self.kind.message


class UserExistsError(Exception):
    """Raised by the credential store when the username is already taken"""
    def __init__(self, username):
        self.username = username
        super().__init__("User '%s' already exists" % username)
