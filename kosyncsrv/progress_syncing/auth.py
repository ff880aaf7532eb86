# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
Authentication gate for the protected sync endpoints.

KOReader sends the claimed username in ``x-auth-user`` and the key (its
md5 of the password) in ``x-auth-key`` on every request. A request is
authorized only if the username is a valid key field, the key is non-empty,
the user exists and the key matches. Callers never learn which of these
failed.
"""

import hmac
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .. import logger
from ..constants import KEY_DELIMITER, MAX_DOCUMENT_LENGTH
from .store import CredentialStore

log = logger.create()

# verified on every sync request inside the gevent loop
PASSWORD_HASH_METHOD = "pbkdf2:sha256:10000"

# Prefixes of werkzeug's "method$salt$hash" format
_HASH_METHODS = ("scrypt:", "pbkdf2:")


def is_valid_field(field) -> bool:
    """
    Check if a field is valid (a non-empty string).

    Args:
        field: Value to validate

    Returns:
        True if field is a non-empty string
    """
    return isinstance(field, str) and len(field) > 0


def is_valid_key_field(field, max_length: int = MAX_DOCUMENT_LENGTH) -> bool:
    """
    Check if a field is valid as a database key.

    Key fields must be non-empty strings without colons (reserved as the
    composite key delimiter) and within the column width.
    """
    return is_valid_field(field) and KEY_DELIMITER not in field and len(field) <= max_length


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


def is_password_hash(stored: str) -> bool:
    return stored.startswith(_HASH_METHODS) and stored.count("$") >= 2


def verify_password(stored: str, key: str) -> bool:
    """Compare a presented key with a stored password.

    Rows written by earlier releases hold the key in plaintext; those are
    compared in constant time.
    """
    if not stored:
        return False
    if is_password_hash(stored):
        return check_password_hash(stored, key)
    return hmac.compare_digest(stored.encode('utf-8'), key.encode('utf-8'))


class AuthenticationGate:

    def __init__(self, credentials: CredentialStore):
        self._credentials = credentials

    def authenticate(self, username, key) -> Optional[str]:
        """
        Returns the authenticated username, or None when the request is
        not authorized for any reason.

        Storage failures propagate to the caller.
        """
        if not is_valid_key_field(username) or not is_valid_field(key):
            return None
        credential = self._credentials.lookup_user(username)
        if credential is None:
            log.debug("authenticate: unknown user '%s'", username)
            return None
        if not verify_password(credential.password, key):
            log.debug("authenticate: key mismatch for user '%s'", username)
            return None
        return credential.username
