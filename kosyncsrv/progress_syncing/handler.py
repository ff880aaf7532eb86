# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
KOSync protocol handler.

Implements register, authorize, pull and push on top of the credential and
position stores. The handler is transport agnostic: it takes decoded JSON
values and returns response dictionaries, raising KOSyncError for every
failure the client should see.
"""

import math
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError

from .. import logger
from ..constants import MAX_DEVICE_ID_LENGTH, MAX_DEVICE_LENGTH, MAX_PROGRESS_LENGTH
from .auth import hash_password, is_valid_field, is_valid_key_field
from .errors import KOSyncError, SyncError, UserExistsError
from .models import ProgressUpdate, ProgressValue
from .store import CredentialStore, PositionStore

log = logger.create()

# Field names (constants for API contract)
DOCUMENT_FIELD = "document"
PROGRESS_FIELD = "progress"
PERCENTAGE_FIELD = "percentage"
DEVICE_FIELD = "device"
DEVICE_ID_FIELD = "device_id"
TIMESTAMP_FIELD = "timestamp"


def _optional(payload: Dict[str, Any], field: str, types, default):
    value = payload.get(field)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, types):
        raise KOSyncError(SyncError.INVALID_REQUEST, "Field '%s' has the wrong type" % field)
    return value


def _percentage(payload: Dict[str, Any]) -> float:
    raw = _optional(payload, PERCENTAGE_FIELD, (int, float), 0.0)
    try:
        percentage = float(raw)
    except OverflowError:
        raise KOSyncError(SyncError.INVALID_REQUEST, "Field 'percentage' is out of range")
    # inf and nan have no JSON encoding
    if not math.isfinite(percentage):
        raise KOSyncError(SyncError.INVALID_REQUEST, "Field 'percentage' is out of range")
    return percentage


def decode_progress_update(payload: Any) -> ProgressUpdate:
    """
    Validate a push body and turn it into a ProgressUpdate.

    Checks run in order and stop at the first failure: JSON types, then the
    document id, then the required progress and device fields, then lengths.
    """
    if not isinstance(payload, dict):
        raise KOSyncError(SyncError.INVALID_REQUEST, "Request body is not a JSON object")

    document = _optional(payload, DOCUMENT_FIELD, str, "")
    device = _optional(payload, DEVICE_FIELD, str, "")
    device_id = _optional(payload, DEVICE_ID_FIELD, str, "")
    percentage = _percentage(payload)
    # accepted for compatibility, the server clock is authoritative
    _optional(payload, TIMESTAMP_FIELD, int, None)

    raw_progress = payload.get(PROGRESS_FIELD)
    progress = None
    if raw_progress is not None:
        try:
            progress = ProgressValue.from_wire(raw_progress)
        except ValueError as e:
            raise KOSyncError(SyncError.INVALID_REQUEST, str(e))

    if not is_valid_key_field(document):
        raise KOSyncError(SyncError.DOCUMENT_ID_MISSING)

    if progress is None or not is_valid_field(progress.text) or not is_valid_field(device):
        raise KOSyncError(SyncError.INVALID_REQUEST, "Missing required fields")

    if len(progress.text) > MAX_PROGRESS_LENGTH:
        raise KOSyncError(SyncError.INVALID_REQUEST, "Invalid progress field")
    if len(device) > MAX_DEVICE_LENGTH:
        raise KOSyncError(SyncError.INVALID_REQUEST, "Invalid device field")
    if len(device_id) > MAX_DEVICE_ID_LENGTH:
        raise KOSyncError(SyncError.INVALID_REQUEST, "Invalid device_id field")

    return ProgressUpdate(
        document=document,
        progress=progress,
        percentage=percentage,
        device=device,
        device_id=device_id,
    )


class KOSyncHandler:

    def __init__(self, credentials: CredentialStore, positions: PositionStore):
        self.credentials = credentials
        self.positions = positions

    def register(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise KOSyncError(SyncError.INVALID_REQUEST, "Request body is not a JSON object")
        username = payload.get("username")
        password = payload.get("password")
        if not is_valid_field(username) or not is_valid_field(password):
            raise KOSyncError(SyncError.INVALID_REQUEST, "Missing username or password")

        try:
            self.credentials.register_user(username, hash_password(password))
        except UserExistsError:
            raise KOSyncError(SyncError.ALREADY_REGISTERED)
        except SQLAlchemyError as e:
            log.error("register: Database error: %s", e)
            raise KOSyncError(SyncError.INTERNAL_ERROR, "Database error")
        return {"username": username}

    def authorize(self) -> Dict[str, Any]:
        return {"authorized": "OK"}

    def pull(self, username: str, document: str) -> Dict[str, Any]:
        """
        Latest stored position for (username, document).

        An empty dict means nothing was pushed for the document yet; that is
        a normal answer, not an error.
        """
        if not is_valid_key_field(document):
            raise KOSyncError(SyncError.DOCUMENT_ID_MISSING)
        try:
            position = self.positions.get_position(username, document)
        except SQLAlchemyError as e:
            log.error("pull: Database error: %s", e)
            raise KOSyncError(SyncError.INTERNAL_ERROR, "Database error")

        if position is None:
            log.debug("No progress found for user '%s', document %s", username, document)
            return {}
        return position.to_wire()

    def push(self, username: str, payload: Any) -> Dict[str, Any]:
        update = decode_progress_update(payload)
        try:
            timestamp = self.positions.upsert_position(username, update)
        except SQLAlchemyError as e:
            log.error("push: Database error: %s", e)
            raise KOSyncError(SyncError.INTERNAL_ERROR, "Failed to save sync progress")

        log.info("Saved progress: user=%s, document=%s, percentage=%s, device=%s",
                 username, update.document, update.percentage, update.device)
        return {"timestamp": timestamp, "document": update.document}
