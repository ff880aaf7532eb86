# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
Progress Syncing Module

Reading progress synchronization for KOReader devices. It includes:

- Credential and position storage (one current position per user and document)
- The authentication gate guarding the protected operations
- The KOSync protocol handler (register, authorize, pull, push)

Architecture:
    models.py           - Document table and position value types
    errors.py           - Error kinds with HTTP status and wire code
    store.py            - CredentialStore and PositionStore
    auth.py             - AuthenticationGate and password helpers
    handler.py          - KOSyncHandler, push payload decoding
    protocols/          - HTTP bindings
        kosync.py       - Flask blueprints for the KOSync endpoints
"""

# NOTE: the blueprints are NOT imported here, import them from
# .protocols.kosync where needed
from .errors import SyncError, KOSyncError, UserExistsError
from .models import Document, Position, ProgressKind, ProgressUpdate, ProgressValue
from .store import Credential, CredentialStore, PositionStore
from .auth import AuthenticationGate
from .handler import KOSyncHandler, decode_progress_update

__all__ = [
    # Errors
    'SyncError',
    'KOSyncError',
    'UserExistsError',
    # Models and values
    'Document',
    'Position',
    'ProgressKind',
    'ProgressUpdate',
    'ProgressValue',
    # Stores
    'Credential',
    'CredentialStore',
    'PositionStore',
    # Protocol
    'AuthenticationGate',
    'KOSyncHandler',
    'decode_progress_update',
]
