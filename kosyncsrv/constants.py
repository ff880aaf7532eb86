# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

import os


STABLE_VERSION = '1.2.0'

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), os.pardir))

DEFAULT_DB_FILE = 'syncdata.db'
DEFAULT_HOST = '0.0.0.0'
DEFAULT_PORT = 8080
DEFAULT_REGISTER_LIMIT = '20/hour'

# Content negotiation marker sent by KOReader's sync plugin
ACCEPT_HEADER_VALUE = 'application/vnd.koreader.v1+json'

AUTH_USER_HEADER = 'x-auth-user'
AUTH_KEY_HEADER = 'x-auth-key'

# Column widths of the sync schema
MAX_HEADER_LENGTH = 255
MAX_DOCUMENT_LENGTH = 255
MAX_PROGRESS_LENGTH = 255
MAX_DEVICE_LENGTH = 100
MAX_DEVICE_ID_LENGTH = 100

# Reserved, document ids are used as part of composite keys
KEY_DELIMITER = ':'
