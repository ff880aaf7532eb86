# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
Sync Protocols Module

HTTP bindings of the reading progress sync protocols.
Currently supports KOSync for KOReader devices.
"""

from .kosync import kosync, registration, init_kosync

__all__ = [
    'kosync',
    'registration',
    'init_kosync',
]
