#!/usr/bin/env python
# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

import os
import sys


# Add local path to sys.path, so we can import kosyncsrv
path = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, path)

from kosyncsrv.main import main


if __name__ == '__main__':
    main()
