# -*- coding: utf-8 -*-
# kosyncsrv – KOReader reading progress sync server
# Copyright (C) 2024-2025 kosyncsrv contributors
# SPDX-License-Identifier: GPL-3.0-or-later
# See CONTRIBUTORS for full list of authors.

"""
Database model and value types for reading positions.

One ``document`` row per (username, documentid) holds the latest position a
device pushed for that document. Rows are overwritten on every push; there is
no history.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy import Column, Float, Index, Integer, String

from ..ub import Base


class Document(Base):
    __tablename__ = 'document'
    __table_args__ = (Index('username_documentid', 'username', 'documentid', unique=True),)

    username = Column(String(255), primary_key=True)
    documentid = Column(String(255), primary_key=True)
    percentage = Column(Float)
    progress = Column(String(255))
    device = Column(String(255))
    device_id = Column(String(255))
    timestamp = Column(Integer)

    def __repr__(self):
        return f"<Document(username={self.username}, documentid={self.documentid}, timestamp={self.timestamp})>"


class ProgressKind(enum.Enum):
    INTEGER = "integer"
    TEXT = "text"


@dataclass(frozen=True)
class ProgressValue:
    """
    Reading location as sent by the client.

    KOReader sends a page number for paginated documents and an xpointer
    string for reflowable ones. Both are kept as text; an integer page is
    rendered with ``str()`` so 42 becomes "42".
    """
    kind: ProgressKind
    text: str

    @classmethod
    def from_wire(cls, raw: Any) -> "ProgressValue":
        # bool is an int subclass but never a valid page
        if isinstance(raw, bool):
            raise ValueError("progress must be an integer or a string")
        if isinstance(raw, int):
            return cls(ProgressKind.INTEGER, str(raw))
        if isinstance(raw, str):
            return cls(ProgressKind.TEXT, raw)
        raise ValueError("progress must be an integer or a string")

    def __str__(self):
        return self.text


@dataclass(frozen=True)
class ProgressUpdate:
    """A validated push, ready for the position store."""
    document: str
    progress: ProgressValue
    percentage: float
    device: str
    device_id: str


@dataclass(frozen=True)
class Position:
    username: str
    document: str
    progress: str
    percentage: float
    device: str
    device_id: str
    timestamp: int

    @classmethod
    def from_row(cls, row: Document) -> "Position":
        return cls(
            username=row.username,
            document=row.documentid,
            progress=row.progress or "",
            percentage=row.percentage if row.percentage is not None else 0.0,
            device=row.device or "",
            device_id=row.device_id or "",
            timestamp=row.timestamp or 0,
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "document": self.document,
            "progress": self.progress,
            "percentage": self.percentage,
            "device": self.device,
            "device_id": self.device_id,
            "timestamp": self.timestamp,
        }
