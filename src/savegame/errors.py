from __future__ import annotations


class SaveGameError(Exception):
    """Base exception for save data errors."""


class MalformedRecordError(SaveGameError):
    """Raised when a record is shorter than the header its flags describe."""
