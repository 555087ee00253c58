"""
Control storage engine.

This module provides persistent storage for NIST CSF control records in a
single SQLite table, plus the canonical Control model used everywhere else.

Features:
    - One canonical schema; legacy field aliases migrated on the way in
    - All-or-nothing bulk insert and replace
    - Connection-per-operation, transaction safety for bulk writes

Storage Structure:
    data/
        controls.db                         # SQLite database

Usage:
    from csftracker.storage import ControlStore

    store = ControlStore()
    store.insert_many(controls)
    controls = store.get_all()

The cached workspace lives in csftracker.storage.workspace.
"""

from csftracker.storage.control_store import (
    ControlNotFoundError,
    ControlStore,
    StorageError,
)
from csftracker.storage.models import (
    Control,
    ControlValidationError,
    MeetsCriteria,
    Priority,
    RemediationStatus,
)

__all__ = [
    # Main store class
    "ControlStore",
    # Data models
    "Control",
    "Priority",
    "MeetsCriteria",
    "RemediationStatus",
    # Exceptions
    "StorageError",
    "ControlNotFoundError",
    "ControlValidationError",
]
