"""
In-memory control workspace bound to a single ControlStore.

The workspace holds the full record set that aggregation and filtering run
over. It is refreshed with an explicit pull after every mutation, so the
cache always mirrors the store and is never updated optimistically.

Store failures are caught here, logged and kept in ``error`` so the caller
can show them; mutations then report ``False``. Nothing is retried.

Usage:
    from csftracker.storage import ControlStore
    from csftracker.storage.workspace import ControlWorkspace

    workspace = ControlWorkspace(ControlStore())
    workspace.refresh()
    if not workspace.add_controls(imported):
        print(workspace.error)
    stats = workspace.stats()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from csftracker.analysis.aggregator import DashboardStats, compute_dashboard_stats
from csftracker.analysis.filters import FilterCriteria, filter_controls
from csftracker.storage.control_store import ControlStore, StorageError
from csftracker.storage.models import Control

logger = logging.getLogger(__name__)


class ControlWorkspace:
    """
    Cached view of the stored controls.

    Attributes:
        store: Backing control store.
        controls: Controls as of the last successful refresh.
        error: Message of the last store failure, None if the last
            operation succeeded.
    """

    def __init__(self, store: ControlStore) -> None:
        self.store = store
        self.controls: list[Control] = []
        self.error: str | None = None

    def refresh(self) -> bool:
        """
        Reload every control from the store.

        Returns:
            True on success. On failure the previous cache is kept.
        """
        try:
            self.controls = self.store.get_all()
        except StorageError as e:
            return self._fail("refresh controls", e)

        self.error = None
        logger.debug(f"Workspace refreshed with {len(self.controls)} controls")
        return True

    def add_controls(self, controls: Iterable[Control]) -> bool:
        """Insert controls and refresh."""
        try:
            self.store.insert_many(controls)
        except StorageError as e:
            return self._fail("add controls", e)
        return self.refresh()

    def replace_controls(self, controls: Iterable[Control]) -> bool:
        """Replace the whole record set and refresh."""
        try:
            self.store.replace_all(controls)
        except StorageError as e:
            return self._fail("replace controls", e)
        return self.refresh()

    def update_control(self, control: Control) -> bool:
        """Write a full control record and refresh."""
        try:
            self.store.update_one(control)
        except StorageError as e:
            return self._fail(f"update control {control.id}", e)
        return self.refresh()

    def delete_control(self, control_id: int) -> bool:
        """Delete one control and refresh."""
        try:
            self.store.delete_one(control_id)
        except StorageError as e:
            return self._fail(f"delete control {control_id}", e)
        return self.refresh()

    def clear(self) -> bool:
        """Delete every control and refresh."""
        try:
            self.store.delete_all()
        except StorageError as e:
            return self._fail("clear controls", e)
        return self.refresh()

    def stats(self, ranking_limit: int = 5) -> DashboardStats:
        """Dashboard statistics over the cached controls."""
        return compute_dashboard_stats(self.controls, ranking_limit=ranking_limit)

    def filtered(self, criteria: FilterCriteria) -> list[Control]:
        """Cached controls matching all of the given criteria."""
        return filter_controls(self.controls, criteria)

    def _fail(self, action: str, error: StorageError) -> bool:
        self.error = f"Failed to {action}: {error}"
        logger.error(self.error)
        return False
