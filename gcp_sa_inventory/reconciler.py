"""
Reconciliation of per-project outcomes into the record store
"""

import logging
from threading import Lock
from typing import Iterable, List, Optional, Set

from .models import ACCESS_NO, ACCESS_YES, ProjectAccess, ProjectOutcome
from .record_store import RecordStore

logger = logging.getLogger(__name__)


class Reconciler:
    """Single writer for the record store while project queries are in flight.

    Every outcome is applied under one lock, covering both the store and the
    access status list.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self.access_statuses: List[ProjectAccess] = []
        self.succeeded: Set[str] = set()
        self.seen_keys = set()
        self._lock = Lock()

    def apply(self, outcome: ProjectOutcome):
        project_id = outcome.project.project_id
        with self._lock:
            if not outcome.ok:
                self.access_statuses.append(ProjectAccess(project_id, ACCESS_NO))
                return

            self.access_statuses.append(ProjectAccess(project_id, ACCESS_YES))
            self.succeeded.add(project_id)
            for account in outcome.accounts:
                entry = self.store.upsert(project_id, account.get('email', ''), account.get('uniqueId', ''))
                self.seen_keys.add(entry.key)

    def reconcile(self, outcomes: Iterable[ProjectOutcome], progress=None) -> Set[str]:
        """Apply every outcome and return the ids of projects queried successfully"""
        for outcome in outcomes:
            self.apply(outcome)
            if progress is not None:
                progress.advance()
        return set(self.succeeded)

    def mark_deleted(self) -> int:
        """Mark entries missing from this run's successful projects as deleted.

        Must only run after reconcile() has drained every outcome.
        """
        changed = self.store.mark_deleted(self.succeeded, self.seen_keys)
        if changed:
            logger.info(f"Marked {changed} service accounts as deleted")
        return changed

    def access_for(self, project_id: str) -> Optional[str]:
        for status in self.access_statuses:
            if status.project_id == project_id:
                return status.has_access
        return None
