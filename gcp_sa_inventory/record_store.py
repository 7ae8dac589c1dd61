"""
Record store for service account entries

Holds one AccountEntry per (project id, email, subject id) key and persists
the whole collection to a four-column CSV file.
"""

import csv
import logging
import os
import shutil
import tempfile
from typing import Dict, Iterable, Iterator, Optional, Set, Tuple

from .errors import RecordStoreError
from .models import AccountEntry, STATUS_ACTIVE, STATUS_DELETED

CSV_HEADER = ['ProjectID', 'Email', 'SubjectID', 'Status']

logger = logging.getLogger(__name__)

Key = Tuple[str, str, str]


class RecordStore:
    def __init__(self, path: str = 'service-accounts.csv'):
        self.path = path
        self._entries: Dict[Key, AccountEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AccountEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, key) -> bool:
        return key in self._entries

    @property
    def exists(self) -> bool:
        return os.path.exists(self.path)

    def get(self, key: Key) -> Optional[AccountEntry]:
        return self._entries.get(key)

    def load(self) -> 'RecordStore':
        """Replace the in-memory entries with the contents of the record file.

        A missing file leaves the store empty. Rows with fewer than four
        columns, or that the csv module cannot parse, are skipped. Bytes that
        are not valid UTF-8 are replaced rather than failing the load.
        """
        self._entries = {}
        if not self.exists:
            logger.info(f"No record file at {self.path}, starting with an empty store")
            return self

        skipped = 0
        with open(self.path, 'r', newline='', encoding='utf-8', errors='replace') as csvfile:
            reader = csv.reader(csvfile)
            header_seen = False
            while True:
                try:
                    row = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    logger.debug(f"Unreadable row near line {reader.line_num} in {self.path}: {e}")
                    skipped += 1
                    continue
                if not header_seen:
                    header_seen = True
                    continue
                if len(row) < 4:
                    skipped += 1
                    continue
                entry = AccountEntry(project_id=row[0], email=row[1], subject_id=row[2], status=row[3])
                self._entries[entry.key] = entry

        if skipped:
            logger.debug(f"Skipped {skipped} malformed rows in {self.path}")
        logger.info(f"Loaded {len(self._entries)} service account entries from {self.path}")
        return self

    def save(self):
        """Rewrite the record file with every entry.

        Rows go to a temporary file in the same directory which then replaces
        the record file, so readers never see a partial file.
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix='.sa-records-', suffix='.csv', dir=directory)
            with os.fdopen(fd, 'w', newline='', encoding='utf-8') as csvfile:
                writer = csv.writer(csvfile)
                writer.writerow(CSV_HEADER)
                for entry in self._entries.values():
                    writer.writerow([entry.project_id, entry.email, entry.subject_id, entry.status])
            self._apply_mode(tmp_path)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise RecordStoreError(self.path, e) from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.info(f"Wrote {len(self._entries)} service account entries to {self.path}")

    def _apply_mode(self, tmp_path):
        """Give the new file the record file's mode, or the umask default if it is new"""
        if self.exists:
            shutil.copymode(self.path, tmp_path)
        else:
            umask = os.umask(0)
            os.umask(umask)
            os.chmod(tmp_path, 0o666 & ~umask)

    def upsert(self, project_id: str, email: str, subject_id: str) -> AccountEntry:
        """Record an account as observed now; existing entries become active again"""
        key = (project_id, email, subject_id)
        entry = self._entries.get(key)
        if entry is None:
            entry = AccountEntry(project_id=project_id, email=email, subject_id=subject_id)
            self._entries[key] = entry
        else:
            entry.status = STATUS_ACTIVE
        return entry

    def mark_deleted(self, succeeded_projects: Set[str], seen_keys: Iterable[Key]) -> int:
        """Mark entries of successfully queried projects that were not seen as deleted.

        Entries of projects outside ``succeeded_projects`` keep their status.
        Returns the number of entries whose status changed.
        """
        seen = set(seen_keys)
        changed = 0
        for key, entry in self._entries.items():
            if entry.project_id not in succeeded_projects or key in seen:
                continue
            if entry.status != STATUS_DELETED:
                entry.status = STATUS_DELETED
                changed += 1
        return changed
