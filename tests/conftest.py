"""
Shared fixtures for the inventory tests
"""

import csv
import threading

import pytest

from gcp_sa_inventory.models import Project


class FakeDirectoryClient:
    """In-memory directory: project id -> list of accounts, or an exception to raise"""

    def __init__(self, accounts_by_project, project_error=None):
        self.accounts_by_project = accounts_by_project
        self.project_error = project_error
        self.calls = []
        self._lock = threading.Lock()

    def list_projects(self):
        if self.project_error:
            raise self.project_error
        return [Project(project_id=pid, name=pid.upper()) for pid in self.accounts_by_project]

    def list_accounts(self, project_id):
        with self._lock:
            self.calls.append(project_id)
        result = self.accounts_by_project[project_id]
        if isinstance(result, Exception):
            raise result
        return [{'email': email, 'uniqueId': subject_id} for email, subject_id in result]


@pytest.fixture
def records_file(tmp_path):
    return str(tmp_path / 'service-accounts.csv')


@pytest.fixture
def write_records(records_file):
    def _write(rows, header=True):
        with open(records_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            if header:
                writer.writerow(['ProjectID', 'Email', 'SubjectID', 'Status'])
            writer.writerows(rows)
        return records_file
    return _write


@pytest.fixture
def make_client():
    return FakeDirectoryClient

