"""
Data types shared across the inventory pipeline
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

STATUS_ACTIVE = 'active'
STATUS_DELETED = 'deleted'

ACCESS_YES = 'yes'
ACCESS_NO = 'no'


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str = ''


@dataclass
class AccountEntry:
    project_id: str
    email: str
    subject_id: str
    status: str = STATUS_ACTIVE

    @property
    def key(self) -> Tuple[str, str, str]:
        """Identity key: (project id, email, subject id)"""
        return (self.project_id, self.email, self.subject_id)


@dataclass
class ProjectOutcome:
    """Result of querying one project: accounts on success, error on failure"""
    project: Project
    accounts: List[dict] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ProjectAccess:
    project_id: str
    has_access: str
