"""
Bounded parallel fan-out of per-project directory queries
"""

import concurrent.futures
import logging
from typing import Callable, Iterator, List, Sequence

from .models import Project, ProjectOutcome

DEFAULT_MAX_WORKERS = 20

logger = logging.getLogger(__name__)


def query_project(project: Project, query: Callable[[Project], List[dict]]) -> ProjectOutcome:
    """Run one project query, turning any exception into a failed outcome"""
    try:
        accounts = query(project)
    except Exception as e:
        logger.debug(f"Error listing service accounts for project {project.project_id}: {e}")
        return ProjectOutcome(project=project, error=e)
    return ProjectOutcome(project=project, accounts=list(accounts or []))


def dispatch(projects: Sequence[Project], max_workers: int,
             query: Callable[[Project], List[dict]]) -> Iterator[ProjectOutcome]:
    """Query every project with at most ``max_workers`` queries in flight.

    Returns an iterator of exactly one ProjectOutcome per project, in
    completion order. The bound is checked on call. The iterator is exhausted only after every worker has reported.
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be a positive integer, got {max_workers}")
    return _dispatch(projects, max_workers, query)


def _dispatch(projects, max_workers, query):
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(query_project, project, query): project
            for project in projects
        }

        for future in concurrent.futures.as_completed(futures):
            yield future.result()
