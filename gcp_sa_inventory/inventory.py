"""
Load-mode pipeline: query every project in parallel and merge the results
"""

import logging
from typing import List, Optional, Sequence

import click

from .dispatcher import DEFAULT_MAX_WORKERS, dispatch
from .models import ACCESS_NO, Project
from .progress import ProgressReporter
from .reconciler import Reconciler
from .record_store import RecordStore

logger = logging.getLogger(__name__)


def select_projects(projects: Sequence[Project], project_ids: Optional[Sequence[str]] = None) -> List[Project]:
    """Pick the projects to process; all of them unless ids are given"""
    if not project_ids:
        click.echo("\nProcessing all available projects...")
        return list(projects)

    wanted = set(project_ids)
    selected = [p for p in projects if p.project_id in wanted]
    unknown = sorted(wanted - {p.project_id for p in selected})
    for project_id in unknown:
        logger.warning(f"Project {project_id} was not returned by the project listing, skipping")

    click.echo(f"\nProcessing {len(selected)} selected projects...")
    return selected


def run_inventory(store: RecordStore, projects: Sequence[Project], client,
                  max_workers: int = DEFAULT_MAX_WORKERS, progress_file=None) -> Reconciler:
    """Query every project, reconcile the outcomes into ``store`` and mark deletions.

    The store is mutated in place and not saved.
    """
    click.echo(f"\n🚀 Processing {len(projects)} projects with {max_workers} workers")

    reconciler = Reconciler(store)
    outcomes = dispatch(projects, max_workers, lambda project: client.list_accounts(project.project_id))

    with ProgressReporter(len(projects), file=progress_file) as progress:
        reconciler.reconcile(outcomes, progress)

    reconciler.mark_deleted()

    # progress thread has finished its line by this point
    denied = sorted(s.project_id for s in reconciler.access_statuses if s.has_access == ACCESS_NO)
    if denied:
        logger.warning(f"Could not list service accounts for {len(denied)} projects: {', '.join(denied)}")

    failed = len(projects) - len(reconciler.succeeded)
    logger.info(f"Queried {len(projects)} projects: {len(reconciler.succeeded)} accessible, {failed} without access")
    return reconciler
