"""
Offline lookups over a loaded record store
"""

from typing import Iterable, List, Tuple

import click
from tabulate import tabulate

from .models import AccountEntry

TABLE_HEADERS = ['Project ID', 'Email', 'Subject ID', 'Status']


def search_by_project_id(entries: Iterable[AccountEntry], project_id: str) -> List[AccountEntry]:
    return [e for e in entries if e.project_id == project_id]


def search_by_email(entries: Iterable[AccountEntry], fragment: str) -> List[AccountEntry]:
    """Case-insensitive substring match on email"""
    term = fragment.lower()
    return [e for e in entries if term in e.email.lower()]


def search_by_subject_id(entries: Iterable[AccountEntry], subject_id: str) -> List[AccountEntry]:
    return [e for e in entries if e.subject_id == subject_id]


def bulk_subject_id_lookup(entries: Iterable[AccountEntry], raw_ids: str) -> Tuple[List[AccountEntry], List[str]]:
    """Look up a comma-separated list of subject ids.

    Returns the first matching entry for every id that was found, and the ids
    that matched nothing. Blank ids are ignored.
    """
    by_subject = {}
    for entry in entries:
        by_subject.setdefault(entry.subject_id, entry)

    found = []
    missing = []
    for raw_id in raw_ids.split(','):
        subject_id = raw_id.strip()
        if not subject_id:
            continue
        if subject_id in by_subject:
            found.append(by_subject[subject_id])
        else:
            missing.append(subject_id)
    return found, missing


def format_accounts(entries: List[AccountEntry]) -> str:
    rows = [[e.project_id, e.email, e.subject_id, e.status] for e in entries]
    return tabulate(rows, headers=TABLE_HEADERS, tablefmt='pretty')


def print_search_results(title: str, entries: List[AccountEntry], empty_message: str = "No matching accounts found"):
    click.echo(f"\n{title}")
    click.echo("-" * 50)
    if not entries:
        click.echo(empty_message)
        return
    click.echo(format_accounts(entries))


def print_bulk_results(found: List[AccountEntry], missing: List[str]):
    click.echo("\nBulk Subject ID Analysis")
    click.echo("========================")

    click.echo(f"✅ Found {len(found)} accounts:")
    if found:
        rows = [[e.subject_id, e.email, e.project_id, e.status] for e in found]
        click.echo(tabulate(rows, headers=['Subject ID', 'Email', 'Project ID', 'Status'], tablefmt='pretty'))

    click.echo(f"\n❌ Missing {len(missing)} subject IDs:")
    for subject_id in missing:
        click.echo(f" - {subject_id}")
