"""
GCP Service Account Manager

Load mode queries every accessible GCP project for its service accounts and
merges them into service-accounts.csv. Analyze mode searches that file.

Usage:
    gcp-sa-inventory [options]

Options:
    -c, --concurrency N     Parallel project queries (default: 20)
    --mode {L,A}            Skip the mode prompt
    --project ID            Only process this project (repeatable)
    --records-file PATH     Record file (default: service-accounts.csv)
    --access-report PATH    Export per-project access status to CSV
"""

import logging
import sys
from typing import Tuple

import click

from .analysis import (
    bulk_subject_id_lookup,
    print_bulk_results,
    print_search_results,
    search_by_email,
    search_by_project_id,
    search_by_subject_id,
)
from .directory import GcloudDirectoryClient
from .dispatcher import DEFAULT_MAX_WORKERS
from .errors import DirectoryError, RecordStoreError
from .inventory import run_inventory, select_projects
from .record_store import RecordStore
from .reports import export_access_report, format_access_summary

# Default configuration
DEFAULT_CONFIG = {
    'max_workers': DEFAULT_MAX_WORKERS,
    'records_file': 'service-accounts.csv',
    'access_report': None,
    'gcloud_binary': 'gcloud',
    'command_timeout': None,
    'log_file': 'sa_inventory.log',
    'project_ids': [],
}

logger = logging.getLogger(__name__)


def setup_logging(log_file, verbose=False):
    """Setup logging configuration"""
    log_format = '%(asctime)s - %(levelname)s - %(message)s'
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=log_format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def load_mode(config, client=None):
    """Query all projects and merge their service accounts into the record file"""
    if client is None:
        client = GcloudDirectoryClient(config['gcloud_binary'], timeout=config['command_timeout'])

    try:
        projects = client.list_projects()
    except DirectoryError as e:
        click.echo(f"Error getting projects: {e}")
        logger.error(f"Project listing failed: {e}")
        sys.exit(1)

    projects = select_projects(projects, config['project_ids'])

    store = RecordStore(config['records_file']).load()
    reconciler = run_inventory(store, projects, client, max_workers=config['max_workers'])

    click.echo("\nProject access summary:")
    click.echo(format_access_summary(reconciler.access_statuses))

    try:
        store.save()
    except RecordStoreError as e:
        click.echo(f"Error writing CSV: {e.cause}")
        logger.error(str(e))
        sys.exit(1)

    if config['access_report']:
        try:
            export_access_report(reconciler.access_statuses, config['access_report'])
        except OSError as e:
            click.echo(f"Error writing access report: {e}")
            logger.error(f"Failed to write {config['access_report']}: {e}")
            sys.exit(1)

    click.echo("Operation completed successfully")
    click.echo(f" - Service accounts: {config['records_file']}")
    if config['access_report']:
        click.echo(f" - Project access: {config['access_report']}")


def _load_for_analysis(path):
    store = RecordStore(path)
    if not store.exists:
        click.echo("No existing data found - run load mode first")
        return store
    return store.load()


def analyze_mode(config):
    """Interactive search loop over the record file"""
    while True:
        click.echo("\nAnalysis Mode - Choose Action")
        click.echo("===============================")
        click.echo("[1] Search by Project ID")
        click.echo("[2] Search by Email")
        click.echo("[3] Search Single Subject ID")
        click.echo("[4] Bulk Subject ID Lookup")
        click.echo("[5] Exit program")

        try:
            choice = input("Your choice (1-5): ").strip()
        except EOFError:
            click.echo("\nExiting...")
            return

        if choice not in ['1', '2', '3', '4', '5']:
            click.echo("Invalid input, please try again")
            continue

        if choice == '5':
            click.echo("Exiting...")
            return

        entries = list(_load_for_analysis(config['records_file']))

        try:
            if choice == '1':
                project_id = input("Enter Project ID: ").strip()
                print_search_results(f"Service accounts for project {project_id}:",
                                     search_by_project_id(entries, project_id))
            elif choice == '2':
                fragment = input("Enter partial email: ").strip()
                print_search_results(f"Search results for emails containing '{fragment}':",
                                     search_by_email(entries, fragment),
                                     empty_message="No accounts found with that email fragment")
            elif choice == '3':
                subject_id = input("Enter Subject ID: ").strip()
                print_search_results(f"Search results for Subject ID {subject_id}:",
                                     search_by_subject_id(entries, subject_id))
            else:
                raw_ids = input("Enter comma-separated Subject IDs: ")
                found, missing = bulk_subject_id_lookup(entries, raw_ids)
                print_bulk_results(found, missing)

            input("\nPress Enter to continue...")
        except EOFError:
            click.echo("\nExiting...")
            return


@click.command()
@click.option('-c', '--concurrency', type=click.IntRange(min=1), default=DEFAULT_CONFIG['max_workers'],
              help='Set concurrency level.', show_default=True)
@click.option('--mode', type=click.Choice(['L', 'A'], case_sensitive=False),
              help='L to load service accounts, A to analyze existing data. Prompts when omitted.')
@click.option('--project', 'project_ids', multiple=True, help='Only process this project ID (repeatable).')
@click.option('--records-file', type=click.Path(dir_okay=False), default=DEFAULT_CONFIG['records_file'],
              help='Service account record file.', show_default=True)
@click.option('--access-report', type=click.Path(dir_okay=False, writable=True),
              help='Export per-project access status to this CSV file.')
@click.option('--timeout', type=float, help='Timeout in seconds for each gcloud command.')
@click.option('--gcloud', 'gcloud_binary', default=DEFAULT_CONFIG['gcloud_binary'],
              help='gcloud executable.', show_default=True)
@click.option('--log-file', type=click.Path(dir_okay=False), default=DEFAULT_CONFIG['log_file'],
              help='Log file path.', show_default=True)
@click.option('--verbose', is_flag=True, help='Enable debug logging.')
def main(concurrency: int, mode: str, project_ids: Tuple[str], records_file: str, access_report: str,
         timeout: float, gcloud_binary: str, log_file: str, verbose: bool):
    """
    Inventory GCP service accounts across projects and search the results
    """
    config = DEFAULT_CONFIG.copy()
    config.update({
        'max_workers': concurrency,
        'records_file': records_file,
        'access_report': access_report,
        'gcloud_binary': gcloud_binary,
        'command_timeout': timeout,
        'log_file': log_file,
        'project_ids': list(project_ids),
    })
    setup_logging(config['log_file'], verbose)

    click.echo("GCP Service Account Manager")
    click.echo("============================\n")

    if mode is None:
        click.echo("Choose mode:")
        click.echo("[L] Load service accounts")
        click.echo("[A] Analyze existing data")
        try:
            mode = input("Your choice (L/A): ").strip()
        except EOFError:
            mode = 'L'

    if mode.upper() == 'A':
        analyze_mode(config)
        return

    load_mode(config)
