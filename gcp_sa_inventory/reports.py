"""
Access status summary and export
"""

import logging
from typing import List

import pandas as pd
from tabulate import tabulate

from .models import ACCESS_NO, ACCESS_YES, ProjectAccess

logger = logging.getLogger(__name__)


def access_dataframe(statuses: List[ProjectAccess]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{'ProjectID': s.project_id, 'HasAccess': s.has_access} for s in statuses],
        columns=['ProjectID', 'HasAccess']
    )
    return df.sort_values('ProjectID', kind='stable').reset_index(drop=True)


def format_access_summary(statuses: List[ProjectAccess]) -> str:
    """Render the per-project access table followed by yes/no totals"""
    output = []
    df = access_dataframe(statuses)
    if not df.empty:
        output.append(tabulate(df, headers='keys', tablefmt='pretty', showindex=False))

    with_access = sum(1 for s in statuses if s.has_access == ACCESS_YES)
    without_access = sum(1 for s in statuses if s.has_access == ACCESS_NO)
    output.append(f"Projects with access: {with_access}")
    output.append(f"Projects without access: {without_access}")
    return "\n".join(output)


def export_access_report(statuses: List[ProjectAccess], filename: str):
    df = access_dataframe(statuses)
    df.to_csv(filename, index=False)
    logger.info(f"Access status for {len(df)} projects exported to {filename}")
