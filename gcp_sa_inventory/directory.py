"""
gcloud-backed directory client

Lists projects and service accounts by shelling out to the gcloud CLI.
"""

import json
import logging
import subprocess
import time
from typing import Any, List, Optional

from .errors import DirectoryError
from .models import Project

logger = logging.getLogger(__name__)


class GcloudDirectoryClient:
    def __init__(self, gcloud_binary: str = 'gcloud', timeout: Optional[float] = None, runner=subprocess.run):
        self.gcloud_binary = gcloud_binary
        self.timeout = timeout
        self._run = runner

    def _run_gcloud(self, args: List[str]) -> Any:
        """Run a gcloud command and return its decoded JSON output"""
        command = [self.gcloud_binary] + args + ['--format=json']
        logger.debug(f"Executing: {' '.join(command)}")

        start = time.time()
        try:
            result = self._run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise DirectoryError(f"Timeout after {self.timeout}s: {' '.join(command)}") from e
        except OSError as e:
            raise DirectoryError(f"Could not run {self.gcloud_binary}: {e}") from e

        output = result.stdout or ''
        if result.returncode != 0:
            raise DirectoryError(f"{output.strip()}: exit status {result.returncode}", output=output)

        logger.debug(f"Completed in {time.time() - start:.2f}s (output: {len(output)} bytes)")

        try:
            return json.loads(output) if output.strip() else []
        except json.JSONDecodeError as e:
            raise DirectoryError(f"Failed to parse gcloud JSON output: {e}", output=output) from e

    def list_projects(self) -> List[Project]:
        data = self._run_gcloud(['projects', 'list'])
        try:
            return [Project(project_id=p['projectId'], name=p.get('name', '')) for p in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise DirectoryError(f"Unexpected project listing format: {e}") from e

    def list_accounts(self, project_id: str) -> List[dict]:
        """Return the service accounts of one project as {'email', 'uniqueId'} dicts"""
        data = self._run_gcloud(['iam', 'service-accounts', 'list', '--project', project_id])
        try:
            return [{'email': a.get('email', ''), 'uniqueId': a.get('uniqueId', '')} for a in data]
        except (TypeError, AttributeError) as e:
            raise DirectoryError(f"Unexpected service account listing format for {project_id}: {e}") from e
