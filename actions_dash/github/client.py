"""
GitHub Actions client
REST client for the subset of the GitHub API the dashboard reads
"""

import base64
import io
import logging
import time
import zipfile
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from ..models import Job, Workflow, WorkflowRun
from ..utils import format_duration, format_timestamp
from .exceptions import GitHubError, categorize_error

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://api.github.com'
API_VERSION = '2022-11-28'

RETRYABLE_STATUS_CODES = (502, 503, 504)

STATUS_ICONS = {
    'success': '✅',
    'failure': '❌',
    'cancelled': '⏹️',
    'skipped': '⏭️',
}


def _is_retryable(exc: Exception) -> bool:
    """Transport failures and gateway errors are worth another attempt."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


def _status_icon(status: str, conclusion: Optional[str]) -> str:
    if status == 'completed':
        return STATUS_ICONS.get(conclusion or '', '○')
    if status == 'in_progress':
        return '🔄'
    return '○'


class GitHubClient:
    """
    GitHub Actions API client

    Usage:
        client = GitHubClient(token='ghp_...')
        runs, total = client.list_all_runs('octocat', 'hello-world', page=1, per_page=50)

    Every public method raises GitHubError (already categorized) on failure.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: int = 30,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self.session = requests.Session()
        self.session.headers['Accept'] = 'application/vnd.github+json'
        self.session.headers['X-GitHub-Api-Version'] = API_VERSION

        if token:
            self.session.headers['Authorization'] = f'Bearer {token}'

    def _send(self, method: str, url: str, params: Optional[Dict] = None) -> requests.Response:
        """Send one request, retrying retryable failures with exponential backoff."""
        attempt = 0
        while True:
            try:
                response = self.session.request(method, url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response
            except requests.RequestException as exc:
                if attempt >= self.max_retries or not _is_retryable(exc):
                    raise
                delay = min(self.initial_delay * (2 ** attempt), self.max_delay)
                logger.debug('Retrying %s %s in %.1fs after %s', method, url, delay, exc)
                self._sleep(delay)
                attempt += 1

    def _request(self, method: str, path: str, params: Optional[Dict] = None) -> Any:
        """Make HTTP request to API and decode the JSON body"""
        url = f'{self.api_url}/{path.lstrip("/")}'
        try:
            response = self._send(method, url, params=params)
        except requests.RequestException as exc:
            raise categorize_error(exc) from exc

        if response.status_code == 204:
            return None

        try:
            return response.json()
        except ValueError:
            return response.text

    def get_current_user(self) -> str:
        """Return the login of the authenticated user."""
        data = self._request('GET', '/user')
        return data.get('login', '')

    def list_workflows(
        self, owner: str, repo: str, page: int = 1, per_page: int = 100
    ) -> Tuple[List[Workflow], int]:
        """List one page of workflows with the repository's total count."""
        data = self._request(
            'GET',
            f'/repos/{owner}/{repo}/actions/workflows',
            params={'page': page, 'per_page': per_page},
        )
        workflows = [Workflow.from_dict(w) for w in data.get('workflows', [])]
        return workflows, data.get('total_count', len(workflows))

    def list_runs_for_workflow(self, owner: str, repo: str, workflow_id: int) -> List[WorkflowRun]:
        """List the most recent runs of a single workflow."""
        data = self._request('GET', f'/repos/{owner}/{repo}/actions/workflows/{workflow_id}/runs')
        return [WorkflowRun.from_dict(r) for r in data.get('workflow_runs', [])]

    def list_all_runs(
        self, owner: str, repo: str, page: int = 1, per_page: int = 100
    ) -> Tuple[List[WorkflowRun], int]:
        """List one page of runs across all workflows, newest first."""
        data = self._request(
            'GET',
            f'/repos/{owner}/{repo}/actions/runs',
            params={'page': page, 'per_page': per_page},
        )
        runs = [WorkflowRun.from_dict(r) for r in data.get('workflow_runs', [])]
        return runs, data.get('total_count', len(runs))

    def get_jobs(self, owner: str, repo: str, run_id: int) -> List[Job]:
        """List the jobs (with steps) of a run."""
        data = self._request('GET', f'/repos/{owner}/{repo}/actions/runs/{run_id}/jobs')
        return [Job.from_dict(j) for j in data.get('jobs', [])]

    def get_logs(self, owner: str, repo: str, run_id: int) -> str:
        """Return the run's logs as text.

        Downloads the log archive. When the archive is unavailable (expired,
        run still in progress, missing permission) a job/step summary is
        returned instead, prefixed with the reason.
        """
        try:
            return self._download_logs(owner, repo, run_id)
        except (requests.RequestException, zipfile.BadZipFile) as exc:
            logger.warning('Log download for run %s failed: %s', run_id, exc)
            reason = str(exc)

        summary = self._job_step_summary(owner, repo, run_id)
        lines = [
            '⚠️  Log download failed, showing job and step information instead.',
            f'📋 Reason: {reason}',
            '',
            '💡 Open the run in the browser to see the full logs:',
            f'🔗 https://github.com/{owner}/{repo}/actions/runs/{run_id}',
            '',
            '=' * 61,
            '',
        ]
        return '\n'.join(lines) + '\n' + summary

    def _download_logs(self, owner: str, repo: str, run_id: int) -> str:
        # The endpoint answers with a redirect to blob storage; requests drops
        # the Authorization header when following it to another host.
        url = f'{self.api_url}/repos/{owner}/{repo}/actions/runs/{run_id}/logs'
        response = self._send('GET', url)
        return extract_logs_from_zip(response.content)

    def _job_step_summary(self, owner: str, repo: str, run_id: int) -> str:
        jobs = self.get_jobs(owner, repo, run_id)
        if not jobs:
            return (
                '📋 This run has no job information.\n'
                '💡 If the run is still in progress, check again once it finishes.'
            )

        out = [f'📊 Jobs and steps ({len(jobs)} jobs)', '']
        for i, job in enumerate(jobs, start=1):
            out.append(f'=== {_status_icon(job.status, job.conclusion)} Job {i}: {job.name} ===')
            status = f'📋 Status: {job.status}'
            if job.conclusion:
                status += f' ({job.conclusion})'
            out.append(status)
            if job.started_at:
                out.append(f'⏰ Started: {format_timestamp(job.started_at)}')
            if job.completed_at:
                out.append(f'🏁 Completed: {format_timestamp(job.completed_at)}')
                if job.duration is not None:
                    out.append(f'⏱️  Duration: {format_duration(job.duration)}')
            out.append('')

            if job.steps:
                out.append(f'📋 Steps ({len(job.steps)}):')
                for j, step in enumerate(job.steps, start=1):
                    line = f'  {j}. {_status_icon(step.status, step.conclusion)} {step.name}'
                    if step.status:
                        line += f' ({step.status}'
                        if step.conclusion:
                            line += f'/{step.conclusion}'
                        line += ')'
                    out.append(line)
                    if step.duration is not None:
                        out.append(f'     ⏱️  Duration: {format_duration(step.duration)}')
            else:
                out.append('📋 No steps information available')
            out.append('')
        return '\n'.join(out)

    def get_file_at_ref(self, owner: str, repo: str, path: str, ref: str) -> str:
        """Return a repository file's text at a commit, branch or tag."""
        data = self._request(
            'GET',
            f'/repos/{owner}/{repo}/contents/{path.lstrip("/")}',
            params={'ref': ref},
        )
        if not isinstance(data, dict) or 'content' not in data:
            raise GitHubError(f'{path} is not a file')
        if data.get('encoding', 'base64') != 'base64':
            return data['content']
        return base64.b64decode(data['content']).decode('utf-8', errors='replace')


def extract_logs_from_zip(payload: bytes) -> str:
    """Concatenate every file in a log archive under a ``=== name ===`` header."""
    parts = []
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            try:
                content = archive.read(info).decode('utf-8', errors='replace')
            except (OSError, zipfile.BadZipFile) as exc:
                logger.debug('Skipping unreadable log entry %s: %s', info.filename, exc)
                continue
            parts.append(f'=== {info.filename} ===\n{content}\n\n')
    return ''.join(parts)
