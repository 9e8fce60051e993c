"""
GitHub API collaborator for the dashboard.

Example:
    >>> from actions_dash.github import GitHubClient
    >>>
    >>> client = GitHubClient(token='ghp_...')
    >>> workflows, total = client.list_workflows('octocat', 'hello-world')
"""

from .client import GitHubClient
from .exceptions import (
    ErrorKind,
    GitHubError,
    GitHubAPIError,
    GitHubNotFoundError,
    GitHubAuthenticationError,
    categorize_error,
)

__all__ = [
    "GitHubClient",
    "ErrorKind",
    "GitHubError",
    "GitHubAPIError",
    "GitHubNotFoundError",
    "GitHubAuthenticationError",
    "categorize_error",
]
