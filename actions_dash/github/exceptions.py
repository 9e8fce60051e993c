"""
GitHub client exceptions
"""

from enum import Enum

import requests


class ErrorKind(str, Enum):
    """Category of a failed API call, used to pick remediation text."""

    AUTH = "auth"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    UNKNOWN = "unknown"


class GitHubError(Exception):
    """Base exception for all GitHub client errors"""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        hint: str = "",
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.hint = hint
        self.status_code = status_code


class GitHubAPIError(GitHubError):
    """Raised when an API request fails with an HTTP error status"""


class GitHubNotFoundError(GitHubAPIError):
    """Raised when a repository or resource is not found (404)"""

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message, ErrorKind.NOT_FOUND, hint, status_code=404)


class GitHubAuthenticationError(GitHubAPIError):
    """Raised when the token is missing, invalid or expired (401)"""

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message, ErrorKind.AUTH, hint, status_code=401)


_NETWORK_MARKERS = ("connection", "timeout", "timed out", "network", "dns")


def _is_rate_limited(response: requests.Response) -> bool:
    if response.status_code == 429:
        return True
    return response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"


def categorize_error(exc: BaseException) -> GitHubError:
    """Map any exception raised while talking to GitHub onto a GitHubError.

    HTTP errors are classified by status code, transport errors by type,
    anything else by its message text.
    """
    if isinstance(exc, GitHubError):
        return exc

    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        response = exc.response
        status = response.status_code
        if status == 401:
            return GitHubAuthenticationError(
                "Authentication failed: the GitHub token is invalid or expired",
                hint="Run `gh auth login` or set GH_TOKEN to a valid token",
            )
        if _is_rate_limited(response):
            return GitHubAPIError(
                "GitHub API rate limit reached",
                ErrorKind.RATE_LIMIT,
                hint="Wait a moment before retrying",
                status_code=status,
            )
        if status == 403:
            return GitHubAPIError(
                "Permission denied: no access to this repository",
                ErrorKind.PERMISSION,
                hint="Check that the repository exists and that your token can read it",
                status_code=status,
            )
        if status == 404:
            return GitHubNotFoundError(
                "Repository or resource not found",
                hint="Check the owner and repository names",
            )
        return GitHubAPIError(
            f"GitHub API request failed with status {status}",
            ErrorKind.UNKNOWN,
            hint=str(exc),
            status_code=status,
        )

    if isinstance(exc, (requests.ConnectionError, requests.Timeout, TimeoutError)):
        return GitHubError(
            "Network error: cannot reach GitHub",
            ErrorKind.NETWORK,
            hint="Check your internet connection",
        )

    text = str(exc)
    lowered = text.lower()
    if "401" in text or "bad credentials" in lowered:
        return GitHubAuthenticationError(
            "Authentication failed: the GitHub token is invalid or expired",
            hint="Run `gh auth login` or set GH_TOKEN to a valid token",
        )
    if any(marker in lowered for marker in _NETWORK_MARKERS):
        return GitHubError(
            "Network error: cannot reach GitHub",
            ErrorKind.NETWORK,
            hint="Check your internet connection",
        )
    return GitHubError("An unexpected error occurred", ErrorKind.UNKNOWN, hint=text)
