"""Detect the GitHub repository of the current working directory."""

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path


class RepoDetectionError(Exception):
    """Raised when owner/repo cannot be derived from the git remote."""


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


_GITHUB_PATH = re.compile(r"github\.com[:/]+(?P<owner>[^/]+)/(?P<repo>[^/]+)")


def run_git(args: list[str], cwd: Path | str | None = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run a git command.

    Args:
        args: Git command arguments (without 'git')
        cwd: Working directory for the command
        check: Raise exception on non-zero exit

    Returns:
        CompletedProcess instance
    """
    cmd = ["git"] + args
    return subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        check=check,
        timeout=10,
    )


def parse_remote_url(url: str) -> RepoInfo:
    """Extract owner and repository from a GitHub remote URL.

    Accepts HTTPS (``https://github.com/o/r.git``), SCP-style SSH
    (``git@github.com:o/r.git``) and ``ssh://`` URLs.
    """
    cleaned = url.strip()
    if cleaned.endswith(".git"):
        cleaned = cleaned[:-4]
    match = _GITHUB_PATH.search(cleaned.rstrip("/"))
    if not match:
        raise RepoDetectionError(f"unsupported remote URL format: {url}")
    return RepoInfo(owner=match.group("owner"), repo=match.group("repo"))


def find_git_dir(start: Path | None = None) -> Path:
    """Walk up from ``start`` (default: cwd) to the nearest ``.git`` directory."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / ".git"
        if candidate.is_dir():
            return candidate
        if current == current.parent:
            raise RepoDetectionError(".git directory not found")
        current = current.parent


def read_origin_from_config(git_dir: Path) -> str:
    """Return the ``url`` of ``[remote "origin"]`` in ``.git/config``."""
    config_path = git_dir / "config"
    try:
        lines = config_path.read_text().splitlines()
    except OSError as exc:
        raise RepoDetectionError(f"failed to read git config: {exc}") from exc

    in_origin = False
    for raw in lines:
        line = raw.strip()
        if line.startswith("["):
            in_origin = line.startswith('[remote "origin"]')
            continue
        if in_origin and line.startswith("url"):
            _, _, value = line.partition("=")
            return value.strip()
    raise RepoDetectionError("no remote origin found in git config")


def detect_repo(cwd: Path | None = None) -> RepoInfo:
    """Detect owner/repo from the ``origin`` remote of the enclosing repository."""
    git_dir = find_git_dir(cwd)
    try:
        result = run_git(["remote", "get-url", "origin"], cwd=git_dir.parent)
        url = result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        url = read_origin_from_config(git_dir)
    return parse_remote_url(url)
