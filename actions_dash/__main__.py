"""Entry point: gh-actions-dash / python -m actions_dash"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .app import ActionsDashboard
from .config import DashConfig, load_config
from .git_utils import RepoDetectionError, RepoInfo, detect_repo
from .github import GitHubClient, GitHubError

logger = logging.getLogger("actions_dash")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gh-actions-dash",
        description="Terminal dashboard for GitHub Actions workflows, runs and logs",
    )
    parser.add_argument("-o", "--owner", help="repository owner (default: from git remote)")
    parser.add_argument("-r", "--repo", help="repository name (default: from git remote)")
    parser.add_argument("--repo-slug", metavar="OWNER/REPO", help="repository as owner/repo")
    parser.add_argument("--config", type=Path, help="path to config.yaml")
    parser.add_argument("--debug", action="store_true", help="write DEBUG messages to the log file")
    return parser.parse_args(argv)


def resolve_repo(args: argparse.Namespace) -> RepoInfo:
    """Owner/repo from --repo-slug, --owner/--repo, then the git remote."""
    if args.repo_slug:
        owner, sep, repo = args.repo_slug.partition("/")
        if not sep or not owner or not repo:
            raise RepoDetectionError(f"--repo-slug must look like OWNER/REPO, got {args.repo_slug!r}")
        return RepoInfo(owner, repo)
    if args.owner and args.repo:
        return RepoInfo(args.owner, args.repo)
    detected = detect_repo()
    return RepoInfo(args.owner or detected.owner, args.repo or detected.repo)


def setup_logging(config: DashConfig, debug: bool = False) -> None:
    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(config.log_file),
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: failed to load config: {e}", file=sys.stderr)
        return 1
    setup_logging(config, args.debug)

    try:
        info = resolve_repo(args)
    except RepoDetectionError as e:
        print(f"Error: could not determine the repository: {e}", file=sys.stderr)
        print("Run inside a GitHub clone or pass --owner/--repo", file=sys.stderr)
        return 1

    if not config.token:
        print("Error: no GitHub token found", file=sys.stderr)
        print("Set GH_TOKEN, add `token` to config.yaml or run `gh auth login`", file=sys.stderr)
        return 1

    client = GitHubClient(
        token=config.token,
        api_url=config.api_url,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
    )
    try:
        login = client.get_current_user()
    except GitHubError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if e.hint:
            print(e.hint, file=sys.stderr)
        return 1
    logger.info("Authenticated as %s, opening %s", login, info.slug)

    try:
        app = ActionsDashboard(client, info.owner, info.repo, config)
        app.run()
    except Exception:
        logger.exception("Dashboard crashed")
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
