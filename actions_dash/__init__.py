"""
gh-actions-dash - terminal dashboard for GitHub Actions.

Browse a repository's workflows, runs, jobs and logs from the terminal.

Example:
    $ gh-actions-dash --owner octocat --repo hello-world
    $ python -m actions_dash            # autodetect from the git remote
"""

__version__ = "0.3.0"
