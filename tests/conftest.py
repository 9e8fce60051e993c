"""Shared test fixtures for actions_dash tests."""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from actions_dash.commands import CommandFactory
from actions_dash.controller import DashboardController
from actions_dash.jobs_cache import JobsCache, JobsCoordinator
from tests.helpers import FakeClock, FakeTimerFactory


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers(clock):
    return FakeTimerFactory(clock)


@pytest.fixture
def mock_client():
    """GitHubClient double with empty, successful answers."""
    client = MagicMock()
    client.list_workflows.return_value = ([], 0)
    client.list_all_runs.return_value = ([], 0)
    client.list_runs_for_workflow.return_value = []
    client.get_jobs.return_value = []
    client.get_logs.return_value = ""
    client.get_file_at_ref.return_value = ""
    return client


@pytest.fixture
def cache(clock):
    return JobsCache(ttl=600, clock=clock)


@pytest.fixture
def factory(mock_client, cache):
    return CommandFactory(mock_client, "octo", "hello", cache, per_page=100)


@pytest.fixture
def submitted():
    """Commands handed to the controller's submit callback, in order."""
    return []


@pytest.fixture
def coordinator(cache, timers, factory, submitted):
    return JobsCoordinator(
        cache,
        dispatch=lambda run_id: submitted.append(factory.load_jobs(run_id)),
        delay=0.4,
        timer_factory=timers,
    )


@pytest.fixture
def controller(factory, coordinator, submitted):
    ctl = DashboardController(factory, coordinator, submitted.append, per_page=100)
    ctl.resize(120, 40)
    return ctl
