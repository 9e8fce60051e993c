"""Tests for the jobs cache and the debounced fetch coordinator."""

from unittest.mock import MagicMock

import pytest

from actions_dash.jobs_cache import JobsCache, JobsCoordinator
from tests.helpers import make_job


class TestJobsCache:
    def test_hit_within_ttl(self, clock):
        cache = JobsCache(ttl=600, clock=clock)
        jobs = [make_job()]
        cache.set(1, jobs)

        clock.advance(599)

        assert cache.get(1) == jobs

    def test_exactly_ttl_is_still_a_hit(self, clock):
        cache = JobsCache(ttl=600, clock=clock)
        cache.set(1, [make_job()])
        clock.advance(600)
        assert cache.get(1) is not None

    def test_expired_after_ttl(self, clock):
        cache = JobsCache(ttl=600, clock=clock)
        cache.set(1, [make_job()])

        clock.advance(600.5)

        assert cache.get(1) is None

    def test_missing_key(self, clock):
        assert JobsCache(clock=clock).get(42) is None

    def test_set_overwrites_and_refreshes_timestamp(self, clock):
        cache = JobsCache(ttl=600, clock=clock)
        cache.set(1, [make_job(job_id=1)])
        clock.advance(500)
        cache.set(1, [make_job(job_id=2)])
        clock.advance(500)

        jobs = cache.get(1)

        assert [j.id for j in jobs] == [2]

    def test_sweep_removes_only_expired(self, clock):
        cache = JobsCache(ttl=600, clock=clock)
        cache.set(1, [])
        clock.advance(400)
        cache.set(2, [])
        clock.advance(300)

        removed = cache.sweep()

        assert removed == 1
        assert len(cache) == 1
        assert cache.get(2) == []

    def test_empty_job_list_is_a_hit(self, clock):
        cache = JobsCache(clock=clock)
        cache.set(1, [])
        assert cache.get(1) == []


class TestJobsCoordinator:
    @pytest.fixture
    def dispatch(self):
        return MagicMock()

    @pytest.fixture
    def coord(self, clock, timers, dispatch):
        return JobsCoordinator(JobsCache(ttl=600, clock=clock), dispatch, delay=0.4, timer_factory=timers)

    def test_cache_hit_resolves_without_fetch(self, coord, timers, dispatch):
        jobs = [make_job()]
        coord.cache.set(7, jobs)

        assert coord.schedule_fetch(7) == jobs
        assert timers.timers == []
        dispatch.assert_not_called()

    def test_burst_of_selections_fetches_last_only(self, coord, clock, timers, dispatch):
        t0 = clock()
        coord.schedule_fetch(1)  # A
        clock.advance(0.1)
        coord.schedule_fetch(2)  # B
        clock.advance(0.2)
        coord.schedule_fetch(3)  # C

        assert len(timers.live) == 1
        live = timers.live[0]
        assert live.due_at == pytest.approx(t0 + 0.7)

        for timer in timers.timers:
            timer.fire()

        dispatch.assert_called_once_with(3)

    def test_new_schedule_cancels_previous_timer(self, coord, timers):
        coord.schedule_fetch(1)
        coord.schedule_fetch(2)
        assert timers.timers[0].cancelled is True
        assert timers.timers[1].cancelled is False

    def test_fire_skips_superseded_run(self, coord, timers, dispatch):
        coord.schedule_fetch(1)
        first = timers.timers[0]
        coord.schedule_fetch(2)

        # A timer that was already running when cancelled still calls back.
        first.function()

        dispatch.assert_not_called()

    def test_fire_skips_when_cache_populated_meanwhile(self, coord, timers, dispatch):
        coord.schedule_fetch(5)
        coord.cache.set(5, [make_job(run_id=5)])

        timers.timers[0].fire()

        dispatch.assert_not_called()

    def test_hit_after_pending_miss_cancels_timer(self, coord, timers, dispatch):
        coord.cache.set(2, [])
        coord.schedule_fetch(1)
        coord.schedule_fetch(2)

        assert timers.live == []
        assert coord.pending == 2

    def test_accept_only_pending_run(self, coord):
        coord.schedule_fetch(1)
        coord.schedule_fetch(2)

        assert coord.accept(2) is True
        assert coord.accept(1) is False

    def test_request_now_dispatches_immediately(self, coord, timers, dispatch):
        assert coord.request_now(9) is None
        dispatch.assert_called_once_with(9)
        assert timers.timers == []
        assert coord.accept(9)

    def test_request_now_uses_cache(self, coord, dispatch):
        coord.cache.set(9, [make_job(run_id=9)])
        assert coord.request_now(9) is not None
        dispatch.assert_not_called()

    def test_request_now_cancels_pending_timer(self, coord, timers, dispatch):
        coord.schedule_fetch(1)
        coord.request_now(2)
        timers.timers[0].function()
        dispatch.assert_called_once_with(2)

    def test_cancel(self, coord, timers):
        coord.schedule_fetch(1)
        coord.cancel()
        assert timers.live == []
        assert coord.pending is None

    def test_sweep_delegates_to_cache(self, coord, clock):
        coord.cache.set(1, [])
        clock.advance(601)
        assert coord.sweep() == 1
