"""Tests for the bounded worker pool."""

import threading
import time
from unittest.mock import patch

from uaftriage.errors import EnrichmentTimeoutError
from uaftriage.skills.enrich.pool import MAX_AUTO_WORKERS, default_concurrency, run_pool


class TestRunPool:
    def test_order_preserved_under_delays(self):
        items = list(range(12))

        def worker(idx, item):
            # later items finish first
            time.sleep((len(items) - idx) * 0.005)
            return item * 2

        outcome = run_pool(items, worker, concurrency=4)
        assert outcome.slots == [i * 2 for i in items]
        assert outcome.error is None
        assert outcome.completed == 12

    def test_on_result_runs_on_collecting_thread(self):
        main = threading.current_thread()
        seen = []

        def on_result(idx, value):
            assert threading.current_thread() is main
            seen.append(idx)

        run_pool(range(6), lambda idx, item: item, concurrency=3, on_result=on_result)
        assert sorted(seen) == list(range(6))

    def test_bounded_concurrency(self):
        active = []
        peak = []
        lock = threading.Lock()

        def worker(idx, item):
            with lock:
                active.append(idx)
                peak.append(len(active))
            time.sleep(0.01)
            with lock:
                active.remove(idx)
            return item

        run_pool(list(range(10)), worker, concurrency=2)
        assert max(peak) <= 2

    def test_error_does_not_stop_others(self):
        def worker(idx, item):
            if item == 2:
                raise ValueError("boom")
            return item

        outcome = run_pool(list(range(5)), worker, concurrency=2)
        assert isinstance(outcome.error, ValueError)
        assert outcome.slots == [0, 1, None, 3, 4]

    def test_first_error_kept(self):
        def worker(idx, item):
            if item in (1, 3):
                raise RuntimeError(f"fail {item}")
            return item

        outcome = run_pool(list(range(5)), worker, concurrency=1)
        assert str(outcome.error) == "fail 1"

    def test_timeout_cancels_pending(self):
        def worker(idx, item):
            time.sleep(0.3)
            return item

        outcome = run_pool(list(range(5)), worker, concurrency=1, timeout=0.05)
        assert isinstance(outcome.error, EnrichmentTimeoutError)
        # the item running at the deadline still completes
        assert outcome.slots[0] == 0
        assert outcome.completed < 5

    def test_empty(self):
        outcome = run_pool([], lambda idx, item: item)
        assert outcome.slots == []
        assert outcome.error is None


class TestDefaultConcurrency:
    def test_capped(self):
        with patch("uaftriage.skills.enrich.pool.os.cpu_count", return_value=64):
            assert default_concurrency() == MAX_AUTO_WORKERS

    def test_unknown_cpu_count(self):
        with patch("uaftriage.skills.enrich.pool.os.cpu_count", return_value=None):
            assert default_concurrency() == 1

    def test_small_machine(self):
        with patch("uaftriage.skills.enrich.pool.os.cpu_count", return_value=4):
            assert default_concurrency() == 4
