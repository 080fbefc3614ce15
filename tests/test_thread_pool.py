import os
import threading

import pytest

from fabrickit.thread_pool import ThreadPoolExecutor


@pytest.fixture
def pool():
    executor = ThreadPoolExecutor(2)
    yield executor
    if not executor.is_shutdown:
        executor.shutdown(1.0)


def test_zero_means_cpu_count():
    with ThreadPoolExecutor(0) as executor:
        assert executor.thread_count == (os.cpu_count() or 1)


def test_submit_returns_result(pool):
    future = pool.submit(lambda a, b=0: a + b, 2, b=3)
    assert future.result(timeout=2) == 5


def test_many_tasks_all_run(pool):
    futures = [pool.submit(lambda i=i: i * i) for i in range(50)]
    assert [f.result(timeout=2) for f in futures] == [i * i for i in range(50)]


def test_task_exception_goes_to_future_and_worker_survives(pool):
    def boom():
        raise KeyError("bad")

    failing = pool.submit(boom)
    with pytest.raises(KeyError):
        failing.result(timeout=2)
    assert pool.submit(lambda: "still alive").result(timeout=2) == "still alive"


def test_set_thread_count_rejects_zero(pool):
    with pytest.raises(ValueError):
        pool.set_thread_count(0)
    assert pool.thread_count == 2


def test_resize_keeps_running_tasks(pool):
    pool.set_thread_count(1)
    assert pool.thread_count == 1
    assert pool.submit(lambda: "one").result(timeout=2) == "one"
    pool.set_thread_count(4)
    assert pool.thread_count == 4
    futures = [pool.submit(lambda i=i: i) for i in range(20)]
    assert sorted(f.result(timeout=2) for f in futures) == list(range(20))


def test_pause_drains_queue_in_caller():
    executor = ThreadPoolExecutor(1)
    release = threading.Event()
    started = threading.Event()

    def blocker():
        started.set()
        release.wait(2)
        return "blocked"

    first = executor.submit(blocker)
    assert started.wait(2)
    queued = [executor.submit(lambda i=i: i) for i in range(2)]
    assert executor.queued_task_count() == 2

    executor.pause_for_testing()
    assert executor.is_paused_for_testing is True
    assert executor.queued_task_count() == 0
    assert [f.result(timeout=0) for f in queued] == [0, 1]

    release.set()
    assert first.result(timeout=2) == "blocked"

    inline = executor.submit(threading.get_ident)
    assert inline.result(timeout=0) == threading.get_ident()

    executor.resume_after_testing()
    assert executor.is_paused_for_testing is False
    assert executor.submit(lambda: "resumed").result(timeout=2) == "resumed"
    assert executor.shutdown(1.0) is True


def test_shutdown_then_submit_raises(pool):
    assert pool.shutdown(1.0) is True
    assert pool.is_shutdown is True
    with pytest.raises(RuntimeError):
        pool.submit(lambda: None)


def test_shutdown_times_out_on_stuck_worker_and_cancels_queue():
    executor = ThreadPoolExecutor(1)
    release = threading.Event()
    started = threading.Event()

    def stuck():
        started.set()
        release.wait(5)

    executor.submit(stuck)
    assert started.wait(2)
    pending = executor.submit(lambda: "never")
    assert executor.shutdown(0.05) is False
    assert pending.cancelled() is True
    assert executor.queued_task_count() == 0
    release.set()


def test_context_manager_shuts_down():
    with ThreadPoolExecutor(1) as executor:
        assert executor.submit(lambda: 7).result(timeout=2) == 7
    assert executor.is_shutdown is True