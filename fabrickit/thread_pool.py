"""A resizable pool of worker threads with a pause mode for tests."""

from __future__ import annotations

import os
import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable

from fabrickit import log


@dataclass(eq=False)
class _Worker:
    retired: bool = False
    thread: threading.Thread | None = field(default=None, repr=False)


class ThreadPoolExecutor:
    """Runs submitted callables on a set of worker threads.

    A thread count of zero means one thread per CPU.
    """

    def __init__(self, thread_count: int = 0) -> None:
        self._thread_count = thread_count if thread_count > 0 else (os.cpu_count() or 1)
        self._cond = threading.Condition()
        self._tasks: deque[Callable[[], None]] = deque()
        self._active: list[_Worker] = []
        self._threads: list[threading.Thread] = []
        self._shutdown = False
        self._paused = False

        with self._cond:
            self._start_workers(self._thread_count)
        log.debug(f"ThreadPoolExecutor created with {self._thread_count} threads")

    def __enter__(self) -> ThreadPoolExecutor:
        return self

    def __exit__(self, *exc_info) -> None:
        if not self._shutdown:
            try:
                self.shutdown(0.2)
            except Exception as exc:
                log.error(f"Error during ThreadPoolExecutor shutdown: {exc}")

    @property
    def thread_count(self) -> int:
        return self._thread_count

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def is_paused_for_testing(self) -> bool:
        return self._paused

    def submit(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Schedule ``func(*args, **kwargs)`` and return a future for its result.

        While paused for testing the call runs at once in the caller's thread.
        """
        future: Future = Future()

        def task() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                log.error(f"Exception in worker thread task: {exc}")
                future.set_exception(exc)
            else:
                future.set_result(result)

        with self._cond:
            if self._shutdown:
                raise RuntimeError("ThreadPoolExecutor is shut down")
            if not self._paused:
                self._tasks.append(task)
                self._cond.notify()
                return future
        task()
        return future

    def set_thread_count(self, count: int) -> None:
        """Grow or shrink the pool; surplus workers finish their task and exit."""
        if count < 1:
            raise ValueError("Thread count must be at least 1")

        with self._cond:
            old_count = self._thread_count
            self._thread_count = count
            if count < len(self._active):
                for worker in self._active[count:]:
                    worker.retired = True
                del self._active[count:]
                self._cond.notify_all()
            if not self._shutdown and not self._paused and len(self._active) < count:
                self._start_workers(count - len(self._active))

        log.debug(f"ThreadPoolExecutor thread count changed from {old_count} to {count}")

    def shutdown(self, timeout: float = 5.0) -> bool:
        """Stop all workers, waiting at most ``timeout`` seconds in total.

        Pending tasks are dropped and their futures cancelled. Returns
        True if every worker thread finished in time.
        """
        with self._cond:
            self._shutdown = True
            self._cond.notify_all()
            threads = list(self._threads)

        start = time.monotonic()
        all_joined = True
        for thread in threads:
            remaining = timeout - (time.monotonic() - start)
            if remaining <= 0:
                all_joined = False
                break
            thread.join(remaining)
            if thread.is_alive():
                all_joined = False
                log.warning("Thread join timed out during ThreadPoolExecutor shutdown")

        with self._cond:
            self._threads.clear()
            self._active.clear()
            dropped = list(self._tasks)
            self._tasks.clear()
        for task in dropped:
            self._cancel(task)

        if all_joined:
            log.debug("ThreadPoolExecutor shut down successfully")
        else:
            log.warning(
                "ThreadPoolExecutor shutdown timed out, some threads may not have joined"
            )
        return all_joined

    def pause_for_testing(self) -> None:
        """Stop the workers and run every queued task in the calling thread."""
        with self._cond:
            if self._paused:
                return
            self._paused = True
            for worker in self._active:
                worker.retired = True
            self._active.clear()
            self._cond.notify_all()

        while True:
            with self._cond:
                if not self._tasks:
                    break
                task = self._tasks.popleft()
            task()

        log.debug("ThreadPoolExecutor paused for testing")

    def resume_after_testing(self) -> None:
        """Leave pause mode and start workers again."""
        with self._cond:
            if not self._paused:
                return
            self._paused = False
            missing = self._thread_count - len(self._active)
            if not self._shutdown and missing > 0:
                self._start_workers(missing)
        log.debug("ThreadPoolExecutor resumed after testing")

    def queued_task_count(self) -> int:
        """Number of tasks waiting for a worker."""
        with self._cond:
            return len(self._tasks)

    def _start_workers(self, count: int) -> None:
        self._threads = [t for t in self._threads if t.is_alive()]
        for _ in range(count):
            worker = _Worker()
            thread = threading.Thread(
                target=self._worker_loop, args=(worker,), daemon=True
            )
            worker.thread = thread
            self._active.append(worker)
            self._threads.append(thread)
            thread.start()

    def _worker_loop(self, worker: _Worker) -> None:
        def stop() -> bool:
            return self._shutdown or self._paused or worker.retired

        while True:
            with self._cond:
                self._cond.wait_for(lambda: bool(self._tasks) or stop())
                if stop():
                    return
                task = self._tasks.popleft()
            try:
                task()
            except Exception as exc:
                log.error(f"Exception in worker thread task: {exc}")

    @staticmethod
    def _cancel(task: Callable[[], None]) -> None:
        closure = getattr(task, "__closure__", None) or ()
        for cell in closure:
            contents = cell.cell_contents
            if isinstance(contents, Future):
                contents.cancel()