"""Reader/writer mutex and timeout-protected lock acquisition."""

from __future__ import annotations

import threading
import time


class SharedMutex:
    """A mutex that allows many shared holders or one exclusive holder."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_shared(self, blocking: bool = True) -> bool:
        with self._cond:
            if self._writer:
                if not blocking:
                    return False
                self._cond.wait_for(lambda: not self._writer)
            self._readers += 1
            return True

    def release_shared(self) -> None:
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("shared lock is not held")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire(self, blocking: bool = True) -> bool:
        def free() -> bool:
            return not self._writer and self._readers == 0

        with self._cond:
            if not free():
                if not blocking:
                    return False
                self._cond.wait_for(free)
            self._writer = True
            return True

    def release(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("exclusive lock is not held")
            self._writer = False
            self._cond.notify_all()

    def __enter__(self) -> SharedMutex:
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class _HeldLock:
    """A lock held on a :class:`SharedMutex`, released at most once."""

    def __init__(self, mutex: SharedMutex) -> None:
        self.mutex = mutex
        self._guard = threading.Lock()
        self.owns = True

    def _unlock(self) -> None:
        raise NotImplementedError

    def release(self) -> None:
        """Release the lock; releasing an already released lock does nothing."""
        with self._guard:
            if not self.owns:
                return
            self.owns = False
            self._unlock()

    def __bool__(self) -> bool:
        return self.owns

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class SharedLock(_HeldLock):
    """A shared (read) hold on a :class:`SharedMutex`."""

    def _unlock(self) -> None:
        self.mutex.release_shared()

    def release(self) -> None:
        super().release()

    def _reacquire(self) -> None:
        with self._guard:
            if self.owns:
                return
            self.mutex.acquire_shared()
            self.owns = True


class UniqueLock(_HeldLock):
    """An exclusive (write) hold on a :class:`SharedMutex`."""

    def _unlock(self) -> None:
        self.mutex.release()

    def release(self) -> None:
        super().release()


def _poll(try_once, timeout: float) -> bool:
    if try_once():
        return True
    start = time.monotonic()
    while True:
        if try_once():
            return True
        if time.monotonic() - start >= timeout:
            return False
        time.sleep(0.001)


def try_lock_shared(mutex: SharedMutex, timeout: float = 0.1) -> SharedLock | None:
    """Take a shared hold within ``timeout`` seconds, or return None."""
    if _poll(lambda: mutex.acquire_shared(blocking=False), timeout):
        return SharedLock(mutex)
    return None


def try_lock_unique(mutex: SharedMutex, timeout: float = 0.1) -> UniqueLock | None:
    """Take an exclusive hold within ``timeout`` seconds, or return None."""
    if _poll(lambda: mutex.acquire(blocking=False), timeout):
        return UniqueLock(mutex)
    return None


def try_upgrade_lock(
    mutex: SharedMutex, shared_lock: SharedLock, timeout: float = 0.1
) -> UniqueLock | None:
    """Trade a shared hold for an exclusive one.

    The shared hold is released first, so this is not atomic. If the
    exclusive hold cannot be had in time, the shared hold is taken again
    (waiting as long as needed) and None is returned.
    """
    shared_lock.release()
    unique = try_lock_unique(mutex, timeout)
    if unique is None:
        shared_lock._reacquire()
    return unique


def lock_for(
    mutex: SharedMutex, duration: float = 0.1, shared: bool = False
) -> SharedLock | UniqueLock | None:
    """Take a lock without waiting and release it after ``duration`` seconds.

    Returns None if the lock could not be taken immediately.
    """
    if shared:
        if not mutex.acquire_shared(blocking=False):
            return None
        lock: SharedLock | UniqueLock = SharedLock(mutex)
    else:
        if not mutex.acquire(blocking=False):
            return None
        lock = UniqueLock(mutex)

    def release_later() -> None:
        time.sleep(duration)
        lock.release()

    threading.Thread(target=release_later, daemon=True).start()
    return lock