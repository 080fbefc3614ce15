"""Thread-safe state holder with enter/exit hooks and transition rules."""

from __future__ import annotations

import abc
from typing import Callable, Generic, Optional, TypeVar

from fabrickit import log
from fabrickit.timeout_lock import SharedMutex, try_lock_shared, try_lock_unique

StateT = TypeVar("StateT")
ResultT = TypeVar("ResultT")


def _label(state: object) -> str:
    return str(getattr(state, "value", state))


class LifecycleState(abc.ABC, Generic[StateT]):
    """Base for objects that move through a set of states.

    Subclasses supply :meth:`on_enter_state` and :meth:`on_exit_state`
    and may restrict transitions by overriding :meth:`is_valid_transition`.
    Every state access takes a timeout-protected lock; when the lock
    cannot be had in time the operation gives up instead of blocking.
    """

    def __init__(self, initial_state: StateT) -> None:
        self._state = initial_state
        self._state_mutex = SharedMutex()

    @property
    def state(self) -> Optional[StateT]:
        """The current state, or None if the lock could not be taken in time."""
        lock = try_lock_shared(self._state_mutex)
        if lock is None:
            return None
        with lock:
            return self._state

    def transition_to(self, new_state: StateT) -> bool:
        """Move to ``new_state``, running the exit and enter hooks.

        Returns False and leaves the state as it was if the lock cannot
        be taken, the transition is not allowed, the enter hook reports
        failure, or a hook raises.
        """
        lock = try_lock_unique(self._state_mutex)
        if lock is None:
            log.warning("Failed to acquire lock for state transition")
            return False

        with lock:
            if not self.is_valid_transition(self._state, new_state):
                log.warning(
                    f"Invalid state transition from {_label(self._state)} "
                    f"to {_label(new_state)}"
                )
                return False

            old_state = self._state
            try:
                self.on_exit_state(old_state)
                self._state = new_state
                if not self.on_enter_state(new_state):
                    self._state = old_state
                    try:
                        self.on_enter_state(old_state)
                    except Exception:
                        log.error(f"Failed to restore previous state {_label(old_state)}")
                    return False
                return True
            except Exception as exc:
                log.error(f"Exception during state transition: {exc}")
                self._state = old_state
                return False

    def is_valid_transition(self, from_state: StateT, to_state: StateT) -> bool:
        """Whether moving from ``from_state`` to ``to_state`` is allowed.

        Every transition is allowed unless a subclass says otherwise.
        """
        return True

    def if_in_state(
        self, state: StateT, func: Callable[[], ResultT]
    ) -> Optional[ResultT]:
        """Call ``func`` only while the current state is ``state``.

        Returns the result of ``func``, or None when it was not called.
        """
        lock = try_lock_shared(self._state_mutex)
        if lock is None:
            return None
        with lock:
            if self._state != state:
                return None
            return func()

    def with_state(self, func: Callable[[StateT], ResultT]) -> Optional[ResultT]:
        """Call ``func`` with the current state and return its result.

        Returns None if the lock could not be taken in time.
        """
        lock = try_lock_shared(self._state_mutex)
        if lock is None:
            return None
        with lock:
            return func(self._state)

    @abc.abstractmethod
    def on_enter_state(self, state: StateT) -> bool:
        """Hook run on entering ``state``; return False to refuse it."""

    @abc.abstractmethod
    def on_exit_state(self, state: StateT) -> None:
        """Hook run on leaving ``state``."""