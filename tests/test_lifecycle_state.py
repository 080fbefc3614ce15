import enum
import threading

import pytest

from fabrickit.lifecycle_state import LifecycleState


class Phase(enum.Enum):
    IDLE = 0
    RUNNING = 1
    DONE = 2


class Machine(LifecycleState):
    def __init__(self, initial=Phase.IDLE):
        super().__init__(initial)
        self.calls = []
        self.refuse = set()
        self.fail_exit = False
        self.fail_restore = False

    def is_valid_transition(self, from_state, to_state):
        return from_state is not Phase.DONE

    def on_enter_state(self, state):
        self.calls.append(("enter", state))
        if state in self.refuse:
            return False
        if self.fail_restore and state is Phase.IDLE:
            raise RuntimeError("cannot restore")
        return True

    def on_exit_state(self, state):
        self.calls.append(("exit", state))
        if self.fail_exit:
            raise RuntimeError("exit failed")


class Peeking(LifecycleState):
    def __init__(self):
        super().__init__(Phase.IDLE)
        self.seen = "unset"

    def on_enter_state(self, state):
        self.seen = self.state
        return True

    def on_exit_state(self, state):
        pass


def _current(machine):
    return LifecycleState.with_state(machine, lambda state: state)


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        LifecycleState(Phase.IDLE)


def test_initial_state():
    machine = Machine()
    assert LifecycleState.with_state(machine, lambda state: state) is Phase.IDLE
    assert machine.state is Phase.IDLE


def test_valid_transition_runs_exit_then_enter():
    machine = Machine()
    assert LifecycleState.transition_to(machine, Phase.RUNNING) is True
    assert machine.state is Phase.RUNNING
    assert machine.calls == [("exit", Phase.IDLE), ("enter", Phase.RUNNING)]


def test_invalid_transition_is_refused_without_hooks():
    machine = Machine(Phase.DONE)
    assert LifecycleState.transition_to(machine, Phase.IDLE) is False
    assert machine.state is Phase.DONE
    assert machine.calls == []


def test_refused_enter_rolls_back_and_reenters_old_state():
    machine = Machine()
    machine.refuse.add(Phase.RUNNING)
    assert LifecycleState.transition_to(machine, Phase.RUNNING) is False
    assert machine.state is Phase.IDLE
    assert machine.calls == [
        ("exit", Phase.IDLE),
        ("enter", Phase.RUNNING),
        ("enter", Phase.IDLE),
    ]


def test_failed_restore_still_rolls_back():
    machine = Machine()
    machine.refuse.add(Phase.RUNNING)
    machine.fail_restore = True
    assert LifecycleState.transition_to(machine, Phase.RUNNING) is False
    assert machine.state is Phase.IDLE


def test_exception_in_exit_hook_keeps_state():
    machine = Machine()
    machine.fail_exit = True
    assert LifecycleState.transition_to(machine, Phase.RUNNING) is False
    assert machine.state is Phase.IDLE
    assert ("enter", Phase.RUNNING) not in machine.calls


def test_default_rule_allows_every_transition():
    peeking = Peeking()
    assert LifecycleState.is_valid_transition(peeking, Phase.DONE, Phase.IDLE) is True
    assert LifecycleState.transition_to(peeking, Phase.DONE) is True
    assert LifecycleState.transition_to(peeking, Phase.IDLE) is True
    assert peeking.state is Phase.IDLE


def test_state_read_inside_hook_times_out_to_none():
    peeking = Peeking()
    assert LifecycleState.transition_to(peeking, Phase.RUNNING) is True
    assert peeking.seen is None
    assert peeking.state is Phase.RUNNING


def test_if_in_state_runs_only_on_match():
    machine = Machine()
    ran = []
    matched = LifecycleState.if_in_state(
        machine, Phase.IDLE, lambda: ran.append(1) or "ok"
    )
    missed = LifecycleState.if_in_state(
        machine, Phase.RUNNING, lambda: ran.append(2) or "no"
    )
    assert matched == "ok"
    assert missed is None
    assert ran == [1]


def test_with_state_passes_current_state():
    machine = Machine()
    LifecycleState.transition_to(machine, Phase.RUNNING)
    assert _current(machine) is Phase.RUNNING
    assert LifecycleState.with_state(machine, lambda s: s.name.lower()) == "running"


def test_concurrent_transitions_end_in_a_known_state():
    machine = Machine()
    targets = [Phase.RUNNING, Phase.IDLE] * 10
    results = []

    def worker(target):
        results.append(LifecycleState.transition_to(machine, target))

    threads = [threading.Thread(target=worker, args=(t,)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(results) == len(targets)
    assert _current(machine) in (Phase.IDLE, Phase.RUNNING)