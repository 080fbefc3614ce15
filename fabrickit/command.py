"""Commands with undo/redo support and a manager that keeps their history."""

from __future__ import annotations

import abc
import copy
import re
from typing import Any, Callable, Generic, Optional, TypeVar, Union

StateT = TypeVar("StateT")

_HISTORY_PREFIX = "CommandHistory:"
_FUNCTION_PREFIX = "FunctionCommand:"
_NUMBERED_PREFIX = "Command "
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class Command(abc.ABC):
    """An action that can be executed, undone, described and copied."""

    @abc.abstractmethod
    def execute(self) -> None:
        """Perform the action."""

    @abc.abstractmethod
    def undo(self) -> None:
        """Reverse the effects of :meth:`execute`, if the command allows it."""

    @abc.abstractmethod
    def is_reversible(self) -> bool:
        """Whether the command can be undone."""

    @abc.abstractmethod
    def description(self) -> str:
        """A human-readable description of the command."""

    @abc.abstractmethod
    def serialize(self) -> str:
        """A string form of the command."""

    @abc.abstractmethod
    def clone(self) -> Command:
        """A new, independent copy of the command."""


Description = Union[str, Callable[[], str]]


class FunctionCommand(Command, Generic[StateT]):
    """A command built from a function applied to a piece of state.

    ``exec_func`` receives the state and may mutate it in place or return
    a replacement; a return value of None keeps the (possibly mutated)
    state. The description is either a fixed string or a callable that
    produces one on demand.
    """

    def __init__(
        self,
        exec_func: Callable[[StateT], Optional[StateT]],
        initial_state: StateT,
        description: Description,
        reversible: bool = True,
    ) -> None:
        self._exec_func = exec_func
        self._before = copy.deepcopy(initial_state)
        self._after = initial_state
        self._description = description
        self._reversible = reversible

    @property
    def state(self) -> StateT:
        """The state as left by the latest execute or undo."""
        return self._after

    def _apply(self) -> None:
        result = self._exec_func(self._after)
        if result is not None:
            self._after = result

    def execute(self) -> None:
        self._before = copy.deepcopy(self._after)
        self._apply()

    def undo(self) -> None:
        """Restore the state saved before execute, then apply the function to it.

        The function is applied again so that its side effects follow the
        restored state.
        """
        if self.is_reversible():
            self._after = copy.deepcopy(self._before)
            self._apply()

    def is_reversible(self) -> bool:
        return self._reversible

    def description(self) -> str:
        if callable(self._description):
            return self._description()
        return self._description

    def serialize(self) -> str:
        return _FUNCTION_PREFIX + self.description()

    def clone(self) -> FunctionCommand[StateT]:
        return FunctionCommand(
            self._exec_func,
            copy.deepcopy(self._after),
            self._description,
            self._reversible,
        )


class CompositeCommand(Command):
    """A group of commands executed and undone as one unit."""

    def __init__(self, description: str) -> None:
        self._description = description
        self._commands: list[Command] = []

    def add_command(self, command: Command) -> None:
        self._commands.append(command)

    def __len__(self) -> int:
        return len(self._commands)

    def execute(self) -> None:
        for command in self._commands:
            command.execute()

    def undo(self) -> None:
        if not self.is_reversible():
            return
        for command in reversed(self._commands):
            command.undo()

    def is_reversible(self) -> bool:
        return all(command.is_reversible() for command in self._commands)

    def description(self) -> str:
        return self._description

    def serialize(self) -> str:
        body = "".join(command.serialize() + ";" for command in self._commands)
        return f"CompositeCommand:{self._description}{{{body}}}"

    def clone(self) -> CompositeCommand:
        duplicate = CompositeCommand(self._description)
        for command in self._commands:
            duplicate.add_command(command.clone())
        return duplicate


def _parse_leading_int(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        return None
    return value


def _noop(state: Any) -> None:
    return None


class CommandManager:
    """Executes commands and keeps undo and redo histories."""

    def __init__(self) -> None:
        self._undo_stack: list[Command] = []
        self._redo_stack: list[Command] = []

    def execute(self, command: Command) -> None:
        """Execute ``command``; reversible commands enter the undo history.

        Executing a reversible command discards the redo history.
        """
        command.execute()
        if command.is_reversible():
            self._redo_stack.clear()
            self._undo_stack.append(command)

    def undo(self) -> bool:
        """Undo the latest command; False if there is nothing to undo."""
        if not self._undo_stack:
            return False
        command = self._undo_stack.pop()
        command.undo()
        self._redo_stack.append(command)
        return True

    def redo(self) -> bool:
        """Execute the latest undone command again; False if there is none."""
        if not self._redo_stack:
            return False
        command = self._redo_stack.pop()
        command.execute()
        self._undo_stack.append(command)
        return True

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def clear_history(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()

    def undo_description(self) -> str:
        return self._undo_stack[-1].description() if self._undo_stack else ""

    def undo_command(self) -> Optional[Command]:
        return self._undo_stack[-1] if self._undo_stack else None

    def redo_description(self) -> str:
        return self._redo_stack[-1].description() if self._redo_stack else ""

    def redo_command(self) -> Optional[Command]:
        return self._redo_stack[-1] if self._redo_stack else None

    def save_history(self) -> str:
        """Serialize the undo history, oldest command first."""
        return _HISTORY_PREFIX + "".join(
            command.serialize() + ";" for command in self._undo_stack
        )

    def load_history(self, serialized: str) -> bool:
        """Replace the history with commands read from ``serialized``.

        Each ``FunctionCommand:<description>;`` entry becomes a command on
        the redo history, ready to be redone. A description of the form
        ``Command <n>`` gives the command the integer state ``n``.
        Returns False if the text is not a command history or holds no
        entries.
        """
        if not serialized.startswith(_HISTORY_PREFIX):
            return False

        self.clear_history()

        body = serialized[len(_HISTORY_PREFIX):]
        entries = [entry for entry in body.split(";")[:-1] if entry]

        for entry in entries:
            if not entry.startswith(_FUNCTION_PREFIX):
                continue
            description = entry[len(_FUNCTION_PREFIX):]
            command_id = 0
            if description.startswith(_NUMBERED_PREFIX):
                parsed = _parse_leading_int(description[len(_NUMBERED_PREFIX):])
                command_id = parsed if parsed is not None else len(self._undo_stack) + 1
            self._redo_stack.append(FunctionCommand(_noop, command_id, description))

        return bool(entries)


def make_command(
    exec_func: Callable[[StateT], Optional[StateT]],
    initial_state: StateT,
    description: Description,
    reversible: bool = True,
) -> Command:
    """Build a :class:`FunctionCommand` from a function and its state."""
    return FunctionCommand(exec_func, initial_state, description, reversible)