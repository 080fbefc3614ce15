# fabrickit

A small toolkit of building blocks for Python applications, using only the
standard library.

## Modules

- `fabrickit.command`: actions that can be undone and redone.
  `Command` is the abstract base; `FunctionCommand` wraps a function applied
  to a piece of state; `CompositeCommand` groups commands into one unit that
  is undone in reverse order; `CommandManager` executes commands and keeps
  undo and redo histories, with `save_history()` and `load_history()` for a
  plain-text form of the history; `make_command()` builds a `FunctionCommand`.
- `fabrickit.lifecycle_state`: `LifecycleState`, an abstract, thread-safe
  state holder. Subclasses provide `on_enter_state()` and `on_exit_state()`
  and may restrict moves by overriding `is_valid_transition()`.
  `transition_to()` returns False and keeps the old state when a move is
  refused or a hook fails; `if_in_state()` and `with_state()` run a function
  under the state lock.
- `fabrickit.resource`: `Resource`, an abstract asset whose loads are
  counted (it is unloaded for real only when every load has been matched by
  an unload); `ResourceState` and `ResourcePriority`; `ResourceFactory`, a
  registry of creation functions by type id; `ResourceHandle`, a reference
  to a resource; `ResourceLoadRequest`, a load request that sorts higher
  priorities first.
- `fabrickit.thread_pool`: `ThreadPoolExecutor`, a resizable pool of worker
  threads. `submit()` returns a `concurrent.futures.Future`;
  `set_thread_count()` grows or shrinks the pool; `shutdown(timeout)` stops
  the workers and cancels pending tasks; `pause_for_testing()` stops the
  workers and runs queued tasks in the calling thread until
  `resume_after_testing()`. It can be used as a context manager.
- `fabrickit.timeout_lock`: `SharedMutex`, a reader/writer mutex, with
  `try_lock_shared()`, `try_lock_unique()` and `try_upgrade_lock()`, which
  return a `SharedLock` or `UniqueLock` or None when the timeout (in
  seconds) runs out, and `lock_for()`, which holds a lock for a fixed time.
- `fabrickit.log`: levelled console logging (`LogLevel`, `debug()`, `info()`,
  `warning()`, `error()`, `critical()`), with `set_log_level()` and
  `enable_timestamps()`. Errors and critical messages go to standard error,
  the rest to standard output.

## Installation

```
pip install .
```

## Example: undo and redo

```python
from fabrickit.command import CommandManager, make_command

seen = []
manager = CommandManager()
manager.execute(make_command(lambda state: seen.append(state), 1, "Append one"))

manager.undo_description()   # "Append one"
manager.undo()               # True
manager.redo()               # True
manager.save_history()       # "CommandHistory:FunctionCommand:Append one;"
```

Undoing a `FunctionCommand` restores the state saved before it was executed
and applies the function to it again, so `seen` grows on undo as well.

## Example: a worker pool

```python
from fabrickit.thread_pool import ThreadPoolExecutor

with ThreadPoolExecutor(2) as pool:
    future = pool.submit(sum, [1, 2, 3])
    future.result()          # 6
```

## Example: logging

```python
from fabrickit import log

log.set_log_level(log.LogLevel.DEBUG)
log.enable_timestamps(False)
log.info("ready")            # prints "[INFO] ready"
```

## What it does not do

- There is no resource manager: nothing caches resources, enforces a memory
  budget or loads resources in the background. `Resource`, `ResourceFactory`
  and `ResourceHandle` are used directly, and `ResourceHandle.manager` is only
  whatever object the caller passes in.
- There are no UI components or component trees, no string helpers or id
  generation, and no dedicated exception type; errors are raised as standard
  Python exceptions.
- There is no command-line program.

## Running the tests

```
pip install .[test]
pytest
```