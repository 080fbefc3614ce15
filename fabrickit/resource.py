"""Loadable resources, their factory registry and reference handles."""

from __future__ import annotations

import abc
import enum
import threading
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Generic, Optional, TypeVar


class ResourceState(enum.Enum):
    """Where a resource is in its load/unload cycle."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    LOADING_FAILED = "loading_failed"
    UNLOADING = "unloading"


class ResourcePriority(enum.IntEnum):
    """Priority of a load request; higher values are served first."""

    LOWEST = 0
    LOW = 1
    NORMAL = 2
    HIGH = 3
    HIGHEST = 4


class Resource(abc.ABC):
    """An asset that can be loaded and unloaded.

    Loads are counted: loading an already loaded resource only raises the
    count, and the resource is really unloaded once every load has been
    matched by an unload. Subclasses supply :meth:`load_impl`,
    :meth:`unload_impl` and :meth:`memory_usage`.
    """

    def __init__(self, resource_id: str) -> None:
        self._id = resource_id
        self._state = ResourceState.UNLOADED
        self._load_count = 0
        self._lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> ResourceState:
        with self._lock:
            return self._state

    @property
    def load_count(self) -> int:
        """How many loads have not yet been matched by an unload."""
        with self._lock:
            return self._load_count

    @abc.abstractmethod
    def memory_usage(self) -> int:
        """Estimated memory used by the resource, in bytes."""

    @abc.abstractmethod
    def load_impl(self) -> bool:
        """Do the actual loading; return True on success."""

    @abc.abstractmethod
    def unload_impl(self) -> None:
        """Do the actual unloading."""

    def load(self) -> bool:
        """Load the resource; True on success.

        If :meth:`load_impl` raises, the resource is marked as failed and
        the exception propagates.
        """
        with self._lock:
            if self._state is ResourceState.LOADED:
                self._load_count += 1
                return True
            self._state = ResourceState.LOADING

        try:
            success = bool(self.load_impl())
        except Exception:
            with self._lock:
                self._state = ResourceState.LOADING_FAILED
            raise

        with self._lock:
            if success:
                self._state = ResourceState.LOADED
                self._load_count += 1
            else:
                self._state = ResourceState.LOADING_FAILED
        return success

    def unload(self) -> None:
        """Drop one load; unload for real when none are left."""
        with self._lock:
            if self._state is ResourceState.UNLOADED:
                return
            if self._load_count > 0:
                self._load_count -= 1
            if self._load_count != 0:
                return
            self._state = ResourceState.UNLOADING

        try:
            self.unload_impl()
        finally:
            with self._lock:
                self._state = ResourceState.UNLOADED


ResourceFactoryFunc = Callable[[str], Resource]


class ResourceFactory:
    """Registry of functions that create resources by type identifier."""

    _lock: ClassVar[threading.Lock] = threading.Lock()
    _factories: ClassVar[dict[str, ResourceFactoryFunc]] = {}

    @classmethod
    def register_type(cls, type_id: str, factory: ResourceFactoryFunc) -> None:
        """Register ``factory`` for ``type_id``, replacing any earlier one."""
        with cls._lock:
            cls._factories[type_id] = factory

    @classmethod
    def create(cls, type_id: str, resource_id: str) -> Optional[Resource]:
        """Create a resource of ``type_id``; None if the type is unknown."""
        with cls._lock:
            factory = cls._factories.get(type_id)
        if factory is None:
            return None
        return factory(resource_id)

    @classmethod
    def is_type_registered(cls, type_id: str) -> bool:
        with cls._lock:
            return type_id in cls._factories


ResourceT = TypeVar("ResourceT", bound=Resource)


class ResourceHandle(Generic[ResourceT]):
    """A reference to a resource that keeps it alive while held."""

    def __init__(
        self, resource: Optional[ResourceT] = None, manager: Any = None
    ) -> None:
        self._resource = resource
        self.manager = manager

    def get(self) -> Optional[ResourceT]:
        """The resource, or None if the handle is empty."""
        return self._resource

    @property
    def id(self) -> str:
        """The resource id, or an empty string if the handle is empty."""
        return self._resource.id if self._resource is not None else ""

    def reset(self) -> None:
        """Release the resource reference."""
        self._resource = None
        self.manager = None

    def __bool__(self) -> bool:
        return self._resource is not None

    def __repr__(self) -> str:
        return f"ResourceHandle({self.id!r})"


@dataclass(eq=False)
class ResourceLoadRequest:
    """A queued request to load a resource.

    Requests order by priority: a request sorts before another when it
    has the higher priority, so the smallest request is served first.
    """

    type_id: str
    resource_id: str
    priority: ResourcePriority = ResourcePriority.NORMAL
    callback: Optional[Callable[[Resource], None]] = None

    def __lt__(self, other: ResourceLoadRequest) -> bool:
        if not isinstance(other, ResourceLoadRequest):
            return NotImplemented
        return self.priority > other.priority