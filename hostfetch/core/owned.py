from __future__ import annotations

from enum import Enum
from typing import Callable, Generic, Optional, TypeVar


T = TypeVar("T")


class ResourcePhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    CREATED = "created"
    DESTROYED = "destroyed"


class OwnedResource(Generic[T]):
    """
    A resource owned by the runtime context that may or may not have been created.

    release() destroys a created resource exactly once; releasing an absent or
    already destroyed resource does nothing.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._phase = ResourcePhase.UNINITIALIZED
        self._value: Optional[T] = None
        self._destroy: Optional[Callable[[T], None]] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def phase(self) -> ResourcePhase:
        return self._phase

    @property
    def present(self) -> bool:
        return self._phase is ResourcePhase.CREATED

    def create(self, value: T, destroy: Optional[Callable[[T], None]] = None) -> T:
        if self._phase is not ResourcePhase.UNINITIALIZED:
            raise RuntimeError(f"{self._name}: cannot create a resource in phase {self._phase.value}")
        self._value = value
        self._destroy = destroy
        self._phase = ResourcePhase.CREATED
        return value

    def get(self) -> Optional[T]:
        return self._value if self._phase is ResourcePhase.CREATED else None

    def require(self) -> T:
        if self._phase is not ResourcePhase.CREATED:
            raise RuntimeError(f"{self._name}: resource is {self._phase.value}")
        return self._value  # type: ignore[return-value]

    def release(self) -> bool:
        if self._phase is not ResourcePhase.CREATED:
            return False
        value, destroy = self._value, self._destroy
        self._value = None
        self._destroy = None
        self._phase = ResourcePhase.DESTROYED
        if destroy is not None:
            destroy(value)  # type: ignore[arg-type]
        return True
