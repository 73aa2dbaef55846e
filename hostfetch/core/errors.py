from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class HostfetchError(Exception):
    code: str
    message: str
    data: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class LifecycleError(HostfetchError):
    pass


class ValidationError(HostfetchError):
    pass


class ProbeError(HostfetchError):
    pass
