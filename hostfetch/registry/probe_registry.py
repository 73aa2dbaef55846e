from __future__ import annotations

from typing import Any, Callable

from hostfetch.core.config import Configuration
from hostfetch.core.platform_info import PlatformInfo


ProbeFunc = Callable[[Configuration, PlatformInfo], dict[str, Any]]


class ProbeRegistry:
    """
    Registry for background probes and their metadata.
    """

    def __init__(self) -> None:
        self._defs: dict[str, dict[str, Any]] = {}
        self._impls: dict[str, ProbeFunc] = {}

    def register(self, probe_def: dict[str, Any], impl: ProbeFunc) -> None:
        probe_id = probe_def["probe_id"]
        if probe_id in self._defs:
            raise ValueError(f"Duplicate probe_id: {probe_id}")
        self._defs[probe_id] = probe_def
        self._impls[probe_id] = impl

    def get(self, probe_id: str) -> dict[str, Any] | None:
        return self._defs.get(probe_id)

    def call(self, probe_id: str, config: Configuration, platform: PlatformInfo) -> dict[str, Any]:
        impl = self._impls.get(probe_id)
        if impl is None:
            raise KeyError(probe_id)
        return impl(config, platform)

    def probe_ids(self) -> list[str]:
        return list(self._defs.keys())

    def list_probes(self) -> list[dict[str, Any]]:
        return [self._defs[k] for k in sorted(self._defs.keys())]
