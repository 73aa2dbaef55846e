from __future__ import annotations

import os
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, TextIO

from hostfetch.trace.trace_emitter import TraceEmitter
from hostfetch.trace.trace_store_jsonl import TraceStoreJSONL

from .config import Configuration, apply_document, default_configuration
from .errors import LifecycleError
from .owned import OwnedResource
from .platform_info import PlatformInfo, detect_platform


class ContextPhase(str, Enum):
    NEW = "new"
    READY = "ready"
    FINALIZED = "finalized"


@dataclass
class State:
    """
    Facts derived during a run. Each background probe owns exactly one entry of
    `probes`; nothing else writes there.
    """

    logo_width: int = 0
    logo_height: int = 0
    keys_height: int = 0
    platform: OwnedResource[PlatformInfo] = field(default_factory=lambda: OwnedResource("platform"))
    config_doc: OwnedResource[Dict[str, Any]] = field(default_factory=lambda: OwnedResource("config_doc"))
    result_doc: OwnedResource[Dict[str, Any]] = field(default_factory=lambda: OwnedResource("result_doc"))
    probes: Dict[str, "Future[Dict[str, Any]]"] = field(default_factory=dict)

    def owned_resources(self) -> List[OwnedResource[Any]]:
        # Release order: reverse of creation.
        return [self.result_doc, self.config_doc, self.platform]


class RuntimeContext:
    """
    One per process run. Constructed explicitly and passed to every component.

    Lifecycle:
    - initialize() exactly once, before any detector or the orchestrator runs
    - finalize() once the run is over; repeated calls are no-ops
    - config/state access outside READY raises LifecycleError
    """

    def __init__(
        self,
        run_id: str = "run_cli",
        *,
        trace_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        stdout: Optional[TextIO] = None,
        debug: bool = False,
    ):
        self.run_id = run_id
        self.trace_path = trace_path
        self.environ: Mapping[str, str] = environ if environ is not None else os.environ
        self.debug = debug
        self._stdout = stdout
        self._phase = ContextPhase.NEW
        self._config: Optional[Configuration] = None
        self._state: Optional[State] = None
        self.trace = TraceEmitter(store=TraceStoreJSONL(trace_path) if trace_path is not None else None, run_id=run_id)

    @property
    def phase(self) -> ContextPhase:
        return self._phase

    @property
    def config(self) -> Configuration:
        if self._phase is not ContextPhase.READY or self._config is None:
            raise LifecycleError(code="context.not_ready", message=f"Configuration read in phase {self._phase.value}")
        return self._config

    @property
    def state(self) -> State:
        if self._phase is not ContextPhase.READY or self._state is None:
            raise LifecycleError(code="context.not_ready", message=f"State accessed in phase {self._phase.value}")
        return self._state

    @property
    def platform(self) -> PlatformInfo:
        return self.state.platform.require()

    def initialize(
        self,
        config_path: Optional[Path] = None,
        *,
        overrides: Optional[Dict[str, Any]] = None,
        result_document: bool = False,
    ) -> "RuntimeContext":
        """
        Zero the state, apply defaults, then the optional config document and
        command-line overrides (same shape as the document).
        """
        if self._phase is not ContextPhase.NEW:
            raise LifecycleError(code="context.reinitialized", message=f"initialize() called in phase {self._phase.value}")

        state = State()
        state.platform.create(detect_platform(self.environ))
        config = default_configuration(stdout=self._stdout, debug=self.debug)

        if config_path is not None:
            from hostfetch.config_store import ConfigStore  # local import to avoid cycles

            doc = ConfigStore().load(Path(config_path))
            state.config_doc.create(doc, dict.clear)
            config = apply_document(config, doc)
            self.trace.emit("config_loaded", data={"path": str(config_path)})

        if overrides:
            config = apply_document(config, overrides)

        if result_document:
            state.result_doc.create({}, dict.clear)

        self._state = state
        self._config = config
        self._phase = ContextPhase.READY
        self.trace.emit(
            "context_initialized",
            data={
                "multithreading": config.general.multithreading,
                "pipe": config.display.pipe,
                "config_doc": state.config_doc.present,
                "result_doc": state.result_doc.present,
            },
        )
        return self

    def finalize(self) -> None:
        if self._phase is ContextPhase.FINALIZED:
            return
        if self._phase is ContextPhase.NEW:
            raise LifecycleError(code="context.not_initialized", message="finalize() called before initialize()")

        state = self._state
        assert state is not None
        for res in state.owned_resources():
            if res.release():
                self.trace.emit("resource_released", data={"resource": res.name})

        # Probe threads keep their own futures; dropping ours does not stop them.
        state.probes.clear()
        self._config = None
        self._state = None
        self._phase = ContextPhase.FINALIZED
        self.trace.emit("context_finalized")

    def __enter__(self) -> "RuntimeContext":
        if self._phase is ContextPhase.NEW:
            self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finalize()
