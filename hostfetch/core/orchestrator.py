from __future__ import annotations

import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, List, Optional

from hostfetch.registry.probe_registry import ProbeRegistry

from .config import Configuration
from .errors import ProbeError
from .platform_info import PlatformInfo, supports_background_probes
from .runtime_context import RuntimeContext


class DetectionOrchestrator:
    """
    Starts the background probes and hands out their results.

    - Probes run on daemon threads and are never joined here.
    - Each probe resolves only its own Future in State.probes.
    - Readers join lazily with a timeout; an unfinished probe reads as None
      ("not yet known"), never as "absent".
    """

    def __init__(self, probes: ProbeRegistry, *, capability: Callable[[], bool] = supports_background_probes):
        self._probes = probes
        self._capability = capability

    @property
    def probes(self) -> ProbeRegistry:
        return self._probes

    def _spawn(self, ctx: RuntimeContext, probe_id: str, config: Configuration, platform: PlatformInfo) -> "Future[Dict[str, Any]]":
        fut: "Future[Dict[str, Any]]" = Future()
        fut.set_running_or_notify_cancel()
        trace = ctx.trace

        def _main() -> None:
            try:
                out = self._probes.call(probe_id, config, platform)
            except Exception as e:  # noqa: BLE001
                trace.emit("probe_failed", detector=probe_id, data={"error": repr(e)})
                fut.set_exception(e)
                return
            trace.emit("probe_finished", detector=probe_id)
            fut.set_result(out)

        t = threading.Thread(target=_main, name=f"hostfetch-probe-{probe_id}", daemon=True)
        t.start()
        trace.emit("probe_started", detector=probe_id)
        return fut

    def maybe_start_background_probes(self, ctx: RuntimeContext) -> List[str]:
        """
        Start every registered probe when multithreading is enabled and supported.
        Returns the started probe ids (empty when nothing was started).
        """
        config = ctx.config
        state = ctx.state
        if not config.general.multithreading:
            ctx.trace.emit("probes_skipped", message="multithreading disabled")
            return []
        if not self._capability():
            ctx.trace.emit("probes_skipped", message="background probes not supported on this platform")
            return []

        platform = ctx.platform
        started: List[str] = []
        for probe_id in self._probes.probe_ids():
            if probe_id in state.probes:
                continue
            state.probes[probe_id] = self._spawn(ctx, probe_id, config, platform)
            started.append(probe_id)
        return started

    def _run_inline(self, ctx: RuntimeContext, probe_id: str) -> "Future[Dict[str, Any]]":
        fut: "Future[Dict[str, Any]]" = Future()
        fut.set_running_or_notify_cancel()
        try:
            fut.set_result(self._probes.call(probe_id, ctx.config, ctx.platform))
            ctx.trace.emit("probe_finished", detector=probe_id, message="inline")
        except Exception as e:  # noqa: BLE001
            ctx.trace.emit("probe_failed", detector=probe_id, data={"error": repr(e)})
            fut.set_exception(e)
        return fut

    def result(self, ctx: RuntimeContext, probe_id: str, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """
        Result of a probe, or None when it failed or is not finished within `timeout`
        (default: general.probe_wait_seconds). A probe that was never started runs
        inline on the caller's thread.
        """
        if self._probes.get(probe_id) is None:
            raise ProbeError(code="probe.unknown", message=f"Unknown probe: {probe_id}", data={"probe_id": probe_id})

        state = ctx.state
        fut = state.probes.get(probe_id)
        if fut is None:
            fut = self._run_inline(ctx, probe_id)
            state.probes[probe_id] = fut

        wait = ctx.config.general.probe_wait_seconds if timeout is None else timeout
        try:
            return fut.result(timeout=wait)
        except FutureTimeoutError:
            return None
        except Exception:  # noqa: BLE001
            # Failure already traced by the probe runner.
            return None

    def errors(self, ctx: RuntimeContext) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for probe_id, fut in ctx.state.probes.items():
            if fut.done() and fut.exception() is not None:
                out[probe_id] = repr(fut.exception())
        return out
