from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, TextIO

from hostfetch.detection.os_identity import resolver_from_context
from hostfetch.detection.process import CommandRunner, run_command
from hostfetch.registry.probe_registry import ProbeRegistry

from .orchestrator import DetectionOrchestrator
from .runtime_context import RuntimeContext
from .session_guard import SessionGuard


Renderer = Callable[[Dict[str, Any]], None]


class Kernel:
    """
    One detection run: background probes -> session guard -> OS identity ->
    probe results -> report.

    The context must be initialized by the caller and is finalized by the caller.
    """

    def __init__(self, probes: ProbeRegistry, *, run_command: CommandRunner = run_command):
        self._orchestrator = DetectionOrchestrator(probes)
        self._run_command = run_command

    @property
    def orchestrator(self) -> DetectionOrchestrator:
        return self._orchestrator

    def build_report(self, ctx: RuntimeContext) -> Dict[str, Any]:
        config = ctx.config
        timings: Dict[str, float] = {}

        t0 = time.perf_counter()
        identity = resolver_from_context(ctx, run_command=self._run_command).resolve()
        timings["os"] = (time.perf_counter() - t0) * 1000.0

        platform = ctx.platform
        report: Dict[str, Any] = {
            "os": identity.to_dict(),
            "host": {
                "host_name": platform.host_name,
                "user_name": platform.user_name,
                "kernel": f"{platform.system} {platform.release}".strip(),
                "arch": platform.machine,
            },
        }

        for probe_id in self._orchestrator.probes.probe_ids():
            t0 = time.perf_counter()
            report[probe_id] = self._orchestrator.result(ctx, probe_id)
            timings[probe_id] = (time.perf_counter() - t0) * 1000.0

        if config.display.show_errors:
            report["errors"] = self._orchestrator.errors(ctx)
        if config.display.stat:
            report["timings_ms"] = {k: round(v, 3) for k, v in timings.items()}
        return report

    def run(self, ctx: RuntimeContext, *, render: Optional[Renderer] = None, stream: Optional[TextIO] = None) -> Dict[str, Any]:
        self._orchestrator.maybe_start_background_probes(ctx)

        guard = SessionGuard(ctx, stream=stream)
        guard.install()
        try:
            report = self.build_report(ctx)
            result_doc = ctx.state.result_doc.get()
            if result_doc is not None:
                result_doc.update(report)
            if render is not None:
                render(report)
        finally:
            guard.uninstall()
        return report
