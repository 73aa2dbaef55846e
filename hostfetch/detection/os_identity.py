from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from hostfetch.core.identity import IdentityRecord
from hostfetch.trace.trace_emitter import TraceEmitter, null_trace

from .os_vendor import apply_debian_version, apply_ubuntu_flavour, detect_debian_derived
from .process import CommandRunner, run_command
from .prop_file import LSB_RELEASE, OS_RELEASE, Dialect


@dataclass(frozen=True)
class SourcePaths:
    """
    Well-known identity sources, relative to a target root ("/" on a normal host).
    """

    root: Path = Path("/")

    def _p(self, rel: str) -> Path:
        return self.root / rel

    @property
    def lsb_release(self) -> Path:
        return self._p("etc/lsb-release")

    @property
    def os_release(self) -> Path:
        return self._p("etc/os-release")

    @property
    def usr_os_release(self) -> Path:
        return self._p("usr/lib/os-release")

    @property
    def bedrock_release(self) -> Path:
        return self._p("bedrock/etc/bedrock-release")

    @property
    def bedrock_os_release(self) -> Path:
        return self._p("bedrock/etc/os-release")

    @property
    def debian_version(self) -> Path:
        return self._p("etc/debian_version")

    @property
    def pveversion(self) -> Path:
        return self._p("usr/bin/pveversion")


class OSIdentityResolver:
    """
    Cascade over identity sources, then vendor post-processing.

    Order:
    - custom os-release path (when configured; replaces the cascade)
    - bedrock escape hatch
    - lsb-release (MX short-circuit, "rolling" version cleared)
    - /etc/os-release (stop when id/name/pretty_name are all set)
    - /usr/lib/os-release (last resort, partial results accepted)

    Parsers only fill empty fields, so earlier sources win.
    """

    def __init__(
        self,
        paths: Optional[SourcePaths] = None,
        *,
        escape_bedrock: bool = True,
        os_release_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        run_command: CommandRunner = run_command,
        trace: Optional[TraceEmitter] = None,
    ):
        self._paths = paths or SourcePaths()
        self._escape_bedrock = escape_bedrock
        self._os_release_path = os_release_path
        self._environ = environ if environ is not None else os.environ
        self._run_command = run_command
        self._trace = trace or null_trace()

    @property
    def paths(self) -> SourcePaths:
        return self._paths

    def _parse(self, dialect: Dialect, path: Path, record: IdentityRecord) -> bool:
        ok = dialect.parse(path, record)
        if ok:
            self._trace.emit("source_parsed", detector="os", data={"path": str(path), "dialect": dialect.name})
        else:
            self._trace.emit("source_missing", detector="os", data={"path": str(path), "dialect": dialect.name})
        return ok

    def run_cascade(self, record: IdentityRecord) -> str:
        """
        Fill `record` from the source files. Returns the name of the step that finished the cascade.
        """
        paths = self._paths

        if self._os_release_path is not None:
            self._parse(OS_RELEASE, self._os_release_path, record)
            self._parse(LSB_RELEASE, self._os_release_path, record)
            return "custom"

        if self._escape_bedrock and self._parse(OS_RELEASE, paths.bedrock_release, record):
            if not record.id:
                record.id = "bedrock"
            if not record.name:
                record.name = "Bedrock"
            if not record.pretty_name:
                record.pretty_name = "Bedrock Linux"

            if self._parse(OS_RELEASE, paths.bedrock_os_release, record) and record.all_relevant_values_set():
                return "bedrock"

        if self._parse(LSB_RELEASE, paths.lsb_release, record):
            # MX ships a Debian os-release; lsb-release is the only reliable source.
            if record.id.lower() == "mx":
                record.name = "MX"
                record.id_like = "debian"
                self._trace.emit("override_applied", detector="os", message="MX Linux")
                return "lsb-release"

            if record.version == "rolling":
                record.version = ""

        if self._parse(OS_RELEASE, paths.os_release, record) and record.all_relevant_values_set():
            return "os-release"

        self._parse(OS_RELEASE, paths.usr_os_release, record)
        return "usr-os-release"

    def post_process(self, record: IdentityRecord) -> None:
        os_id = record.id.lower()
        if os_id == "ubuntu":
            apply_ubuntu_flavour(record, self._environ, self._trace)
        elif os_id == "debian":
            derived = detect_debian_derived(
                record,
                pveversion_path=self._paths.pveversion,
                run_command=self._run_command,
                trace=self._trace,
            )
            if not derived:
                apply_debian_version(record, self._paths.debian_version, self._trace)

    def resolve(self) -> IdentityRecord:
        record = IdentityRecord()
        step = self.run_cascade(record)
        self.post_process(record)
        self._trace.emit(
            "resolution_finished",
            detector="os",
            data={"step": step, "usable": record.all_relevant_values_set(), "identity": record.to_dict()},
        )
        return record


def resolver_from_context(ctx, *, run_command: CommandRunner = run_command) -> OSIdentityResolver:
    """
    Build a resolver from an initialized RuntimeContext's configuration.
    """
    general = ctx.config.general
    return OSIdentityResolver(
        SourcePaths(Path(general.target_root)),
        escape_bedrock=general.escape_bedrock,
        os_release_path=Path(general.os_release_path) if general.os_release_path else None,
        environ=ctx.environ,
        run_command=run_command,
        trace=ctx.trace,
    )


def detect_os(ctx) -> IdentityRecord:
    return resolver_from_context(ctx).resolve()
