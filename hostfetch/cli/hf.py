from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from hostfetch.bootstrap_probes import build_probe_registry
from hostfetch.config_store import ConfigStore
from hostfetch.core.errors import HostfetchError
from hostfetch.core.kernel import Kernel
from hostfetch.core.platform_info import list_features
from hostfetch.core.runtime_context import RuntimeContext
from hostfetch.detection.os_identity import OSIdentityResolver, SourcePaths
from hostfetch.report import render_text
from hostfetch.trace.replay import Replay


def _format_cli_error(e: Exception) -> str:
    """
    Print-friendly error formatting for CLI commands.
    - Always includes code/message (via __str__) when it's a HostfetchError
    - Includes structured `data` payload when present (e.g. schema errors)
    """
    if isinstance(e, HostfetchError) and isinstance(e.data, dict) and e.data:
        return str(e) + "\n" + json.dumps(e.data, ensure_ascii=False, indent=2)
    return str(e)


def _general_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    general: Dict[str, Any] = {}
    if getattr(args, "root", None):
        general["target_root"] = args.root
    if getattr(args, "os_release", None):
        general["os_release_path"] = args.os_release
    if getattr(args, "no_multithreading", False):
        general["multithreading"] = False
    if getattr(args, "no_escape_bedrock", False):
        general["escape_bedrock"] = False
    return {"general": general} if general else {}


def cmd_detect(args: argparse.Namespace) -> int:
    as_json = args.format == "json"
    ctx = RuntimeContext(
        run_id=args.run_id,
        trace_path=Path(args.trace) if args.trace else None,
    )
    ctx.initialize(
        Path(args.config).expanduser() if args.config else None,
        overrides=_general_overrides(args),
        result_document=as_json,
    )
    try:
        kernel = Kernel(build_probe_registry())

        def _render(report: Dict[str, Any]) -> None:
            if as_json:
                doc = ctx.state.result_doc.require()
                print(json.dumps(doc, ensure_ascii=False, indent=2))
            else:
                sys.stdout.write(render_text(report, ctx.config.display))

        kernel.run(ctx, render=_render)
    finally:
        ctx.finalize()
    return 0


def cmd_os(args: argparse.Namespace) -> int:
    resolver = OSIdentityResolver(
        SourcePaths(Path(args.root)) if args.root else SourcePaths(),
        escape_bedrock=not args.no_escape_bedrock,
        os_release_path=Path(args.os_release) if args.os_release else None,
    )
    record = resolver.resolve()
    if args.json:
        print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
    else:
        for k, v in record.to_dict().items():
            if v:
                print(f"{k}={v}")
    return 0


def cmd_list_probes(args: argparse.Namespace) -> int:
    reg = build_probe_registry()
    probes = reg.list_probes()
    if args.json:
        print(json.dumps(probes, ensure_ascii=False, indent=2))
    else:
        for p in probes:
            print("{probe_id}: {title}".format(**p))
    return 0


def cmd_list_features(_args: argparse.Namespace) -> int:
    for f in list_features():
        print(f)
    return 0


def cmd_check_config(args: argparse.Namespace) -> int:
    store = ConfigStore()
    store.load(Path(args.config).expanduser())
    print("OK")
    return 0


def cmd_show_trace(args: argparse.Namespace) -> int:
    replay = Replay(Path(args.trace))
    events = replay.select(event_type=args.event_type, detector=args.detector, tail=args.tail)

    if args.pretty:
        for e in events:
            print(json.dumps(e, ensure_ascii=False, indent=2))
    else:
        for e in events:
            print(json.dumps(e, ensure_ascii=False))
    return 0


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--root", help="Target root that identity files are read under (default: /)")
    p.add_argument("--os-release", help="Read identity from this single os-release style file only")
    p.add_argument("--no-escape-bedrock", action="store_true", help="Do not look through a Bedrock Linux stratum")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="hf", description="hostfetch: OS identity and desktop facts")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_detect = sub.add_parser("detect", help="Run every detector and print the report")
    p_detect.add_argument("--config", help="Configuration document (YAML or JSON)")
    p_detect.add_argument("--format", default="text", choices=["text", "json"], help="Output format (default: text)")
    _add_source_args(p_detect)
    p_detect.add_argument("--no-multithreading", action="store_true", help="Run probes inline instead of in background threads")
    p_detect.add_argument("--trace", help="Trace output path (jsonl)")
    p_detect.add_argument("--run-id", default="run_cli", help="Run ID for trace correlation")
    p_detect.set_defaults(func=cmd_detect)

    p_os = sub.add_parser("os", help="Resolve the OS identity only")
    _add_source_args(p_os)
    p_os.add_argument("--json", action="store_true", help="Output JSON")
    p_os.set_defaults(func=cmd_os)

    p_list_probes = sub.add_parser("list-probes", help="List background probes")
    p_list_probes.add_argument("--json", action="store_true", help="Output JSON")
    p_list_probes.set_defaults(func=cmd_list_probes)

    p_features = sub.add_parser("list-features", help="List capabilities available in this environment")
    p_features.set_defaults(func=cmd_list_features)

    p_check = sub.add_parser("check-config", help="Validate a configuration document")
    p_check.add_argument("--config", required=True, help="Configuration document (YAML or JSON)")
    p_check.set_defaults(func=cmd_check_config)

    p_show_trace = sub.add_parser("show-trace", help="Show trace events from a JSONL file")
    p_show_trace.add_argument("--trace", required=True, help="Trace path (jsonl)")
    p_show_trace.add_argument("--event-type", help="Filter by event_type")
    p_show_trace.add_argument("--detector", help="Filter by detector (e.g. os, gtk3)")
    p_show_trace.add_argument("--tail", type=int, help="Show only last N events")
    p_show_trace.add_argument("--pretty", action="store_true", help="Pretty-print each event as JSON")
    p_show_trace.set_defaults(func=cmd_show_trace)

    ns = parser.parse_args(argv)
    try:
        return int(ns.func(ns))
    except Exception as e:  # noqa: BLE001
        print(_format_cli_error(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
