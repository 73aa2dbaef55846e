from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from hostfetch.core.config import DisplayOptions


def _os_line(os_info: Dict[str, Any]) -> str:
    name = os_info.get("pretty_name") or os_info.get("name") or os_info.get("id") or ""
    version = os_info.get("version_id") or os_info.get("version") or ""
    if version and version not in name:
        name = f"{name} {version}".strip()
    return name


def _toolkit_line(info: Optional[Dict[str, Any]], *keys: str) -> str:
    if not info:
        return ""
    return ", ".join(str(info[k]) for k in keys if info.get(k))


def report_lines(report: Dict[str, Any]) -> List[Tuple[str, str]]:
    host = report.get("host") or {}
    lines: List[Tuple[str, str]] = [
        ("OS", _os_line(report.get("os") or {})),
        ("Host", str(host.get("host_name", ""))),
        ("Kernel", str(host.get("kernel", ""))),
        ("Arch", str(host.get("arch", ""))),
    ]

    ds = report.get("display_server")
    if ds:
        lines.append(("Display Server", str(ds.get("protocol", ""))))
        if ds.get("desktop"):
            lines.append(("DE", str(ds["desktop"])))
    for probe_id, label in (("qt", "Qt"), ("gtk2", "GTK2"), ("gtk3", "GTK3"), ("gtk4", "GTK4")):
        v = _toolkit_line(report.get(probe_id), "widget_style", "theme", "icons")
        if v:
            lines.append((label, v))

    for probe_id, err in (report.get("errors") or {}).items():
        lines.append((f"Error ({probe_id})", err))
    return [(k, v) for k, v in lines if v]


def render_text(report: Dict[str, Any], display: DisplayOptions) -> str:
    out: List[str] = []
    for key, value in report_lines(report):
        if display.key_width:
            key = key.ljust(display.key_width - len(display.key_value_separator))
        out.append(f"{key}{display.key_value_separator}{value}")
    return "\n".join(out) + "\n"
