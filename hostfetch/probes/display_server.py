from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from hostfetch.core.config import Configuration
from hostfetch.core.platform_info import PlatformInfo


def _wayland_socket(platform: PlatformInfo) -> Optional[Path]:
    name = platform.session_env.get("WAYLAND_DISPLAY")
    if platform.runtime_dir is None:
        return Path(name) if name and Path(name).is_absolute() else None
    if name:
        p = Path(name)
        return p if p.is_absolute() else platform.runtime_dir / p
    # Compositors that do not export WAYLAND_DISPLAY still create wayland-N sockets.
    try:
        candidates = sorted(p for p in platform.runtime_dir.iterdir() if p.name.startswith("wayland-") and not p.name.endswith(".lock"))
    except OSError:
        return None
    return candidates[0] if candidates else None


def run(config: Configuration, platform: PlatformInfo) -> Dict[str, Any]:
    """
    Figure out which display server the session talks to.
    output:
      - protocol: "wayland" | "x11" | "tty" | "unknown"
      - wayland_display / x11_display: string or None
      - session_type, desktop: from XDG_* variables ("" when unset)
    """
    env = platform.session_env
    wayland = _wayland_socket(platform)
    wayland_ok = wayland is not None and wayland.exists()
    x11_display = env.get("DISPLAY") or None
    session_type = env.get("XDG_SESSION_TYPE", "")

    if wayland_ok:
        protocol = "wayland"
    elif x11_display:
        protocol = "x11"
    elif session_type == "tty":
        protocol = "tty"
    else:
        protocol = "unknown"

    return {
        "protocol": protocol,
        "wayland_display": str(wayland) if wayland_ok else None,
        "x11_display": x11_display,
        "session_type": session_type,
        "desktop": env.get("XDG_CURRENT_DESKTOP") or env.get("XDG_SESSION_DESKTOP") or env.get("DESKTOP_SESSION", ""),
    }
