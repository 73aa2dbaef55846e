from __future__ import annotations

import os
import platform
import signal
import socket
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host facts shared by several detectors. Immutable so that probe threads can keep
    a reference after the owning context has been finalized.
    """

    system: str
    release: str
    machine: str
    home_dir: Path
    config_home: Path
    config_dirs: Tuple[Path, ...]
    runtime_dir: Optional[Path]
    user_name: str
    host_name: str
    # Snapshot of the session variables probes look at.
    session_env: Dict[str, str]


SESSION_ENV_KEYS = (
    "WAYLAND_DISPLAY",
    "DISPLAY",
    "XDG_SESSION_TYPE",
    "XDG_CURRENT_DESKTOP",
    "XDG_SESSION_DESKTOP",
    "DESKTOP_SESSION",
    "GTK_THEME",
    "QT_QPA_PLATFORMTHEME",
    "KDE_FULL_SESSION",
)


def _split_dirs(value: str) -> Tuple[Path, ...]:
    return tuple(Path(p) for p in value.split(":") if p)


def detect_platform(environ: Optional[Mapping[str, str]] = None) -> PlatformInfo:
    env = environ if environ is not None else os.environ
    home = Path(env.get("HOME") or os.path.expanduser("~"))
    config_home = Path(env["XDG_CONFIG_HOME"]) if env.get("XDG_CONFIG_HOME") else home / ".config"
    config_dirs = _split_dirs(env.get("XDG_CONFIG_DIRS") or "/etc/xdg")
    runtime_dir = Path(env["XDG_RUNTIME_DIR"]) if env.get("XDG_RUNTIME_DIR") else None
    user = env.get("USER") or env.get("USERNAME") or env.get("LOGNAME") or ""
    uname = platform.uname()
    return PlatformInfo(
        system=uname.system,
        release=uname.release,
        machine=uname.machine,
        home_dir=home,
        config_home=config_home,
        config_dirs=config_dirs,
        runtime_dir=runtime_dir,
        user_name=user,
        host_name=socket.gethostname(),
        session_env={k: env[k] for k in SESSION_ENV_KEYS if env.get(k)},
    )


def supports_background_probes() -> bool:
    """
    Runtime capability for background probes. The toolkit and display-server probes
    only make sense on X11/Wayland style desktops.
    """
    if sys.platform in ("darwin", "win32", "cygwin"):
        return False
    if hasattr(sys, "getandroidapilevel"):
        return False
    return True


def list_features() -> List[str]:
    features: List[str] = []
    if supports_background_probes():
        features.append("threads")
    features.append("yaml")
    features.append("jsonschema")
    if hasattr(signal, "SIGQUIT"):
        features.append("sigquit")
    return features
