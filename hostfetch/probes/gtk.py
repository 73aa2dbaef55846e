from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List

from hostfetch.core.config import Configuration
from hostfetch.core.platform_info import PlatformInfo
from hostfetch.detection.prop_file import parse_prop_file_values


@dataclass
class GtkSettings:
    theme: str = ""
    icons: str = ""
    font: str = ""
    cursor: str = ""


GTK_QUERIES = (
    ("gtk-theme-name =", "theme"),
    ("gtk-icon-theme-name =", "icons"),
    ("gtk-font-name =", "font"),
    ("gtk-cursor-theme-name =", "cursor"),
)


def _settings_files(platform: PlatformInfo, version: int) -> List[Path]:
    if version == 2:
        files = [platform.home_dir / ".gtkrc-2.0", platform.config_home / "gtk-2.0" / "gtkrc"]
        files.extend(d / "gtk-2.0" / "gtkrc" for d in platform.config_dirs)
        files.append(Path("/etc/gtk-2.0/gtkrc"))
        return files
    name = f"gtk-{version}.0"
    files = [platform.config_home / name / "settings.ini"]
    files.extend(d / name / "settings.ini" for d in platform.config_dirs)
    files.append(Path("/etc") / name / "settings.ini")
    return files


def detect_gtk(platform: PlatformInfo, version: int) -> Dict[str, Any]:
    """
    User settings first, then system-wide ones; a value found earlier is kept.
    GTK_THEME overrides the theme of GTK 3 and 4.
    """
    settings = GtkSettings()
    if version >= 3:
        settings.theme = platform.session_env.get("GTK_THEME", "")

    sources: List[str] = []
    for p in _settings_files(platform, version):
        if parse_prop_file_values(p, GTK_QUERIES, settings):
            sources.append(str(p))
        if settings.theme and settings.icons and settings.font and settings.cursor:
            break

    out: Dict[str, Any] = asdict(settings)
    out["version"] = version
    out["sources"] = sources
    return out


def gtk2_run(config: Configuration, platform: PlatformInfo) -> Dict[str, Any]:
    return detect_gtk(platform, 2)


def gtk3_run(config: Configuration, platform: PlatformInfo) -> Dict[str, Any]:
    return detect_gtk(platform, 3)


def gtk4_run(config: Configuration, platform: PlatformInfo) -> Dict[str, Any]:
    return detect_gtk(platform, 4)
