from __future__ import annotations

import configparser
from pathlib import Path
from typing import Any, Dict, List, Optional

from hostfetch.core.config import Configuration
from hostfetch.core.platform_info import PlatformInfo


def _read_ini(path: Path) -> Optional[configparser.ConfigParser]:
    cp = configparser.ConfigParser(interpolation=None, strict=False)
    cp.optionxform = str  # type: ignore[assignment]
    try:
        with path.open("r", encoding="utf-8", errors="replace") as f:
            cp.read_file(f)
    except (OSError, configparser.Error):
        return None
    return cp


def _fill(out: Dict[str, Any], key: str, cp: configparser.ConfigParser, section: str, option: str) -> None:
    if out.get(key):
        return
    value = cp.get(section, option, fallback="").strip()
    if value:
        out[key] = value


def run(config: Configuration, platform: PlatformInfo) -> Dict[str, Any]:
    """
    Qt appearance from KDE's kdeglobals, or from qt5ct/qt6ct when selected via
    QT_QPA_PLATFORMTHEME.
    output:
      - widget_style, color_scheme, icons, font: "" when unknown
      - sources: files that were read
    """
    out: Dict[str, Any] = {"widget_style": "", "color_scheme": "", "icons": "", "font": ""}
    sources: List[str] = []

    platform_theme = platform.session_env.get("QT_QPA_PLATFORMTHEME", "")
    if platform_theme in ("qt5ct", "qt6ct"):
        path = platform.config_home / platform_theme / f"{platform_theme}.conf"
        cp = _read_ini(path)
        if cp is not None:
            sources.append(str(path))
            _fill(out, "widget_style", cp, "Appearance", "style")
            _fill(out, "icons", cp, "Appearance", "icon_theme")
            _fill(out, "color_scheme", cp, "Appearance", "color_scheme_path")
            _fill(out, "font", cp, "Fonts", "general")

    for d in (platform.config_home, *platform.config_dirs):
        path = d / "kdeglobals"
        cp = _read_ini(path)
        if cp is None:
            continue
        sources.append(str(path))
        _fill(out, "widget_style", cp, "KDE", "widgetStyle")
        _fill(out, "widget_style", cp, "General", "widgetStyle")
        _fill(out, "color_scheme", cp, "General", "ColorScheme")
        _fill(out, "icons", cp, "Icons", "Theme")
        _fill(out, "font", cp, "General", "font")

    out["sources"] = sources
    return out
