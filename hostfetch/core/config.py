from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional, TextIO


LIBRARY_NAMES = (
    "pci",
    "vulkan",
    "wayland",
    "xcb_randr",
    "xcb",
    "xrandr",
    "x11",
    "gio",
    "dconf",
    "dbus",
    "xfconf",
    "sqlite3",
    "rpm",
    "imagemagick",
    "z",
    "chafa",
    "egl",
    "glx",
    "osmesa",
    "opencl",
    "freetype",
    "pulse",
    "nm",
    "ddcutil",
)


@dataclass(frozen=True)
class DisplayOptions:
    key_value_separator: str = ": "
    color_keys: str = ""
    color_title: str = ""
    bright_color: bool = True
    show_errors: bool = False
    pipe: bool = False
    disable_linewrap: bool = True
    hide_cursor: bool = True
    stat: bool = False
    no_buffer: bool = False
    key_width: int = 0


@dataclass(frozen=True)
class UnitOptions:
    binary_prefix: str = "iec"  # iec|si|jedec
    size_ndigits: int = 2
    size_max_prefix: int = 255
    temperature_unit: str = "celsius"  # celsius|fahrenheit|kelvin
    percent_type: int = 1
    percent_ndigits: int = 0


@dataclass(frozen=True)
class BarOptions:
    char_elapsed: str = "■"
    char_total: str = "-"
    width: int = 10
    border: bool = True


@dataclass(frozen=True)
class GeneralOptions:
    multithreading: bool = True
    escape_bedrock: bool = True
    os_release_path: Optional[str] = None
    target_root: str = "/"
    probe_wait_seconds: float = 1.0


@dataclass(frozen=True)
class Configuration:
    """
    User-facing settings. Never mutated after RuntimeContext.initialize() returns;
    probe threads read it concurrently.
    """

    display: DisplayOptions = field(default_factory=DisplayOptions)
    units: UnitOptions = field(default_factory=UnitOptions)
    bar: BarOptions = field(default_factory=BarOptions)
    general: GeneralOptions = field(default_factory=GeneralOptions)
    # Empty path means "let the loader pick the system library".
    libraries: Dict[str, str] = field(default_factory=lambda: {name: "" for name in LIBRARY_NAMES})

    def library_path(self, name: str) -> str:
        return self.libraries.get(name, "")


def _isatty(stream: Optional[TextIO]) -> bool:
    try:
        return bool(stream is not None and stream.isatty())
    except (AttributeError, ValueError):
        return False


def default_configuration(*, stdout: Optional[TextIO] = None, debug: bool = False) -> Configuration:
    """
    Documented defaults. `pipe` follows whether stdout is a terminal; line wrap and cursor
    are only touched on a terminal and never in debug mode.
    """
    pipe = not _isatty(stdout if stdout is not None else sys.stdout)
    display = DisplayOptions(
        pipe=pipe,
        disable_linewrap=(not pipe) and not debug,
        hide_cursor=(not pipe) and not debug,
    )
    return Configuration(display=display)


def _merge_section(current: Any, overrides: Dict[str, Any]) -> Any:
    known = {f.name for f in fields(current)}
    return replace(current, **{k: v for k, v in overrides.items() if k in known})


def apply_document(config: Configuration, doc: Dict[str, Any]) -> Configuration:
    """
    Overlay a validated configuration document on top of `config`.
    """
    out = config
    for section in ("display", "units", "bar", "general"):
        overrides = doc.get(section)
        if isinstance(overrides, dict) and overrides:
            out = replace(out, **{section: _merge_section(getattr(out, section), overrides)})

    libs = doc.get("libraries")
    if isinstance(libs, dict) and libs:
        merged = dict(out.libraries)
        merged.update({k: str(v) for k, v in libs.items() if k in merged})
        out = replace(out, libraries=merged)
    return out
