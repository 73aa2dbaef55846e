from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Tuple

from hostfetch.core.identity import IdentityRecord
from hostfetch.trace.trace_emitter import TraceEmitter

from .process import CommandRunner


# (keywords, name, id). Order matters: the first hit wins.
UBUNTU_FLAVOURS: Tuple[Tuple[Tuple[str, ...], str, str], ...] = (
    (("kde", "plasma"), "Kubuntu", "kubuntu"),
    (("xfce", "xubuntu"), "Xubuntu", "xubuntu"),
    (("lxde", "lubuntu"), "Lubuntu", "lubuntu"),
    (("budgie",), "Ubuntu Budgie", "ubuntu-budgie"),
    (("cinnamon",), "Ubuntu Cinnamon", "ubuntu-cinnamon"),
    (("mate",), "Ubuntu MATE", "ubuntu-mate"),
    (("studio",), "Ubuntu Studio", "ubuntu-studio"),
    (("sway",), "Ubuntu Sway", "ubuntu-sway"),
    (("touch",), "Ubuntu Touch", "ubuntu-touch"),
)


def apply_ubuntu_flavour(record: IdentityRecord, environ: Mapping[str, str], trace: TraceEmitter) -> Optional[str]:
    """
    Rewrite an ubuntu identity into its official flavour, guessed from XDG_CONFIG_DIRS.

    Returns the flavour id, or None when nothing matched.
    """
    config_dirs = environ.get("XDG_CONFIG_DIRS") or ""
    if not config_dirs:
        return None

    for keywords, name, flavour_id in UBUNTU_FLAVOURS:
        if any(k in config_dirs for k in keywords):
            record.name = name
            record.pretty_name = name
            record.id = flavour_id
            record.id_like = "ubuntu"
            trace.emit(
                "override_applied",
                detector="os",
                message="Ubuntu flavour",
                data={"id": flavour_id, "xdg_config_dirs": config_dirs},
            )
            return flavour_id
    return None


def _word_after_first_blank(text: str) -> str:
    # "Armbian 24.2.1 bookworm" -> "24.2.1"
    start = text.find(" ") + 1
    end = text.find(" ", start)
    if end == -1:
        end = len(text)
    return text[start:end]


def pve_version_from_output(output: str) -> str:
    # "pve-manager/8.2.2/9355359cd7afbae4 (running kernel: 6.8.4-2-pve)" -> "8.2.2"
    last = output.rfind("/")
    if last != -1:
        output = output[:last]
    first = output.find("/")
    if first != -1:
        output = output[first + 1 :]
    return output


def detect_debian_derived(
    record: IdentityRecord,
    *,
    pveversion_path: Path,
    run_command: CommandRunner,
    trace: TraceEmitter,
) -> bool:
    """
    Recognize distributions that ship a plain Debian os-release.

    A pveversion binary that cannot be run counts as "not detected".
    """
    if record.pretty_name.startswith("Armbian "):
        record.name = "Armbian"
        record.id = "armbian"
        record.id_like = "debian"
        record.version_id = _word_after_first_blank(record.pretty_name)
        trace.emit("override_applied", detector="os", message="Armbian", data={"version_id": record.version_id})
        return True

    if pveversion_path.is_file():
        output = run_command([str(pveversion_path)])
        if output is None:
            trace.emit(
                "command_failed",
                detector="os",
                message="pveversion failed; treating as plain Debian",
                data={"path": str(pveversion_path)},
            )
            return False
        version_id = pve_version_from_output(output.strip())
        record.id = "pve"
        record.id_like = "debian"
        record.name = "Proxmox VE"
        record.version_id = version_id
        record.pretty_name = f"Proxmox VE {version_id}"
        trace.emit("override_applied", detector="os", message="Proxmox VE", data={"version_id": version_id})
        return True

    return False


def apply_debian_version(record: IdentityRecord, debian_version_path: Path, trace: TraceEmitter) -> bool:
    try:
        text = debian_version_path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        trace.emit("source_missing", detector="os", data={"path": str(debian_version_path)})
        return False
    version = text.rstrip()
    if not version:
        return False
    record.version = version
    record.version_id = version
    return True
