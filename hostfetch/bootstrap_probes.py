from __future__ import annotations

from hostfetch.probes.display_server import run as display_server
from hostfetch.probes.gtk import gtk2_run, gtk3_run, gtk4_run
from hostfetch.probes.qt import run as qt
from hostfetch.registry.probe_registry import ProbeRegistry


def build_probe_registry() -> ProbeRegistry:
    """
    Register the fixed set of background probes started at startup.
    """
    reg = ProbeRegistry()

    def reg_probe(probe_id: str, title: str, impl):
        reg.register(
            {
                "probe_id": probe_id,
                "version": "0.1.0",
                "title": title,
                "background": True,
            },
            impl,
        )

    reg_probe("display_server", "Connect to the display server", display_server)
    reg_probe("qt", "Qt / KDE appearance", qt)
    reg_probe("gtk2", "GTK 2 appearance", gtk2_run)
    reg_probe("gtk3", "GTK 3 appearance", gtk3_run)
    reg_probe("gtk4", "GTK 4 appearance", gtk4_run)

    return reg
