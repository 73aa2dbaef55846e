from .display_server import run as display_server_run
from .gtk import gtk2_run, gtk3_run, gtk4_run
from .qt import run as qt_run

__all__ = ["display_server_run", "gtk2_run", "gtk3_run", "gtk4_run", "qt_run"]
