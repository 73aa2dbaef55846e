from __future__ import annotations

import signal
import sys
import threading
from typing import Any, Callable, Dict, Optional, TextIO

from .runtime_context import RuntimeContext


HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
DISABLE_LINEWRAP = "\033[?7l"
ENABLE_LINEWRAP = "\033[?7h"
RESET_ATTRIBUTES = "\033[m"

EXIT_SIGNALS = ("SIGINT", "SIGTERM", "SIGQUIT")


class SessionGuard:
    """
    Puts the terminal into report mode and guarantees it is put back, including
    when the process is interrupted by an exit signal.
    """

    def __init__(self, ctx: RuntimeContext, *, stream: Optional[TextIO] = None, exit_func: Callable[[int], Any] = sys.exit):
        self._ctx = ctx
        self._stream = stream if stream is not None else sys.stdout
        self._exit = exit_func
        self._disable_linewrap = False
        self._hide_cursor = False
        self._previous: Dict[int, Any] = {}
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def disable_linewrap(self) -> bool:
        return self._disable_linewrap

    @property
    def hide_cursor(self) -> bool:
        return self._hide_cursor

    def install(self) -> None:
        display = self._ctx.config.display
        machine_output = display.pipe or self._ctx.state.result_doc.present
        self._disable_linewrap = display.disable_linewrap and not machine_output
        self._hide_cursor = display.hide_cursor and not machine_output

        if display.no_buffer and hasattr(self._stream, "reconfigure"):
            self._stream.reconfigure(write_through=True)

        if threading.current_thread() is threading.main_thread():
            for name in EXIT_SIGNALS:
                signum = getattr(signal, name, None)
                if signum is None:
                    continue
                self._previous[signum] = signal.signal(signum, self._on_signal)

        if not machine_output:
            self._stream.write(RESET_ATTRIBUTES)
        if self._hide_cursor:
            self._stream.write(HIDE_CURSOR)
        if self._disable_linewrap:
            self._stream.write(DISABLE_LINEWRAP)
        self._stream.flush()
        self._installed = True

    def restore(self) -> None:
        if self._disable_linewrap:
            self._stream.write(ENABLE_LINEWRAP)
            self._disable_linewrap = False
        if self._hide_cursor:
            self._stream.write(SHOW_CURSOR)
            self._hide_cursor = False
        self._stream.flush()

    def uninstall(self) -> None:
        self.restore()
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()
        self._installed = False

    def _on_signal(self, signum: int, frame: Any) -> None:
        self.restore()
        self._exit(0)

    def __enter__(self) -> "SessionGuard":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()
