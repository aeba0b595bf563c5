"""
Process diagnostics agent.

When enabled, ``kill -USR1 <pid>`` dumps the traceback of every thread.
"""

import faulthandler
import signal
import sys
from typing import IO

import structlog

from .config import MonitorSettings

logger = structlog.get_logger()


class MonitorAgent:
    def __init__(self, cfg: MonitorSettings):
        self.cfg = cfg
        self._file: IO | None = None
        self._registered = False

    def start(self) -> None:
        if not self.cfg.enable or not hasattr(signal, "SIGUSR1"):
            return
        if self.cfg.dump_file:
            self._file = open(self.cfg.dump_file, "a", encoding="utf-8")
        faulthandler.register(signal.SIGUSR1, file=self._file or sys.stderr, all_threads=True)
        self._registered = True
        logger.info("monitor_started", signal="SIGUSR1", dump_file=self.cfg.dump_file or "stderr")

    def close(self) -> None:
        if self._registered:
            faulthandler.unregister(signal.SIGUSR1)
            self._registered = False
        if self._file is not None:
            self._file.close()
            self._file = None
