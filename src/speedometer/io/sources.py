from __future__ import annotations

import json
import logging
import threading
import time
from typing import Callable, Iterable, List, Optional, Protocol

from speedometer.utils.types import AcquisitionError, Fix, fix_from_dict

FixCallback = Callable[[Fix], None]
ErrorCallback = Callable[[AcquisitionError], None]


logger = logging.getLogger("speedometer.io.sources")


class FixSource(Protocol):
    def start(self, on_fix: FixCallback, on_error: Optional[ErrorCallback] = None) -> None:
        ...

    def stop(self) -> None:
        ...


class ThreadedFixSource:
    """Base for sources that push fixes from a background thread."""

    name = "fix-source"

    def __init__(self) -> None:
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self, on_fix: FixCallback, on_error: Optional[ErrorCallback] = None) -> None:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError(f"{self.name} already started")
        self._stop_evt.clear()
        self._thread = threading.Thread(target=self._worker, args=(on_fix, on_error), name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_evt.set()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout=5.0)
        self._thread = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the source runs out of fixes. Returns False on timeout."""
        t = self._thread
        if t is None:
            return True
        t.join(timeout=timeout)
        return not t.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop_evt.is_set()

    def _sleep(self, seconds: float) -> bool:
        if seconds <= 0.0:
            return not self._stop_evt.is_set()
        return not self._stop_evt.wait(seconds)

    def _worker(self, on_fix: FixCallback, on_error: Optional[ErrorCallback]) -> None:
        try:
            self._run(on_fix, on_error)
        except Exception:
            logger.exception("%s failed", self.name)
            if on_error is not None:
                on_error(AcquisitionError(code=0, message=f"{self.name} failed"))

    def _run(self, on_fix: FixCallback, on_error: Optional[ErrorCallback]) -> None:
        raise NotImplementedError


class ReplayFixSource(ThreadedFixSource):
    """
    Replays recorded fixes through the push-callback contract.

    With ``realtime=True`` the gaps between fix timestamps are reproduced
    (divided by ``time_scale``); otherwise fixes are pushed back to back.
    """

    name = "replay-source"

    def __init__(self, fixes: Iterable[Fix], realtime: bool = False, time_scale: float = 1.0) -> None:
        super().__init__()
        self._fixes: List[Fix] = list(fixes)
        self._realtime = bool(realtime)
        self._time_scale = max(1e-6, float(time_scale))

    def __len__(self) -> int:
        return len(self._fixes)

    @staticmethod
    def from_jsonl(path: str, realtime: bool = False, time_scale: float = 1.0) -> "ReplayFixSource":
        fixes: List[Fix] = []
        with open(path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("Skipping invalid JSON at %s:%d", path, lineno)
                    continue
                fix = fix_from_dict(obj)
                if fix is None:
                    logger.debug("Skipping malformed fix at %s:%d", path, lineno)
                    continue
                fixes.append(fix)
        logger.info("Loaded %d fixes from %s", len(fixes), path)
        return ReplayFixSource(fixes, realtime=realtime, time_scale=time_scale)

    def _run(self, on_fix: FixCallback, on_error: Optional[ErrorCallback]) -> None:
        prev_ms: Optional[float] = None
        t0 = time.monotonic()
        elapsed_ms = 0.0
        for fix in self._fixes:
            if self._stop_evt.is_set():
                break
            if self._realtime and prev_ms is not None:
                elapsed_ms += max(0.0, float(fix.timestamp_ms) - prev_ms)
                due = t0 + elapsed_ms / 1000.0 / self._time_scale
                if not self._sleep(due - time.monotonic()):
                    break
            prev_ms = float(fix.timestamp_ms)
            on_fix(fix)
