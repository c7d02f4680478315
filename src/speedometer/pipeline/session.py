from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from speedometer.io.registry import create_fix_source
from speedometer.io.sources import FixSource
from speedometer.speed_estimation.estimator import EstimatorConfig, FixSpeedEstimator
from speedometer.speed_estimation.smoothing import AdaptiveSpeedSmoother, SmootherConfig
from speedometer.trip.aggregator import TripAggregator, TripConfig
from speedometer.trip.state import TripSnapshot
from speedometer.utils.config import load_yaml, section
from speedometer.utils.types import AcquisitionError, Fix


logger = logging.getLogger("speedometer.pipeline.session")

_STOP = object()


@dataclass(frozen=True)
class PipelineConfig:
    estimator: EstimatorConfig
    smoothing: SmootherConfig
    trip: TripConfig
    source_backend: str = "simulated"
    source_params: Dict[str, Any] = field(default_factory=dict)
    max_queue: int = 0

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "PipelineConfig":
        src = section(d, "source")
        session = section(d, "session")
        max_queue = int(session.get("max_queue", 0))
        if max_queue < 0:
            raise ValueError("session.max_queue must be >= 0")
        return PipelineConfig(
            estimator=EstimatorConfig.from_dict(section(d, "estimator")),
            smoothing=SmootherConfig.from_dict(section(d, "smoothing")),
            trip=TripConfig.from_dict(section(d, "trip")),
            source_backend=str(src.get("backend", "simulated")),
            source_params=dict(src.get("params", {}) or {}),
            max_queue=max_queue,
        )

    @staticmethod
    def load(path: str) -> "PipelineConfig":
        return PipelineConfig.from_dict(load_yaml(path))


def build_aggregator(cfg: PipelineConfig) -> TripAggregator:
    return TripAggregator(
        cfg.trip,
        estimator=FixSpeedEstimator(cfg.estimator),
        smoother=AdaptiveSpeedSmoother(cfg.smoothing),
    )


class TrackingSession:
    """
    Connects one Fix Source to a TripAggregator.

    Fixes pushed by the source are queued and applied by a single worker
    thread in arrival order. With a bounded queue, fixes that arrive while it
    is full are dropped and counted.
    """

    def __init__(
        self,
        aggregator: TripAggregator,
        source: Optional[FixSource] = None,
        max_queue: int = 0,
    ) -> None:
        self._aggregator = aggregator
        self._source = source
        self._queue: "queue.Queue[Union[Fix, AcquisitionError, object]]" = queue.Queue(maxsize=max(0, int(max_queue)))
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._dropped = 0
        self._processed = 0

    @staticmethod
    def from_config(cfg: PipelineConfig, source: Optional[FixSource] = None) -> "TrackingSession":
        if source is None:
            source = create_fix_source(cfg.source_backend, cfg.source_params)
        return TrackingSession(build_aggregator(cfg), source=source, max_queue=cfg.max_queue)

    @property
    def aggregator(self) -> TripAggregator:
        return self._aggregator

    @property
    def dropped(self) -> int:
        return self._dropped

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._aggregator.start()
            self._worker = threading.Thread(target=self._drain, name="trip-worker", daemon=True)
            self._worker.start()
            if self._source is not None:
                self._source.start(self.push, self.push_error)
        logger.info("Tracking session started")

    def stop(self, timeout: float = 5.0) -> None:
        with self._lock:
            if self._source is not None:
                self._source.stop()
            # Gate first so nothing still queued is applied after stop.
            self._aggregator.stop()
            worker = self._worker
            self._worker = None
            if worker is not None:
                self._queue.put(_STOP)
                worker.join(timeout=timeout)
                if worker.is_alive():
                    logger.warning("Trip worker did not exit within %.1f s", timeout)
            self._clear_queue()
        logger.info("Tracking session stopped (processed=%d dropped=%d)", self._processed, self._dropped)

    def reset(self) -> None:
        self.stop()
        self._aggregator.reset()
        self._dropped = 0
        self._processed = 0

    def push(self, fix: Fix) -> None:
        if self._worker is None:
            return
        try:
            self._queue.put_nowait(fix)
        except queue.Full:
            self._dropped += 1
            logger.debug("Fix queue full; dropping fix t=%.0f", fix.timestamp_ms)

    def push_error(self, error: AcquisitionError) -> None:
        if self._worker is None:
            return
        try:
            self._queue.put_nowait(error)
        except queue.Full:
            # Status only; the aggregator can still be told directly.
            self._aggregator.report_error(error)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait until every queued item has been applied."""
        if timeout is None:
            self._queue.join()
            return
        done = threading.Event()

        def _wait() -> None:
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        done.wait(timeout)

    def snapshot(self) -> TripSnapshot:
        return self._aggregator.snapshot()

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, AcquisitionError):
                    self._aggregator.report_error(item)
                elif self._aggregator.accept(item):  # type: ignore[arg-type]
                    self._processed += 1
            except Exception:
                logger.exception("Failed to apply queued item")
            finally:
                self._queue.task_done()

    def _clear_queue(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return
            self._queue.task_done()
