from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import numpy as np

from speedometer.io.sources import ErrorCallback, FixCallback, ThreadedFixSource
from speedometer.utils.types import AcquisitionError, Fix

METERS_PER_DEG_LAT = 111000.0


@dataclass(frozen=True)
class SimulatorConfig:
    interval_s: float = 1.0
    step_s: float = 0.5
    start_lat_deg: float = 33.72926666666667
    start_lon_deg: float = 73.093135
    heading_deg: float = 45.0
    peak_kmh: float = 60.0
    floor_kmh: float = 5.0
    accel_step_kmh: float = 2.0
    decel_step_kmh: float = 1.0
    accuracy_min_m: float = 3.0
    accuracy_max_m: float = 5.0
    altitude_min_m: float = 100.0
    altitude_max_m: float = 150.0
    jitter: float = 0.1
    dropout_prob: float = 0.0
    time_scale: float = 1.0
    seed: Optional[int] = None

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SimulatorConfig":
        seed = d.get("seed")
        cfg = SimulatorConfig(
            interval_s=float(d.get("interval_s", 1.0)),
            step_s=float(d.get("step_s", 0.5)),
            start_lat_deg=float(d.get("start_lat_deg", 33.72926666666667)),
            start_lon_deg=float(d.get("start_lon_deg", 73.093135)),
            heading_deg=float(d.get("heading_deg", 45.0)),
            peak_kmh=float(d.get("peak_kmh", 60.0)),
            floor_kmh=float(d.get("floor_kmh", 5.0)),
            accel_step_kmh=float(d.get("accel_step_kmh", 2.0)),
            decel_step_kmh=float(d.get("decel_step_kmh", 1.0)),
            accuracy_min_m=float(d.get("accuracy_min_m", 3.0)),
            accuracy_max_m=float(d.get("accuracy_max_m", 5.0)),
            altitude_min_m=float(d.get("altitude_min_m", 100.0)),
            altitude_max_m=float(d.get("altitude_max_m", 150.0)),
            jitter=float(d.get("jitter", 0.1)),
            dropout_prob=float(d.get("dropout_prob", 0.0)),
            time_scale=float(d.get("time_scale", 1.0)),
            seed=int(seed) if seed is not None else None,
        )
        if cfg.interval_s <= 0.0 or cfg.step_s <= 0.0:
            raise ValueError("simulator.interval_s and step_s must be positive")
        if cfg.floor_kmh >= cfg.peak_kmh:
            raise ValueError("simulator.floor_kmh must be below peak_kmh")
        return cfg


class SimulatedFixSource(ThreadedFixSource):
    """
    Synthetic receiver for running without a device.

    Speed ramps up by ``accel_step_kmh`` per tick until ``peak_kmh``, then
    eases down by ``decel_step_kmh`` to ``floor_kmh`` and repeats. Fixes are
    ``interval_s`` apart; each reports that speed and moves ``step_s`` worth of
    it along the heading, with some positional jitter.
    """

    name = "simulated-source"

    def __init__(self, cfg: Optional[SimulatorConfig] = None) -> None:
        super().__init__()
        self._cfg = cfg or SimulatorConfig()
        self._rng = np.random.default_rng(self._cfg.seed)

    @property
    def config(self) -> SimulatorConfig:
        return self._cfg

    def generate(self, n: Optional[int] = None, start_ms: float = 0.0) -> Iterator[Fix]:
        cfg = self._cfg
        lat = float(cfg.start_lat_deg)
        lon = float(cfg.start_lon_deg)
        heading = math.radians(cfg.heading_deg)
        speed_kmh = 0.0
        accelerating = True
        i = 0
        while n is None or i < n:
            if accelerating:
                speed_kmh += cfg.accel_step_kmh
                if speed_kmh >= cfg.peak_kmh:
                    accelerating = False
            else:
                speed_kmh -= cfg.decel_step_kmh
                if speed_kmh <= cfg.floor_kmh:
                    accelerating = True

            v_mps = speed_kmh / 3.6
            step_m = v_mps * cfg.step_s
            jitter = 1.0 + cfg.jitter * float(self._rng.uniform(-0.5, 0.5))
            dn = step_m * math.cos(heading) * jitter
            de = step_m * math.sin(heading) * jitter
            lat += dn / METERS_PER_DEG_LAT
            lon += de / (METERS_PER_DEG_LAT * max(1e-6, math.cos(math.radians(lat))))

            yield Fix(
                latitude_deg=lat,
                longitude_deg=lon,
                timestamp_ms=float(start_ms) + i * cfg.interval_s * 1000.0,
                speed_mps=v_mps,
                accuracy_m=float(self._rng.uniform(cfg.accuracy_min_m, cfg.accuracy_max_m)),
                altitude_m=float(self._rng.uniform(cfg.altitude_min_m, cfg.altitude_max_m)),
            )
            i += 1

    def _run(self, on_fix: FixCallback, on_error: Optional[ErrorCallback]) -> None:
        period_s = self._cfg.interval_s / max(1e-6, self._cfg.time_scale)
        for fix in self.generate(start_ms=time.monotonic() * 1000.0):
            if self._stop_evt.is_set():
                break
            if self._cfg.dropout_prob > 0.0 and float(self._rng.random()) < self._cfg.dropout_prob:
                if on_error is not None:
                    on_error(AcquisitionError(code=AcquisitionError.POSITION_UNAVAILABLE, message="simulated dropout"))
            else:
                on_fix(fix)
            if not self._sleep(period_s):
                break
