from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from speedometer.geometry.geodesic import haversine_km
from speedometer.speed_estimation.units import mps_to_kmh
from speedometer.utils.types import Fix

EstimateMethod = Literal["reported", "finite_difference", "creep_floor", "none"]

logger = logging.getLogger("speedometer.speed_estimation.estimator")


@dataclass(frozen=True)
class EstimatorConfig:
    min_dt_s: float = 0.1
    max_dt_s: float = 15.0
    stale_after_s: float = 15.0
    min_movement_km: float = 0.00001
    max_speed_kmh: float = 300.0
    creep_min_dt_s: float = 0.3
    creep_min_movement_km: float = 0.000001
    creep_floor_kmh: float = 0.1

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "EstimatorConfig":
        fd = d.get("finite_difference", {}) or {}
        creep = d.get("creep", {}) or {}
        cfg = EstimatorConfig(
            min_dt_s=float(fd.get("min_dt_s", 0.1)),
            max_dt_s=float(fd.get("max_dt_s", 15.0)),
            stale_after_s=float(d.get("stale_after_s", 15.0)),
            min_movement_km=float(fd.get("min_movement_m", 0.01)) / 1000.0,
            max_speed_kmh=float(d.get("max_speed_kmh", 300.0)),
            creep_min_dt_s=float(creep.get("min_dt_s", 0.3)),
            creep_min_movement_km=float(creep.get("min_movement_m", 0.001)) / 1000.0,
            creep_floor_kmh=float(creep.get("floor_kmh", 0.1)),
        )
        if cfg.min_dt_s < 0.0 or cfg.max_dt_s <= cfg.min_dt_s:
            raise ValueError("finite_difference requires 0 <= min_dt_s < max_dt_s")
        if cfg.max_speed_kmh <= 0.0:
            raise ValueError("max_speed_kmh must be positive")
        return cfg


@dataclass(frozen=True)
class SpeedEstimate:
    speed_kmh: float
    method: EstimateMethod
    dt_s: Optional[float] = None
    distance_km: Optional[float] = None
    stale: bool = False


def reported_speed_kmh(fix: Fix) -> Optional[float]:
    v = fix.speed_mps
    if v is None:
        return None
    try:
        v = float(v)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v) or v <= 0.0:
        return None
    return mps_to_kmh(v)


class FixSpeedEstimator:
    """
    Derives an instantaneous speed candidate (km/h) for one fix.

    Strategies run in priority order and the first that yields a value wins:
    the speed reported by the receiver, a finite difference against the prior
    fix, and a small positive floor for slow creep. Anything else is 0.

    A prior fix older than ``stale_after_s`` is reported back as stale so the
    caller can drop it instead of reusing it as a baseline.
    """

    def __init__(self, cfg: Optional[EstimatorConfig] = None) -> None:
        self._cfg = cfg or EstimatorConfig()

    @property
    def config(self) -> EstimatorConfig:
        return self._cfg

    def estimate(self, fix: Fix, prior: Optional[Fix]) -> SpeedEstimate:
        dt_s: Optional[float] = None
        stale = False
        if prior is not None:
            dt_s = (float(fix.timestamp_ms) - float(prior.timestamp_ms)) / 1000.0
            stale = dt_s > self._cfg.stale_after_s

        v_reported = reported_speed_kmh(fix)
        if v_reported is not None:
            return SpeedEstimate(speed_kmh=v_reported, method="reported", dt_s=dt_s, stale=stale)

        if prior is None or dt_s is None or stale or dt_s > self._cfg.max_dt_s:
            return SpeedEstimate(speed_kmh=0.0, method="none", dt_s=dt_s, stale=stale)

        if dt_s <= self._cfg.min_dt_s:
            return SpeedEstimate(speed_kmh=0.0, method="none", dt_s=dt_s)

        dist_km = haversine_km(prior.latitude_deg, prior.longitude_deg, fix.latitude_deg, fix.longitude_deg)
        v_kmh = (dist_km / dt_s) * 3600.0
        plausible = 0.0 <= v_kmh <= self._cfg.max_speed_kmh

        if dist_km > self._cfg.min_movement_km and plausible:
            return SpeedEstimate(speed_kmh=float(v_kmh), method="finite_difference", dt_s=dt_s, distance_km=dist_km)

        if dt_s > self._cfg.creep_min_dt_s and dist_km > self._cfg.creep_min_movement_km and plausible:
            return SpeedEstimate(
                speed_kmh=max(float(v_kmh), self._cfg.creep_floor_kmh),
                method="creep_floor",
                dt_s=dt_s,
                distance_km=dist_km,
            )

        if not plausible:
            logger.debug("Implausible finite-difference speed %.1f km/h over %.2f s", v_kmh, dt_s)
        return SpeedEstimate(speed_kmh=0.0, method="none", dt_s=dt_s, distance_km=dist_km)
