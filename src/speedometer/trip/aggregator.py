from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from speedometer.geometry.geodesic import haversine_m
from speedometer.speed_estimation.estimator import FixSpeedEstimator, SpeedEstimate
from speedometer.speed_estimation.smoothing import AdaptiveSpeedSmoother, SmoothingResult
from speedometer.speed_estimation.units import (
    distance_in_unit,
    normalize_distance_unit,
    normalize_speed_unit,
    speed_in_unit,
)
from speedometer.trip.state import RECENT_SPEEDS_CAP, SPEED_HISTORY_CAP, PipelineState, TripSnapshot
from speedometer.trip.status import STATUS_STOPPED, error_status, signal_status
from speedometer.utils.types import AcquisitionError, Fix, HistoryPoint


logger = logging.getLogger("speedometer.trip.aggregator")


@dataclass(frozen=True)
class TripConfig:
    accuracy_gate_m: float = 10.0
    max_jump_m: float = 120.0
    max_speed_kmh: float = 300.0
    recent_cap: int = RECENT_SPEEDS_CAP
    history_cap: int = SPEED_HISTORY_CAP
    speed_unit: str = "kmh"
    distance_unit: str = "km"

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TripConfig":
        dist = d.get("distance", {}) or {}
        hist = d.get("history", {}) or {}
        units = d.get("units", {}) or {}
        speed_unit = normalize_speed_unit(str(units.get("speed", "kmh")))
        distance_unit = normalize_distance_unit(str(units.get("distance", "km")))
        if speed_unit is None:
            raise ValueError("units.speed must be one of: kmh, mph")
        if distance_unit is None:
            raise ValueError("units.distance must be one of: km, miles")
        cfg = TripConfig(
            accuracy_gate_m=float(dist.get("accuracy_gate_m", 10.0)),
            max_jump_m=float(dist.get("max_jump_m", 120.0)),
            max_speed_kmh=float(d.get("max_speed_kmh", 300.0)),
            recent_cap=int(hist.get("recent_speeds", RECENT_SPEEDS_CAP)),
            history_cap=int(hist.get("speed_history", SPEED_HISTORY_CAP)),
            speed_unit=speed_unit,
            distance_unit=distance_unit,
        )
        if cfg.recent_cap < 1 or cfg.history_cap < 1:
            raise ValueError("history caps must be >= 1")
        return cfg


class TripAggregator:
    """
    Turns accepted fixes into trip figures: current, max and average speed
    plus integrated distance.

    All mutation happens under one lock, so ``stop()`` or ``reset()`` issued
    from another thread waits for an in-flight fix to finish instead of
    interleaving with it. Bad input never raises; it is logged and dropped.
    """

    def __init__(
        self,
        cfg: Optional[TripConfig] = None,
        estimator: Optional[FixSpeedEstimator] = None,
        smoother: Optional[AdaptiveSpeedSmoother] = None,
    ) -> None:
        self._cfg = cfg or TripConfig()
        self._estimator = estimator or FixSpeedEstimator()
        self._smoother = smoother or AdaptiveSpeedSmoother()
        self._lock = threading.Lock()
        self._tracking = False
        self._speed_unit = self._cfg.speed_unit
        self._distance_unit = self._cfg.distance_unit
        self._state = self._new_state()

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def state(self) -> PipelineState:
        return self._state

    def start(self) -> None:
        with self._lock:
            self._state = self._new_state()
            self._tracking = True
        logger.info("Trip tracking started")

    def stop(self) -> None:
        with self._lock:
            self._tracking = False
            self._state.status = STATUS_STOPPED
        logger.info("Trip tracking stopped")

    def reset(self) -> None:
        with self._lock:
            self._tracking = False
            self._state = self._new_state()
        logger.info("Trip reset")

    def set_speed_unit(self, unit: str) -> None:
        u = normalize_speed_unit(unit)
        if u is None:
            logger.warning("Ignoring unknown speed unit: %s", unit)
            return
        with self._lock:
            self._speed_unit = u

    def set_distance_unit(self, unit: str) -> None:
        u = normalize_distance_unit(unit)
        if u is None:
            logger.warning("Ignoring unknown distance unit: %s", unit)
            return
        with self._lock:
            self._distance_unit = u

    def report_error(self, error: AcquisitionError) -> None:
        status = error_status(error)
        logger.warning("Fix acquisition failed (code=%s): %s", error.code, error.message or status)
        with self._lock:
            self._state.status = status

    def accept(self, fix: Optional[Fix]) -> bool:
        """Process one fix. Returns True when the fix was taken into the trip."""
        with self._lock:
            if not self._tracking:
                return False
            if fix is None or not fix.has_coordinates():
                logger.debug("Skipping malformed fix: %r", fix)
                return False
            st = self._state
            # last_fix may be cleared within a trip; last_fix_ms never is.
            if st.last_fix_ms is not None and float(fix.timestamp_ms) <= st.last_fix_ms:
                logger.debug("Skipping out-of-order fix t=%.0f (last t=%.0f)", fix.timestamp_ms, st.last_fix_ms)
                return False
            self._apply(st, fix)
            return True

    def snapshot(self) -> TripSnapshot:
        with self._lock:
            st = self._state
            su = self._speed_unit
            du = self._distance_unit
            return TripSnapshot(
                current_speed=speed_in_unit(st.current_speed_kmh, su),
                max_speed=speed_in_unit(st.max_speed_kmh, su),
                average_speed=speed_in_unit(st.average_speed_kmh, su),
                total_distance=distance_in_unit(st.total_distance_m, du),
                total_distance_m=float(st.total_distance_m),
                speed_history=tuple(
                    HistoryPoint(speed=speed_in_unit(p.speed, su), timestamp_ms=p.timestamp_ms) for p in st.speed_history
                ),
                accuracy_m=float(st.accuracy_m),
                altitude_m=float(st.altitude_m),
                elapsed_s=st.elapsed_s(),
                status=st.status,
                speed_unit=su,
                distance_unit=du,
                is_tracking=self._tracking,
                recent_locations=tuple(st.location_history),
            )

    def _new_state(self) -> PipelineState:
        return PipelineState.empty(recent_cap=self._cfg.recent_cap, history_cap=self._cfg.history_cap)

    def _apply(self, st: PipelineState, fix: Fix) -> None:
        accuracy = 0.0 if fix.accuracy_m is None else float(fix.accuracy_m)
        st.accuracy_m = accuracy
        st.altitude_m = 0.0 if fix.altitude_m is None else float(fix.altitude_m)
        st.status = signal_status(accuracy)
        if st.first_fix_ms is None:
            st.first_fix_ms = float(fix.timestamp_ms)
        st.last_fix_ms = float(fix.timestamp_ms)

        est = self._estimator.estimate(fix, st.last_fix)
        if est.stale:
            logger.debug("Discarding stale baseline fix (dt=%.1f s)", est.dt_s or 0.0)
            st.last_fix = None

        sm = self._smoother.smooth(est.speed_kmh, st.recent_speeds)
        self._log_fix(est, sm)

        plausible = 0.0 <= sm.speed_kmh < self._cfg.max_speed_kmh
        if plausible:
            st.replace_recent(sm.retained)
            st.current_speed_kmh = sm.speed_kmh
            if sm.speed_kmh > st.max_speed_kmh:
                st.max_speed_kmh = sm.speed_kmh
        else:
            logger.debug("Dropping implausible smoothed speed %.1f km/h", sm.speed_kmh)

        self._integrate_distance(st, fix, accuracy)

        if plausible:
            st.recent_speeds.append(sm.speed_kmh)
            st.speed_history.append(HistoryPoint(speed=sm.speed_kmh, timestamp_ms=float(fix.timestamp_ms)))
        st.average_speed_kmh = sum(st.recent_speeds) / len(st.recent_speeds) if st.recent_speeds else 0.0
        st.location_history.append(fix)

        if len(st.recent_speeds) >= st.recent_cap and all(v == 0.0 for v in st.recent_speeds):
            logger.debug("Speed stuck at zero for %d readings; clearing estimation context", len(st.recent_speeds))
            st.recent_speeds.clear()
            st.last_fix = None
            return

        st.last_fix = fix

    def _integrate_distance(self, st: PipelineState, fix: Fix, accuracy_m: float) -> None:
        prior = st.last_fix
        if prior is None or accuracy_m >= self._cfg.accuracy_gate_m:
            return
        delta_m = haversine_m(prior.latitude_deg, prior.longitude_deg, fix.latitude_deg, fix.longitude_deg)
        if delta_m <= 0.0:
            return
        if delta_m >= self._cfg.max_jump_m:
            logger.debug("Rejecting position jump of %.1f m", delta_m)
            return
        st.total_distance_m += delta_m

    def _log_fix(self, est: SpeedEstimate, sm: SmoothingResult) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "fix method=%s raw=%.2f km/h rule=%s smoothed=%.2f km/h",
                est.method,
                est.speed_kmh,
                sm.rule,
                sm.speed_kmh,
            )
