from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Sequence

SmoothingRule = Literal["seed", "wake_from_stop", "coming_to_stop", "fresh_start", "outlier", "blend"]


@dataclass(frozen=True)
class SmootherConfig:
    window: int = 5
    outlier_factor: float = 3.0
    fresh_start_zero_count: int = 3
    fresh_start_keep: int = 2
    high_speed_kmh: float = 50.0
    low_speed_kmh: float = 5.0
    weight_fast: float = 0.8
    weight_mid: float = 0.7
    weight_low: float = 0.6

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SmootherConfig":
        weights = d.get("weights", {}) or {}
        cfg = SmootherConfig(
            window=int(d.get("window", 5)),
            outlier_factor=float(d.get("outlier_factor", 3.0)),
            fresh_start_zero_count=int(d.get("fresh_start_zero_count", 3)),
            fresh_start_keep=int(d.get("fresh_start_keep", 2)),
            high_speed_kmh=float(d.get("high_speed_kmh", 50.0)),
            low_speed_kmh=float(d.get("low_speed_kmh", 5.0)),
            weight_fast=float(weights.get("fast", 0.8)),
            weight_mid=float(weights.get("mid", 0.7)),
            weight_low=float(weights.get("low", 0.6)),
        )
        if cfg.window < 1:
            raise ValueError("smoothing.window must be >= 1")
        for w in (cfg.weight_fast, cfg.weight_mid, cfg.weight_low):
            if not 0.0 <= w <= 1.0:
                raise ValueError("smoothing weights must be in [0, 1]")
        return cfg


@dataclass(frozen=True)
class SmoothingResult:
    speed_kmh: float
    rule: SmoothingRule
    retained: List[float]


class AdaptiveSpeedSmoother:
    """
    Adaptive exponential blending of a speed candidate against recent history.

    The rules below are checked in order and exactly one applies. ``retained``
    is the recent-speed history the caller should keep before appending the
    result; rules that restart smoothing shorten it.
    """

    def __init__(self, cfg: Optional[SmootherConfig] = None) -> None:
        self._cfg = cfg or SmootherConfig()

    @property
    def config(self) -> SmootherConfig:
        return self._cfg

    def weight_for(self, candidate_kmh: float) -> float:
        if candidate_kmh == 0.0 or candidate_kmh > self._cfg.high_speed_kmh:
            return self._cfg.weight_fast
        if candidate_kmh < self._cfg.low_speed_kmh:
            return self._cfg.weight_low
        return self._cfg.weight_mid

    def smooth(self, candidate_kmh: float, recent: Sequence[float]) -> SmoothingResult:
        history = [float(v) for v in recent]
        candidate = max(0.0, float(candidate_kmh))
        if not history:
            return SmoothingResult(speed_kmh=candidate, rule="seed", retained=history)

        window = history[-self._cfg.window :]
        mean = sum(window) / len(window)

        if mean == 0.0 and candidate > 0.0:
            return SmoothingResult(speed_kmh=candidate, rule="wake_from_stop", retained=[])

        if mean > 0.0 and candidate == 0.0:
            return SmoothingResult(speed_kmh=0.0, rule="coming_to_stop", retained=history)

        zeros = sum(1 for v in window if v == 0.0)
        if zeros >= self._cfg.fresh_start_zero_count and candidate > 0.0:
            keep = history[-self._cfg.fresh_start_keep :] if self._cfg.fresh_start_keep > 0 else []
            return SmoothingResult(speed_kmh=candidate, rule="fresh_start", retained=keep)

        if mean > 0.0 and abs(candidate - mean) > self._cfg.outlier_factor * mean:
            return SmoothingResult(speed_kmh=mean, rule="outlier", retained=history)

        w = self.weight_for(candidate)
        return SmoothingResult(speed_kmh=mean * (1.0 - w) + candidate * w, rule="blend", retained=history)
