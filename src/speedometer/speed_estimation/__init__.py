from .estimator import EstimatorConfig, FixSpeedEstimator, SpeedEstimate
from .smoothing import AdaptiveSpeedSmoother, SmootherConfig, SmoothingResult
from .units import kmh_to_mph, km_to_miles, mps_to_kmh

__all__ = [
    "AdaptiveSpeedSmoother",
    "EstimatorConfig",
    "FixSpeedEstimator",
    "SmootherConfig",
    "SmoothingResult",
    "SpeedEstimate",
    "km_to_miles",
    "kmh_to_mph",
    "mps_to_kmh",
]
