from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional

SpeedUnit = Literal["kmh", "mph"]
DistanceUnit = Literal["km", "miles"]


@dataclass(frozen=True)
class Fix:
    latitude_deg: float
    longitude_deg: float
    timestamp_ms: float
    speed_mps: Optional[float] = None
    accuracy_m: Optional[float] = None
    altitude_m: Optional[float] = None

    def has_coordinates(self) -> bool:
        return _is_finite(self.latitude_deg) and _is_finite(self.longitude_deg)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude_deg,
            "longitude": self.longitude_deg,
            "timestamp": self.timestamp_ms,
            "speed": self.speed_mps,
            "accuracy": self.accuracy_m,
            "altitude": self.altitude_m,
        }


@dataclass(frozen=True)
class HistoryPoint:
    speed: float
    timestamp_ms: float


@dataclass(frozen=True)
class AcquisitionError:
    """A Fix Source could not produce a fix (permission, signal, timeout)."""

    code: int
    message: str = ""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


def _is_finite(v: Any) -> bool:
    if v is None or isinstance(v, bool):
        return False
    try:
        return math.isfinite(float(v))
    except (TypeError, ValueError):
        return False


def _optional_float(v: Any) -> Optional[float]:
    if not _is_finite(v):
        return None
    return float(v)


def _first(d: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return None


def fix_from_dict(d: Mapping[str, Any]) -> Optional[Fix]:
    """
    Build a Fix from a loosely-shaped position mapping.

    Accepts flat mappings as well as the ``{"coords": {...}, "timestamp": ...}``
    shape emitted by device geolocation callbacks. Returns None when the
    coordinates or the timestamp are missing or non-finite.
    """
    if not isinstance(d, Mapping):
        return None
    coords = d.get("coords")
    src: Mapping[str, Any] = coords if isinstance(coords, Mapping) else d

    lat = _first(src, "latitude", "lat")
    lon = _first(src, "longitude", "lon", "lng")
    ts = _first(d, "timestamp", "timestamp_ms", "t_ms")
    if not (_is_finite(lat) and _is_finite(lon) and _is_finite(ts)):
        return None

    # Device payloads carry speed either on the position or on coords.
    speed = _first(d, "speed")
    if not (_is_finite(speed) and float(speed) > 0.0):
        nested = _first(src, "speed")
        if nested is not None:
            speed = nested
    accuracy = _first(d, "accuracy")
    if accuracy is None:
        accuracy = _first(src, "accuracy")
    altitude = _first(d, "altitude")
    if altitude is None:
        altitude = _first(src, "altitude")

    acc = _optional_float(accuracy)
    if acc is not None and acc < 0.0:
        acc = None
    return Fix(
        latitude_deg=float(lat),
        longitude_deg=float(lon),
        timestamp_ms=float(ts),
        speed_mps=_optional_float(speed),
        accuracy_m=acc,
        altitude_m=_optional_float(altitude),
    )
