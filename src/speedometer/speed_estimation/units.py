from __future__ import annotations

from typing import Optional

KMH_PER_MPS = 3.6
MILES_PER_KM = 0.621371

SPEED_UNITS = ("kmh", "mph")
DISTANCE_UNITS = ("km", "miles")


def mps_to_kmh(v_mps: float) -> float:
    return float(v_mps) * KMH_PER_MPS


def kmh_to_mph(v_kmh: float) -> float:
    return float(v_kmh) * MILES_PER_KM


def km_to_miles(d_km: float) -> float:
    return float(d_km) * MILES_PER_KM


def normalize_speed_unit(unit: str) -> Optional[str]:
    u = str(unit).strip().lower().replace("/", "")
    if u in {"kmh", "kph"}:
        return "kmh"
    if u == "mph":
        return "mph"
    return None


def normalize_distance_unit(unit: str) -> Optional[str]:
    u = str(unit).strip().lower()
    if u in {"km", "kilometers", "kilometres"}:
        return "km"
    if u in {"mi", "mile", "miles"}:
        return "miles"
    return None


def speed_in_unit(v_kmh: float, unit: str) -> float:
    if unit == "mph":
        return kmh_to_mph(v_kmh)
    return float(v_kmh)


def distance_in_unit(d_m: float, unit: str) -> float:
    d_km = float(d_m) / 1000.0
    if unit == "miles":
        return km_to_miles(d_km)
    return d_km


def format_speed(v: float) -> str:
    return f"{float(v):.1f}"


def format_distance(d: float) -> str:
    return f"{float(d):.2f}"


def format_duration(seconds: float) -> str:
    total = max(0, int(seconds))
    hrs = total // 3600
    mins = (total % 3600) // 60
    secs = total % 60
    return f"{hrs:02d}:{mins:02d}:{secs:02d}"
