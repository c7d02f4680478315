from __future__ import annotations

from typing import Optional

from speedometer.utils.types import AcquisitionError

STATUS_STOPPED = "GPS Stopped"
STATUS_EXCELLENT = "Excellent GPS Signal"
STATUS_GOOD = "Good GPS Signal"
STATUS_POOR = "Poor GPS Signal"

EXCELLENT_ACCURACY_M = 5.0
GOOD_ACCURACY_M = 10.0


def signal_status(accuracy_m: Optional[float]) -> str:
    acc = 0.0 if accuracy_m is None else float(accuracy_m)
    if acc < EXCELLENT_ACCURACY_M:
        return STATUS_EXCELLENT
    if acc < GOOD_ACCURACY_M:
        return STATUS_GOOD
    return STATUS_POOR


def error_status(error: AcquisitionError) -> str:
    code = int(error.code)
    if code == AcquisitionError.PERMISSION_DENIED:
        return "Permission Denied"
    if code == AcquisitionError.POSITION_UNAVAILABLE:
        return "Location Unavailable"
    if code == AcquisitionError.TIMEOUT:
        return "GPS Timeout"
    return "GPS Error"
