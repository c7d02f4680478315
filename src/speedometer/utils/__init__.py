from .config import load_yaml, merge_dicts, resolve_path, section
from .logging import setup_logging
from .types import AcquisitionError, DistanceUnit, Fix, HistoryPoint, SpeedUnit, fix_from_dict

__all__ = [
    "AcquisitionError",
    "DistanceUnit",
    "Fix",
    "HistoryPoint",
    "SpeedUnit",
    "fix_from_dict",
    "load_yaml",
    "merge_dicts",
    "resolve_path",
    "section",
    "setup_logging",
]
