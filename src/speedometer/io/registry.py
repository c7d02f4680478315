from __future__ import annotations

from typing import Any, Dict

from speedometer.io.simulator import SimulatedFixSource, SimulatorConfig
from speedometer.io.sources import FixSource, ReplayFixSource


def create_fix_source(backend: str, params: Dict[str, Any]) -> FixSource:
    if backend == "simulated":
        return SimulatedFixSource(SimulatorConfig.from_dict(params))

    if backend == "replay":
        path = params.get("path")
        if not path:
            raise ValueError("replay source requires params.path")
        return ReplayFixSource.from_jsonl(
            str(path),
            realtime=bool(params.get("realtime", False)),
            time_scale=float(params.get("time_scale", 1.0)),
        )

    raise ValueError(f"Unknown fix source backend: {backend}")
