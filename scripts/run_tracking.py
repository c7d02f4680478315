from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from speedometer.pipeline.session import PipelineConfig, TrackingSession
from speedometer.speed_estimation.units import format_distance, format_duration, format_speed
from speedometer.utils.config import load_yaml, merge_dicts, resolve_path
from speedometer.utils.logging import setup_logging


logger = logging.getLogger("speedometer.scripts.run_tracking")


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default="configs/pipeline.yaml", help="Pipeline YAML")
    ap.add_argument("--replay", default=None, help="Optional JSONL capture of fixes to replay instead of the simulator")
    ap.add_argument("--realtime", action="store_true", help="Pace replayed fixes by their timestamps")
    ap.add_argument("--duration-s", type=float, default=30.0, help="How long to run the simulator")
    ap.add_argument("--report-every-s", type=float, default=2.0)
    ap.add_argument("--speed-unit", default=None, choices=["kmh", "mph"])
    ap.add_argument("--distance-unit", default=None, choices=["km", "miles"])
    ap.add_argument("--log-level", default="INFO")
    ap.add_argument("--log-file", default=None)
    args = ap.parse_args()

    base_dir = os.getcwd()
    setup_logging(level=args.log_level, log_file=args.log_file)

    raw = load_yaml(resolve_path(args.config, base_dir))
    if args.replay:
        raw = merge_dicts(
            raw,
            {"source": {"backend": "replay", "params": {"path": resolve_path(args.replay, base_dir), "realtime": args.realtime}}},
        )
    cfg = PipelineConfig.from_dict(raw)
    session = TrackingSession.from_config(cfg)
    if args.speed_unit:
        session.aggregator.set_speed_unit(args.speed_unit)
    if args.distance_unit:
        session.aggregator.set_distance_unit(args.distance_unit)

    session.start()
    t_end = time.monotonic() + max(0.0, float(args.duration_s))
    try:
        while time.monotonic() < t_end:
            time.sleep(max(0.1, float(args.report_every_s)))
            _report(session)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        session.stop()
    _report(session)


def _report(session: TrackingSession) -> None:
    s = session.snapshot()
    logger.info(
        "%s speed=%s max=%s avg=%s %s distance=%s %s acc=%.1fm alt=%.0fm elapsed=%s",
        s.status,
        format_speed(s.current_speed),
        format_speed(s.max_speed),
        format_speed(s.average_speed),
        s.speed_unit,
        format_distance(s.total_distance),
        s.distance_unit,
        s.accuracy_m,
        s.altitude_m,
        format_duration(s.elapsed_s),
    )


if __name__ == "__main__":
    main()
