import threading
from pathlib import Path

import pytest

from speedometer.io.simulator import SimulatedFixSource, SimulatorConfig
from speedometer.io.sources import ReplayFixSource
from speedometer.pipeline.session import PipelineConfig, TrackingSession, build_aggregator
from speedometer.trip.aggregator import TripAggregator
from speedometer.utils.types import AcquisitionError, Fix

CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "pipeline.yaml"


class _BlockingAggregator(TripAggregator):
    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def accept(self, fix):
        self.entered.set()
        self.release.wait(timeout=5.0)
        return super().accept(fix)


def _drive(n: int) -> list:
    return list(SimulatedFixSource(SimulatorConfig(seed=5)).generate(n))


def test_session_processes_replayed_fixes_in_order() -> None:
    fixes = _drive(40)
    source = ReplayFixSource(fixes)
    session = TrackingSession(TripAggregator(), source=source)
    session.start()
    assert source.wait(timeout=5.0)
    session.join(timeout=5.0)
    snap = session.snapshot()
    assert session.processed == 40
    assert snap.is_tracking is True
    assert snap.total_distance_m > 0.0
    assert len(snap.speed_history) == 40
    assert [p.timestamp_ms for p in snap.speed_history] == [f.timestamp_ms for f in fixes]

    session.stop()
    assert session.snapshot().is_tracking is False
    assert session.snapshot().status == "GPS Stopped"


def test_push_after_stop_is_ignored() -> None:
    session = TrackingSession(TripAggregator())
    session.start()
    session.stop()
    session.push(Fix(latitude_deg=0.0, longitude_deg=0.0, timestamp_ms=0.0, speed_mps=4.0))
    assert session.snapshot().current_speed == 0.0


def test_acquisition_errors_flow_through_queue() -> None:
    session = TrackingSession(TripAggregator())
    session.start()
    session.push_error(AcquisitionError(code=AcquisitionError.PERMISSION_DENIED))
    session.join(timeout=5.0)
    assert session.snapshot().status == "Permission Denied"
    session.stop()


def test_bounded_queue_drops_newest_when_full() -> None:
    agg = _BlockingAggregator()
    session = TrackingSession(agg, max_queue=1)
    session.start()
    fixes = _drive(3)
    session.push(fixes[0])
    assert agg.entered.wait(timeout=5.0)
    session.push(fixes[1])
    session.push(fixes[2])
    assert session.dropped == 1
    agg.release.set()
    session.join(timeout=5.0)
    assert session.processed == 2
    session.stop()


def test_reset_zeroes_trip() -> None:
    source = ReplayFixSource(_drive(10))
    session = TrackingSession(TripAggregator(), source=source)
    session.start()
    source.wait(timeout=5.0)
    session.join(timeout=5.0)
    session.reset()
    snap = session.snapshot()
    assert snap.max_speed == 0.0
    assert snap.total_distance == 0.0
    assert snap.speed_history == ()
    assert session.processed == 0


def test_pipeline_config_from_repo_yaml() -> None:
    cfg = PipelineConfig.load(str(CONFIG_PATH))
    assert cfg.trip.accuracy_gate_m == 10.0
    assert cfg.trip.max_jump_m == 120.0
    assert cfg.estimator.max_dt_s == 15.0
    assert cfg.smoothing.outlier_factor == 3.0
    assert cfg.source_backend == "simulated"
    session = TrackingSession.from_config(cfg, source=ReplayFixSource(_drive(5)))
    session.start()
    session.join(timeout=5.0)
    session.stop()
    assert isinstance(build_aggregator(cfg), TripAggregator)


def test_pipeline_config_rejects_bad_units() -> None:
    with pytest.raises(ValueError):
        PipelineConfig.from_dict({"trip": {"units": {"speed": "furlongs"}}})
    with pytest.raises(ValueError):
        PipelineConfig.from_dict({"session": {"max_queue": -1}})
