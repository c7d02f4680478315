import math

from speedometer.speed_estimation.estimator import EstimatorConfig, FixSpeedEstimator
from speedometer.utils.types import Fix


def _fix(lat: float, lon: float, t_ms: float, speed=None, acc=5.0) -> Fix:
    return Fix(latitude_deg=lat, longitude_deg=lon, timestamp_ms=t_ms, speed_mps=speed, accuracy_m=acc)


def test_reported_speed_is_converted_exactly() -> None:
    est = FixSpeedEstimator()
    out = est.estimate(_fix(0.0, 0.0, 1000.0, speed=10.0), None)
    assert out.method == "reported"
    assert out.speed_kmh == 10.0 * 3.6


def test_reported_speed_wins_over_finite_difference() -> None:
    est = FixSpeedEstimator()
    out = est.estimate(_fix(0.0, 0.0009, 10000.0, speed=2.5), _fix(0.0, 0.0, 0.0))
    assert out.method == "reported"
    assert out.speed_kmh == 2.5 * 3.6


def test_negative_or_nan_reported_speed_is_ignored() -> None:
    est = FixSpeedEstimator()
    assert est.estimate(_fix(0.0, 0.0, 0.0, speed=-3.0), None).speed_kmh == 0.0
    out = est.estimate(_fix(0.0, 0.0, 0.0, speed=float("nan")), None)
    assert out.method == "none"
    assert out.speed_kmh == 0.0


def test_finite_difference_speed() -> None:
    est = FixSpeedEstimator()
    out = est.estimate(_fix(0.0, 0.0009, 10000.0), _fix(0.0, 0.0, 0.0))
    assert out.method == "finite_difference"
    assert abs(out.speed_kmh - 36.027) < 0.01
    assert out.dt_s == 10.0


def test_identical_coordinates_yield_zero() -> None:
    est = FixSpeedEstimator()
    out = est.estimate(_fix(12.5, 45.25, 2000.0), _fix(12.5, 45.25, 1000.0))
    assert out.method == "none"
    assert out.speed_kmh == 0.0
    assert out.distance_km == 0.0


def test_too_short_interval_is_noise() -> None:
    est = FixSpeedEstimator()
    out = est.estimate(_fix(0.0, 0.0009, 100.0), _fix(0.0, 0.0, 0.0))
    assert out.method == "none"
    assert out.speed_kmh == 0.0


def test_non_positive_interval_never_moves_forward() -> None:
    est = FixSpeedEstimator()
    out = est.estimate(_fix(0.0, 0.0009, 0.0), _fix(0.0, 0.0, 500.0))
    assert out.speed_kmh == 0.0


def test_creep_floor_for_sub_centimeter_motion() -> None:
    est = FixSpeedEstimator()
    # ~5 mm north over one second.
    out = est.estimate(_fix(4.5e-8, 0.0, 1000.0), _fix(0.0, 0.0, 0.0))
    assert out.method == "creep_floor"
    assert out.speed_kmh == 0.1


def test_implausible_finite_difference_is_rejected() -> None:
    est = FixSpeedEstimator()
    # ~500 m in one second.
    out = est.estimate(_fix(0.0, 0.0045, 1000.0), _fix(0.0, 0.0, 0.0))
    assert out.method == "none"
    assert out.speed_kmh == 0.0


def test_stale_prior_is_flagged_and_not_used() -> None:
    est = FixSpeedEstimator()
    out = est.estimate(_fix(0.0, 0.0009, 20000.0), _fix(0.0, 0.0, 0.0))
    assert out.stale is True
    assert out.speed_kmh == 0.0
    reported = est.estimate(_fix(0.0, 0.0009, 20000.0, speed=4.0), _fix(0.0, 0.0, 0.0))
    assert reported.stale is True
    assert reported.speed_kmh == 4.0 * 3.6


def test_config_from_dict_converts_meters() -> None:
    cfg = EstimatorConfig.from_dict(
        {
            "stale_after_s": 5.0,
            "finite_difference": {"min_dt_s": 0.2, "max_dt_s": 5.0, "min_movement_m": 1.0},
            "creep": {"floor_kmh": 0.05},
        }
    )
    assert cfg.stale_after_s == 5.0
    assert math.isclose(cfg.min_movement_km, 0.001)
    assert cfg.creep_floor_kmh == 0.05


def test_config_rejects_inverted_window() -> None:
    try:
        EstimatorConfig.from_dict({"finite_difference": {"min_dt_s": 2.0, "max_dt_s": 1.0}})
    except ValueError:
        return
    raise AssertionError("expected ValueError")
