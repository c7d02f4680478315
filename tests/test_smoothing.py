from speedometer.speed_estimation.smoothing import AdaptiveSpeedSmoother, SmootherConfig


def test_seed_uses_candidate() -> None:
    r = AdaptiveSpeedSmoother().smooth(42.0, [])
    assert r.rule == "seed"
    assert r.speed_kmh == 42.0


def test_wake_from_stop_clears_history() -> None:
    r = AdaptiveSpeedSmoother().smooth(20.0, [0.0, 0.0, 0.0])
    assert r.rule == "wake_from_stop"
    assert r.speed_kmh == 20.0
    assert r.retained == []


def test_coming_to_stop_is_immediate() -> None:
    r = AdaptiveSpeedSmoother().smooth(0.0, [30.0, 30.0])
    assert r.rule == "coming_to_stop"
    assert r.speed_kmh == 0.0
    assert r.retained == [30.0, 30.0]


def test_fresh_start_keeps_last_two() -> None:
    r = AdaptiveSpeedSmoother().smooth(12.0, [30.0, 0.0, 0.0, 0.0, 10.0])
    assert r.rule == "fresh_start"
    assert r.speed_kmh == 12.0
    assert r.retained == [0.0, 10.0]


def test_outlier_falls_back_to_mean() -> None:
    r = AdaptiveSpeedSmoother().smooth(100.0, [20.0, 20.0, 20.0])
    assert r.rule == "outlier"
    assert r.speed_kmh == 20.0


def test_outlier_uses_last_five_only() -> None:
    r = AdaptiveSpeedSmoother().smooth(50.0, [200.0, 200.0, 20.0, 20.0, 20.0, 20.0, 20.0])
    assert r.rule == "blend"
    assert abs(r.speed_kmh - (20.0 * 0.3 + 50.0 * 0.7)) < 1e-9


def test_blend_weights_by_speed_band() -> None:
    sm = AdaptiveSpeedSmoother()
    assert abs(sm.smooth(30.0, [20.0]).speed_kmh - 27.0) < 1e-9
    assert abs(sm.smooth(70.0, [60.0]).speed_kmh - 68.0) < 1e-9
    assert abs(sm.smooth(3.0, [4.0]).speed_kmh - 3.4) < 1e-9
    assert sm.weight_for(0.0) == 0.8


def test_config_from_dict() -> None:
    cfg = SmootherConfig.from_dict({"outlier_factor": 4.0, "weights": {"mid": 0.65}})
    assert cfg.outlier_factor == 4.0
    assert cfg.weight_mid == 0.65
    assert cfg.weight_fast == 0.8
    r = AdaptiveSpeedSmoother(cfg).smooth(75.0, [20.0])
    assert r.rule == "blend"
