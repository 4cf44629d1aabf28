import json

import pytest

from flight_delay.config import Config
from flight_delay.errors import InvalidFoldCount, InvalidFraction
from flight_delay.pipeline import PipelineRunner


def _config(**overrides):
    cfg = Config(
        data={"flights_path": "unused", "weather_path": "unused"},
        preprocessing={},
        model={"variants": {"logistic": {}}},
        validation={
            "train_fraction": 0.8,
            "seed_split": 222,
            "seed_fold": 123,
            "k_folds": 10,
            "cross_validate": False,
        },
        output={},
    )
    for section, values in overrides.items():
        getattr(cfg, section).update(values)
    return cfg


def test_logistic_beats_majority_baseline(raw_flights):
    results = PipelineRunner(_config()).run(raw_flights)

    result = results["logistic"]
    assert result.ok
    assert result.metrics.n == 200
    assert result.metrics.accuracy > 0.84 - 0.02
    assert result.metrics.roc_auc > 0.5


def test_predictions_and_roc_are_reported(raw_flights):
    result = PipelineRunner(_config()).run(raw_flights)["logistic"]

    assert len(result.predictions) == 200
    assert (result.predictions[["prob_late", "prob_on_time"]].sum(axis=1) - 1).abs().max() < 1e-6
    assert result.roc[0] == (0.0, 0.0)
    assert result.roc[-1] == (1.0, 1.0)


def test_cross_validation_runs_on_training_folds(raw_flights):
    cfg = _config(validation={"cross_validate": True, "k_folds": 5})
    result = PipelineRunner(cfg).run(raw_flights)["logistic"]

    assert result.cv is not None
    assert len(result.cv.fold_metrics) == 5
    assert sum(m.n for m in result.cv.fold_metrics) == 800


def test_failed_variant_does_not_abort_others(raw_flights):
    cfg = _config(
        model={
            "variants": {
                "logistic": {"C": -1.0},
                "random_forest": {"n_estimators": 50, "n_jobs": 1},
            }
        }
    )
    results = PipelineRunner(cfg).run(raw_flights)

    assert not results["logistic"].ok
    assert "logistic" in results["logistic"].error
    assert results["random_forest"].ok
    assert results["random_forest"].metrics.n == 200


def test_metrics_are_saved_for_successful_variants(tmp_path, raw_flights):
    path = tmp_path / "metrics.json"
    cfg = _config(output={"metrics_path": str(path)})

    PipelineRunner(cfg).run(raw_flights)
    saved = json.loads(path.read_text())
    assert set(saved) == {"logistic"}


def test_bad_fraction_fails_before_loading():
    # data paths do not exist: validation must fail first
    with pytest.raises(InvalidFraction):
        PipelineRunner(_config(validation={"train_fraction": 1.0})).run()


def test_fold_count_larger_than_training_set(raw_flights):
    cfg = _config(validation={"cross_validate": True, "k_folds": 5000})
    with pytest.raises(InvalidFoldCount):
        PipelineRunner(cfg).run(raw_flights)


def test_pipeline_from_files(tmp_path, flights_and_weather):
    flights, weather = flights_and_weather
    flights.to_csv(tmp_path / "flights.csv", index=False)
    weather.to_csv(tmp_path / "weather.csv", index=False)
    cfg = _config(
        data={
            "flights_path": str(tmp_path / "flights.csv"),
            "weather_path": str(tmp_path / "weather.csv"),
        }
    )

    results = PipelineRunner(cfg).run()
    assert results["logistic"].ok


def test_tuning_merges_tuned_params(raw_flights):
    cfg = _config(
        model={"variants": {"logistic": {}}, "tune": True, "n_trials": 2},
        validation={"cross_validate": True, "k_folds": 3},
    )
    result = PipelineRunner(cfg).run(raw_flights)["logistic"]

    assert result.ok
    assert set(result.params) == {"C"}
    assert 1e-3 <= result.params["C"] <= 10.0


def test_extra_raw_columns_are_not_used(raw_flights):
    raw = raw_flights.assign(notes=None, gate=range(len(raw_flights)))
    result = PipelineRunner(_config()).run(raw)["logistic"]

    assert result.ok
    # rows with a missing extra column are not dropped
    assert result.metrics.n == 200
    assert "gate" not in result.predictions.columns


def test_cross_validation_summary_has_spread(raw_flights):
    cfg = _config(validation={"cross_validate": True, "k_folds": 5})
    summary = PipelineRunner(cfg).run(raw_flights)["logistic"].cv.summary()

    assert summary["accuracy"]["std_err"] >= 0.0
    assert 0.0 <= summary["roc_auc"]["mean"] <= 1.0
