import pytest
import yaml

from flight_delay.config import Config
from flight_delay.errors import InvalidFoldCount, InvalidFraction


def test_config_from_yaml(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "data": {"flights_path": "f.csv", "weather_path": "w.csv",
                         "delay_threshold_minutes": 15},
                "preprocessing": {},
                "model": {"variants": {"logistic": {}}},
                "validation": {"train_fraction": 0.8, "seed_split": 1,
                               "seed_fold": 2, "k_folds": 5},
                "output": {},
            }
        )
    )
    cfg = Config.from_yaml(str(path))

    assert cfg.train_fraction == 0.8
    assert (cfg.seed_split, cfg.seed_fold, cfg.k_folds) == (1, 2, 5)
    assert cfg.delay_threshold_minutes == 15.0
    cfg.validate()


def test_config_defaults():
    cfg = Config(data={})
    assert cfg.train_fraction == 0.75
    assert cfg.seed_split != cfg.seed_fold
    assert cfg.k_folds == 10
    assert cfg.delay_threshold_minutes == 30.0


@pytest.mark.parametrize("fraction", [0, 1, 1.2])
def test_config_validate_rejects_fraction(fraction):
    with pytest.raises(InvalidFraction):
        Config(data={}, validation={"train_fraction": fraction}).validate()


def test_config_validate_rejects_fold_count():
    with pytest.raises(InvalidFoldCount):
        Config(data={}, validation={"k_folds": 1}).validate()


def test_shipped_default_config_is_valid():
    import pathlib

    root = pathlib.Path(__file__).resolve().parents[3]
    cfg = Config.from_yaml(str(root / "config" / "default.yaml"))
    cfg.validate()
    assert set(cfg.model["variants"]) == {"logistic", "random_forest"}


def test_config_sample_seed():
    assert Config(data={}).seed_sample == 42
    assert Config(data={"sample_seed": 7}).seed_sample == 7
