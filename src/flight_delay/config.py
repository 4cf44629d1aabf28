from dataclasses import dataclass, field
from typing import Any, Dict
import yaml

from .errors import InvalidFoldCount, InvalidFraction


@dataclass
class Config:
    """Configuration object loaded from YAML."""
    data: Dict[str, Any]
    preprocessing: Dict[str, Any] = field(default_factory=dict)
    model: Dict[str, Any] = field(default_factory=dict)
    validation: Dict[str, Any] = field(default_factory=dict)
    output: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        with open(path, "r") as f:
            cfg = yaml.safe_load(f)
        return cls(**cfg)

    @property
    def train_fraction(self) -> float:
        return float(self.validation.get("train_fraction", 0.75))

    @property
    def seed_split(self) -> int:
        return int(self.validation.get("seed_split", 222))

    @property
    def seed_fold(self) -> int:
        return int(self.validation.get("seed_fold", 123))

    @property
    def seed_model(self) -> int:
        return int(self.validation.get("seed_model", 42))

    @property
    def seed_sample(self) -> int:
        return int(self.data.get("sample_seed", 42))

    @property
    def k_folds(self) -> int:
        return int(self.validation.get("k_folds", 10))

    @property
    def delay_threshold_minutes(self) -> float:
        return float(self.data.get("delay_threshold_minutes", 30))

    def validate(self) -> None:
        """Reject bad split/fold settings before any data is touched."""
        if not 0.0 < self.train_fraction < 1.0:
            raise InvalidFraction(
                f"train_fraction must be in (0, 1), got {self.train_fraction}"
            )
        if self.k_folds < 2:
            raise InvalidFoldCount(f"k_folds must be >= 2, got {self.k_folds}")
