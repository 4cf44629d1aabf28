import warnings
from dataclasses import dataclass, field
from textwrap import indent
from typing import Optional

import pandas as pd

from .cleaner import FlightCleaner
from .config import Config
from .data_loader import DataLoader, select_loaded_columns
from .errors import FitError
from .evaluator import Evaluator, MetricsReport
from .hyper_tuner import HyperTuner
from .model_trainer import CVResult, ModelKind, ModelTrainer
from .recipe import build_flight_recipe
from .splitter import kfold, split
from .utils.logger import get_logger


@dataclass
class ExperimentResult:
    """Outcome of one model variant; ``error`` is set when the variant failed to fit."""
    kind: ModelKind
    metrics: Optional[MetricsReport] = None
    cv: Optional[CVResult] = None
    roc: list[tuple[float, float]] = field(default_factory=list)
    predictions: Optional[pd.DataFrame] = None
    params: dict = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PipelineRunner:
    """End-to-end flight delay classification experiment.

    Steps:
      1. Validate split/fold configuration
      2. Load flights and join hourly weather
      3. Derive late/on-time label and precipitation flag, drop incomplete rows
      4. Split into training/evaluation views and cross-validation folds
      5. Fit the feature recipe on the training view and apply it to both views
      6. Per model variant: optionally tune, cross-validate, fit, predict, score
      7. Optionally save metrics JSON"""

    def __init__(self, config: Config | str):
        self.config = Config.from_yaml(config) if isinstance(config, str) else config
        self.logger = get_logger(self.__class__.__name__)
        warnings.filterwarnings(
            "ignore",
            message="X does not have valid feature names",
            category=UserWarning,
            module="sklearn",
        )

    def _variants(self) -> dict[ModelKind, dict]:
        variants = self.config.model.get("variants") or {"logistic": {}, "random_forest": {}}
        return {ModelKind(name): dict(params or {}) for name, params in variants.items()}

    def _run_variant(
        self,
        kind: ModelKind,
        params: dict,
        recipe,
        state,
        baked_train: pd.DataFrame,
        baked_test: pd.DataFrame,
        folds,
        evaluator: Evaluator,
    ) -> ExperimentResult:
        cfg = self.config
        n_jobs = cfg.validation.get("n_jobs", 1)
        result = ExperimentResult(kind=kind)

        if cfg.model.get("tune", False) and folds:
            tuner = HyperTuner(
                kind,
                n_trials=cfg.model.get("n_trials", 30),
                random_state=cfg.seed_model,
                n_jobs=n_jobs,
            )
            params.update(tuner.tune(folds, recipe, params, evaluator))
            self.logger.info(f"[{kind.value}] parameters updated with tuned values")
        result.params = params

        trainer = ModelTrainer(kind, params=params, random_state=cfg.seed_model)
        if folds:
            result.cv = trainer.cross_validate(folds, recipe, evaluator, n_jobs=n_jobs)
            summary_str = indent(
                "\n".join(
                    f"{k}: {v['mean']:.4f} (+/- {v['std_err']:.4f})"
                    for k, v in result.cv.summary().items()
                ),
                " " * 4,
            )
            self.logger.info(f"[{kind.value}] CV metrics:\n{summary_str}")

        model = trainer.fit(
            baked_train[list(state.feature_columns)], baked_train[state.outcome]
        )
        predictions = trainer.predict(model, baked_test, state)
        result.predictions = predictions
        result.metrics = evaluator.score(predictions, baked_test[state.outcome])
        result.roc = evaluator.roc_points(predictions, baked_test[state.outcome])
        return result

    def run(self, raw: Optional[pd.DataFrame] = None) -> dict[str, ExperimentResult]:
        cfg = self.config
        cfg.validate()
        self.logger.info("Starting flight delay experiment")

        if raw is None:
            raw = DataLoader(
                cfg.data["flights_path"],
                cfg.data["weather_path"],
                sample_size=cfg.data.get("sample_size"),
                sample_seed=cfg.seed_sample,
            ).load()
        else:
            raw = select_loaded_columns(raw)

        outcome = cfg.data.get("outcome_col", "arr_delay")
        df = FlightCleaner(
            delay_threshold_minutes=cfg.delay_threshold_minutes,
            outcome_col=outcome,
            max_drop_fraction=cfg.data.get("max_drop_fraction", 0.2),
        ).clean(raw)

        train, test = split(
            df,
            cfg.train_fraction,
            seed=cfg.seed_split,
            stratify=cfg.validation.get("stratify"),
        )
        folds = (
            kfold(train, cfg.k_folds, seed=cfg.seed_fold)
            if cfg.validation.get("cross_validate", True)
            else []
        )

        prep = cfg.preprocessing
        recipe = build_flight_recipe(
            outcome=outcome,
            id_columns=cfg.data.get("id_columns", ["flight", "time_hour"]),
            date_column=prep.get("date_column", "date"),
            date_features=prep.get("date_features", ["dow", "month"]),
            holiday_country=prep.get("holiday_country", "US"),
            holiday_names=prep.get("holidays"),
            one_hot=prep.get("one_hot", False),
        )
        state = recipe.fit(train)
        baked_train = recipe.apply(state, train)
        baked_test = recipe.apply(state, test)

        evaluator = Evaluator(
            positive_class=cfg.data.get("positive_class", "late"),
            metrics_path=cfg.output.get("metrics_path"),
        )

        results: dict[str, ExperimentResult] = {}
        for kind, params in self._variants().items():
            try:
                result = self._run_variant(
                    kind, params, recipe, state, baked_train, baked_test, folds, evaluator
                )
            except FitError as exc:
                self.logger.error(f"[{kind.value}] model failed to fit: {exc}")
                result = ExperimentResult(kind=kind, params=params, error=str(exc))
            results[kind.value] = result

            if result.ok:
                metrics_str = indent(
                    "\n".join(f"{k}: {v:.4f}" for k, v in result.metrics.to_dict().items()),
                    " " * 4,
                )
                self.logger.info(f"[{kind.value}] test metrics:\n{metrics_str}")

        reports = {name: r.metrics for name, r in results.items() if r.ok}
        if evaluator.metrics_path and reports:
            evaluator.save(reports)

        self.logger.info("Pipeline finished")
        return results
