import logging
from typing import Any, Sequence

import optuna

from .evaluator import Evaluator
from .model_trainer import ModelKind, ModelTrainer
from .recipe import Recipe
from .splitter import Fold
from .utils.logger import get_logger


class HyperTuner:
    """Optuna tuning for any model kind using leakage-safe CV from ModelTrainer."""

    def __init__(
        self,
        kind: ModelKind | str,
        n_trials: int = 30,
        random_state: int = 42,
        n_jobs: int = 1,
    ):
        self.kind = ModelKind(kind)
        self.n_trials = n_trials
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.logger = get_logger(self.__class__.__name__)
        self.best_params_: dict[str, Any] | None = None
        self.best_value_: float | None = None

    def _suggest_params(self, trial: optuna.Trial) -> dict[str, Any]:
        """Define Optuna search space per model kind."""
        if self.kind is ModelKind.LOGISTIC:
            return {"C": trial.suggest_float("C", 1e-3, 10.0, log=True)}
        if self.kind is ModelKind.RANDOM_FOREST:
            return {
                "n_estimators": trial.suggest_int("n_estimators", 100, 1000, step=100),
                "max_features": trial.suggest_float("max_features", 0.1, 1.0),
                "min_samples_leaf": trial.suggest_int("min_samples_leaf", 1, 40),
            }
        return {
            "n_estimators": trial.suggest_int("n_estimators", 100, 1000, step=100),
            "learning_rate": trial.suggest_float("learning_rate", 0.005, 0.2, log=True),
            "num_leaves": trial.suggest_int("num_leaves", 8, 128),
            "min_child_samples": trial.suggest_int("min_child_samples", 5, 200),
            "subsample": trial.suggest_float("subsample", 0.6, 1.0),
            "colsample_bytree": trial.suggest_float("colsample_bytree", 0.6, 1.0),
            "reg_lambda": trial.suggest_float("reg_lambda", 1e-8, 10.0, log=True),
        }

    def tune(
        self,
        folds: Sequence[Fold],
        recipe: Recipe,
        base_params: dict[str, Any],
        evaluator: Evaluator | None = None,
    ) -> dict[str, Any]:
        """
        Run Optuna optimization and return best tuned parameters (subset).
        Objective is mean ROC-AUC over the given folds.
        """
        self.logger.info(
            f"Starting Optuna tuning for {self.kind.value} "
            f"({self.n_trials} trials, {len(folds)}-fold CV)"
        )
        evaluator = evaluator or Evaluator()

        sampler = optuna.samplers.TPESampler(seed=self.random_state)
        study = optuna.create_study(direction="maximize", sampler=sampler)

        def objective(trial: optuna.Trial) -> float:
            params = dict(base_params)
            params.update(self._suggest_params(trial))

            trainer = ModelTrainer(self.kind, params=params, random_state=self.random_state)
            # reduce log noise during tuning
            trainer.logger.setLevel(logging.WARNING)
            recipe.logger.setLevel(logging.WARNING)
            try:
                result = trainer.cross_validate(folds, recipe, evaluator, n_jobs=self.n_jobs)
            finally:
                trainer.logger.setLevel(logging.INFO)
                recipe.logger.setLevel(logging.INFO)
            return result.mean("roc_auc")

        study.optimize(objective, n_trials=self.n_trials)

        self.best_params_ = study.best_params
        self.best_value_ = float(study.best_value)

        self.logger.info(f"Best CV ROC-AUC: {self.best_value_:.4f}")
        self.logger.info(f"Best parameters: {self.best_params_}")

        return dict(self.best_params_)
