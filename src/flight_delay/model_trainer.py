import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from lightgbm import LGBMClassifier
from lightgbm.basic import LightGBMError
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from .errors import FitError
from .evaluator import Evaluator, MetricsReport
from .recipe import Recipe, RecipeState
from .splitter import Fold
from .utils.logger import get_logger


class ModelKind(str, Enum):
    LOGISTIC = "logistic"
    RANDOM_FOREST = "random_forest"
    LIGHTGBM = "lightgbm"


DEFAULT_PARAMS: dict[ModelKind, dict[str, Any]] = {
    ModelKind.LOGISTIC: {"max_iter": 1000},
    ModelKind.RANDOM_FOREST: {"n_estimators": 500, "n_jobs": -1},
    ModelKind.LIGHTGBM: {"n_estimators": 300, "learning_rate": 0.05, "verbosity": -1},
}


def make_estimator(kind: ModelKind, params: dict[str, Any], random_state: int):
    """Build an unfitted classifier for ``kind`` with ``params`` layered over the defaults."""
    merged = {**DEFAULT_PARAMS[kind], **params}
    if kind is ModelKind.LOGISTIC:
        # features span very different scales (distance vs. 0/1 dummies)
        return Pipeline(
            steps=[
                ("scaler", StandardScaler()),
                ("clf", LogisticRegression(random_state=random_state, **merged)),
            ]
        )
    if kind is ModelKind.RANDOM_FOREST:
        return RandomForestClassifier(random_state=random_state, **merged)
    if kind is ModelKind.LIGHTGBM:
        return LGBMClassifier(random_state=random_state, **merged)
    raise ValueError(f"Unknown model kind: {kind}")


@dataclass(frozen=True)
class FittedModel:
    """A fitted classifier together with the column order and labels it was trained on."""
    kind: ModelKind
    estimator: Any
    feature_columns: tuple[str, ...]
    classes: tuple[str, ...]


@dataclass
class CVResult:
    kind: ModelKind
    fold_metrics: list[MetricsReport] = field(default_factory=list)

    def summary(self) -> dict[str, dict[str, float]]:
        """Mean and standard error of each metric across folds."""
        frame = pd.DataFrame([m.to_dict() for m in self.fold_metrics]).drop(columns=["n"])
        n = max(len(frame), 1)
        return {
            col: {
                "mean": float(frame[col].mean()),
                "std_err": float(frame[col].std(ddof=1) / np.sqrt(n)) if n > 1 else 0.0,
            }
            for col in frame.columns
        }

    def mean(self, metric: str) -> float:
        return float(np.mean([getattr(m, metric) for m in self.fold_metrics]))


def _fit_fold(
    trainer: "ModelTrainer",
    recipe: Recipe,
    evaluator: Evaluator,
    fold_id: int,
    fold: Fold,
) -> MetricsReport:
    # recipe is fitted on the fold's training part only
    state = recipe.fit(fold.train)
    baked_train = recipe.apply(state, fold.train)
    baked_val = recipe.apply(state, fold.validate)

    model = trainer.fit(
        baked_train[list(state.feature_columns)], baked_train[state.outcome]
    )
    predictions = trainer.predict(model, baked_val, state)
    report = evaluator.score(predictions, baked_val[state.outcome])
    trainer.logger.info(
        f"[{trainer.kind.value}] Fold {fold_id}: accuracy={report.accuracy:.4f} "
        f"roc_auc={report.roc_auc:.4f}"
    )
    return report


class ModelTrainer:
    """
    Uniform fit/predict wrapper over the supported classifiers.

    Provides:
      - fit / predict_class / predict_proba: the shared model contract
      - predict: prediction frame joined back to IDs and true labels
      - cross_validate: leakage-safe resampling over precomputed folds
    """

    def __init__(
        self,
        kind: ModelKind | str,
        params: dict[str, Any] | None = None,
        random_state: int = 42,
    ):
        self.kind = ModelKind(kind)
        self.params = dict(params or {})
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def fit(self, features: pd.DataFrame, labels: Sequence) -> FittedModel:
        y = np.asarray(labels).astype(str)
        classes = np.unique(y)
        if len(classes) < 2:
            raise FitError(self.kind.value, f"need two classes to fit, got {list(classes)}")

        estimator = make_estimator(self.kind, self.params, self.random_state)
        X = features.astype(float)
        try:
            with warnings.catch_warnings():
                warnings.filterwarnings("ignore", category=UserWarning, module="lightgbm")
                estimator.fit(X, y)
        except (ValueError, np.linalg.LinAlgError, LightGBMError) as exc:
            raise FitError(self.kind.value, str(exc)) from exc

        self.logger.info(
            f"Fitted {self.kind.value} on {X.shape[0]:,} rows x {X.shape[1]} features"
        )
        return FittedModel(
            kind=self.kind,
            estimator=estimator,
            feature_columns=tuple(features.columns),
            classes=tuple(str(c) for c in estimator.classes_),
        )

    @staticmethod
    def _matrix(model: FittedModel, features: pd.DataFrame) -> pd.DataFrame:
        return features[list(model.feature_columns)].astype(float)

    def predict_class(self, model: FittedModel, features: pd.DataFrame) -> np.ndarray:
        return np.asarray(model.estimator.predict(self._matrix(model, features))).astype(str)

    def predict_proba(self, model: FittedModel, features: pd.DataFrame) -> pd.DataFrame:
        proba = model.estimator.predict_proba(self._matrix(model, features))
        return pd.DataFrame(
            proba,
            columns=[f"prob_{c}" for c in model.classes],
            index=features.index,
        )

    def predict(
        self, model: FittedModel, baked: pd.DataFrame, state: RecipeState
    ) -> pd.DataFrame:
        """Predicted class and probabilities joined to the ID columns and true label."""
        keep = [c for c in (*state.id_columns, state.outcome) if c in baked.columns]
        result = baked[keep].copy()
        result["pred_class"] = self.predict_class(model, baked)
        return pd.concat([result, self.predict_proba(model, baked)], axis=1)

    def cross_validate(
        self,
        folds: Sequence[Fold],
        recipe: Recipe,
        evaluator: Evaluator,
        n_jobs: int = 1,
    ) -> CVResult:
        """Fit recipe + model per fold and score on the fold's validation part."""
        reports = Parallel(n_jobs=n_jobs)(
            delayed(_fit_fold)(self, recipe, evaluator, i, fold)
            for i, fold in enumerate(folds, start=1)
        )
        result = CVResult(kind=self.kind, fold_metrics=list(reports))
        self.logger.info(
            f"[{self.kind.value}] CV over {len(folds)} folds: "
            f"accuracy={result.mean('accuracy'):.4f} roc_auc={result.mean('roc_auc'):.4f}"
        )
        return result
