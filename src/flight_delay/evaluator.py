import json
import os
from dataclasses import asdict, dataclass
from typing import Dict, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    average_precision_score,
    balanced_accuracy_score,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score,
    roc_curve,
)

from .utils.logger import get_logger


@dataclass(frozen=True)
class MetricsReport:
    """Scalar summaries of one prediction set."""
    accuracy: float
    roc_auc: float
    pr_auc: float
    balanced_accuracy: float
    precision: float
    recall: float
    f1: float
    n: int

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class Evaluator:
    """Score predicted classes and probabilities against the true labels."""

    def __init__(
        self,
        positive_class: str = "late",
        metrics_path: Optional[str] = None,
        verbose: bool = False,
    ):
        self.positive_class = positive_class
        self.metrics_path = metrics_path
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    @property
    def prob_col(self) -> str:
        return f"prob_{self.positive_class}"

    def _binarize(self, truth) -> np.ndarray:
        return (np.asarray(truth).astype(str) == self.positive_class).astype(int)

    def score(self, predictions: pd.DataFrame, truth) -> MetricsReport:
        """Compute accuracy, ROC AUC and threshold metrics for one prediction set."""
        y_true = self._binarize(truth)
        y_pred = self._binarize(predictions["pred_class"])
        y_proba = predictions[self.prob_col].to_numpy(dtype=float)

        if len(np.unique(y_true)) < 2:
            self.logger.warning("Only one class present in truth; ROC/PR AUC undefined")
            roc_auc = pr_auc = float("nan")
        else:
            roc_auc = float(roc_auc_score(y_true, y_proba))
            pr_auc = float(average_precision_score(y_true, y_proba))

        report = MetricsReport(
            accuracy=float(accuracy_score(y_true, y_pred)),
            roc_auc=roc_auc,
            pr_auc=pr_auc,
            balanced_accuracy=float(balanced_accuracy_score(y_true, y_pred)),
            precision=float(precision_score(y_true, y_pred, zero_division=0)),
            recall=float(recall_score(y_true, y_pred, zero_division=0)),
            f1=float(f1_score(y_true, y_pred, zero_division=0)),
            n=int(len(y_true)),
        )
        if self.verbose:
            self.logger.info(
                f"accuracy={report.accuracy:.4f} roc_auc={report.roc_auc:.4f} (n={report.n:,})"
            )
        return report

    def roc_points(self, predictions: pd.DataFrame, truth) -> list[tuple[float, float]]:
        """(false_positive_rate, true_positive_rate) pairs ordered by decreasing threshold."""
        y_true = self._binarize(truth)
        fpr, tpr, _ = roc_curve(y_true, predictions[self.prob_col].to_numpy(dtype=float))
        return [(float(f), float(t)) for f, t in zip(fpr, tpr)]

    def save(self, reports: Dict[str, MetricsReport], path: Optional[str] = None) -> str:
        """Write per-model reports to JSON and return the path."""
        path = path or self.metrics_path
        if not path:
            raise ValueError("No metrics_path configured")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            json.dump({name: r.to_dict() for name, r in reports.items()}, f, indent=4)
        self.logger.info(f"Saved metrics: {path}")
        return path
