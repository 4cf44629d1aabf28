"""
Flight Delay — Tabular Classification Experiment Pipeline

This package predicts whether a flight arrives late by joining flights with
hourly weather, learning a leakage-safe feature recipe on the training view,
and fitting pluggable classifiers scored on a held-out view.

Modules:
    config         — Load YAML configuration and validate split settings.
    errors         — Pipeline exception hierarchy.
    data_loader    — Read flights and weather, join on origin + hour.
    cleaner        — Derive the late/on-time label, drop incomplete rows.
    splitter       — Seeded train/test split and k-fold resamples.
    recipe         — Fit-once/apply-many feature steps.
    model_trainer  — Logistic, random forest and LightGBM behind one contract.
    evaluator      — Accuracy, ROC AUC and ROC curve points.
    hyper_tuner    — Tune a model kind with Optuna over CV folds.
    pipeline       — Orchestrates all components.
    utils.logger   — Unified timestamped console logger.
"""

from .config import Config
from .errors import DataUnavailable, FitError, InvalidFoldCount, InvalidFraction, PipelineError
from .data_loader import DataLoader
from .cleaner import FlightCleaner
from .splitter import Fold, kfold, split
from .recipe import Recipe, RecipeState, build_flight_recipe
from .model_trainer import FittedModel, ModelKind, ModelTrainer
from .evaluator import Evaluator, MetricsReport
from .hyper_tuner import HyperTuner
from .pipeline import ExperimentResult, PipelineRunner

__all__ = [
    "Config",
    "PipelineError",
    "DataUnavailable",
    "InvalidFraction",
    "InvalidFoldCount",
    "FitError",
    "DataLoader",
    "FlightCleaner",
    "Fold",
    "split",
    "kfold",
    "Recipe",
    "RecipeState",
    "build_flight_recipe",
    "FittedModel",
    "ModelKind",
    "ModelTrainer",
    "Evaluator",
    "MetricsReport",
    "HyperTuner",
    "ExperimentResult",
    "PipelineRunner",
]
