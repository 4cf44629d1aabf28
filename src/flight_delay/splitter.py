from typing import NamedTuple, Optional

import pandas as pd
from sklearn.model_selection import KFold, train_test_split

from .errors import InvalidFoldCount, InvalidFraction
from .utils.logger import get_logger

logger = get_logger("Splitter")


class Fold(NamedTuple):
    """One cross-validation resample: the fold's training part and its held-out part."""
    train: pd.DataFrame
    validate: pd.DataFrame


def split(
    ds: pd.DataFrame,
    train_fraction: float,
    seed: int,
    stratify: Optional[str] = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Randomly partition ``ds`` into disjoint training and evaluation views."""
    if not 0.0 < train_fraction < 1.0:
        raise InvalidFraction(f"train_fraction must be in (0, 1), got {train_fraction}")

    n_train = int(round(len(ds) * train_fraction))
    if n_train == 0 or n_train == len(ds):
        raise InvalidFraction(
            f"train_fraction={train_fraction} leaves an empty view for {len(ds)} records"
        )

    train, test = train_test_split(
        ds,
        train_size=n_train,
        random_state=seed,
        shuffle=True,
        stratify=ds[stratify] if stratify else None,
    )
    logger.info(f"Split {len(ds):,} rows into train={len(train):,} / test={len(test):,}")
    return train, test


def kfold(ds: pd.DataFrame, k: int, seed: int) -> list[Fold]:
    """Randomly partition ``ds`` into ``k`` train/validate pairs.

    Every record lands in exactly one validation part and validation sizes
    differ by at most one record.
    """
    if k < 2:
        raise InvalidFoldCount(f"k must be >= 2, got {k}")
    if k > len(ds):
        raise InvalidFoldCount(f"k={k} exceeds the number of records ({len(ds)})")

    splitter = KFold(n_splits=k, shuffle=True, random_state=seed)
    folds = [
        Fold(train=ds.iloc[train_idx], validate=ds.iloc[val_idx])
        for train_idx, val_idx in splitter.split(ds)
    ]
    logger.info(f"Created {k} folds over {len(ds):,} rows")
    return folds
