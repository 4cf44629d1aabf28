"""
Fit-once/apply-many feature recipe.

A ``Recipe`` is an ordered list of steps. Each step learns its parameters
from the training view in ``fit`` and replays them unchanged in ``apply``,
so evaluation data never leaks into what the recipe learns. The learned
parameters are collected in an immutable ``RecipeState``.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import holidays
import pandas as pd
from sklearn.preprocessing import OneHotEncoder

from .utils.logger import get_logger

DOW_LEVELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_LEVELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _slug(text: str) -> str:
    return re.sub(r"[^0-9a-z]+", "_", text.lower()).strip("_")


class Step:
    """Base recipe step: ``fit`` returns hashable params, ``apply`` replays them."""

    def fit(self, data: pd.DataFrame, predictors: Sequence[str]) -> Any:
        return None

    def apply(self, data: pd.DataFrame, params: Any) -> pd.DataFrame:
        raise NotImplementedError


class DateFeatures(Step):
    """Decompose a date column into day-of-week / month categoricals (and optionally year)."""

    SUPPORTED = ("dow", "month", "year")

    def __init__(self, column: str = "date", features: Sequence[str] = ("dow", "month")):
        unknown = [f for f in features if f not in self.SUPPORTED]
        if unknown:
            raise ValueError(f"Unsupported date features: {unknown}")
        self.column = column
        self.features = tuple(features)

    def apply(self, data: pd.DataFrame, params: Any) -> pd.DataFrame:
        out = data.copy()
        dates = pd.to_datetime(out[self.column])
        if "dow" in self.features:
            codes = dates.dt.dayofweek.fillna(-1).astype(int)
            out[f"{self.column}_dow"] = pd.Categorical.from_codes(codes, categories=DOW_LEVELS)
        if "month" in self.features:
            codes = (dates.dt.month - 1).fillna(-1).astype(int)
            out[f"{self.column}_month"] = pd.Categorical.from_codes(codes, categories=MONTH_LEVELS)
        if "year" in self.features:
            out[f"{self.column}_year"] = dates.dt.year
        return out


class HolidayFlags(Step):
    """One 0/1 indicator column per public holiday.

    Holiday names come from the ``holidays`` calendar of ``country``. When
    ``names`` is not given, the set is learned from the calendar years spanned
    by the training view and frozen in the params.
    """

    def __init__(
        self,
        column: str = "date",
        country: str = "US",
        names: Optional[Sequence[str]] = None,
    ):
        self.column = column
        self.country = country
        self.names = tuple(names) if names else None

    def _calendar(self, dates: pd.Series) -> holidays.HolidayBase:
        years = sorted(int(y) for y in dates.dt.year.dropna().unique())
        return holidays.country_holidays(self.country, years=years)

    def fit(self, data: pd.DataFrame, predictors: Sequence[str]) -> tuple[str, ...]:
        if self.names:
            return self.names
        calendar = self._calendar(pd.to_datetime(data[self.column]))
        found = {name for day in calendar for name in calendar.get_list(day)}
        return tuple(sorted(found))

    def apply(self, data: pd.DataFrame, params: tuple[str, ...]) -> pd.DataFrame:
        out = data.copy()
        dates = pd.to_datetime(out[self.column])
        calendar = self._calendar(dates)
        days = dates.dt.date

        by_name: dict[str, list] = {name: [] for name in params}
        for day in calendar:
            for name in calendar.get_list(day):
                if name in by_name:
                    by_name[name].append(day)

        for name in params:
            out[f"{self.column}_{_slug(name)}"] = days.isin(by_name[name]).astype(int)
        return out


class DropColumns(Step):
    def __init__(self, columns: Sequence[str]):
        self.columns = tuple(columns)

    def fit(self, data: pd.DataFrame, predictors: Sequence[str]) -> tuple[str, ...]:
        return tuple(c for c in self.columns if c in data.columns)

    def apply(self, data: pd.DataFrame, params: tuple[str, ...]) -> pd.DataFrame:
        return data.drop(columns=list(params), errors="ignore")


class DummyEncode(Step):
    """Dummy-encode categorical predictors with levels learned at fit time.

    Values not seen during fitting encode as all zeros. With ``one_hot=False``
    the first level is the reference and gets no column.
    """

    def __init__(self, one_hot: bool = False):
        self.one_hot = one_hot

    @staticmethod
    def _as_text(values: pd.Series) -> pd.Series:
        values = values.astype("object")
        return values.where(values.isna(), values.astype(str))

    def fit(self, data: pd.DataFrame, predictors: Sequence[str]) -> tuple:
        cat_cols = (
            data[list(predictors)]
            .select_dtypes(include=["object", "category", "string"])
            .columns
        )
        params = []
        for col in cat_cols:
            observed = self._as_text(data[col]).dropna()
            if observed.empty:
                params.append((col, ()))
                continue
            # levels come from training rows only, never from the dtype
            encoder = OneHotEncoder(handle_unknown="ignore").fit(observed.to_frame())
            levels = [str(c) for c in encoder.categories_[0]]
            if isinstance(data[col].dtype, pd.CategoricalDtype):
                seen = set(levels)
                levels = [str(c) for c in data[col].cat.categories if str(c) in seen]
            params.append((col, tuple(levels)))
        return tuple(params)

    def apply(self, data: pd.DataFrame, params: tuple) -> pd.DataFrame:
        out = data.copy()
        for col, levels in params:
            cat = pd.Categorical(self._as_text(out[col]), categories=list(levels))
            dummies = pd.get_dummies(cat, dtype=int)
            dummies.columns = [f"{col}_{level}" for level in levels]
            dummies.index = out.index
            if not self.one_hot:
                dummies = dummies.iloc[:, 1:]
            position = out.columns.get_loc(col)
            out = pd.concat(
                [out.iloc[:, :position], dummies, out.iloc[:, position + 1:]], axis=1
            )
        return out


class ZeroVarianceFilter(Step):
    """Drop predictors that take a single value on the training view."""

    def fit(self, data: pd.DataFrame, predictors: Sequence[str]) -> tuple[str, ...]:
        return tuple(c for c in predictors if data[c].nunique(dropna=False) <= 1)

    def apply(self, data: pd.DataFrame, params: tuple[str, ...]) -> pd.DataFrame:
        return data.drop(columns=list(params), errors="ignore")


@dataclass(frozen=True)
class RecipeState:
    """Everything a recipe learned from its training view."""
    steps: tuple[str, ...]
    params: tuple
    columns: tuple[str, ...]
    feature_columns: tuple[str, ...]
    outcome: str
    id_columns: tuple[str, ...]


class Recipe:
    """Ordered list of steps with the same fit/apply contract as a single step."""

    def __init__(self, outcome: str, id_columns: Sequence[str] = ()):
        self.outcome = outcome
        self.id_columns = tuple(id_columns)
        self.steps: list[Step] = []
        self.logger = get_logger(self.__class__.__name__)

    def add_step(self, step: Step) -> "Recipe":
        self.steps.append(step)
        return self

    def _predictors(self, data: pd.DataFrame) -> list[str]:
        roles = {self.outcome, *self.id_columns}
        return [c for c in data.columns if c not in roles]

    def fit(self, train: pd.DataFrame) -> RecipeState:
        data = train
        params = []
        for step in self.steps:
            step_params = step.fit(data, self._predictors(data))
            data = step.apply(data, step_params)
            params.append(step_params)

        state = RecipeState(
            steps=tuple(type(s).__name__ for s in self.steps),
            params=tuple(params),
            columns=tuple(data.columns),
            feature_columns=tuple(self._predictors(data)),
            outcome=self.outcome,
            id_columns=self.id_columns,
        )
        self.logger.info(
            f"Recipe fitted on {len(train):,} rows: {len(state.feature_columns)} features"
        )
        return state

    def apply(self, state: RecipeState, ds: pd.DataFrame) -> pd.DataFrame:
        if state.steps != tuple(type(s).__name__ for s in self.steps):
            raise ValueError("RecipeState was fitted with a different list of steps")

        data = ds
        for step, step_params in zip(self.steps, state.params):
            data = step.apply(data, step_params)

        # outcome may be absent when baking unlabeled data
        columns = [c for c in state.columns if c in data.columns or c in state.feature_columns]
        return data.reindex(columns=columns, fill_value=0)


def build_flight_recipe(
    outcome: str = "arr_delay",
    id_columns: Sequence[str] = ("flight", "time_hour"),
    date_column: str = "date",
    date_features: Sequence[str] = ("dow", "month"),
    holiday_country: str = "US",
    holiday_names: Optional[Sequence[str]] = None,
    one_hot: bool = False,
) -> Recipe:
    """Default recipe: date parts, holidays, drop date, dummies, zero-variance filter."""
    return (
        Recipe(outcome=outcome, id_columns=id_columns)
        .add_step(DateFeatures(date_column, features=date_features))
        .add_step(HolidayFlags(date_column, country=holiday_country, names=holiday_names))
        .add_step(DropColumns([date_column]))
        .add_step(DummyEncode(one_hot=one_hot))
        .add_step(ZeroVarianceFilter())
    )
