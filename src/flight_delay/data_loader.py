import os
from typing import Optional, Sequence

import pandas as pd

from .errors import DataUnavailable
from .utils.logger import get_logger

FLIGHT_COLUMNS = (
    "flight",
    "origin",
    "dest",
    "carrier",
    "air_time",
    "distance",
    "arr_delay",
    "time_hour",
)
WEATHER_COLUMNS = ("visib", "precip")
JOIN_KEYS = ("origin", "time_hour")


def select_loaded_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Project an already joined frame onto the columns ``DataLoader.load`` emits."""
    columns = list(dict.fromkeys([*FLIGHT_COLUMNS, *JOIN_KEYS, *WEATHER_COLUMNS]))
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise DataUnavailable(f"Joined frame is missing required columns: {missing}")
    return df[columns].copy()


class DataLoader:
    """Loads the flights table, joins hourly weather onto it and optionally samples rows."""

    def __init__(
        self,
        flights_path: str,
        weather_path: str,
        sample_size: Optional[int] = None,
        sample_seed: int = 42,
        flight_columns: Sequence[str] = FLIGHT_COLUMNS,
        weather_columns: Sequence[str] = WEATHER_COLUMNS,
    ):
        self.flights_path = flights_path
        self.weather_path = weather_path
        self.sample_size = sample_size
        self.sample_seed = sample_seed
        self.flight_columns = list(flight_columns)
        self.weather_columns = list(weather_columns)
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def _read(path: str) -> pd.DataFrame:
        if not os.path.exists(path):
            raise DataUnavailable(f"Data source not found: {path}")
        try:
            return pd.read_csv(path)
        except (OSError, ValueError) as exc:
            raise DataUnavailable(f"Could not read {path}: {exc}") from exc

    @staticmethod
    def _require(df: pd.DataFrame, columns: Sequence[str], path: str) -> None:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise DataUnavailable(f"{path} is missing required columns: {missing}")

    def load(self) -> pd.DataFrame:
        flights = self._read(self.flights_path)
        weather = self._read(self.weather_path)

        flight_cols = list(dict.fromkeys([*self.flight_columns, *JOIN_KEYS]))
        weather_cols = [*JOIN_KEYS, *self.weather_columns]
        self._require(flights, flight_cols, self.flights_path)
        self._require(weather, weather_cols, self.weather_path)

        flights = flights[flight_cols].copy()
        weather = weather[weather_cols].copy()
        flights["time_hour"] = pd.to_datetime(flights["time_hour"])
        weather["time_hour"] = pd.to_datetime(weather["time_hour"])

        # one weather row per (origin, hour); duplicates would multiply flights
        n_dup = int(weather.duplicated(subset=list(JOIN_KEYS)).sum())
        if n_dup:
            self.logger.warning(f"Dropping {n_dup} duplicate weather rows on {JOIN_KEYS}")
            weather = weather.drop_duplicates(subset=list(JOIN_KEYS), keep="first")

        df = flights.merge(weather, on=list(JOIN_KEYS), how="left", validate="many_to_one")

        if self.sample_size and self.sample_size < len(df):
            df = df.sample(self.sample_size, random_state=self.sample_seed)

        df = df.reset_index(drop=True)
        self.logger.info(f"Loaded {len(df):,} flights joined with weather ({df.shape[1]} cols)")
        return df
