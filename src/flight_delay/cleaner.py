import numpy as np
import pandas as pd

from .utils.logger import get_logger

LATE = "late"
ON_TIME = "on_time"


class FlightCleaner:
    """Derives the late/on-time label and precipitation flag, then drops incomplete rows."""

    def __init__(
        self,
        delay_threshold_minutes: float = 30,
        outcome_col: str = "arr_delay",
        precip_col: str = "precip",
        timestamp_col: str = "time_hour",
        date_col: str = "date",
        max_drop_fraction: float = 0.2,
    ):
        self.delay_threshold_minutes = delay_threshold_minutes
        self.outcome_col = outcome_col
        self.precip_col = precip_col
        self.timestamp_col = timestamp_col
        self.date_col = date_col
        self.max_drop_fraction = max_drop_fraction
        self.logger = get_logger(self.__class__.__name__)

    def clean(self, raw: pd.DataFrame) -> pd.DataFrame:
        out = raw.copy()

        delay = pd.to_numeric(out[self.outcome_col], errors="coerce")
        out[self.outcome_col] = np.where(
            delay.isna(),
            None,
            np.where(delay >= self.delay_threshold_minutes, LATE, ON_TIME),
        )

        if self.precip_col in out.columns:
            precip = pd.to_numeric(out[self.precip_col], errors="coerce")
            out[self.precip_col] = np.where(
                precip.isna(), None, np.where(precip > 0, "yes", "no")
            )

        if self.timestamp_col in out.columns:
            out[self.date_col] = pd.to_datetime(out[self.timestamp_col]).dt.normalize()
            # tz-aware timestamps keep the local calendar date
            if getattr(out[self.date_col].dt, "tz", None) is not None:
                out[self.date_col] = out[self.date_col].dt.tz_localize(None)

        n_before = len(out)
        out = out.dropna().reset_index(drop=True)
        n_dropped = n_before - len(out)
        if n_dropped:
            share = n_dropped / max(n_before, 1)
            msg = f"Dropped {n_dropped:,} of {n_before:,} rows with missing values ({share:.1%})"
            if share > self.max_drop_fraction:
                self.logger.warning(msg + "; results may be biased toward complete rows")
            else:
                self.logger.info(msg)

        for col in out.select_dtypes(include=["object", "string"]).columns:
            out[col] = out[col].astype("category")
        out[self.outcome_col] = pd.Categorical(
            out[self.outcome_col].astype(str), categories=[LATE, ON_TIME]
        )

        late_rate = float((out[self.outcome_col] == LATE).mean()) if len(out) else 0.0
        self.logger.info(f"Clean dataset: {len(out):,} rows, late rate {late_rate:.1%}")
        return out
