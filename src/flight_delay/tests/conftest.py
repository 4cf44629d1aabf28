import numpy as np
import pandas as pd
import pytest

from flight_delay.cleaner import FlightCleaner

ORIGINS = ["EWR", "JFK", "LGA"]
DESTS = ["ATL", "BOS", "CLT", "DFW", "LAX", "MCO", "ORD", "SFO"]
CARRIERS = ["AA", "B6", "DL", "EV", "UA"]


def make_flights(n: int = 1000, late_rate: float = 0.16, seed: int = 0):
    """Synthetic flights + hourly weather where rain and low visibility drive delays."""
    rng = np.random.default_rng(seed)
    hours = pd.date_range("2013-01-01 05:00", "2013-12-31 23:00", freq="h")

    flights = pd.DataFrame(
        {
            "flight": rng.integers(1, 5000, size=n),
            "origin": rng.choice(ORIGINS, size=n),
            "dest": rng.choice(DESTS, size=n),
            "carrier": rng.choice(CARRIERS, size=n),
            "air_time": rng.uniform(40, 360, size=n).round(),
            "time_hour": rng.choice(hours, size=n),
        }
    )
    flights["distance"] = (flights["air_time"] * 7.5 + rng.normal(0, 30, size=n)).round()

    weather = flights[["origin", "time_hour"]].drop_duplicates().reset_index(drop=True)
    m = len(weather)
    weather["visib"] = np.where(rng.random(m) < 0.1, rng.uniform(0, 3, m), 10.0).round(1)
    weather["precip"] = np.where(rng.random(m) < 0.15, rng.uniform(0.01, 0.5, m), 0.0).round(2)

    joined = flights.merge(weather, on=["origin", "time_hour"], how="left")
    score = (
        2.5 * (joined["precip"] > 0)
        + 1.5 * (joined["visib"] < 3)
        + rng.normal(0, 0.5, size=n)
    )
    n_late = int(round(n * late_rate))
    late = np.zeros(n, dtype=bool)
    late[np.argsort(-score.to_numpy())[:n_late]] = True
    flights["arr_delay"] = np.where(
        late, 30 + rng.exponential(40, size=n), rng.uniform(-30, 29, size=n)
    ).round()
    return flights, weather


@pytest.fixture
def flights_and_weather():
    return make_flights()


@pytest.fixture
def raw_flights(flights_and_weather):
    flights, weather = flights_and_weather
    return flights.merge(weather, on=["origin", "time_hour"], how="left")


@pytest.fixture
def clean_flights(raw_flights):
    return FlightCleaner().clean(raw_flights)
