import math
import datetime
from typing import Iterable, Mapping
from zoneinfo import ZoneInfo

import numpy as np


class MathTools:
    """Provides essential numeric utilities for training calculations."""

    DAYS_PER_WEEK: int = 7

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def coefficient_of_variation(values: Iterable[float]) -> float:
        """Return the population coefficient of variation for ``values``."""
        data = list(values)
        if len(data) < 2:
            return 0.0
        arr = np.array(data, dtype=float)
        mean = float(np.mean(arr))
        if mean == 0:
            return 0.0
        std = float(np.std(arr))
        return std / mean

    @staticmethod
    def shares(counts: Mapping) -> dict:
        """Return each value of ``counts`` as a fraction of their sum."""
        total = sum(counts.values())
        if total <= 0:
            return {key: 0.0 for key in counts}
        return {key: value / total for key, value in counts.items()}

    @staticmethod
    def as_utc(value: datetime.datetime | datetime.date) -> datetime.datetime:
        """Return ``value`` as timezone-aware datetime in UTC."""
        if not isinstance(value, datetime.datetime):
            value = datetime.datetime.combine(value, datetime.time())
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)

    @classmethod
    def local_date(
        cls, value: datetime.datetime | datetime.date, tz: str = "UTC"
    ) -> datetime.date:
        """Return the calendar date of ``value`` in timezone ``tz``."""
        return cls.as_utc(value).astimezone(ZoneInfo(tz)).date()

    @classmethod
    def days_between(
        cls,
        start: datetime.datetime | datetime.date,
        end: datetime.datetime | datetime.date,
        tz: str = "UTC",
    ) -> int:
        """Return the number of calendar days from ``start`` to ``end``."""
        return (cls.local_date(end, tz) - cls.local_date(start, tz)).days

    @classmethod
    def weeks_for_days(cls, days: int) -> int:
        """Return the number of started weeks covering ``days`` days."""
        return math.ceil(days / cls.DAYS_PER_WEEK)
