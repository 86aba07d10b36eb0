"""
Consumption Aggregator - Refill-aware consumption totals and daily series

Consumption is the sum of every drop in fuel level between consecutive
readings of the same cylinder. Increases (refills) contribute nothing, so a
drain, refill, drain sequence counts both drains.
"""

import logging
from datetime import date, datetime, tzinfo
from typing import Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

import pandas as pd

from cylinder_monitor.models import ChartDataPoint

logger = logging.getLogger(__name__)

TimeZone = Union[str, tzinfo, None]

_COLUMNS = ["cylinder_id", "timestamp", "fuel_kilograms"]


def _resolve_tz(tz: TimeZone) -> Optional[tzinfo]:
    if tz is None or tz == "":
        return None
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def _calendar_day(timestamp_ms: int, tz: Optional[tzinfo]) -> date:
    # tz=None converts to the machine's local time
    return datetime.fromtimestamp(timestamp_ms / 1000, tz).date()


class ConsumptionAggregator:
    """
    Pure aggregation over measurement-like objects.

    Anything exposing ``cylinder_id``, ``timestamp`` and ``fuel_kilograms``
    is accepted (FuelMeasurement and Consumption both qualify).
    """

    def __init__(self, noise_threshold_kg: float = 0.0):
        self.noise_threshold_kg = max(0.0, noise_threshold_kg)

    def total_consumed(self, measurements: Iterable) -> float:
        """
        Total kilograms consumed across all cylinders.

        Args:
            measurements: Readings in any order, possibly mixing cylinders

        Returns:
            Sum of every per-cylinder decrease, 0.0 for fewer than two readings
        """
        frame = self._frame(measurements)
        if len(frame) < 2:
            return 0.0
        per_cylinder = frame.groupby("cylinder_id", sort=False)["fuel_kilograms"].agg(
            self._consumed
        )
        return float(per_cylinder.sum())

    def chart_series(self, measurements: Iterable, tz: TimeZone = None) -> List[ChartDataPoint]:
        """
        Daily consumption, sorted by day.

        Args:
            measurements: Readings in any order
            tz: Zone name or tzinfo used for calendar days; None means local time

        Returns:
            One ChartDataPoint per day with readings, every value >= 0
        """
        frame = self._frame(measurements)
        if frame.empty:
            return []

        zone = _resolve_tz(tz)
        frame["day"] = [_calendar_day(ts, zone) for ts in frame["timestamp"]]

        daily = (
            frame.groupby(["day", "cylinder_id"])["fuel_kilograms"]
            .agg(self._consumed)
            .groupby(level="day")
            .sum()
            .sort_index()
        )
        return [ChartDataPoint(day=day, kilograms=max(0.0, float(kg))) for day, kg in daily.items()]

    def _frame(self, measurements: Iterable) -> pd.DataFrame:
        rows = [(m.cylinder_id, m.timestamp, m.fuel_kilograms) for m in measurements]
        frame = pd.DataFrame(rows, columns=_COLUMNS)
        return frame.sort_values(["cylinder_id", "timestamp"], kind="mergesort").reset_index(drop=True)

    def _consumed(self, levels: pd.Series) -> float:
        """Sum of decreases in one cylinder's time-ordered fuel levels."""
        if len(levels) < 2:
            return 0.0
        if self.noise_threshold_kg <= 0:
            return float((-levels.diff()).clip(lower=0).sum())

        # Increases smaller than the threshold are sensor noise: keep the
        # previous level instead of treating them as a refill.
        consumed = 0.0
        level = levels.iloc[0]
        for current in levels.iloc[1:]:
            if current < level:
                consumed += level - current
                level = current
            elif current - level >= self.noise_threshold_kg:
                level = current
        return float(consumed)
