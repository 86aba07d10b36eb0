"""
Consumption History Service - Stored measurements to consumption reports

Loads consumption rows for a time window (explicit range, last day, last
week, last month or everything) and summarises them with the
ConsumptionAggregator.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from cylinder_monitor.errors import MonitorError, OperationResult, ValidationError
from cylinder_monitor.models import ChartDataPoint, Consumption, now_ms
from cylinder_monitor.repositories.measurement_repository import MeasurementRepository
from cylinder_monitor.services.consumption_aggregator import ConsumptionAggregator, TimeZone

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
WEEK_MS = 7 * DAY_MS
MONTH_MS = 30 * DAY_MS

PERIODS = {"day": DAY_MS, "week": WEEK_MS, "month": MONTH_MS}


@dataclass(frozen=True)
class ConsumptionSummary:
    """Totals and daily chart for one window."""

    total_consumed_kg: float
    measurement_count: int
    chart: List[ChartDataPoint] = field(default_factory=list)
    start: Optional[int] = None
    end: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_consumed_kg": round(self.total_consumed_kg, 3),
            "measurement_count": self.measurement_count,
            "chart": [point.to_dict() for point in self.chart],
            "start": self.start,
            "end": self.end,
        }


class ConsumptionHistoryService:
    """Reads consumption windows from storage and aggregates them."""

    def __init__(
        self,
        measurement_repo: MeasurementRepository,
        aggregator: Optional[ConsumptionAggregator] = None,
        tz: TimeZone = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize ConsumptionHistoryService.

        Args:
            measurement_repo: MeasurementRepository instance
            aggregator: ConsumptionAggregator, defaults to no noise smoothing
            tz: Zone used for chart days (None = local time)
            clock: Epoch-milliseconds source for the relative windows
        """
        self.measurement_repo = measurement_repo
        self.aggregator = aggregator or ConsumptionAggregator()
        self.tz = tz
        self._clock = clock
        logger.info("ConsumptionHistoryService initialized")

    async def between(
        self, start: int, end: int, cylinder_id: Optional[int] = None
    ) -> OperationResult[List[Consumption]]:
        if start > end:
            return OperationResult.failure(ValidationError("Start must not be after end"))
        try:
            rows = await self.measurement_repo.get_between(start, end, cylinder_id)
        except MonitorError as e:
            logger.error(f"Error loading consumption {start}..{end}: {e.message}")
            return OperationResult.failure(e)
        return OperationResult.success([Consumption.from_measurement(m) for m in rows])

    async def last_day(self, cylinder_id: Optional[int] = None) -> OperationResult[List[Consumption]]:
        return await self._trailing(DAY_MS, cylinder_id)

    async def last_week(self, cylinder_id: Optional[int] = None) -> OperationResult[List[Consumption]]:
        return await self._trailing(WEEK_MS, cylinder_id)

    async def last_month(self, cylinder_id: Optional[int] = None) -> OperationResult[List[Consumption]]:
        return await self._trailing(MONTH_MS, cylinder_id)

    async def all_time(self, cylinder_id: Optional[int] = None) -> OperationResult[List[Consumption]]:
        try:
            rows = await self.measurement_repo.get_all(cylinder_id)
        except MonitorError as e:
            logger.error(f"Error loading consumption history: {e.message}")
            return OperationResult.failure(e)
        return OperationResult.success([Consumption.from_measurement(m) for m in rows])

    async def summary(
        self,
        start: Optional[int] = None,
        end: Optional[int] = None,
        cylinder_id: Optional[int] = None,
    ) -> OperationResult[ConsumptionSummary]:
        """
        Summarise a window; with no bounds the whole history is used.

        Args:
            start: Window start in epoch ms (defaults to the beginning)
            end: Window end in epoch ms (defaults to now)
            cylinder_id: Restrict to one cylinder

        Returns:
            OperationResult with a ConsumptionSummary
        """
        if start is None and end is None:
            loaded = await self.all_time(cylinder_id)
        else:
            loaded = await self.between(
                0 if start is None else start,
                self._clock() if end is None else end,
                cylinder_id,
            )
        if not loaded.ok:
            return OperationResult.failure(loaded.error)

        consumptions = loaded.value
        return OperationResult.success(
            ConsumptionSummary(
                total_consumed_kg=self.aggregator.total_consumed(consumptions),
                measurement_count=len(consumptions),
                chart=self.aggregator.chart_series(consumptions, self.tz),
                start=start,
                end=end,
            )
        )

    async def period_summary(
        self, period: str, cylinder_id: Optional[int] = None
    ) -> OperationResult[ConsumptionSummary]:
        """Summary for ``day``, ``week``, ``month`` (trailing windows) or ``all``."""
        if period == "all":
            return await self.summary(cylinder_id=cylinder_id)
        window_ms = PERIODS.get(period)
        if window_ms is None:
            return OperationResult.failure(ValidationError(f"Unknown period '{period}'"))
        end = self._clock()
        return await self.summary(end - window_ms, end, cylinder_id)

    async def _trailing(
        self, window_ms: int, cylinder_id: Optional[int]
    ) -> OperationResult[List[Consumption]]:
        end = self._clock()
        return await self.between(end - window_ms, end, cylinder_id)
