"""
Outlier Detector - Transient weight spike/dip detection

Looks at the four newest stored readings of a cylinder (newest first):

    [new, after, candidate, before]

``candidate`` is flagged when it sits on the same side of both chronological
neighbours, is far from both in absolute and relative terms, the neighbours
agree with each other, and the new reading confirms ``after`` rather than the
candidate. Monotonic drains and refills never satisfy the same-side test.
"""

import logging
import math
from typing import Optional, Sequence

from cylinder_monitor.models import FuelMeasurement
from cylinder_monitor.settings import IngestionSettings

logger = logging.getLogger(__name__)

WINDOW_SIZE = 4


class OutlierDetector:
    """Pure outlier rule; thresholds come from IngestionSettings."""

    def __init__(
        self,
        min_deviation_kg: float = 1.0,
        min_deviation_pct: float = 30.0,
        max_neighbor_gap_kg: float = 1.0,
        spread_factor: float = 2.0,
    ):
        self.min_deviation_kg = min_deviation_kg
        self.min_deviation_pct = min_deviation_pct
        self.max_neighbor_gap_kg = max_neighbor_gap_kg
        self.spread_factor = spread_factor

    @classmethod
    def from_settings(cls, settings: IngestionSettings) -> "OutlierDetector":
        return cls(
            min_deviation_kg=settings.outlier_min_deviation_kg,
            min_deviation_pct=settings.outlier_min_deviation_pct,
            max_neighbor_gap_kg=settings.outlier_max_neighbor_gap_kg,
            spread_factor=settings.outlier_spread_factor,
        )

    def is_outlier(self, before: float, candidate: float, after: float, new: float) -> bool:
        """Apply the rule to raw total weights in chronological order."""
        weights = (before, candidate, after, new)
        if not all(math.isfinite(w) and w > 0 for w in weights):
            return False

        neighbor_gap = abs(after - before)
        if neighbor_gap > self.max_neighbor_gap_kg:
            return False

        # Same side of both neighbours: a spike or a dip, not a trend
        if (candidate - before) * (candidate - after) <= 0:
            return False

        deviation = min(abs(candidate - before), abs(candidate - after))
        if deviation < self.min_deviation_kg:
            return False
        if deviation / max(before, after) * 100 < self.min_deviation_pct:
            return False
        if deviation <= self.spread_factor * neighbor_gap:
            return False

        return abs(new - after) < abs(new - candidate)

    def find_outlier(self, window: Sequence[FuelMeasurement]) -> Optional[FuelMeasurement]:
        """
        Return the stored measurement to delete, if any.

        Args:
            window: Newest-first measurements of one cylinder, the just
                stored reading included

        Returns:
            The middle prior reading when it is an outlier, otherwise None
        """
        if len(window) < WINDOW_SIZE:
            return None

        new, after, candidate, before = window[:WINDOW_SIZE]
        if self.is_outlier(
            before.total_weight_kg,
            candidate.total_weight_kg,
            after.total_weight_kg,
            new.total_weight_kg,
        ):
            logger.debug(
                f"Outlier {candidate.total_weight_kg}kg between "
                f"{before.total_weight_kg}kg and {after.total_weight_kg}kg"
            )
            return candidate
        return None
