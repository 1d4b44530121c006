from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from ..config import DEFAULT_DISCOVERY_CONFIG, DiscoveryConfig

# (start, end) as HHMM integers, both ends inclusive
PEAK_WINDOWS: tuple[tuple[int, int], ...] = ((800, 1000), (1300, 1400), (1900, 2100))


@dataclass(frozen=True)
class ServingPolicy:
    peak_radius_km: float = 3.0
    normal_radius_km: float = 5.0
    peak_windows: tuple[tuple[int, int], ...] = PEAK_WINDOWS

    @classmethod
    def from_config(cls, config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG) -> "ServingPolicy":
        return cls(
            peak_radius_km=config.peak_radius_km,
            normal_radius_km=config.normal_radius_km,
        )

    def is_peak(self, at: time) -> bool:
        timing = at.hour * 100 + at.minute
        return any(start <= timing <= end for start, end in self.peak_windows)

    def radius_for(self, at: time) -> float:
        """Serving radius in km: tighter during meal-time rush hours."""
        return self.peak_radius_km if self.is_peak(at) else self.normal_radius_km


DEFAULT_SERVING_POLICY = ServingPolicy()
