from __future__ import annotations
import json
import math
import random
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.timeutil import now_utc


@dataclass
class SimPattern:
    baseline_c: float = 22.0
    amplitude_c: float = 3.0
    baseline_rh: float = 50.0
    amplitude_rh: float = 10.0
    period_s: float = 600.0
    noise: float = 0.2


def heat_index_c(temp_c: float, rh: float) -> float:
    """NOAA heat index, Celsius in and out."""
    t = temp_c * 9.0 / 5.0 + 32.0
    hi = 0.5 * (t + 61.0 + (t - 68.0) * 1.2 + rh * 0.094)
    if (hi + t) / 2.0 >= 80.0:
        hi = (
            -42.379 + 2.04901523 * t + 10.14333127 * rh
            - 0.22475541 * t * rh - 6.83783e-3 * t * t
            - 5.481717e-2 * rh * rh + 1.22874e-3 * t * t * rh
            + 8.5282e-4 * t * rh * rh - 1.99e-6 * t * t * rh * rh
        )
    return (hi - 32.0) * 5.0 / 9.0


class SimulatedSource:
    """Produces raw DHT payloads the way the serial firmware does."""

    def __init__(
        self,
        labels: Sequence[str] = ("indoor", "outdoor"),
        failure_rate: float = 0.0,
        interval_s: float = 2.0,
        pattern: Optional[SimPattern] = None,
        error_key: str = "error",
    ) -> None:
        self._labels = list(labels)
        self._failure_rate = failure_rate
        self._interval_s = interval_s
        self._pattern = pattern or SimPattern()
        self._error_key = error_key
        self._t0 = now_utc()

    @property
    def name(self) -> Optional[str]:
        return "sim"

    def _sample(self, idx: int, t: float) -> dict:
        p = self._pattern
        phase = 2 * math.pi * t / max(p.period_s, 1.0) + idx
        temp = p.baseline_c + p.amplitude_c * math.sin(phase) + random.uniform(-p.noise, p.noise)
        rh = p.baseline_rh + p.amplitude_rh * math.cos(phase) + random.uniform(-p.noise, p.noise)
        rh = min(100.0, max(0.0, rh))
        return {
            "t": round(temp, 1),
            "h": round(rh, 1),
            "hi": round(heat_index_c(temp, rh), 1),
        }

    def payload(self) -> bytes:
        t = (now_utc() - self._t0).total_seconds()
        raw = {}
        for idx, label in enumerate(self._labels):
            if self._failure_rate > 0.0 and random.random() < self._failure_rate:
                raw[label] = {self._error_key: "Failed to read from DHT sensor!"}
            else:
                raw[label] = self._sample(idx, t)
        return (json.dumps(raw) + "\n").encode("utf-8")

    def read(self) -> bytes:
        if self._interval_s > 0:
            time.sleep(self._interval_s)
        return self.payload()

    def close(self) -> None:
        return None
