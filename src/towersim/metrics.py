from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple


class CompensatedSum:
    """Neumaier running sum; keeps long energy totals from drifting."""

    def __init__(self) -> None:
        self.total = 0.0
        self.compensation = 0.0

    def add(self, value: float) -> None:
        t = self.total + value
        if abs(self.total) >= abs(value):
            self.compensation += (self.total - t) + value
        else:
            self.compensation += (value - t) + self.total
        self.total = t

    def merge(self, other: "CompensatedSum") -> None:
        self.add(other.total)
        self.add(other.compensation)

    @property
    def value(self) -> float:
        return self.total + self.compensation


@dataclass(frozen=True)
class TickMetrics:
    """What a single tick contributed, handed back by ``commit``."""

    tick: int
    energy_delta: float
    energy_by_elevator: Tuple[Tuple[str, float], ...]
    wait_samples: Tuple[int, ...]


@dataclass(frozen=True)
class Metrics:
    total_energy: float
    mean_wait_time: float
    sample_count: int
    per_elevator_energy: Dict[str, float]
    max_wait: int
    wait_p95: float
    ticks: int
    average_energy_per_tick: float


@dataclass
class _PendingTick:
    tick: int
    energy: Dict[str, CompensatedSum] = field(default_factory=dict)
    waits: List[Tuple[int, int]] = field(default_factory=list)


class MetricsAggregator:
    """Append-only energy and wait-time bookkeeping for one run.

    Samples recorded during a tick are buffered and only folded into the
    running totals by ``commit``, so a snapshot never sees half a tick.
    """

    def __init__(self, elevator_names: Iterable[str] = ()) -> None:
        self.energy_by_elevator: Dict[str, CompensatedSum] = {
            name: CompensatedSum() for name in elevator_names
        }
        self.total_energy = CompensatedSum()
        self.wait_samples: List[int] = []
        self.wait_sum: int = 0
        self.ticks: int = 0
        self._pending: Optional[_PendingTick] = None

    def begin_tick(self, tick: int) -> None:
        if self._pending is not None:
            raise RuntimeError(f"tick {self._pending.tick} was never committed")
        self._pending = _PendingTick(tick)

    def record_energy(self, elevator_name: str, delta: float) -> None:
        if delta < 0:
            raise ValueError(f"energy delta must be non-negative, got {delta}")
        pending = self._require_pending()
        pending.energy.setdefault(elevator_name, CompensatedSum()).add(delta)

    def record_wait(self, person_id: int, wait: int) -> None:
        if wait < 0:
            raise ValueError(f"person {person_id} has negative wait {wait}")
        self._require_pending().waits.append((person_id, wait))

    def commit(self) -> TickMetrics:
        pending = self._require_pending()
        self._pending = None

        by_elevator: List[Tuple[str, float]] = []
        tick_energy = CompensatedSum()
        for name, delta in pending.energy.items():
            self.energy_by_elevator.setdefault(name, CompensatedSum()).merge(delta)
            self.total_energy.merge(delta)
            tick_energy.merge(delta)
            by_elevator.append((name, delta.value))

        waits = tuple(wait for _, wait in pending.waits)
        self.wait_samples.extend(waits)
        self.wait_sum += sum(waits)
        self.ticks += 1
        return TickMetrics(
            tick=pending.tick,
            energy_delta=tick_energy.value,
            energy_by_elevator=tuple(by_elevator),
            wait_samples=waits,
        )

    def snapshot(self) -> Metrics:
        count = len(self.wait_samples)
        total_energy = self.total_energy.value
        return Metrics(
            total_energy=total_energy,
            mean_wait_time=self.wait_sum / count if count else 0.0,
            sample_count=count,
            per_elevator_energy={name: s.value for name, s in self.energy_by_elevator.items()},
            max_wait=max(self.wait_samples) if self.wait_samples else 0,
            wait_p95=_percentile(self.wait_samples, 0.95),
            ticks=self.ticks,
            average_energy_per_tick=total_energy / self.ticks if self.ticks else 0.0,
        )

    @classmethod
    def combine(cls, aggregators: Iterable["MetricsAggregator"]) -> "MetricsAggregator":
        """Merge independent runs; the result does not depend on input order."""
        parts = list(aggregators)
        names = sorted({name for agg in parts for name in agg.energy_by_elevator})
        combined = cls(names)
        for name in names:
            # Summing sorted contributions makes the float result order-independent.
            contributions = sorted(
                agg.energy_by_elevator[name].value for agg in parts if name in agg.energy_by_elevator
            )
            for value in contributions:
                combined.energy_by_elevator[name].add(value)
        for value in sorted(agg.total_energy.value for agg in parts):
            combined.total_energy.add(value)
        combined.wait_samples = sorted(s for agg in parts for s in agg.wait_samples)
        combined.wait_sum = sum(agg.wait_sum for agg in parts)
        combined.ticks = sum(agg.ticks for agg in parts)
        return combined

    def _require_pending(self) -> _PendingTick:
        if self._pending is None:
            raise RuntimeError("metrics recorded outside of a tick")
        return self._pending


def _percentile(values: List[int], percentile: float) -> float:
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    k = (len(sorted_vals) - 1) * percentile
    f = math.floor(k)
    c = math.ceil(k)
    if f == c:
        return float(sorted_vals[int(k)])
    d0 = sorted_vals[int(f)] * (c - k)
    d1 = sorted_vals[int(c)] * (k - f)
    return float(d0 + d1)
