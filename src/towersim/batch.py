from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

from .building import Building, RunSummary
from .config import BuildingConfig
from .metrics import Metrics, MetricsAggregator

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    summaries: Dict[int, RunSummary]
    combined: Metrics


def run_batch(config: BuildingConfig, seeds: Iterable[int], n_ticks: int, drain: bool = False) -> BatchResult:
    """Run one isolated building per seed and pool their metrics.

    Runs share no mutable state; the pooled metrics are reduced in a way
    that does not depend on the order the runs finished in.
    """
    summaries: Dict[int, RunSummary] = {}
    aggregators: List[MetricsAggregator] = []
    for seed in seeds:
        building = Building.from_config(dataclasses.replace(config, seed=seed))
        summaries[seed] = building.run(n_ticks, drain=drain)
        aggregators.append(building.metrics)
        logger.info("seed %d done: %d boardings", seed, summaries[seed].boardings)
    return BatchResult(summaries=summaries, combined=MetricsAggregator.combine(aggregators).snapshot())
