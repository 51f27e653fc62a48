"""CLI for running offline towersim scenarios defined in JSON configs."""
from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

from towersim import Building, BuildingConfig, run_batch


def run_simulation(building: Building, ticks: int, drain: bool, every: int) -> List[Dict]:
    snapshots: List[Dict] = []
    for _ in range(ticks):
        report = building.tick()
        if report.tick % every == 0:
            snapshots.append({"tick": report.tick, **asdict(building.metrics.snapshot())})
        if drain and building.is_drained():
            break
    return snapshots


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a JSON scenario configuration file")
    parser.add_argument("--ticks", type=int, help="Override the scenario duration")
    parser.add_argument("--drain", action="store_true", help="Stop early once the building is empty")
    parser.add_argument("--seeds", type=int, nargs="+", help="Run one isolated building per seed and pool metrics")
    parser.add_argument("--output", type=Path, help="Optional file path to write metrics as JSON")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    scenario = json.loads(args.config.read_text())
    config = BuildingConfig.from_dict(scenario["building"])
    ticks = args.ticks if args.ticks is not None else scenario.get("duration", 300)
    results: Dict = {
        "scenario": scenario.get("name", args.config.stem),
        "description": scenario.get("description"),
        "duration": ticks,
    }

    if args.seeds:
        batch = run_batch(config, args.seeds, ticks, drain=args.drain)
        final_metrics = asdict(batch.combined)
        results["runs"] = {str(seed): asdict(summary) for seed, summary in batch.summaries.items()}
    else:
        building = Building.from_config(config)
        results["metrics_over_time"] = run_simulation(
            building, ticks, args.drain, scenario.get("metrics_interval", 10)
        )
        final_metrics = asdict(building.metrics.snapshot())
    results["final_metrics"] = final_metrics

    save_results(args.output, results)

    print(f"Scenario: {results['scenario']}")
    if results["description"]:
        print(results["description"])
    print(f"Duration: {ticks} ticks")
    print("Final metrics:")
    for key, value in final_metrics.items():
        print(f"  {key}: {value}")
    if args.output:
        print(f"Saved metrics to {args.output}")


if __name__ == "__main__":
    main()
