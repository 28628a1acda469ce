"""
CLI to run CMA-ES benchmark experiments across multiple seeds.

Reads experiments/experiments.yml, runs one optimisation per (experiment,
seed) against the configured benchmark, and writes per-run rows and
per-experiment aggregates to CSV.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple
import argparse
import csv
import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
import time

import numpy as np
import yaml

from experiments.benchmarks import get_benchmark
from ml.adaptation import CovarianceAdaptation, StandardAdaptation, StaticCovariance
from ml.cmaes import CmaEs


ADAPTATIONS: Dict[str, Callable[[], CovarianceAdaptation]] = {
    "standard": StandardAdaptation,
    "static": StaticCovariance,
}

RUN_FIELDS = [
    "experiment",
    "benchmark",
    "seed",
    "dimension",
    "population_size",
    "generations",
    "evaluations",
    "final_score",
    "distance_to_optimum",
    "duration_sec",
]


@dataclass(frozen=True)
class ExperimentConfig:
    name: str
    benchmark: str
    dimension: int
    population_size: int
    generations: int
    sigma0: float = 1.0
    mu: Optional[int] = None
    adaptation: str = "standard"


@dataclass(frozen=True)
class Config:
    seed: int
    seed_count: int
    experiments: Sequence[ExperimentConfig]


def load_config(path: Path) -> Config:
    data = yaml.safe_load(path.read_text())
    experiments = []
    for exp in data["experiments"]:
        adaptation = str(exp.get("adaptation", "standard"))
        if adaptation not in ADAPTATIONS:
            raise ValueError(f"experiment {exp['name']!r}: unknown adaptation {adaptation!r}")
        experiments.append(
            ExperimentConfig(
                name=exp["name"],
                benchmark=exp["benchmark"],
                dimension=int(exp["dimension"]),
                population_size=int(exp["population_size"]),
                generations=int(exp["generations"]),
                sigma0=float(exp.get("sigma0", 1.0)),
                mu=int(exp["mu"]) if exp.get("mu") is not None else None,
                adaptation=adaptation,
            )
        )
    return Config(
        seed=int(data["seed"]),
        seed_count=int(data["seed_count"]),
        experiments=experiments,
    )


def run_experiments(
    config_path: Path,
    runs_csv: Path | None = None,
    aggregates_csv: Path | None = None,
    max_workers: int | None = None,
    use_processes: bool = True,
) -> List[Dict[str, object]]:
    cfg = load_config(config_path)
    start = time.time()

    existing_runs = load_runs_csv(runs_csv) if runs_csv else []
    seen_keys: Set[Tuple[str, int]] = {(str(r.get("experiment")), int(r.get("seed"))) for r in existing_runs}

    tasks: List[Tuple[ExperimentConfig, int]] = []
    for exp in cfg.experiments:
        for offset in range(cfg.seed_count):
            seed = cfg.seed + offset
            if (exp.name, seed) in seen_keys:
                continue
            tasks.append((exp, seed))

    print(f"[run] queued {len(tasks)} new tasks (existing runs: {len(seen_keys)})")

    new_results: List[Dict[str, object]] = []
    if tasks:
        if use_processes:
            try:
                with ProcessPoolExecutor(max_workers=max_workers) as executor:
                    future_to_task = {
                        executor.submit(_run_task, asdict(exp), seed): (exp.name, seed) for exp, seed in tasks
                    }
                    for future in as_completed(future_to_task):
                        exp_name, seed = future_to_task[future]
                        try:
                            res = future.result()
                        except Exception as exc:
                            print(f"[run] failed experiment={exp_name} seed={seed}: {exc}")
                            continue
                        new_results.append(res)
                        if runs_csv:
                            append_run_row(runs_csv, res)
                        print(f"[run] completed experiment={exp_name} seed={seed} duration={res['duration_sec']:.2f}s")
            except (PermissionError, NotImplementedError, OSError) as exc:
                print(f"[run] process pool unavailable ({exc}), falling back to sequential execution")
                use_processes = False
                done = {(str(r["experiment"]), int(r["seed"])) for r in new_results}
                tasks = [(exp, seed) for exp, seed in tasks if (exp.name, seed) not in done]
        else:
            print("[run] using sequential execution")

        if not use_processes:
            for exp, seed in tasks:
                res = _run_task(asdict(exp), seed)
                new_results.append(res)
                if runs_csv:
                    append_run_row(runs_csv, res)
                print(f"[run] completed experiment={exp.name} seed={seed} duration={res['duration_sec']:.2f}s")

    results = existing_runs + new_results

    if aggregates_csv:
        write_aggregates_csv(aggregate_by_experiment(results), aggregates_csv)

    elapsed = time.time() - start
    print(f"[run] completed {len(results)} total runs in {elapsed:.2f}s")
    return results


def aggregate_by_experiment(results: Iterable[Mapping[str, object]]) -> List[Dict[str, object]]:
    """
    Aggregate final scores and distances per experiment, across seeds.
    """
    grouped: Dict[str, List[Mapping[str, object]]] = {}
    for res in results:
        grouped.setdefault(str(res["experiment"]), []).append(res)

    rows: List[Dict[str, object]] = []
    for name, runs in grouped.items():
        scores = [float(r["final_score"]) for r in runs]
        distances = [float(r["distance_to_optimum"]) for r in runs]
        rows.append(
            {
                "experiment": name,
                "benchmark": runs[0].get("benchmark", ""),
                "dimension": int(runs[0].get("dimension", 0)),
                "runs": len(runs),
                "mean_final_score": sum(scores) / len(scores),
                "best_final_score": max(scores),
                "mean_distance_to_optimum": sum(distances) / len(distances),
            }
        )
    return rows


def _run_task(exp_dict: Dict[str, object], seed: int) -> Dict[str, object]:
    start_run = time.time()
    exp = ExperimentConfig(**exp_dict)  # type: ignore[arg-type]
    res = _run_single(exp, seed)
    res["duration_sec"] = time.time() - start_run
    return res


def _run_single(exp: ExperimentConfig, seed: int) -> Dict[str, object]:
    benchmark = get_benchmark(exp.benchmark, exp.dimension)
    optimiser = CmaEs(
        exp.dimension,
        exp.population_size,
        exp.generations,
        sigma0=exp.sigma0,
        mu=exp.mu,
        adaptation=ADAPTATIONS[exp.adaptation],
        rng=np.random.default_rng(seed),
    )
    mean = optimiser.optimize(benchmark.score)
    return {
        "experiment": exp.name,
        "benchmark": exp.benchmark,
        "seed": seed,
        "dimension": exp.dimension,
        "population_size": exp.population_size,
        "generations": exp.generations,
        "evaluations": exp.population_size * exp.generations,
        "final_score": float(benchmark.score(mean)),
        "distance_to_optimum": benchmark.distance_to_optimum(mean),
    }


def load_runs_csv(path: Path | None) -> List[Dict[str, object]]:
    if path is None or not path.exists():
        return []
    with path.open() as f:
        reader = csv.DictReader(f)
        rows: List[Dict[str, object]] = []
        for row in reader:
            # Normalize numeric fields so aggregation works on resumed runs.
            parsed: Dict[str, object] = dict(row)
            for key in ("seed", "dimension", "population_size", "generations", "evaluations"):
                if row.get(key):
                    parsed[key] = int(row[key])
            for key in ("final_score", "distance_to_optimum", "duration_sec"):
                if row.get(key):
                    parsed[key] = float(row[key])
            rows.append(parsed)
        return rows


def append_run_row(path: Path, res: Mapping[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    write_header = not path.exists()
    with path.open("a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RUN_FIELDS, extrasaction="ignore")
        if write_header:
            writer.writeheader()
        writer.writerow(res)


def write_aggregates_csv(aggregated: Iterable[Mapping[str, object]], path: Path) -> None:
    """
    Write aggregated metrics by experiment to CSV.
    """
    fieldnames = [
        "experiment",
        "benchmark",
        "dimension",
        "runs",
        "mean_final_score",
        "best_final_score",
        "mean_distance_to_optimum",
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for row in aggregated:
            writer.writerow(row)


def main(argv: Sequence[str] | None = None) -> None:
    here = Path(__file__).parent
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--config", type=Path, default=here / "experiments" / "experiments.yml")
    parser.add_argument("--out-dir", type=Path, default=here / "experiments" / "results")
    parser.add_argument("--sequential", action="store_true", help="run without a process pool")
    parser.add_argument("--verbose", action="store_true", help="log per-generation optimiser progress")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    runs_csv = args.out_dir / "runs.csv"
    aggregates_csv = args.out_dir / "aggregates.csv"

    results = run_experiments(
        args.config,
        runs_csv=runs_csv,
        aggregates_csv=aggregates_csv,
        use_processes=not args.sequential,
    )
    for row in aggregate_by_experiment(results):
        print(row)
    print(f"Wrote runs to {runs_csv} and aggregates to {aggregates_csv}")


if __name__ == "__main__":
    main()
