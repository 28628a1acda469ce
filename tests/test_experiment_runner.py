from pathlib import Path

import pytest

from alg import Vector
from experiment_runner import aggregate_by_experiment, load_config, load_runs_csv, run_experiments
from experiments.benchmarks import BENCHMARKS, get_benchmark


TINY_CONFIG = """
seed: 3
seed_count: 2
experiments:
  - name: tiny_quadratic
    benchmark: shifted_quadratic
    dimension: 2
    population_size: 8
    generations: 10
  - name: tiny_sphere_static
    benchmark: sphere
    dimension: 3
    population_size: 6
    generations: 5
    sigma0: 0.5
    adaptation: static
"""


def test_run_experiments_writes_runs_and_aggregates(tmp_path: Path):
    """Smoke-test: two experiments times two seeds, run sequentially."""
    cfg = tmp_path / "exp.yml"
    cfg.write_text(TINY_CONFIG)
    runs_csv = tmp_path / "out" / "runs.csv"
    aggregates_csv = tmp_path / "out" / "aggregates.csv"

    results = run_experiments(cfg, runs_csv=runs_csv, aggregates_csv=aggregates_csv, use_processes=False)

    assert len(results) == 4
    assert {(r["experiment"], r["seed"]) for r in results} == {
        ("tiny_quadratic", 3),
        ("tiny_quadratic", 4),
        ("tiny_sphere_static", 3),
        ("tiny_sphere_static", 4),
    }
    for res in results:
        assert float(res["final_score"]) <= 0.0
        assert float(res["distance_to_optimum"]) >= 0.0
    assert {r["evaluations"] for r in results if r["experiment"] == "tiny_quadratic"} == {80}

    stored = load_runs_csv(runs_csv)
    assert len(stored) == 4
    assert aggregates_csv.exists()
    assert aggregates_csv.read_text().splitlines()[0].startswith("experiment,benchmark,dimension,runs")


def test_rerun_resumes_from_existing_runs(tmp_path: Path, capsys):
    cfg = tmp_path / "exp.yml"
    cfg.write_text(TINY_CONFIG)
    runs_csv = tmp_path / "runs.csv"

    first = run_experiments(cfg, runs_csv=runs_csv, use_processes=False)
    capsys.readouterr()
    second = run_experiments(cfg, runs_csv=runs_csv, use_processes=False)

    out = capsys.readouterr().out
    assert "[run] queued 0 new tasks (existing runs: 4)" in out
    assert len(second) == len(first) == 4


def test_same_seed_reproduces_scores(tmp_path: Path):
    cfg = tmp_path / "exp.yml"
    cfg.write_text(TINY_CONFIG)

    a = run_experiments(cfg, use_processes=False)
    b = run_experiments(cfg, use_processes=False)

    key = lambda r: (r["experiment"], r["seed"])
    assert [r["final_score"] for r in sorted(a, key=key)] == [r["final_score"] for r in sorted(b, key=key)]


def test_aggregated_values_reflect_inputs():
    runs = [
        {"experiment": "e", "benchmark": "sphere", "dimension": 2, "final_score": -1.0, "distance_to_optimum": 1.0},
        {"experiment": "e", "benchmark": "sphere", "dimension": 2, "final_score": -3.0, "distance_to_optimum": 2.0},
        {"experiment": "f", "benchmark": "sphere", "dimension": 2, "final_score": -0.5, "distance_to_optimum": 0.5},
    ]

    aggregated = {row["experiment"]: row for row in aggregate_by_experiment(runs)}

    assert aggregated["e"]["runs"] == 2
    assert aggregated["e"]["mean_final_score"] == pytest.approx(-2.0)
    assert aggregated["e"]["best_final_score"] == pytest.approx(-1.0)
    assert aggregated["e"]["mean_distance_to_optimum"] == pytest.approx(1.5)
    assert aggregated["f"]["runs"] == 1


def test_unknown_adaptation_is_rejected(tmp_path: Path):
    cfg = tmp_path / "bad.yml"
    cfg.write_text(
        """
seed: 0
seed_count: 1
experiments:
  - name: bad
    benchmark: sphere
    dimension: 2
    population_size: 4
    generations: 1
    adaptation: bogus
"""
    )
    with pytest.raises(ValueError):
        load_config(cfg)


def test_default_config_loads():
    cfg = load_config(Path(__file__).resolve().parents[1] / "experiments" / "experiments.yml")
    assert cfg.seed_count > 0
    assert {exp.benchmark for exp in cfg.experiments} <= set(BENCHMARKS)


@pytest.mark.parametrize("name", sorted(BENCHMARKS))
def test_benchmarks_score_zero_at_optimum(name):
    benchmark = get_benchmark(name, 4)
    assert benchmark.score(benchmark.optimum) == pytest.approx(0.0)
    assert benchmark.distance_to_optimum(benchmark.optimum) == 0.0
    assert benchmark.score(benchmark.optimum + Vector.from_copies(4, 0.5)) < 0.0


def test_benchmark_lookup_errors():
    with pytest.raises(ValueError):
        get_benchmark("nope", 2)
    with pytest.raises(ValueError):
        get_benchmark("rosenbrock", 1)
