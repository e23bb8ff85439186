"""Batch and parallel simulation helpers."""
from __future__ import annotations

import logging
from dataclasses import asdict
from multiprocessing import Pool, cpu_count
from typing import Dict, Iterable, Optional, Sequence, Tuple

from . import constants
from .collision import Bounds
from .single import SimulationResult, run_sim

logger = logging.getLogger(__name__)


def _result_to_dict(result: SimulationResult) -> Dict[str, object]:
    # Flatten SimulationResult into plain data that pickles across processes
    return {
        "log": result.physics_log,
        "bounces": result.bounces,
        "predicted_x": result.predicted[0],
        "predicted_y": result.predicted[1],
        "elapsed": result.elapsed,
        "bounds": asdict(result.bounds),
    }


def run_multi(
    elasticities: Iterable[float],
    initial_position: Sequence[float] = constants.LAUNCH_POSITION,
    initial_velocity: Sequence[float] = constants.LAUNCH_VELOCITY,
    bounds: Optional[Bounds] = None,
    duration: float = 30.0,
    display: bool = False,
):
    """Run a simulation for each elasticity (sequential)."""
    results = {}
    for e in elasticities:
        logger.info(f"=== Sim with e={e:.2f} ===")
        sim_result = run_sim(
            initial_position,
            initial_velocity,
            elasticity=e,
            bounds=bounds,
            display=display,
            duration=duration,
        )
        results[e] = _result_to_dict(sim_result)
    return results


def _sim_worker(args: Tuple[float, Sequence[float], Sequence[float], Optional[Bounds], float]):
    # Child-process worker for multiprocessing Pool
    e, initial_position, initial_velocity, bounds, duration = args
    sim_result = run_sim(
        initial_position,
        initial_velocity,
        elasticity=e,
        bounds=bounds,
        display=False,
        duration=duration,
    )
    return e, _result_to_dict(sim_result)


def run_multi_parallel(
    elasticities: Iterable[float],
    initial_position: Sequence[float] = constants.LAUNCH_POSITION,
    initial_velocity: Sequence[float] = constants.LAUNCH_VELOCITY,
    bounds: Optional[Bounds] = None,
    duration: float = 30.0,
    processes: Optional[int] = None,
):
    """Run multiple simulations in parallel (headless)."""
    args = [(e, tuple(initial_position), tuple(initial_velocity), bounds, duration) for e in elasticities]
    n_procs = processes or cpu_count()
    logger.info(f"Running {len(args)} simulations on {n_procs} processes (headless)...")

    results = {}
    with Pool(processes=n_procs) as pool:
        for e, data in pool.map(_sim_worker, args):
            results[e] = data
    return results
