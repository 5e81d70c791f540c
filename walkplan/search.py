# Search Driver - anytime restart loop over random walks with first-goal-wins termination

import concurrent.futures as futures
import logging
import threading
import time
import tracemalloc
from dataclasses import dataclass
from typing import Optional, Set, Tuple

from walkplan.config import SearchConfig
from walkplan.heuristics import HeuristicEstimator
from walkplan.problem import Problem
from walkplan.trajectory import Plan, TrajectoryArena, reconstruct
from walkplan.walk import RandomSource, SeededRandom, WalkResult, walk

logger = logging.getLogger(__name__)


@dataclass
class SearchStatistics:
    walks: int = 0
    steps: int = 0
    nodes: int = 0
    best_heuristic: float = float("inf")
    goal_reached: bool = False
    time_to_search: float = 0.0  # seconds
    memory_used: int = 0  # peak traced bytes, only with trace_memory


@dataclass
class _Best:
    arena: TrajectoryArena
    node: int
    score: float


class _Budget:
    """Time and total-step allowance shared by all walks of one search."""

    def __init__(self, config: SearchConfig):
        self.deadline = time.monotonic() + config.timeout if config.timeout is not None else None
        self.steps_left = config.max_steps

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def exhausted(self) -> bool:
        return self.expired() or self.steps_left == 0

    def remaining_time(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def walk_length(self, length: int) -> int:
        return length if self.steps_left is None else min(length, self.steps_left)

    def consume(self, steps: int) -> None:
        if self.steps_left is not None:
            self.steps_left = max(0, self.steps_left - steps)


def _score(config: SearchConfig, heuristic: HeuristicEstimator, problem: Problem, arena: TrajectoryArena, node: int) -> float:
    return config.heuristic_weight * heuristic.estimate(arena[node].state, problem.goal)


def _started(result: WalkResult) -> bool:
    # a walk stopped before its first step only saw an exhausted budget
    return not (result.interrupted and result.steps == 0)


def _record(stats: SearchStatistics, arena: TrajectoryArena, result: WalkResult) -> None:
    stats.walks += 1
    stats.steps += result.steps
    stats.nodes += len(arena)


def search(
    problem: Problem,
    config: SearchConfig,
    heuristic: HeuristicEstimator,
    rng: Optional[RandomSource] = None,
    stats: Optional[SearchStatistics] = None,
) -> Optional[Plan]:
    """
    Run up to ``config.num_walks`` random walks from the initial state of ``problem``.

    Returns the plan of the first walk that reaches the goal. If none does before
    the walk count, the time budget or the step budget runs out, returns the
    trajectory whose final state had the lowest weighted heuristic value; that
    plan does not necessarily reach the goal. Returns None only if no walk ran.
    """
    stats = stats if stats is not None else SearchStatistics()
    rng = rng if rng is not None else SeededRandom(config.seed)
    started_tracing = config.trace_memory and not tracemalloc.is_tracing()
    if started_tracing:
        tracemalloc.start()
    start = time.perf_counter()
    try:
        if problem.is_goal(problem.initial_state):
            logger.info("Goal already holds in the initial state")
            stats.goal_reached = True
            stats.best_heuristic = 0.0
            return Plan((), problem.initial_state)
        if config.workers > 1:
            return _search_parallel(problem, config, heuristic, rng, stats)
        return _search_sequential(problem, config, heuristic, rng, stats)
    finally:
        stats.time_to_search = time.perf_counter() - start
        if started_tracing:
            stats.memory_used = tracemalloc.get_traced_memory()[1]
            tracemalloc.stop()


def _search_sequential(
    problem: Problem,
    config: SearchConfig,
    heuristic: HeuristicEstimator,
    rng: RandomSource,
    stats: SearchStatistics,
) -> Optional[Plan]:
    budget = _Budget(config)
    best: Optional[_Best] = None
    # the scratch arena is recycled for every walk and swapped with the best one on improvement
    scratch = TrajectoryArena()
    for i in range(config.num_walks):
        if budget.exhausted():
            logger.info(f"Search budget exhausted after {i} walks")
            break
        scratch.clear()
        result = walk(
            scratch,
            problem.initial_state,
            problem,
            budget.walk_length(config.length_walk),
            rng,
            should_stop=budget.expired,
        )
        if not _started(result):
            logger.info(f"Search budget exhausted after {i} walks")
            break
        budget.consume(result.steps)
        _record(stats, scratch, result)
        if result.goal_reached:
            logger.info(f"Goal reached by walk {i + 1} after {result.steps} steps")
            stats.goal_reached = True
            return reconstruct(scratch, result.final_node)
        score = _score(config, heuristic, problem, scratch, result.final_node)
        if best is None or score < best.score:
            logger.debug(f"Walk {i + 1}: best heuristic value {score}")
            recycled = best.arena if best is not None else TrajectoryArena()
            best = _Best(scratch, result.final_node, score)
            stats.best_heuristic = score
            scratch = recycled
    return _best_effort(best)


def _search_parallel(
    problem: Problem,
    config: SearchConfig,
    heuristic: HeuristicEstimator,
    rng: RandomSource,
    stats: SearchStatistics,
) -> Optional[Plan]:
    budget = _Budget(config)
    cancel = threading.Event()
    # at most this many walks are queued or running at once
    window = 2 * config.workers

    def should_stop() -> bool:
        return cancel.is_set() or budget.expired()

    def run(walk_rng: RandomSource, length: int) -> Tuple[TrajectoryArena, WalkResult, Optional[float]]:
        arena = TrajectoryArena()
        result = walk(arena, problem.initial_state, problem, length, walk_rng, should_stop=should_stop)
        if result.goal_reached or not _started(result):
            return arena, result, None
        return arena, result, _score(config, heuristic, problem, arena, result.final_node)

    best: Optional[_Best] = None
    winner: Optional[Tuple[TrajectoryArena, int]] = None

    # results are reduced here, on the driver thread, in completion order
    def consider(arena: TrajectoryArena, result: WalkResult, score: Optional[float]) -> None:
        nonlocal best, winner
        if not _started(result):
            return
        budget.consume(result.steps)
        _record(stats, arena, result)
        if result.goal_reached:
            if winner is None:
                winner = (arena, result.final_node)
            return
        if best is None or score < best.score:
            best = _Best(arena, result.final_node, score)
            stats.best_heuristic = score

    submitted = 0
    in_flight: Set[futures.Future] = set()
    executor = futures.ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="walk")
    try:
        while True:
            while submitted < config.num_walks and len(in_flight) < window and not budget.exhausted():
                # sub-seeds are drawn in submission order, one per walk
                walk_rng = SeededRandom(rng.index(2 ** 32))
                in_flight.add(executor.submit(run, walk_rng, budget.walk_length(config.length_walk)))
                submitted += 1
            if not in_flight:
                break
            done, in_flight = futures.wait(
                in_flight, timeout=budget.remaining_time(), return_when=futures.FIRST_COMPLETED
            )
            if not done:
                logger.info("Search timeout reached, cancelling in-flight walks")
                break
            for fut in done:
                consider(*fut.result())
            if winner is not None or budget.exhausted():
                break
    finally:
        cancel.set()
        executor.shutdown(wait=True, cancel_futures=True)

    # walks that completed while the pool was draining stay eligible
    for fut in in_flight:
        if winner is not None:
            break
        if not fut.cancelled():
            consider(*fut.result())
    if submitted < config.num_walks:
        logger.info(f"Search stopped after submitting {submitted} of {config.num_walks} walks")

    if winner is not None:
        logger.info(f"Goal reached after {stats.walks} completed walks")
        stats.goal_reached = True
        return reconstruct(*winner)
    return _best_effort(best)


def _best_effort(best: Optional[_Best]) -> Optional[Plan]:
    if best is None:
        logger.warning("No walk was run, no plan to return")
        return None
    logger.warning(f"Goal not reached, returning best-effort trajectory (heuristic value {best.score})")
    return reconstruct(best.arena, best.node)
