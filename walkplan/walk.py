# Walk Sampler - one bounded random walk from a start state, recorded into a trajectory arena

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from walkplan.action import apply_effects
from walkplan.problem import Problem
from walkplan.state import State
from walkplan.trajectory import TrajectoryArena


class RandomSource(ABC):
    """Source of uniform choices used to pick the next action of a walk."""

    @abstractmethod
    def index(self, n: int) -> int:
        """Return an integer drawn uniformly from [0, n)."""
        raise NotImplementedError


class SeededRandom(RandomSource):
    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def index(self, n: int) -> int:
        return self._rng.randrange(n)


@dataclass(frozen=True)
class WalkResult:
    final_node: int
    goal_reached: bool
    steps: int
    interrupted: bool = False


def walk(
    arena: TrajectoryArena,
    start: State,
    problem: Problem,
    max_steps: int,
    rng: RandomSource,
    should_stop: Optional[Callable[[], bool]] = None,
) -> WalkResult:
    """
    Random walk of at most ``max_steps`` actions from ``start``.

    Each step picks one applicable action uniformly at random and appends the
    successor to ``arena``. The walk ends early when the goal is satisfied after
    a step, when no action is applicable, or when ``should_stop`` returns True.
    """
    current = arena.add_root(start)
    state = start
    steps = 0
    while steps < max_steps:
        if should_stop is not None and should_stop():
            return WalkResult(current, problem.is_goal(state), steps, interrupted=True)
        applicable = problem.applicable_actions(state)
        if not applicable:
            return WalkResult(current, problem.is_goal(state), steps)
        action = applicable[rng.index(len(applicable))]
        state = apply_effects(action, state)
        current = arena.extend(current, action, state)
        steps += 1
        if problem.is_goal(state):
            return WalkResult(current, True, steps)
    return WalkResult(current, False, steps)
