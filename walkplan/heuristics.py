# Heuristics - distance-to-goal estimators selected by name

from abc import ABC, abstractmethod
from itertools import combinations
from typing import Callable, Dict, FrozenSet, Iterable, List, NamedTuple, Set, Tuple, Type

from walkplan.action import Action
from walkplan.errors import ConfigurationError
from walkplan.problem import Problem
from walkplan.state import Condition, Fluent, State

INFINITY = float("inf")


class HeuristicEstimator(ABC):
    """
    Estimates the remaining distance from a state to a goal.

    0 suggests (but does not guarantee) that the goal holds; lower values are
    closer. Estimators are built once per problem and are read-only afterwards.
    """

    name = ""

    def __init__(self, problem: Problem):
        self.problem = problem

    @abstractmethod
    def estimate(self, state: State, goal: Condition) -> float:
        raise NotImplementedError


def _negative_violations(state: State, goal: Condition) -> int:
    # each negative goal literal still true needs at least one more action
    return len(goal.negative & state.fluents)


class BlindHeuristic(HeuristicEstimator):
    name = "BLIND"

    def estimate(self, state: State, goal: Condition) -> float:
        return 0.0


class GoalCountHeuristic(HeuristicEstimator):
    """Number of goal literals not yet satisfied."""

    name = "GOAL_COUNT"

    def estimate(self, state: State, goal: Condition) -> float:
        return float(len(goal.positive - state.fluents) + _negative_violations(state, goal))


class _RelaxedOperator(NamedTuple):
    index: int  # position of the source action in the problem
    precondition: FrozenSet[Fluent]
    add: FrozenSet[Fluent]
    cost: float


def _relax(actions: Iterable[Action]) -> List[_RelaxedOperator]:
    # one operator per conditional effect: negative literals and deletes are dropped
    ops: List[_RelaxedOperator] = []
    for i, action in enumerate(actions):
        for ce in action.effects:
            if not ce.effect.add:
                continue
            pre = action.precondition.positive | ce.trigger.positive
            ops.append(_RelaxedOperator(i, pre, ce.effect.add, action.cost))
    return ops


class RelaxedHeuristic(HeuristicEstimator):
    """
    Base for delete-relaxation estimators.

    ``_explore`` computes, by fixpoint iteration, the relaxed cost of every
    reachable fluent from a state, combining precondition costs with ``combine``
    (max for h_max, sum for h_add), together with the operator that last
    improved each fluent.
    """

    def __init__(self, problem: Problem):
        super().__init__(problem)
        self.operators = _relax(problem.actions)

    def _explore(
        self, state: State, combine: Callable[[List[float]], float]
    ) -> Tuple[Dict[Fluent, float], Dict[Fluent, _RelaxedOperator]]:
        cost: Dict[Fluent, float] = {f: 0.0 for f in state.fluents}
        supporter: Dict[Fluent, _RelaxedOperator] = {}
        changed = True
        while changed:
            changed = False
            for op in self.operators:
                pre_costs = []
                for p in op.precondition:
                    c = cost.get(p)
                    if c is None:
                        break
                    pre_costs.append(c)
                else:
                    reach = (combine(pre_costs) if pre_costs else 0.0) + op.cost
                    for f in op.add:
                        if reach < cost.get(f, INFINITY):
                            cost[f] = reach
                            supporter[f] = op
                            changed = True
        return cost, supporter


class MaxHeuristic(RelaxedHeuristic):
    """h_max: cost of the most expensive goal fluent under the relaxation (admissible)."""

    name = "MAX"

    def estimate(self, state: State, goal: Condition) -> float:
        cost, _ = self._explore(state, max)
        h = max((cost.get(g, INFINITY) for g in goal.positive), default=0.0)
        return h + _negative_violations(state, goal)


class SumHeuristic(RelaxedHeuristic):
    """h_add: sum of the relaxed costs of the goal fluents, assuming independence."""

    name = "SUM"

    def estimate(self, state: State, goal: Condition) -> float:
        cost, _ = self._explore(state, sum)
        h = sum(cost.get(g, INFINITY) for g in goal.positive)
        return h + _negative_violations(state, goal)


class FastForwardHeuristic(RelaxedHeuristic):
    """Cost of a relaxed plan extracted backwards from the goal through h_add supporters."""

    name = "FAST_FORWARD"

    def estimate(self, state: State, goal: Condition) -> float:
        cost, supporter = self._explore(state, sum)
        if any(g not in cost for g in goal.positive):
            return INFINITY
        chosen: Dict[int, float] = {}
        agenda = [g for g in goal.positive if g not in state.fluents]
        seen = set()
        while agenda:
            f = agenda.pop()
            if f in seen or f in state.fluents:
                continue
            seen.add(f)
            op = supporter[f]
            if op.index not in chosen:
                chosen[op.index] = op.cost
            agenda.extend(op.precondition)
        return sum(chosen.values()) + _negative_violations(state, goal)


class SetLevelHeuristic(RelaxedHeuristic):
    """Index of the first relaxed planning-graph layer that contains every goal fluent."""

    name = "SET_LEVEL"

    def estimate(self, state: State, goal: Condition) -> float:
        reached = set(state.fluents)
        level = 0
        while not goal.positive <= reached:
            layer = set()
            for op in self.operators:
                if op.precondition <= reached:
                    layer |= op.add
            if layer <= reached:
                return INFINITY
            reached |= layer
            level += 1
        return float(level) + _negative_violations(state, goal)


class _GraphOperator(NamedTuple):
    precondition: FrozenSet[Fluent]
    add: FrozenSet[Fluent]
    delete: FrozenSet[Fluent]


def _interferes(a: _GraphOperator, b: _GraphOperator) -> bool:
    return not (a.delete.isdisjoint(b.precondition | b.add) and b.delete.isdisjoint(a.precondition | a.add))


def _pairwise_consistent(fluents: Iterable[Fluent], mutex: Set[FrozenSet[Fluent]]) -> bool:
    return not any(frozenset(pair) in mutex for pair in combinations(fluents, 2))


class AdjustedSumHeuristic(RelaxedHeuristic):
    """
    Adjusted sum: h_add plus an interaction term read off a planning graph.

    The graph keeps binary mutexes between fluents (interference and competing
    needs, as in Graphplan expansion). The interaction term is the gap between
    the first level where the goal set appears without mutexes and the level of
    its latest single goal fluent. Goals that never become pairwise consistent
    before the graph levels off are unreachable.
    """

    name = "ADJUSTED_SUM"

    def __init__(self, problem: Problem):
        super().__init__(problem)
        self.graph_operators = [
            _GraphOperator(action.precondition.positive | ce.trigger.positive, ce.effect.add, ce.effect.delete)
            for action in problem.actions
            for ce in action.effects
        ]

    def _levels(self, state: State, goal: FrozenSet[Fluent]) -> Tuple[float, Dict[Fluent, int]]:
        """Return the level of ``goal`` as a set and the first level of every fluent seen."""
        fluents = set(state.fluents)
        first_level: Dict[Fluent, int] = {f: 0 for f in fluents}
        mutex: Set[FrozenSet[Fluent]] = set()
        level = 0
        while True:
            if goal <= fluents and _pairwise_consistent(goal, mutex):
                return float(level), first_level
            layer = [
                op
                for op in self.graph_operators
                if op.precondition <= fluents and _pairwise_consistent(op.precondition, mutex)
            ]
            layer += [_GraphOperator(frozenset({f}), frozenset({f}), frozenset()) for f in fluents]
            achievers: Dict[Fluent, List[int]] = {}
            for i, op in enumerate(layer):
                for f in op.add:
                    achievers.setdefault(f, []).append(i)

            op_mutex: Dict[Tuple[int, int], bool] = {}

            def exclusive(i: int, j: int) -> bool:
                if i == j:
                    return False
                key = (i, j) if i < j else (j, i)
                if key not in op_mutex:
                    a, b = layer[i], layer[j]
                    op_mutex[key] = _interferes(a, b) or any(
                        frozenset((p, q)) in mutex for p in a.precondition for q in b.precondition if p != q
                    )
                return op_mutex[key]

            next_fluents = set(achievers)
            next_mutex = {
                frozenset((p, q))
                for p, q in combinations(next_fluents, 2)
                if all(exclusive(i, j) for i in achievers[p] for j in achievers[q])
            }
            if next_fluents == fluents and next_mutex == mutex:
                return INFINITY, first_level
            level += 1
            for f in next_fluents - fluents:
                first_level[f] = level
            fluents, mutex = next_fluents, next_mutex

    def estimate(self, state: State, goal: Condition) -> float:
        cost, _ = self._explore(state, sum)
        if any(g not in cost for g in goal.positive):
            return INFINITY
        h_add = sum(cost[g] for g in goal.positive)
        set_level, first_level = self._levels(state, goal.positive)
        if set_level == INFINITY:
            return INFINITY
        interaction = set_level - max((first_level[g] for g in goal.positive), default=0)
        return h_add + interaction + _negative_violations(state, goal)


HEURISTICS: Dict[str, Type[HeuristicEstimator]] = {
    cls.name: cls
    for cls in (
        BlindHeuristic,
        GoalCountHeuristic,
        MaxHeuristic,
        SumHeuristic,
        AdjustedSumHeuristic,
        SetLevelHeuristic,
        FastForwardHeuristic,
    )
}


def check_heuristic_name(name: str) -> str:
    """Normalize a strategy identifier, raising ConfigurationError if it is unknown."""
    key = name.strip().upper() if isinstance(name, str) else ""
    if key not in HEURISTICS:
        raise ConfigurationError(
            f"unknown heuristic '{name}', expected one of: {', '.join(sorted(HEURISTICS))}"
        )
    return key


def get_heuristic(name: str, problem: Problem) -> HeuristicEstimator:
    return HEURISTICS[check_heuristic_name(name)](problem)
