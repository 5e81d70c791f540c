# Planner - setup-time validation, problem loading, search invocation and the statistics report

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from walkplan.config import SearchConfig
from walkplan.grounding import ground
from walkplan.heuristics import get_heuristic
from walkplan.pddl_parser import parse_domain, parse_problem
from walkplan.problem import Problem
from walkplan.search import SearchStatistics, search
from walkplan.simulate import simulate_plan
from walkplan.trajectory import Plan
from walkplan.walk import RandomSource

logger = logging.getLogger(__name__)


@dataclass
class Statistics:
    time_to_parse: float = 0.0  # seconds
    time_to_ground: float = 0.0  # seconds
    search: SearchStatistics = field(default_factory=SearchStatistics)

    @property
    def total_time(self) -> float:
        return self.time_to_parse + self.time_to_ground + self.search.time_to_search


class WalkPlanner:
    """
    Random-walk planner.

    The configuration is validated when the planner is built, so an invalid
    heuristic name, weight or search bound fails here with ConfigurationError
    rather than during search.
    """

    def __init__(self, config: Optional[SearchConfig] = None, rng: Optional[RandomSource] = None):
        self.config = config if config is not None else SearchConfig()
        self.rng = rng
        self.statistics = Statistics()

    def load_text(self, domain_pddl: str, problem_pddl: str) -> Problem:
        """Parse and ground PDDL domain/problem text, recording the time spent in each phase."""
        start = time.perf_counter()
        domain = parse_domain(domain_pddl)
        problem_ir = parse_problem(problem_pddl)
        parsed = time.perf_counter()
        problem = ground(domain, problem_ir)
        self.statistics.time_to_parse = parsed - start
        self.statistics.time_to_ground = time.perf_counter() - parsed
        return problem

    def load(self, domain_path: Union[str, Path], problem_path: Union[str, Path]) -> Problem:
        return self.load_text(Path(domain_path).read_text(), Path(problem_path).read_text())

    def solve(self, problem: Problem) -> Optional[Plan]:
        """
        Search a plan for ``problem``.

        Returns the first plan reaching the goal, otherwise the best-effort
        trajectory (check ``statistics.search.goal_reached`` or replay the plan),
        or None when no walk could be run.

        Raises:
            UnsupportedProblem: if the problem needs a requirement outside the supported fragment.
        """
        problem.check_supported()
        heuristic = get_heuristic(self.config.heuristic, problem)
        self.statistics.search = SearchStatistics()
        logger.info(
            f"* Starting random walk search: {self.config.num_walks} walks of length {self.config.length_walk}, "
            f"heuristic {heuristic.name} (weight {self.config.heuristic_weight})"
        )
        plan = search(problem, self.config, heuristic, self.rng, self.statistics.search)
        if plan is not None and self.statistics.search.goal_reached:
            logger.info("* Random walk search succeeded")
        else:
            logger.info("* Random walk search failed")
        return plan

    def solve_files(self, domain_path: Union[str, Path], problem_path: Union[str, Path]) -> Optional[Plan]:
        return self.solve(self.load(domain_path, problem_path))

    def validate(self, problem: Problem, plan: Plan) -> Tuple[bool, str]:
        return simulate_plan(problem, plan.actions)


def format_plan(plan: Plan) -> str:
    width = max(2, len(str(len(plan) - 1)))
    return "\n".join(f"{i:0{width}d}: {a.name} [{a.cost:g}]" for i, a in enumerate(plan.actions))


def format_report(plan: Optional[Plan], statistics: Statistics) -> str:
    """Text summary of a run: the plan, its size and the time spent in each phase."""
    lines: List[str] = []
    if plan is None:
        lines.append("no plan found")
    else:
        if statistics.search.goal_reached:
            lines.append("found plan as follows:")
        else:
            lines.append("goal not reached, best-effort trajectory as follows:")
        lines += ["", format_plan(plan), "", f"plan total cost: {plan.cost:g}"]
    lines.append(f"number of actions: {len(plan) if plan is not None else 0}")
    lines += [
        f"time spent: {statistics.time_to_parse:8.3f} seconds parsing",
        f"            {statistics.time_to_ground:8.3f} seconds grounding",
        f"            {statistics.search.time_to_search:8.3f} seconds searching",
        f"            {statistics.total_time:8.3f} seconds total time",
    ]
    if statistics.search.memory_used:
        lines.append(f"memory used: {statistics.search.memory_used / (1024 * 1024):8.2f} MBytes for searching")
    lines.append(
        f"walks: {statistics.search.walks}, steps: {statistics.search.steps}, nodes: {statistics.search.nodes}"
    )
    return "\n".join(lines)
