# Problem - ground planning task and the PDDL requirement fragment the planner accepts

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Tuple

from walkplan.action import Action, is_applicable
from walkplan.errors import UnsupportedProblem
from walkplan.state import Condition, State, satisfies

SUPPORTED_REQUIREMENTS = frozenset({
    ":strips",
    ":typing",
    ":negative-preconditions",
    ":equality",
    ":conditional-effects",
    ":universal-preconditions",
    ":adl",
    ":action-costs",
})


def check_requirements(requirements: Iterable[str]) -> None:
    """Raise UnsupportedProblem if any requirement lies outside the supported fragment."""
    unsupported = sorted(r for r in requirements if r.lower() not in SUPPORTED_REQUIREMENTS)
    if unsupported:
        raise UnsupportedProblem(f"unsupported problem requirement(s): {', '.join(unsupported)}")


@dataclass(frozen=True)
class Problem:
    initial_state: State
    goal: Condition
    actions: Tuple[Action, ...] = ()
    requirements: FrozenSet[str] = frozenset()
    name: str = ""

    def is_goal(self, state: State) -> bool:
        return satisfies(state, self.goal)

    def applicable_actions(self, state: State) -> List[Action]:
        """Applicable actions in the problem's declaration order."""
        return [a for a in self.actions if is_applicable(a, state)]

    def check_supported(self) -> None:
        check_requirements(self.requirements)
