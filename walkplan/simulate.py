from typing import Iterable, List, Tuple

from walkplan.action import Action, apply_effects, is_applicable
from walkplan.problem import Problem
from walkplan.state import Condition, State, format_fluent


def _check_preconds(state: State, condition: Condition) -> List[str]:
    errs: List[str] = []
    for lit in sorted(condition.positive, key=format_fluent):
        if lit not in state:
            errs.append(f"missing precondition: {format_fluent(lit)}")
    for lit in sorted(condition.negative, key=format_fluent):
        if lit in state:
            errs.append(f"negated precondition violated: {format_fluent(lit)}")
    return errs


def replay(problem: Problem, actions: Iterable[Action]) -> List[State]:
    """
    Execute ``actions`` from the initial state of ``problem``.

    Returns the visited states, initial state first. Raises InvalidTransition at
    the first action that is not applicable.
    """
    states = [problem.initial_state]
    for action in actions:
        states.append(apply_effects(action, states[-1]))
    return states


def simulate_plan(problem: Problem, actions: Iterable[Action]) -> Tuple[bool, str]:
    """
    Symbolically simulate a plan under the problem's semantics.
    Returns (ok, report). Report contains the first failure reason or success summary.
    """
    state = problem.initial_state
    steps = list(actions)
    # Quick success check (goal already holds)
    if not steps and problem.is_goal(state):
        return True, "goal already holds in initial state"

    for idx, action in enumerate(steps):
        if not is_applicable(action, state):
            missing = _check_preconds(state, action.precondition)
            return False, f"step {idx+1}: preconditions not satisfied for '{action.name}': " + "; ".join(missing)
        state = apply_effects(action, state)

    if problem.is_goal(state):
        return True, "goal satisfied after executing plan"
    return False, "plan finished but goal not satisfied"
