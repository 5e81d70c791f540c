"""
tests/test_simulate.py

Unit tests for plan replay and validation.
"""

import pytest

from walkplan.action import Action
from walkplan.errors import InvalidTransition
from walkplan.grounding import ground
from walkplan.pddl_parser import parse_domain, parse_problem
from walkplan.problem import Problem
from walkplan.simulate import replay, simulate_plan
from walkplan.state import Condition, State


@pytest.fixture
def blocksworld(blocksworld_pddl):
    domain, problem = blocksworld_pddl
    grounded = ground(parse_domain(domain), parse_problem(problem))
    return grounded, {a.name: a for a in grounded.actions}


class TestSimulatePlan:
    def test_valid_plan(self, blocksworld):
        problem, actions = blocksworld
        ok, report = simulate_plan(problem, [actions["(pick-up a)"], actions["(stack a b)"]])
        assert ok
        assert report == "goal satisfied after executing plan"

    def test_missing_precondition_is_reported(self, blocksworld):
        problem, actions = blocksworld
        ok, report = simulate_plan(problem, [actions["(stack a b)"]])
        assert not ok
        assert report == "step 1: preconditions not satisfied for '(stack a b)': missing precondition: (holding a)"

    def test_violated_negative_precondition(self):
        action = Action("guarded", Condition.of(negative={"locked"}))
        problem = Problem(State.of({"locked"}), Condition.of({"open"}), (action,))
        ok, report = simulate_plan(problem, [action])
        assert not ok
        assert "negated precondition violated: locked" in report

    def test_goal_not_reached(self, blocksworld):
        problem, actions = blocksworld
        ok, report = simulate_plan(problem, [actions["(pick-up a)"]])
        assert not ok
        assert report == "plan finished but goal not satisfied"

    def test_empty_plan(self, move_problem):
        assert simulate_plan(move_problem, []) == (False, "plan finished but goal not satisfied")
        solved = Problem(State.of({"b"}), move_problem.goal)
        assert simulate_plan(solved, []) == (True, "goal already holds in initial state")


class TestReplay:
    def test_states_in_order(self, move_problem):
        states = replay(move_problem, move_problem.actions)
        assert states == [State.of({"a"}), State.of({"b"})]

    def test_illegal_step_raises(self, move_problem):
        (move,) = move_problem.actions
        with pytest.raises(InvalidTransition):
            replay(move_problem, [move, move])
