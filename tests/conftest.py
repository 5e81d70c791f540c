"""
Shared fixtures: hand-built ground problems, small PDDL domains and a scripted random source.
"""

from typing import Dict, List, Sequence

import pytest

from walkplan.action import Action, ConditionalEffect
from walkplan.heuristics import HeuristicEstimator
from walkplan.problem import Problem
from walkplan.state import Condition, Effect, State
from walkplan.walk import RandomSource


class ScriptedRandom(RandomSource):
    """Replays a fixed sequence of choices (each taken modulo the number of options)."""

    def __init__(self, choices: Sequence[int]):
        self.choices = list(choices)
        self.calls: List[int] = []

    def index(self, n: int) -> int:
        choice = self.choices[len(self.calls) % len(self.choices)] % n
        self.calls.append(n)
        return choice


class TableHeuristic(HeuristicEstimator):
    """Looks up a score per fluent (minimum over the state) and records every estimate."""

    name = "TABLE"

    def __init__(self, problem: Problem, table: Dict[str, float]):
        super().__init__(problem)
        self.table = table
        self.scores: List[float] = []

    def estimate(self, state: State, goal: Condition) -> float:
        score = min((self.table[f] for f in state.fluents if f in self.table), default=100.0)
        self.scores.append(score)
        return score


def make_move_problem() -> Problem:
    move = Action(
        "move",
        precondition=Condition.of({"a"}),
        effects=(ConditionalEffect(Condition.of({"a"}), Effect.of(add={"b"}, delete={"a"})),),
    )
    return Problem(State.of({"a"}), Condition.of({"b"}), (move,), name="move")


def make_line_problem(length: int = 5, goal: str = "unreachable") -> Problem:
    """Positions p0..p{length-1} on a line, one step left or right at a time."""
    actions = []
    for i in range(length - 1):
        here, there = f"p{i}", f"p{i + 1}"
        actions.append(Action(f"right-{i}", Condition.of({here}), (ConditionalEffect(effect=Effect.of({there}, {here})),)))
        actions.append(Action(f"left-{i + 1}", Condition.of({there}), (ConditionalEffect(effect=Effect.of({here}, {there})),)))
    return Problem(State.of({"p0"}), Condition.of({goal}), tuple(actions), name="line")


@pytest.fixture
def move_problem() -> Problem:
    return make_move_problem()


@pytest.fixture
def line_problem() -> Problem:
    return make_line_problem()


BLOCKSWORLD_DOMAIN = """
; classic four-operator blocksworld
(define (domain blocksworld)
  (:requirements :strips)
  (:predicates (clear ?x) (ontable ?x) (handempty) (holding ?x) (on ?x ?y))
  (:action pick-up
    :parameters (?x)
    :precondition (and (clear ?x) (ontable ?x) (handempty))
    :effect (and (not (ontable ?x)) (not (clear ?x)) (not (handempty)) (holding ?x)))
  (:action put-down
    :parameters (?x)
    :precondition (holding ?x)
    :effect (and (not (holding ?x)) (clear ?x) (handempty) (ontable ?x)))
  (:action stack
    :parameters (?x ?y)
    :precondition (and (holding ?x) (clear ?y))
    :effect (and (not (holding ?x)) (not (clear ?y)) (clear ?x) (handempty) (on ?x ?y)))
  (:action unstack
    :parameters (?x ?y)
    :precondition (and (on ?x ?y) (clear ?x) (handempty))
    :effect (and (holding ?x) (clear ?y) (not (clear ?x)) (not (handempty)) (not (on ?x ?y)))))
"""

BLOCKSWORLD_PROBLEM = """
(define (problem bw-3)
  (:domain blocksworld)
  (:objects a b c)
  (:init (clear a) (clear b) (clear c) (ontable a) (ontable b) (ontable c) (handempty))
  (:goal (and (on a b))))
"""

DELIVERY_DOMAIN = """
(define (domain delivery)
  (:requirements :typing :negative-preconditions :equality :conditional-effects :action-costs)
  (:types location locatable - object
          truck package - locatable)
  (:constants depot - location)
  (:predicates (at ?o - locatable ?l - location) (road ?from ?to - location)
               (in ?p - package ?t - truck) (fragile ?p - package) (broken ?p - package))
  (:functions (total-cost) - number)
  (:action drive
    :parameters (?t - truck ?from ?to - location)
    :precondition (and (at ?t ?from) (road ?from ?to) (not (= ?from ?to)))
    :effect (and (not (at ?t ?from)) (at ?t ?to)
                 (forall (?p - package) (when (and (in ?p ?t) (fragile ?p)) (broken ?p)))
                 (increase (total-cost) 3)))
  (:action load
    :parameters (?p - package ?t - truck ?l - location)
    :precondition (and (at ?p ?l) (at ?t ?l) (not (broken ?p)))
    :effect (and (not (at ?p ?l)) (in ?p ?t) (increase (total-cost) 1)))
  (:action unload
    :parameters (?p - package ?t - truck ?l - location)
    :precondition (and (in ?p ?t) (at ?t ?l))
    :effect (and (not (in ?p ?t)) (at ?p ?l) (increase (total-cost) 1))))
"""

DELIVERY_PROBLEM = """
(define (problem deliver-one)
  (:domain delivery)
  (:objects t1 - truck p1 p2 - package shop - location)
  (:init (at t1 depot) (at p1 depot) (at p2 depot)
         (road depot shop) (road shop depot) (fragile p2)
         (= (total-cost) 0))
  (:goal (and (at p1 shop)))
  (:metric minimize (total-cost)))
"""


@pytest.fixture
def blocksworld_pddl():
    return BLOCKSWORLD_DOMAIN, BLOCKSWORLD_PROBLEM


@pytest.fixture
def delivery_pddl():
    return DELIVERY_DOMAIN, DELIVERY_PROBLEM
