# Action Model - ground operators with conditional effects and simultaneous effect semantics

from dataclasses import dataclass, field
from typing import Set, Tuple

from walkplan.errors import InvalidTransition
from walkplan.state import Condition, Effect, Fluent, State, apply, satisfies


@dataclass(frozen=True)
class ConditionalEffect:
    trigger: Condition = field(default_factory=Condition)
    effect: Effect = field(default_factory=Effect)


@dataclass(frozen=True)
class Action:
    """
    A fully instantiated operator.

    Attributes:
        name: identifier printed in plans, e.g. "(stack a b)"
        precondition: condition that must hold for the action to be applicable
        effects: conditional effects, evaluated in order against the pre-action state
        cost: numeric cost, 1 unless the problem declares action costs
    """

    name: str
    precondition: Condition = field(default_factory=Condition)
    effects: Tuple[ConditionalEffect, ...] = ()
    cost: float = 1.0

    def __str__(self) -> str:
        return self.name


def is_applicable(action: Action, state: State) -> bool:
    return satisfies(state, action.precondition)


def apply_effects(action: Action, state: State) -> State:
    """
    Apply ``action`` to ``state`` and return the successor.

    Every trigger is tested against the original state and the union of the
    triggered additions and deletions is applied in a single derivation, so an
    effect never observes the changes made by an earlier one of the same action.

    Raises:
        InvalidTransition: if the action is not applicable in ``state``.
    """
    if not is_applicable(action, state):
        raise InvalidTransition(f"action {action.name} is not applicable in state {state}")
    add: Set[Fluent] = set()
    delete: Set[Fluent] = set()
    for ce in action.effects:
        if satisfies(state, ce.trigger):
            add.update(ce.effect.add)
            delete.update(ce.effect.delete)
    return apply(state, Effect.of(add, delete))
