# State Model - immutable world states, signed conditions and effect literal sets

from dataclasses import dataclass
from typing import FrozenSet, Hashable, Iterable, Iterator

# Any hashable proposition. Atoms built by the PDDL loader are ("pred", ("a", "b")).
Fluent = Hashable


def format_fluent(fluent: Fluent) -> str:
    """Render a loader atom as "(pred a b)"; anything else falls back to str()."""
    if (
        isinstance(fluent, tuple)
        and len(fluent) == 2
        and isinstance(fluent[0], str)
        and isinstance(fluent[1], tuple)
    ):
        pred, args = fluent
        return "(" + " ".join((pred,) + tuple(str(a) for a in args)) + ")"
    return str(fluent)


@dataclass(frozen=True)
class State:
    """A set of fluents considered true; every fluent not in the set is false."""

    fluents: FrozenSet[Fluent] = frozenset()

    @classmethod
    def of(cls, fluents: Iterable[Fluent] = ()) -> "State":
        return cls(frozenset(fluents))

    def __contains__(self, fluent: object) -> bool:
        return fluent in self.fluents

    def __iter__(self) -> Iterator[Fluent]:
        return iter(self.fluents)

    def __len__(self) -> int:
        return len(self.fluents)

    def __str__(self) -> str:
        return "{" + ", ".join(sorted(format_fluent(f) for f in self.fluents)) + "}"


@dataclass(frozen=True)
class Condition:
    """Conjunction of positive and negative literals."""

    positive: FrozenSet[Fluent] = frozenset()
    negative: FrozenSet[Fluent] = frozenset()

    @classmethod
    def of(cls, positive: Iterable[Fluent] = (), negative: Iterable[Fluent] = ()) -> "Condition":
        return cls(frozenset(positive), frozenset(negative))

    def is_empty(self) -> bool:
        return not self.positive and not self.negative

    def __len__(self) -> int:
        return len(self.positive) + len(self.negative)

    def __str__(self) -> str:
        parts = [format_fluent(f) for f in self.positive]
        parts += [f"(not {format_fluent(f)})" for f in self.negative]
        return "(and " + " ".join(sorted(parts)) + ")" if parts else "()"


@dataclass(frozen=True)
class Effect:
    """Literals to add to and delete from a state."""

    add: FrozenSet[Fluent] = frozenset()
    delete: FrozenSet[Fluent] = frozenset()

    @classmethod
    def of(cls, add: Iterable[Fluent] = (), delete: Iterable[Fluent] = ()) -> "Effect":
        return cls(frozenset(add), frozenset(delete))

    @classmethod
    def achieving(cls, condition: Condition) -> "Effect":
        """The effect that makes exactly the literals of ``condition`` hold."""
        return cls(condition.positive, condition.negative)

    def is_empty(self) -> bool:
        return not self.add and not self.delete


def satisfies(state: State, condition: Condition) -> bool:
    """True iff every positive literal is in ``state`` and no negative literal is."""
    return condition.positive <= state.fluents and state.fluents.isdisjoint(condition.negative)


def apply(state: State, effect: Effect) -> State:
    """Return (state - delete) | add as a new State; ``state`` is left untouched."""
    return State((state.fluents - effect.delete) | effect.add)
