# Trajectory - arena of walk nodes addressed by integer handles, and plan reconstruction

from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional, Tuple

from walkplan.action import Action
from walkplan.state import State

NO_PARENT = -1


class TrajectoryNode(NamedTuple):
    state: State
    action: Optional[Action]  # None for a root
    parent: int  # handle of the predecessor, NO_PARENT for a root
    depth: int


class TrajectoryArena:
    """
    Flat storage for the nodes of one or more walks.

    Nodes refer to their predecessor by index instead of by reference, so a walk
    is a chain of handles. ``clear`` empties the arena for reuse by the next walk.
    """

    def __init__(self):
        self._nodes: List[TrajectoryNode] = []

    def add_root(self, state: State) -> int:
        self._nodes.append(TrajectoryNode(state, None, NO_PARENT, 0))
        return len(self._nodes) - 1

    def extend(self, parent: int, action: Action, state: State) -> int:
        """Append the successor of node ``parent`` reached by ``action``; return its handle."""
        depth = self._nodes[parent].depth + 1
        self._nodes.append(TrajectoryNode(state, action, parent, depth))
        return len(self._nodes) - 1

    def __getitem__(self, handle: int) -> TrajectoryNode:
        return self._nodes[handle]

    def __len__(self) -> int:
        return len(self._nodes)

    def clear(self) -> None:
        self._nodes.clear()

    def chain(self, handle: int) -> Iterator[TrajectoryNode]:
        """Yield the nodes from ``handle`` back to its root, root last."""
        while handle != NO_PARENT:
            node = self._nodes[handle]
            yield node
            handle = node.parent


@dataclass(frozen=True)
class Plan:
    """Actions in execution order and the state the recorded trajectory ended in."""

    actions: Tuple[Action, ...]
    final_state: State

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    @property
    def cost(self) -> float:
        return sum(a.cost for a in self.actions)


def reconstruct(arena: TrajectoryArena, handle: int) -> Plan:
    """Collect the actions on the chain ending at ``handle`` in root-to-node order."""
    actions = [node.action for node in arena.chain(handle) if node.action is not None]
    actions.reverse()
    return Plan(tuple(actions), arena[handle].state)
