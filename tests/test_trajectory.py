"""
tests/test_trajectory.py

Unit tests for the trajectory arena and plan reconstruction.
"""

from walkplan.action import Action
from walkplan.state import State
from walkplan.trajectory import NO_PARENT, TrajectoryArena, reconstruct


def _chain_arena(length: int):
    arena = TrajectoryArena()
    handle = arena.add_root(State.of({"s0"}))
    for i in range(length):
        handle = arena.extend(handle, Action(f"step-{i}", cost=2.0), State.of({f"s{i + 1}"}))
    return arena, handle


class TestArena:
    def test_root(self):
        arena = TrajectoryArena()
        root = arena.add_root(State.of({"a"}))
        node = arena[root]
        assert node.parent == NO_PARENT
        assert node.action is None
        assert node.depth == 0

    def test_depth_and_parent_links(self):
        arena, handle = _chain_arena(3)
        assert arena[handle].depth == 3
        assert arena[arena[handle].parent].depth == 2
        assert len(arena) == 4

    def test_chain_goes_back_to_root(self):
        arena, handle = _chain_arena(2)
        assert [n.state for n in arena.chain(handle)] == [State.of({"s2"}), State.of({"s1"}), State.of({"s0"})]

    def test_clear(self):
        arena, _ = _chain_arena(2)
        arena.clear()
        assert len(arena) == 0

    def test_several_walks_share_an_arena(self):
        arena, first = _chain_arena(2)
        second = arena.add_root(State.of({"other"}))
        second = arena.extend(second, Action("only"), State.of({"done"}))
        assert [a.name for a in reconstruct(arena, second)] == ["only"]
        assert len(reconstruct(arena, first)) == 2


class TestReconstruct:
    def test_plan_order_and_length(self):
        arena, handle = _chain_arena(4)
        plan = reconstruct(arena, handle)
        assert len(plan) == arena[handle].depth
        assert [a.name for a in plan] == ["step-0", "step-1", "step-2", "step-3"]
        assert plan.final_state == State.of({"s4"})
        assert plan.cost == 8.0

    def test_root_gives_empty_plan(self):
        arena = TrajectoryArena()
        root = arena.add_root(State.of({"a"}))
        plan = reconstruct(arena, root)
        assert len(plan) == 0
        assert plan.final_state == State.of({"a"})
        assert plan.cost == 0
