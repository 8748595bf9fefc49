"""Tests for FanoutIndex adjacency storage."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from onepass.core.graph import Child, FanoutIndex, InvalidEdgeError, NodeKey

A1 = NodeKey("A", "a1")
B1 = NodeKey("B", "b1")
B2 = NodeKey("B", "b2")


class TestFanoutIndex:
    """Insertion, lookup and snapshots."""

    def test_children_in_insertion_order(self) -> None:
        index = FanoutIndex()
        index.add_edge(A1, B2, 2.0)
        index.add_edge(A1, B1, 1.0)

        assert index.children(A1) == (Child(B2, 2.0), Child(B1, 1.0))

    def test_unknown_parent_has_no_children(self) -> None:
        assert FanoutIndex().children(A1) == ()

    def test_parallel_edges_are_kept(self) -> None:
        index = FanoutIndex()
        index.add_edge(A1, B1, 1.0)
        index.add_edge(A1, B1, 3.0)
        assert [c.edge_weight for c in index.children(A1)] == [1.0, 3.0]
        assert index.edge_count == 2

    def test_invalid_weight_rejected(self) -> None:
        with pytest.raises(InvalidEdgeError):
            FanoutIndex().add_edge(A1, B1, -1.0)

    def test_snapshot_is_a_copy(self) -> None:
        index = FanoutIndex()
        index.add_edge(A1, B1, 1.0)
        snap = index.snapshot()
        index.add_edge(A1, B2, 1.0)

        assert snap == {A1: (Child(B1, 1.0),)}
        assert len(index.children(A1)) == 2

    def test_parents_len_and_contains(self) -> None:
        index = FanoutIndex()
        index.add_edge(A1, B1, 1.0)
        index.add_edge(B1, NodeKey("C", "c1"), 1.0)

        assert index.parents() == [A1, B1]
        assert len(index) == 2
        assert A1 in index
        assert B2 not in index

    def test_edges_iterates_every_link(self) -> None:
        index = FanoutIndex()
        index.add_edge(A1, B1, 1.0)
        index.add_edge(A1, B2, 2.0)
        assert list(index.edges()) == [(A1, Child(B1, 1.0)), (A1, Child(B2, 2.0))]


class TestFanoutMerge:
    """merge_from() is a union that replays every edge."""

    def test_merge_appends_edges(self) -> None:
        left = FanoutIndex()
        left.add_edge(A1, B1, 1.0)
        right = FanoutIndex()
        right.add_edge(A1, B2, 2.0)
        right.add_edge(B1, NodeKey("C", "c1"), 4.0)

        left.merge_from(right)

        assert left.children(A1) == (Child(B1, 1.0), Child(B2, 2.0))
        assert left.children(B1) == (Child(NodeKey("C", "c1"), 4.0),)
        assert left.edge_count == 3

    def test_merge_leaves_source_untouched(self) -> None:
        left = FanoutIndex()
        right = FanoutIndex()
        right.add_edge(A1, B1, 1.0)
        left.merge_from(right)
        assert right.edge_count == 1


class TestFanoutConcurrency:
    """Concurrent producers never lose an edge."""

    def test_concurrent_inserts_on_hot_parent(self) -> None:
        index = FanoutIndex()
        per_worker = 500

        def produce(worker: int) -> None:
            for i in range(per_worker):
                index.add_edge(A1, NodeKey("B", f"w{worker}-{i}"), 1.0)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(produce, range(8)))

        assert len(index.children(A1)) == 8 * per_worker

    def test_concurrent_inserts_on_many_parents(self) -> None:
        index = FanoutIndex()

        def produce(worker: int) -> None:
            for i in range(200):
                index.add_edge(NodeKey("A", f"a{i}"), NodeKey("B", f"b{worker}"), 1.0)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(produce, range(8)))

        assert len(index) == 200
        assert index.edge_count == 1600
