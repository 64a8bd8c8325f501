"""
test_cpu_kernels.py
===================
Tests for CPU kernels (_cpu_kernels.py).

These tests verify that the kernel module separation works correctly:
- The module imports and every kernel is a numba dispatcher
- Each kernel gives the hand-checked answer on small arrays built here

Integration coverage (every kernel against the pure-Python backend on random
forests) lives in test_backend_agreement.py.
"""

import inspect

import numpy as np
import pytest

from rendezvous._cpu_kernels import (
    _bfs_link_order_nb,
    _kth_ancestor_nb,
    _lca_nb,
    _node_on_path_nb,
    _subtree_sizes_nb,
)

# Parent array of
#
#         1
#        / \
#       2   3
#      / \   \
#     4   5   6          and a separate tree 7 - 8
#
PARENT = np.array([0, 0, 1, 1, 2, 2, 3, 0, 7], dtype=np.int32)
DEPTH = np.array([0, 0, 1, 1, 2, 2, 2, 0, 1], dtype=np.int32)


def _ancestor_table(parent, n_levels):
    ids = np.arange(parent.shape[0], dtype=np.int32)
    table = np.empty((n_levels, parent.shape[0]), dtype=np.int32)
    table[0] = np.where(parent == 0, ids, parent)
    for k in range(1, n_levels):
        table[k] = table[k - 1][table[k - 1]]
    return table


ANCESTORS = _ancestor_table(PARENT, 2)


class TestKernelImports:
    """Test that kernel imports work correctly."""

    @pytest.mark.parametrize(
        "kernel, n_params",
        [
            (_kth_ancestor_nb, 3),
            (_lca_nb, 4),
            (_node_on_path_nb, 5),
            (_subtree_sizes_nb, 3),
            (_bfs_link_order_nb, 5),
        ],
    )
    def test_kernel_signature(self, kernel, n_params):
        assert callable(kernel)
        assert kernel.__name__.endswith("_nb")
        assert len(inspect.signature(kernel.py_func).parameters) == n_params


class TestKthAncestorKernel:
    def test_zero_steps(self):
        assert _kth_ancestor_nb(6, 0, ANCESTORS) == 6

    def test_climbs(self):
        assert _kth_ancestor_nb(6, 1, ANCESTORS) == 3
        assert _kth_ancestor_nb(6, 2, ANCESTORS) == 1
        assert _kth_ancestor_nb(8, 1, ANCESTORS) == 7


class TestLCAKernel:
    def test_siblings(self):
        assert _lca_nb(4, 5, DEPTH, ANCESTORS) == 2

    def test_cousins(self):
        assert _lca_nb(4, 6, DEPTH, ANCESTORS) == 1

    def test_ancestor_pair(self):
        assert _lca_nb(5, 1, DEPTH, ANCESTORS) == 1
        assert _lca_nb(3, 6, DEPTH, ANCESTORS) == 3

    def test_same_city(self):
        assert _lca_nb(5, 5, DEPTH, ANCESTORS) == 5

    def test_different_trees(self):
        assert _lca_nb(4, 8, DEPTH, ANCESTORS) == 0
        assert _lca_nb(1, 7, DEPTH, ANCESTORS) == 0


class TestNodeOnPathKernel:
    def test_walk_between_cousins(self):
        walk = [_node_on_path_nb(5, 6, k, DEPTH, ANCESTORS) for k in range(5)]
        assert walk == [5, 2, 1, 3, 6]

    def test_walk_down(self):
        walk = [_node_on_path_nb(1, 4, k, DEPTH, ANCESTORS) for k in range(3)]
        assert walk == [1, 2, 4]


class TestSubtreeSizesKernel:
    def test_sizes(self):
        order = np.array([8, 6, 5, 4, 3, 2, 7, 1], dtype=np.int64)
        sizes = np.ones(9, dtype=np.int64)
        sizes[0] = 0
        _subtree_sizes_nb(order, PARENT, sizes)
        np.testing.assert_array_equal(sizes, [0, 6, 3, 2, 1, 1, 1, 2, 1])


class TestBFSLinkOrderKernel:
    def test_chain(self):
        # 1-2-3 as CSR: 1:[2]  2:[1, 3]  3:[2]
        indptr = np.array([0, 0, 1, 3, 4], dtype=np.int64)
        indices = np.array([2, 1, 3, 2], dtype=np.int64)
        parents = np.empty(3, dtype=np.int64)
        children = np.empty(3, dtype=np.int64)
        n_out = _bfs_link_order_nb(3, indptr, indices, parents, children)
        assert n_out == 2
        np.testing.assert_array_equal(parents[:n_out], [1, 2])
        np.testing.assert_array_equal(children[:n_out], [2, 3])

    def test_cycle_drops_closing_road(self):
        # Triangle 1-2-3: 1:[2, 3]  2:[1, 3]  3:[1, 2]
        indptr = np.array([0, 0, 2, 4, 6], dtype=np.int64)
        indices = np.array([2, 3, 1, 3, 1, 2], dtype=np.int64)
        parents = np.empty(3, dtype=np.int64)
        children = np.empty(3, dtype=np.int64)
        n_out = _bfs_link_order_nb(3, indptr, indices, parents, children)
        assert n_out == 2
        np.testing.assert_array_equal(parents[:n_out], [1, 1])
        np.testing.assert_array_equal(children[:n_out], [2, 3])

    def test_isolated_cities(self):
        indptr = np.zeros(5, dtype=np.int64)
        indices = np.zeros(0, dtype=np.int64)
        parents = np.empty(3, dtype=np.int64)
        children = np.empty(3, dtype=np.int64)
        assert _bfs_link_order_nb(3, indptr, indices, parents, children) == 0
