"""
_cpu_kernels.py
===============
CPU-accelerated forest kernels using Numba.

This module contains ONLY numba-accelerated code and should not import other
project modules to avoid import-time complications.

Exported Functions
------------------
_kth_ancestor_nb : njit function
    O(log H) k-th ancestor via the binary-lifting table.

_lca_nb : njit function
    O(log H) lowest common ancestor; 0 when the cities are in different trees.

_node_on_path_nb : njit function
    The k-th city on the path between two cities.

_subtree_sizes_nb : njit function
    Accumulates subtree sizes bottom-up along a depth-descending order.

_bfs_link_order_nb : njit function
    Breadth-first (parent, child) order over a CSR adjacency.

Notes
-----
- City ids index the arrays directly; slot 0 is the "no city" sentinel.
- ``ancestors[k, c]`` is the 2^k-th ancestor of c, saturating at the root
  (a root is its own ancestor at every level).
- cache=True persists compiled binary to disk for faster subsequent runs
"""

import numpy as np
from numba import njit


# ======================================================================== #
# Climbing Kernels                                                          #
# ======================================================================== #


@njit(cache=True)
def _kth_ancestor_nb(city, k, ancestors):
    """
    Return the k-th ancestor of *city*.

    Parameters
    ----------
    city      : int
    k         : int
        Number of edges to climb; caller ensures 0 <= k <= depth[city].
    ancestors : int32[:, :]
        Binary-lifting table, shape (LOG, n_cities + 1).

    Returns
    -------
    int
        City id of the ancestor.
    """
    level = 0
    while k > 0:
        if k & 1:
            city = ancestors[level, city]
        k >>= 1
        level += 1
    return city


@njit(cache=True)
def _lca_nb(u, v, depth, ancestors):
    """
    Lowest common ancestor of *u* and *v*.

    The deeper city is lifted to the shallower one's depth first, then both
    jump together from the highest level down while their ancestors differ.

    Returns
    -------
    int
        City id of the LCA, or 0 when u and v belong to different trees.
    """
    if depth[u] < depth[v]:
        u, v = v, u
    u = _kth_ancestor_nb(u, depth[u] - depth[v], ancestors)
    if u == v:
        return u

    for level in range(ancestors.shape[0] - 1, -1, -1):
        au = ancestors[level, u]
        av = ancestors[level, v]
        if au != av:
            u = au
            v = av

    pu = ancestors[0, u]
    pv = ancestors[0, v]
    if pu != pv:
        return 0
    return pu


@njit(cache=True)
def _node_on_path_nb(u, v, k, depth, ancestors):
    """
    Return the city reached after walking k edges from *u* toward *v*.

    Caller ensures u and v share a tree and 0 <= k <= dist(u, v).
    """
    lca = _lca_nb(u, v, depth, ancestors)
    up = depth[u] - depth[lca]
    if k <= up:
        return _kth_ancestor_nb(u, k, ancestors)
    down = depth[v] - depth[lca]
    return _kth_ancestor_nb(v, up + down - k, ancestors)


# ======================================================================== #
# Construction Kernels                                                      #
# ======================================================================== #


@njit(cache=True)
def _subtree_sizes_nb(order, parent, sizes_out):
    """
    Accumulate subtree sizes in place.

    Parameters
    ----------
    order     : int64[n_cities]
        City ids sorted by depth, deepest first.
    parent    : int32[n_cities + 1]
        Parent city id; 0 for roots.
    sizes_out : int64[n_cities + 1]
        Pre-filled with 1 for every city (0 for the sentinel slot).
    """
    for i in range(order.shape[0]):
        city = order[i]
        p = parent[city]
        if p != 0:
            sizes_out[p] += sizes_out[city]


@njit(cache=True)
def _bfs_link_order_nb(n_cities, indptr, indices, parents_out, children_out):
    """
    Breadth-first link order over a CSR adjacency.

    Every unvisited city (in id order) starts a new tree; each newly reached
    city is emitted as (parent, child) so that replaying the pairs through
    ``Forest.link`` always attaches a fresh city to a placed one.

    Parameters
    ----------
    n_cities     : int
    indptr       : int64[n_cities + 2]
    indices      : int64[2 * n_edges]
    parents_out  : int64[n_cities]
    children_out : int64[n_cities]

    Returns
    -------
    int
        Number of (parent, child) pairs written.
    """
    visited = np.zeros(n_cities + 1, dtype=np.bool_)
    queue = np.empty(n_cities, dtype=np.int64)
    n_out = 0

    for start in range(1, n_cities + 1):
        if visited[start]:
            continue
        visited[start] = True
        head = 0
        tail = 0
        queue[tail] = start
        tail += 1

        while head < tail:
            city = queue[head]
            head += 1
            for j in range(indptr[city], indptr[city + 1]):
                nb = indices[j]
                if not visited[nb]:
                    visited[nb] = True
                    parents_out[n_out] = city
                    children_out[n_out] = nb
                    n_out += 1
                    queue[tail] = nb
                    tail += 1

    return n_out
