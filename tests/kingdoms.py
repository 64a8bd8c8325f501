"""
tests/kingdoms.py
=================
Shared test kingdoms, a random forest generator and a brute-force oracle.

Named kingdoms (open roads only)
--------------------------------
  CHAIN3      1-2-3
  STAR3       1-2, 1-3
  FORK4       1-2, 2-3, 2-4
  CHAIN5      1-2-3-4-5
  BROOM6      1-2, 2-3, 2-4, 2-5, 5-6
  SPLIT6      1-2, 2-4, 2-5, 1-3, 3-6

Built with ``Forest.from_edges``, every kingdom is rooted at city 1.

Oracle
------
``brute_force_answer`` runs one BFS per distinct queried city over the open
roads and counts the cities whose distance to every queried city is finite
and identical.
"""

from collections import deque

import numpy as np

CHAIN3 = (3, [(1, 2), (2, 3)])
STAR3 = (3, [(1, 2), (1, 3)])
FORK4 = (4, [(1, 2), (2, 3), (2, 4)])
CHAIN5 = (5, [(1, 2), (2, 3), (3, 4), (4, 5)])
BROOM6 = (6, [(1, 2), (2, 3), (2, 4), (2, 5), (5, 6)])
SPLIT6 = (6, [(1, 2), (2, 4), (2, 5), (1, 3), (3, 6)])


def random_forest_edges(rng, n_cities, p_link=0.9):
    """
    Random forest over cities 1..n_cities, roads shuffled and randomly
    oriented.  Each city (in a random order) joins an earlier one with
    probability *p_link*, otherwise it starts a new tree.
    """
    order = rng.permutation(n_cities) + 1
    edges = []
    for i in range(1, n_cities):
        if rng.random() < p_link:
            j = int(rng.integers(0, i))
            a, b = int(order[j]), int(order[i])
            if rng.random() < 0.5:
                a, b = b, a
            edges.append((a, b))
    rng.shuffle(edges)
    return edges


def random_queries(rng, n_cities, n_queries, max_size=4):
    """Random queries of 1..max_size cities (duplicates allowed)."""
    queries = []
    for _ in range(n_queries):
        size = int(rng.integers(1, max_size + 1))
        queries.append([int(c) for c in rng.integers(1, n_cities + 1, size=size)])
    return queries


def adjacency(n_cities, edges):
    adj = [[] for _ in range(n_cities + 1)]
    for a, b in edges:
        adj[a].append(b)
        adj[b].append(a)
    return adj


def bfs_distances(adj, source):
    """Edge distance from *source* to every city; -1 when unreachable."""
    dist = np.full(len(adj), -1, dtype=np.int64)
    dist[source] = 0
    queue = deque([source])
    while queue:
        city = queue.popleft()
        for nb in adj[city]:
            if dist[nb] < 0:
                dist[nb] = dist[city] + 1
                queue.append(nb)
    return dist


def brute_force_answer(n_cities, edges, query, adj=None):
    """Number of cities equidistant from every city in *query*."""
    if adj is None:
        adj = adjacency(n_cities, edges)
    dists = np.stack([bfs_distances(adj, c) for c in sorted(set(query))])[:, 1:]
    reachable = (dists >= 0).all(axis=0)
    equal = (dists == dists[0]).all(axis=0)
    return int(np.count_nonzero(reachable & equal))
