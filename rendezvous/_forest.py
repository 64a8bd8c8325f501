"""
_forest.py
==========
A forest of rooted trees over cities 1..N, stored as parallel numpy arrays
and built incrementally from open roads.

Public API
----------
  Forest(n_cities)
      Constructor.  Allocates n_cities singleton trees.

  Forest.from_edges(n_cities, edges, backend='best')
      Builds a forest from roads in any order or orientation by replaying
      them breadth-first through ``link``.

  .link(city_a, city_b)
  .depth_of(city) / .tree_of(city) / .parent_of(city)
  .tree_size(tree_id)                                     [memoized]
  .ancestor(city, k) / .lca(u, v) / .distance(u, v)
  .node_on_path(u, v, k) / .step_toward(u, v) / .path(u, v)
  .statistics()

Memory layout
-------------
Every per-city array has n_cities + 1 slots.  Slot 0 is a sentinel meaning
"no city", so a city id indexes the arrays directly:

  parent   : int32 [N+1]   City this city was attached to; 0 for roots.
  depth    : int32 [N+1]   Edge count to the tree root.
  tree_id  : int32 [N+1]   Id of the root city of the containing tree.
  degree   : int32 [N+1]   Number of roads recorded at the city.

Derived arrays (built lazily on first climbing query, dropped by ``link``):

  ancestors    : int32 [LOG, N+1]   ancestors[k, c] = 2^k-th ancestor of c,
                                    saturating at the root.
  subtree_size : int64 [N+1]        Number of cities in the subtree of c.

Construction contract
---------------------
``link(a, b)`` attaches a city that has no road yet to a city that already
has a position.  If ``b`` is fresh it becomes the child of ``a``; otherwise a
fresh ``a`` becomes the child of ``b``.  Two already-placed cities cannot be
linked: that would merge two rooted trees or close a cycle.  ``from_edges``
orders arbitrary road lists so that the contract always holds.

Logging
-------
  logging.getLogger('rendezvous._forest')
      INFO level:    System capabilities, backend availability, forest
                     statistics after bulk construction, ancestor table size,
                     first-call kernel compilation.
      WARNING level: Backend fallbacks, forests without any open road.
"""

import logging
from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from rendezvous._logging import (
    log_optimization_status,
    install_numba_warning_filter,
    log_backend_availability,
    log_forest_statistics,
    log_ancestor_table,
    log_link_order,
    compute_memory_footprint,
)
from rendezvous._backend import (
    check_numba_available,
    get_available_backends,
    get_best_backend,
    resolve_backend,
    import_cpu_kernels,
)
from rendezvous._context import get_backend_override
from rendezvous._utils import validate_city

_NUMBA_AVAILABLE = check_numba_available()
(
    _cpu_import_ok,
    _kth_ancestor_nb,
    _lca_nb,
    _node_on_path_nb,
    _subtree_sizes_nb,
    _bfs_link_order_nb,
) = import_cpu_kernels()

_BACKENDS_AVAILABLE = get_available_backends()
_BACKEND_NAMES = ("best", "python", "cpu")

logger = logging.getLogger(__name__)

# Track first calls to kernels for compilation logging
_kernel_first_call = {
    "climb": True,
    "link-order": True,
}

log_optimization_status(_NUMBA_AVAILABLE)
log_backend_availability(_BACKENDS_AVAILABLE, _NUMBA_AVAILABLE)
install_numba_warning_filter(_NUMBA_AVAILABLE)


def select_backend(backend: str) -> str:
    """
    Resolve *backend* to 'python' or 'cpu', honouring ``use_backend``.

    An unknown name raises ValueError.  A known but unavailable backend falls
    back to the best available one with a warning.
    """
    if backend not in _BACKEND_NAMES:
        raise ValueError(
            f"Unknown backend '{backend}'. "
            f"Expected one of: {', '.join(_BACKEND_NAMES)}"
        )

    backend_override = get_backend_override()
    if backend_override is not None:
        backend = backend_override

    try:
        resolved = resolve_backend(backend)
    except ValueError as e:
        logger.warning(str(e))
        resolved = get_best_backend()

    if resolved == "cpu" and not _cpu_import_ok:
        logger.warning("CPU kernels failed to import; using backend='python'")
        resolved = "python"

    return resolved


def _note_first_call(kernel_key: str) -> None:
    if _kernel_first_call.get(kernel_key, False):
        logger.info("  Compiling %s kernels (cached for future calls)", kernel_key)
        _kernel_first_call[kernel_key] = False


class Forest:
    """
    A forest of rooted trees built from open roads between cities.

    Parameters
    ----------
    n_cities : int
        Number of cities; ids are 1..n_cities.  Every city starts as the root
        of its own singleton tree.

    Attributes
    ----------
    n_cities : int
    n_links  : int      Number of roads linked so far.
    parent, depth, tree_id, degree : int32 [n_cities + 1]

    Examples
    --------
    >>> forest = Forest(5)
    >>> for a, b in [(1, 2), (2, 3), (3, 4), (4, 5)]:
    ...     forest.link(a, b)
    >>> forest.depth_of(5)
    4
    >>> forest.node_on_path(1, 5, 2)
    3
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(self, n_cities: int) -> None:
        if isinstance(n_cities, bool) or not isinstance(n_cities, (int, np.integer)):
            raise TypeError(
                f"n_cities must be an integer, got {type(n_cities).__name__}"
            )
        n_cities = int(n_cities)
        if n_cities < 1:
            raise ValueError(f"A forest needs at least one city, got {n_cities}.")

        size = n_cities + 1
        self.n_cities: int = n_cities
        self.n_links: int = 0

        self.parent = np.zeros(size, dtype=np.int32)
        self.depth = np.zeros(size, dtype=np.int32)
        self.tree_id = np.arange(size, dtype=np.int32)
        self.degree = np.zeros(size, dtype=np.int32)

        # Lazily populated; cleared by link().
        self._tree_sizes: Dict[int, int] = {}
        self._ancestors: Optional[np.ndarray] = None
        self._subtree_size: Optional[np.ndarray] = None

    @classmethod
    def from_edges(
        cls, n_cities: int, edges: Iterable[Tuple[int, int]], backend: str = "best"
    ) -> "Forest":
        """
        Build a forest from open roads given in any order and orientation.

        The roads are packed into a CSR adjacency, ordered breadth-first from
        every unvisited city in id order, and replayed through ``link`` so the
        fresh-child contract always holds.

        Parameters
        ----------
        n_cities : int
        edges    : iterable of (city_a, city_b)
            Open roads only.  An (m, 2) integer array is accepted as is.
        backend  : str, default 'best'
            'cpu' orders the roads with a numba kernel, 'python' with a deque.

        Raises
        ------
        ValueError
            Out-of-range ids, self-loops, or more roads than a forest on
            n_cities can hold (a cycle or a repeated road).

        Complexity
        ----------
        O(N + M log M) for the CSR sort, O(N + M) for the traversal.
        """
        forest = cls(n_cities)
        n = forest.n_cities
        pairs = cls._as_edge_array(edges)
        n_edges = int(pairs.shape[0])

        bad = (pairs < 1) | (pairs > n)
        if bad.any():
            row, col = np.argwhere(bad)[0]
            raise ValueError(
                f"Road {int(row) + 1} ({int(pairs[row, 0])}, {int(pairs[row, 1])}) "
                f"names city {int(pairs[row, col])}, outside [1, {n}]."
            )
        loops = np.flatnonzero(pairs[:, 0] == pairs[:, 1])
        if loops.size:
            city = int(pairs[loops[0], 0])
            raise ValueError(f"Road {int(loops[0]) + 1} links city {city} to itself.")

        src = np.concatenate([pairs[:, 0], pairs[:, 1]])
        dst = np.concatenate([pairs[:, 1], pairs[:, 0]])
        order = np.argsort(src, kind="stable")
        indices = np.ascontiguousarray(dst[order])
        counts = np.bincount(src, minlength=n + 1)
        indptr = np.zeros(n + 2, dtype=np.int64)
        np.cumsum(counts, out=indptr[1:])

        resolved = select_backend(backend)
        if resolved == "cpu":
            _note_first_call("link-order")
            parents = np.empty(n, dtype=np.int64)
            children = np.empty(n, dtype=np.int64)
            n_out = int(_bfs_link_order_nb(n, indptr, indices, parents, children))
            parents = parents[:n_out]
            children = children[:n_out]
        else:
            parents, children = Forest._bfs_link_order(n, indptr, indices)
            n_out = len(parents)

        if n_out != n_edges:
            raise ValueError(
                f"{n_edges - n_out} of {n_edges} road(s) close a cycle or repeat "
                f"an existing road; open roads must form a forest."
            )

        for p, c in zip(np.asarray(parents).tolist(), np.asarray(children).tolist()):
            forest.link(p, c)

        log_link_order(n_edges, forest.n_trees)
        log_forest_statistics(forest.statistics())
        return forest

    def link(self, city_a: int, city_b: int) -> None:
        """
        Record an open road between *city_a* and *city_b*.

        The city without any road so far becomes the child of the other one
        (``city_b`` is preferred as the child when both are fresh).  The
        child's tree id and depth are derived from its new parent.

        Raises
        ------
        ValueError
            Self-loops, out-of-range ids, or two cities that both already
            have roads.
        TypeError
            Non-integer ids.
        """
        a = validate_city(city_a, self.n_cities)
        b = validate_city(city_b, self.n_cities)
        if a == b:
            raise ValueError(f"Cannot link city {a} to itself.")

        if self.degree[b] == 0:
            parent, child = a, b
        elif self.degree[a] == 0:
            parent, child = b, a
        else:
            raise ValueError(
                f"Cannot link cities {a} and {b}: both are already placed "
                f"(trees {int(self.tree_id[a])} and {int(self.tree_id[b])}). "
                f"Roads must arrive parent-first; use Forest.from_edges for "
                f"unordered road lists."
            )

        self.parent[child] = parent
        self.depth[child] = self.depth[parent] + 1
        self.tree_id[child] = self.tree_id[parent]
        self.degree[a] += 1
        self.degree[b] += 1
        self.n_links += 1

        self._invalidate()

    # ================================================================== #
    # Per-city queries                                                     #
    # ================================================================== #

    def depth_of(self, city: int) -> int:
        """Edge distance from *city* to its tree root."""
        return int(self.depth[validate_city(city, self.n_cities)])

    def tree_of(self, city: int) -> int:
        """Tree id (root city) of *city*."""
        return int(self.tree_id[validate_city(city, self.n_cities)])

    def parent_of(self, city: int) -> Optional[int]:
        """Parent city of *city*, or None for a root."""
        p = int(self.parent[validate_city(city, self.n_cities)])
        return p if p != 0 else None

    def tree_size(self, tree_id: int) -> int:
        """
        Number of cities in the tree identified by *tree_id*.

        Memoized per tree id: the first request scans all cities, later
        requests hit the cache until the next ``link``.

        Raises
        ------
        ValueError   if *tree_id* is not the id of a root city.
        """
        t = validate_city(tree_id, self.n_cities)
        if int(self.tree_id[t]) != t:
            raise ValueError(
                f"{t} is not a tree id; city {t} belongs to tree "
                f"{int(self.tree_id[t])}."
            )
        size = self._tree_sizes.get(t)
        if size is None:
            size = int(np.count_nonzero(self.tree_id[1:] == t))
            self._tree_sizes[t] = size
        return size

    # ================================================================== #
    # Whole-forest properties                                              #
    # ================================================================== #

    @property
    def roots(self) -> np.ndarray:
        """City ids of every tree root, ascending."""
        ids = np.arange(1, self.n_cities + 1, dtype=np.int32)
        return ids[self.tree_id[1:] == ids]

    @property
    def n_trees(self) -> int:
        return int(self.roots.shape[0])

    @property
    def max_depth(self) -> int:
        return int(self.depth.max())

    @property
    def ancestors(self) -> np.ndarray:
        """Binary-lifting table, shape (LOG, n_cities + 1)."""
        if self._ancestors is None:
            self._build_ancestor_structures()
        return self._ancestors

    @property
    def subtree_size(self) -> np.ndarray:
        """Subtree size per city, int64 [n_cities + 1]; slot 0 is 0."""
        if self._subtree_size is None:
            self._build_ancestor_structures()
        return self._subtree_size

    def statistics(self) -> Dict[str, Any]:
        """
        Summary counts for logging and the ``stats`` command.

        Returns
        -------
        dict with keys n_cities, n_links, n_trees, largest_tree, max_depth,
        memory_bytes.
        """
        sizes = np.bincount(self.tree_id[1:], minlength=self.n_cities + 1)
        return {
            "n_cities": self.n_cities,
            "n_links": self.n_links,
            "n_trees": self.n_trees,
            "largest_tree": int(sizes.max()),
            "max_depth": self.max_depth,
            "memory_bytes": compute_memory_footprint(self),
        }

    # ================================================================== #
    # Climbing queries                                                     #
    # ================================================================== #

    def ancestor(self, city: int, k: int, backend: str = "best") -> int:
        """
        Return the city *k* edges above *city*.

        Raises
        ------
        ValueError   if k is negative or exceeds the depth of *city*.
        """
        c = validate_city(city, self.n_cities)
        k = int(k)
        if k < 0 or k > int(self.depth[c]):
            raise ValueError(
                f"Cannot climb {k} edge(s) from city {c} at depth {int(self.depth[c])}."
            )
        return self._kth_ancestor(c, k, select_backend(backend))

    def lca(self, u: int, v: int, backend: str = "best") -> int:
        """
        Lowest common ancestor of *u* and *v*.

        Raises
        ------
        ValueError   if u and v belong to different trees.
        """
        u = validate_city(u, self.n_cities)
        v = validate_city(v, self.n_cities)
        self._require_same_tree(u, v)
        return self._lca(u, v, select_backend(backend))

    def distance(self, u: int, v: int, backend: str = "best") -> int:
        """Number of edges on the path between *u* and *v*."""
        u = validate_city(u, self.n_cities)
        v = validate_city(v, self.n_cities)
        self._require_same_tree(u, v)
        return self._distance(u, v, select_backend(backend))

    def node_on_path(self, u: int, v: int, k: int, backend: str = "best") -> int:
        """
        Return the city reached after walking *k* edges from *u* toward *v*.

        ``node_on_path(u, v, 0) == u`` and
        ``node_on_path(u, v, distance(u, v)) == v``.
        """
        u = validate_city(u, self.n_cities)
        v = validate_city(v, self.n_cities)
        self._require_same_tree(u, v)
        resolved = select_backend(backend)
        k = int(k)
        length = self._distance(u, v, resolved)
        if k < 0 or k > length:
            raise ValueError(
                f"Step {k} is outside the path {u} -> {v} of length {length}."
            )
        return self._node_on_path(u, v, k, resolved)

    def step_toward(self, u: int, v: int, backend: str = "best") -> int:
        """Neighbour of *u* on the path to *v* (u != v)."""
        if u == v:
            raise ValueError(f"City {u} has no step toward itself.")
        return self.node_on_path(u, v, 1, backend=backend)

    def path(self, u: int, v: int) -> List[int]:
        """
        Explicit list of cities from *u* to *v*, both included.

        Climbs both ends toward the root, deeper end first, and concatenates
        the two climbed prefixes at their meeting city.
        """
        u = validate_city(u, self.n_cities)
        v = validate_city(v, self.n_cities)
        self._require_same_tree(u, v)

        u_path = [u]
        v_path = [v]
        depth = self.depth
        parent = self.parent
        while u_path[-1] != v_path[-1]:
            du = int(depth[u_path[-1]])
            dv = int(depth[v_path[-1]])
            if du >= dv:
                u_path.append(int(parent[u_path[-1]]))
            if dv >= du:
                v_path.append(int(parent[v_path[-1]]))
        u_path.extend(reversed(v_path[:-1]))
        return u_path

    # ================================================================== #
    # Private instance methods                                             #
    # ================================================================== #

    def _invalidate(self) -> None:
        self._tree_sizes.clear()
        self._ancestors = None
        self._subtree_size = None

    def _require_same_tree(self, u: int, v: int) -> None:
        if self.tree_id[u] != self.tree_id[v]:
            raise ValueError(
                f"Cities {u} and {v} are in different trees "
                f"({int(self.tree_id[u])} and {int(self.tree_id[v])})."
            )

    def _build_ancestor_structures(self) -> None:
        """
        **Private.**  Build the binary-lifting table and subtree sizes.

        Ancestor table
        --------------
        Level 0 is the parent array with roots (and the sentinel) pointing at
        themselves; level k is level k-1 composed with itself.  Built level by
        level with numpy fancy indexing.  LOG = bit_length(max_depth) levels
        cover every climb of at most max_depth edges.

        Subtree sizes
        -------------
        Cities sorted deepest first; each adds its size to its parent.
        """
        size = self.n_cities + 1
        n_levels = max(1, self.max_depth.bit_length())

        ids = np.arange(size, dtype=np.int32)
        ancestors = np.empty((n_levels, size), dtype=np.int32)
        ancestors[0] = np.where(self.parent == 0, ids, self.parent)
        for k in range(1, n_levels):
            prev = ancestors[k - 1]
            ancestors[k] = prev[prev]

        order = np.ascontiguousarray(
            (np.argsort(self.depth[1:], kind="stable") + 1)[::-1]
        )
        sizes = np.ones(size, dtype=np.int64)
        sizes[0] = 0
        if _cpu_import_ok:
            _subtree_sizes_nb(order, self.parent, sizes)
        else:
            Forest._accumulate_subtree_sizes(order, self.parent, sizes)

        self._ancestors = ancestors
        self._subtree_size = sizes
        log_ancestor_table(n_levels, self.n_cities, ancestors.nbytes)

    def _kth_ancestor(self, city: int, k: int, backend: str) -> int:
        if backend == "cpu":
            _note_first_call("climb")
            return int(_kth_ancestor_nb(city, k, self.ancestors))
        parent = self.parent
        for _ in range(k):
            city = int(parent[city])
        return city

    def _lca(self, u: int, v: int, backend: str) -> int:
        """
        LCA, or 0 when *u* and *v* are in different trees.

        The python backend lifts the deeper city to equal depth, then climbs
        both in lockstep until they coincide.  Roots share the sentinel parent
        0, so cities of different trees coincide there.
        """
        if backend == "cpu":
            _note_first_call("climb")
            return int(_lca_nb(u, v, self.depth, self.ancestors))

        depth = self.depth
        parent = self.parent
        du = int(depth[u])
        dv = int(depth[v])
        while du > dv:
            u = int(parent[u])
            du -= 1
        while dv > du:
            v = int(parent[v])
            dv -= 1
        while u != v:
            u = int(parent[u])
            v = int(parent[v])
        return u

    def _distance(self, u: int, v: int, backend: str) -> int:
        lca = self._lca(u, v, backend)
        return int(self.depth[u]) + int(self.depth[v]) - 2 * int(self.depth[lca])

    def _node_on_path(self, u: int, v: int, k: int, backend: str) -> int:
        if backend == "cpu":
            _note_first_call("climb")
            return int(_node_on_path_nb(u, v, k, self.depth, self.ancestors))

        lca = self._lca(u, v, backend)
        up = int(self.depth[u]) - int(self.depth[lca])
        if k <= up:
            return self._kth_ancestor(u, k, backend)
        down = int(self.depth[v]) - int(self.depth[lca])
        return self._kth_ancestor(v, up + down - k, backend)

    def __repr__(self) -> str:
        return (
            f"Forest(n_cities={self.n_cities}, n_links={self.n_links}, "
            f"n_trees={self.n_trees})"
        )

    # ================================================================== #
    # Private static methods (pure computational kernels)                  #
    #                                                                      #
    # Plain-Python twins of the numba kernels in _cpu_kernels.py, used by  #
    # the 'python' backend and when numba is unavailable.                  #
    # ================================================================== #

    @staticmethod
    def _as_edge_array(edges) -> np.ndarray:
        """
        **Private static.**  Materialise *edges* as an int64 (m, 2) array.

        Raises
        ------
        TypeError    for non-integer city ids.
        ValueError   for rows that are not pairs.
        """
        if not isinstance(edges, np.ndarray):
            edges = list(edges)
        arr = np.asarray(edges)
        if arr.size == 0:
            return np.zeros((0, 2), dtype=np.int64)
        if arr.dtype == np.bool_ or not np.issubdtype(arr.dtype, np.integer):
            raise TypeError(f"Road endpoints must be integers, got dtype {arr.dtype}.")
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError(
                f"Roads must be (city_a, city_b) pairs, got shape {arr.shape}."
            )
        return arr.astype(np.int64, copy=False)

    @staticmethod
    def _bfs_link_order(n_cities: int, indptr, indices) -> Tuple[List[int], List[int]]:
        """
        **Private static.**  Breadth-first (parent, child) order over a CSR
        adjacency.  Pure-Python twin of ``_bfs_link_order_nb``.
        """
        visited = [False] * (n_cities + 1)
        parents: List[int] = []
        children: List[int] = []
        indptr = indptr.tolist()
        indices = indices.tolist()

        for start in range(1, n_cities + 1):
            if visited[start]:
                continue
            visited[start] = True
            queue = deque([start])
            while queue:
                city = queue.popleft()
                for j in range(indptr[city], indptr[city + 1]):
                    nb = indices[j]
                    if not visited[nb]:
                        visited[nb] = True
                        parents.append(city)
                        children.append(nb)
                        queue.append(nb)

        return parents, children

    @staticmethod
    def _accumulate_subtree_sizes(order, parent, sizes_out) -> None:
        """
        **Private static.**  Pure-Python twin of ``_subtree_sizes_nb``.
        """
        for city in order.tolist():
            p = int(parent[city])
            if p != 0:
                sizes_out[p] += sizes_out[city]
