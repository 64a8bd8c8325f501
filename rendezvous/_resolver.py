"""
_resolver.py
============
Answers rendezvous queries against a built ``Forest``.

For a query (an ordered list of cities) the resolver decides whether
travelers leaving every queried city at the same time can all stand on one
city at the same moment.  If they can, the answer is the number of cities
that are equidistant from every queried city; otherwise it is 0.

Algorithm
---------
1. A single city meets itself everywhere in its tree: the answer is the
   tree size.
2. All cities must share one tree.
3. Pairwise meeting points are folded into one running meeting point with
   ``merge_meeting_points``; the first ``Rejected`` ends the query.
4. The answer is ``region_size`` of the final meeting point.

Pairing strategies
------------------
  'all'       every unordered pair (i, j), i < j, in query order.
  'anchored'  only the pairs (0, j).  A city equidistant from the first
              queried city and from each other one is equidistant from all
              of them, so both strategies give the same answers; 'anchored'
              needs |query| - 1 pairs instead of |query|^2 / 2.

Thread safety
-------------
The forest caches (tree sizes, ancestor table) are filled lazily and are not
synchronised.  Share a resolver across threads only after warming them, for
example with one ``solve`` call per tree.
"""

import logging
from collections import Counter
from itertools import combinations
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

from rendezvous._forest import Forest, select_backend
from rendezvous._logging import log_query_summary
from rendezvous._meeting import (
    MeetingPoint,
    Outcome,
    Rejected,
    merge_meeting_points,
    pair_meeting_point,
    region_size,
)
from rendezvous._utils import validate_query

logger = logging.getLogger(__name__)

_PAIRINGS = ("anchored", "all")


class Resolver:
    """
    Rendezvous query engine over a ``Forest``.

    Parameters
    ----------
    forest  : Forest
        Fully built forest.  Queries are read-only against it apart from its
        lazily filled caches.
    pairing : str, default 'anchored'
        'anchored' or 'all' (see module docstring).

    Examples
    --------
    >>> forest = Forest.from_edges(5, [(1, 2), (2, 3), (3, 4), (4, 5)])
    >>> resolver = Resolver(forest)
    >>> resolver.meeting_point([1, 5])
    MeetingPoint(city=3, traveled=2, excluded=frozenset({2, 4}))
    >>> resolver.solve([1, 5])
    1
    >>> resolver.solve([1, 4])
    0
    """

    def __init__(self, forest: Forest, pairing: str = "anchored") -> None:
        if not isinstance(forest, Forest):
            raise TypeError(f"forest must be a Forest, got {type(forest).__name__}")
        if pairing not in _PAIRINGS:
            raise ValueError(
                f"Unknown pairing '{pairing}'. Expected one of: {', '.join(_PAIRINGS)}"
            )
        self.forest = forest
        self.pairing = pairing

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    def solve(self, query: Iterable[int], backend: str = "best") -> int:
        """
        Number of cities equidistant from every city in *query*, or 0 when the
        travelers can never meet.

        Parameters
        ----------
        query   : iterable of int   Non-empty; ids in [1, n_cities].
        backend : str               'best', 'python' or 'cpu'.

        Raises
        ------
        ValueError   for an empty query or out-of-range ids.
        """
        cities = validate_query(query, self.forest.n_cities)
        outcome = self._meeting_point(cities, select_backend(backend))
        return self._answer(outcome)

    def meeting_point(self, query: Iterable[int], backend: str = "best") -> Outcome:
        """
        The merged ``MeetingPoint`` for *query*, or the ``Rejected`` that
        ended it.  Explains what ``solve`` answers.
        """
        cities = validate_query(query, self.forest.n_cities)
        return self._meeting_point(cities, select_backend(backend))

    def solve_many(
        self, queries: Iterable[Iterable[int]], backend: str = "best"
    ) -> np.ndarray:
        """
        Answer a batch of queries in order.

        Returns
        -------
        np.ndarray[int64, shape=(n_queries,)]

        Logs one INFO summary with the number of rejected queries per kind.
        """
        resolved = select_backend(backend)
        n_cities = self.forest.n_cities
        answers = []
        rejections: Counter = Counter()

        for query in queries:
            outcome = self._meeting_point(validate_query(query, n_cities), resolved)
            if isinstance(outcome, Rejected):
                rejections[outcome.kind] += 1
            answers.append(self._answer(outcome))

        log_query_summary(len(answers), dict(rejections), resolved)
        return np.asarray(answers, dtype=np.int64)

    # ================================================================== #
    # Private methods                                                      #
    # ================================================================== #

    def _meeting_point(self, cities: Tuple[int, ...], backend: str) -> Outcome:
        forest = self.forest

        if len(cities) == 1:
            return MeetingPoint(cities[0], 0)

        tree = forest.tree_id[cities[0]]
        for city in cities[1:]:
            if forest.tree_id[city] != tree:
                return self._reject(
                    cities,
                    Rejected(
                        "different-trees",
                        f"city {city} is not in the tree of city {cities[0]}",
                    ),
                )

        running = None
        for a, b in self._pairs(cities):
            outcome = pair_meeting_point(forest, a, b, backend)
            if isinstance(outcome, Rejected):
                return self._reject(cities, outcome)
            if running is None:
                running = outcome
                continue
            running = merge_meeting_points(forest, running, outcome, backend)
            if isinstance(running, Rejected):
                return self._reject(cities, running)

        return running

    def _pairs(self, cities: Sequence[int]) -> Iterator[Tuple[int, int]]:
        if self.pairing == "all":
            return combinations(cities, 2)
        first = cities[0]
        return ((first, other) for other in cities[1:])

    def _answer(self, outcome: Outcome) -> int:
        if isinstance(outcome, Rejected):
            return 0
        return region_size(self.forest, outcome)

    @staticmethod
    def _reject(cities: Tuple[int, ...], rejected: Rejected) -> Rejected:
        logger.debug("Query %s rejected (%s): %s", cities, rejected.kind, rejected.reason)
        return rejected
