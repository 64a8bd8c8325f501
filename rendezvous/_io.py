"""
_io.py
======
Text framing around the forest and the resolver.

Input format (whitespace separated; line breaks carry no meaning)::

    N                       number of cities
    a b status              N - 1 roads; status 1 = open, anything else closed
    Q                       number of queries
    k c1 c2 ... ck          Q queries, each prefixed by its city count

Output: one answer per line, in query order.

Closed roads are dropped before the forest is built.  Every malformed token,
bad count or truncated section raises ``ValueError`` naming what was
expected and where.
"""

import logging
from typing import IO, Iterator, List, Tuple

from rendezvous._forest import Forest
from rendezvous._resolver import Resolver
from rendezvous._utils import format_answers

logger = logging.getLogger(__name__)


class _TokenReader:
    """Pulls integers from a whitespace-separated token stream."""

    def __init__(self, stream: IO[str]) -> None:
        self._tokens = iter_tokens(stream)
        self.position = 0

    def next_int(self, what: str) -> int:
        try:
            token = next(self._tokens)
        except StopIteration:
            raise ValueError(
                f"Unexpected end of input: expected {what} (token {self.position + 1})."
            ) from None
        self.position += 1
        try:
            return int(token)
        except ValueError:
            raise ValueError(
                f"Expected an integer for {what} (token {self.position}), "
                f"got {token!r}."
            ) from None

    def next_count(self, what: str, minimum: int = 0) -> int:
        value = self.next_int(what)
        if value < minimum:
            raise ValueError(
                f"{what.capitalize()} must be at least {minimum}, got {value} "
                f"(token {self.position})."
            )
        return value


def iter_tokens(stream: IO[str]) -> Iterator[str]:
    """Yield whitespace-separated tokens from *stream*, line by line."""
    for line in stream:
        yield from line.split()


def read_kingdom(stream: IO[str]) -> Tuple[Forest, List[List[int]]]:
    """
    Parse cities, roads and queries from *stream*.

    Returns
    -------
    (Forest, list of queries)
        The forest holds only the open roads.  Query city ids are returned as
        read; they are validated when solved.

    Raises
    ------
    ValueError   for any malformed or truncated input.
    """
    reader = _TokenReader(stream)

    n_cities = reader.next_count("the number of cities", minimum=1)
    roads = []
    n_closed = 0
    for i in range(1, n_cities):
        a = reader.next_int(f"city A of road {i}")
        b = reader.next_int(f"city B of road {i}")
        status = reader.next_int(f"status of road {i}")
        if status == 1:
            roads.append((a, b))
        else:
            n_closed += 1
    logger.info("Read %d roads (%d open, %d closed)", n_cities - 1, len(roads), n_closed)

    forest = Forest.from_edges(n_cities, roads)

    n_queries = reader.next_count("the number of queries")
    queries = []
    for qi in range(1, n_queries + 1):
        k = reader.next_count(f"the city count of query {qi}", minimum=1)
        queries.append([reader.next_int(f"city {j} of query {qi}") for j in range(1, k + 1)])
    logger.info("Read %d queries", n_queries)

    return forest, queries


def run(
    stdin: IO[str],
    stdout: IO[str],
    backend: str = "best",
    pairing: str = "anchored",
) -> int:
    """
    Read a full problem from *stdin*, write one answer per line to *stdout*.

    Returns
    -------
    int   Number of queries answered.
    """
    forest, queries = read_kingdom(stdin)
    answers = Resolver(forest, pairing=pairing).solve_many(queries, backend=backend)
    stdout.write(format_answers(answers))
    return len(answers)
