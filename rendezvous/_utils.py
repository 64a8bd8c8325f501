"""
_utils.py
=========
General-purpose validation and formatting helpers for rendezvous.

These are standalone functions that don't depend on the main classes
and are shared by the forest, the resolver and the input adapters.
"""

from typing import Iterable, Tuple

import numpy as np


def validate_city(city, n_cities: int) -> int:
    """
    Return *city* as a plain ``int`` after checking its type and range.

    Parameters
    ----------
    city : int
        City id (Python or numpy integer).  ``bool`` is rejected.
    n_cities : int
        Number of cities; valid ids are 1..n_cities.

    Returns
    -------
    int

    Raises
    ------
    TypeError   if *city* is not an integer.
    ValueError  if *city* is outside [1, n_cities].

    Examples
    --------
    >>> validate_city(3, 5)
    3
    >>> validate_city(np.int32(1), 5)
    1
    >>> validate_city(6, 5)
    Traceback (most recent call last):
        ...
    ValueError: City id 6 is out of range [1, 5].
    """
    if isinstance(city, bool) or not isinstance(city, (int, np.integer)):
        raise TypeError(
            f"City ids must be integers, got {type(city).__name__} ({city!r})."
        )
    city = int(city)
    if city < 1 or city > n_cities:
        raise ValueError(f"City id {city} is out of range [1, {n_cities}].")
    return city


def validate_query(query: Iterable, n_cities: int) -> Tuple[int, ...]:
    """
    Validate a query and return it as a tuple of plain ints.

    Order and duplicates are preserved.

    Raises
    ------
    ValueError  if the query is empty or holds an out-of-range id.
    TypeError   if an element is not an integer.

    Examples
    --------
    >>> validate_query([2, 3, 2], 4)
    (2, 3, 2)
    >>> validate_query([], 4)
    Traceback (most recent call last):
        ...
    ValueError: A query must name at least one city.
    """
    cities = tuple(validate_city(c, n_cities) for c in query)
    if not cities:
        raise ValueError("A query must name at least one city.")
    return cities


def format_answers(answers: Iterable[int]) -> str:
    """
    Format answers one per line, with a trailing newline when non-empty.

    Examples
    --------
    >>> format_answers([1, 0, 4])
    '1\\n0\\n4\\n'
    >>> format_answers([])
    ''
    """
    lines = [str(int(a)) for a in answers]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
