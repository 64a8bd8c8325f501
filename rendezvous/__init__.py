"""
rendezvous
==========

Simultaneous-meeting queries on a kingdom of cities joined by roads.

Cities are joined by open roads that form a forest.  A query names several
cities; travelers leave each of them at the same moment and walk one road
per time step.  The answer is the number of cities where all of them can
arrive together, that is the cities equidistant from every queried city,
or 0 when no such city exists.

Main Classes
------------
Forest : Rooted trees over the cities, built from open roads
Resolver : Answers meeting queries against a Forest
MeetingPoint : Where and when a group of travelers meets
Rejected : Why a group of travelers can never meet

Context Managers
----------------
quiet : Suppress logging during operations
suppress_logger : Suppress specific logger
suppress_warnings : Suppress specific warnings
use_backend : Force specific climbing backend
silent_benchmark : Combine quiet + backend selection + warning suppression

Utilities
---------
validate_city : Validate a city id
validate_query : Validate a query
format_answers : Format answers one per line
read_kingdom : Parse cities, roads and queries from a text stream

Backend Information
-------------------
get_available_backends : Query available climbing backends
get_backend_info : Get comprehensive backend status
check_numba_available : Check if numba is available

Examples
--------
Basic usage:

>>> from rendezvous import Forest, Resolver
>>> forest = Forest.from_edges(5, [(1, 2), (2, 3), (3, 4), (4, 5)])
>>> resolver = Resolver(forest)
>>> resolver.solve([1, 5])
1
>>> resolver.meeting_point([1, 5])
MeetingPoint(city=3, traveled=2, excluded=frozenset({2, 4}))

With context managers:

>>> from rendezvous import quiet, use_backend
>>> with quiet():
...     forest = Forest.from_edges(n_cities, roads)
>>> with use_backend('python'):
...     answers = Resolver(forest).solve_many(queries)
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Main classes
from ._forest import Forest
from ._resolver import Resolver
from ._meeting import MeetingPoint, Rejected

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
    suppress_warnings,
    use_backend,
    silent_benchmark,
)

# Utilities (generally useful functions)
from ._utils import (
    validate_city,
    validate_query,
    format_answers,
)
from ._io import read_kingdom

# Backend information (useful for checking capabilities)
from ._backend import (
    get_available_backends,
    get_backend_info,
    check_numba_available,
)

# Public API
__all__ = [
    # Main classes
    "Forest",
    "Resolver",
    "MeetingPoint",
    "Rejected",
    # Context managers
    "suppress_logger",
    "quiet",
    "suppress_warnings",
    "use_backend",
    "silent_benchmark",
    # Utilities
    "validate_city",
    "validate_query",
    "format_answers",
    "read_kingdom",
    # Backend information
    "get_available_backends",
    "get_backend_info",
    "check_numba_available",
    # Version info
    "__version__",
]
