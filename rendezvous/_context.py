"""
_context.py
===========
Context managers for rendezvous.

Provides clean, Pythonic context managers for temporarily changing state:
- Logging control (suppress/change levels)
- Warning control (suppress specific warnings)
- Backend selection (force specific backend)

All context managers properly restore state on exit, even if exceptions occur.
"""

import logging
import warnings
from contextlib import contextmanager
from typing import Optional, Type


# Module-level state for backend override
_backend_override = None

# Loggers silenced together by quiet()
_PACKAGE_LOGGERS = (
    "rendezvous._logging",
    "rendezvous._forest",
    "rendezvous._resolver",
    "rendezvous._io",
)


# ============================================================================ #
# Logging Context Managers
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Parameters
    ----------
    logger_name : str
        Name of the logger to suppress (e.g., 'rendezvous._forest')
    level : int, default logging.CRITICAL
        Temporary logging level.

    Examples
    --------
    >>> with suppress_logger('rendezvous._forest'):
    ...     forest = Forest.from_edges(n, roads)

    >>> with suppress_logger('rendezvous._resolver', logging.WARNING):
    ...     answers = resolver.solve_many(queries)

    Notes
    -----
    - Exception-safe: Logger level restored even if exception raised
    - Nesting-safe: Can nest multiple suppress_logger contexts
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily suppress all rendezvous logging.

    Convenience wrapper that lowers every rendezvous logger at once.

    Examples
    --------
    >>> with quiet():
    ...     forest = Forest.from_edges(n, roads)

    >>> with quiet(logging.WARNING):
    ...     answers = resolver.solve_many(queries)
    """
    loggers = [logging.getLogger(name) for name in _PACKAGE_LOGGERS]
    original_levels = [lg.level for lg in loggers]

    try:
        for lg in loggers:
            lg.setLevel(level)
        yield
    finally:
        for lg, original in zip(loggers, original_levels):
            lg.setLevel(original)


# ============================================================================ #
# Warning Context Managers
# ============================================================================ #


@contextmanager
def suppress_warnings(category: Optional[Type[Warning]] = None):
    """
    Temporarily suppress warnings.

    Parameters
    ----------
    category : Type[Warning] or None, default None
        Warning category to suppress. If None, suppresses all warnings.

    Examples
    --------
    >>> from numba.core.errors import NumbaPerformanceWarning
    >>> with suppress_warnings(NumbaPerformanceWarning):
    ...     answers = resolver.solve_many(queries)
    """
    with warnings.catch_warnings():
        if category is None:
            warnings.simplefilter("ignore")
        else:
            warnings.filterwarnings("ignore", category=category)
        yield


# ============================================================================ #
# Backend Context Managers
# ============================================================================ #


@contextmanager
def use_backend(backend: str):
    """
    Temporarily force a specific backend for climbing and solving.

    Parameters
    ----------
    backend : str
        'python', 'cpu' or 'best'.

    Raises
    ------
    ValueError
        If requested backend is not available.

    Examples
    --------
    >>> with use_backend('python'):
    ...     answer = resolver.solve([1, 5])

    Notes
    -----
    **Not thread-safe**: uses module-level state.  Pass the ``backend``
    keyword directly for thread-local selection.
    """
    global _backend_override

    from ._backend import get_available_backends

    available = get_available_backends()

    if backend != "best" and backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    original_override = _backend_override

    try:
        _backend_override = backend
        yield
    finally:
        _backend_override = original_override


def get_backend_override() -> Optional[str]:
    """
    Get the current backend override, if any.

    Returns
    -------
    str or None
        Current backend override, or None if no override active.
    """
    return _backend_override


# ============================================================================ #
# Combined Context Managers
# ============================================================================ #


@contextmanager
def silent_benchmark(backend: str = "best"):
    """
    Suppress logging and warnings while forcing a specific backend.

    Examples
    --------
    >>> for backend in ['python', 'cpu']:
    ...     with silent_benchmark(backend):
    ...         start = time.time()
    ...         answers = resolver.solve_many(queries)
    ...         print(f"{backend}: {time.time() - start:.3f}s")
    """
    with quiet():
        with use_backend(backend):
            with suppress_warnings():
                yield
