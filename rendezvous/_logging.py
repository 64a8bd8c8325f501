"""
_logging.py
===========
Logging functions for rendezvous.

All functions in this module have NO side effects except logging. They take
computed data as parameters and format/emit log messages.

This separation ensures:
- Logging can be easily disabled/mocked in tests
- Computation is separate from presentation
- Clear boundaries between analysis and reporting
"""

import logging
from typing import Any, Dict, List


logger = logging.getLogger(__name__)


# ============================================================================ #
# System and Backend Logging (called at module import time)
# ============================================================================ #


def log_optimization_status(numba_available: bool) -> None:
    """
    Log system capabilities and numba availability at INFO level.

    Called once at module import time.

    Parameters
    ----------
    numba_available : bool
        Whether numba was successfully imported.
    """
    import os
    import platform

    cpu_count = os.cpu_count() or 1
    logger.info(
        "System: %s (%s), %d CPU cores, Python %s",
        platform.machine(),
        platform.system(),
        cpu_count,
        platform.python_version(),
    )

    if numba_available:
        import numba

        logger.info("Numba %s loaded successfully", numba.__version__)

        try:
            logger.info(
                "Numba threading: %d threads available", numba.get_num_threads()
            )
        except Exception:
            pass  # Threading info unavailable in some configs
    else:
        logger.info("Numba not installed; climbing runs as pure Python only")


def install_numba_warning_filter(numba_available: bool) -> None:
    """
    Capture NumbaPerformanceWarning and route it through our logger.

    Parameters
    ----------
    numba_available : bool
        Whether numba was successfully imported.
    """
    import warnings

    if not numba_available:
        return

    from numba.core.errors import NumbaPerformanceWarning

    original_showwarning = warnings.showwarning

    def custom_showwarning(message, category, filename, lineno, file=None, line=None):
        if issubclass(category, NumbaPerformanceWarning):
            logger.warning("Numba performance issue: %s", message)
            logger.warning("  at %s:%d", filename, lineno)
            return
        original_showwarning(message, category, filename, lineno, file, line)

    warnings.showwarning = custom_showwarning


def log_backend_availability(
    backends_available: List[str], numba_available: bool
) -> None:
    """
    Log which execution backends are available for climbing queries.

    Parameters
    ----------
    backends_available : List[str]
        Available backends, e.g. ['python', 'cpu'].
    numba_available : bool
        Whether numba was successfully imported.
    """
    logger.info("Available backends: %s", ", ".join(backends_available))

    if "cpu" in backends_available:
        logger.info("  cpu: binary-lifting kernels compiled by numba.njit")
    elif numba_available:
        logger.info("  cpu: unavailable (kernel module failed to import)")

    if "python" in backends_available:
        logger.info("  python: linear parent-chain climbs (reference)")

    logger.info("Default backend='best' will use: %s", backends_available[-1])


# ============================================================================ #
# Forest Logging
# ============================================================================ #


def log_forest_statistics(stats: Dict[str, Any]) -> None:
    """
    Log forest statistics: city and tree counts, depth, memory footprint.

    Parameters
    ----------
    stats : dict
        As returned by ``Forest.statistics()``.
    """
    logger.info(
        "Forest built: %d cities, %d open roads, %d trees",
        stats["n_cities"],
        stats["n_links"],
        stats["n_trees"],
    )
    logger.info(
        "  Largest tree: %d cities, max depth %d",
        stats["largest_tree"],
        stats["max_depth"],
    )

    if stats["n_trees"] == stats["n_cities"] and stats["n_cities"] > 1:
        logger.warning(
            "No open roads: every city is its own tree, so every query with "
            "two or more distinct cities will answer 0."
        )

    mem_mb = stats["memory_bytes"] / (1024**2)
    logger.info("  Memory footprint: %.1f MB", mem_mb)


def log_ancestor_table(n_levels: int, n_cities: int, nbytes: int) -> None:
    """
    Log the shape and size of a freshly built binary-lifting table.
    """
    logger.info(
        "Ancestor table built: %d levels x %d cities (%.1f KB)",
        n_levels,
        n_cities,
        nbytes / 1024,
    )


def log_link_order(n_edges: int, n_components: int) -> None:
    """
    Log the outcome of breadth-first ordering of an unordered road list.
    """
    logger.info(
        "Ordered %d open roads breadth-first into %d tree(s)",
        n_edges,
        n_components,
    )


# ============================================================================ #
# Query Logging
# ============================================================================ #


def log_query_summary(
    n_queries: int, rejection_counts: Dict[str, int], backend: str
) -> None:
    """
    Log the outcome of a batch of queries.

    Parameters
    ----------
    n_queries : int
        Number of queries answered.
    rejection_counts : Dict[str, int]
        Number of rejected queries per rejection kind.
    backend : str
        Backend that answered the batch.
    """
    n_rejected = sum(rejection_counts.values())
    logger.info(
        "Solved %d queries with backend=%r: %d met, %d rejected",
        n_queries,
        backend,
        n_queries - n_rejected,
        n_rejected,
    )
    for kind in sorted(rejection_counts):
        logger.info("  %s: %d", kind, rejection_counts[kind])


# ============================================================================ #
# Helper Functions for Computing Data (not logging)
# ============================================================================ #


def compute_memory_footprint(forest: Any) -> int:
    """
    Compute total memory footprint of the forest arrays in bytes.

    Derived arrays are counted only when they have already been built.
    """
    mem_bytes = 0
    for arr in (forest.parent, forest.depth, forest.tree_id, forest.degree):
        mem_bytes += arr.nbytes

    for arr in (forest._ancestors, forest._subtree_size):
        if arr is not None:
            mem_bytes += arr.nbytes

    return mem_bytes
