"""
_backend.py
===========
Backend detection and selection for rendezvous.

Two execution backends answer ancestor and LCA queries:

  'python'  Linear parent-chain climbs in plain Python.  Always available;
            kept as the reference implementation.
  'cpu'     Binary-lifting climbs JIT-compiled by numba (``_cpu_kernels``).

Functions in this module have NO side effects - they only query system state.
Logging is done by the calling code, not here.
"""

from typing import List, Tuple, Optional


# ============================================================================ #
# Backend Detection (No Side Effects)
# ============================================================================ #


def check_numba_available() -> bool:
    """
    Check if numba is available for compiled kernels.

    Returns
    -------
    bool
        True if numba can be imported, False otherwise.
    """
    try:
        import numba

        return True
    except ImportError:
        return False


def get_available_backends() -> List[str]:
    """
    Get list of available execution backends.

    Returns
    -------
    list[str]
        Available backends in preference order (last is best).
        Always includes 'python'; includes 'cpu' if numba is available.

    Examples
    --------
    >>> get_available_backends()
    ['python', 'cpu']
    """
    backends = ["python"]

    if check_numba_available():
        backends.append("cpu")

    return backends


def get_best_backend() -> str:
    """
    Get the most optimized available backend ('cpu' > 'python').
    """
    return get_available_backends()[-1]


def resolve_backend(backend: str) -> str:
    """
    Resolve a backend specification to an actual backend.

    Parameters
    ----------
    backend : str
        'best', 'python' or 'cpu'.

    Returns
    -------
    str
        Resolved backend name.

    Raises
    ------
    ValueError
        If requested backend is not available.

    Examples
    --------
    >>> resolve_backend('best')
    'cpu'
    >>> resolve_backend('python')
    'python'
    """
    if backend == "best":
        return get_best_backend()

    available = get_available_backends()
    if backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    return backend


# ============================================================================ #
# Kernel Import Helpers
# ============================================================================ #


def import_cpu_kernels() -> Tuple[
    bool,
    Optional[object],
    Optional[object],
    Optional[object],
    Optional[object],
    Optional[object],
]:
    """
    Try to import CPU kernels from _cpu_kernels module.

    Returns
    -------
    tuple
        (success, kth_ancestor, lca, node_on_path, subtree_sizes, bfs_order)
        Each kernel is None when the import failed.
    """
    try:
        from rendezvous._cpu_kernels import (
            _kth_ancestor_nb,
            _lca_nb,
            _node_on_path_nb,
            _subtree_sizes_nb,
            _bfs_link_order_nb,
        )

        return (
            True,
            _kth_ancestor_nb,
            _lca_nb,
            _node_on_path_nb,
            _subtree_sizes_nb,
            _bfs_link_order_nb,
        )
    except ImportError:
        return (False, None, None, None, None, None)


# ============================================================================ #
# Module-Level State Query (Read-Only)
# ============================================================================ #


def get_backend_info() -> dict:
    """
    Get comprehensive backend information.

    Returns
    -------
    dict
        Keys: 'numba_available', 'backends', 'best_backend',
        'cpu_kernels_available'.

    Examples
    --------
    >>> info = get_backend_info()
    >>> info['backends']
    ['python', 'cpu']
    """
    cpu_kernels_ok = import_cpu_kernels()[0]

    return {
        "numba_available": check_numba_available(),
        "backends": get_available_backends(),
        "best_backend": get_best_backend(),
        "cpu_kernels_available": cpu_kernels_ok,
    }
