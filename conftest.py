"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Custom marks
------------
large_scale
    Applied to tests that build forests or query batches large enough to take
    several seconds with the pure-Python backend.  Excluded from quick runs
    with ``-m 'not large_scale'``.

    Registration here suppresses PytestUnknownMarkWarning and makes the mark
    visible in ``pytest --markers``.

Warning filters
---------------
NumbaPerformanceWarning messages are filtered out during tests.  Kernel
compilation on tiny test forests triggers them and they say nothing about
correctness.
"""

import warnings

import pytest
from numba.core.errors import NumbaPerformanceWarning


def pytest_configure(config):
    """
    Configure pytest before test collection begins.

    This runs before any test module is imported, so the filter is in place
    before any kernel is compiled.
    """
    config.addinivalue_line(
        "markers",
        "large_scale: large forests or query batches "
        "(slow; deselect with -m 'not large_scale')",
    )

    warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


def pytest_unconfigure(config):
    """Restore default warning behavior."""
    warnings.resetwarnings()
