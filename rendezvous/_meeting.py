"""
_meeting.py
===========
Meeting points between travelers on a forest, and the arithmetic that
combines them.

Travelers leave their start cities at the same time and walk one edge per
time step.  A ``MeetingPoint`` records where a group of travelers can all be
at the same time:

  city      the meeting city
  traveled  time steps (edges) each traveler walked to reach it
  excluded  neighbours of ``city`` that lead back toward some traveler's
            start; walking on through one of them breaks the tie

Every city reachable from ``city`` without entering an excluded neighbour is
exactly as far from every traveler; ``region_size`` counts those cities.

A ``Rejected`` marks a group that can never meet.  Functions here return
``MeetingPoint | Rejected`` instead of raising, so callers can fold over
pairs and stop at the first rejection.
"""

from dataclasses import dataclass
from typing import FrozenSet, Union


@dataclass(frozen=True, slots=True)
class MeetingPoint:
    """Where (and when) a group of travelers meets."""

    city: int
    traveled: int
    excluded: FrozenSet[int] = frozenset()


@dataclass(frozen=True, slots=True)
class Rejected:
    """A group of travelers that can never meet; *reason* says why."""

    kind: str  # different-trees | parity | timing | backward-step
    reason: str


Outcome = Union[MeetingPoint, Rejected]


def pair_meeting_point(forest, a: int, b: int, backend: str) -> Outcome:
    """
    Meeting point of the travelers starting at cities *a* and *b*.

    The meeting city is the midpoint of the a-b path.  The deeper city is
    climbed by the depth difference, then both climb in lockstep to their
    LCA; the midpoint sits on the deeper side (or at the LCA when the depths
    are equal).

    Parameters
    ----------
    forest  : Forest
    a, b    : int     Validated city ids.
    backend : str     Resolved backend ('python' or 'cpu').

    Returns
    -------
    MeetingPoint
        ``traveled`` is half the path length; ``excluded`` holds the last city
        before the midpoint on each side (empty when a == b).
    Rejected
        Different trees, or an odd depth sum (the path length is odd, so no
        city is equidistant).
    """
    tree_id = forest.tree_id
    if tree_id[a] != tree_id[b]:
        return Rejected(
            "different-trees",
            f"cities {a} and {b} are in different trees",
        )

    depth = forest.depth
    da = int(depth[a])
    db = int(depth[b])
    if (da + db) % 2:
        return Rejected(
            "parity",
            f"cities {a} (depth {da}) and {b} (depth {db}) have an odd depth sum",
        )
    if a == b:
        return MeetingPoint(a, 0)

    if da < db:
        a, b, da, db = b, a, db, da

    lca = forest._lca(a, b, backend)
    up_a = da - int(depth[lca])
    traveled = (da + db) // 2 - int(depth[lca])
    city = forest._kth_ancestor(a, traveled, backend)
    toward_a = forest._kth_ancestor(a, traveled - 1, backend)
    if traveled == up_a:
        # Equal depths: the midpoint is the LCA itself.
        toward_b = forest._kth_ancestor(b, traveled - 1, backend)
    else:
        toward_b = int(forest.parent[city])

    return MeetingPoint(city, traveled, frozenset((toward_a, toward_b)))


def merge_meeting_points(
    forest, running: MeetingPoint, new: MeetingPoint, backend: str
) -> Outcome:
    """
    Combine two meeting points into one that satisfies both groups.

    Same city
    ---------
    The travel times must agree; the excluded sets are unioned.

    Different cities
    ----------------
    Let L = dist(running.city, new.city).  A city k edges along the path from
    ``running.city`` is reached by the running group at ``running.traveled + k``
    and by the new group at ``new.traveled + L - k``.  Equating gives

        imbalance = (L + new.traveled) - running.traveled = 2k

    which must be even with 0 <= k <= L.  A group that has to move off its own
    meeting city (k > 0 for the running group, k < L for the new one) must not
    leave through one of its excluded neighbours: that would walk back toward
    one of its own travelers.

    Returns
    -------
    MeetingPoint or Rejected
    """
    if running.city == new.city:
        if running.traveled != new.traveled:
            return Rejected(
                "timing",
                f"city {new.city} is reached after {running.traveled} and "
                f"{new.traveled} steps",
            )
        return MeetingPoint(
            running.city, running.traveled, running.excluded | new.excluded
        )

    m1 = running.city
    m2 = new.city
    length = forest._distance(m1, m2, backend)
    imbalance = length + new.traveled - running.traveled
    if imbalance < 0 or imbalance % 2 or imbalance > 2 * length:
        return Rejected(
            "timing",
            f"meeting points {m1} (t={running.traveled}) and {m2} "
            f"(t={new.traveled}) are {length} edge(s) apart",
        )
    k = imbalance // 2

    excluded = set()
    if k == 0:
        excluded |= running.excluded
    else:
        first = forest._node_on_path(m1, m2, 1, backend)
        if first in running.excluded:
            return Rejected(
                "backward-step",
                f"moving from {m1} to {first} walks back toward a traveler",
            )
        excluded.add(forest._node_on_path(m1, m2, k - 1, backend))

    if k == length:
        excluded |= new.excluded
    else:
        first = forest._node_on_path(m2, m1, 1, backend)
        if first in new.excluded:
            return Rejected(
                "backward-step",
                f"moving from {m2} to {first} walks back toward a traveler",
            )
        excluded.add(forest._node_on_path(m1, m2, k + 1, backend))

    city = forest._node_on_path(m1, m2, k, backend)
    return MeetingPoint(city, running.traveled + k, frozenset(excluded))


def region_size(forest, point: MeetingPoint) -> int:
    """
    Number of cities reachable from ``point.city`` without entering an
    excluded neighbour (the meeting city itself included).

    Each excluded neighbour cuts off one branch around the meeting city:
    a child's whole subtree, or everything outside the meeting city's
    subtree when the neighbour is its parent.
    """
    city = point.city
    total = forest.tree_size(int(forest.tree_id[city]))
    if not point.excluded:
        return total

    subtree_size = forest.subtree_size
    parent = int(forest.parent[city])
    remaining = total
    for neighbour in point.excluded:
        if neighbour == parent:
            remaining -= total - int(subtree_size[city])
        else:
            remaining -= int(subtree_size[neighbour])
    return remaining
