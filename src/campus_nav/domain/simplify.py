# domain/simplify.py
from collections.abc import Sequence

from campus_nav.domain.entities.geometry import Vec3


def simplify_path(points: Sequence[Vec3], threshold: float) -> list[Vec3]:
    """
    Greedy forward thinning of a world-space polyline.

    From the last kept point, the next candidate is skipped while the point
    after it is still within `threshold` of the kept point. First and last
    points always survive. This bounds hop length, not perpendicular
    deviation: it is not Douglas-Peucker and may cut corners.
    """
    pts = list(points)
    n = len(pts)
    if n <= 2:
        return pts
    kept = [pts[0]]
    i = 0
    while i < n - 1:
        nxt = i + 1
        while nxt < n - 1 and pts[i].distance_to(pts[nxt + 1]) <= threshold:
            nxt += 1
        kept.append(pts[nxt])
        i = nxt
    return kept
