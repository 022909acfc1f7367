from __future__ import annotations

from typing import Iterable, Sequence

DEFAULT_TOLERANCE_DEG = 0.05

# Guards the projection against a zero-length chord (closed rings).
_CHORD_EPSILON = 1e-12


def count_line_vertices(lines: Iterable[Sequence[tuple[float, float]]]) -> int:
    return sum(len(l) for l in lines)


def simplify_line(
    coords: Sequence[tuple[float, float]], tolerance: float = DEFAULT_TOLERANCE_DEG
) -> list[tuple[float, float]]:
    """
    Douglas-Peucker reduction of a (lon, lat) polyline.

    Works on an explicit stack of index ranges so very long coastlines never hit the
    recursion limit. First and last points are always kept; inputs of two points or
    fewer come back as a copy.

    `tolerance` is in degrees and compared squared against the squared perpendicular
    deviation from the chord.
    """
    n = len(coords)
    if n <= 2:
        return list(coords)

    sq_tol = tolerance * tolerance
    keep = [False] * n
    keep[0] = keep[n - 1] = True

    stack: list[tuple[int, int]] = [(0, n - 1)]
    while stack:
        start, end = stack.pop()
        sx, sy = coords[start]
        ex, ey = coords[end]
        dx = ex - sx
        dy = ey - sy
        len_sq = dx * dx + dy * dy
        if len_sq == 0:
            len_sq = _CHORD_EPSILON

        max_sq_dist = 0.0
        idx = -1
        for i in range(start + 1, end):
            px, py = coords[i]
            t = ((px - sx) * dx + (py - sy) * dy) / len_sq
            ddx = px - (sx + t * dx)
            ddy = py - (sy + t * dy)
            dist_sq = ddx * ddx + ddy * ddy
            if dist_sq > max_sq_dist:
                idx = i
                max_sq_dist = dist_sq

        if idx != -1 and max_sq_dist > sq_tol:
            keep[idx] = True
            stack.append((start, idx))
            stack.append((idx, end))

    return [coords[i] for i in range(n) if keep[i]]
