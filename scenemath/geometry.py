"""Planar and angular geometry helpers.

This module implements orthogonal projection onto a plane and the clockwise
angular ordering used to prepare flat polygon outlines for rendering.
"""

from __future__ import annotations

import logging
from typing import List, MutableSequence, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

# Key given to points that coincide with the root, ahead of any real cosine
_ROOT_KEY = 2.0

PointSet = Union[MutableSequence[Sequence[float]], np.ndarray]


class DegeneratePlane(ValueError):
    """Raised when a plane is built from an unusable normal."""


class Plane:
    """An infinite plane in 3D space given by a normal and a point on it.

    The normal and the point are stored as read-only float32 arrays, so a
    Plane cannot change once built.
    """

    def __init__(self, normal: Sequence[float], point: Sequence[float]):
        """Initialize the plane.

        Args:
            normal: Non-zero 3-vector orthogonal to the plane
            point: Any point lying on the plane

        Raises:
            DegeneratePlane: If the normal is zero or either vector is not 3D
        """
        normal = np.array(normal, dtype=np.float32).reshape(-1)
        point = np.array(point, dtype=np.float32).reshape(-1)

        if normal.shape != (3,) or point.shape != (3,):
            raise DegeneratePlane(
                f"Expected 3D normal and point, got shapes {normal.shape} and {point.shape}"
            )
        if not np.any(normal):
            raise DegeneratePlane("Plane normal must be non-zero")

        normal.setflags(write=False)
        point.setflags(write=False)
        self._normal = normal
        self._point = point

    @property
    def normal(self) -> np.ndarray:
        return self._normal

    @property
    def point(self) -> np.ndarray:
        return self._point

    def __repr__(self) -> str:
        return f"Plane(normal={self._normal.tolist()}, point={self._point.tolist()})"

    def project(self, point: Sequence[float]) -> np.ndarray:
        """Orthogonally project a point onto the plane.

        With v = point - P0 and t = (v . N) / (N . N), the projection is
        point - t * N.

        Args:
            point: 3D point to project

        Returns:
            Projected point as a float32 3-vector
        """
        p = np.asarray(point, dtype=np.float32).reshape(3)
        v = p - self._point
        t = np.dot(v, self._normal) / np.dot(self._normal, self._normal)
        return p - t * self._normal

    def distance(self, point: Sequence[float]) -> float:
        """Signed distance from the plane, positive on the normal's side."""
        p = np.asarray(point, dtype=np.float32).reshape(3)
        return float(np.dot(p - self._point, self._normal) / np.linalg.norm(self._normal))


def _xy(point: Sequence[float]) -> tuple[float, float]:
    if len(point) < 2:
        raise ValueError(f"Expected a 2D point, got {point!r}")
    return float(point[0]), float(point[1])


def clockwise_order(points: Sequence[Sequence[float]]) -> List[int]:
    """Compute the clockwise angular order of 2D points.

    The root is the point with the smallest y, ties broken by the smallest x.
    A helper point one unit to the left of the root fixes the reference
    direction, and every point is ranked by the cosine of the angle between
    root->helper and root->point, larger cosines first. Points equal to the
    root come first; their order among themselves is unspecified.

    Args:
        points: Sequence of 2D points (extra coordinates are ignored)

    Returns:
        List of indices into `points` in clockwise order
    """
    coords = [_xy(p) for p in points]
    if not coords:
        return []

    root_x, root_y = min(coords, key=lambda c: (c[1], c[0]))
    # Direction from the root to the helper point (root_x - 1, root_y)
    ref_x, ref_y = -1.0, 0.0

    def angle_key(index: int) -> float:
        dx = coords[index][0] - root_x
        dy = coords[index][1] - root_y
        length = np.hypot(dx, dy)
        if length == 0:
            return -_ROOT_KEY
        cosine = (dx * ref_x + dy * ref_y) / length
        return -cosine

    order = sorted(range(len(coords)), key=angle_key)
    logger.debug(f"Sorted {len(order)} points clockwise around ({root_x}, {root_y})")
    return order


def sort_points_clockwise(points: PointSet) -> None:
    """Reorder 2D points in place into clockwise order.

    See clockwise_order for the ranking. Lists are reordered with slice
    assignment and numpy arrays row-wise, so the container itself is kept.

    Args:
        points: Mutable sequence of 2D points or an Nx2 array
    """
    order = clockwise_order(points)
    if isinstance(points, np.ndarray):
        points[:] = points[order]
    else:
        points[:] = [points[i] for i in order]
