"""Drawable primitives and the scene that scales them.

This module holds the geometry of the viewer's primitives (cubes, flat
polygons and coordinate axes) and the collection they live in. Issuing the
actual draw calls is left to the rendering layer, which only reads the data
exposed here.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from scenemath.geometry import Plane, clockwise_order

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]

COLORS: Dict[str, Color] = {
    "black": (0, 0, 0, 255),
    "white": (255, 255, 255, 255),
    "red": (230, 41, 55, 255),
    "green": (0, 228, 48, 255),
    "blue": (0, 121, 241, 255),
    "gray": (130, 130, 130, 255),
    "orange": (255, 161, 0, 255),
}


class InvalidPolygon(ValueError):
    """Raised when a polygon has too few points to be filled."""


def parse_color(value: Union[str, Sequence[int]]) -> Color:
    """Resolve a color name or an RGB(A) sequence to an RGBA tuple."""
    if isinstance(value, str):
        try:
            return COLORS[value.lower()]
        except KeyError:
            raise ValueError(f"Unknown color name: {value}") from None

    channels = [int(c) for c in value]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or any(c < 0 or c > 255 for c in channels):
        raise ValueError(f"Invalid color: {value!r}")
    return tuple(channels)


def _check_scalar(scalar: float) -> float:
    scalar = float(scalar)
    if not math.isfinite(scalar) or scalar <= 0:
        raise ValueError(f"Scale factor must be positive and finite, got {scalar}")
    return scalar


class Cube:
    """Axis-aligned box anchored at its minimum corner p0."""

    def __init__(
        self,
        p0: Sequence[float],
        width: float,
        height: float,
        length: float,
        color: Color = COLORS["gray"]
    ):
        self.p0 = np.array(p0, dtype=np.float32).reshape(3)
        self.width = float(width)
        self.height = float(height)
        self.length = float(length)
        self.color = color

    def __repr__(self) -> str:
        return (
            f"Cube(p0={self.p0.tolist()}, width={self.width}, "
            f"height={self.height}, length={self.length})"
        )

    def scale(self, scalar: float) -> None:
        scalar = _check_scalar(scalar)
        self.p0 = self.p0 * np.float32(scalar)
        self.width *= scalar
        self.height *= scalar
        self.length *= scalar

    def corners(self) -> np.ndarray:
        """Return the 8 corners as an 8x3 float32 array.

        The bottom face is walked first (p0, +x, +x+z, +z), then the top face
        back in the opposite direction (+z, +x+z, +x, p0).
        """
        w, h, l = self.width, self.height, self.length
        offsets = np.array([
            [0, 0, 0],
            [w, 0, 0],
            [w, 0, l],
            [0, 0, l],
            [0, h, l],
            [w, h, l],
            [w, h, 0],
            [0, h, 0],
        ], dtype=np.float32)
        return self.p0 + offsets

    def project_onto_plane(self, plane: Plane) -> np.ndarray:
        """Project every corner onto a plane.

        Args:
            plane: Target plane

        Returns:
            8x3 array of projected corners, in corners() order
        """
        return np.array([plane.project(c) for c in self.corners()], dtype=np.float32)

    def to_dict(self) -> Dict:
        return {
            "type": "cube",
            "p0": self.p0.tolist(),
            "width": self.width,
            "height": self.height,
            "length": self.length,
            "color": list(self.color),
        }


class Polygon:
    """Flat polygon given by its 3D vertices.

    The vertices are expected in clockwise order for triangles() to produce a
    proper fan; sort_clockwise() puts them in that order.
    """

    def __init__(self, points: Sequence[Sequence[float]], color: Color = COLORS["gray"]):
        self.points = np.array(points, dtype=np.float32).reshape(-1, 3)
        self.color = color

    def __repr__(self) -> str:
        return f"Polygon({len(self.points)} points)"

    def scale(self, scalar: float) -> None:
        scalar = _check_scalar(scalar)
        self.points = self.points * np.float32(scalar)

    def sort_clockwise(self, axes: Tuple[int, int] = (0, 2)) -> None:
        """Sort the vertices clockwise by their projection onto two axes.

        Args:
            axes: Coordinate indices used as the 2D x and y, (0, 2) for the
                ground plane
        """
        flat = self.points[:, list(axes)]
        self.points = self.points[clockwise_order(flat)]

    def triangles(self) -> List[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
        """Triangulate the polygon as a fan around its first vertex.

        Each fan triangle is emitted in both windings so the back side is
        covered as well.

        Returns:
            List of (a, b, c) vertex triples

        Raises:
            InvalidPolygon: If the polygon has fewer than three points
        """
        if len(self.points) < 3:
            raise InvalidPolygon(f"Polygon needs at least 3 points, got {len(self.points)}")

        first = self.points[0]
        triangles = []
        for i in range(1, len(self.points) - 1):
            triangles.append((first, self.points[i], self.points[i + 1]))
            triangles.append((first, self.points[i + 1], self.points[i]))

        return triangles

    def to_dict(self) -> Dict:
        return {
            "type": "polygon",
            "points": self.points.tolist(),
            "color": list(self.color),
        }


class Axes:
    """Coordinate axes drawn as cylinders with cone arrow heads."""

    def __init__(
        self,
        size: float,
        precision: int,
        thickness: float = 0.1,
        arrow_radius: float = 0.3,
        arrow_height: float = 1.0
    ):
        self.size = float(size)
        self.precision = int(precision)
        self.thickness = float(thickness)
        self.arrow_radius = float(arrow_radius)
        self.arrow_height = float(arrow_height)

    def __repr__(self) -> str:
        return f"Axes(size={self.size}, precision={self.precision})"

    def scale(self, scalar: float) -> None:
        # Shaft thickness stays fixed
        scalar = _check_scalar(scalar)
        self.size *= scalar
        self.arrow_radius *= scalar
        self.arrow_height *= scalar

    def segments(self) -> List[Dict]:
        """Describe every cylinder making up the axes.

        Returns:
            List of dicts with start, end, start_radius, end_radius, slices
            and color; one shaft and two arrow heads per axis (x red, y green,
            z blue)
        """
        segments = []
        for axis, color in enumerate((COLORS["red"], COLORS["green"], COLORS["blue"])):
            unit = np.zeros(3, dtype=np.float32)
            unit[axis] = 1.0

            segments.append({
                "start": (-self.size * unit).tolist(),
                "end": (self.size * unit).tolist(),
                "start_radius": self.thickness,
                "end_radius": self.thickness,
                "slices": self.precision,
                "color": color,
            })
            for direction in (1.0, -1.0):
                segments.append({
                    "start": (direction * self.size * unit).tolist(),
                    "end": (direction * (self.size + self.arrow_height) * unit).tolist(),
                    "start_radius": self.arrow_radius,
                    "end_radius": 0.0,
                    "slices": self.precision,
                    "color": color,
                })

        return segments

    def to_dict(self) -> Dict:
        return {
            "type": "axes",
            "size": self.size,
            "precision": self.precision,
            "thickness": self.thickness,
            "arrow_radius": self.arrow_radius,
            "arrow_height": self.arrow_height,
        }


Primitive = Union[Cube, Polygon, Axes]


class Scene:
    """Ordered collection of primitives."""

    def __init__(self, primitives: Optional[Sequence[Primitive]] = None):
        self._primitives: List[Primitive] = list(primitives or [])
        self.scale_factor = 1.0

    def add(self, primitive: Primitive) -> None:
        self._primitives.append(primitive)

    def __iter__(self) -> Iterator[Primitive]:
        return iter(self._primitives)

    def __len__(self) -> int:
        return len(self._primitives)

    def of_type(self, kind: type) -> List[Primitive]:
        return [p for p in self._primitives if isinstance(p, kind)]

    def scale_all(self, scalar: float) -> None:
        """Scale every primitive by the same factor.

        Args:
            scalar: Positive, finite scale factor

        Raises:
            ValueError: If the factor is not positive and finite
        """
        scalar = _check_scalar(scalar)
        for primitive in self._primitives:
            primitive.scale(scalar)
        self.scale_factor *= scalar
        logger.info(f"Scaled {len(self._primitives)} primitives by {scalar:g}")

    @classmethod
    def from_config(cls, config: Dict) -> "Scene":
        """Build a scene from the `scene` section of the configuration.

        Args:
            config: Mapping with optional `cubes`, `polygons` and `axes` lists

        Returns:
            New scene holding the configured primitives
        """
        scene = cls()

        for cube in config.get("cubes") or []:
            scene.add(Cube(
                cube["p0"],
                cube["width"],
                cube["height"],
                cube["length"],
                parse_color(cube.get("color", "gray")),
            ))

        for polygon in config.get("polygons") or []:
            scene.add(Polygon(polygon["points"], parse_color(polygon.get("color", "gray"))))

        for axes in config.get("axes") or []:
            scene.add(Axes(
                axes["size"],
                axes.get("precision", 16),
                axes.get("thickness", 0.1),
                axes.get("arrow_radius", 0.3),
                axes.get("arrow_height", 1.0),
            ))

        logger.debug(f"Built scene with {len(scene)} primitives from config")
        return scene
