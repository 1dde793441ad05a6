"""
Minimal geometry value types.

The encoder only needs three capabilities from a geometry: its type name
(``geom_type``), its vertices (``coords``) and an interior point
(``representative_point()``). The classes here provide them for points,
lines and polygons; shapely geometries expose the same interface and can
be used interchangeably.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple

Coordinate = Tuple[float, float]


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    geom_type = "Point"

    @property
    def coords(self) -> List[Coordinate]:
        return [(self.x, self.y)]

    def representative_point(self) -> "Point":
        return self


@dataclass(frozen=True)
class LineString:
    """Line through two or more vertices."""

    vertices: Tuple[Coordinate, ...]

    geom_type = "LineString"

    def __post_init__(self):
        vertices = tuple((float(x), float(y)) for x, y in self.vertices)
        if len(vertices) < 2:
            raise ValueError(f"LineString requires at least 2 vertices, got {len(vertices)}")
        object.__setattr__(self, "vertices", vertices)

    @property
    def coords(self) -> List[Coordinate]:
        return list(self.vertices)

    def representative_point(self) -> Point:
        """
        Vertex closest to the centroid, preferring interior vertices.

        Endpoints are only used when the line has no interior vertex.
        """
        cx, cy = _centroid(self.vertices)
        candidates = self.vertices[1:-1] or self.vertices
        x, y = min(candidates, key=lambda p: (p[0] - cx) ** 2 + (p[1] - cy) ** 2)
        return Point(x, y)


@dataclass(frozen=True)
class Polygon:
    """Simple polygon given by its exterior ring (holes are not modelled)."""

    shell: Tuple[Coordinate, ...]

    geom_type = "Polygon"

    def __post_init__(self):
        shell = [(float(x), float(y)) for x, y in self.shell]
        if len(shell) > 1 and shell[0] == shell[-1]:
            shell = shell[:-1]
        if len(shell) < 3:
            raise ValueError(f"Polygon requires at least 3 distinct vertices, got {len(shell)}")
        object.__setattr__(self, "shell", tuple(shell))

    @property
    def coords(self) -> List[Coordinate]:
        return list(self.shell) + [self.shell[0]]

    def contains(self, x: float, y: float) -> bool:
        """Even-odd ray casting test."""
        inside = False
        n = len(self.shell)
        for i in range(n):
            x1, y1 = self.shell[i]
            x2, y2 = self.shell[(i + 1) % n]
            if (y1 > y) != (y2 > y):
                cross = x1 + (y - y1) * (x2 - x1) / (y2 - y1)
                if x < cross:
                    inside = not inside
        return inside

    def representative_point(self) -> Point:
        """
        A point guaranteed to lie inside the polygon.

        Uses the vertex centroid when it is inside; otherwise the midpoint
        of the widest interior span along the horizontal line through it.
        """
        cx, cy = _centroid(self.shell)
        if self.contains(cx, cy):
            return Point(cx, cy)

        crossings = []
        n = len(self.shell)
        for i in range(n):
            x1, y1 = self.shell[i]
            x2, y2 = self.shell[(i + 1) % n]
            if (y1 > cy) != (y2 > cy):
                crossings.append(x1 + (cy - y1) * (x2 - x1) / (y2 - y1))
        crossings.sort()
        spans = list(zip(crossings[0::2], crossings[1::2]))
        if not spans:
            x, y = self.shell[0]
            return Point(x, y)
        left, right = max(spans, key=lambda s: s[1] - s[0])
        return Point((left + right) / 2.0, cy)


def _centroid(points: Sequence[Coordinate]) -> Coordinate:
    n = len(points)
    return sum(p[0] for p in points) / n, sum(p[1] for p in points) / n


def from_geojson(obj: Mapping[str, Any]):
    """
    Build a geometry from a GeoJSON-style mapping.

    Supports Point, LineString and Polygon (exterior ring only).
    """
    geom_type = obj.get("type")
    coordinates = obj.get("coordinates")
    if geom_type == "Point":
        return Point(float(coordinates[0]), float(coordinates[1]))
    if geom_type == "LineString":
        return LineString(tuple((c[0], c[1]) for c in coordinates))
    if geom_type == "Polygon":
        return Polygon(tuple((c[0], c[1]) for c in coordinates[0]))
    raise ValueError(f"Unsupported geometry type: {geom_type}")

