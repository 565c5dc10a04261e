"""
Feature Annotator - Shape Model

A Shape is one geometric annotation instance. The variant tag (``kind``)
selects a geometry strategy from the ``GEOMETRIES`` registry; the Shape
itself only owns the ordered points and the validity flag, so ``reset``
can switch a shape between variants in place.

Kinds:
- BOX: exactly two opposite corners (any corner order)
- POLYGON: zero or at least two vertices, drawn as a closed loop

Adding a new kind means adding a ShapeKind member and registering its
geometry; ``geometry_for`` fails loudly for an unregistered kind.

Usage:
    shape = Shape(ShapeKind.POLYGON)
    shape.add_point(Point(0, 0))      # seeds [p, p]
    shape.modify_last_point(Point(5, 0))
    shape.add_point(Point(5, 5))
    shape.draw_points()               # closed loop, first == last
    shape.export_data()               # {'type': 'poly', 'points': [...]}
"""

import uuid as uuid_module
from enum import Enum

from feature_annotator.models.point import Point


class ShapeKind(Enum):
    """Shape variant tag. Values are the wire names used in import/export."""
    BOX = 'rect'
    POLYGON = 'poly'

    @classmethod
    def from_wire(cls, name):
        """Resolve a wire name ('rect' / 'poly') to a kind.

        Raises:
            ValueError: for an unknown name
        """
        return cls(name)


class ShapeGeometry:
    """Base class for per-kind point semantics.

    Geometries are stateless; every method receives the Shape it works on.
    """

    kind = None
    min_points = 2

    def add_point(self, shape, pt):
        """Add a point. Returns True when the shape needs no more points."""
        raise NotImplementedError

    def can_insert_point(self):
        return False

    def insert_point(self, shape, index, pt):
        pass

    def delete_point(self, shape, index):
        raise NotImplementedError

    def draw_points(self, shape):
        raise NotImplementedError

    def export_data(self, shape):
        raise NotImplementedError

    def is_complete(self, shape):
        return len(shape.points) >= self.min_points


class BoxGeometry(ShapeGeometry):
    """Axis-aligned box defined by two opposite corners."""

    kind = ShapeKind.BOX

    def add_point(self, shape, pt):
        if not shape.points:
            shape.points = [Point(pt.x, pt.y), Point(pt.x, pt.y)]
            return False
        shape.points[1] = Point(pt.x, pt.y)
        return True

    def delete_point(self, shape, index):
        # A box cannot lose a single corner
        shape.invalidate()
        shape.points = []

    def draw_points(self, shape):
        # Expanding to four corners is left to the renderer
        return [Point(p.x, p.y) for p in shape.points]

    def export_data(self, shape):
        if not self.is_complete(shape):
            raise ValueError("Cannot export an incomplete box")
        p0, p1 = shape.points[0], shape.points[1]
        return {
            'type': ShapeKind.BOX.value,
            'pos': {'x': min(p0.x, p1.x), 'y': min(p0.y, p1.y)},
            'size': {'width': abs(p1.x - p0.x), 'height': abs(p1.y - p0.y)},
        }


class PolygonGeometry(ShapeGeometry):
    """Closed polygon with an arbitrary number of vertices.

    A polygon never reports itself complete from ``add_point``; finishing
    one is decided by the session.
    """

    kind = ShapeKind.POLYGON

    def add_point(self, shape, pt):
        if not shape.points:
            shape.points = [Point(pt.x, pt.y), Point(pt.x, pt.y)]
        else:
            shape.points.append(Point(pt.x, pt.y))
        return False

    def can_insert_point(self):
        return True

    def insert_point(self, shape, index, pt):
        if index < 0 or index > len(shape.points):
            return
        shape.points.insert(index, Point(pt.x, pt.y))

    def delete_point(self, shape, index):
        if index < 0 or index >= len(shape.points):
            return
        del shape.points[index]
        if len(shape.points) < self.min_points:
            shape.invalidate()
            shape.points = []

    def draw_points(self, shape):
        if not shape.points:
            return []
        loop = [Point(p.x, p.y) for p in shape.points]
        loop.append(Point(shape.points[0].x, shape.points[0].y))
        return loop

    def export_data(self, shape):
        if not self.is_complete(shape):
            raise ValueError("Cannot export a polygon with fewer than 2 points")
        return {
            'type': ShapeKind.POLYGON.value,
            'points': [p.to_dict() for p in shape.points],
        }


# Geometry registry
GEOMETRIES = {
    ShapeKind.BOX: BoxGeometry(),
    ShapeKind.POLYGON: PolygonGeometry(),
}


def geometry_for(kind):
    """Look up the geometry strategy for a kind.

    Raises:
        KeyError: if no geometry is registered for ``kind``
    """
    try:
        return GEOMETRIES[kind]
    except KeyError:
        raise KeyError(f"No geometry registered for shape kind {kind!r}") from None


class Shape:
    """A single box or polygon annotation.

    Attributes:
        uuid: stable identity used by the session to track the current shape
        kind: ShapeKind variant tag
        points: ordered image-space points (do not keep references across reset)
        valid: True once committed with enough points for its kind
    """

    def __init__(self, kind=ShapeKind.BOX, points=None, valid=False):
        self.uuid = str(uuid_module.uuid4())
        self.kind = kind
        self.points = list(points) if points else []
        self.valid = valid

    def __repr__(self):
        return (f"Shape(kind={self.kind.name}, points={len(self.points)}, "
                f"valid={self.valid}, uuid={self.uuid[:8]})")

    @property
    def geometry(self):
        return geometry_for(self.kind)

    def reset(self, kind=None):
        """Clear points and validity; optionally switch the variant."""
        self.valid = False
        self.points = []
        if kind is not None:
            self.kind = kind

    def invalidate(self):
        self.valid = False

    def is_complete(self):
        """True if the shape has the minimum point count for its kind."""
        return self.geometry.is_complete(self)

    def add_point(self, pt):
        return self.geometry.add_point(self, pt)

    def modify_last_point(self, pt):
        if self.points:
            self.points[-1] = Point(pt.x, pt.y)

    def modify_point(self, index, pt):
        if 0 <= index < len(self.points):
            self.points[index] = Point(pt.x, pt.y)

    def can_insert_point(self):
        return self.geometry.can_insert_point()

    def insert_point(self, index, pt):
        self.geometry.insert_point(self, index, pt)

    def delete_point(self, index):
        self.geometry.delete_point(self, index)

    def draw_points(self):
        return self.geometry.draw_points(self)

    def export_data(self):
        return self.geometry.export_data(self)
