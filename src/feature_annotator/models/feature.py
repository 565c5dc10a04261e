"""Feature model - a named annotation slot holding an ordered list of shapes."""

from feature_annotator.constants import SHAPE_ANY
from feature_annotator.models.shape import ShapeKind


class Feature:
    """Named slot with a required flag and a shape-kind constraint.

    ``shape_constraint`` is a wire name: 'rect', 'poly' or 'any'. When it is
    not 'any', every shape stored here must be of the matching kind.
    ``required`` is enforced by the session (delete is disabled), not here.
    """

    def __init__(self, name, required=False, shape_constraint=SHAPE_ANY):
        self.name = name
        self.required = required
        self.shape_constraint = shape_constraint
        self.shapes = []

    def __repr__(self):
        return (f"Feature(name={self.name!r}, required={self.required}, "
                f"shape={self.shape_constraint!r}, shapes={len(self.shapes)})")

    @property
    def locked_kind(self):
        """ShapeKind the feature is constrained to, or None for 'any'."""
        if self.shape_constraint == SHAPE_ANY:
            return None
        return ShapeKind.from_wire(self.shape_constraint)

    def accepts(self, kind):
        locked = self.locked_kind
        return locked is None or locked == kind

    def add_shape(self, shape):
        """Append a shape, enforcing the kind constraint.

        Raises:
            ValueError: if the shape's kind violates the constraint
        """
        if not self.accepts(shape.kind):
            raise ValueError(
                f"Feature {self.name!r} only accepts {self.shape_constraint!r} shapes, "
                f"got {shape.kind.value!r}")
        self.shapes.append(shape)
        return shape

    def index_of(self, shape_uuid):
        """Index of the shape with the given uuid, or -1."""
        for i, shape in enumerate(self.shapes):
            if shape.uuid == shape_uuid:
                return i
        return -1

    def prune_invalid(self):
        """Remove every invalid shape. Returns the removed indices (original positions)."""
        removed = [i for i, shape in enumerate(self.shapes) if not shape.valid]
        self.shapes = [shape for shape in self.shapes if shape.valid]
        return removed

    def valid_shapes(self):
        return [shape for shape in self.shapes if shape.valid]
