"""Point data structure for image-space coordinates."""
from dataclasses import dataclass


@dataclass
class Point:
    """2D point in image space (origin at the image center).

    Also used for screen-space pairs where a plain x/y value is enough.
    """
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = point"""
        return iter((self.x, self.y))

    def to_dict(self):
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data):
        """Build a point from a ``{'x': .., 'y': ..}`` mapping.

        Raises:
            KeyError: if a coordinate is missing
            TypeError, ValueError: if a coordinate is not numeric
        """
        return cls(float(data['x']), float(data['y']))
