"""
Feature Annotator - Annotation I/O Service

Decodes the annotation schema into Shapes and handles task/annotation JSON
files. Separates data handling from the session and UI.

Annotation schema (per feature name):
    {"shapes": [{"type": "rect", "pos": {"x", "y"}, "size": {"width", "height"}},
                {"type": "poly", "points": [{"x", "y"}, ...]}]}

Malformed shapes are logged and skipped; import never raises on user data.
"""

import json
import logging

from feature_annotator.models.point import Point
from feature_annotator.models.shape import Shape, ShapeKind
from feature_annotator.models.task_config import AnnotatorConfig

logger = logging.getLogger(__name__)


def decode_shape(entry):
    """Decode one exported shape dict into a valid Shape.

    Args:
        entry: dict in the export schema

    Returns:
        Shape with valid=True, or None if the entry is malformed
    """
    if not isinstance(entry, dict):
        logger.warning(f"Skipping shape entry that is not an object: {entry!r}")
        return None
    try:
        kind = ShapeKind.from_wire(entry.get('type'))
    except ValueError:
        logger.warning(f"Skipping shape with unknown type {entry.get('type')!r}")
        return None

    try:
        if kind == ShapeKind.BOX:
            pos = Point.from_dict(entry['pos'])
            size = entry['size']
            width, height = float(size['width']), float(size['height'])
            points = [pos, Point(pos.x + width, pos.y + height)]
        else:
            raw_points = entry['points']
            if not isinstance(raw_points, list):
                raise TypeError("points must be a list")
            points = [Point.from_dict(p) for p in raw_points]
            if len(points) < 2:
                logger.warning(f"Skipping polygon with {len(points)} point(s); at least 2 required")
                return None
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Skipping malformed {kind.value!r} shape: {e!r}")
        return None

    return Shape(kind, points, valid=True)


def decode_feature_shapes(entry, feature):
    """Decode a feature's ``{"shapes": [...]}`` entry.

    Shapes whose kind violates the feature's constraint are skipped.

    Returns:
        list of valid Shapes
    """
    if not isinstance(entry, dict):
        logger.warning(f"Skipping annotations for {feature.name!r}: entry is not an object")
        return []
    raw_shapes = entry.get('shapes') or []
    if not isinstance(raw_shapes, list):
        logger.warning(f"Skipping annotations for {feature.name!r}: 'shapes' is not a list")
        return []

    shapes = []
    for raw in raw_shapes:
        shape = decode_shape(raw)
        if shape is None:
            continue
        if not feature.accepts(shape.kind):
            logger.warning(f"Skipping {shape.kind.value!r} shape for {feature.name!r} "
                           f"(feature accepts {feature.shape_constraint!r})")
            continue
        shapes.append(shape)
    return shapes


def load_json_file(filename):
    """Read a JSON document from disk."""
    with open(filename, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_task_file(filename):
    """Load and validate a task payload file.

    Relative ``src`` paths are left as-is; the caller resolves them.

    Raises:
        OSError, json.JSONDecodeError: on unreadable files
        ConstructionError: on invalid payloads
    """
    data = load_json_file(filename)
    config = AnnotatorConfig.from_dict(data)
    logger.debug(f"Task loaded from {filename}: {len(config.features)} feature(s)")
    return config


def load_annotations_file(filename):
    """Load an export payload (annotations keyed by feature name).

    Raises:
        ValueError: if the document is not an object
    """
    data = load_json_file(filename)
    if not isinstance(data, dict):
        raise ValueError(f"Annotation file {filename} must contain an object keyed by feature name")
    return data


def save_annotations_file(filename, data):
    """Write an export payload as indented JSON."""
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)
    logger.debug(f"Annotations saved to {filename}")
