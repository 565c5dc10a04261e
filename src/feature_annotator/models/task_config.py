"""
Feature Annotator - Task Configuration

Parses the construction payload:

    {
      "src": "image.png",
      "width": 640, "height": 480,
      "features": [{"name": "head", "required": true, "shape": "rect"}, ...],
      "annotations": {"head": {"shapes": [...]}},
      "style": {"classes": [...], "css": {...}}
    }

``src`` and ``features`` are required. Anything wrong with them raises
ConstructionError before any session state is built. ``annotations`` is
kept as raw data; bad shapes inside it are skipped at import time, not here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from feature_annotator.constants import (
    DEFAULT_VIEW_WIDTH, DEFAULT_VIEW_HEIGHT, SHAPE_ANY, SHAPE_CONSTRAINTS
)


class ConstructionError(ValueError):
    """Raised when a task payload is missing or has invalid required input."""


@dataclass
class FeatureDefinition:
    name: str
    required: bool = False
    shape: str = SHAPE_ANY

    @classmethod
    def from_dict(cls, data, index=0):
        if not isinstance(data, dict):
            raise ConstructionError(f"features[{index}] must be an object, got {type(data).__name__}")
        name = data.get('name')
        if not isinstance(name, str) or not name:
            raise ConstructionError(f"features[{index}] requires a non-empty 'name'")
        shape = data.get('shape', SHAPE_ANY)
        if shape not in SHAPE_CONSTRAINTS:
            raise ConstructionError(
                f"features[{index}] ({name!r}) has unknown shape {shape!r}; "
                f"expected one of {', '.join(SHAPE_CONSTRAINTS)}")
        return cls(name=name, required=bool(data.get('required', False)), shape=shape)


@dataclass
class StyleConfig:
    """Host UI styling. Forwarded verbatim to the toolbar; never read by the core."""
    classes: List[str] = field(default_factory=list)
    css: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        classes = data.get('classes') or []
        if isinstance(classes, str):
            classes = classes.split()
        return cls(classes=list(classes), css=dict(data.get('css') or {}))


@dataclass
class AnnotatorConfig:
    src: str
    features: List[FeatureDefinition]
    width: int = DEFAULT_VIEW_WIDTH
    height: int = DEFAULT_VIEW_HEIGHT
    annotations: Optional[Dict[str, Any]] = None
    style: StyleConfig = field(default_factory=StyleConfig)

    @classmethod
    def from_dict(cls, data):
        """Validate and build a config from a payload dict.

        Raises:
            ConstructionError: if ``src`` or ``features`` is missing or invalid
        """
        if not isinstance(data, dict):
            raise ConstructionError(f"Task payload must be an object, got {type(data).__name__}")
        if data.get('src') is None:
            raise ConstructionError("Input src (image source) is required")
        if data.get('features') is None:
            raise ConstructionError("Input feature array is required")
        raw_features = data['features']
        if not isinstance(raw_features, list):
            raise ConstructionError("Input features is not a valid array")
        if not raw_features:
            raise ConstructionError("Input feature array must not be empty")

        features = [FeatureDefinition.from_dict(f, i) for i, f in enumerate(raw_features)]

        width = data.get('width', DEFAULT_VIEW_WIDTH)
        height = data.get('height', DEFAULT_VIEW_HEIGHT)
        try:
            width, height = int(width), int(height)
        except (TypeError, ValueError):
            raise ConstructionError(f"Invalid view size {width!r}x{height!r}") from None
        if width <= 0 or height <= 0:
            raise ConstructionError(f"View size must be positive, got {width}x{height}")

        annotations = data.get('annotations')
        if annotations is not None and not isinstance(annotations, dict):
            raise ConstructionError("Input annotations must be an object keyed by feature name")

        return cls(
            src=str(data['src']),
            features=features,
            width=width,
            height=height,
            annotations=annotations,
            style=StyleConfig.from_dict(data.get('style')),
        )
