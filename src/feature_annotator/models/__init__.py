"""
Feature Annotator - Data Models

Qt-free data classes for points, shapes, features, the viewport and the
task payload. This is the MODEL in MVC architecture.

The controller (AnnotationSession) is imported from models.session; it
depends on services.annotation_io, which in turn imports these models.
"""

from .point import Point
from .shape import Shape, ShapeKind, GEOMETRIES, geometry_for
from .feature import Feature
from .viewport import Viewport
from .task_config import AnnotatorConfig, FeatureDefinition, StyleConfig, ConstructionError

__all__ = [
    'Point',
    'Shape', 'ShapeKind', 'GEOMETRIES', 'geometry_for',
    'Feature',
    'Viewport',
    'AnnotatorConfig', 'FeatureDefinition', 'StyleConfig', 'ConstructionError',
]
