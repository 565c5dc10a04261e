"""
Shared fixtures for Feature Annotator tests.

Provides task payloads, sessions built from them, and a recording drawing
surface for renderer tests.
"""
import sys
import os
import pytest

# Widget tests run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure src is on the path when the package is not installed
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


# ── Sample task payloads ────────────────────────────────────────────────

HEAD_TASK = {
    "src": "face.png",
    "features": [{"name": "head", "required": True, "shape": "rect"}],
}

MULTI_TASK = {
    "src": "face.png",
    "width": 400,
    "height": 300,
    "features": [
        {"name": "head", "required": True, "shape": "rect"},
        {"name": "eye", "shape": "any"},
        {"name": "mouth", "shape": "poly"},
    ],
    "annotations": {
        "eye": {"shapes": [
            {"type": "rect", "pos": {"x": -50, "y": -20}, "size": {"width": 30, "height": 10}},
            {"type": "poly", "points": [{"x": 10, "y": -20}, {"x": 40, "y": -20}, {"x": 25, "y": -5}]},
        ]},
    },
    "style": {"classes": ["btn", "btn-small"], "css": {"color": "red"}},
}


@pytest.fixture
def head_task():
    """Single required rect-only feature, no annotations"""
    return dict(HEAD_TASK)


@pytest.fixture
def multi_task():
    """Three features with mixed constraints and some annotations"""
    return dict(MULTI_TASK)


@pytest.fixture
def head_session(head_task):
    from feature_annotator.models.session import AnnotationSession
    from feature_annotator.models.task_config import AnnotatorConfig
    return AnnotationSession.from_config(AnnotatorConfig.from_dict(head_task))


@pytest.fixture
def multi_session(multi_task):
    from feature_annotator.models.session import AnnotationSession
    from feature_annotator.models.task_config import AnnotatorConfig
    return AnnotationSession.from_config(AnnotatorConfig.from_dict(multi_task))


@pytest.fixture
def any_session():
    """Session with two unconstrained, optional features"""
    from feature_annotator.models.session import AnnotationSession
    from feature_annotator.models.task_config import AnnotatorConfig
    config = AnnotatorConfig.from_dict({
        "src": "img.png",
        "features": [{"name": "a"}, {"name": "b"}],
    })
    return AnnotationSession.from_config(config)


class RecordingSurface:
    """Drawing surface that records calls instead of drawing"""

    def __init__(self, width=640, height=480):
        self.width = width
        self.height = height
        self.calls = []

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))

    def clear(self, color):
        self._record('clear', color)

    def set_transform(self, translate_x, translate_y, scale):
        self._record('set_transform', translate_x, translate_y, scale)

    def reset_transform(self):
        self._record('reset_transform')

    def draw_image(self, image, x, y):
        self._record('draw_image', image, x, y)

    def fill_rect(self, x, y, width, height, color):
        self._record('fill_rect', x, y, width, height, color)

    def draw_polyline(self, points, color, line_width, closed=False):
        self._record('draw_polyline', list(points), color, line_width, closed=closed)

    def draw_circle(self, center, radius, color):
        self._record('draw_circle', center, radius, color)

    def draw_text(self, x, y, text, color, size=22):
        self._record('draw_text', x, y, text, color)

    def named(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def recording_surface():
    return RecordingSurface()
