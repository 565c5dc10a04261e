"""Annotation renderer - draws the image and every feature's shapes onto a surface.

Rendering order:
1. Background fill (screen space)
2. Viewport transform: translate to view center + pan offset, then scale
3. Image centered on the image-space origin (or a "No Image" placeholder)
4. Valid shapes of every feature; the current shape is highlighted and
   gets vertex markers

Line widths and marker radii are given in screen pixels and divided by the
current scale so they look the same at every zoom level.
"""

from feature_annotator.constants import (
    BACKGROUND_COLOR, PLACEHOLDER_COLOR, PLACEHOLDER_TEXT_COLOR, PLACEHOLDER_TEXT,
    STROKE_WIDTH_PX, MARKER_RADIUS_PX, FEATURE_PALETTE
)
from feature_annotator.models.point import Point
from feature_annotator.models.shape import ShapeKind


def box_corners(shape):
    """Expand a box's two stored corners into its four corners (clockwise from p0)."""
    p0, p1 = shape.points[0], shape.points[1]
    return [Point(p0.x, p0.y), Point(p1.x, p0.y), Point(p1.x, p1.y), Point(p0.x, p1.y)]


def feature_colors(feature_index):
    """(normal, highlight) color pair for a feature index."""
    return FEATURE_PALETTE[feature_index % len(FEATURE_PALETTE)]


class AnnotationRenderer:
    """Stateless renderer; all state comes from the viewport and features."""

    def paint(self, surface, viewport, features, current_shape=None, image=None):
        surface.reset_transform()
        surface.clear(BACKGROUND_COLOR)

        surface.set_transform(viewport.view_width / 2 + viewport.offset_x,
                              viewport.view_height / 2 + viewport.offset_y,
                              viewport.scale)

        self.draw_image(surface, viewport, image)

        for feature_index, feature in enumerate(features):
            for shape in feature.shapes:
                self.draw_shape(surface, viewport, shape, feature_index,
                                highlighted=shape is current_shape)

    def draw_image(self, surface, viewport, image):
        half_w = viewport.image_width / 2
        half_h = viewport.image_height / 2
        if image is not None:
            surface.draw_image(image, -half_w, -half_h)
            return
        surface.fill_rect(-half_w, -half_h, viewport.image_width, viewport.image_height,
                          PLACEHOLDER_COLOR)
        surface.draw_text(-40, -8, PLACEHOLDER_TEXT, PLACEHOLDER_TEXT_COLOR)

    def draw_shape(self, surface, viewport, shape, feature_index, highlighted=False):
        """Draw one shape. Invalid or incomplete shapes are skipped."""
        if not shape.valid or not shape.is_complete():
            return

        normal, highlight = feature_colors(feature_index)
        color = highlight if highlighted else normal
        line_width = viewport.scale_distance(STROKE_WIDTH_PX)

        if shape.kind == ShapeKind.BOX:
            vertices = box_corners(shape)
            surface.draw_polyline(vertices, color, line_width, closed=True)
        else:
            vertices = shape.points
            # draw_points already closes the loop
            surface.draw_polyline(shape.draw_points(), color, line_width, closed=False)

        if highlighted:
            radius = viewport.scale_distance(MARKER_RADIUS_PX)
            for vertex in vertices:
                surface.draw_circle(vertex, radius, color)
