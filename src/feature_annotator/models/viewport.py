"""
Feature Annotator - Viewport Model

Sole authority for pan/zoom state and the affine map between screen pixels
and image space.

Coordinate spaces:
- Screen: pixels of the host window (the drawing surface sits at surface_origin)
- Local: pixels of the drawing surface, top-left origin
- Image: image pixels with (0, 0) at the image center

Mapping (local -> image):
    x = (lx - view_width / 2 - offset_x) / scale
    y = (ly - view_height / 2 - offset_y) / scale

Invariants:
- scale >= default_scale (no zooming out past fit-to-view)
- |offset_x| <= image_width / 2 * scale, |offset_y| <= image_height / 2 * scale

Atomic conversions take and return plain floats; helpers chain atomics only.
"""

import logging

import numpy as np

from feature_annotator.constants import DEFAULT_VIEW_WIDTH, DEFAULT_VIEW_HEIGHT, FIT_MARGIN
from feature_annotator.models.point import Point

logger = logging.getLogger(__name__)


class Viewport:
    """Pan/zoom bookkeeping for one drawing surface.

    Listeners registered with ``add_listener`` are called (no arguments)
    whenever the view changes and needs a redraw.
    """

    def __init__(self, view_width=DEFAULT_VIEW_WIDTH, view_height=DEFAULT_VIEW_HEIGHT,
                 image_width=None, image_height=None):
        self.view_width = float(view_width)
        self.view_height = float(view_height)
        # Without a loaded image the image is assumed to match the view
        self.image_width = float(image_width) if image_width else self.view_width
        self.image_height = float(image_height) if image_height else self.view_height

        self.surface_origin = Point(0.0, 0.0)
        self.default_scale = 1.0
        self.scale = 1.0
        self.offset_x = 0.0
        self.offset_y = 0.0

        self._listeners = []
        self.fit_to_view(notify=False)

    def __repr__(self):
        return (f"Viewport(view={self.view_width:g}x{self.view_height:g}, "
                f"image={self.image_width:g}x{self.image_height:g}, scale={self.scale:.4f}, "
                f"offset=({self.offset_x:.1f}, {self.offset_y:.1f}))")

    # ========================================
    # Listeners
    # ========================================

    def add_listener(self, callback):
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def request_redraw(self):
        for callback in list(self._listeners):
            callback()

    # ========================================
    # ATOMICS
    # ========================================

    def screen_to_local(self, sx, sy):
        """Remove the drawing surface's screen offset (ATOMIC)."""
        return sx - self.surface_origin.x, sy - self.surface_origin.y

    def local_to_screen(self, lx, ly):
        """Apply the drawing surface's screen offset (ATOMIC)."""
        return lx + self.surface_origin.x, ly + self.surface_origin.y

    def local_to_image_unclamped(self, lx, ly):
        """Undo centering, pan and zoom (ATOMIC)."""
        x = (lx - self.view_width / 2 - self.offset_x) / self.scale
        y = (ly - self.view_height / 2 - self.offset_y) / self.scale
        return x, y

    def image_to_local(self, x, y):
        """Apply zoom, pan and centering (ATOMIC)."""
        lx = x * self.scale + self.view_width / 2 + self.offset_x
        ly = y * self.scale + self.view_height / 2 + self.offset_y
        return lx, ly

    def clamp_to_image(self, x, y):
        """Clamp an image-space point onto the image bounds (ATOMIC)."""
        half_w = self.image_width / 2
        half_h = self.image_height / 2
        return max(-half_w, min(half_w, x)), max(-half_h, min(half_h, y))

    def scale_distance(self, distance):
        """Convert a screen distance to image space."""
        return distance / self.scale

    # ========================================
    # HELPERS (chain atomics only)
    # ========================================

    def local_to_image(self, lx, ly):
        """Surface pixels to a clamped image-space Point."""
        x, y = self.local_to_image_unclamped(lx, ly)
        return Point(*self.clamp_to_image(x, y))

    def screen_to_image(self, sx, sy):
        """Screen pixels to a clamped image-space Point.

        Points beyond the image edge land on the edge, so shapes never
        reference off-image coordinates.
        """
        lx, ly = self.screen_to_local(sx, sy)
        return self.local_to_image(lx, ly)

    def image_to_screen(self, x, y):
        """Image-space coordinates to a screen Point (inverse of screen_to_image)."""
        lx, ly = self.image_to_local(x, y)
        return Point(*self.local_to_screen(lx, ly))

    def image_to_local_array(self, points):
        """Vectorized image -> local transform.

        Args:
            points: iterable of Point or Nx2 array-like of image coordinates

        Returns:
            Nx2 float64 array of surface pixel coordinates
        """
        arr = np.array([tuple(p) for p in points], dtype=np.float64).reshape(-1, 2)
        center = np.array([self.view_width / 2 + self.offset_x,
                           self.view_height / 2 + self.offset_y])
        return arr * self.scale + center

    def image_to_screen_array(self, points):
        """Vectorized image -> screen transform (Nx2 array)."""
        origin = np.array([self.surface_origin.x, self.surface_origin.y])
        return self.image_to_local_array(points) + origin

    # ========================================
    # Pan / zoom
    # ========================================

    def pan_limits(self):
        """Maximum absolute offsets (x, y) at the current scale."""
        return (self.image_width / 2) * self.scale, (self.image_height / 2) * self.scale

    def _clamp_offsets(self):
        x_lim, y_lim = self.pan_limits()
        self.offset_x = max(-x_lim, min(x_lim, self.offset_x))
        self.offset_y = max(-y_lim, min(y_lim, self.offset_y))

    def pan(self, dx, dy):
        """Shift the view by (dx, dy) screen pixels, clamped to keep the image reachable."""
        self.offset_x += dx
        self.offset_y += dy
        self._clamp_offsets()
        self.request_redraw()

    def zoom(self, factor):
        """Multiply the scale by ``factor``; never below fit-to-view."""
        if factor <= 0:
            logger.warning(f"Ignoring non-positive zoom factor {factor}")
            return
        self.scale *= factor
        if self.scale < self.default_scale:
            self.scale = self.default_scale
        # Zooming out shrinks the pan limits
        self._clamp_offsets()
        self.request_redraw()

    def get_zoom_percent(self):
        """Zoom relative to fit-to-view, in percent."""
        return int(round(self.scale / self.default_scale * 100))

    # ========================================
    # Fit / resize
    # ========================================

    def compute_default_scale(self):
        """Largest scale at which the whole image fits, with a margin."""
        x_ratio = self.view_width / self.image_width
        y_ratio = self.view_height / self.image_height
        self.default_scale = FIT_MARGIN * min(x_ratio, y_ratio)
        return self.default_scale

    def fit_to_view(self, notify=True):
        """Reset to the default (fit) zoom with the image centered."""
        self.compute_default_scale()
        self.scale = self.default_scale
        self.offset_x = 0.0
        self.offset_y = 0.0
        logger.debug(f"Fit to view: {self!r}")
        if notify:
            self.request_redraw()

    def resize(self, width, height):
        """Set the drawing surface size and reset pan/zoom."""
        if width <= 0 or height <= 0:
            logger.warning(f"Ignoring resize to non-positive size {width}x{height}")
            return
        self.view_width = float(width)
        self.view_height = float(height)
        self.fit_to_view()

    def set_image_size(self, width, height):
        """Register natural image dimensions (image-load notification)."""
        if width <= 0 or height <= 0:
            logger.warning(f"Ignoring non-positive image size {width}x{height}")
            return
        self.image_width = float(width)
        self.image_height = float(height)
        self.fit_to_view()

    def reset(self, width, height):
        """New view size with no image loaded yet: image assumed to match the view."""
        self.view_width = float(width)
        self.view_height = float(height)
        self.image_width = float(width)
        self.image_height = float(height)
        self.fit_to_view()
