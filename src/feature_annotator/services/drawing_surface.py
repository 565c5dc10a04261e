"""Drawing surfaces for the annotation renderer.

A surface exposes the handful of primitives the renderer needs: clear,
an affine translate+scale transform, image blit, filled rect, polyline,
filled circle and text. Coordinates passed after ``set_transform`` are in
image space; colors are (r, g, b) tuples.

- QPainterSurface: draws through a QPainter (interactive canvas)
- PillowSurface: draws into a PIL image (headless rendering)
"""

from abc import ABC, abstractmethod

import numpy as np
from PIL import Image, ImageDraw
from PyQt5.QtCore import Qt, QPointF, QRectF
from PyQt5.QtGui import QColor, QPen, QBrush, QPolygonF, QTransform, QFont, QImage, QPixmap


class DrawingSurface(ABC):
    """Abstract drawing target."""

    def __init__(self, width, height):
        self.width = width
        self.height = height

    @abstractmethod
    def clear(self, color):
        """Fill the whole surface (ignores the transform)."""

    @abstractmethod
    def set_transform(self, translate_x, translate_y, scale):
        """Subsequent drawing maps (x, y) to (x * scale + tx, y * scale + ty)."""

    @abstractmethod
    def reset_transform(self):
        pass

    @abstractmethod
    def draw_image(self, image, x, y):
        """Draw ``image`` (backend-native type) with its top-left at (x, y)."""

    @abstractmethod
    def fill_rect(self, x, y, width, height, color):
        pass

    @abstractmethod
    def draw_polyline(self, points, color, line_width, closed=False):
        pass

    @abstractmethod
    def draw_circle(self, center, radius, color):
        pass

    @abstractmethod
    def draw_text(self, x, y, text, color, size=22):
        pass


class QPainterSurface(DrawingSurface):
    """Surface backed by an active QPainter."""

    def __init__(self, painter, width, height):
        super().__init__(width, height)
        self.painter = painter

    def clear(self, color):
        self.painter.save()
        self.painter.resetTransform()
        self.painter.fillRect(QRectF(0, 0, self.width, self.height), QColor(*color))
        self.painter.restore()

    def set_transform(self, translate_x, translate_y, scale):
        transform = QTransform()
        transform.translate(translate_x, translate_y)
        transform.scale(scale, scale)
        self.painter.setTransform(transform)

    def reset_transform(self):
        self.painter.resetTransform()

    def draw_image(self, image, x, y):
        if isinstance(image, QPixmap):
            self.painter.drawPixmap(QPointF(x, y), image)
        elif isinstance(image, QImage):
            self.painter.drawImage(QPointF(x, y), image)
        else:
            raise TypeError(f"QPainterSurface cannot draw {type(image).__name__}")

    def fill_rect(self, x, y, width, height, color):
        self.painter.fillRect(QRectF(x, y, width, height), QColor(*color))

    def draw_polyline(self, points, color, line_width, closed=False):
        polygon = QPolygonF([QPointF(p.x, p.y) for p in points])
        self.painter.setPen(QPen(QColor(*color), line_width))
        self.painter.setBrush(Qt.NoBrush)
        if closed:
            self.painter.drawPolygon(polygon)
        else:
            self.painter.drawPolyline(polygon)

    def draw_circle(self, center, radius, color):
        self.painter.setPen(Qt.NoPen)
        self.painter.setBrush(QBrush(QColor(*color)))
        self.painter.drawEllipse(QPointF(center.x, center.y), radius, radius)

    def draw_text(self, x, y, text, color, size=22):
        font = QFont('sans-serif')
        font.setPixelSize(size)
        self.painter.setFont(font)
        self.painter.setPen(QPen(QColor(*color)))
        self.painter.drawText(QPointF(x, y), text)


class PillowSurface(DrawingSurface):
    """Surface that renders into an RGB PIL image.

    PIL has no transform stack, so points are mapped with numpy before drawing.
    """

    def __init__(self, width, height):
        super().__init__(int(width), int(height))
        self.image = Image.new('RGB', (self.width, self.height))
        self.draw = ImageDraw.Draw(self.image)
        self._translate = np.zeros(2)
        self._scale = 1.0

    def _map(self, points):
        arr = np.array([tuple(p) for p in points], dtype=np.float64).reshape(-1, 2)
        return arr * self._scale + self._translate

    def clear(self, color):
        self.draw.rectangle([0, 0, self.width, self.height], fill=tuple(color))

    def set_transform(self, translate_x, translate_y, scale):
        self._translate = np.array([translate_x, translate_y], dtype=np.float64)
        self._scale = float(scale)

    def reset_transform(self):
        self._translate = np.zeros(2)
        self._scale = 1.0

    def draw_image(self, image, x, y):
        (left, top), = self._map([(x, y)])
        size = (int(round(image.width * self._scale)), int(round(image.height * self._scale)))
        if size[0] <= 0 or size[1] <= 0:
            return
        resized = image.convert('RGBA').resize(size, Image.Resampling.LANCZOS)
        self.image.paste(resized, (int(round(left)), int(round(top))), resized)

    def fill_rect(self, x, y, width, height, color):
        (x0, y0), (x1, y1) = self._map([(x, y), (x + width, y + height)])
        self.draw.rectangle([min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)], fill=tuple(color))

    def draw_polyline(self, points, color, line_width, closed=False):
        mapped = [tuple(p) for p in self._map(points)]
        if not mapped:
            return
        if closed:
            mapped.append(mapped[0])
        width = max(1, int(round(line_width * self._scale)))
        self.draw.line(mapped, fill=tuple(color), width=width)

    def draw_circle(self, center, radius, color):
        (cx, cy), = self._map([center])
        r = radius * self._scale
        self.draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=tuple(color))

    def draw_text(self, x, y, text, color, size=22):
        (tx, ty), = self._map([(x, y)])
        # QPainter draws text from the baseline; PIL from the top-left
        self.draw.text((tx, ty - size * self._scale), text, fill=tuple(color))
