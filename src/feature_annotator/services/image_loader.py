"""Image loading for the annotator.

Pillow decodes the image; the Qt ImageLoader defers the load to the event
loop and reports the natural pixel size through a ready signal, which the
canvas forwards to the viewport (fit-to-view).
"""

import logging
from pathlib import Path

from PIL import Image
from PyQt5.QtCore import QObject, QTimer, pyqtSignal
from PyQt5.QtGui import QImage

logger = logging.getLogger(__name__)


def resolve_src(src, base_dir=None):
    """Resolve a task's image src relative to the task file's directory."""
    path = Path(src)
    if base_dir is not None and not path.is_absolute():
        path = Path(base_dir) / path
    return path


def open_image(src):
    """Open and fully decode an image as RGBA.

    Raises:
        OSError: if the file is missing or not a decodable image
    """
    with Image.open(src) as img:
        img.load()
        return img.convert('RGBA')


def pil_to_qimage(img):
    """Convert a PIL image to a QImage that owns its pixel buffer."""
    rgba = img.convert('RGBA')
    data = rgba.tobytes('raw', 'RGBA')
    qimage = QImage(data, rgba.width, rgba.height, rgba.width * 4, QImage.Format_RGBA8888)
    # Detach from the Python bytes object
    return qimage.copy()


class ImageLoader(QObject):
    """Loads images off the current call stack and reports the result by signal."""

    imageReady = pyqtSignal(object, int, int)  # QImage, natural width, natural height
    imageFailed = pyqtSignal(str)  # error message

    def __init__(self, parent=None):
        super().__init__(parent)
        self._pending = None

    def load(self, src):
        """Schedule a load of ``src``; the last request wins."""
        self._pending = src
        QTimer.singleShot(0, self._load_pending)

    def load_now(self, src):
        """Load ``src`` synchronously and emit the result."""
        try:
            img = open_image(src)
        except OSError as e:
            logger.warning(f"Could not load image {src}: {e}")
            self.imageFailed.emit(str(e))
            return
        logger.debug(f"Loaded image {src} ({img.width}x{img.height})")
        self.imageReady.emit(pil_to_qimage(img), img.width, img.height)

    def _load_pending(self):
        src, self._pending = self._pending, None
        if src is not None:
            self.load_now(src)
