"""Feature Annotator - draw and edit box and polygon annotations on an image.

The Qt-free core lives in ``models`` and ``services``; ``components`` and
``main`` provide the PyQt5 desktop front end and ``headless`` a PNG renderer.
"""

__version__ = "1.0.0"
