"""
Feature Annotator - Constants and Configuration

This module contains all constant values used throughout the application:
- Default view size and fit margin
- Zoom step factors
- Rendering constants (colors, stroke width, marker radius)
- Control labels and config locations
"""

# ======================================================================
# VIEW DEFAULTS
# ======================================================================

DEFAULT_VIEW_WIDTH = 640
DEFAULT_VIEW_HEIGHT = 480

# Fraction of the view the image occupies at fit zoom (leaves a margin)
FIT_MARGIN = 0.9

# ======================================================================
# ZOOM
# ======================================================================

ZOOM_IN_FACTOR = 1.25
ZOOM_OUT_FACTOR = 0.8

# ======================================================================
# SHAPE CONSTRAINTS
# ======================================================================

# Wire names used in task payloads and exports
SHAPE_RECT = 'rect'
SHAPE_POLY = 'poly'
SHAPE_ANY = 'any'

SHAPE_CONSTRAINTS = (SHAPE_RECT, SHAPE_POLY, SHAPE_ANY)

# Label shown in the shape-kind selector for each wire name
SHAPE_KIND_LABELS = {
    SHAPE_RECT: 'Box',
    SHAPE_POLY: 'Polygon',
}

# ======================================================================
# RENDERING
# ======================================================================

BACKGROUND_COLOR = (240, 240, 240)
PLACEHOLDER_COLOR = (220, 220, 220)
PLACEHOLDER_TEXT_COLOR = (255, 255, 255)
PLACEHOLDER_TEXT = 'No Image'

# Screen-space sizes (divided by current scale before drawing in image space)
STROKE_WIDTH_PX = 1.5
MARKER_RADIUS_PX = 3.0

# Per-feature (normal, highlight) color pairs, cycled by feature index
FEATURE_PALETTE = [
    ((255, 20, 20), (255, 80, 80)),
    ((0, 200, 0), (80, 240, 80)),
    ((0, 0, 255), (80, 80, 255)),
    ((255, 255, 0), (255, 255, 90)),
    ((50, 200, 200), (90, 255, 255)),
]

# ======================================================================
# CONTROLS / CONFIG
# ======================================================================

TITLE_FORMAT = 'Annotating: {name} ({index}/{count})'

CONFIG_DIR_NAME = '.feature_annotator'
CONFIG_FILE_NAME = 'config.json'
MAX_RECENT_FILES = 10
