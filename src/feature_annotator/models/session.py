"""
Feature Annotator - Annotation Session

THE CONTROLLER MODEL. Owns the feature list, the current feature/shape
selection, and the pointer-driven drawing state machine.

The session is INDEPENDENT of UI:
- No Qt imports
- Redraws are requested through the Viewport's listeners
- Control enablement is pushed to listeners as ControlState snapshots

The current shape is tracked by uuid and resolved by lookup in the current
feature's shape list, so pruning invalid shapes never leaves a dangling
reference.

Drawing state machine (Idle / Dragging, cross-cut by mode and shape kind):
- pointer_down: enter Dragging; in annotate mode restart the current shape
- pointer_move: pan incrementally, or preview the box / polygon vertex
- pointer_up: pan ends; box commits after a real drag (else cancels);
  polygon places a vertex per drag that moves on both axes, and commits
  on any other release once two or more vertices are placed
- cancel: drop the in-progress shape and return to Idle

Usage:
    session = AnnotationSession.from_config(AnnotatorConfig.from_dict(payload))
    session.set_mode(DrawMode.ANNOTATE)
    session.pointer_down(10, 10)
    session.pointer_move(50, 50)
    session.pointer_up()
    data = session.export_all()
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from feature_annotator.constants import (
    TITLE_FORMAT, ZOOM_IN_FACTOR, ZOOM_OUT_FACTOR
)
from feature_annotator.models.feature import Feature
from feature_annotator.models.point import Point
from feature_annotator.models.shape import Shape, ShapeKind
from feature_annotator.models.task_config import FeatureDefinition, StyleConfig
from feature_annotator.models.viewport import Viewport
from feature_annotator.services.annotation_io import decode_feature_shapes


class DrawMode(Enum):
    PAN = 'pan'
    ANNOTATE = 'annotate'


@dataclass
class DragState:
    """Transient pointer-drag state (surface-local pixels)."""
    active: bool = False
    anchor: Point = field(default_factory=lambda: Point(0.0, 0.0))
    current: Point = field(default_factory=lambda: Point(0.0, 0.0))
    vertex_count: int = 0

    def moved_both_axes(self):
        return self.anchor.x != self.current.x and self.anchor.y != self.current.y


@dataclass
class ControlState:
    """Snapshot of control enablement pushed to the host UI."""
    prev_feature_enabled: bool = False
    next_feature_enabled: bool = False
    prev_shape_enabled: bool = False
    next_shape_enabled: bool = False
    delete_enabled: bool = False
    kind_selector_enabled: bool = False
    selected_kind: ShapeKind = ShapeKind.BOX
    mode: DrawMode = DrawMode.PAN
    title: str = ''


class AnnotationSession:
    """Top-level annotation controller for one image."""

    def __init__(self, viewport=None):
        self._logger = logging.getLogger('AnnotationSession')

        self.viewport = viewport if viewport is not None else Viewport()
        self.src = None
        self.style = StyleConfig()

        self.features = []
        self.feature_index = 0
        self._current_uuid = None

        self.mode = DrawMode.ANNOTATE
        self.selected_kind = ShapeKind.BOX
        self.drag = DragState()

        self._control_listeners = []

    @classmethod
    def from_config(cls, config):
        """Build a session (and its viewport) from an AnnotatorConfig."""
        session = cls(Viewport(config.width, config.height))
        session.apply_config(config)
        return session

    def apply_config(self, config):
        """Re-apply a task: new view size, pan/zoom reset, features and annotations replaced."""
        self._end_drag()
        self.src = config.src
        self.style = config.style
        self.viewport.reset(config.width, config.height)
        self.features = []
        self.feature_index = 0
        self._current_uuid = None
        self.import_features(config.features)
        self.import_annotations(config.annotations)
        self._logger.debug(f"Applied task {config.src!r} ({len(self.features)} feature(s))")

    # ========================================
    # Listeners
    # ========================================

    def add_control_listener(self, callback):
        """Register ``callback(ControlState)``; it is called on every control refresh."""
        self._control_listeners.append(callback)

    def remove_control_listener(self, callback):
        if callback in self._control_listeners:
            self._control_listeners.remove(callback)

    def refresh_controls(self):
        state = self.control_state()
        for callback in list(self._control_listeners):
            callback(state)
        return state

    def request_redraw(self):
        self.viewport.request_redraw()

    # ========================================
    # Query API
    # ========================================

    @property
    def current_feature(self):
        if not self.features:
            return None
        return self.features[self.feature_index]

    @property
    def current_shape(self):
        feature = self.current_feature
        if feature is None or self._current_uuid is None:
            return None
        index = feature.index_of(self._current_uuid)
        return feature.shapes[index] if index >= 0 else None

    @property
    def shape_index(self):
        """Index of the current shape in the current feature, or -1."""
        feature = self.current_feature
        if feature is None or self._current_uuid is None:
            return -1
        return feature.index_of(self._current_uuid)

    @property
    def is_dragging(self):
        return self.drag.active

    def title_text(self):
        feature = self.current_feature
        if feature is None:
            return ''
        return TITLE_FORMAT.format(name=feature.name, index=self.feature_index + 1,
                                   count=len(self.features))

    def control_state(self):
        """Compute enablement for navigation, delete and the shape-kind selector."""
        feature = self.current_feature
        if feature is None:
            return ControlState(selected_kind=self.selected_kind, mode=self.mode)

        shape = self.current_shape
        index = self.shape_index
        current_valid = shape is not None and shape.valid
        next_valid = 0 <= index and index + 1 < len(feature.shapes) and feature.shapes[index + 1].valid

        return ControlState(
            prev_feature_enabled=self.feature_index != 0,
            next_feature_enabled=self.feature_index != len(self.features) - 1,
            prev_shape_enabled=index > 0,
            next_shape_enabled=current_valid or next_valid,
            delete_enabled=current_valid and not feature.required,
            kind_selector_enabled=feature.locked_kind is None,
            selected_kind=self.selected_kind,
            mode=self.mode,
            title=self.title_text(),
        )

    # ========================================
    # Import / export
    # ========================================

    def import_features(self, definitions):
        """Replace the feature list from ``{name, required, shape}`` definitions.

        Valid shapes of a feature whose name survives (and still satisfies
        the new constraint) are carried over; everything else is dropped.
        """
        self._end_drag()
        previous = {f.name: f for f in self.features}
        features = []
        for i, definition in enumerate(definitions):
            if isinstance(definition, dict):
                definition = FeatureDefinition.from_dict(definition, i)
            feature = Feature(definition.name, definition.required, definition.shape)
            old = previous.get(definition.name)
            if old is not None:
                feature.shapes = [s for s in old.valid_shapes() if feature.accepts(s.kind)]
            features.append(feature)

        self.features = features
        self.feature_index = 0
        self._current_uuid = None
        self._logger.debug(f"Imported {len(features)} feature(s)")
        self.select_feature(0)

    def import_annotations(self, by_name):
        """Replace every feature's shapes from export-schema data keyed by feature name.

        Features missing from ``by_name`` end up empty. ``None`` is a no-op.
        """
        if by_name is None:
            return
        if not isinstance(by_name, dict):
            self._logger.warning(f"Ignoring annotation data of type {type(by_name).__name__}")
            return

        self._end_drag()
        for feature in self.features:
            if feature.name in by_name:
                feature.shapes = decode_feature_shapes(by_name[feature.name], feature)
            else:
                feature.shapes = []
        self._current_uuid = None
        self.select_feature(self.feature_index)

    def export_all(self):
        """Export payload of every valid shape, keyed by feature name."""
        out = {}
        for feature in self.features:
            out[feature.name] = {
                'shapes': [s.export_data() for s in feature.shapes if s.valid and s.is_complete()]
            }
        return out

    # ========================================
    # Navigation
    # ========================================

    def select_feature(self, index):
        """Make ``features[index]`` current and select its first shape.

        Negative indices clamp to the first feature; indices past the end
        leave the selection untouched.
        """
        if not self.features:
            self._logger.debug("select_feature ignored: no features")
            return
        index = max(index, 0)
        if index >= len(self.features):
            self._logger.debug(f"select_feature({index}) out of range; keeping {self.feature_index}")
            return

        self._end_drag()
        outgoing = self.current_feature
        if outgoing is not None and index != self.feature_index:
            outgoing.prune_invalid()

        self.feature_index = index
        feature = self.features[index]

        locked = feature.locked_kind
        if locked is not None:
            self.selected_kind = locked

        self._logger.debug(f"Selected feature {index}: {feature.name!r}")
        self.select_shape(0)
        self.request_redraw()

    def select_shape(self, index):
        """Prune invalid shapes, then select (or start) the shape at ``index``.

        ``index == len(shapes)`` appends a new placeholder shape of the
        selected kind. Indices are corrected for pruned entries at or before
        them. A negative (or past-the-end) corrected index keeps the
        current selection, unless the current shape was itself pruned, in
        which case the first slot is selected instead.
        """
        feature = self.current_feature
        if feature is None:
            return

        for removed in feature.prune_invalid():
            if removed <= index:
                index -= 1

        if index < 0 or index > len(feature.shapes):
            if feature.index_of(self._current_uuid) >= 0:
                self.refresh_controls()
                return
            index = 0

        if index == len(feature.shapes):
            kind = self.selected_kind if feature.accepts(self.selected_kind) else feature.locked_kind
            shape = feature.add_shape(Shape(kind))
            self._logger.debug(f"Started new {kind.name} shape in {feature.name!r}")
        else:
            shape = feature.shapes[index]

        self._current_uuid = shape.uuid
        self.request_redraw()
        self.refresh_controls()

    def next_feature(self):
        if self.control_state().next_feature_enabled:
            self.select_feature(self.feature_index + 1)

    def previous_feature(self):
        if self.control_state().prev_feature_enabled:
            self.select_feature(self.feature_index - 1)

    def next_shape(self):
        if self.control_state().next_shape_enabled:
            self._end_drag()
            self.select_shape(self.shape_index + 1)

    def previous_shape(self):
        if self.control_state().prev_shape_enabled:
            self._end_drag()
            self.select_shape(self.shape_index - 1)

    def delete_current(self):
        """Reset the current shape to an empty placeholder, keeping its slot.

        Returns:
            True if the shape was reset; False when delete is not allowed
            (invalid shape or required feature)
        """
        if not self.control_state().delete_enabled:
            self._logger.debug("delete_current ignored: delete not allowed")
            return False
        self._end_drag()
        self.current_shape.reset()
        self._logger.debug(f"Deleted shape {self.shape_index} of {self.current_feature.name!r}")
        self.refresh_controls()
        self.request_redraw()
        return True

    # ========================================
    # Mode / kind / zoom
    # ========================================

    def set_mode(self, mode):
        if self.drag.active:
            self.cancel()
        self.mode = DrawMode(mode)
        self.refresh_controls()

    def set_selected_kind(self, kind):
        """Choose the kind for new shapes and switch to annotate mode.

        Returns:
            False if the current feature locks a different kind
        """
        kind = ShapeKind(kind)
        feature = self.current_feature
        if feature is not None and not feature.accepts(kind):
            self._logger.debug(f"Shape kind locked to {feature.shape_constraint!r}; ignoring {kind.value!r}")
            return False
        self.selected_kind = kind
        self.set_mode(DrawMode.ANNOTATE)
        return True

    def zoom_in(self):
        self.viewport.zoom(ZOOM_IN_FACTOR)

    def zoom_out(self):
        self.viewport.zoom(ZOOM_OUT_FACTOR)

    def on_image_loaded(self, width, height):
        """Image-ready notification: register natural size and fit the view."""
        self.viewport.set_image_size(width, height)

    # ========================================
    # Pointer state machine
    # ========================================

    def pointer_down(self, x, y):
        """Start a drag at screen position (x, y). Ignored while already dragging."""
        if self.drag.active:
            return

        lx, ly = self.viewport.screen_to_local(x, y)
        if self.mode == DrawMode.ANNOTATE:
            shape = self.current_shape
            if shape is None:
                return
            self.drag = DragState(active=True, anchor=Point(lx, ly), current=Point(lx, ly))
            shape.reset(self.selected_kind)
            shape.valid = True
            shape.add_point(self.viewport.local_to_image(lx, ly))
            if shape.kind == ShapeKind.POLYGON:
                self.drag.vertex_count = 1
            self.request_redraw()
        else:
            self.drag = DragState(active=True, anchor=Point(lx, ly), current=Point(lx, ly))

    def pointer_move(self, x, y):
        """Continue a drag. No-op while Idle."""
        if not self.drag.active:
            return

        lx, ly = self.viewport.screen_to_local(x, y)
        self.drag.current = Point(lx, ly)

        if self.mode == DrawMode.PAN:
            dx = lx - self.drag.anchor.x
            dy = ly - self.drag.anchor.y
            self.viewport.pan(dx, dy)
            self.drag.anchor = Point(lx, ly)
            return

        shape = self.current_shape
        if shape is None:
            self.drag = DragState()
            return

        anchor_img = self.viewport.local_to_image(self.drag.anchor.x, self.drag.anchor.y)
        current_img = self.viewport.local_to_image(lx, ly)

        if shape.kind == ShapeKind.BOX:
            # Redefined from the original anchor on every move
            shape.modify_point(0, anchor_img)
            shape.modify_point(1, current_img)
        else:
            slot = self.drag.vertex_count
            if slot < len(shape.points):
                shape.modify_point(slot, current_img)
            else:
                shape.add_point(current_img)

        self.request_redraw()

    def pointer_up(self):
        """End (or advance) a drag according to mode and shape kind."""
        if not self.drag.active:
            return

        if self.mode == DrawMode.PAN:
            self.drag = DragState()
            self.refresh_controls()
            return

        shape = self.current_shape
        if shape is None:
            self.drag = DragState()
            self.refresh_controls()
            return

        moved = self.drag.moved_both_axes()
        if shape.kind == ShapeKind.BOX:
            if moved:
                self._commit(shape)
            else:
                self._logger.debug("Box released without a drag; cancelling")
                self.cancel()
            return

        if moved:
            # Place the previewed vertex and keep drawing
            self.drag.anchor = Point(self.drag.current.x, self.drag.current.y)
            self.drag.vertex_count += 1
        elif self.drag.vertex_count >= 2:
            self._commit(shape)

    def cancel(self):
        """Abort an active drag; an in-progress shape is reset to an empty placeholder."""
        if not self.drag.active:
            return
        if self.mode == DrawMode.ANNOTATE:
            shape = self.current_shape
            if shape is not None:
                shape.reset()
                self._logger.debug("Cancelled in-progress shape")
        self.drag = DragState()
        self.refresh_controls()
        self.request_redraw()

    def _commit(self, shape):
        if shape.kind == ShapeKind.POLYGON:
            # Drop any preview slot beyond the placed vertices
            del shape.points[self.drag.vertex_count:]
        shape.valid = True
        self.drag = DragState()
        self._logger.debug(f"Committed {shape!r} in {self.current_feature.name!r}")
        self.refresh_controls()
        self.request_redraw()

    def _end_drag(self):
        """Leave Dragging before a selection change, discarding unfinished work."""
        if self.drag.active:
            self.cancel()
