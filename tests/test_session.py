"""
Tests for AnnotationSession: drawing state machine, navigation, pruning,
control enablement and import/export.

Pointer coordinates are surface pixels; the default 640x480 view maps
local (lx, ly) to image ((lx - 320) / 0.9, (ly - 240) / 0.9).
"""
import pytest

from feature_annotator.models.point import Point
from feature_annotator.models.session import AnnotationSession, DrawMode
from feature_annotator.models.shape import Shape, ShapeKind
from feature_annotator.models.task_config import AnnotatorConfig


def drag(session, start, end):
    session.pointer_down(*start)
    session.pointer_move(*end)
    session.pointer_up()


def valid_box(x0=0, y0=0, x1=10, y1=10):
    return Shape(ShapeKind.BOX, [Point(x0, y0), Point(x1, y1)], valid=True)


def assert_point(actual, expected):
    assert actual.x == pytest.approx(expected.x)
    assert actual.y == pytest.approx(expected.y)


# ══════════════════════════════════════════════════════════════════════════
# End-to-end scenarios
# ══════════════════════════════════════════════════════════════════════════

class TestEndToEnd:

    def test_fresh_session_exports_no_shapes(self, head_session):
        assert head_session.export_all() == {"head": {"shapes": []}}
        # The seeded placeholder exists but is not valid
        assert len(head_session.current_feature.shapes) == 1
        assert not head_session.current_shape.valid

    def test_drag_produces_box_in_image_space(self, head_session):
        vp = head_session.viewport
        drag(head_session, (10, 10), (50, 50))

        p0 = vp.local_to_image(10, 10)
        p1 = vp.local_to_image(50, 50)
        shapes = head_session.export_all()["head"]["shapes"]
        assert len(shapes) == 1
        box = shapes[0]
        assert box["type"] == "rect"
        assert (box["pos"]["x"], box["pos"]["y"]) == pytest.approx((min(p0.x, p1.x), min(p0.y, p1.y)))
        assert box["size"]["width"] == pytest.approx(abs(p1.x - p0.x))
        assert box["size"]["height"] == pytest.approx(abs(p1.y - p0.y))
        assert not head_session.is_dragging

    def test_imported_annotations_export_unchanged(self, head_task):
        payload = {"type": "rect", "pos": {"x": 1, "y": 2}, "size": {"width": 3, "height": 4}}
        head_task["annotations"] = {"head": {"shapes": [payload]}}
        session = AnnotationSession.from_config(AnnotatorConfig.from_dict(head_task))
        assert session.export_all() == {"head": {"shapes": [
            {"type": "rect", "pos": {"x": 1.0, "y": 2.0}, "size": {"width": 3.0, "height": 4.0}}
        ]}}

    def test_polygon_import_export(self, multi_session):
        exported = multi_session.export_all()
        assert exported["eye"]["shapes"][1] == {"type": "poly", "points": [
            {"x": 10.0, "y": -20.0}, {"x": 40.0, "y": -20.0}, {"x": 25.0, "y": -5.0}]}
        assert exported["mouth"] == {"shapes": []}


# ══════════════════════════════════════════════════════════════════════════
# Box drawing
# ══════════════════════════════════════════════════════════════════════════

class TestBoxDrawing:

    def test_default_mode_is_annotate(self, head_session):
        assert head_session.mode is DrawMode.ANNOTATE

    def test_box_redefined_from_anchor_on_every_move(self, head_session):
        vp = head_session.viewport
        head_session.pointer_down(320, 240)
        head_session.pointer_move(400, 300)
        head_session.pointer_move(350, 280)
        shape = head_session.current_shape
        assert_point(shape.points[0], vp.local_to_image(320, 240))
        assert_point(shape.points[1], vp.local_to_image(350, 280))
        assert head_session.is_dragging

    def test_reverse_drag_normalizes_export(self, any_session):
        drag(any_session, (410, 330), (320, 240))
        box = any_session.export_all()["a"]["shapes"][0]
        assert (box["pos"]["x"], box["pos"]["y"]) == pytest.approx((0.0, 0.0))
        assert box["size"]["width"] == pytest.approx(100.0)
        assert box["size"]["height"] == pytest.approx(100.0)

    def test_release_without_movement_cancels(self, head_session):
        head_session.pointer_down(100, 100)
        head_session.pointer_up()
        assert not head_session.is_dragging
        assert not head_session.current_shape.valid
        assert head_session.current_shape.points == []
        assert head_session.export_all() == {"head": {"shapes": []}}

    def test_movement_in_one_axis_only_cancels(self, head_session):
        drag(head_session, (100, 100), (200, 100))
        assert not head_session.is_dragging
        assert head_session.export_all() == {"head": {"shapes": []}}

    def test_drag_outside_image_clamps_to_edge(self, head_session):
        drag(head_session, (320, 240), (5000, 5000))
        box = head_session.export_all()["head"]["shapes"][0]
        assert box["size"]["width"] == pytest.approx(320.0)
        assert box["size"]["height"] == pytest.approx(240.0)

    def test_pointer_down_while_dragging_ignored(self, head_session):
        head_session.pointer_down(100, 100)
        head_session.pointer_down(300, 300)
        head_session.pointer_move(200, 200)
        anchor = head_session.viewport.local_to_image(100, 100)
        assert_point(head_session.current_shape.points[0], anchor)

    def test_move_and_up_while_idle_are_noops(self, head_session):
        head_session.pointer_move(100, 100)
        head_session.pointer_up()
        assert not head_session.is_dragging
        assert head_session.current_shape.points == []


# ══════════════════════════════════════════════════════════════════════════
# Polygon drawing
# ══════════════════════════════════════════════════════════════════════════

class TestPolygonDrawing:

    @pytest.fixture
    def poly_session(self, any_session):
        assert any_session.set_selected_kind(ShapeKind.POLYGON)
        return any_session

    def test_pointer_down_seeds_polygon(self, poly_session):
        poly_session.pointer_down(320, 240)
        shape = poly_session.current_shape
        assert shape.kind is ShapeKind.POLYGON
        assert shape.valid
        assert shape.points == [Point(0.0, 0.0), Point(0.0, 0.0)]
        assert poly_session.drag.vertex_count == 1

    def test_each_moved_drag_places_a_vertex(self, poly_session):
        poly_session.pointer_down(320, 240)
        poly_session.pointer_move(410, 330)
        poly_session.pointer_up()
        assert poly_session.is_dragging
        assert poly_session.drag.vertex_count == 2

        poly_session.pointer_move(500, 240)
        poly_session.pointer_up()
        assert poly_session.drag.vertex_count == 3
        assert len(poly_session.current_shape.points) == 3

    def test_preview_slot_overwritten_each_move(self, poly_session):
        poly_session.pointer_down(320, 240)
        poly_session.pointer_move(410, 240)
        poly_session.pointer_move(500, 300)
        shape = poly_session.current_shape
        assert len(shape.points) == 2
        assert_point(shape.points[1], poly_session.viewport.local_to_image(500, 300))

    def test_still_release_commits_after_two_vertices(self, poly_session):
        poly_session.pointer_down(320, 240)
        poly_session.pointer_move(410, 330)
        poly_session.pointer_up()
        poly_session.pointer_move(500, 240)
        poly_session.pointer_up()
        poly_session.pointer_up()

        assert not poly_session.is_dragging
        shape = poly_session.current_shape
        assert shape.valid
        assert len(shape.points) == 3
        for actual, expected in zip(shape.points, [Point(0, 0), Point(100, 100), Point(200, 0)]):
            assert_point(actual, expected)

    def test_single_axis_release_commits_after_two_vertices(self, poly_session):
        poly_session.pointer_down(100, 100)
        poly_session.pointer_move(200, 200)
        poly_session.pointer_up()
        poly_session.pointer_move(300, 200)
        poly_session.pointer_up()

        assert not poly_session.is_dragging
        shape = poly_session.current_shape
        assert shape.valid
        assert len(shape.points) == 2
        assert_point(shape.points[1], poly_session.viewport.local_to_image(200, 200))

    def test_single_axis_release_with_one_vertex_keeps_dragging(self, poly_session):
        poly_session.pointer_down(100, 100)
        poly_session.pointer_move(200, 100)
        poly_session.pointer_up()
        assert poly_session.is_dragging
        assert poly_session.drag.vertex_count == 1

    def test_three_drags_and_still_release_store_four_vertices(self, poly_session):
        # The seed vertex plus one vertex per drag
        poly_session.pointer_down(100, 100)
        for x, y in [(200, 200), (300, 100), (200, 50)]:
            poly_session.pointer_move(x, y)
            poly_session.pointer_up()
        poly_session.pointer_up()

        assert not poly_session.is_dragging
        assert len(poly_session.current_shape.points) == 4
        exported = poly_session.export_all()["a"]["shapes"][0]
        assert exported["type"] == "poly"
        assert len(exported["points"]) == 4

    def test_still_release_with_one_vertex_keeps_dragging(self, poly_session):
        poly_session.pointer_down(100, 100)
        poly_session.pointer_up()
        assert poly_session.is_dragging
        assert poly_session.drag.vertex_count == 1

    def test_locked_polygon_feature(self, multi_session):
        multi_session.select_feature(2)
        assert multi_session.selected_kind is ShapeKind.POLYGON
        assert multi_session.current_shape.kind is ShapeKind.POLYGON
        assert multi_session.set_selected_kind(ShapeKind.BOX) is False
        assert multi_session.selected_kind is ShapeKind.POLYGON


# ══════════════════════════════════════════════════════════════════════════
# Pan mode and cancel
# ══════════════════════════════════════════════════════════════════════════

class TestPanAndCancel:

    def test_pan_is_incremental(self, head_session):
        head_session.set_mode(DrawMode.PAN)
        head_session.pointer_down(100, 100)
        head_session.pointer_move(110, 120)
        head_session.pointer_move(115, 120)
        assert (head_session.viewport.offset_x, head_session.viewport.offset_y) == (15, 20)
        head_session.pointer_up()
        assert not head_session.is_dragging
        assert head_session.export_all() == {"head": {"shapes": []}}

    def test_pan_clamped(self, head_session):
        head_session.set_mode(DrawMode.PAN)
        drag(head_session, (0, 0), (5000, 0))
        assert head_session.viewport.offset_x == pytest.approx(320 * 0.9)

    def test_cancel_discards_in_progress_shape(self, head_session):
        head_session.pointer_down(100, 100)
        head_session.pointer_move(200, 200)
        head_session.cancel()
        assert not head_session.is_dragging
        assert not head_session.current_shape.valid
        assert head_session.current_shape.points == []

    def test_cancel_while_idle_is_noop(self, head_session):
        drag(head_session, (100, 100), (200, 200))
        head_session.cancel()
        assert head_session.current_shape.valid

    def test_mode_switch_cancels_drag(self, head_session):
        head_session.pointer_down(100, 100)
        head_session.set_mode(DrawMode.PAN)
        assert not head_session.is_dragging
        assert head_session.mode is DrawMode.PAN

    def test_selecting_kind_switches_to_annotate(self, any_session):
        any_session.set_mode(DrawMode.PAN)
        assert any_session.set_selected_kind(ShapeKind.POLYGON)
        assert any_session.mode is DrawMode.ANNOTATE

    def test_zoom_helpers(self, head_session):
        head_session.zoom_in()
        assert head_session.viewport.scale == pytest.approx(0.9 * 1.25)
        head_session.zoom_out()
        head_session.zoom_out()
        assert head_session.viewport.scale == pytest.approx(0.9)


# ══════════════════════════════════════════════════════════════════════════
# Navigation and pruning
# ══════════════════════════════════════════════════════════════════════════

class TestNavigation:

    def test_prune_then_select_corrects_index(self, any_session):
        feature = any_session.current_feature
        first, second = valid_box(0, 0, 1, 1), valid_box(2, 2, 3, 3)
        feature.shapes = [first, Shape(ShapeKind.BOX), second]

        any_session.select_shape(2)

        assert len(feature.shapes) == 2
        assert any_session.current_shape is second
        assert any_session.shape_index == 1

    def test_select_past_end_starts_new_shape(self, any_session):
        feature = any_session.current_feature
        feature.shapes = [valid_box()]
        any_session.select_shape(1)
        assert len(feature.shapes) == 2
        assert not any_session.current_shape.valid
        assert any_session.shape_index == 1

    def test_select_negative_keeps_selection(self, any_session):
        feature = any_session.current_feature
        feature.shapes = [valid_box(), valid_box(5, 5, 6, 6)]
        any_session.select_shape(1)
        any_session.select_shape(-1)
        assert any_session.shape_index == 1

    def test_next_shape_after_commit_starts_new_shape(self, any_session):
        drag(any_session, (100, 100), (200, 200))
        any_session.next_shape()
        assert any_session.shape_index == 1
        assert not any_session.current_shape.valid
        any_session.previous_shape()
        # The empty placeholder was pruned on the way back
        assert any_session.shape_index == 0
        assert len(any_session.current_feature.shapes) == 1

    def test_next_shape_disabled_on_empty_placeholder(self, any_session):
        any_session.next_shape()
        assert any_session.shape_index == 0
        assert len(any_session.current_feature.shapes) == 1

    def test_feature_switch_prunes_placeholders(self, any_session):
        first = any_session.current_feature
        any_session.next_feature()
        assert any_session.feature_index == 1
        assert first.shapes == []
        any_session.previous_feature()
        assert any_session.feature_index == 0

    def test_feature_switch_keeps_valid_shapes(self, any_session):
        drag(any_session, (100, 100), (200, 200))
        any_session.next_feature()
        any_session.previous_feature()
        assert any_session.current_shape.valid
        assert len(any_session.export_all()["a"]["shapes"]) == 1

    def test_next_feature_at_end_is_noop(self, any_session):
        any_session.select_feature(1)
        any_session.next_feature()
        assert any_session.feature_index == 1

    @pytest.mark.parametrize("index", [2, 10])
    def test_select_feature_past_end_is_noop(self, any_session, index):
        any_session.select_feature(1)
        any_session.select_feature(index)
        assert any_session.feature_index == 1

    def test_select_feature_negative_clamps_to_first(self, any_session):
        any_session.select_feature(1)
        any_session.select_feature(-3)
        assert any_session.feature_index == 0
        assert any_session.current_feature.name == "a"

    def test_empty_session_is_safe(self):
        session = AnnotationSession()
        session.select_feature(0)
        session.select_shape(0)
        session.next_shape()
        session.pointer_down(10, 10)
        session.pointer_up()
        assert session.current_shape is None
        assert session.export_all() == {}
        assert session.title_text() == ''


# ══════════════════════════════════════════════════════════════════════════
# Delete and control state
# ══════════════════════════════════════════════════════════════════════════

class TestControlState:

    def test_title(self, multi_session):
        assert multi_session.title_text() == "Annotating: head (1/3)"
        multi_session.next_feature()
        assert multi_session.control_state().title == "Annotating: eye (2/3)"

    def test_feature_navigation_flags(self, multi_session):
        state = multi_session.control_state()
        assert not state.prev_feature_enabled
        assert state.next_feature_enabled
        multi_session.select_feature(2)
        state = multi_session.control_state()
        assert state.prev_feature_enabled
        assert not state.next_feature_enabled

    def test_shape_navigation_flags(self, multi_session):
        multi_session.select_feature(1)
        state = multi_session.control_state()
        assert not state.prev_shape_enabled
        assert state.next_shape_enabled
        multi_session.next_shape()
        state = multi_session.control_state()
        assert state.prev_shape_enabled
        assert state.next_shape_enabled

    def test_next_shape_enabled_when_following_shape_valid(self, any_session):
        feature = any_session.current_feature
        placeholder, after = Shape(ShapeKind.BOX), valid_box()
        feature.shapes = [placeholder, after]
        any_session._current_uuid = placeholder.uuid
        assert any_session.control_state().next_shape_enabled

    def test_delete_disabled_for_required_feature(self, head_session):
        drag(head_session, (100, 100), (200, 200))
        assert not head_session.control_state().delete_enabled
        assert head_session.delete_current() is False
        assert head_session.current_shape.valid

    def test_delete_disabled_for_invalid_shape(self, any_session):
        assert not any_session.control_state().delete_enabled

    def test_delete_resets_but_keeps_slot(self, any_session):
        drag(any_session, (100, 100), (200, 200))
        shape = any_session.current_shape
        assert any_session.control_state().delete_enabled
        assert any_session.delete_current() is True
        assert any_session.current_shape is shape
        assert not shape.valid
        assert len(any_session.current_feature.shapes) == 1
        assert any_session.export_all()["a"] == {"shapes": []}

    def test_kind_selector_locked_for_constrained_feature(self, multi_session):
        assert not multi_session.control_state().kind_selector_enabled
        multi_session.next_feature()
        assert multi_session.control_state().kind_selector_enabled

    def test_listeners_receive_state_on_commit(self, any_session):
        states = []
        any_session.add_control_listener(states.append)
        drag(any_session, (100, 100), (200, 200))
        assert states
        assert states[-1].delete_enabled
        any_session.remove_control_listener(states.append)
        count = len(states)
        any_session.next_shape()
        assert len(states) == count


# ══════════════════════════════════════════════════════════════════════════
# Import / re-apply
# ══════════════════════════════════════════════════════════════════════════

class TestImport:

    def test_import_features_replaces_list_and_selects_first(self, multi_session):
        multi_session.select_feature(2)
        multi_session.import_features([{"name": "x"}, {"name": "y", "shape": "poly"}])
        assert [f.name for f in multi_session.features] == ["x", "y"]
        assert multi_session.feature_index == 0

    def test_import_features_drops_shapes_of_renamed_features(self, multi_session):
        multi_session.import_features([{"name": "eye"}, {"name": "nose"}])
        exported = multi_session.export_all()
        assert len(exported["eye"]["shapes"]) == 2
        assert exported["nose"] == {"shapes": []}

    def test_import_annotations_none_is_noop(self, multi_session):
        before = multi_session.export_all()
        multi_session.import_annotations(None)
        assert multi_session.export_all() == before

    def test_import_annotations_clears_absent_features(self, multi_session):
        multi_session.import_annotations({"mouth": {"shapes": [
            {"type": "poly", "points": [{"x": 0, "y": 0}, {"x": 5, "y": 5}]}]}})
        exported = multi_session.export_all()
        assert exported["eye"] == {"shapes": []}
        assert len(exported["mouth"]["shapes"]) == 1

    def test_import_skips_malformed_and_constraint_violations(self, multi_session):
        multi_session.import_annotations({
            "head": {"shapes": [
                {"type": "poly", "points": [{"x": 0, "y": 0}, {"x": 1, "y": 1}]},
                {"type": "circle"},
                {"type": "rect", "pos": {"x": 0, "y": 0}},
                {"type": "rect", "pos": {"x": 0, "y": 0}, "size": {"width": 2, "height": 2}},
            ]},
        })
        shapes = multi_session.export_all()["head"]["shapes"]
        assert len(shapes) == 1
        assert shapes[0]["type"] == "rect"

    def test_apply_config_resets_everything(self, multi_session, head_task):
        multi_session.zoom_in()
        multi_session.apply_config(AnnotatorConfig.from_dict(dict(head_task, width=320, height=200)))
        assert [f.name for f in multi_session.features] == ["head"]
        assert multi_session.export_all() == {"head": {"shapes": []}}
        vp = multi_session.viewport
        assert (vp.view_width, vp.view_height) == (320, 200)
        assert vp.scale == vp.default_scale
        assert multi_session.src == "face.png"
