import random

import pytest

from ratio_crop_tool.errors import NotReadyError
from ratio_crop_tool.interaction import (
    IDLE, CropInteractionController, DragMode, Dragging, move_rect, resize_rect,
)
from ratio_crop_tool.models import DisplayRect, ImageDimensions, ViewportDimensions

EPS = 1e-6


def _controller(aspect="16:9", image=(800, 600), viewport=(1920, 1080)) -> CropInteractionController:
    controller = CropInteractionController()
    controller.begin(ImageDimensions(*image), ViewportDimensions(*viewport), aspect)
    return controller


def _assert_inside(rect: DisplayRect, bounds: DisplayRect):
    assert rect.x >= bounds.x - EPS
    assert rect.y >= bounds.y - EPS
    assert rect.right <= bounds.right + EPS
    assert rect.bottom <= bounds.bottom + EPS


# --- Pure transitions ---

def test_resize_clamps_to_right_edge_and_recomputes_height():
    baseline = DisplayRect(100, 100, 160, 90)
    bounds = DisplayRect(0, 0, 400, 1000)

    rect = resize_rect(baseline, 500, 16 / 9, bounds)

    assert rect.width == pytest.approx(bounds.right - baseline.x)
    assert rect.height == pytest.approx(300 * 9 / 16)
    assert (rect.x, rect.y) == (100, 100)


def test_resize_limited_by_bottom_edge_uses_height():
    baseline = DisplayRect(0, 900, 80, 45)
    bounds = DisplayRect(0, 0, 2000, 1000)

    rect = resize_rect(baseline, 400, 16 / 9, bounds)

    assert rect.height == pytest.approx(100)
    assert rect.width == pytest.approx(100 * 16 / 9)


def test_resize_floors_width_at_minimum():
    baseline = DisplayRect(100, 100, 160, 90)
    bounds = DisplayRect(0, 0, 1000, 1000)

    rect = resize_rect(baseline, -500, 16 / 9, bounds)

    assert rect.width == 20
    assert rect.height == pytest.approx(20 * 9 / 16)


def test_move_clamps_each_axis_independently():
    baseline = DisplayRect(100, 100, 200, 100)
    bounds = DisplayRect(50, 0, 500, 400)

    rect = move_rect(baseline, -500, 50, bounds)
    assert (rect.x, rect.y) == (50, 150)

    rect = move_rect(baseline, 1000, 1000, bounds)
    assert (rect.x, rect.y) == (350, 300)
    assert (rect.width, rect.height) == (200, 100)


# --- Controller ---

def test_begin_creates_initial_crop_and_idle_state():
    controller = _controller()
    assert controller.state == IDLE
    assert controller.is_ready()
    assert controller.crop.width / controller.crop.height == pytest.approx(16 / 9)
    _assert_inside(controller.crop, controller.image_bounds)


def test_confirm_before_begin_raises_not_ready():
    controller = CropInteractionController()
    with pytest.raises(NotReadyError):
        controller.confirm()
    with pytest.raises(NotReadyError):
        controller.confirm_source()


def test_pointer_events_before_begin_are_ignored():
    controller = CropInteractionController()
    assert controller.pointer_down((10, 10), DragMode.MOVE) is False
    assert controller.pointer_move((50, 50)) is False
    assert controller.state == IDLE
    assert controller.crop is None


def test_pointer_move_while_idle_is_ignored():
    controller = _controller()
    before = controller.crop
    assert controller.pointer_move((0, 0)) is False
    assert controller.crop == before


def test_state_machine_transitions():
    controller = _controller()
    start = controller.crop

    assert controller.pointer_down((500, 400), DragMode.MOVE)
    assert isinstance(controller.state, Dragging)
    assert controller.state.mode is DragMode.MOVE
    assert controller.state.baseline == start

    # A second press while dragging does not restart the drag
    assert controller.pointer_down((0, 0), DragMode.RESIZE) is False

    controller.pointer_move((510, 420))
    controller.pointer_up()
    assert controller.state == IDLE
    assert controller.crop.x == pytest.approx(start.x + 10)
    assert controller.crop.y == pytest.approx(start.y + 20)


def test_move_drag_is_relative_to_baseline():
    controller = _controller()
    start = controller.crop
    controller.pointer_down((600, 500), DragMode.MOVE)
    controller.pointer_move((650, 500))
    controller.pointer_move((620, 500))
    assert controller.crop.x == pytest.approx(start.x + 20)


def test_move_clamps_to_displayed_image_not_viewport():
    controller = _controller()
    controller.pointer_down((600, 500), DragMode.MOVE)
    controller.pointer_move((-5000, 5000))
    crop = controller.crop
    assert crop.x == pytest.approx(240)
    assert crop.bottom == pytest.approx(1080)


def test_resize_past_right_edge_stops_at_image_edge():
    controller = _controller(aspect="1:1", image=(600, 800), viewport=(1000, 800))
    bounds = controller.image_bounds
    start = controller.crop
    controller.pointer_down((start.right, start.bottom), DragMode.RESIZE)
    controller.pointer_move((start.right + 5000, start.bottom))

    crop = controller.crop
    assert crop.x == start.x
    assert crop.y == start.y
    assert crop.right == pytest.approx(bounds.right)
    assert crop.height == pytest.approx(crop.width)


def test_resize_floor_through_controller():
    controller = _controller()
    start = controller.crop
    controller.pointer_down((start.right, start.bottom), DragMode.RESIZE)
    controller.pointer_move((start.x - 100, start.y))
    assert controller.crop.width == 20
    assert controller.crop.height == pytest.approx(20 * 9 / 16)


def test_confirm_source_maps_to_pixels():
    controller = _controller(aspect="4:3", image=(800, 600), viewport=(800, 600))
    source = controller.confirm_source()
    crop = controller.confirm()
    assert source.width == pytest.approx(crop.width)
    assert source.width / source.height == pytest.approx(4 / 3)


@pytest.mark.parametrize("seed", range(8))
@pytest.mark.parametrize("aspect, ratio", [("1:1", 1.0), ("4:3", 4 / 3), ("16:9", 16 / 9), ("2:7", 2 / 7)])
def test_random_drags_keep_ratio_and_bounds(seed, aspect, ratio):
    rng = random.Random(seed)
    controller = _controller(aspect=aspect, image=(rng.randint(50, 4000), rng.randint(50, 4000)), viewport=(448, 384))
    bounds = controller.image_bounds

    for _ in range(25):
        crop = controller.crop
        mode = rng.choice([DragMode.MOVE, DragMode.RESIZE])
        controller.pointer_down((crop.right, crop.bottom), mode)
        for _ in range(rng.randint(1, 5)):
            controller.pointer_move((rng.uniform(-300, 800), rng.uniform(-300, 800)))
            current = controller.crop
            assert current.width > 0 and current.height > 0
            assert abs(current.width / current.height - ratio) < 0.01
            _assert_inside(current, bounds)
            if mode is DragMode.MOVE:
                assert current.width == crop.width
                assert current.height == crop.height
        controller.pointer_up()
        assert controller.state == IDLE


def test_hit_test_modes():
    controller = _controller()
    crop = controller.crop
    assert controller.hit_test((crop.right, crop.bottom)) is DragMode.RESIZE
    assert controller.hit_test((crop.x + 30, crop.y + 30)) is DragMode.MOVE
    assert controller.hit_test((0, 0)) is None


def test_nudge_moves_and_clamps():
    controller = _controller()
    start = controller.crop
    assert controller.nudge(10, 0)
    assert controller.crop.x == pytest.approx(start.x + 10)
    controller.nudge(-10000, 0)
    assert controller.crop.x == pytest.approx(controller.image_bounds.x)
    assert controller.nudge(-1, 0) is False


def test_recenter_restores_initial_crop():
    controller = _controller()
    start = controller.crop
    controller.nudge(50, 50)
    assert controller.recenter() == start


def test_resize_viewport_keeps_source_selection():
    controller = _controller()
    controller.nudge(30, 20)
    before = controller.confirm_source()

    controller.resize_viewport(ViewportDimensions(800, 600))

    after = controller.confirm_source()
    assert controller.fit.scale == pytest.approx(1.0)
    assert after.x == pytest.approx(before.x)
    assert after.y == pytest.approx(before.y)
    assert after.width == pytest.approx(before.width)
    _assert_inside(controller.crop, controller.image_bounds)


def test_resize_viewport_during_drag_returns_to_idle():
    controller = _controller()
    controller.pointer_down((600, 500), DragMode.MOVE)
    controller.resize_viewport(ViewportDimensions(640, 480))
    assert controller.state == IDLE


def test_reset_discards_state():
    controller = _controller()
    controller.reset()
    assert not controller.is_ready()
    assert controller.crop is None


def test_malformed_aspect_degrades_to_square():
    controller = _controller(aspect="a:b")
    assert controller.aspect.ratio == 1
    assert controller.crop.width == pytest.approx(controller.crop.height)


@pytest.mark.parametrize("aspect", ["1:1e-320", "1e-320:1", "1e308:1e-308"])
def test_degenerate_ratio_keeps_crop_non_empty(aspect):
    controller = _controller(aspect=aspect, image=(800, 600), viewport=(400, 300))
    crop = controller.crop
    assert controller.aspect.ratio == 1
    assert crop.width > 0 and crop.height > 0

    controller.pointer_down((crop.right, crop.bottom), DragMode.RESIZE)
    controller.pointer_move((crop.right + 5, crop.bottom))
    controller.pointer_up()

    assert controller.crop.height > 0
    assert controller.crop.width == pytest.approx(controller.crop.height)
