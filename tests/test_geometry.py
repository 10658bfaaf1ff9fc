import pytest

from ratio_crop_tool.geometry import (
    centered_source_crop, compute_fit, displayed_bounds, initial_crop, max_crop, to_display, to_source,
)
from ratio_crop_tool.models import AspectRatio, DisplayRect, ImageDimensions, ViewportDimensions

EPS = 1e-9

SIZES = [
    (800, 600), (600, 800), (1920, 1080), (1080, 1920), (3000, 2000),
    (1, 1000), (1000, 1), (640, 640), (4096, 17),
]
VIEWPORTS = [(1920, 1080), (448, 384), (400, 300), (300, 400), (1000, 1000), (1, 1)]


def test_fit_scenario_height_constrained():
    fit = compute_fit(ImageDimensions(800, 600), ViewportDimensions(1920, 1080))
    assert fit.scale == pytest.approx(1.8)
    assert fit.offset_x == pytest.approx(240)
    assert fit.offset_y == pytest.approx(0)

    bounds = displayed_bounds(fit, ImageDimensions(800, 600))
    assert bounds.width == pytest.approx(1440)
    assert bounds.height == pytest.approx(1080)


def test_fit_width_constrained():
    fit = compute_fit(ImageDimensions(3000, 1000), ViewportDimensions(600, 600))
    assert fit.scale == pytest.approx(0.2)
    assert fit.offset_x == pytest.approx(0)
    assert fit.offset_y == pytest.approx(200)


@pytest.mark.parametrize("img", SIZES)
@pytest.mark.parametrize("vp", VIEWPORTS)
def test_fit_is_contained_and_centred(img, vp):
    image = ImageDimensions(*img)
    viewport = ViewportDimensions(*vp)
    fit = compute_fit(image, viewport)

    assert fit.scale > 0
    shown_w = image.width * fit.scale
    shown_h = image.height * fit.scale
    assert shown_w <= viewport.width + 1e-6
    assert shown_h <= viewport.height + 1e-6
    assert fit.offset_x >= -1e-6
    assert fit.offset_y >= -1e-6
    # One axis fills the viewport exactly
    assert min(abs(fit.offset_x), abs(fit.offset_y)) == pytest.approx(0, abs=1e-6)
    assert fit.offset_x * 2 + shown_w == pytest.approx(viewport.width)
    assert fit.offset_y * 2 + shown_h == pytest.approx(viewport.height)


def test_to_source_maps_display_to_pixels():
    fit = compute_fit(ImageDimensions(800, 600), ViewportDimensions(1920, 1080))
    source = to_source(DisplayRect(240 + 180, 90, 360, 270), fit)
    assert source.x == pytest.approx(100)
    assert source.y == pytest.approx(50)
    assert source.width == pytest.approx(200)
    assert source.height == pytest.approx(150)


@pytest.mark.parametrize("img", SIZES)
@pytest.mark.parametrize("vp", VIEWPORTS)
def test_round_trip_recovers_display_rect(img, vp):
    image = ImageDimensions(*img)
    fit = compute_fit(image, ViewportDimensions(*vp))
    bounds = displayed_bounds(fit, image)
    rect = DisplayRect(
        bounds.x + bounds.width * 0.1,
        bounds.y + bounds.height * 0.2,
        bounds.width * 0.5,
        bounds.height * 0.3,
    )

    back = to_display(to_source(rect, fit), fit)

    assert back.x == pytest.approx(rect.x)
    assert back.y == pytest.approx(rect.y)
    assert back.width == pytest.approx(rect.width)
    assert back.height == pytest.approx(rect.height)


def test_max_crop_branches():
    assert max_crop(3000, 2000, 1.0) == (2000, 2000)
    assert max_crop(1000, 2000, 1.0) == (1000, 1000)
    w, h = max_crop(1440, 1080, 16 / 9)
    assert (w, h) == pytest.approx((1440, 810))


@pytest.mark.parametrize("token", ["1:1", "4:3", "16:9", "9:16", "12:1", "1:12"])
@pytest.mark.parametrize("img", SIZES)
def test_initial_crop_is_centred_locked_and_inside(token, img):
    w, h = (int(v) for v in token.split(":"))
    aspect = AspectRatio(w, h)
    image = ImageDimensions(*img)
    fit = compute_fit(image, ViewportDimensions(448, 384))
    bounds = displayed_bounds(fit, image)

    crop = initial_crop(fit, aspect, image)

    assert crop.width / crop.height == pytest.approx(aspect.ratio)
    assert crop.x >= bounds.x - EPS
    assert crop.y >= bounds.y - EPS
    assert crop.right <= bounds.right + 1e-6
    assert crop.bottom <= bounds.bottom + 1e-6
    assert crop.x + crop.width / 2 == pytest.approx(bounds.x + bounds.width / 2)
    assert crop.y + crop.height / 2 == pytest.approx(bounds.y + bounds.height / 2)


def test_initial_crop_is_seventy_percent_of_constraining_dimension():
    image = ImageDimensions(800, 600)
    fit = compute_fit(image, ViewportDimensions(1920, 1080))
    crop = initial_crop(fit, AspectRatio(16, 9), image)
    assert crop.width == pytest.approx(1440 * 0.7)
    assert crop.height == pytest.approx(810 * 0.7)
    assert crop.x == pytest.approx(456)


def test_centered_source_crop():
    crop = centered_source_crop(ImageDimensions(3000, 2000), AspectRatio(1, 1))
    assert (crop.x, crop.y, crop.width, crop.height) == pytest.approx((500, 0, 2000, 2000))

    crop = centered_source_crop(ImageDimensions(1000, 2000), AspectRatio(16, 9))
    assert crop.width == pytest.approx(1000)
    assert crop.height == pytest.approx(562.5)
    assert crop.y == pytest.approx((2000 - 562.5) / 2)


def test_dimensions_reject_non_positive():
    with pytest.raises(ValueError):
        ImageDimensions(0, 10)
    with pytest.raises(ValueError):
        ViewportDimensions(10, -1)
