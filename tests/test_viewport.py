import dataclasses

import pytest

from mandelbrot import ConfigurationError, PixelCoordinate, Viewport, default_config, to_complex
from mandelbrot.mapping import pixel_axes


def test_center_pixel_maps_to_center():
    vp = Viewport(-0.5, 0.0, 0.005, 400, 300, max_iter=100)
    assert to_complex(PixelCoordinate(200, 150), vp) == complex(-0.5, 0.0)
    assert vp.to_complex(200, 150) == complex(-0.5, 0.0)


def test_mapping_is_affine_and_monotonic():
    vp = Viewport(0.25, -0.1, 0.01, 50, 40)
    row = [vp.to_complex(x, 7) for x in range(vp.width)]
    col = [vp.to_complex(9, y) for y in range(vp.height)]
    assert all(b.real > a.real for a, b in zip(row, row[1:]))
    assert len({c.imag for c in row}) == 1
    # Row 0 is the top of the image: the imaginary part falls going down
    assert all(b.imag < a.imag for a, b in zip(col, col[1:]))
    assert len({c.real for c in col}) == 1
    assert row[10].real - row[0].real == pytest.approx(10 * vp.scale)


def test_pixel_axes_match_point_mapping():
    vp = Viewport(-0.743, 0.131, 3e-4, 37, 23)
    reals, imags = pixel_axes(vp, 5, 3, 20, 17)
    for i, x in enumerate(range(5, 20)):
        assert reals[i] == vp.to_complex(x, 0).real
    for j, y in enumerate(range(3, 17)):
        assert imags[j] == vp.to_complex(0, y).imag


def test_resize_keeps_mapping_of_common_pixels():
    big = Viewport(-0.5, 0.2, 0.004, 400, 300)
    small = big.resize(200, 100)
    dx = (big.width - small.width) // 2
    dy = (big.height - small.height) // 2
    for x, y in [(0, 0), (57, 13), (199, 99), (100, 50)]:
        assert small.to_complex(x, y) == big.to_complex(x + dx, y + dy)


@pytest.mark.parametrize("kwargs", [
    dict(scale=0.0),
    dict(scale=-1.0),
    dict(width=0),
    dict(height=-3),
    dict(max_iter=0),
])
def test_invalid_viewport_rejected(kwargs):
    params = dict(center_real=0.0, center_imag=0.0, scale=0.01, width=10, height=10, max_iter=10)
    params.update(kwargs)
    with pytest.raises(ConfigurationError):
        Viewport(**params)


def test_viewport_is_immutable():
    vp = Viewport(0.0, 0.0, 0.01, 10, 10)
    with pytest.raises(dataclasses.FrozenInstanceError):
        vp.scale = 1.0
    moved = vp.pan(3, 4)
    assert moved is not vp
    assert vp.center == 0j


def test_pan_moves_by_pixels():
    vp = Viewport(0.0, 0.0, 0.5, 10, 10)
    moved = vp.pan(2, 4)
    assert moved.center == complex(1.0, -2.0)
    assert moved.to_complex(3, 1) == vp.to_complex(5, 5)


def test_zoom_about_center_and_anchor():
    vp = Viewport(-0.5, 0.0, 0.01, 100, 80)
    zoomed = vp.zoom(4)
    assert zoomed.scale == pytest.approx(0.0025)
    assert zoomed.center == vp.center

    anchor = (80, 10)
    before = vp.to_complex(*anchor)
    after = vp.zoom(2.5, anchor).to_complex(*anchor)
    assert after.real == pytest.approx(before.real, abs=1e-12)
    assert after.imag == pytest.approx(before.imag, abs=1e-12)

    with pytest.raises(ConfigurationError):
        vp.zoom(0)


def test_from_bounds_derives_height_from_aspect_ratio():
    vp = Viewport.from_bounds(-2, 1, -1, 1, width=1280)
    assert vp.height == 853
    assert vp.center == complex(-0.5, 0.0)
    assert vp.scale == pytest.approx(3 / 1280)
    re_min, re_max, im_min, im_max = vp.bounds
    assert re_min == pytest.approx(-2)
    assert re_max == pytest.approx(1)


def test_from_bounds_rejects_inverted_limits():
    with pytest.raises(ConfigurationError):
        Viewport.from_bounds(1, -2, -1, 1, width=100)
    with pytest.raises(ConfigurationError):
        Viewport.from_bounds(-2, 1, 1, 1, width=100)


def test_moved_and_with_center():
    vp = Viewport.from_bounds(-2, 1, -1, 1, width=300)
    target = vp.with_center(-0.747162, -0.087584).zoom(10000)
    assert target.center == complex(-0.747162, -0.087584)
    assert target.scale == pytest.approx(vp.scale / 10000)
    assert vp.moved(0.5, -0.25).center == complex(0.0, -0.25)
    assert vp.with_max_iter(42).max_iter == 42


def test_deep_zoom_pan_and_zoom_keep_sub_float_offsets():
    start = default_config(
        precision="extended", center=("-0.75", "0.1"), scale=1e-20, width=16, height=16
    ).initial_viewport()

    panned = start.pan(3, 0)
    assert panned.center_real != start.center_real
    assert float((panned.center_real - start.center_real) / start.scale) == pytest.approx(3)

    # Anchor one pixel up and left of the centre
    zoomed = start.zoom(2, anchor=(7, 7))
    assert float((zoomed.center_real - start.center_real) / start.scale) == pytest.approx(-0.5)
    assert float((zoomed.center_imag - start.center_imag) / start.scale) == pytest.approx(0.5)


def test_double_precision_centre_stays_float():
    vp = default_config(center=("-0.75", "0.1")).initial_viewport()
    assert isinstance(vp.center_real, float)
    assert vp.center == complex(-0.75, 0.1)
