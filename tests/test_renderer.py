import threading

import numpy as np
import pytest

import mandelbrot_viewer.renderer as renderer_module
from mandelbrot_viewer.colormaps import CONTINUOUS, GRAYSCALE, color_for
from mandelbrot_viewer.compute import evaluate
from mandelbrot_viewer.context import RenderContext, RenderSnapshot
from mandelbrot_viewer.renderer import (
    MandelbrotRenderer,
    RenderError,
    RenderSurface,
    available_workers,
    partition_rows,
    render,
)
from mandelbrot_viewer.viewport import Viewport


DEFAULT_SNAPSHOT = RenderSnapshot(-2.0, 1.0, -1.5, 1.5, 250, GRAYSCALE)


@pytest.mark.parametrize("height", [0, 1, 2, 7, 64, 799, 800, 1001])
@pytest.mark.parametrize("workers", [1, 2, 3, 4, 8, 16, 1000])
def test_partition_covers_every_row_once(height, workers):
    bands = partition_rows(height, workers)
    assert len(bands) == workers

    rows = []
    for start, stop in bands:
        assert 0 <= start <= stop <= height
        rows.extend(range(start, stop))
    assert rows == list(range(height))


def test_partition_last_band_absorbs_remainder():
    assert partition_rows(10, 3) == [(0, 3), (3, 6), (6, 10)]
    assert partition_rows(800, 8)[-1] == (700, 800)
    # Fewer rows than workers: leading bands are empty
    assert partition_rows(2, 4) == [(0, 0), (0, 0), (0, 0), (0, 2)]
    assert partition_rows(5, 0) == [(0, 5)]


def test_available_workers_positive():
    assert available_workers() >= 1
    assert MandelbrotRenderer(4, 4).workers == available_workers()
    assert MandelbrotRenderer(4, 4, workers=3).workers == 3


def test_surface_rejects_empty_size():
    with pytest.raises(ValueError):
        RenderSurface(0, 10)


def test_default_view_scenario():
    """800x800 overview at cap 250 in grayscale: corner escapes, centre is black."""
    renderer = MandelbrotRenderer(800, 800)
    rgb = renderer.render(DEFAULT_SNAPSHOT)
    surface = renderer.surface

    assert rgb.shape == (800, 800, 3)
    assert rgb.dtype == np.uint8
    assert surface.snapshot == DEFAULT_SNAPSHOT

    assert surface.iterations_at(0, 0) < 10
    r, g, b = surface.pixel(0, 0)
    assert r == g == b
    assert r < 10

    assert surface.iterations_at(400, 400) == 250
    assert surface.pixel(400, 400) == (0, 0, 0)


def test_buffer_matches_per_pixel_evaluation():
    width, height, max_iter = 24, 18, 80
    snapshot = RenderSnapshot(-2.0, 1.0, -1.5, 1.5, max_iter, CONTINUOUS)
    renderer = MandelbrotRenderer(width, height, workers=5)
    rgb = renderer.render(snapshot)

    for py in range(height):
        for px in range(width):
            c = Viewport().pixel_to_plane(px, py, width, height)
            n = evaluate(c, max_iter)
            assert renderer.surface.iterations_at(px, py) == n
            assert tuple(int(v) for v in rgb[py, px]) == color_for(n, max_iter, CONTINUOUS)


@pytest.mark.parametrize("workers", [2, 3, 7, 64])
def test_result_independent_of_worker_count(workers):
    snapshot = RenderSnapshot(-0.8, -0.7, 0.05, 0.15, 300, CONTINUOUS)
    expected = MandelbrotRenderer(50, 37, workers=1).render(snapshot).copy()
    actual = MandelbrotRenderer(50, 37, workers=workers).render(snapshot)
    np.testing.assert_array_equal(actual, expected)


def test_reset_then_render_twice_is_identical():
    context = RenderContext(max_iter=200, continuous=CONTINUOUS)
    context.zoom_to(-0.75, 0.1, 0.2)
    context.reset()

    renderer = MandelbrotRenderer(120, 90, workers=4)
    first = renderer.render(context).copy()
    second = renderer.render(context).copy()

    assert first.tobytes() == second.tobytes()
    assert renderer.render_count == 2


def test_every_pixel_overwritten():
    renderer = MandelbrotRenderer(30, 20, workers=3)
    renderer.surface.rgb[:] = 123
    renderer.surface.iterations[:] = -1

    renderer.render(RenderSnapshot(-2.0, 1.0, -1.5, 1.5, 20, CONTINUOUS))

    assert (renderer.surface.iterations >= 0).all()
    assert not (renderer.surface.rgb == 123).all(axis=2).any()


def test_render_from_context_uses_snapshot():
    context = RenderContext(max_iter=64, continuous=GRAYSCALE)
    renderer = MandelbrotRenderer(16, 16, workers=2)
    renderer.render(context)
    assert renderer.surface.snapshot == context.snapshot()


def test_render_rejects_unknown_source():
    with pytest.raises(TypeError):
        MandelbrotRenderer(4, 4).render((-2.0, 1.0, -1.5, 1.5))


def test_render_function_accepts_viewport_or_tuple():
    from_viewport = render(Viewport(), 100, GRAYSCALE, 40, 30, workers=3)
    from_tuple = render((-2, 1, -1.5, 1.5), 100, GRAYSCALE, 40, 30, workers=1)
    assert from_viewport.shape == (30, 40, 3)
    np.testing.assert_array_equal(from_viewport, from_tuple)


def test_render_function_clamps_cap():
    rgb = render(Viewport(), 0, GRAYSCALE, 8, 8)
    # With a cap of 1 every pixel reaches the cap
    assert (rgb == 0).all()


def test_worker_failure_raises_render_error(monkeypatch):
    def broken_band(*args):
        raise FloatingPointError("boom")

    monkeypatch.setattr(renderer_module, "compute_band", broken_band)
    renderer = MandelbrotRenderer(10, 10, workers=2)
    with pytest.raises(RenderError) as excinfo:
        renderer.render(DEFAULT_SNAPSHOT)
    assert isinstance(excinfo.value.__cause__, FloatingPointError)
    assert renderer.render_count == 0
    assert renderer.surface.snapshot is None


def test_failed_render_leaves_previous_frame_intact(monkeypatch):
    """A render where one band fails must not leak its other bands into the surface."""
    renderer = MandelbrotRenderer(20, 20, workers=2)
    renderer.render(DEFAULT_SNAPSHOT)
    rgb_before = renderer.surface.rgb.copy()
    iterations_before = renderer.surface.iterations.copy()

    real_band = renderer_module.compute_band

    def half_broken_band(*args):
        row_start = args[10]
        if row_start == 0:
            real_band(*args)
        else:
            raise FloatingPointError("boom")

    monkeypatch.setattr(renderer_module, "compute_band", half_broken_band)
    zoomed = RenderSnapshot(-0.8, -0.7, 0.05, 0.15, 300, CONTINUOUS)
    with pytest.raises(RenderError):
        renderer.render(zoomed)

    assert renderer.surface.snapshot == DEFAULT_SNAPSHOT
    np.testing.assert_array_equal(renderer.surface.rgb, rgb_before)
    np.testing.assert_array_equal(renderer.surface.iterations, iterations_before)
    assert renderer.render_count == 1


def test_returned_frame_not_overwritten_by_next_render():
    renderer = MandelbrotRenderer(32, 24, workers=3)
    first = renderer.render(DEFAULT_SNAPSHOT)
    first_bytes = first.tobytes()

    second = renderer.render(RenderSnapshot(-0.8, -0.7, 0.05, 0.15, 300, CONTINUOUS))

    assert first is not second
    assert first.tobytes() == first_bytes
    assert second.tobytes() != first_bytes
    assert renderer.surface.rgb is second


def test_concurrent_renders_are_serialized(monkeypatch):
    """A second render waits for the one in flight instead of interleaving."""
    real_band = renderer_module.compute_band
    active = []
    overlap = []
    guard = threading.Lock()

    def tracking_band(*args):
        snapshot_cap = args[6]
        with guard:
            if any(cap != snapshot_cap for cap in active):
                overlap.append(snapshot_cap)
            active.append(snapshot_cap)
        try:
            real_band(*args)
        finally:
            with guard:
                active.remove(snapshot_cap)

    monkeypatch.setattr(renderer_module, "compute_band", tracking_band)
    renderer = MandelbrotRenderer(40, 40, workers=4)

    threads = [
        threading.Thread(target=renderer.render,
                         args=(RenderSnapshot(-2.0, 1.0, -1.5, 1.5, cap, GRAYSCALE),))
        for cap in (100, 200, 300)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlap == []
    assert renderer.render_count == 3
