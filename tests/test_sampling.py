import numpy as np

from glyphrain.sampling import FrameSampler, GridResolution
from glyphrain.sources import StillSource
from tests.conftest import SolidSource


def test_grid_resolution_floors_output_size():
    assert GridResolution.for_output(105, 57, 10) == GridResolution(columns=10, rows=5)


def test_grid_resolution_smaller_than_a_cell_is_empty():
    assert GridResolution.for_output(5, 100, 10).empty


def test_sample_shape_and_values():
    sampler = FrameSampler()
    cells = sampler.sample(SolidSource((10, 20, 30)), GridResolution(columns=8, rows=4))
    assert cells.shape == (4, 8, 3)
    assert cells.dtype == np.uint8
    assert (cells == (10, 20, 30)).all()


def test_not_ready_source_is_skipped():
    sampler = FrameSampler()
    source = SolidSource((255, 255, 255), ready=False)
    assert sampler.sample(source, GridResolution(columns=8, rows=4)) is None
    assert source.draws == 0
    assert sampler.buffer is None


def test_empty_grid_is_skipped():
    sampler = FrameSampler()
    source = SolidSource((255, 255, 255))
    assert sampler.sample(source, GridResolution(columns=0, rows=4)) is None
    assert source.draws == 0


def test_buffer_reused_while_resolution_is_unchanged():
    sampler = FrameSampler()
    source = SolidSource((1, 2, 3))
    resolution = GridResolution(columns=16, rows=9)
    first = sampler.sample(source, resolution)
    for _ in range(5):
        assert sampler.sample(source, GridResolution(columns=16, rows=9)) is first
    assert sampler.allocations == 1


def test_buffer_reallocated_on_resolution_change():
    sampler = FrameSampler()
    source = SolidSource((1, 2, 3))
    first = sampler.sample(source, GridResolution(columns=16, rows=9))
    second = sampler.sample(source, GridResolution(columns=8, rows=9))
    assert second is not first
    assert second.shape == (9, 8, 3)
    assert sampler.allocations == 2


def test_still_source_downsample_is_deterministic(gray_image):
    sampler_a, sampler_b = FrameSampler(), FrameSampler()
    source = StillSource(gray_image)
    resolution = GridResolution(columns=6, rows=4)
    a = sampler_a.sample(source, resolution).copy()
    b = sampler_b.sample(source, resolution)
    np.testing.assert_array_equal(a, b)
    assert (a == 128).all()
