"""Tests for the binary box counter."""

import numpy as np
import pytest

from fraccount import (
    BinaryBoxCounter,
    BoxCountConfig,
    ConfigurationError,
    EmptyGridError,
    SampleGrid,
    generate_translation_offsets,
)

from conftest import reference_binary_count


@pytest.fixture
def counter():
    return BinaryBoxCounter()


def config(**kwargs):
    kwargs.setdefault('auto_bounds', False)
    return BoxCountConfig(**kwargs)


@pytest.mark.parametrize("size,expected", [(8, 1), (4, 4), (2, 16), (1, 64)])
def test_full_square_counts(counter, full_square, size, expected):
    grid = SampleGrid(full_square)
    assert counter.count(grid, size, config(num_translations=1)) == expected


def test_box_larger_than_image_is_one_box(counter, full_square):
    assert counter.count(SampleGrid(full_square), 20, config(num_translations=1)) == 1


def test_nothing_above_threshold_counts_zero(counter):
    grid = SampleGrid(np.full((10, 10), 69))
    assert counter.count(grid, 2, config(threshold=70)) == 0


def test_threshold_is_inclusive(counter):
    img = np.zeros((10, 10))
    img[3, 4] = 70
    assert counter.count(SampleGrid(img), 2, config(threshold=70)) == 1
    assert counter.count(SampleGrid(img), 2, config(threshold=71)) == 0


def test_carpet_counts(counter, carpet):
    grid = SampleGrid(carpet)
    cfg = config(num_translations=1)
    assert [counter.count(grid, s, cfg) for s in (27, 9, 3, 1)] == [8, 64, 512, 4096]


def test_counts_match_reference_for_every_translation(counter, random_binary_volume):
    grid = SampleGrid(random_binary_volume)
    cfg = config(threshold=100, num_translations=3)
    for size in (7, 4, 2):
        counts = counter.translation_counts(grid, size, cfg)
        offsets = generate_translation_offsets(size, 3, (grid.width, grid.height, grid.depth))
        expected = [reference_binary_count(grid.volume, size, ox, oy, oz, 100) for ox, oy, oz in offsets]
        assert counts.tolist() == expected


def test_count_is_minimum_over_translations(counter, random_binary_volume):
    grid = SampleGrid(random_binary_volume)
    cfg = config(threshold=100, num_translations=4)
    for size in (8, 5, 3):
        counts = counter.translation_counts(grid, size, cfg)
        result = counter.count(grid, size, cfg)
        assert result == counts.min()
        # never worse than the plain, untranslated lattice
        assert result <= counts[0]


def test_translations_can_beat_fixed_lattice(counter):
    # a 2x2 blob straddling the zero-offset lattice lines
    img = np.zeros((8, 8))
    img[1:3, 1:3] = 255
    grid = SampleGrid(img)
    fixed = counter.count(grid, 2, config(num_translations=1))
    shifted = counter.count(grid, 2, config(num_translations=2))
    assert fixed == 4
    assert shifted == 1


def test_count_never_decreases_for_finer_nested_boxes(counter, rng):
    img = (rng.random((64, 64)) < 0.02) * 255
    grid = SampleGrid(img)
    cfg = config(num_translations=1)
    counts = [counter.count(grid, s, cfg) for s in (32, 16, 8, 4, 2, 1)]
    assert all(a <= b for a, b in zip(counts, counts[1:]))


def test_minimised_count_never_decreases_for_finer_nested_boxes(counter, rng):
    # with every offset below the box size tried, each coarse lattice of a
    # nested pair has a fine lattice aligned with it
    img = (rng.random((48, 48)) < 0.03) * 255
    grid = SampleGrid(img)
    cfg = config(num_translations=16)
    counts = [counter.count(grid, s, cfg) for s in (16, 8, 4, 2, 1)]
    assert all(a <= b for a, b in zip(counts, counts[1:]))


def test_minimised_count_never_decreases_in_3d(counter, random_binary_volume):
    grid = SampleGrid(random_binary_volume)
    cfg = config(threshold=100, num_translations=6)
    counts = [counter.count(grid, s, cfg) for s in (6, 3, 1)]
    assert all(a <= b for a, b in zip(counts, counts[1:]))


def test_3d_cube_counts(counter):
    cube = np.full((16, 16, 16), 255, dtype=np.uint8)
    grid = SampleGrid(cube)
    cfg = config(num_translations=1)
    assert [counter.count(grid, s, cfg) for s in (8, 4, 2)] == [8, 64, 512]


def test_2d_and_single_slice_3d_agree(counter, carpet):
    cfg = config(num_translations=2)
    flat = SampleGrid(carpet)
    stacked = SampleGrid(carpet[np.newaxis])
    for size in (9, 5, 3):
        assert counter.count(flat, size, cfg) == counter.count(stacked, size, cfg)


def test_empty_grid_is_rejected(counter):
    with pytest.raises(EmptyGridError):
        counter.count(SampleGrid(np.zeros((0, 5))), 2, config())


def test_zero_translations_is_rejected(counter, full_square):
    with pytest.raises(ConfigurationError):
        counter.count(SampleGrid(full_square), 2, config(num_translations=0))
