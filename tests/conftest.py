"""
conftest.py - shared images and reference implementations for the test suite
"""

import numpy as np
import pytest


def sierpinski_carpet(level):
    """Sierpinski carpet of side 3**level, foreground 255 on background 0."""
    carpet = np.ones((1, 1), dtype=np.uint8)
    for _ in range(level):
        s = carpet.shape[0]
        carpet = np.tile(carpet, (3, 3))
        carpet[s:2 * s, s:2 * s] = 0
    return carpet * 255


def reference_binary_count(volume, size, x_off, y_off, z_off, threshold):
    """Plain numpy box count of one lattice translation, no shortcuts."""
    D, H, W = volume.shape
    fg = volume >= threshold
    count = 0
    for z0 in range(-z_off, D, size):
        for y0 in range(-y_off, H, size):
            for x0 in range(-x_off, W, size):
                box = fg[max(z0, 0):z0 + size, max(y0, 0):y0 + size, max(x0, 0):x0 + size]
                count += int(box.any())
    return count


def reference_surface_count(plane, size, x_off, y_off, z_scale, sub_graph, scaled_reference=False):
    """Plain numpy SDBC count of one footprint translation."""
    H, W = plane.shape
    z = z_scale * np.asarray(plane, dtype=float)
    # sub-graph reference is the raw minimum intensity unless asked otherwise
    global_min = z.min() if scaled_reference else np.min(plane)
    total = 0
    for y0 in range(-y_off, H, size):
        for x0 in range(-x_off, W, size):
            cell = z[max(y0, 0):y0 + size, max(x0, 0):x0 + size]
            ref = global_min if sub_graph else cell.min()
            total += 1 + int((cell.max() - ref + 1) / size)
    return total


@pytest.fixture
def full_square():
    return np.full((8, 8), 255, dtype=np.uint8)


@pytest.fixture
def carpet():
    return sierpinski_carpet(4)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_binary_volume(rng):
    return (rng.random((6, 20, 17)) < 0.05).astype(np.uint8) * 200


@pytest.fixture
def random_surface(rng):
    return rng.integers(0, 256, size=(23, 31)).astype(np.float64)


@pytest.fixture
def ramp_plane():
    return np.arange(16, dtype=float).reshape(4, 4)
