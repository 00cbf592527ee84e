from typing import NamedTuple, Optional, Union

import numpy as np
from numba import njit, prange

from .errors import ConfigurationError, EmptyGridError


class BoxSizeSample(NamedTuple):
    """One measurement: the box size and the number of boxes it took."""

    box_size: int
    count: Union[int, float]


class BoxSizeSeries:
    """
    Descending sequence of box sizes to evaluate.

    Starting at ``max_box_size``, each following size is ``int(size / ratio)``
    (geometric) or ``size - 1`` (arithmetic, ``ratio=None``), for as long as
    the size stays ``>= min_box_size``. The integer truncation is part of the
    sampled series and is reproduced as is.

    The series is a restartable iterable: every ``iter()`` starts over.

    Parameters
    ----------
    max_box_size : int
        First box size
    min_box_size : int
        Smallest box size still produced
    ratio : float, optional
        Geometric divisor, must be greater than 1. None selects the
        arithmetic series.

    Examples
    --------
    >>> list(BoxSizeSeries(24, 6, ratio=1.2))
    [24, 20, 16, 13, 10, 8, 6]
    >>> list(BoxSizeSeries(5, 3))
    [5, 4, 3]
    """

    def __init__(self, max_box_size: int, min_box_size: int, ratio: Optional[float] = None):
        if ratio is not None and not ratio > 1.0:
            raise ConfigurationError(f"Box division ratio must be greater than 1, got {ratio}")
        self.max_box_size = int(max_box_size)
        self.min_box_size = int(min_box_size)
        self.ratio = ratio

    @classmethod
    def from_config(cls, config) -> 'BoxSizeSeries':
        """Series for a config whose bounds are already resolved."""
        ratio = config.ratio if config.is_geometric else None
        return cls(config.max_box_size, config.min_box_size, ratio=ratio)

    def _next(self, size: int) -> int:
        if self.ratio is None:
            return size - 1
        return int(size / self.ratio)

    def __iter__(self):
        size = self.max_box_size
        # sizes are strictly decreasing, so this always terminates once size < 1
        while size >= self.min_box_size and size >= 1:
            yield size
            size = self._next(size)

    def __len__(self):
        return sum(1 for _ in self)

    def to_array(self) -> np.ndarray:
        return np.fromiter(iter(self), dtype=np.int64)

    def __repr__(self):
        kind = 'arithmetic' if self.ratio is None else f'ratio={self.ratio}'
        return f"BoxSizeSeries({self.max_box_size} -> {self.min_box_size}, {kind})"


def generate_translation_offsets(size, num_translations, extents):
    """
    Grid offsets tried for one box size.

    Along each axis the offsets are ``0, inc, 2*inc, ...`` while the offset is
    smaller than both the box size and the extent of that axis, with
    ``inc = max(1, size // num_translations)``. Every combination across the
    axes is returned.

    Parameters
    ----------
    size : int
        Box size (in pixels/voxels)
    num_translations : int
        Requested number of translations per axis
    extents : sequence of int
        Grid extent along each axis, e.g. (width, height, depth)

    Returns
    -------
    np.ndarray
        int64 array of shape (num_offsets, len(extents)); column order follows
        ``extents``. The first row is always the zero offset.
    """
    increment = max(1, size // num_translations)
    axes = [np.arange(0, min(size, extent), increment, dtype=np.int64) for extent in extents]
    mesh = np.meshgrid(*axes, indexing='ij')
    return np.stack([m.ravel() for m in mesh], axis=1)


class BoxCounter:
    """
    Shared interface of the counters: ``count(grid, box_size, config)``.

    Subclasses implement :meth:`translation_counts`; the reported count is
    the minimum over all evaluated grid translations.
    """

    kind = None

    def check(self, grid, box_size, config):
        """Validate one count and return ``config`` with this kind's defaults filled in."""
        self.prepare(grid, config)
        config = config.for_kind(self.kind)
        if config.num_translations < 1:
            raise ConfigurationError(
                f"Number of translations must be at least 1, got {config.num_translations}")
        if box_size < 1:
            raise ConfigurationError(f"Box size must be at least 1, got {box_size}")
        return config

    def prepare(self, grid, config):
        """Validate that ``grid`` can be counted with ``config`` before a run starts."""
        if grid.is_empty:
            raise EmptyGridError(f"Empty grid ({grid.width}x{grid.height}x{grid.depth}), dimension not defined")

    def normalization(self, grid) -> float:
        """Divisor applied to box sizes before the log transform."""
        return 1.0

    def translation_counts(self, grid, box_size, config) -> np.ndarray:
        raise NotImplementedError

    def count(self, grid, box_size, config):
        return int(self.translation_counts(grid, box_size, config).min())


@njit(nogil=True, cache=True)
def box_occupied(volume, z0, z1, y0, y1, x0, x1, threshold):
    """True as soon as one voxel of the box reaches ``threshold``."""
    for z in range(z0, z1):
        for y in range(y0, y1):
            for x in range(x0, x1):
                if volume[z, y, x] >= threshold:
                    return True
    return False


@njit(nogil=True, cache=True)
def count_occupied_boxes(volume, size, x_off, y_off, z_off, threshold, bounds):
    """
    Count the occupied boxes of one translated box lattice.

    The lattice starts at ``(-x_off, -y_off, -z_off)`` and covers the whole
    volume. Each box is clipped to the volume and, since no foreground exists
    outside ``bounds``, to the foreground bounding box as well; boxes that do
    not intersect it are skipped without scanning.

    Parameters
    ----------
    volume : np.ndarray
        (depth, height, width) float64 array
    size : int
        Box edge length
    x_off, y_off, z_off : int
        Translation of the lattice along each axis
    threshold : float
        Foreground threshold
    bounds : tuple
        (min_z, min_y, min_x, max_z, max_y, max_x) foreground bounding box

    Returns
    -------
    int
        Number of boxes holding at least one foreground voxel
    """
    min_z, min_y, min_x, max_z, max_y, max_x = bounds
    D, H, W = volume.shape
    count = 0

    for z_grid in range(-z_off, D, size):
        z0 = max(z_grid, min_z)
        z1 = min(z_grid + size, max_z)
        if z0 >= z1:
            continue
        for y_grid in range(-y_off, H, size):
            y0 = max(y_grid, min_y)
            y1 = min(y_grid + size, max_y)
            if y0 >= y1:
                continue
            for x_grid in range(-x_off, W, size):
                x0 = max(x_grid, min_x)
                x1 = min(x_grid + size, max_x)
                if x0 >= x1:
                    continue
                if box_occupied(volume, z0, z1, y0, y1, x0, x1, threshold):
                    count += 1

    return count


@njit(nogil=True, parallel=True, cache=True)
def numba_binary_counts(volume, size, offsets, threshold, bounds):
    """
    Occupied box counts for every translation of one box size.

    Translations are independent, so they are evaluated in parallel; each one
    writes only its own slot of the result.

    Parameters
    ----------
    volume : np.ndarray
        (depth, height, width) float64 array
    size : int
        Box edge length
    offsets : np.ndarray
        (num_offsets, 3) int64 array of (x_off, y_off, z_off)
    threshold : float
        Foreground threshold
    bounds : tuple
        Foreground bounding box from ``get_bounding_box_3d``

    Returns
    -------
    np.ndarray
        int64 count per translation
    """
    n = offsets.shape[0]
    counts = np.empty(n, dtype=np.int64)
    for t in prange(n):
        counts[t] = count_occupied_boxes(volume, size,
                                         offsets[t, 0], offsets[t, 1], offsets[t, 2],
                                         threshold, bounds)
    return counts


class BinaryBoxCounter(BoxCounter):
    """
    Thresholded box counting over 2D or 3D grids.

    A box is occupied when any intensity inside it is ``>= config.threshold``.
    The count for a box size is the minimum over the grid translations given by
    :func:`generate_translation_offsets`, which removes the bias of a single,
    possibly unlucky, lattice alignment.
    """

    kind = 'binary'

    def translation_counts(self, grid, box_size, config) -> np.ndarray:
        """Occupied box count for each evaluated translation (zero offset first)."""
        config = self.check(grid, box_size, config)
        size = int(box_size)
        offsets = generate_translation_offsets(size, config.num_translations,
                                               (grid.width, grid.height, grid.depth))
        threshold = float(config.threshold)
        bounds = grid.foreground_bounds(threshold)
        return numba_binary_counts(grid.volume, size, offsets, threshold, bounds)
