from functools import cached_property

import numpy as np
from numba import njit


@njit(nogil=True, cache=True)
def get_bounding_box_3d(volume, threshold):
    """
    Compute the tight bounding box of all voxels ``>= threshold`` in a 3D array.

    Parameters
    ----------
    volume : np.ndarray
        3D array of shape (depth, height, width)
    threshold : float
        Foreground threshold

    Returns
    -------
    tuple
        (min_z, min_y, min_x, max_z, max_y, max_x) with exclusive maxima, or
        all zeros when no voxel reaches the threshold.
    """
    D, H, W = volume.shape

    z_has_data = np.zeros(D, dtype=np.bool_)
    y_has_data = np.zeros(H, dtype=np.bool_)
    x_has_data = np.zeros(W, dtype=np.bool_)

    for k in range(D):
        for j in range(H):
            for i in range(W):
                if volume[k, j, i] >= threshold:
                    z_has_data[k] = True
                    y_has_data[j] = True
                    x_has_data[i] = True

    min_z, max_z = D, -1
    min_y, max_y = H, -1
    min_x, max_x = W, -1

    for k in range(D):
        if z_has_data[k]:
            if min_z == D:
                min_z = k
            max_z = k

    for j in range(H):
        if y_has_data[j]:
            if min_y == H:
                min_y = j
            max_y = j

    for i in range(W):
        if x_has_data[i]:
            if min_x == W:
                min_x = i
            max_x = i

    if min_z == D:  # nothing above threshold
        return 0, 0, 0, 0, 0, 0

    return min_z, min_y, min_x, max_z + 1, max_y + 1, max_x + 1


class SampleGrid:
    """
    Read-only view of a 2D or 3D intensity array.

    A 2D array is read as ``(height, width)`` and a 3D array as
    ``(depth, height, width)``; internally both are held as a C-contiguous
    float64 volume of shape ``(depth, height, width)`` with ``depth == 1`` for
    2D images. The caller's array is never written to: when it already has the
    right layout it is borrowed through a read-only view, otherwise it is copied.

    Parameters
    ----------
    array : array-like
        2D or 3D numeric (or boolean) array of intensities.
    """

    def __init__(self, array):
        data = np.asarray(array)
        if data.ndim not in (2, 3):
            raise ValueError(f"SampleGrid expects a 2D or 3D array, got {data.ndim}D")

        self.ndim = data.ndim
        if data.ndim == 2:
            data = data[np.newaxis, :, :]

        volume = np.ascontiguousarray(data, dtype=np.float64).view()
        volume.flags.writeable = False
        self._volume = volume
        self._bounds_cache = {}

    @classmethod
    def coerce(cls, obj):
        """Return ``obj`` if it already is a SampleGrid, otherwise wrap it."""
        if isinstance(obj, cls):
            return obj
        return cls(obj)

    @property
    def volume(self) -> np.ndarray:
        """The read-only (depth, height, width) float64 volume."""
        return self._volume

    @property
    def plane(self) -> np.ndarray:
        """The first slice as a (height, width) array."""
        return self._volume[0]

    @property
    def depth(self) -> int:
        return self._volume.shape[0]

    @property
    def height(self) -> int:
        return self._volume.shape[1]

    @property
    def width(self) -> int:
        return self._volume.shape[2]

    @property
    def shape(self):
        """(width, height, depth), in the order used for box size bounds."""
        return self.width, self.height, self.depth

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0 or self.depth <= 0

    def get(self, x: int, y: int, z: int = 0) -> float:
        """Intensity at column ``x``, row ``y`` of slice ``z``."""
        if not (0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.depth):
            raise IndexError(f"({x}, {y}, {z}) is outside a {self.width}x{self.height}x{self.depth} grid")
        return float(self._volume[z, y, x])

    @cached_property
    def min(self) -> float:
        return float(self._volume.min())

    @cached_property
    def max(self) -> float:
        return float(self._volume.max())

    def foreground_bounds(self, threshold):
        """
        Bounding box of voxels ``>= threshold`` as
        ``(min_z, min_y, min_x, max_z, max_y, max_x)``; cached per threshold.
        """
        key = float(threshold)
        if key not in self._bounds_cache:
            self._bounds_cache[key] = get_bounding_box_3d(self._volume, key)
        return self._bounds_cache[key]

    def slices(self):
        """Yield each z slice as a 2D SampleGrid."""
        for z in range(self.depth):
            yield SampleGrid(self._volume[z])

    def __repr__(self):
        return f"SampleGrid(width={self.width}, height={self.height}, depth={self.depth})"
