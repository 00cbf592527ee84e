"""
Box counting configuration.

A :class:`BoxCountConfig` is an immutable record passed into every counting
operation. Defaults are those of the ImageJ FractalCount plugin (binary) and
the SDBC plugins (surface); fields left as None take the per-kind value from
:data:`KIND_DEFAULTS`.
"""
import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError

AUTO_DIV = 4

# Smallest box used when bounds are derived from the grid, per counter kind
AUTO_MIN_BOX = {
    'binary': 6,
    'surface': 2,
}

# Values taken by unset (None) fields, per counter kind
KIND_DEFAULTS = {
    'binary': {'series': 'geometric', 'num_translations': 3},
    'surface': {'series': 'arithmetic', 'num_translations': 1},
}

SERIES_KINDS = ('geometric', 'arithmetic')


@dataclass(frozen=True)
class BoxCountConfig:
    """
    Parameters of one dimension estimate.

    Parameters
    ----------
    threshold : float, default 70
        Binary mode only. Voxels with intensity ``>= threshold`` are foreground.
    max_box_size : int, default 24
        Largest (first) box size. Ignored when ``auto_bounds`` is set.
    min_box_size : int, default 6
        Smallest box size still evaluated. Ignored when ``auto_bounds`` is set.
    series : str, optional
        ``'geometric'`` divides the box size by ``ratio`` at every step,
        ``'arithmetic'`` decrements it by one. Defaults to geometric for
        binary and arithmetic for surface counting.
    ratio : float, default 1.2
        Geometric divisor, must be greater than 1.
    num_translations : int, optional
        Number of grid offsets tried along each axis; the smallest count wins.
        Defaults to 3 for binary and 1 for surface counting.
    z_scale : float, default 1.0
        Surface mode only. Multiplies intensities before they are used as heights.
    sub_graph : bool, default True
        Surface mode only. Count boxes down to the global minimum height
        (volume under the surface) instead of the local height excursion.
    scaled_reference : bool, default False
        Surface sub-graph mode only. Measure down to the lowest scaled height
        ``min(z_scale * min, z_scale * max)`` instead of the lowest raw
        intensity, which keeps sub-graph counts at or above local counts for
        any ``z_scale``.
    auto_bounds : bool, default True
        Derive the box size bounds from the grid: the largest box is a quarter
        of the largest grid dimension and the smallest is ``auto_min_box_size``
        (clipped to the largest).
    auto_min_box_size : int, optional
        Smallest box used with ``auto_bounds``. Defaults to 6 for binary and 2
        for surface counting.
    """

    threshold: float = 70
    max_box_size: int = 24
    min_box_size: int = 6
    series: Optional[str] = None
    ratio: float = 1.2
    num_translations: Optional[int] = None
    z_scale: float = 1.0
    sub_graph: bool = True
    scaled_reference: bool = False
    auto_bounds: bool = True
    auto_min_box_size: Optional[int] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> 'BoxCountConfig':
        """Build a config from plain data, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration option(s): {', '.join(unknown)}")
        return cls(**dict(values))

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def replace(self, **changes) -> 'BoxCountConfig':
        return dataclasses.replace(self, **changes)

    @property
    def is_geometric(self) -> bool:
        return self.series == 'geometric'

    def for_kind(self, kind: str) -> 'BoxCountConfig':
        """
        Return the config with unset fields filled in for counter ``kind``.

        Returns ``self`` when every field is already set.
        """
        try:
            defaults = KIND_DEFAULTS[kind]
        except KeyError:
            raise ConfigurationError(f"Invalid kind '{kind}', use 'binary' or 'surface'") from None
        missing = {name: value for name, value in defaults.items() if getattr(self, name) is None}
        return self.replace(**missing) if missing else self

    def validate(self) -> 'BoxCountConfig':
        """
        Check the configuration, raising ConfigurationError on the first problem.

        Unset (None) fields are not checked. ``min_box_size > max_box_size`` is
        not checked either: it yields an empty box size series, which the
        estimator reports as NoBoxesError.
        """
        if self.num_translations is not None and self.num_translations < 1:
            raise ConfigurationError(
                f"Number of translations must be at least 1, got {self.num_translations}")
        if self.series is not None and self.series not in SERIES_KINDS:
            raise ConfigurationError(f"Invalid series '{self.series}', use 'geometric' or 'arithmetic'")
        if self.is_geometric and not self.ratio > 1.0:
            raise ConfigurationError(f"Box division ratio must be greater than 1, got {self.ratio}")
        if self.auto_min_box_size is not None and self.auto_min_box_size < 1:
            raise ConfigurationError(
                f"Automatic minimum box size must be at least 1, got {self.auto_min_box_size}")
        if not self.auto_bounds:
            self.check_bounds()
        return self

    def check_bounds(self):
        if self.min_box_size < 1:
            raise ConfigurationError(f"Minimum box size must be at least 1, got {self.min_box_size}")
        if self.max_box_size < 1:
            raise ConfigurationError(f"Maximum box size must be at least 1, got {self.max_box_size}")

    def resolve_bounds(self, grid, kind: str = 'binary') -> 'BoxCountConfig':
        """
        Return a copy with the per-kind defaults and concrete box size bounds for ``grid``.

        Without ``auto_bounds`` the configured bounds are kept. With it,
        ``max_box_size = max(width, height, depth) // 4`` and
        ``min_box_size = min(auto_min, max_box_size)``.
        """
        config = self.for_kind(kind)
        if not config.auto_bounds:
            return config

        max_box = max(grid.width, grid.height, grid.depth) // AUTO_DIV
        auto_min = config.auto_min_box_size
        if auto_min is None:
            auto_min = AUTO_MIN_BOX[kind]
        resolved = config.replace(max_box_size=max_box, min_box_size=min(auto_min, max_box))
        resolved.check_bounds()
        return resolved
