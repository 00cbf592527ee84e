import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from tqdm.auto import tqdm  # type: ignore

from .boxcount import BinaryBoxCounter, BoxSizeSample, BoxSizeSeries
from .config import BoxCountConfig
from .errors import ConfigurationError, EmptyGridError, EstimationCancelled, NoBoxesError
from .grid import SampleGrid
from .regression import RegressionResult, fit_loglog, get_pairwise_slopes, loglog_transform
from .surface import SurfaceBoxCounter

logger = logging.getLogger(__name__)

COUNTERS = {
    'binary': BinaryBoxCounter(),
    'surface': SurfaceBoxCounter(),
}


def get_counter(kind):
    try:
        return COUNTERS[kind]
    except KeyError:
        raise ConfigurationError(f"Invalid kind '{kind}', use 'binary' or 'surface'") from None


@dataclass(frozen=True)
class DimensionResult:
    """
    Outcome of one estimate: the raw samples and the fitted line.

    ``config`` is the configuration actually used, with box size bounds
    resolved for the grid.
    """

    kind: str
    config: BoxCountConfig
    samples: Tuple[BoxSizeSample, ...]
    regression: RegressionResult
    elapsed: float = 0.0

    @property
    def slope(self) -> float:
        return self.regression.slope

    @property
    def dimension(self) -> float:
        return self.regression.slope

    @property
    def intercept(self) -> float:
        return self.regression.intercept

    @property
    def sizes(self) -> np.ndarray:
        return np.array([s.box_size for s in self.samples], dtype=np.int64)

    @property
    def counts(self) -> np.ndarray:
        return np.array([s.count for s in self.samples], dtype=float)

    def _log_columns(self):
        with np.errstate(divide='ignore'):
            return loglog_transform(self.sizes, self.counts, self.regression.normalize)

    @property
    def log_sizes(self) -> np.ndarray:
        """``-ln(size / normalize)`` for every sample, the regression x."""
        return self._log_columns()[0]

    @property
    def log_counts(self) -> np.ndarray:
        return self._log_columns()[1]

    def local_slopes(self) -> np.ndarray:
        """Slopes between consecutive samples, see :func:`get_pairwise_slopes`."""
        with np.errstate(divide='ignore', invalid='ignore'):
            return get_pairwise_slopes(self.sizes, self.counts)

    def settings(self) -> str:
        """``max:min:ratio:translations``, or ``max:min:translations`` for arithmetic series."""
        cfg = self.config
        parts = [cfg.max_box_size, cfg.min_box_size]
        if cfg.is_geometric:
            parts.append(cfg.ratio)
        parts.append(cfg.num_translations)
        return ':'.join(str(p) for p in parts)

    def label(self, title: Optional[str] = None) -> str:
        """One-line summary with the estimate to 4 decimals and the settings used."""
        text = f"Dimension estimate: {self.slope:.4f}: Settings: {self.settings()}"
        return f"{title}: {text}" if title else text

    def to_dict(self):
        return {
            'kind': self.kind,
            'D': self.slope,
            'intercept': self.intercept,
            'R2': self.regression.r2,
            'ci_low': self.regression.ci_low,
            'ci_high': self.regression.ci_high,
            'sizes': self.sizes.tolist(),
            'counts': self.counts.tolist(),
            'config': self.config.to_dict(),
        }

    def to_frame(self) -> pd.DataFrame:
        """Samples with their log transform and the fitted line, one row per box size."""
        x, y = self._log_columns()
        return pd.DataFrame({
            'box_size': self.sizes,
            'count': self.counts,
            'neg_log_size': x,
            'log_count': y,
            'fitted': self.regression.predict(x),
        })


class DimensionEstimator:
    """
    Runs a box counter over a box size series and fits the log-log line.

    Parameters
    ----------
    kind : str, default 'binary'
        ``'binary'`` for thresholded 2D/3D box counting, ``'surface'`` for
        SDBC counting of 2D grey-level images.
    progress : bool, default False
        Show a tqdm progress bar over box sizes.
    """

    def __init__(self, kind='binary', progress=False):
        self.counter = get_counter(kind)
        self.kind = kind
        self.progress = progress

    def prepare(self, grid, config: BoxCountConfig) -> BoxCountConfig:
        """Validate grid and config and return the config with defaults and bounds resolved."""
        self.counter.prepare(grid, config)
        config = config.for_kind(self.kind).validate()
        return config.resolve_bounds(grid, self.kind)

    def count_series(self, grid, config: BoxCountConfig, sizes, cancel_event=None):
        """Count every box size in order, checking ``cancel_event`` between sizes."""
        samples = []
        for size in tqdm(sizes, desc=f"{self.kind} box counting", disable=not self.progress, leave=False):
            if cancel_event is not None and cancel_event.is_set():
                raise EstimationCancelled(f"Cancelled before box size {size} ({len(samples)} sizes done)")
            count = self.counter.count(grid, int(size), config)
            logger.debug("Box count was %s for box size %d", count, size)
            samples.append(BoxSizeSample(int(size), count))
        return samples

    def estimate(self, grid, config: Optional[BoxCountConfig] = None, cancel_event=None) -> DimensionResult:
        """
        Estimate the fractal dimension of ``grid``.

        Parameters
        ----------
        grid : SampleGrid or array-like
            Image to analyse; arrays are wrapped in a SampleGrid
        config : BoxCountConfig, optional
            Counting parameters, defaults to ``BoxCountConfig()``
        cancel_event : threading.Event, optional
            Checked before each box size; once set the run stops with
            EstimationCancelled

        Returns
        -------
        DimensionResult

        Raises
        ------
        EmptyGridError
            The grid has a zero-sized axis
        ConfigurationError
            The configuration is invalid
        NoBoxesError
            The bounds leave no box size to evaluate
        """
        grid = SampleGrid.coerce(grid)
        config = BoxCountConfig() if config is None else config
        resolved = self.prepare(grid, config)

        sizes = BoxSizeSeries.from_config(resolved).to_array()
        if sizes.size == 0:
            raise NoBoxesError(
                f"No boxes: box sizes from {resolved.max_box_size} down to {resolved.min_box_size} "
                "leave no size to evaluate")

        logger.info("Estimating %s dimension of %r: %d box sizes from %d to %d, %d translations",
                    self.kind, grid, sizes.size, sizes[0], sizes[-1], resolved.num_translations)

        start_time = time.perf_counter()
        samples = self.count_series(grid, resolved, sizes, cancel_event=cancel_event)
        if not samples:
            raise NoBoxesError("No box size produced a sample")

        regression = fit_loglog(samples, normalize=self.counter.normalization(grid))
        elapsed = time.perf_counter() - start_time
        logger.info("Dimension estimate: %.4f (R^2 %.4f), time used: %.3f seconds",
                    regression.slope, regression.r2, elapsed)

        return DimensionResult(kind=self.kind, config=resolved, samples=tuple(samples),
                               regression=regression, elapsed=elapsed)


def _build_config(config, overrides):
    config = BoxCountConfig() if config is None else config
    if overrides:
        config = BoxCountConfig.from_mapping({**config.to_dict(), **overrides})
    return config


def measure_dimension(input_array, kind='binary', config=None, progress=False, cancel_event=None,
                      **overrides) -> DimensionResult:
    """
    Measure the box counting dimension of an image.

    Parameters
    ----------
    input_array : np.ndarray or SampleGrid
        2D image or 3D stack (binary mode), or 2D grey-level image (surface mode)
    kind : str, default 'binary'
        ``'binary'`` or ``'surface'``
    config : BoxCountConfig, optional
        Base configuration; defaults to ``BoxCountConfig()``
    progress : bool, default False
        Show a progress bar over box sizes
    cancel_event : threading.Event, optional
        Cooperative cancellation, checked between box sizes
    **overrides
        Any BoxCountConfig field, e.g. ``threshold=128`` or ``auto_bounds=False``

    Returns
    -------
    DimensionResult
        Samples, fitted line and the configuration used

    Examples
    --------
    >>> import numpy as np
    >>> img = np.full((8, 8), 255, dtype=np.uint8)
    >>> result = measure_dimension(img, auto_bounds=False, max_box_size=8, min_box_size=2,
    ...                            ratio=2.0, num_translations=1)
    >>> [tuple(s) for s in result.samples]
    [(8, 1), (4, 4), (2, 16)]
    >>> round(result.dimension, 4)
    2.0
    """
    config = _build_config(config, overrides)
    estimator = DimensionEstimator(kind=kind, progress=progress)
    return estimator.estimate(input_array, config, cancel_event=cancel_event)


def measure_stack(input_array, config=None, progress=False, cancel_event=None, **overrides):
    """
    Surface dimension of every slice of a stack, estimated independently.

    Parameters
    ----------
    input_array : np.ndarray or SampleGrid
        (depth, height, width) stack or a single 2D image
    config : BoxCountConfig, optional
        Base configuration shared by all slices
    **overrides
        Any BoxCountConfig field

    Returns
    -------
    list of DimensionResult
        One result per slice, in slice order
    """
    config = _build_config(config, overrides)
    grid = SampleGrid.coerce(input_array)
    if grid.is_empty:
        raise EmptyGridError(f"Empty stack ({grid.width}x{grid.height}x{grid.depth}), dimension not defined")
    estimator = DimensionEstimator(kind='surface', progress=progress)
    results = []
    for z, plane in enumerate(grid.slices()):
        logger.debug("Slice %d of %d", z + 1, grid.depth)
        results.append(estimator.estimate(plane, config, cancel_event=cancel_event))
    return results
