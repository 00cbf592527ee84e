import logging
from dataclasses import dataclass

import numpy as np
from scipy.stats import t
from sklearn.metrics import r2_score

from .errors import ConfigurationError, DegenerateFitError, EmptyInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegressionResult:
    """
    Straight line ``y = slope * x + intercept`` fitted to ``x = -ln(size / normalize)``,
    ``y = ln(count)``.

    ``slope`` is the fractal dimension estimate. ``ci_low``/``ci_high`` bound the
    slope at the requested confidence level and are NaN when the fit has no
    residual degrees of freedom.
    """

    slope: float
    intercept: float
    r2: float
    slope_stderr: float
    ci_low: float
    ci_high: float
    n: int
    normalize: float = 1.0

    @property
    def dimension(self) -> float:
        return self.slope

    def predict(self, x):
        """Evaluate the fitted line at ``x`` (in the ``-ln(size)`` coordinate)."""
        return self.slope * np.asarray(x, dtype=float) + self.intercept


def loglog_transform(sizes, counts, normalize=1.0):
    """
    Return ``(-ln(sizes / normalize), ln(counts))`` as float arrays.

    Only positive values can be transformed; callers filter first.
    """
    sizes = np.asarray(sizes, dtype=float)
    counts = np.asarray(counts, dtype=float)
    return -np.log(sizes / normalize), np.log(counts)


def fit_loglog(samples, normalize=1.0, alpha=0.05) -> RegressionResult:
    """
    Fit a least-squares line to log-transformed box counting samples.

    Parameters
    ----------
    samples : sequence of (box_size, count)
        Box sizes and their counts, typically ``BoxSizeSample`` tuples
    normalize : float, default 1.0
        Box sizes are divided by this before the log transform. Only the
        intercept depends on it; the slope does not.
    alpha : float, default 0.05
        Significance level of the slope confidence interval (0.05 gives 95%)

    Returns
    -------
    RegressionResult
        Slope (the dimension estimate), intercept and fit statistics

    Raises
    ------
    EmptyInputError
        When ``samples`` is empty or no sample has a positive count
    DegenerateFitError
        When fewer than two distinct box sizes remain

    Notes
    -----
    A count of zero has no logarithm; such samples are left out of the fit
    and a warning is logged. The slope's standard error comes from the
    residual variance with ``n - 2`` degrees of freedom, and the confidence
    interval uses the two-sided Student t quantile.

    Examples
    --------
    >>> result = fit_loglog([(8, 1), (4, 4), (2, 16)])
    >>> round(result.slope, 6)
    2.0
    """
    samples = list(samples)
    if not samples:
        raise EmptyInputError("No samples to fit")
    if not normalize > 0:
        raise ConfigurationError(f"Normalization divisor must be positive, got {normalize}")

    sizes = np.array([s[0] for s in samples], dtype=float)
    counts = np.array([s[1] for s in samples], dtype=float)

    valid = (sizes > 0) & (counts > 0)
    if not valid.all():
        logger.warning("Leaving %d sample(s) with non-positive size or count out of the fit",
                       int((~valid).sum()))
    sizes = sizes[valid]
    counts = counts[valid]

    if sizes.size == 0:
        raise EmptyInputError("No sample with a positive box count, dimension not defined")
    if np.unique(sizes).size < 2:
        raise DegenerateFitError(
            f"Need at least two distinct box sizes to fit a slope, got {np.unique(sizes).tolist()}")

    x, y = loglog_transform(sizes, counts, normalize)
    slope, intercept = np.polyfit(x, y, 1)
    y_pred = slope * x + intercept
    r2 = r2_score(y, y_pred)

    n = len(x)
    dof = n - 2
    if dof > 0:
        ss_res = np.sum((y - y_pred) ** 2)
        sxx = np.sum((x - x.mean()) ** 2)
        slope_se = float(np.sqrt(ss_res / dof / sxx))
        t_crit = t.ppf(1 - alpha / 2, dof)
        ci_low = float(slope - t_crit * slope_se)
        ci_high = float(slope + t_crit * slope_se)
    else:
        slope_se = ci_low = ci_high = float('nan')

    return RegressionResult(slope=float(slope), intercept=float(intercept), r2=float(r2),
                            slope_stderr=slope_se, ci_low=ci_low, ci_high=ci_high,
                            n=n, normalize=float(normalize))


def get_pairwise_slopes(sizes, counts):
    """
    Local slopes between consecutive samples of a box counting series.

    Uses the same sign convention as :func:`fit_loglog`:
    ``slopes[i] = (ln N[i+1] - ln N[i]) / (-ln s[i+1] + ln s[i])``, so for a
    clean fractal every local slope is close to the fitted dimension. Wide
    swings point at box sizes outside the scaling range.

    Parameters
    ----------
    sizes : array-like
        Box sizes, in the order they were evaluated
    counts : array-like
        Corresponding box counts (must be positive)

    Returns
    -------
    np.ndarray
        ``len(sizes) - 1`` local slopes
    """
    x, y = loglog_transform(sizes, counts)
    return np.diff(y) / np.diff(x)
