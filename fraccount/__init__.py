from .boxcount import (
    BoxSizeSample,
    BoxSizeSeries,
    BoxCounter,
    BinaryBoxCounter,
    generate_translation_offsets,
    numba_binary_counts,
)
from .surface import (
    SurfaceBoxCounter,
    numba_surface_counts,
)
from .regression import (
    RegressionResult,
    fit_loglog,
    get_pairwise_slopes,
)
from .grid import SampleGrid
from .config import BoxCountConfig
from .errors import (
    BoxCountError,
    ConfigurationError,
    EmptyGridError,
    NoBoxesError,
    EmptyInputError,
    DegenerateFitError,
    EstimationCancelled,
)
from .core import (
    COUNTERS,
    DimensionEstimator,
    DimensionResult,
    measure_dimension,
    measure_stack,
)
from .logging_config import setup_logging

__version__ = '0.1.0'

__all__ = [
    # Core functionality
    'measure_dimension',
    'measure_stack',
    'DimensionEstimator',
    'DimensionResult',
    'COUNTERS',

    # Counting
    'BoxSizeSample',
    'BoxSizeSeries',
    'BoxCounter',
    'BinaryBoxCounter',
    'SurfaceBoxCounter',
    'generate_translation_offsets',
    'numba_binary_counts',
    'numba_surface_counts',

    # Fitting
    'RegressionResult',
    'fit_loglog',
    'get_pairwise_slopes',

    # Inputs
    'SampleGrid',
    'BoxCountConfig',

    # Errors
    'BoxCountError',
    'ConfigurationError',
    'EmptyGridError',
    'NoBoxesError',
    'EmptyInputError',
    'DegenerateFitError',
    'EstimationCancelled',

    'setup_logging',
]
