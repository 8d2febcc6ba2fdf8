from .bands import FilterSpec
from .grid import Grid, build_grid
from .barycentric import BarycentricInterpolator, barycentric_weights, barycentric_eval
from .exchange import ExtremalSet, compute_error, find_extrema, prune_extrema, remez_exchange
from .designer import DesignConfig, DesignResult, DesignState, FilterDesigner, design
from .observer import NullObserver, Observer, PrintObserver, TraceRecorder
from .exceptions import FilterDesignError, ValidationError, NumericalError, ResourceError, DesignStateError
from .utils import plot_error, plot_response
