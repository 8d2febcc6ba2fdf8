import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from pmfir.bands import FilterSpec
from pmfir.barycentric import NODE_TOL
from pmfir.exceptions import DesignStateError, FilterDesignError, NumericalError, ResourceError, ValidationError
from pmfir.exchange import ExtremalSet, compute_error, flat_tolerance, initial_indices, remez_exchange
from pmfir.grid import DEFAULT_GRID_DENSITY, Grid, build_grid
from pmfir.observer import NullObserver, Observer, ObserverGroup, PrintObserver


class DesignState(Enum):
    UNINITIALIZED = "uninitialized"
    GRID_BUILT = "grid_built"
    ITERATING = "iterating"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    FAULTED = "faulted"


@dataclass
class DesignConfig:
    """Iteration parameters of the Remez exchange."""

    grid_density: int = DEFAULT_GRID_DENSITY  # grid points per approximating function and half band
    max_iterations: int = 40
    chunk_size: int = 4096  # grid points evaluated per block
    node_tol: float = NODE_TOL  # |xf - x_i| below which an evaluation snaps to node i

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValidationError(f"max_iterations must be at least 1, got {self.max_iterations}.")
        if self.chunk_size < 1:
            raise ValidationError(f"chunk_size must be at least 1, got {self.chunk_size}.")
        if not self.node_tol >= 0:
            raise ValidationError(f"node_tol must be non-negative, got {self.node_tol}.")


@dataclass(eq=False)
class DesignResult:
    """Outcome of a design run.

    extremal and grid describe the designed frequency response: the
    interpolant through (extremal.x, extremal.c) evaluated at cos(2*pi*f).
    """

    spec: FilterSpec
    status: DesignState
    iterations: int
    num_changes: Optional[int]
    grid: Grid
    extremal: Optional[ExtremalSet]
    fault: Optional[FilterDesignError] = None
    config: DesignConfig = field(default_factory=DesignConfig)

    @property
    def converged(self) -> bool:
        return self.status is DesignState.CONVERGED

    @property
    def rho(self) -> float:
        return float("nan") if self.extremal is None else self.extremal.rho

    @property
    def iext(self) -> Optional[np.ndarray]:
        return None if self.extremal is None else self.extremal.iext

    @property
    def extremal_frequencies(self) -> Optional[np.ndarray]:
        return None if self.extremal is None else self.grid.F[self.extremal.iext]

    def response(self, f):
        """Designed amplitude response at the frequencies f (cycles/sample)."""
        if self.extremal is None:
            raise DesignStateError(f"No interpolant available, design status is '{self.status.value}'.")
        return self.extremal.interpolator.at_frequency(f)

    def raise_for_status(self):
        """Re-raise the stored fault of a faulted design."""
        if self.fault is not None:
            raise self.fault
        return self


class FilterDesigner:
    def __init__(self,
                 spec:FilterSpec,
                 config:DesignConfig=None,
                 observer:Observer=None,
                 verbose:bool=False):
        """Parks-McClellan designer driving the Remez exchange.

        Parameters:
        -----------
        spec (FilterSpec) - validated band description
        config (DesignConfig) - grid density, iteration cap and evaluation settings. if 'None', defaults are used
        observer (Observer) - receives grid, per-iteration and final callbacks. if 'None', nothing is traced
        verbose (bool) - print grid and iteration progress
        """
        self.state = DesignState.UNINITIALIZED
        if not isinstance(spec, FilterSpec):
            raise ValidationError(f"spec must be a FilterSpec, got {type(spec).__name__}.")

        self.spec = spec
        self.config = DesignConfig() if config is None else config
        self.verbose = verbose

        observer = NullObserver() if observer is None else observer
        self.observer = ObserverGroup(PrintObserver(), observer) if verbose else observer

        if verbose:
            print(spec)
        self.grid = build_grid(spec, self.config.grid_density, verbose=verbose)
        self.state = DesignState.GRID_BUILT
        self.observer.on_grid(self.grid)

        self.iext = None
        self.extremal = None
        self.iteration = 0
        self.num_changes = None
        self.fault = None

    @property
    def r(self) -> int:
        return self.spec.r

    def initialize(self):
        """Reset the extremal set to r+1 indices evenly spaced over the grid."""
        if self.state is DesignState.UNINITIALIZED:
            raise DesignStateError("Grid has not been built.")
        self.iteration = 0
        self.num_changes = None
        self.extremal = None
        self.fault = None
        try:
            self.iext = initial_indices(self.grid.grid_size, self.r)
        except NumericalError as exc:
            self._fail(exc)
            raise
        self.state = DesignState.ITERATING

    def step(self) -> int:
        """
        Run one interpolation, error evaluation and exchange.

        Returns the number of extremal indices that changed. A zero count moves
        the designer to CONVERGED; stepping a converged designer again keeps
        the extremal set.
        """
        if self.state is DesignState.FAULTED:
            raise DesignStateError(f"Design is faulted: {self.fault}")
        if self.state is DesignState.GRID_BUILT:
            self.initialize()

        self.iteration += 1
        try:
            extremal = ExtremalSet.from_indices(self.grid, self.iext)
            error = compute_error(self.grid, extremal, self.config.chunk_size, self.config.node_tol)
            self.extremal = extremal
            self.observer.on_iteration(self.iteration, extremal, error)

            new_iext, num_changes, found = remez_exchange(error, self.iext, self.r, flat_tolerance(self.grid, extremal))
        except (NumericalError, ResourceError) as exc:
            if isinstance(exc, NumericalError) and exc.iteration is None:
                exc.iteration = self.iteration
            self._fail(exc)
            raise

        self.observer.on_exchange(self.iteration, found, new_iext, num_changes)
        self.num_changes = num_changes
        self.iext = new_iext
        self.state = DesignState.CONVERGED if num_changes == 0 else DesignState.ITERATING
        return num_changes

    def run(self) -> DesignResult:
        """
        Iterate until the extremal set is stable or the iteration cap is reached.

        Returns:
        DesignResult: CONVERGED, EXHAUSTED (with a RuntimeWarning) or FAULTED with the fault attached.
        """
        if self.state is not DesignState.FAULTED:
            try:
                self.initialize()
                while self.iteration < self.config.max_iterations:
                    if self.step() == 0:
                        break
                else:
                    self.state = DesignState.EXHAUSTED
                    warnings.warn(
                        f"Remez exchange did not converge after {self.config.max_iterations} iterations "
                        f"({self.num_changes} extremal indices still changing). "
                        "Try increasing max_iterations or grid_density.",
                        RuntimeWarning,
                    )
            except (NumericalError, ResourceError):
                # state and fault are recorded by _fail
                pass

        result = self.result()
        self.observer.on_finish(result)
        return result

    def result(self) -> DesignResult:
        return DesignResult(
            spec=self.spec,
            status=self.state,
            iterations=self.iteration,
            num_changes=self.num_changes,
            grid=self.grid,
            extremal=self.extremal,
            fault=self.fault,
            config=self.config,
        )

    def response(self, f):
        """Amplitude response of the current interpolant at the frequencies f."""
        if self.extremal is None:
            raise DesignStateError("No interpolant yet, call step() or run() first.")
        return self.extremal.interpolator.at_frequency(f)

    def _fail(self, exc:FilterDesignError):
        self.fault = exc
        self.state = DesignState.FAULTED
        if self.verbose:
            print(f"Design faulted: {exc}")


def design(h_len:int,
           bands,
           des,
           weights=None,
           band_type:str="bandpass",
           grid_density:int=DEFAULT_GRID_DENSITY,
           max_iterations:int=40,
           observer:Observer=None,
           verbose:bool=False) -> DesignResult:
    """
    Run a complete Parks-McClellan design.

    Parameters:
        h_len (int): Filter length.
        bands (sequence): Band intervals as (f0, f1) pairs, or a flat [f0, f1, f0, f1, ...] edge list.
        des (sequence): Desired response per band.
        weights (sequence): Error weight per band. Defaults to one per band.
        band_type (str): 'bandpass', 'differentiator' or 'hilbert'.
        grid_density (int): Grid oversampling factor.
        max_iterations (int): Iteration cap.
        observer (Observer): Optional tracing collaborator.
        verbose (bool): Print progress.

    Returns:
        result (DesignResult): Status, final extremal set and grid.
    """
    bands = list(bands)
    if bands and np.ndim(bands[0]) == 0:
        spec = FilterSpec.from_edges(h_len, bands, des, weights, band_type=band_type)
    else:
        if weights is None:
            weights = (1.0,) * len(bands)
        spec = FilterSpec(h_len=h_len, bands=tuple(bands), des=tuple(des), weights=tuple(weights), band_type=band_type)

    config = DesignConfig(grid_density=grid_density, max_iterations=max_iterations)
    return FilterDesigner(spec, config=config, observer=observer, verbose=verbose).run()
